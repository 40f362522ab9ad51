from fwipie.objective.base import base
from fwipie.inversion.engine import misfit
from fwipie.tools.errors import MissingDataError

class ssf(base):
	""" data misfit as a function of the source signature filter,
	modelled data held fixed
	"""
	def setup(self, pa):
		if pa.dcal.iszero():
			raise MissingDataError('calculated data are zero, cannot estimate the source filter')
		super().setup(pa)

	def value(self, x):
		pa = self.pa
		pa.coupling.w[:] = x
		return misfit(pa)

	def value_and_gradient(self, x, out):
		pa = self.pa
		pa.coupling.w[:] = x
		f = misfit(pa, residual=True)
		pa.coupling.gradient(pa.dres, pa.dcal, out)
		return f, out
