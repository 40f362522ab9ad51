from fwipie.objective.base import base
from fwipie.inversion.engine import F, misfit, update_adjsrc, Fadj, spray_gradient

class ls(base):
	""" least-squares data misfit, gradient by the adjoint-state method
	"""
	def value(self, x):
		pa = self.pa
		F(pa, x)
		return misfit(pa)

	def value_and_gradient(self, x, out):
		pa = self.pa
		if pa.verbose:
			print('  computing gradient...')

		F(pa, x)
		f = misfit(pa, residual=True)
		update_adjsrc(pa)
		Fadj(pa)
		spray_gradient(pa, out)

		return f, out
