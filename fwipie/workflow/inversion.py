from fwipie.workflow.base import base
from fwipie.inversion.fwi import invert, err
from fwipie.tools.config import get_flag
from time import time

class inversion(base):
	""" model inversion
	"""

	def run(self):
		""" start workflow
		"""
		start = time()
		pa = self.create_session()
		res = invert(pa, self.objective, self.optimize, get_flag(self.config['inversion'], 'bounded'))
		err(pa)

		for name in pa.modm.names:
			self.export_field(getattr(pa.modm, name), name, res.nit)

		self.export_field(res.misfits, 'misfit')
		print('elapsed time: %.2fs' % (time() - start))

	@property
	def modules(self):
		return ['objective', 'optimize']
