from fwipie.workflow.base import base
from fwipie.inversion.fwi import joint_invert
from fwipie.tools.config import get_flag
from time import time

class joint(base):
	""" model inversion with source signature estimation
	"""

	def run(self):
		""" start workflow
		"""
		start = time()
		cfg = self.config['inversion']
		pa = self.create_session()
		res = joint_invert(pa,
			max_roundtrips=int(cfg.get('max_roundtrips', '100')),
			max_reroundtrips=int(cfg.get('max_reroundtrips', '10')),
			roundtrip_tol=float(cfg.get('roundtrip_tol', '1e-6')),
			min_roundtrips=int(cfg.get('min_roundtrips', '10')),
			optimizer=self.optimize, bounded=get_flag(cfg, 'bounded'))

		for name in pa.modm.names:
			self.export_field(getattr(pa.modm, name), name, res.nit)

		self.export_field(pa.coupling.w, 'ssf')
		print('elapsed time: %.2fs' % (time() - start))

	@property
	def modules(self):
		return ['optimize']
