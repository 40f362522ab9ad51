from fwipie.workflow.base import base
from fwipie.inversion.fwi import invert
from time import time

class migration(base):
	""" gradient in the initial model
	"""

	def run(self):
		""" start workflow
		"""
		start = time()
		pa = self.create_session()
		image = invert(pa, self.objective)

		for sel, im in zip([p for p in pa.parameterization if p != 'null'], image):
			self.export_field(im, 'g' + sel)

		print('elapsed time: %.2fs' % (time() - start))

	@property
	def modules(self):
		return ['objective']
