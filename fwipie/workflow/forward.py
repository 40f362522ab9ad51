from fwipie.workflow.base import base
from fwipie.solver.fdtd import fdtd
from fwipie.tools.config import get_flag
from time import time

class forward(base):
	""" forward simulation in the true model
	"""

	def run(self):
		""" start workflow
		"""
		start = time()
		mcfg = self.config['modeling']
		geom, wav, tgrid = self.import_acquisition()
		mod = self.import_model(True)

		solver = fdtd(mod, [geom, geom.adjoint()], tgrid,
			abs_width=int(mcfg.get('abs_width', '0')),
			abs_alpha=float(mcfg.get('abs_alpha', '0.0')),
			verbose=True)
		solver.configure(activepw=[1], sflags=[2, 0], rflags=[1, 0], backprop_flag=0,
			born_flag=False, gmodel_flag=False, illum_flag=get_flag(mcfg, 'save_illum'))
		solver.update_sources([wav, None])
		solver.simulate()

		for f, iss, dd in solver.data[0]:
			self.export_field(dd, f, iss)

		if solver.illum_flag:
			self.export_field(solver.illum, 'illum')

		print('elapsed time: %.2fs' % (time() - start))
