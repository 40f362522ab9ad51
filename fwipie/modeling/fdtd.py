from fwipie.modeling.base import base

class fdtd(base):
	""" non-linear modelling in modm
	"""
	def forward(self, pa, src=None, illum=False):
		engine = pa.engine
		engine.update_model(pa.modm)
		engine.configure(activepw=[1], sflags=[2, 0], rflags=[1, 0], backprop_flag=1,
			born_flag=False, gmodel_flag=False, illum_flag=illum)
		engine.update_sources([pa.src if src is None else src, pa.adjsrc])
		engine.simulate()
		pa.dcal.copy_from(engine.data[0])
		return pa.dcal

	def background(self, pa):
		return pa.modm
