from fwipie.modeling.base import base
from fwipie.model import parameterization as param

class fdtd_born(base):
	""" Born modelling: background field in modm0 and the field scattered
	by modm - modm0 are simulated together, only the scattered data are kept
	"""
	def perturbation(self, pa):
		mxm = pa.mxm
		param.get(mxm.aux, pa.modm, pa.parameterization)
		mxm.aux -= mxm.x0
		return param.pert(mxm.dm, mxm.aux, pa.modm0, pa.parameterization)

	def forward(self, pa, src=None, illum=False):
		engine = pa.engine
		engine.update_model(pa.modm0, self.perturbation(pa))
		engine.configure(activepw=[1, 2], sflags=[2, 0], rflags=[0, 1], backprop_flag=1,
			born_flag=True, gmodel_flag=False, illum_flag=illum)
		engine.update_sources([pa.src if src is None else src, pa.adjsrc])
		engine.simulate()
		pa.dcal.copy_from(engine.data[1])
		return pa.dcal

	def background(self, pa):
		return pa.modm0
