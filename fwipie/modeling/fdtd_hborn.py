from fwipie.modeling.fdtd_born import fdtd_born

class fdtd_hborn(fdtd_born):
	""" Born modelling with the background field simulated once, stored
	and replayed for every perturbation
	"""
	def store_background(self, pa, illum=False):
		engine = pa.engine
		if pa.verbose:
			print('  storing background wavefield')
		engine.update_model(pa.modm0)
		engine.configure(activepw=[1], sflags=[2, 0], rflags=[0, 0], backprop_flag=1,
			born_flag=False, gmodel_flag=False, illum_flag=illum)
		engine.simulate()

	def replay(self, pa, dm, d):
		engine = pa.engine
		# stored background stays valid, only the perturbation changes
		engine.update_model(pa.modm0, dm)
		engine.configure(activepw=[1, 2], sflags=[3, 0], rflags=[0, 1], backprop_flag=0,
			born_flag=True, gmodel_flag=False, illum_flag=False)
		engine.simulate()
		return d.copy_from(engine.data[1])

	def forward(self, pa, src=None, illum=False):
		engine = pa.engine
		engine.update_sources([pa.src if src is None else src, pa.adjsrc])
		engine.update_model(pa.modm0)
		if illum or engine.buffer != 'valid':
			self.store_background(pa, illum)

		return self.replay(pa, self.perturbation(pa), pa.dcal)

	def born(self, pa, mod, dm, d):
		engine = pa.engine
		engine.update_sources([pa.src, pa.adjsrc])
		engine.update_model(mod)
		if engine.buffer != 'valid':
			self.store_background(pa)

		return self.replay(pa, dm, d)
