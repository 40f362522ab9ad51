class base:
	""" modelling mode of an inversion session

	forward fills pa.dcal for the current pa.modm and leaves a valid
	background buffer in the engine; adjoint back-propagates pa.adjsrc
	through that buffer; background is the model the gradient refers to
	"""
	def forward(self, pa, src=None, illum=False):
		raise NotImplementedError

	def background(self, pa):
		raise NotImplementedError

	def born(self, pa, mod, dm, d):
		""" linearized data around mod for the perturbation dm = [dK; db]
		"""
		engine = pa.engine
		engine.update_model(mod, dm)
		engine.configure(activepw=[1, 2], sflags=[2, 0], rflags=[0, 1], backprop_flag=1,
			born_flag=True, gmodel_flag=False, illum_flag=False)
		engine.update_sources([pa.src, pa.adjsrc])
		engine.simulate()
		return d.copy_from(engine.data[1])

	def adjoint(self, pa):
		engine = pa.engine
		engine.update_model(self.background(pa))
		engine.configure(activepw=[1, 2], sflags=[3, 2], rflags=[0, 0], backprop_flag=-1,
			born_flag=False, gmodel_flag=True, illum_flag=False)
		engine.update_sources([pa.src, pa.adjsrc])
		engine.simulate()
		return engine.copy_gmodel(pa.gmodm)
