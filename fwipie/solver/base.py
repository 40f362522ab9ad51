class base:
	""" forward engine driven by the inversion session

	flags
		activepw: active wavefields, e.g. [1] or [1, 2]
		sflags: per wavefield, 2 inject sources, 3 replay stored background, 0 none
		rflags: per wavefield, 1 record data
		backprop_flag: 1 store the background wavefield, -1 back-propagate
		born_flag: wavefield 2 is scattered by the model perturbation
		gmodel_flag: accumulate the gradient w.r.t. (K, b)
		illum_flag: accumulate the source illumination
	"""
	flags = ['activepw', 'sflags', 'rflags', 'backprop_flag', 'born_flag', 'gmodel_flag', 'illum_flag']

	def configure(self, **flags):
		for key, value in flags.items():
			if key not in self.flags:
				raise KeyError('unknown engine flag %s' % key)
			setattr(self, key, value)

	def update_model(self, mod, pert=None):
		raise NotImplementedError

	def update_sources(self, srcs):
		raise NotImplementedError

	def simulate(self):
		raise NotImplementedError
