class base:
	""" objective on the optimization vector of a session
	"""
	# migration objectives return an image instead of being minimized
	iterative = True

	def setup(self, pa):
		self.pa = pa

	def value(self, x):
		raise NotImplementedError

	def value_and_gradient(self, x, out):
		raise NotImplementedError

	def gradient(self, x, out):
		self.value_and_gradient(x, out)
		return out
