import numpy as np

class variable:
	""" optimization variable with its bounds, gradients, prior and work space
	"""
	def __init__(self, n, ngm=2):
		self.x = np.zeros(n)
		self.last_x = np.random.randn(n)
		self.lower_x = np.full(n, -np.inf)
		self.upper_x = np.full(n, np.inf)
		self.gm = [np.zeros(n) for _ in range(ngm)]
		self.prior = np.zeros(n)
		self.prior_raw = np.zeros(n)
		self.w = np.ones(n)
		self.aux = np.zeros(n)
		self.gx = np.zeros(n)

	@property
	def n(self):
		return self.x.size

	def reset_last(self):
		self.last_x[:] = np.random.randn(self.n)
