from fwipie.objective.base import base
from fwipie.objective.ls import ls
from fwipie.misfit.euclidean import error_squared_euclidean

class ls_prior(base):
	""" alpha[0] * least squares + alpha[1] * weighted distance to the prior
	"""
	def __init__(self, alpha=(1.0, 0.5)):
		self.alpha = [float(a) for a in alpha]
		assert len(self.alpha) == 2

	def setup(self, pa):
		super().setup(pa)
		self.ls = ls()
		self.ls.setup(pa)

	def value(self, x):
		mx = self.pa.mx
		f1 = self.ls.value(x)
		f2 = error_squared_euclidean(None, x, mx.prior, mx.w)
		return self.alpha[0] * f1 + self.alpha[1] * f2

	def value_and_gradient(self, x, out):
		mx = self.pa.mx
		g1 = mx.gm[0]
		f1, _ = self.ls.value_and_gradient(x, g1)

		g2 = mx.gm[1]
		f2 = error_squared_euclidean(g2, x, mx.prior, mx.w)

		out[:] = self.alpha[0] * g1 + self.alpha[1] * g2
		return self.alpha[0] * f1 + self.alpha[1] * f2, out
