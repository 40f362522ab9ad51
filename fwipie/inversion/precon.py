import numpy as np
from scipy import sparse

from fwipie.tools.errors import ConfigurationError

class precon:
	""" diagonal model preconditioner P built from illumination

	x = P x_contrast when going from model to vector, x_contrast = P^-1 x
	on the way back; P is diagonal, so gradients use P^-1 as well
	"""
	def __init__(self, n):
		self.diag = np.ones(n)

	@property
	def matrix(self):
		return sparse.diags(self.diag, 0, format='csr')

	def isidentity(self):
		return bool(np.all(self.diag == 1.0))

	def build(self, illum, interp, nchannels, factor=1.0):
		""" larger the factor, stronger the preconditioning; factor 1 switches it off
		"""
		if factor < 1.0:
			raise ConfigurationError('invalid mprecon_factor %s, must be >= 1' % factor)

		if factor == 1.0:
			self.diag.fill(1.0)
			return self

		illum = np.asarray(illum, dtype='float64').ravel()
		if np.any(illum <= 0.0):
			raise ConfigurationError('illumination cannot be negative or zero')

		illumi = interp.spray(illum)
		if np.any(illumi <= 0.0):
			raise ConfigurationError('illumination on the inversion grid cannot be negative or zero')

		minillumi = illumi.min()
		maxillumi = illumi.max()
		illumi -= minillumi
		illumi /= maxillumi
		illumi = 1.0 + (factor - 1.0) * illumi

		diag = np.tile(illumi, nchannels)
		if diag.size != self.diag.size:
			raise ConfigurationError('preconditioner size %d does not match %d inversion variables' %
				(diag.size, self.diag.size))

		self.diag[:] = diag
		return self

	def apply(self, x, out=None):
		if out is None:
			out = np.empty_like(x)
		np.multiply(x, self.diag, out=out)
		return out

	def solve(self, x, out=None):
		if out is None:
			out = np.empty_like(x)
		np.divide(x, self.diag, out=out)
		return out
