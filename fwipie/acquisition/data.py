from copy import deepcopy
import numpy as np

class data:
	""" recorded time series; d[field][iss] is an (nt, nr) array
	"""
	def __init__(self, tgrid, nr, fields=('P',)):
		self.tgrid = np.asarray(tgrid, dtype='float64')
		self.fields = tuple(fields)
		nt = self.tgrid.size
		self.d = dict((f, [np.zeros((nt, n)) for n in nr]) for f in self.fields)

	@classmethod
	def zeros(cls, tgrid, geom, fields=('P',)):
		return cls(tgrid, geom.nr, fields)

	@property
	def nt(self):
		return self.tgrid.size

	@property
	def nss(self):
		return len(self.d[self.fields[0]])

	@property
	def nr(self):
		return [dd.shape[1] for dd in self.d[self.fields[0]]]

	def __iter__(self):
		for f in self.fields:
			for iss, dd in enumerate(self.d[f]):
				yield f, iss, dd

	def __len__(self):
		return sum(dd.size for _, _, dd in self)

	def copy(self):
		return deepcopy(self)

	def copy_from(self, other):
		assert self.issimilar(other)
		for f, iss, dd in self:
			dd[:] = other.d[f][iss]
		return self

	def issimilar(self, other):
		if self.fields != other.fields or self.nss != other.nss:
			return False
		if not np.allclose(self.tgrid, other.tgrid):
			return False
		return all(dd.shape == other.d[f][iss].shape for f, iss, dd in self)

	def fill(self, k):
		for _, _, dd in self:
			dd.fill(k)
		return self

	def randn(self, rng=None):
		rng = np.random.default_rng() if rng is None else rng
		for _, _, dd in self:
			dd[:] = rng.standard_normal(dd.shape)
		return self

	def iszero(self):
		return all(not np.any(dd) for _, _, dd in self)

	def dot(self, other):
		return sum(float(np.sum(dd * other.d[f][iss])) for f, iss, dd in self)

	def vec(self):
		return np.concatenate([dd.ravel() for _, _, dd in self])

	def copy_vec(self, v):
		i0 = 0
		for _, _, dd in self:
			dd.ravel()[:] = v[i0:i0 + dd.size]
			i0 += dd.size
		return self

	def reverse(self, out):
		""" time reversal into out
		"""
		for f, iss, dd in self:
			out.d[f][iss][:] = dd[::-1]
		return out
