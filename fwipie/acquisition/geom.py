from copy import deepcopy
import numpy as np

class geom:
	""" acquisition geometry, one entry per supersource
	all sources of a supersource are fired simultaneously
	"""
	def __init__(self, sx, sz, rx, rz):
		self.sx = [np.atleast_1d(np.asarray(s, dtype='float64')) for s in sx]
		self.sz = [np.atleast_1d(np.asarray(s, dtype='float64')) for s in sz]
		self.rx = [np.atleast_1d(np.asarray(r, dtype='float64')) for r in rx]
		self.rz = [np.atleast_1d(np.asarray(r, dtype='float64')) for r in rz]

		assert len(self.sx) == len(self.sz) == len(self.rx) == len(self.rz)
		for iss in range(self.nss):
			assert self.sx[iss].size == self.sz[iss].size
			assert self.rx[iss].size == self.rz[iss].size

	@property
	def nss(self):
		return len(self.sx)

	@property
	def ns(self):
		return [s.size for s in self.sx]

	@property
	def nr(self):
		return [r.size for r in self.rx]

	def adjoint(self):
		""" receivers fire as simultaneous sources, supersource count preserved
		"""
		geomout = deepcopy(self)
		geomout.sx = deepcopy(self.rx)
		geomout.sz = deepcopy(self.rz)
		return geomout

	def ids(self, z, x, kind='s'):
		""" grid indices (iz, ix) of sources or receivers per supersource
		"""
		dz = z[1] - z[0] if z.size > 1 else 1.0
		dx = x[1] - x[0] if x.size > 1 else 1.0
		pz = self.sz if kind == 's' else self.rz
		px = self.sx if kind == 's' else self.rx

		out = []
		for iss in range(self.nss):
			iz = np.round((pz[iss] - z[0]) / dz).astype('int64')
			ix = np.round((px[iss] - x[0]) / dx).astype('int64')
			assert np.all((iz >= 0) & (iz < z.size)), 'position outside the grid (z)'
			assert np.all((ix >= 0) & (ix < x.size)), 'position outside the grid (x)'
			out.append((iz, ix))

		return out

	def isequal(self, other):
		pairs = zip(self.sx + self.sz + self.rx + self.rz, other.sx + other.sz + other.rx + other.rz)
		return self.nss == other.nss and all(np.array_equal(a, b) for a, b in pairs)

def fixed_spread(sx, sz, rx, rz):
	""" one source per supersource, same receivers for all
	"""
	sx = np.atleast_1d(sx)
	sz = np.atleast_1d(sz)
	nss = sx.size
	return geom(
		[[sx[i]] for i in range(nss)], [[sz[i]] for i in range(nss)],
		[rx] * nss, [rz] * nss
	)
