import numpy as np
from scipy import sparse

from fwipie.model.medium import grid
from fwipie.tools.errors import ConfigurationError

def weights(xin, xout, scheme='B1'):
	""" sparse matrix interpolating values on xin to xout
	B1: linear, B2: quadratic Lagrange; points outside xin take the edge value
	"""
	nin = xin.size
	nout = xout.size
	rows = []
	cols = []
	vals = []

	for i, t in enumerate(xout):
		if nin == 1 or t <= xin[0]:
			rows.append(i); cols.append(0); vals.append(1.0)
			continue

		if t >= xin[-1]:
			rows.append(i); cols.append(nin - 1); vals.append(1.0)
			continue

		j = int(np.searchsorted(xin, t, side='right')) - 1

		if scheme == 'B1' or nin < 3:
			w = (t - xin[j]) / (xin[j + 1] - xin[j])
			rows += [i, i]; cols += [j, j + 1]; vals += [1.0 - w, w]

		elif scheme == 'B2':
			k = j if t - xin[j] <= xin[j + 1] - t else j + 1
			k = min(max(k, 1), nin - 2)
			x0, x1, x2 = xin[k - 1], xin[k], xin[k + 1]
			rows += [i, i, i]; cols += [k - 1, k, k + 1]
			vals += [
				(t - x1) * (t - x2) / ((x0 - x1) * (x0 - x2)),
				(t - x0) * (t - x2) / ((x1 - x0) * (x1 - x2)),
				(t - x0) * (t - x1) / ((x2 - x0) * (x2 - x1))
			]

		else:
			raise ConfigurationError('invalid interpolation scheme %s' % scheme)

	return sparse.csr_matrix((vals, (rows, cols)), shape=(nout, nin))

def inset(zi, xi, zm, xm, margin=2):
	""" truncate the inversion grid to stay margin cells away from the
	modelling-grid boundary, where gradients are inaccurate
	"""
	def truncate(gi, gm):
		start = max(gi[0], gm[min(margin, gm.size - 1)])
		stop = min(gi[-1], gm[max(gm.size - 1 - margin, 0)])
		step = gi[1] - gi[0] if gi.size > 1 else gm[1] - gm[0]
		if stop < start:
			raise ConfigurationError('inversion grid does not overlap the modelling grid')
		return grid(start, stop, step)

	return truncate(np.asarray(zi), np.asarray(zm)), truncate(np.asarray(xi), np.asarray(xm))

class interp:
	""" maps fields between the inversion (coarse) and modelling (dense) grids
	spray is the exact transpose of interpolate
	"""
	def __init__(self, igrid, mgrid, scheme='B2'):
		zi, xi = igrid
		zm, xm = mgrid
		self.scheme = scheme
		self.ni = zi.size * xi.size
		self.nm = zm.size * xm.size

		# row-major (z, x) flattening
		self.A = sparse.kron(weights(zi, zm, scheme), weights(xi, xm, scheme)).tocsr()
		self.At = self.A.T.tocsr()
		self.S = sparse.kron(weights(zm, zi, 'B1'), weights(xm, xi, 'B1')).tocsr()

	def _apply(self, M, vin, vout, nin, nout):
		nch = vin.size // nin
		assert vin.size == nch * nin
		if vout is None:
			vout = np.zeros(nch * nout)
		assert vout.size == nch * nout
		vout.reshape(nch, nout)[:] = (M @ vin.reshape(nch, nin).T).T
		return vout

	def interpolate(self, coarse, dense=None):
		""" coarse -> dense, for each stacked channel
		"""
		return self._apply(self.A, coarse, dense, self.ni, self.nm)

	def spray(self, dense, coarse=None):
		""" dense -> coarse, transpose of interpolate
		"""
		return self._apply(self.At, dense, coarse, self.nm, self.ni)

	def sample(self, dense, coarse=None):
		""" dense -> coarse values, used to put a model on the inversion grid
		"""
		return self._apply(self.S, dense, coarse, self.nm, self.ni)

	def sample_medium(self, modm, modi):
		for name in modm.names:
			field = getattr(modi, name)
			field[:] = self.sample(getattr(modm, name).ravel()).reshape(field.shape)
		return modi
