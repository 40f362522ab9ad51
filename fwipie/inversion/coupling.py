from numba import njit
import numpy as np

@njit
def convolve(out, w, x, nlag):
	nt, nr = x.shape
	out[:] = 0
	for it in range(nt):
		for l in range(-nlag, nlag + 1):
			s = it - l
			if s >= 0 and s < nt:
				for ir in range(nr):
					out[it, ir] += w[l + nlag] * x[s, ir]

@njit
def correlate(out, w, r, nlag):
	nt, nr = r.shape
	out[:] = 0
	for it in range(nt):
		for l in range(-nlag, nlag + 1):
			s = it - l
			if s >= 0 and s < nt:
				for ir in range(nr):
					out[s, ir] += w[l + nlag] * r[it, ir]

@njit
def xcorr(g, r, x, nlag):
	nt, nr = r.shape
	for it in range(nt):
		for l in range(-nlag, nlag + 1):
			s = it - l
			if s >= 0 and s < nt:
				for ir in range(nr):
					g[l + nlag] += r[it, ir] * x[s, ir]

class coupling:
	""" source signature filter applied to calculated data, shared by
	every supersource and field; lags from -nlag to nlag time samples
	"""
	def __init__(self, nt, tlag_frac=0.0):
		self.nlag = int(round(tlag_frac * (nt - 1)))
		self.w = np.zeros(2 * self.nlag + 1)
		self.w[self.nlag] = 1.0

	@property
	def ninv(self):
		return self.w.size

	def reset(self):
		self.w.fill(0.0)
		self.w[self.nlag] = 1.0

	def isdelta(self):
		return self.w[self.nlag] == 1.0 and np.count_nonzero(self.w) == 1

	def apply(self, dcal, out):
		for f, iss, dd in dcal:
			convolve(out.d[f][iss], self.w, dd, self.nlag)
		return out

	def adjoint(self, res, out):
		for f, iss, dd in res:
			correlate(out.d[f][iss], self.w, dd, self.nlag)
		return out

	def gradient(self, res, dcal, g):
		""" gradient w.r.t. w, summed over supersources and fields
		"""
		g[:] = 0.0
		for f, iss, dd in res:
			xcorr(g, dd, dcal.d[f][iss], self.nlag)
		return g
