""" blind deconvolution: recorded traces are a wavelet convolved with
one Green's function per receiver, d[:, r] = wav * gf[:, r], truncated
to nt samples; wavelet and Green's functions are estimated alternately
"""
from numba import njit
import numpy as np

from fwipie.inversion.altmin import altmin
from fwipie.inversion.engine import isequal
from fwipie.misfit.euclidean import (error_squared_euclidean, error_weighted_norm,
	error_after_normalized_autocor, derivative_vector_magnitude)
from fwipie.optimize.lbfgsb import lbfgsb
from fwipie.tools.errors import ConfigurationError, MissingDataError

@njit
def conv(d, wav, gf):
	nt, nr = d.shape
	ntgf = gf.shape[0]
	d[:] = 0
	for ir in range(nr):
		for it in range(nt):
			for k in range(min(ntgf, it + 1)):
				d[it, ir] += gf[k, ir] * wav[it - k]

@njit
def conv_gf(dgf, wav, d):
	""" adjoint of conv w.r.t. gf
	"""
	nt, nr = d.shape
	ntgf = dgf.shape[0]
	dgf[:] = 0
	for ir in range(nr):
		for it in range(nt):
			for k in range(min(ntgf, it + 1)):
				dgf[k, ir] += d[it, ir] * wav[it - k]

@njit
def conv_wav(dwav, gf, d):
	""" adjoint of conv w.r.t. wav, stacked over receivers
	"""
	nt, nr = d.shape
	ntgf = gf.shape[0]
	dwav[:] = 0
	for ir in range(nr):
		for it in range(nt):
			for k in range(min(ntgf, it + 1)):
				dwav[it - k] += d[it, ir] * gf[k, ir]

def safe_divide(x, precon, out):
	""" x / precon, zero where precon vanishes
	"""
	out[:] = 0.0
	nz = precon != 0.0
	out[nz] = x[nz] / precon[nz]
	return out

class decon:
	""" blind deconvolution session

	attrib_inv selects the unknown, 'gf' or 'wav'; gfprecon and wavprecon
	scale the optimization vectors, zero entries are not inverted.
	gfoptim lists the objectives of the gf update, 'ls' and 'weights'
	(exponentially weighted norm of gf), combined with gfalpha.
	"""
	def __init__(self, ntgf, nt, nr, gfobs=None, wavobs=None, dobs=None,
		gfprecon=None, gfweights=None, wavprecon=None, wavnorm_flag=False,
		gfoptim=('ls',), gfalpha=None, verbose=False, attrib_inv='gf'):
		self.ntgf = ntgf
		self.nt = nt
		self.nr = nr
		self.verbose = verbose
		self.wavnorm_flag = wavnorm_flag

		self.gfobs = np.zeros((ntgf, nr)) if gfobs is None else np.array(gfobs, dtype='float64')
		self.wavobs = np.zeros(nt) if wavobs is None else np.array(wavobs, dtype='float64')
		self.dobs = np.zeros((nt, nr)) if dobs is None else np.array(dobs, dtype='float64')
		assert self.gfobs.shape == (ntgf, nr) and self.wavobs.shape == (nt,) and self.dobs.shape == (nt, nr)

		if not np.any(self.dobs):
			if not np.any(self.gfobs) or not np.any(self.wavobs):
				raise MissingDataError('need gfobs and wavobs')
			conv(self.dobs, self.wavobs, self.gfobs)

		self.gf = np.zeros((ntgf, nr))
		self.wav = np.zeros(nt)
		self.dcal = np.zeros((nt, nr))
		self.ddcal = np.zeros((nt, nr))
		self.dgf = np.zeros((ntgf, nr))
		self.dwav = np.zeros(nt)

		self.gfprecon = np.ones((ntgf, nr)) if gfprecon is None else np.array(gfprecon, dtype='float64')
		self.gfweights = np.ones((ntgf, nr)) if gfweights is None else np.array(gfweights, dtype='float64')
		self.wavprecon = np.ones(nt) if wavprecon is None else np.array(wavprecon, dtype='float64')

		for name in gfoptim:
			if name not in ('ls', 'weights'):
				raise ConfigurationError('invalid gf objective %s' % name)
		self.gfoptim = tuple(gfoptim)
		self.gfalpha = np.ones(len(gfoptim)) if gfalpha is None else np.array(gfalpha, dtype='float64')

		self.xgf = np.zeros(ntgf * nr)
		self.last_xgf = np.random.randn(ntgf * nr)
		self.xwav = np.zeros(nt)
		self.last_xwav = np.random.randn(nt)

		self.attrib_inv = attrib_inv
		self.initialize()

	@property
	def attrib_inv(self):
		return self._attrib_inv

	@attrib_inv.setter
	def attrib_inv(self, value):
		if value not in ('gf', 'wav'):
			raise ConfigurationError('invalid attrib_inv %s' % value)
		self._attrib_inv = value

	def ninv(self):
		return self.nt if self.attrib_inv == 'wav' else self.ntgf * self.nr

	def initialize(self):
		""" random starting wavelet and Green's functions
		"""
		self.wav[:] = np.random.randn(self.nt)
		self.gf[:] = np.random.randn(self.ntgf, self.nr)
		self.last_xgf[:] = np.random.randn(self.last_xgf.size)
		self.last_xwav[:] = np.random.randn(self.last_xwav.size)

	def model_to_x(self, x):
		if self.attrib_inv == 'wav':
			x[:] = self.wav * self.wavprecon
		else:
			x[:] = (self.gf * self.gfprecon).ravel()
		return x

	def x_to_model(self, x):
		if self.attrib_inv == 'wav':
			safe_divide(x, self.wavprecon, self.wav)
			if self.wavnorm_flag:
				self.wav /= np.linalg.norm(x)
		else:
			safe_divide(x.reshape(self.ntgf, self.nr), self.gfprecon, self.gf)
		return self

	def last_x(self):
		return self.last_xwav if self.attrib_inv == 'wav' else self.last_xgf

	def F(self, x):
		""" calculated data, skipped when x is the last vector
		"""
		last_x = self.last_x()
		if isequal(x, last_x):
			return self.dcal

		self.x_to_model(x)
		last_x[:] = x
		conv(self.dcal, self.wav, self.gf)
		return self.dcal

	def Fadj(self, gx, d, x=None):
		""" adjoint of F at the current model, applied to data d
		"""
		if self.attrib_inv == 'wav':
			conv_wav(self.dwav, self.gf, d)
			safe_divide(self.dwav, self.wavprecon, gx)
			if self.wavnorm_flag:
				x = self.xwav if x is None else x
				derivative_vector_magnitude(gx, gx.copy(), x)
		else:
			conv_gf(self.dgf, self.wav, d)
			safe_divide(self.dgf.ravel(), self.gfprecon.ravel(), gx)
		return gx

	def value(self, x):
		return self.value_and_gradient(x, None)[0]

	def value_and_gradient(self, x, out):
		""" weighted sum of the objectives of the current unknown
		"""
		self.F(x)
		if self.attrib_inv == 'wav':
			names, alpha = ('ls',), (1.0,)
		else:
			names, alpha = self.gfoptim, self.gfalpha

		f = 0.0
		if out is not None:
			out[:] = 0.0
			g = np.zeros_like(out)

		for name, a in zip(names, alpha):
			if name == 'ls':
				fi = error_squared_euclidean(None if out is None else self.ddcal,
					self.dcal, self.dobs, norm_flag=True)
				if out is not None:
					self.Fadj(g, self.ddcal, x)
			else:
				fi = error_weighted_norm(None if out is None else self.dgf, self.gf, self.gfweights)
				if out is not None:
					safe_divide(self.dgf.ravel(), self.gfprecon.ravel(), g)
			f += a * fi
			if out is not None:
				out += a * g

		return f, out

	def update(self, attrib_inv):
		""" minimize over one unknown, the other held fixed
		"""
		self.attrib_inv = attrib_inv
		x = self.xwav if attrib_inv == 'wav' else self.xgf
		self.model_to_x(x)
		# the other unknown may have changed since dcal was cached
		last_x = self.last_x()
		last_x[:] = np.random.randn(last_x.size)

		optimizer = lbfgsb({'niter': 2000, 'f_tol': 1e-8, 'g_tol': 1e-30, 'verbose': False})
		res = optimizer.minimize(self, x)
		x[:] = res.x
		self.F(x)
		if self.verbose:
			print(res)
		return res.fun

	def update_all(self, max_roundtrips=100, max_reroundtrips=10, roundtrip_tol=1e-3, min_roundtrips=10):
		res = altmin([lambda: self.update('wav'), lambda: self.update('gf')],
			roundtrip_tol=roundtrip_tol, max_roundtrips=max_roundtrips, min_roundtrips=min_roundtrips,
			max_reroundtrips=max_reroundtrips, reinit_func=self.initialize, name='Blind Decon',
			verbose=self.verbose)
		self.error()
		return res

	def error(self):
		fwav = error_after_normalized_autocor(self.wav, self.wavobs)
		fgf = error_after_normalized_autocor(self.gf, self.gfobs)
		conv(self.dcal, self.wav, self.gf)
		f = error_squared_euclidean(None, self.dcal, self.dobs, norm_flag=True)

		print('Blind Decon')
		print('===========')
		print('error in estimated wavelet:\t', fwav)
		print('error after autocor in estimated Green Functions:\t', fgf)
		print('normalized error in the data:\t', f)

		return fwav, fgf, f

	def remove_gfprecon(self):
		self.gfprecon[self.gfprecon != 0.0] = 1.0

def create_weights(ntgf, nt, gfobs, alpha_exp=0.0, cflag=True, max_tfrac_gfprecon=1.0):
	""" gf preconditioner and weights from the observed Green's functions;
	with cflag, samples before the first arrival are not inverted
	"""
	gfobs = np.asarray(gfobs, dtype='float64')
	nr = gfobs.shape[1]
	ntgfprecon = max_tfrac_gfprecon * ntgf

	wavprecon = np.ones(nt)
	gfprecon = np.ones((ntgf, nr))
	gfweights = np.ones((ntgf, nr))

	for ir in range(nr):
		gf = gfobs[:, ir]
		n = np.linalg.norm(gf)
		if n == 0:
			continue
		indz = int(np.argmax(np.abs(gf / n) > 1e-6))
		for i in range(ntgf):
			if i < indz:
				if cflag:
					gfprecon[i, ir] = 0.0
					gfweights[i, ir] = 0.0
			elif i < indz + ntgfprecon:
				gfweights[i, ir] = np.exp(alpha_exp * (i - indz) / ntgf)
				gfprecon[i, ir] = np.exp(alpha_exp * (i - indz) / ntgf)
			else:
				gfprecon[i, ir] = 0.0
				gfweights[i, ir] = 0.0

	return gfprecon, gfweights, wavprecon
