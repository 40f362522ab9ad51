from copy import deepcopy
import numpy as np

from fwipie.solver.source.ricker import ricker

class src:
	""" source wavelets, one (nt, ns) array per supersource
	"""
	def __init__(self, wav):
		self.wav = [np.asarray(w, dtype='float64') for w in wav]
		assert all(w.ndim == 2 for w in self.wav)

	@property
	def nt(self):
		return self.wav[0].shape[0]

	@property
	def nss(self):
		return len(self.wav)

	@classmethod
	def zeros(cls, geom, nt):
		return cls([np.zeros((nt, ns)) for ns in geom.ns])

	@classmethod
	def wavelet(cls, geom, w):
		""" same wavelet for every source
		"""
		w = np.asarray(w, dtype='float64')
		return cls([np.repeat(w[:, None], ns, axis=1) for ns in geom.ns])

	@classmethod
	def ricker(cls, geom, tgrid, f0, t0=None, amp=1.0):
		t0 = 1.5 / f0 if t0 is None else t0
		return cls.wavelet(geom, ricker(tgrid, f0, t0, amp))

	def copy(self):
		return deepcopy(self)

	def isequal(self, other):
		return self.nss == other.nss and all(np.array_equal(a, b) for a, b in zip(self.wav, other.wav))
