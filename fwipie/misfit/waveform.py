from numba import njit
import math
import numpy as np

@njit
def diff(syn, obs, res, taper, w):
	nt, nr = syn.shape
	misfit = 0.0
	for it in range(nt):
		for ir in range(nr):
			r = (syn[it, ir] - obs[it, ir]) * taper[it]
			misfit += w[it, ir] * r * r
			res[it, ir] = 2 * w[it, ir] * r * taper[it]

	return misfit

@njit
def energy_of(obs, taper, w):
	nt, nr = obs.shape
	e = 0.0
	for it in range(nt):
		for ir in range(nr):
			o = obs[it, ir] * taper[it]
			e += w[it, ir] * o * o

	return e

def cosine_taper(nt, frac):
	""" cosine taper over frac of the trace at both ends
	"""
	taper = np.ones(nt)
	nw = int(frac * (nt - 1))
	for it in range(nw):
		taper[it] = 0.5 - 0.5 * math.cos(math.pi * it / nw)
		taper[nt - it - 1] = taper[it]

	return taper

def waveform(syn, obs, res=None, w=None, taper_frac=0.0, norm_flag=False):
	""" least-squares waveform misfit sum w (taper (syn - obs))^2;
	res receives its derivative with respect to syn

	with norm_flag the misfit is divided by sum w (taper obs)^2, so
	that it is 1 for zero synthetics whatever the amplitude of the data
	"""
	assert syn.issimilar(obs), 'calculated and observed data differ in shape'
	taper = cosine_taper(syn.nt, taper_frac)

	misfit = 0.0
	energy = 0.0
	for f, iss, dd in syn:
		out = res.d[f][iss] if res is not None else np.empty_like(dd)
		ww = w.d[f][iss] if w is not None else np.ones_like(dd)
		misfit += diff(dd, obs.d[f][iss], out, taper, ww)
		if norm_flag:
			energy += energy_of(obs.d[f][iss], taper, ww)

	if not norm_flag or energy == 0.0:
		return misfit

	if res is not None:
		for _, _, dd in res:
			dd /= energy

	return misfit / energy
