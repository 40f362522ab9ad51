""" model, source filter and joint inversions of a session
"""
import numpy as np

from fwipie.inversion.altmin import altmin
from fwipie.inversion.engine import F, misfit, x_to_modm, modi_to_x
from fwipie.model import parameterization
from fwipie.objective.ls import ls
from fwipie.objective.ssf import ssf
from fwipie.optimize.lbfgsb import lbfgsb

def xfwi_ninv(pa):
	return pa.mx.n

def wfwi_ninv(pa):
	return pa.coupling.ninv

def initialize(pa):
	""" x from mod_initial, bounds on x, cache reset
	"""
	mx = pa.mx
	mx.reset_last()
	modi_to_x(pa, mx.x, pa.mod_initial)

	parameterization.bounds(mx.lower_x, mx.upper_x, pa.modi, pa.parameterization)
	pa.mprecon.apply(mx.lower_x, mx.lower_x)
	pa.mprecon.apply(mx.upper_x, mx.upper_x)
	return mx.x

def finalize(pa, x):
	""" push the minimizer into modm and modi, update the modelled data
	and start the next inversion from the result
	"""
	x_to_modm(pa, x)
	F(pa, None)
	pa.mx.last_x[:] = x

	for name in pa.modi.names:
		pa.mod_initial.update(name, getattr(pa.modi, name))

def invert(pa, obj, optimizer=None, bounded=False):
	""" minimize obj over the model; migration objectives return their image
	"""
	print('updating modm and modi...')
	print('> xfwi: number of inversion variables:\t', xfwi_ninv(pa))

	initialize(pa)
	obj.setup(pa)

	if not obj.iterative:
		return obj.image()

	optimizer = lbfgsb() if optimizer is None else optimizer
	mx = pa.mx
	if bounded:
		res = optimizer.minimize(obj, mx.x, mx.lower_x, mx.upper_x)
	else:
		res = optimizer.minimize(obj, mx.x)

	if pa.verbose:
		print(res)

	finalize(pa, res.x)
	return res

def estimate_coupling_filters(pa, optimizer=None):
	""" unbounded estimation of the source filter shared by all
	supersources and fields, modelled data held fixed
	"""
	print('updating w...')
	print('> wfwi: number of inversion variables:\t', wfwi_ninv(pa))

	obj = ssf()
	obj.setup(pa)

	if optimizer is None:
		optimizer = lbfgsb({'niter': 1000, 'f_tol': 1e-8, 'g_tol': 1e-8, 'verbose': pa.verbose})

	res = optimizer.minimize(obj, pa.coupling.w.copy())
	pa.coupling.w[:] = res.x

	return misfit(pa)

def joint_invert(pa, max_roundtrips=100, max_reroundtrips=10, roundtrip_tol=1e-6, min_roundtrips=10,
	optimizer=None, coupling_optimizer=None, bounded=False):
	""" alternate between source filter estimation and model inversion
	"""
	funcs = [
		lambda: estimate_coupling_filters(pa, coupling_optimizer),
		lambda: invert(pa, ls(), optimizer, bounded).fun
	]

	res = altmin(funcs, roundtrip_tol=roundtrip_tol, max_roundtrips=max_roundtrips,
		min_roundtrips=min_roundtrips, max_reroundtrips=max_reroundtrips,
		reinit_func=lambda: initialize(pa), after_reroundtrip_func=lambda: err(pa),
		name='FWI with source wavelet estimation')

	err(pa)
	return res

def err(pa):
	""" relative model errors (synthetic case) and the data misfit
	"""
	errors = {}
	if pa.attrib == 'synthetic':
		for name in pa.modm.names:
			true = getattr(pa.modm_obs, name)
			errors[name] = np.linalg.norm(getattr(pa.modm, name) - true) / np.linalg.norm(true)

	errors['data'] = misfit(pa)

	for key, value in errors.items():
		print('  %s error: %.4e' % (key, value))

	return errors

def build_mprecon(pa, mprecon_factor, illum=None):
	""" rebuild the model preconditioner, from the illumination of the
	current model unless given
	"""
	if illum is None:
		F(pa, None, illum=True)
		illum = pa.engine.illum

	pa.mprecon.build(illum, pa.interp, parameterization.count(pa.parameterization), mprecon_factor)
	# the prior lives in the preconditioned space too
	pa.mprecon.apply(pa.mx.prior_raw, pa.mx.prior)
	pa.mx.reset_last()
	return pa.mprecon

def xfwi_pert_x(pa, loc, pert=0.1, rad=None):
	""" x of the reference model with a point perturbation at loc = (z, x)
	"""
	modi = pa.modi.copy().fill()
	rad = 0.5 * min(modi.dz, modi.dx) if rad is None else rad
	modi.addon(loc, rad, pert)
	return modi_to_x(pa, np.zeros(pa.mx.n), modi)
