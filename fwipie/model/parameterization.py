""" conversion between a medium and the optimization vector

A parameterization is a tuple of selectors, e.g. ('chi_vp', 'chi_rho')
or ('chi_KI', 'null'). The first slot selects the modulus-like field
(vp, K or KI), the second the density-like field (rho or rhoI) and an
optional third slot must be 'null'. The vector is the concatenation of
the selected contrast fields, each flattened row-major over (nz, nx).

A 'null' slot is not inverted: its partner field in the family of the
other slot is held fixed, i.e. vp next to chi_rho, KI next to chi_rhoI,
rho next to chi_vp or chi_K and rhoI next to chi_KI.

The simulation engine works with the bulk modulus K and the buoyancy
b = 1/rho; pert and chainrule map perturbations and gradients between
the vector and (K, b).
"""
import numpy as np

from fwipie.model.medium import chi
from fwipie.tools.errors import ConfigurationError

SLOT1 = ('chi_vp', 'chi_K', 'chi_KI', 'null')
SLOT2 = ('chi_rho', 'chi_rhoI', 'null')

# field held fixed when the other slot is null
PARTNER = {
	'chi_rho': 'vp',
	'chi_rhoI': 'KI',
	'chi_vp': 'rho',
	'chi_K': 'rho',
	'chi_KI': 'rhoI'
}

def check(parameterization):
	""" validate and return the parameterization as a 2-tuple
	"""
	parameterization = tuple(parameterization)
	if len(parameterization) not in (2, 3):
		raise ConfigurationError('parameterization needs 2 or 3 selectors, got %s' % (parameterization,))

	if len(parameterization) == 3 and parameterization[2] != 'null':
		raise ConfigurationError('third selector must be null for acoustic media')

	p1, p2 = parameterization[:2]
	if p1 not in SLOT1:
		raise ConfigurationError('invalid first selector %s' % p1)

	if p2 not in SLOT2:
		raise ConfigurationError('invalid second selector %s' % p2)

	if p1 == 'null' and p2 == 'null':
		raise ConfigurationError('parameterization cannot be all null')

	return p1, p2

def count(parameterization):
	return sum(p != 'null' for p in check(parameterization))

def ninv(mod, parameterization):
	return count(parameterization) * mod.size

def _names(parameterization):
	p1, p2 = check(parameterization)
	a = p1[4:] if p1 != 'null' else PARTNER[p2]
	b = p2[4:] if p2 != 'null' else PARTNER[p1]
	return a, b

def _check_size(v, mod, parameterization, nfield=None):
	nfield = count(parameterization) if nfield is None else nfield
	if v.size != nfield * mod.size:
		raise ConfigurationError('vector of length %d does not fit %d field(s) on a %dx%d grid' %
			(v.size, nfield, mod.nz, mod.nx))

def get(x, mod, parameterization):
	""" put the selected contrasts of mod into x
	"""
	_check_size(x, mod, parameterization)
	n = mod.size
	i = 0
	for p in check(parameterization):
		if p == 'null':
			continue
		x[i * n:(i + 1) * n] = mod.contrast(p[4:]).ravel()
		i += 1

	return x

def reparameterize(mod, x, parameterization):
	""" update vp and rho of mod using the contrasts in x
	"""
	_check_size(x, mod, parameterization)
	p1, p2 = check(parameterization)
	a_name, b_name = _names(parameterization)
	n = mod.size

	i = 0
	if p1 != 'null':
		a = chi(x[:n].reshape(mod.shape), mod.ref_of(a_name), -1)
		i = 1
	else:
		a = mod.get(a_name).copy()

	if p2 != 'null':
		b = chi(x[i * n:(i + 1) * n].reshape(mod.shape), mod.ref_of(b_name), -1)
	else:
		b = mod.get(b_name).copy()

	rho = b if b_name == 'rho' else 1.0 / b

	if a_name == 'vp':
		vp = a
	elif a_name == 'K':
		vp = np.sqrt(a / rho)
	else:
		vp = np.sqrt(1.0 / (a * rho))

	mod.vp[:] = vp
	mod.rho[:] = rho

	return mod

def jacobian(mod, parameterization):
	""" per-cell derivatives (dK, db) of the engine parameters
	with respect to each selected contrast
	"""
	p1, p2 = check(parameterization)
	a_name, b_name = _names(parameterization)
	vp = mod.vp
	rho = mod.rho
	zero = np.zeros(mod.shape)
	cols = []

	if p1 != 'null':
		if p1 == 'chi_vp':
			dK = 2.0 * rho * vp * mod.ref_of('vp')
		elif p1 == 'chi_K':
			dK = np.full(mod.shape, mod.ref_of('K'))
		else:
			K = rho * vp * vp
			dK = -K * K * mod.ref_of('KI')
		cols.append((dK, zero))

	if p2 != 'null':
		if p2 == 'chi_rho':
			drho = np.full(mod.shape, mod.ref_of('rho'))
			db = -drho / (rho * rho)
		else:
			db = np.full(mod.shape, mod.ref_of('rhoI'))
			drho = -rho * rho * mod.ref_of('rhoI')

		if a_name == 'vp':
			dK = vp * vp * drho
		else:
			dK = zero
		cols.append((dK, db))

	return cols

def pert(dm, dx, mod, parameterization):
	""" linearized reparameterization, dm = [dK, db] from dx
	"""
	_check_size(dx, mod, parameterization)
	_check_size(dm, mod, parameterization, 2)
	n = mod.size
	dK = dm[:n]
	db = dm[n:]
	dK[:] = 0.0
	db[:] = 0.0
	for i, (jK, jb) in enumerate(jacobian(mod, parameterization)):
		dxi = dx[i * n:(i + 1) * n]
		dK += jK.ravel() * dxi
		db += jb.ravel() * dxi

	return dm

def chainrule(gx, gm, mod, parameterization):
	""" adjoint of pert, gradient w.r.t. x from gm = [gK, gb]
	"""
	_check_size(gx, mod, parameterization)
	_check_size(gm, mod, parameterization, 2)
	n = mod.size
	gK = gm[:n]
	gb = gm[n:]
	for i, (jK, jb) in enumerate(jacobian(mod, parameterization)):
		gx[i * n:(i + 1) * n] = jK.ravel() * gK + jb.ravel() * gb

	return gx

def bounds(lower_x, upper_x, mod, parameterization):
	""" bound vectors from media with every field at its lower
	and upper bound; sorted because contrasts may flip sign
	"""
	bound1 = np.zeros_like(lower_x)
	bound2 = np.zeros_like(upper_x)

	modbound = mod.copy()
	for name in modbound.names:
		getattr(modbound, name).fill(modbound.bounds[name][0])
	get(bound1, modbound, parameterization)

	for name in modbound.names:
		getattr(modbound, name).fill(modbound.bounds[name][1])
	get(bound2, modbound, parameterization)

	lower_x[:] = np.minimum(bound1, bound2)
	upper_x[:] = np.maximum(bound1, bound2)

	return modbound
