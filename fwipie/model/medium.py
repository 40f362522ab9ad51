from copy import deepcopy
import numpy as np

def chi(mod, mod0, flag=1):
	""" contrast of mod with respect to the reference mod0 (flag=1),
	or the absolute value of a contrast (flag=-1)
	"""
	if flag == 1:
		return (mod - mod0) / mod0
	elif flag == -1:
		return mod * mod0 + mod0
	else:
		raise ValueError('invalid flag %s' % flag)

def grid(start, stop, step):
	""" 1-D grid from start to stop (inclusive) with spacing step
	"""
	n = int(np.floor((stop - start) / step + 1e-6)) + 1
	return start + step * np.arange(n)

class medium:
	""" acoustic medium: vp and rho on a 2-D (z, x) grid

	Absolute values are stored; contrasts are derived with respect to
	reference values, which are the means of the field bounds and
	never change once the medium is created.
	"""
	names = ['vp', 'rho']

	def __init__(self, z, x, vpb, rhob, vp=None, rho=None):
		self.z = np.asarray(z, dtype='float64')
		self.x = np.asarray(x, dtype='float64')
		assert self.z.ndim == 1 and self.x.ndim == 1

		self.bounds = {
			'vp': (float(vpb[0]), float(vpb[1])),
			'rho': (float(rhob[0]), float(rhob[1]))
		}
		for name in self.names:
			lo, hi = self.bounds[name]
			assert 0 < lo <= hi, 'invalid bounds for %s' % name

		self.ref = dict((name, 0.5 * sum(self.bounds[name])) for name in self.names)

		shape = self.shape
		self.vp = np.full(shape, self.ref['vp'])
		self.rho = np.full(shape, self.ref['rho'])

		if vp is not None:
			self.update('vp', vp)
		if rho is not None:
			self.update('rho', rho)

	@property
	def nz(self):
		return self.z.size

	@property
	def nx(self):
		return self.x.size

	@property
	def shape(self):
		return self.nz, self.nx

	@property
	def size(self):
		return self.nz * self.nx

	@property
	def dz(self):
		return self.z[1] - self.z[0] if self.nz > 1 else 1.0

	@property
	def dx(self):
		return self.x[1] - self.x[0] if self.nx > 1 else 1.0

	def update(self, name, values):
		assert name in self.names
		field = getattr(self, name)
		field[:] = np.broadcast_to(np.asarray(values, dtype='float64'), self.shape)
		return self

	def fill(self):
		""" reset all fields to their reference values
		"""
		for name in self.names:
			getattr(self, name).fill(self.ref[name])
		return self

	def copy(self):
		return deepcopy(self)

	def similar(self, z=None, x=None):
		""" medium with the same bounds on another grid, filled with references
		"""
		z = self.z if z is None else z
		x = self.x if x is None else x
		return medium(z, x, self.bounds['vp'], self.bounds['rho'])

	def isequal(self, other):
		return (
			np.array_equal(self.z, other.z) and np.array_equal(self.x, other.x) and
			self.bounds == other.bounds and
			np.array_equal(self.vp, other.vp) and np.array_equal(self.rho, other.rho)
		)

	def issimilar(self, other):
		return np.array_equal(self.z, other.z) and np.array_equal(self.x, other.x)

	def ref_of(self, name):
		""" reference value of a field, derived fields included
		"""
		vp0 = self.ref['vp']
		rho0 = self.ref['rho']
		if name == 'vp':
			return vp0
		elif name == 'rho':
			return rho0
		elif name == 'rhoI':
			return 1.0 / rho0
		elif name == 'K':
			return rho0 * vp0 * vp0
		elif name == 'KI':
			return 1.0 / (rho0 * vp0 * vp0)
		else:
			raise ValueError('invalid field %s' % name)

	def get(self, name):
		""" absolute values of a field, derived fields included
		"""
		if name == 'vp':
			return self.vp
		elif name == 'rho':
			return self.rho
		elif name == 'rhoI':
			return 1.0 / self.rho
		elif name == 'K':
			return self.rho * self.vp * self.vp
		elif name == 'KI':
			return 1.0 / (self.rho * self.vp * self.vp)
		else:
			raise ValueError('invalid field %s' % name)

	def contrast(self, name):
		return chi(self.get(name), self.ref_of(name))

	def addon(self, loc, rad, pert=0.1, fields=('vp', 'rho')):
		""" add a circular relative perturbation centred at loc = (z, x)
		"""
		zz, xx = np.meshgrid(self.z, self.x, indexing='ij')
		mask = np.sqrt((zz - loc[0]) ** 2 + (xx - loc[1]) ** 2) <= rad
		for name in fields:
			field = getattr(self, name)
			field[mask] *= 1.0 + pert
		return self

	def __repr__(self):
		return 'medium(nz=%d, nx=%d, vp=%s, rho=%s)' % (
			self.nz, self.nx, self.bounds['vp'], self.bounds['rho'])
