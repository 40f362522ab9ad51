import numpy as np
import math

from time import time
from numba import njit

from fwipie.solver.base import base
from fwipie.acquisition.data import data
from fwipie.tools.errors import ConfigurationError, SequencingError

# staggered grid: p at cell nodes, vx and vz half a cell ahead along x and z
# dxp, dzp are forward differences (zero on the last column / row)
# and div is -(dxp^T vx + dzp^T vz), so the scheme has an exact discrete adjoint

@njit
def set_bound(bound, width, alpha, left, right, bottom, top):
	nz, nx = bound.shape
	for j in range(nz):
		for i in range(nx):
			bound[j, i] = 1

			if left and i + 1 < width:
				aw = alpha * (width - i - 1)
				bound[j, i] *= math.exp(-aw * aw)

			if right and i > nx - width:
				aw = alpha * (width + i - nx)
				bound[j, i] *= math.exp(-aw * aw)

			if bottom and j > nz - width:
				aw = alpha * (width + j - nz)
				bound[j, i] *= math.exp(-aw * aw)

			if top and j + 1 < width:
				aw = alpha * (width - j - 1)
				bound[j, i] *= math.exp(-aw * aw)

@njit
def grad_p(px, pz, p, dx, dz):
	nz, nx = p.shape
	for j in range(nz):
		for i in range(nx):
			if i < nx - 1:
				px[j, i] = (p[j, i + 1] - p[j, i]) / dx
			else:
				px[j, i] = 0

			if j < nz - 1:
				pz[j, i] = (p[j + 1, i] - p[j, i]) / dz
			else:
				pz[j, i] = 0

@njit
def div_v(dv, vx, vz, dx, dz):
	nz, nx = dv.shape
	for j in range(nz):
		for i in range(nx):
			d = 0.0
			if i < nx - 1:
				d += vx[j, i] / dx
			if i > 0:
				d -= vx[j, i - 1] / dx
			if j < nz - 1:
				d += vz[j, i] / dz
			if j > 0:
				d -= vz[j - 1, i] / dz
			dv[j, i] = d

@njit
def add_v(vx, vz, px, pz, b, bound, dt):
	nz, nx = vx.shape
	for j in range(nz):
		for i in range(nx):
			vx[j, i] = bound[j, i] * (vx[j, i] + dt * b[j, i] * px[j, i])
			vz[j, i] = bound[j, i] * (vz[j, i] + dt * b[j, i] * pz[j, i])

@njit
def add_p(p, dv, K, bound, dt):
	nz, nx = p.shape
	for j in range(nz):
		for i in range(nx):
			p[j, i] = bound[j, i] * (p[j, i] + dt * K[j, i] * dv[j, i])

@njit
def add_v_born(dvx, dvz, dpx, dpz, px, pz, b, db, bound, dt):
	nz, nx = dvx.shape
	for j in range(nz):
		for i in range(nx):
			dvx[j, i] = bound[j, i] * (dvx[j, i] + dt * (b[j, i] * dpx[j, i] + db[j, i] * px[j, i]))
			dvz[j, i] = bound[j, i] * (dvz[j, i] + dt * (b[j, i] * dpz[j, i] + db[j, i] * pz[j, i]))

@njit
def add_p_born(dp, ddv, dv, K, dK, bound, dt):
	nz, nx = dp.shape
	for j in range(nz):
		for i in range(nx):
			dp[j, i] = bound[j, i] * (dp[j, i] + dt * (K[j, i] * ddv[j, i] + dK[j, i] * dv[j, i]))

@njit
def inject(p, stf, src_iz, src_ix, scale):
	for k in range(stf.size):
		p[src_iz[k], src_ix[k]] += scale * stf[k]

@njit
def save_obs(obs, p, rec_iz, rec_ix):
	for k in range(obs.size):
		obs[k] = p[rec_iz[k], rec_ix[k]]

@njit
def add_illum(illum, p):
	nz, nx = p.shape
	for j in range(nz):
		for i in range(nx):
			illum[j, i] += p[j, i] * p[j, i]

@njit
def adjoint_step(lp, lvx, lvz, p0, vx0, vz0, K, b, bound, gK, gb, dt, dx, dz, wx, wz, wp):
	""" one reversed time step of the linearized scheme
	lp, lvx, lvz are the adjoint pressure and velocities after adjoint sources
	are added; p0 is the background pressure before the step and vx0, vz0 the
	background velocities after the velocity update of the same step
	"""
	nz, nx = lp.shape

	# pressure update
	for j in range(nz):
		for i in range(nx):
			lp[j, i] *= bound[j, i]
			wp[j, i] = K[j, i] * lp[j, i]

	grad_p(wx, wz, wp, dx, dz)
	div_v(wp, vx0, vz0, dx, dz)
	for j in range(nz):
		for i in range(nx):
			lvx[j, i] -= dt * wx[j, i]
			lvz[j, i] -= dt * wz[j, i]
			gK[j, i] += dt * lp[j, i] * wp[j, i]

	# velocity update
	for j in range(nz):
		for i in range(nx):
			lvx[j, i] *= bound[j, i]
			lvz[j, i] *= bound[j, i]
			wx[j, i] = b[j, i] * lvx[j, i]
			wz[j, i] = b[j, i] * lvz[j, i]

	div_v(wp, wx, wz, dx, dz)
	grad_p(wx, wz, p0, dx, dz)
	for j in range(nz):
		for i in range(nx):
			lp[j, i] -= dt * wp[j, i]
			gb[j, i] += dt * (lvx[j, i] * wx[j, i] + lvz[j, i] * wz[j, i])

class fdtd(base):
	""" 2-D acoustic finite-difference engine in (K, b = 1/rho)

	Two wavefields: the first one is sourced by the forward sources, the
	second one is either the Born scattered field (forward, born_flag) or
	the adjoint field sourced at the receivers (backprop_flag = -1).
	The background pressure and velocities of every time step are stored
	when backprop_flag = 1 and consumed by replay or adjoint simulations.
	"""
	def __init__(self, mod, geoms, tgrid, fields=('P',), abs_width=0, abs_alpha=0.0,
		abs_sides=('left', 'right', 'bottom', 'top'), verbose=False):
		self.tgrid = np.asarray(tgrid, dtype='float64')
		self.nt = self.tgrid.size
		self.dt = self.tgrid[1] - self.tgrid[0]
		self.z = mod.z.copy()
		self.x = mod.x.copy()
		self.nz, self.nx = mod.shape
		self.dz = mod.dz
		self.dx = mod.dx
		self.verbose = verbose

		assert len(geoms) == 2 and geoms[0].nss == geoms[1].nss
		self.geoms = geoms
		self.nss = geoms[0].nss

		# stability of the second-order staggered scheme
		vmax = mod.bounds['vp'][1]
		courant = vmax * self.dt * math.sqrt(1 / self.dx ** 2 + 1 / self.dz ** 2)
		if courant > 1:
			raise ConfigurationError('unstable time step, courant number %.3f > 1' % courant)

		self.src_ids = [g.ids(self.z, self.x, 's') for g in geoms]
		self.rec_ids = [g.ids(self.z, self.x, 'r') for g in geoms]

		shape = self.nz, self.nx
		self.bound = np.zeros(shape)
		set_bound(self.bound, int(abs_width), float(abs_alpha),
			'left' in abs_sides, 'right' in abs_sides, 'bottom' in abs_sides, 'top' in abs_sides)

		self.K = np.zeros(shape)
		self.b = np.zeros(shape)
		self.dK = np.zeros(shape)
		self.db = np.zeros(shape)

		for dat in ['p', 'vx', 'vz', 'dp', 'dvx', 'dvz', 'px', 'pz', 'dv', 'dpx', 'dpz', 'ddv']:
			setattr(self, dat, np.zeros(shape))

		# background wavefield buffer
		self.p_fwd = np.zeros((self.nss, self.nt) + shape)
		self.vx_fwd = np.zeros((self.nss, self.nt) + shape)
		self.vz_fwd = np.zeros((self.nss, self.nt) + shape)
		self.buffer = 'needs_rebuild'

		self.gK = np.zeros(shape)
		self.gb = np.zeros(shape)
		self.illum = np.zeros(shape)

		self.data = [data(self.tgrid, g.nr, fields) for g in geoms]
		self.srcs = [None, None]

		self.configure(activepw=[1], sflags=[2, 0], rflags=[1, 0], backprop_flag=0,
			born_flag=False, gmodel_flag=False, illum_flag=False)
		self.update_model(mod)

	def copy_gmodel(self, out):
		""" gradient [gK; gb] written into out
		"""
		n = self.gK.size
		out[:n] = self.gK.ravel()
		out[n:] = self.gb.ravel()
		return out

	def reset(self):
		""" clear everything, background buffer included
		"""
		self.clear_wavefields()
		self.gK.fill(0)
		self.gb.fill(0)
		self.illum.fill(0)
		for d in self.data:
			d.fill(0.0)
		self.buffer = 'needs_rebuild'

	def update_model(self, mod, pert=None):
		""" background model from a medium, optional perturbation [dK; db]
		"""
		assert mod.shape == (self.nz, self.nx), 'model does not match the engine grid'
		K = mod.get('K')
		b = 1.0 / mod.rho

		if not (np.array_equal(K, self.K) and np.array_equal(b, self.b)):
			self.K[:] = K
			self.b[:] = b
			if self.buffer == 'valid':
				self.buffer = 'stale'

		if pert is None:
			self.dK.fill(0)
			self.db.fill(0)
		else:
			n = self.nz * self.nx
			assert pert.size == 2 * n
			self.dK[:] = pert[:n].reshape(self.nz, self.nx)
			self.db[:] = pert[n:].reshape(self.nz, self.nx)

	def update_sources(self, srcs):
		assert len(srcs) == 2
		for ipw, s in enumerate(srcs):
			if s is None:
				continue
			assert s.nt == self.nt, 'source wavelets are not on the modelling time grid'
			assert s.nss == self.nss
			for iss in range(self.nss):
				assert s.wav[iss].shape[1] == self.geoms[ipw].ns[iss]

			if ipw == 0:
				# stored background depends on the forward sources
				if self.srcs[0] is not None and not s.isequal(self.srcs[0]) and self.buffer == 'valid':
					self.buffer = 'stale'
				self.srcs[0] = s.copy()
			else:
				self.srcs[1] = s

	def clear_wavefields(self):
		for dat in ['p', 'vx', 'vz', 'dp', 'dvx', 'dvz']:
			getattr(self, dat).fill(0)

	def check_buffer(self):
		if self.buffer != 'valid':
			raise SequencingError('background wavefield buffer is %s, run a forward simulation with backprop_flag=1 first' %
				self.buffer.replace('_', ' '))

	def simulate(self):
		start = time()
		adjoint = self.backprop_flag == -1

		if adjoint or self.sflags[0] == 3:
			self.check_buffer()

		if self.backprop_flag == 1 and self.sflags[0] != 2:
			raise ConfigurationError('background buffer can only be stored from a sourced wavefield')

		if self.gmodel_flag:
			self.gK.fill(0)
			self.gb.fill(0)

		if self.illum_flag:
			self.illum.fill(0)

		for ipw in range(2):
			if self.rflags[ipw]:
				self.data[ipw].fill(0.0)

		for iss in range(self.nss):
			self.clear_wavefields()
			if adjoint:
				self.run_adjoint(iss)
			else:
				self.run_forward(iss)

		if self.backprop_flag == 1:
			self.buffer = 'valid'

		if self.verbose:
			print('  %s simulation: %.2fs' % ('adjoint' if adjoint else 'forward', time() - start))

	def run_forward(self, iss):
		dt = self.dt
		dx = self.dx
		dz = self.dz
		bound = self.bound
		store = self.backprop_flag == 1
		replay = self.sflags[0] == 3
		born = self.born_flag and 2 in self.activepw
		record = [self.rflags[0] and not replay, self.rflags[1] and born]

		src_iz, src_ix = self.src_ids[0][iss]
		rec = [self.rec_ids[ipw][iss] for ipw in range(2)]
		obs = [self.data[ipw].d['P'][iss] for ipw in range(2)]
		stf = self.srcs[0].wav[iss] if self.sflags[0] == 2 else None

		p, vx, vz = self.p, self.vx, self.vz
		px, pz, dv = self.px, self.pz, self.dv

		for it in range(self.nt):
			if replay:
				p0 = self.p_fwd[iss, it]
				grad_p(px, pz, p0, dx, dz)
				div_v(dv, self.vx_fwd[iss, it], self.vz_fwd[iss, it], dx, dz)

			else:
				if store:
					self.p_fwd[iss, it] = p

				grad_p(px, pz, p, dx, dz)
				add_v(vx, vz, px, pz, self.b, bound, dt)

				if store:
					self.vx_fwd[iss, it] = vx
					self.vz_fwd[iss, it] = vz

				div_v(dv, vx, vz, dx, dz)
				if stf is not None:
					inject(p, stf[it], src_iz, src_ix, dt)
				add_p(p, dv, self.K, bound, dt)

			if born:
				grad_p(self.dpx, self.dpz, self.dp, dx, dz)
				add_v_born(self.dvx, self.dvz, self.dpx, self.dpz, px, pz, self.b, self.db, bound, dt)
				div_v(self.ddv, self.dvx, self.dvz, dx, dz)
				add_p_born(self.dp, self.ddv, dv, self.K, self.dK, bound, dt)

			if record[0]:
				save_obs(obs[0][it], p, rec[0][0], rec[0][1])

			if record[1]:
				save_obs(obs[1][it], self.dp, rec[1][0], rec[1][1])

			if self.illum_flag and not replay:
				add_illum(self.illum, p)

	def run_adjoint(self, iss):
		""" back-propagation of the time-reversed adjoint sources of wavefield 2
		"""
		nt = self.nt
		src_iz, src_ix = self.src_ids[1][iss]
		stf = self.srcs[1].wav[iss]

		lp, lvx, lvz = self.dp, self.dvx, self.dvz
		gK = self.gK if self.gmodel_flag else np.zeros_like(self.gK)
		gb = self.gb if self.gmodel_flag else np.zeros_like(self.gb)

		for it in range(nt):
			n = nt - 1 - it
			inject(lp, stf[it], src_iz, src_ix, 1.0)
			adjoint_step(lp, lvx, lvz, self.p_fwd[iss, n], self.vx_fwd[iss, n], self.vz_fwd[iss, n],
				self.K, self.b, self.bound, gK, gb, self.dt, self.dx, self.dz,
				self.px, self.pz, self.dv)
