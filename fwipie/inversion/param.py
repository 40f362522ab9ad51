from importlib import import_module
from time import time
import numpy as np

from fwipie.acquisition.data import data
from fwipie.acquisition.src import src as source
from fwipie.inversion.coupling import coupling
from fwipie.inversion.interp import interp, inset
from fwipie.inversion.precon import precon
from fwipie.inversion.variable import variable
from fwipie.inversion.engine import F
from fwipie.model.parameterization import check, count, ninv, get
from fwipie.solver.fdtd import fdtd
from fwipie.tools.errors import ConfigurationError, MissingDataError

modes = ['fdtd', 'fdtd_born', 'fdtd_hborn']

def import_modeling(name):
	if name not in modes:
		raise ConfigurationError('invalid modelling mode %s, use one of %s' % (name, ', '.join(modes)))
	module = import_module('fwipie.modeling.' + name)
	return getattr(module, name)()

class param:
	""" inversion session, owns every model, data and work buffer

	src, geom, tgrid: forward sources, acquisition and modelling time grid
	attrib_mod: 'fdtd', 'fdtd_born' or 'fdtd_hborn'
	modm: initial model on the modelling grid
	igrid: (z, x) of the inversion grid, defaults to the modelling grid
	mprecon_factor: >= 1, strength of the illumination preconditioner
	dobs, dprecon: observed data and data weights
	tlagssf_frac: maximum lag of the source filter as a fraction of the record
	src_obs, modm_obs: sources and model generating synthetic observed data
	modm0: background model of Born modelling
	attrib: 'synthetic' or 'field'
	"""
	def __init__(self, src, geom, tgrid, attrib_mod, modm,
		igrid=None, igrid_interp_scheme='B2', mprecon_factor=1.0,
		dobs=None, dprecon=None, tlagssf_frac=0.0, taper_frac=0.0,
		src_obs=None, modm_obs=None, modm0=None,
		parameterization=('chi_vp', 'chi_rho', 'null'), recv_fields=('P',),
		abs_width=0, abs_alpha=0.0, verbose=False, attrib='synthetic'):

		start = time()
		self.verbose = verbose
		self.attrib = attrib
		if attrib not in ('synthetic', 'field'):
			raise ConfigurationError('invalid attrib %s' % attrib)

		self.parameterization = check(parameterization)
		self.modeling = import_modeling(attrib_mod)
		self.attrib_mod = attrib_mod

		self.tgrid = np.asarray(tgrid, dtype='float64')
		self.recv_fields = tuple(recv_fields)
		self.geom = geom
		self.adjgeom = geom.adjoint()
		self.src = src.copy()
		self.src_obs = self.src if src_obs is None else src_obs.copy()
		if self.src.nt != self.tgrid.size or self.src_obs.nt != self.tgrid.size:
			raise ConfigurationError('source wavelets are not on the modelling time grid')
		self.adjsrc = source.zeros(self.adjgeom, self.tgrid.size)

		# models
		self.modm = modm.copy()
		self.modm_obs = self.modm.copy() if modm_obs is None else modm_obs.copy()
		self.modm0 = self.modm.copy().fill() if modm0 is None else modm0.copy()
		for mod in [self.modm_obs, self.modm0]:
			if not mod.issimilar(self.modm):
				raise ConfigurationError('models must share the modelling grid')

		if attrib == 'synthetic':
			if attrib_mod != 'fdtd' and self.modm0.isequal(self.modm_obs):
				raise ConfigurationError('change background model used for Born modelling')
			if dobs is None and self.modm.isequal(self.modm_obs):
				raise ConfigurationError('initial model same as actual model')

		# inversion grid, truncated as gradients are inaccurate on the boundaries
		zi, xi = (self.modm.z, self.modm.x) if igrid is None else igrid
		zi, xi = inset(zi, xi, self.modm.z, self.modm.x)
		self.modi = self.modm.similar(zi, xi)
		self.interp = interp((zi, xi), (self.modm.z, self.modm.x), igrid_interp_scheme)
		self.interp.sample_medium(self.modm, self.modi)
		self.mod_initial = self.modi.copy()

		# optimization variables on both grids
		self.mx = variable(ninv(self.modi, self.parameterization))
		self.mxm = variable(ninv(self.modm, self.parameterization))
		self.mxm.x0 = get(np.zeros(self.mxm.n), self.modm0, self.parameterization)
		self.mxm.dm = np.zeros(2 * self.modm.size)
		self.gmodm = np.zeros(2 * self.modm.size)
		self.mprecon = precon(self.mx.n)

		# data
		self.dcal = data.zeros(self.tgrid, geom, recv_fields)
		self.dcalw = self.dcal.copy()
		self.dres = self.dcal.copy()
		self.dJx = self.dcal.copy()

		if dobs is not None and not dobs.issimilar(self.dcal):
			raise ConfigurationError('observed data do not match the acquisition and the modelling time grid')
		if dprecon is not None and not dprecon.issimilar(self.dcal):
			raise ConfigurationError('invalid dprecon used')

		self.dobs = self.dcal.copy() if dobs is None else dobs.copy()
		self.dprecon = None if dprecon is None else dprecon.copy()
		self.taper_frac = taper_frac
		self.coupling = coupling(self.tgrid.size, tlagssf_frac)

		self.engine = fdtd(self.modm, [geom, self.adjgeom], self.tgrid, recv_fields,
			abs_width=abs_width, abs_alpha=abs_alpha, verbose=verbose)

		if attrib == 'synthetic' and dobs is None:
			self.generate_observed()

		if self.dobs.iszero():
			if attrib == 'field':
				raise MissingDataError('input observed data for field data inversion')
			raise MissingDataError('problem generating synthetic observed data')

		# modelled data in the initial model
		F(self, None, illum=mprecon_factor > 1.0)
		self.mprecon.build(self.engine.illum, self.interp, count(self.parameterization), mprecon_factor)

		update_prior(self)

		if verbose:
			print(self)
			print('  setup time: %.2fs' % (time() - start))

	def generate_observed(self):
		modm = self.modm.copy()
		self.modm.update('vp', self.modm_obs.vp)
		self.modm.update('rho', self.modm_obs.rho)

		F(self, None, src=self.src_obs)
		self.coupling.apply(self.dcal, self.dobs)

		self.modm.update('vp', modm.vp)
		self.modm.update('rho', modm.rho)
		self.engine.reset()

	@property
	def ninv(self):
		return self.mx.n

	def __repr__(self):
		return 'param(%s, %s, parameterization=%s, ninv=%d, nss=%d, nt=%d, modm=%dx%d, modi=%dx%d)' % (
			self.attrib, self.attrib_mod, '/'.join(self.parameterization), self.ninv,
			self.geom.nss, self.tgrid.size, self.modm.nz, self.modm.nx, self.modi.nz, self.modi.nx)

def update_prior(pa, prior=None, w=None):
	""" prior model on the inversion grid and its weights, defaults to
	mod_initial with unit weights
	"""
	prior = pa.mod_initial if prior is None else prior
	if not prior.issimilar(pa.modi):
		raise ConfigurationError('prior model must be on the inversion grid')

	get(pa.mx.prior_raw, prior, pa.parameterization)
	pa.mprecon.apply(pa.mx.prior_raw, pa.mx.prior)

	if w is None:
		pa.mx.w.fill(1.0)
	else:
		pa.mx.w[:] = np.broadcast_to(w, pa.mx.w.shape)

	return pa.mx
