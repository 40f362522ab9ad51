"""Forward and adjoint simulations of the finite-difference engine."""

import numpy as np
import pytest

from fwipie.acquisition.src import src
from fwipie.inversion.engine import F, Fadj, Fborn_x, Fadj_x, misfit, isequal, update_adjsrc
from fwipie.inversion.fwi import initialize
from fwipie.solver.fdtd import fdtd
from fwipie.tools.errors import ConfigurationError, SequencingError


def adjoint_flags(engine):
	engine.configure(activepw=[1, 2], sflags=[3, 2], rflags=[0, 0], backprop_flag=-1,
		born_flag=False, gmodel_flag=True, illum_flag=False)


def forward_flags(engine, store=1):
	engine.configure(activepw=[1], sflags=[2, 0], rflags=[1, 0], backprop_flag=store,
		born_flag=False, gmodel_flag=False, illum_flag=False)


@pytest.fixture
def engine(small_medium, acquisition):
	geom, wav, tgrid = acquisition
	solver = fdtd(small_medium, [geom, geom.adjoint()], tgrid)
	solver.update_sources([wav, src.zeros(geom.adjoint(), tgrid.size)])
	return solver


def test_unstable_time_step(small_medium, acquisition):
	geom, _, _ = acquisition
	with pytest.raises(ConfigurationError):
		fdtd(small_medium, [geom, geom.adjoint()], 0.01 * np.arange(10))


def test_unknown_flag(engine):
	with pytest.raises(KeyError):
		engine.configure(save_wavefield=True)


def test_forward_records_data(engine):
	forward_flags(engine, store=0)
	engine.simulate()

	assert not engine.data[0].iszero()
	assert engine.buffer == 'needs_rebuild'


def test_adjoint_without_forward(engine):
	adjoint_flags(engine)
	with pytest.raises(SequencingError):
		engine.simulate()


def test_adjoint_after_model_change(engine, true_medium):
	forward_flags(engine)
	engine.simulate()
	assert engine.buffer == 'valid'

	engine.update_model(true_medium)
	assert engine.buffer == 'stale'

	adjoint_flags(engine)
	with pytest.raises(SequencingError):
		engine.simulate()


def test_adjoint_after_source_change(engine, acquisition):
	geom, wav, tgrid = acquisition
	forward_flags(engine)
	engine.simulate()

	engine.update_sources([src.ricker(geom, tgrid, 15.0), None])
	assert engine.buffer == 'stale'


def test_same_model_keeps_buffer(engine, small_medium):
	forward_flags(engine)
	engine.simulate()
	engine.update_model(small_medium.copy())
	assert engine.buffer == 'valid'

	engine.reset()
	assert engine.buffer == 'needs_rebuild'


def test_illumination(engine):
	engine.configure(activepw=[1], sflags=[2, 0], rflags=[1, 0], backprop_flag=0,
		born_flag=False, gmodel_flag=False, illum_flag=True)
	engine.simulate()
	assert np.all(engine.illum >= 0.0)
	assert engine.illum.max() > 0.0


def test_absorbing_boundary_profile(small_medium, acquisition):
	geom, _, tgrid = acquisition
	solver = fdtd(small_medium, [geom, geom.adjoint()], tgrid, abs_width=5, abs_alpha=0.1)
	assert solver.bound[10, 10] == 1.0
	assert solver.bound[10, 0] < solver.bound[10, 2] < 1.0
	assert solver.bound[0, 0] < solver.bound[0, 10]


@pytest.mark.parametrize('attrib_mod', ['fdtd', 'fdtd_born', 'fdtd_hborn'])
def test_linearized_modelling_adjoint(make_session, rng, attrib_mod):
	pa = make_session(attrib_mod, tlagssf_frac=0.05)
	pa.coupling.w[:] = rng.standard_normal(pa.coupling.ninv)
	n = pa.mx.n

	dx = rng.standard_normal(n)
	d1 = Fborn_x(pa, dx, pa.dcal.copy())
	assert not d1.iszero()

	d2 = pa.dcal.copy().randn(rng)
	gx = Fadj_x(pa, d2, np.zeros(n))

	lhs = d1.dot(d2)
	rhs = np.dot(dx, gx)
	assert np.isclose(lhs, rhs, rtol=1e-8, atol=0.0)


def test_hborn_replay_matches_born(make_session):
	pa1 = make_session('fdtd_born')
	pa2 = make_session('fdtd_hborn')
	np.testing.assert_allclose(pa1.dobs.vec(), pa2.dobs.vec(), rtol=1e-10, atol=0.0)

	x = initialize(pa1) + 0.01 * np.random.randn(pa1.mx.n)
	initialize(pa2)
	F(pa1, x)
	F(pa2, x)
	d1 = pa1.dcal.vec()
	d2 = pa2.dcal.vec()
	assert np.abs(d1).max() > 0.0
	np.testing.assert_allclose(d1, d2, rtol=1e-10, atol=1e-12 * np.abs(d1).max())


def test_born_data_are_linear(make_session):
	pa = make_session('fdtd_born')
	x0 = initialize(pa).copy()
	dx = 0.01 * np.random.randn(pa.mx.n)

	d1 = F(pa, x0 + dx).vec()
	d2 = F(pa, x0 + 2 * dx).vec()
	d0 = F(pa, x0).vec()
	np.testing.assert_allclose(d2 - d0, 2 * (d1 - d0), atol=1e-9 * np.abs(d2 - d0).max())


def test_forward_is_cached(make_session, monkeypatch):
	pa = make_session('fdtd')
	x = initialize(pa) + 0.01 * np.random.randn(pa.mx.n)
	F(pa, x)
	dcal = pa.dcal.vec()
	vp = pa.modm.vp.copy()

	def fail():
		raise AssertionError('unexpected simulation')

	monkeypatch.setattr(pa.engine, 'simulate', fail)
	F(pa, x.copy())
	assert isequal(x, pa.mx.last_x)
	np.testing.assert_array_equal(pa.dcal.vec(), dcal)
	np.testing.assert_array_equal(pa.modm.vp, vp)

	# any bit change triggers a simulation
	x[0] = np.nextafter(x[0], np.inf)
	with pytest.raises(AssertionError):
		F(pa, x)


def test_adjoint_gradient_reuses_the_session_buffer(make_session):
	pa = make_session('fdtd')
	x = initialize(pa).copy()
	F(pa, x)
	misfit(pa, residual=True)
	update_adjsrc(pa)

	buf = pa.gmodm
	g = Fadj(pa)
	assert g is buf
	n = pa.modm.size
	np.testing.assert_array_equal(g[:n], pa.engine.gK.ravel())
	np.testing.assert_array_equal(g[n:], pa.engine.gb.ravel())
	assert np.any(g != 0.0)

	first = g.copy()
	F(pa, x)
	assert Fadj(pa) is buf
	np.testing.assert_allclose(buf, first)


def test_linearized_modelling_invalidates_cache(make_session, rng):
	pa = make_session('fdtd')
	x = initialize(pa).copy()
	F(pa, x)
	Fborn_x(pa, rng.standard_normal(pa.mx.n), pa.dcal.copy())
	assert not isequal(x, pa.mx.last_x)


def test_misfit_vanishes_at_the_true_model(make_session, true_medium):
	pa = make_session('fdtd')
	assert misfit(pa) > 0.0

	pa.modm.update('vp', true_medium.vp)
	pa.modm.update('rho', true_medium.rho)
	F(pa)
	assert misfit(pa) == 0.0
