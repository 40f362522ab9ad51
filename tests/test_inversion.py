"""Inversion sessions: construction, objectives and inversions."""

import numpy as np
import pytest

from fwipie.acquisition.data import data
from fwipie.inversion.engine import F, misfit, visualize_gx
from fwipie.inversion.fwi import (initialize, invert, estimate_coupling_filters, joint_invert,
	err, build_mprecon, xfwi_pert_x, xfwi_ninv, wfwi_ninv)
from fwipie.inversion.param import update_prior
from fwipie.model.medium import grid
from fwipie.objective.ls import ls
from fwipie.objective.ls_prior import ls_prior
from fwipie.objective.migr import migr
from fwipie.objective.migr_fd import migr_fd
from fwipie.objective.ssf import ssf
from fwipie.optimize.lbfgsb import lbfgsb
from fwipie.tools.errors import ConfigurationError, MissingDataError


def quiet(niter):
	return lbfgsb({'niter': niter, 'verbose': False})


def descent_direction(g):
	""" random direction along which the gradient cannot cancel out
	"""
	return np.random.rand(g.size) * g / np.abs(g).max()


def directional_fd(obj, x, dx, h):
	return (obj.value(x + h * dx) - obj.value(x - h * dx)) / (2 * h)


def test_session_sizes(make_session):
	pa = make_session('fdtd')
	# inversion grid stays two cells inside the modelling grid
	assert pa.modi.shape == (17, 17)
	assert pa.ninv == xfwi_ninv(pa) == 2 * 17 * 17
	assert wfwi_ninv(pa) == 1
	assert pa.mprecon.isidentity()
	assert 'fdtd' in repr(pa)


@pytest.mark.parametrize('attrib_mod, factor', [
	('fdtd', 1.0),
	('fdtd', 3.0),
	('fdtd_born', 1.0),
	('fdtd_hborn', 1.0),
])
def test_ls_gradient_matches_finite_differences(make_session, attrib_mod, factor):
	pa = make_session(attrib_mod, mprecon_factor=factor)
	assert pa.mprecon.isidentity() == (factor == 1.0)

	obj = ls()
	obj.setup(pa)
	x = initialize(pa).copy()
	g = np.zeros(pa.mx.n)
	f, _ = obj.value_and_gradient(x, g)
	assert f > 0.0

	dx = descent_direction(g)
	fd = directional_fd(obj, x, dx, 1e-4)
	assert np.isclose(np.dot(g, dx), fd, rtol=1e-3)


def test_ls_prior_combines_both_terms(make_session):
	pa = make_session('fdtd')
	x0 = initialize(pa).copy()
	np.testing.assert_allclose(pa.mx.prior, x0, atol=1e-14)

	w = np.random.rand(pa.mx.n)
	update_prior(pa, w=w)

	obj = ls_prior((1.0, 0.5))
	obj.setup(pa)
	data_obj = ls()
	data_obj.setup(pa)

	x = x0 + 0.01 * np.random.randn(pa.mx.n)
	g = np.zeros(pa.mx.n)
	f, _ = obj.value_and_gradient(x, g)
	assert np.isclose(f, data_obj.value(x) + 0.5 * np.sum(w * (x - x0) ** 2))

	dx = descent_direction(g)
	assert np.isclose(np.dot(g, dx), directional_fd(obj, x, dx, 1e-4), rtol=1e-3)


def test_prior_on_another_grid(make_session, small_medium):
	pa = make_session('fdtd')
	with pytest.raises(ConfigurationError):
		update_prior(pa, small_medium)


def test_migration_image_is_the_gradient(make_session):
	pa = make_session('fdtd')
	image = invert(pa, migr())
	assert image.shape == (2, 17, 17)

	obj = ls()
	obj.setup(pa)
	g = np.zeros(pa.mx.n)
	obj.value_and_gradient(pa.mx.x, g)
	np.testing.assert_allclose(image, visualize_gx(pa, g), rtol=1e-12)


def test_finite_difference_migration(make_session):
	pa = make_session('fdtd', igrid=(grid(0.0, 200.0, 40.0), grid(0.0, 200.0, 40.0)))
	assert pa.mx.n == 2 * 5 * 5

	image = invert(pa, migr())
	image_fd = invert(pa, migr_fd())
	np.testing.assert_allclose(image_fd, image, rtol=1e-3, atol=1e-4 * np.abs(image).max())


def test_ssf_gradient(make_session, rng):
	pa = make_session('fdtd', tlagssf_frac=0.03)
	obj = ssf()
	obj.setup(pa)

	w = pa.coupling.w + 0.1 * rng.standard_normal(pa.coupling.ninv)
	g = np.zeros(w.size)
	obj.value_and_gradient(w, g)
	dw = descent_direction(g)
	assert np.isclose(np.dot(g, dw), directional_fd(obj, w, dw, 1e-5), rtol=1e-5)


def test_ssf_needs_modelled_data(make_session):
	pa = make_session('fdtd')
	pa.dcal.fill(0.0)
	with pytest.raises(MissingDataError):
		ssf().setup(pa)


def test_coupling_filter_estimation(make_session, true_medium):
	pa = make_session('fdtd', tlagssf_frac=0.03)
	nlag = pa.coupling.nlag

	# observed data filtered by a known signature, true model
	wtrue = np.zeros(pa.coupling.ninv)
	wtrue[nlag] = 1.0
	wtrue[nlag + 2] = 0.5
	wtrue[nlag - 1] = -0.3
	pa.modm.update('vp', true_medium.vp)
	pa.modm.update('rho', true_medium.rho)
	F(pa)
	pa.coupling.w[:] = wtrue
	pa.coupling.apply(pa.dcal, pa.dobs)

	pa.coupling.reset()
	f0 = misfit(pa)
	f = estimate_coupling_filters(pa, lbfgsb({'niter': 500, 'f_tol': 1e-14, 'g_tol': 1e-14, 'verbose': False}))
	assert f < 1e-3 * f0


def test_invert_reduces_misfit(make_session):
	pa = make_session('fdtd')
	f0 = misfit(pa)
	vp0 = pa.modm.vp.copy()

	res = invert(pa, ls(), quiet(3))
	assert res.fun < f0
	assert np.isclose(misfit(pa), res.fun)
	assert not np.array_equal(pa.modm.vp, vp0)

	# next inversion starts from the result
	for name in pa.modi.names:
		np.testing.assert_array_equal(getattr(pa.mod_initial, name), getattr(pa.modi, name))


def test_bounded_invert_stays_inside_bounds(make_session):
	pa = make_session('fdtd')
	res = invert(pa, ls(), quiet(2), bounded=True)
	mx = pa.mx
	assert np.all(res.x >= mx.lower_x) and np.all(res.x <= mx.upper_x)
	assert pa.modi.vp.min() >= 1500.0 - 1e-6 and pa.modi.vp.max() <= 2500.0 + 1e-6


def test_joint_invert(make_session):
	pa = make_session('fdtd', tlagssf_frac=0.02)
	res = joint_invert(pa, max_roundtrips=2, max_reroundtrips=1, min_roundtrips=1,
		roundtrip_tol=1e-12, optimizer=quiet(2), coupling_optimizer=quiet(5))
	assert 1 <= res.nit <= 2
	assert len(res.misfits) == res.nit
	assert set(err(pa)) == {'vp', 'rho', 'data'}


def test_build_mprecon(make_session):
	pa = make_session('fdtd')
	build_mprecon(pa, 2.0)
	assert not pa.mprecon.isidentity()
	assert np.all(pa.mprecon.diag >= 1.0)

	with pytest.raises(ConfigurationError):
		build_mprecon(pa, 0.9)


def test_prior_follows_the_rebuilt_preconditioner(make_session):
	pa = make_session('fdtd')
	pa.mod_initial.update('vp', 1800.0)
	update_prior(pa)

	obj = ls_prior((0.0, 1.0))
	obj.setup(pa)
	assert obj.value(initialize(pa).copy()) == pytest.approx(0.0, abs=1e-20)

	build_mprecon(pa, 3.0)
	x = initialize(pa).copy()
	np.testing.assert_allclose(pa.mx.prior, x, atol=1e-12)
	assert obj.value(x) == pytest.approx(0.0, abs=1e-20)


def test_point_perturbation(make_session):
	pa = make_session('fdtd')
	x = xfwi_pert_x(pa, (100.0, 100.0), 0.1)
	images = visualize_gx(pa, x)
	# both selectors, one cell each
	assert np.count_nonzero(x) == 2
	assert images[0, 8, 8] != 0.0 and images[1, 8, 8] != 0.0


def test_field_session_with_observed_data(make_session, small_medium):
	pa = make_session('fdtd')
	pa_field = make_session('fdtd', attrib='field', dobs=pa.dobs)
	assert pa_field.attrib == 'field'
	assert np.isclose(misfit(pa_field), misfit(pa))

	# the initial model may equal the true one once data are given
	make_session('fdtd', modm_obs=small_medium, dobs=pa.dobs)


@pytest.mark.parametrize('kwargs, error', [
	({'attrib': 'field'}, MissingDataError),
	({'attrib': 'other'}, ConfigurationError),
	({'parameterization': ('null', 'null')}, ConfigurationError),
	({'mprecon_factor': 0.5}, ConfigurationError),
	({'igrid_interp_scheme': 'B3'}, ConfigurationError),
])
def test_invalid_sessions(make_session, kwargs, error):
	with pytest.raises(error):
		make_session('fdtd', **kwargs)


def test_invalid_modelling_mode(make_session):
	with pytest.raises(ConfigurationError):
		make_session('fdm')


def test_born_background_equal_to_true_model(make_session, true_medium):
	with pytest.raises(ConfigurationError):
		make_session('fdtd_born', modm0=true_medium)


def test_initial_model_equal_to_true_model(make_session, small_medium):
	with pytest.raises(ConfigurationError):
		make_session('fdtd', modm_obs=small_medium)


def test_observed_data_of_another_acquisition(make_session, acquisition):
	_, _, tgrid = acquisition
	with pytest.raises(ConfigurationError):
		make_session('fdtd', dobs=data(tgrid, [3, 3]))
