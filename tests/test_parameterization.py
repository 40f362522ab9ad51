"""Conversions between media and optimization vectors."""

import numpy as np
import pytest

from fwipie.model.medium import medium, grid
from fwipie.model import parameterization as param
from fwipie.tools.errors import ConfigurationError

PARAMETERIZATIONS = [
	('chi_KI', 'chi_rhoI'),
	('chi_KI', 'null'),
	('chi_vp', 'chi_rho'),
	('chi_vp', 'null'),
]


@pytest.fixture
def large_medium():
	"""201 x 201 medium with random fields inside the bounds."""
	z = grid(0.0, 10.0, 0.05)
	x = grid(0.0, 10.0, 0.05)
	mod = medium(z, x, [2100.0, 2200.0], [2100.0, 2300.0])
	mod.update('vp', np.random.uniform(2100.0, 2200.0, mod.shape))
	mod.update('rho', np.random.uniform(2100.0, 2300.0, mod.shape))
	return mod


def test_grid_shape(large_medium):
	assert large_medium.shape == (201, 201)


@pytest.mark.parametrize('parameterization', PARAMETERIZATIONS)
def test_round_trip(large_medium, parameterization):
	mod = large_medium
	x = param.get(np.zeros(param.ninv(mod, parameterization)), mod, parameterization)

	mod2 = mod.copy().fill()
	# fixed partner of a null slot is a function of rho
	mod2.update('rho', mod.rho)
	param.reparameterize(mod2, x, parameterization)

	np.testing.assert_allclose(mod2.vp, mod.vp, rtol=1e-12)
	np.testing.assert_allclose(mod2.rho, mod.rho, rtol=1e-12)
	np.testing.assert_allclose(param.get(np.zeros_like(x), mod2, parameterization), x, atol=1e-12)


@pytest.mark.parametrize('parameterization', PARAMETERIZATIONS)
def test_chainrule_is_adjoint_of_pert(large_medium, parameterization):
	mod = large_medium
	n = param.ninv(mod, parameterization)
	dx = np.random.randn(n)
	gm = np.random.randn(2 * mod.size)

	dm = param.pert(np.zeros(2 * mod.size), dx, mod, parameterization)
	gx = param.chainrule(np.zeros(n), gm, mod, parameterization)

	np.testing.assert_allclose(np.dot(dm, gm), np.dot(dx, gx), rtol=1e-10)


@pytest.mark.parametrize('parameterization', PARAMETERIZATIONS + [('chi_K', 'chi_rhoI'), ('null', 'chi_rho')])
def test_pert_matches_finite_differences(parameterization):
	z = grid(0.0, 40.0, 10.0)
	mod = medium(z, z, [2100.0, 2200.0], [2100.0, 2300.0])
	mod.update('vp', np.random.uniform(2100.0, 2200.0, mod.shape))
	mod.update('rho', np.random.uniform(2100.0, 2300.0, mod.shape))

	n = param.ninv(mod, parameterization)
	x = param.get(np.zeros(n), mod, parameterization)
	dx = np.random.randn(n)
	h = 1e-6

	def kb(xx):
		m = param.reparameterize(mod.copy(), xx, parameterization)
		return np.concatenate([m.get('K').ravel(), 1.0 / m.rho.ravel()])

	fd = (kb(x + h * dx) - kb(x - h * dx)) / (2 * h)
	dm = param.pert(np.zeros(2 * mod.size), dx, mod, parameterization)

	scale = np.concatenate([np.full(mod.size, np.abs(fd[:mod.size]).max() or 1.0),
		np.full(mod.size, np.abs(fd[mod.size:]).max() or 1.0)])
	np.testing.assert_allclose(dm / scale, fd / scale, atol=1e-6)


@pytest.mark.parametrize('parameterization', PARAMETERIZATIONS)
def test_bounds_are_ordered_and_contain_the_medium(large_medium, parameterization):
	mod = large_medium
	n = param.ninv(mod, parameterization)
	lower = np.zeros(n)
	upper = np.zeros(n)
	param.bounds(lower, upper, mod, parameterization)

	assert np.all(lower <= upper)
	x = param.get(np.zeros(n), mod, parameterization)
	assert np.all(x >= lower - 1e-12)
	assert np.all(x <= upper + 1e-12)


def test_contrast_of_reference_is_zero(large_medium):
	mod = large_medium.copy().fill()
	x = param.get(np.ones(2 * mod.size), mod, ('chi_vp', 'chi_rho'))
	assert not np.any(x)


@pytest.mark.parametrize('parameterization', [
	('null', 'null'),
	('null', 'null', 'null'),
	('chi_vp',),
	('chi_vp', 'chi_rho', 'chi_vs'),
	('chi_rho', 'chi_vp'),
])
def test_invalid_parameterization(parameterization):
	with pytest.raises(ConfigurationError):
		param.check(parameterization)


def test_vector_size_mismatch(large_medium):
	with pytest.raises(ConfigurationError):
		param.get(np.zeros(10), large_medium, ('chi_vp', 'chi_rho'))
