"""Pytest configuration and fixtures for fwipie tests."""

import numpy as np
import pytest

from fwipie.acquisition.geom import fixed_spread
from fwipie.acquisition.src import src
from fwipie.inversion.param import param
from fwipie.model.medium import medium, grid


@pytest.fixture(autouse=True)
def reset_random_seeds():
	"""Reset random seeds before each test for reproducibility."""
	np.random.seed(42)
	yield


@pytest.fixture
def rng():
	return np.random.default_rng(7)


@pytest.fixture
def small_medium():
	"""21 x 21 homogeneous medium, 10 m spacing."""
	z = grid(0.0, 200.0, 10.0)
	x = grid(0.0, 200.0, 10.0)
	return medium(z, x, [1500.0, 2500.0], [1000.0, 2000.0])


@pytest.fixture
def true_medium(small_medium):
	"""Homogeneous medium with a circular anomaly in the middle."""
	return small_medium.copy().addon((100.0, 100.0), 35.0, 0.1)


@pytest.fixture
def acquisition():
	"""Two shots on top, a line of receivers at the bottom."""
	geom = fixed_spread([60.0, 140.0], [20.0, 20.0],
		np.arange(20.0, 190.0, 20.0), np.full(9, 180.0))
	tgrid = 0.001 * np.arange(160)
	wav = src.ricker(geom, tgrid, 25.0)
	return geom, wav, tgrid


@pytest.fixture
def make_session(small_medium, true_medium, acquisition):
	"""Factory of synthetic inversion sessions on the small problem."""
	geom, wav, tgrid = acquisition

	def make(attrib_mod='fdtd', **kwargs):
		kwargs.setdefault('modm_obs', true_medium)
		return param(wav, geom, tgrid, attrib_mod, small_medium, **kwargs)

	return make
