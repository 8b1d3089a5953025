"""Shared test fixtures for marginal_occupancy tests.

Tests run in 64-bit mode so that totals can be compared at tight tolerances.
"""

import itertools

import jax
import numpy as np
import pytest

jax.config.update("jax_enable_x64", True)

from marginal_occupancy.simulate.occupancy_simulation import (  # noqa: E402
    simulate_dynamic,
    simulate_single_season,
)


@pytest.fixture
def single_season_data():
    """50 units surveyed 4 times with p = 0.4, psi = 0.6."""
    return simulate_single_season(n_units=50, n_trials=4, p=0.4, psi=0.6, seed=1)


@pytest.fixture
def dynamic_data():
    """20 units, 4 seasons, 3 repeat surveys."""
    return simulate_dynamic(
        n_units=20,
        n_seasons=4,
        n_repeats=3,
        phi=0.7,
        gamma=0.1,
        psi1=0.4,
        p=0.5,
        seed=2,
    )


@pytest.fixture
def brute_force_history_log_likelihood():
    """Exact log P(y) for one unit by enumerating every occupancy history."""

    def _log_likelihood(y_unit, phi, gamma, psi1, p):
        y_unit = np.asarray(y_unit)
        n_seasons = y_unit.shape[0]
        total = 0.0
        for history in itertools.product((0, 1), repeat=n_seasons):
            prob = psi1 if history[0] == 1 else 1.0 - psi1
            for previous, current in zip(history[:-1], history[1:]):
                occupied_prob = phi if previous == 1 else gamma
                prob *= occupied_prob if current == 1 else 1.0 - occupied_prob
            for z, surveys in zip(history, y_unit):
                detection_prob = p * z
                prob *= np.prod(
                    np.where(surveys == 1, detection_prob, 1.0 - detection_prob)
                )
            total += prob
        with np.errstate(divide="ignore"):
            return np.log(total)

    return _log_likelihood
