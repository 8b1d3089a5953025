"""Property-based tests for the occupancy likelihoods.

These tests use Hypothesis to check invariants that should hold for every
valid combination of data and parameters, including probabilities on the
boundary of [0, 1].
"""

import hypothesis.extra.numpy as npst
import jax.numpy as jnp
import numpy as np
import pytest
import scipy.stats
from hypothesis import given, settings
from hypothesis import strategies as st

from marginal_occupancy.core import log_sum_exp
from marginal_occupancy.likelihoods.dynamic import (
    evaluate_dynamic,
    evaluate_dynamic_hmm,
)
from marginal_occupancy.likelihoods.single_season import evaluate

probabilities = st.floats(min_value=0.0, max_value=1.0, allow_nan=False)
interior_probabilities = st.floats(min_value=0.01, max_value=0.99, allow_nan=False)
log_values = st.floats(min_value=-1e4, max_value=1e2, allow_nan=False)


@st.composite
def single_season_data(draw, min_units=1, max_units=8):
    """Detection counts with a matching number of surveys."""
    n_units = draw(st.integers(min_value=min_units, max_value=max_units))
    n_trials = draw(st.integers(min_value=1, max_value=6))
    y = draw(
        npst.arrays(
            dtype=np.int64,
            shape=(n_units,),
            elements=st.integers(min_value=0, max_value=n_trials),
        )
    )
    return n_units, n_trials, y


@st.composite
def detection_histories(draw, max_units=4, max_seasons=4, max_repeats=3):
    """0/1 detection histories indexed (unit, season, repeat survey)."""
    shape = (
        draw(st.integers(min_value=1, max_value=max_units)),
        draw(st.integers(min_value=1, max_value=max_seasons)),
        draw(st.integers(min_value=1, max_value=max_repeats)),
    )
    return draw(
        npst.arrays(
            dtype=np.int64, shape=shape, elements=st.integers(min_value=0, max_value=1)
        )
    )


def _brute_force_log_likelihood(y, phi, gamma, psi1, p):
    """Sum P(y, z) over every occupancy history z of every unit."""
    n_seasons = y.shape[1]
    total = 0.0
    for y_unit in y:
        prob_unit = 0.0
        for history in np.ndindex(*(2,) * n_seasons):
            prob = psi1 if history[0] else 1.0 - psi1
            for previous, current in zip(history[:-1], history[1:]):
                occupied_prob = phi if previous else gamma
                prob *= occupied_prob if current else 1.0 - occupied_prob
            for z, surveys in zip(history, y_unit):
                prob *= np.prod(np.where(surveys == 1, p * z, 1.0 - p * z))
            prob_unit += prob
        total += np.log(prob_unit)
    return total


@pytest.mark.property
class TestLogSumExpProperties:
    @settings(deadline=None)
    @given(log_values, log_values)
    def test_commutative(self, a, b):
        assert float(log_sum_exp(a, b)) == float(log_sum_exp(b, a))

    @settings(deadline=None)
    @given(log_values, log_values)
    def test_bounded_by_max(self, a, b):
        result = float(log_sum_exp(a, b))
        assert max(a, b) <= result <= max(a, b) + np.log(2.0) + 1e-12

    @settings(deadline=None)
    @given(log_values)
    def test_negative_infinity_is_identity(self, a):
        assert float(log_sum_exp(a, -jnp.inf)) == pytest.approx(a)


@pytest.mark.property
class TestSingleSeasonProperties:
    @settings(deadline=None, max_examples=50)
    @given(single_season_data(), probabilities, probabilities)
    def test_never_nan_and_at_most_zero(self, data, p, psi):
        n_units, n_trials, y = data
        result = evaluate(n_units, n_trials, y, p=p, psi=psi)
        assert not np.isnan(result)
        assert result <= 1e-12

    @settings(deadline=None, max_examples=50)
    @given(single_season_data(), interior_probabilities, interior_probabilities)
    def test_matches_probability_space_formula(self, data, p, psi):
        n_units, n_trials, y = data
        prob = psi * scipy.stats.binom.pmf(y, n_trials, p) + (1 - psi) * (y == 0)
        result = evaluate(n_units, n_trials, y, p=p, psi=psi)
        assert result == pytest.approx(np.sum(np.log(prob)), rel=1e-9, abs=1e-12)

    @settings(deadline=None, max_examples=50)
    @given(single_season_data(min_units=2), interior_probabilities, st.randoms())
    def test_unit_order_does_not_matter(self, data, p, random):
        n_units, n_trials, y = data
        psi = np.linspace(0.1, 0.9, n_units)
        order = list(range(n_units))
        random.shuffle(order)

        result = evaluate(n_units, n_trials, y, p=p, psi=psi)
        permuted = evaluate(n_units, n_trials, y[order], p=p, psi=psi[order])
        assert abs(result - permuted) < 1e-9

    @settings(deadline=None, max_examples=50)
    @given(single_season_data(), interior_probabilities)
    def test_zero_occupancy_is_impossible_only_with_detections(self, data, p):
        n_units, n_trials, y = data
        result = evaluate(n_units, n_trials, y, p=p, psi=0.0)
        assert (result == -np.inf) == bool(np.any(y > 0))


@pytest.mark.property
class TestDynamicProperties:
    @settings(deadline=None, max_examples=40)
    @given(
        detection_histories(),
        probabilities,
        probabilities,
        probabilities,
        probabilities,
    )
    def test_never_nan_and_at_most_zero(self, y, phi, gamma, psi1, p):
        n_units, n_seasons, _ = y.shape
        for evaluator in (evaluate_dynamic, evaluate_dynamic_hmm):
            result = evaluator(
                n_units, n_seasons, y, phi=phi, gamma=gamma, psi1=psi1, p=p
            )
            assert not np.isnan(result)
            assert result <= 1e-12

    @settings(deadline=None, max_examples=40)
    @given(
        detection_histories(),
        interior_probabilities,
        interior_probabilities,
        interior_probabilities,
        interior_probabilities,
    )
    def test_exact_likelihood_matches_enumeration(self, y, phi, gamma, psi1, p):
        n_units, n_seasons, _ = y.shape
        result = evaluate_dynamic_hmm(
            n_units, n_seasons, y, phi=phi, gamma=gamma, psi1=psi1, p=p
        )
        expected = _brute_force_log_likelihood(y, phi, gamma, psi1, p)
        assert result == pytest.approx(expected, rel=1e-9, abs=1e-12)

    @settings(deadline=None, max_examples=40)
    @given(
        detection_histories(max_seasons=1),
        probabilities,
        probabilities,
        probabilities,
        probabilities,
    )
    def test_formulations_agree_for_one_season(self, y, phi, gamma, psi1, p):
        n_units = y.shape[0]
        implicit = evaluate_dynamic(n_units, 1, y, phi=phi, gamma=gamma, psi1=psi1, p=p)
        exact = evaluate_dynamic_hmm(
            n_units, 1, y, phi=phi, gamma=gamma, psi1=psi1, p=p
        )
        if np.isinf(implicit):
            assert exact == implicit
        else:
            assert exact == pytest.approx(implicit, rel=1e-12, abs=1e-12)
