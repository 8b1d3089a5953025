"""Tests for the maximum a posteriori occupancy estimators."""

import logging

import jax.numpy as jnp
import numpy as np
import pytest
from sklearn.base import clone
from sklearn.exceptions import NotFittedError

from marginal_occupancy.exceptions import (
    ConfigurationError,
    ConvergenceError,
    FittingError,
    ShapeMismatchError,
)
from marginal_occupancy.likelihoods.dynamic import (
    evaluate_dynamic,
    evaluate_dynamic_hmm,
    occupancy_trajectory,
)
from marginal_occupancy.likelihoods.single_season import evaluate
from marginal_occupancy.models import DynamicOccupancy, SingleSeasonOccupancy
from marginal_occupancy.priors import BetaPrior
from marginal_occupancy.simulate.occupancy_simulation import (
    simulate_dynamic,
    simulate_single_season,
)


@pytest.fixture(scope="module")
def large_single_season_data():
    return simulate_single_season(n_units=1000, n_trials=4, p=0.4, psi=0.6, seed=10)


@pytest.fixture(scope="module")
def large_dynamic_data():
    return simulate_dynamic(
        n_units=500,
        n_seasons=5,
        n_repeats=3,
        phi=0.7,
        gamma=0.1,
        psi1=0.6,
        p=0.5,
        seed=11,
    )


@pytest.mark.unit
class TestSingleSeasonOccupancy:
    def test_get_params(self):
        prior = BetaPrior(2.0, 2.0)
        model = SingleSeasonOccupancy(p_prior=prior, maxiter=50)
        params = model.get_params()
        assert params["p_prior"] is prior
        assert params["psi_prior"] is None
        assert params["maxiter"] == 50
        assert clone(model).get_params()["maxiter"] == 50

    def test_not_fitted(self, single_season_data):
        with pytest.raises(NotFittedError):
            SingleSeasonOccupancy().score(single_season_data.y, 4)

    def test_fit_sets_attributes(self, single_season_data):
        data = single_season_data
        model = SingleSeasonOccupancy().fit(data.y, data.n_trials)
        assert 0.0 < model.p_ < 1.0
        assert 0.0 < model.psi_ < 1.0
        assert model.n_iter_ >= 1
        assert model.log_likelihood_ == pytest.approx(
            evaluate(data.n_units, data.n_trials, data.y, model.p_, model.psi_)
        )

    def test_estimate_maximizes_likelihood(self, single_season_data):
        data = single_season_data
        model = SingleSeasonOccupancy().fit(data.y, data.n_trials)
        for dp, dpsi in [(0.02, 0.0), (-0.02, 0.0), (0.0, 0.02), (0.0, -0.02)]:
            nearby = evaluate(
                data.n_units,
                data.n_trials,
                data.y,
                model.p_ + dp,
                model.psi_ + dpsi,
            )
            assert model.log_likelihood_ >= nearby - 1e-6

    def test_score_matches_evaluate(self, single_season_data):
        data = single_season_data
        model = SingleSeasonOccupancy().fit(data.y, data.n_trials)
        assert model.score(data.y, data.n_trials) == pytest.approx(
            evaluate(data.n_units, data.n_trials, data.y, model.p_, model.psi_)
        )

    def test_predict_occupancy(self, single_season_data):
        data = single_season_data
        model = SingleSeasonOccupancy().fit(data.y, data.n_trials)
        occupancy = model.predict_occupancy(data.y, data.n_trials)
        assert occupancy.shape == (data.n_units,)
        assert np.all(occupancy[data.y > 0] == 1.0)
        assert np.all(occupancy[data.y == 0] < 1.0)

    def test_informative_prior_pulls_estimate(self, single_season_data):
        data = single_season_data
        flat = SingleSeasonOccupancy().fit(data.y, data.n_trials)
        shrunk = SingleSeasonOccupancy(psi_prior=BetaPrior(1.0, 200.0)).fit(
            data.y, data.n_trials
        )
        assert shrunk.psi_ < flat.psi_

    def test_iteration_limit(self, single_season_data):
        data = single_season_data
        with pytest.raises(ConvergenceError, match="did not converge"):
            SingleSeasonOccupancy(maxiter=1).fit(data.y, data.n_trials)

    def test_non_finite_objective(self):
        model = SingleSeasonOccupancy()
        with pytest.raises(FittingError, match="Negative log posterior"):
            model._maximize(lambda params: jnp.nan * params["p"], ("p",))

    def test_rejects_multidimensional_counts(self):
        with pytest.raises(ShapeMismatchError, match=r"shape \(N,\)"):
            SingleSeasonOccupancy().fit(np.zeros((3, 2)), 2)

    def test_logs_progress(self, single_season_data, caplog):
        data = single_season_data
        with caplog.at_level(logging.INFO, logger="marginal_occupancy"):
            SingleSeasonOccupancy().fit(data.y, data.n_trials)
        assert "Fitting single-season occupancy model to 50 units" in caplog.text

    @pytest.mark.slow
    def test_recovers_parameters(self, large_single_season_data):
        data = large_single_season_data
        model = SingleSeasonOccupancy().fit(data.y, data.n_trials)
        assert model.p_ == pytest.approx(0.4, abs=0.05)
        assert model.psi_ == pytest.approx(0.6, abs=0.06)


@pytest.mark.unit
class TestDynamicOccupancy:
    def test_unknown_likelihood(self, dynamic_data):
        with pytest.raises(ConfigurationError, match="Unknown dynamic likelihood"):
            DynamicOccupancy(likelihood="bogus").fit(dynamic_data.y)

    def test_not_fitted(self, dynamic_data):
        with pytest.raises(NotFittedError):
            DynamicOccupancy().predict_occupancy(dynamic_data.y)

    @pytest.mark.parametrize("shape", [(5, 3), (5,), ()])
    def test_rejects_history_without_repeat_axis(self, shape):
        with pytest.raises(ShapeMismatchError) as exc_info:
            DynamicOccupancy().fit(np.zeros(shape))
        assert "shape (N, T, R)" in str(exc_info.value)
        assert f"shape {shape}" in str(exc_info.value)

    def test_ragged_history(self):
        with pytest.raises(ShapeMismatchError, match="ragged"):
            DynamicOccupancy().fit([[[0, 1], [0]], [[1, 1], [0, 0]]])

    @pytest.mark.parametrize(
        "likelihood,evaluator",
        [("implicit", evaluate_dynamic), ("hmm", evaluate_dynamic_hmm)],
    )
    def test_fit_and_score(self, dynamic_data, likelihood, evaluator):
        data = dynamic_data
        model = DynamicOccupancy(likelihood=likelihood).fit(data.y)
        params = (model.phi_, model.gamma_, model.psi1_, model.p_)
        assert all(0.0 < value < 1.0 for value in params)
        expected = evaluator(data.n_units, data.n_seasons, data.y, *params)
        assert model.log_likelihood_ == pytest.approx(expected)
        assert model.score(data.y) == pytest.approx(expected)

    def test_trajectory(self, dynamic_data):
        data = dynamic_data
        model = DynamicOccupancy().fit(data.y)
        assert model.trajectory_.shape == (data.n_seasons,)
        np.testing.assert_allclose(
            model.trajectory_,
            occupancy_trajectory(
                model.psi1_, model.phi_, model.gamma_, n_seasons=data.n_seasons
            ),
        )

    def test_predict_occupancy(self, dynamic_data):
        data = dynamic_data
        model = DynamicOccupancy().fit(data.y)
        occupancy = model.predict_occupancy(data.y)
        assert occupancy.shape == (data.n_units, data.n_seasons)
        assert np.all(occupancy[data.y.sum(axis=-1) > 0] == 1.0)

    @pytest.mark.slow
    def test_exact_likelihood_recovers_parameters(self, large_dynamic_data):
        model = DynamicOccupancy(likelihood="hmm").fit(large_dynamic_data.y)
        assert model.phi_ == pytest.approx(0.7, abs=0.1)
        assert model.gamma_ == pytest.approx(0.1, abs=0.06)
        assert model.psi1_ == pytest.approx(0.6, abs=0.1)
        assert model.p_ == pytest.approx(0.5, abs=0.06)

    @pytest.mark.slow
    def test_implicit_likelihood_recovers_trajectory(self, large_dynamic_data):
        data = large_dynamic_data
        model = DynamicOccupancy(likelihood="implicit").fit(data.y)
        true_trajectory = occupancy_trajectory(0.6, 0.7, 0.1, n_seasons=data.n_seasons)
        np.testing.assert_allclose(model.trajectory_, true_trajectory, atol=0.1)
        assert model.p_ == pytest.approx(0.5, abs=0.06)
