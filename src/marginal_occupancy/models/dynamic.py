from logging import getLogger

import jax.numpy as jnp
import numpy as np
from sklearn.utils.validation import check_is_fitted

from marginal_occupancy import _validation as val
from marginal_occupancy.exceptions import ConfigurationError, ShapeMismatchError
from marginal_occupancy.likelihoods import dynamic
from marginal_occupancy.likelihoods.common import x64_precision
from marginal_occupancy.models._defaults import (
    _DEFAULT_DYNAMIC_LIKELIHOOD,
    _DEFAULT_MAXITER,
    _DEFAULT_TOL,
)
from marginal_occupancy.models.base import _OccupancyEstimatorBase
from marginal_occupancy.posterior import dynamic_occupancy_posterior
from marginal_occupancy.priors import BetaPrior, log_prior

logger = getLogger(__name__)

_DYNAMIC_LIKELIHOODS = {
    "implicit": (
        lambda y, params: jnp.sum(
            dynamic.dynamic_pointwise_log_likelihood(
                y, params["phi"], params["gamma"], params["psi1"], params["p"]
            )
        ),
        dynamic.evaluate_dynamic,
    ),
    "hmm": (
        lambda y, params: jnp.sum(
            dynamic.dynamic_hmm_log_likelihood(
                y, params["phi"], params["gamma"], params["psi1"], params["p"]
            )
        ),
        dynamic.evaluate_dynamic_hmm,
    ),
}


class DynamicOccupancy(_OccupancyEstimatorBase):
    """Multi-season occupancy with shared persistence, colonization,
    initial occupancy and detection probabilities.

    Parameters
    ----------
    likelihood : {"implicit", "hmm"}, optional
        "implicit" propagates the marginal occupancy probability and sums out
        each unit-season independently; "hmm" sums out each unit's whole
        occupancy history with the forward algorithm. Default is "implicit".
    phi_prior, gamma_prior, psi1_prior, p_prior : BetaPrior, optional
        Priors on the parameters. Default is uniform.
    maxiter : int, optional
        Optimizer iteration limit, by default 500.
    tol : float, optional
        Optimizer tolerance, by default 1e-8.

    Attributes
    ----------
    phi_, gamma_, psi1_, p_ : float
        Estimated parameters.
    trajectory_ : np.ndarray, shape (n_seasons,)
        Marginal occupancy probability in each season at the estimates.
    log_likelihood_ : float
        Log likelihood of the training data at the estimates.
    n_iter_ : int
        Optimizer iterations.
    """

    def __init__(
        self,
        likelihood: str = _DEFAULT_DYNAMIC_LIKELIHOOD,
        phi_prior: BetaPrior | None = None,
        gamma_prior: BetaPrior | None = None,
        psi1_prior: BetaPrior | None = None,
        p_prior: BetaPrior | None = None,
        maxiter: int = _DEFAULT_MAXITER,
        tol: float = _DEFAULT_TOL,
    ):
        self.likelihood = likelihood
        self.phi_prior = phi_prior
        self.gamma_prior = gamma_prior
        self.psi1_prior = psi1_prior
        self.p_prior = p_prior
        self.maxiter = maxiter
        self.tol = tol

    def _get_likelihood(self):
        try:
            return _DYNAMIC_LIKELIHOODS[self.likelihood]
        except KeyError as err:
            raise ConfigurationError(
                f"Unknown dynamic likelihood {self.likelihood!r}",
                hint=f"Choose one of {sorted(_DYNAMIC_LIKELIHOODS)}",
            ) from err

    @staticmethod
    def _as_history(y: np.ndarray) -> tuple[np.ndarray, int, int]:
        y = val.as_float_array(y, "y")
        if y.ndim != 3:
            raise ShapeMismatchError(
                "y must be a detection history indexed (unit, season, repeat)",
                expected="shape (N, T, R)",
                got=f"shape {y.shape}",
            )
        return y, y.shape[0], y.shape[1]

    def _parameters(self) -> tuple[float, float, float, float]:
        return self.phi_, self.gamma_, self.psi1_, self.p_

    def fit(self, y: np.ndarray) -> "DynamicOccupancy":
        """Maximize the marginal log posterior.

        Parameters
        ----------
        y : np.ndarray, shape (n_units, n_seasons, n_repeats)
            0/1 detection history.

        Returns
        -------
        self
        """
        log_likelihood, evaluator = self._get_likelihood()
        y, n_units, n_seasons = self._as_history(y)
        y, *_ = dynamic._check_inputs(
            n_units, n_seasons, y, 0.5, 0.5, 0.5, 0.5, n_repeats=None
        )
        priors = {
            "phi": self.phi_prior,
            "gamma": self.gamma_prior,
            "psi1": self.psi1_prior,
            "p": self.p_prior,
        }

        def log_posterior(params):
            return log_likelihood(y, params) + log_prior(params, priors)

        logger.info(
            "Fitting %s dynamic occupancy model to %d units over %d seasons...",
            self.likelihood,
            n_units,
            n_seasons,
        )
        estimates = self._maximize(log_posterior, ("phi", "gamma", "psi1", "p"))

        self.phi_ = estimates["phi"]
        self.gamma_ = estimates["gamma"]
        self.psi1_ = estimates["psi1"]
        self.p_ = estimates["p"]
        with x64_precision():
            self.trajectory_ = np.asarray(
                dynamic.occupancy_trajectory(
                    self.psi1_, self.phi_, self.gamma_, n_seasons=n_seasons
                )
            )
        self.log_likelihood_ = evaluator(n_units, n_seasons, y, *self._parameters())
        logger.info(
            "Estimated phi = %.3f, gamma = %.3f, psi1 = %.3f, p = %.3f",
            self.phi_,
            self.gamma_,
            self.psi1_,
            self.p_,
        )
        return self

    def score(self, y: np.ndarray) -> float:
        """Log likelihood of `y` at the fitted parameters."""
        check_is_fitted(self)
        _, evaluator = self._get_likelihood()
        y, n_units, n_seasons = self._as_history(y)
        return evaluator(n_units, n_seasons, y, *self._parameters())

    def predict_occupancy(self, y: np.ndarray) -> np.ndarray:
        """Posterior probability that each unit is occupied in each season,
        given that season's surveys (implicit dynamics).

        Returns
        -------
        occupancy_probability : np.ndarray, shape (n_units, n_seasons)
        """
        check_is_fitted(self)
        y, n_units, n_seasons = self._as_history(y)
        return dynamic_occupancy_posterior(n_units, n_seasons, y, *self._parameters())
