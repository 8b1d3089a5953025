from logging import getLogger

import jax.numpy as jnp
import numpy as np
from sklearn.utils.validation import check_is_fitted

from marginal_occupancy import _validation as val
from marginal_occupancy.exceptions import ShapeMismatchError
from marginal_occupancy.likelihoods import single_season
from marginal_occupancy.models._defaults import _DEFAULT_MAXITER, _DEFAULT_TOL
from marginal_occupancy.models.base import _OccupancyEstimatorBase
from marginal_occupancy.posterior import single_season_occupancy_posterior
from marginal_occupancy.priors import BetaPrior, log_prior

logger = getLogger(__name__)


class SingleSeasonOccupancy(_OccupancyEstimatorBase):
    """Shared detection and occupancy probabilities for a single season.

    Parameters
    ----------
    p_prior : BetaPrior, optional
        Prior on detection probability. Default is uniform.
    psi_prior : BetaPrior, optional
        Prior on occupancy probability. Default is uniform.
    maxiter : int, optional
        Optimizer iteration limit, by default 500.
    tol : float, optional
        Optimizer tolerance, by default 1e-8.

    Attributes
    ----------
    p_ : float
        Estimated detection probability.
    psi_ : float
        Estimated occupancy probability.
    log_likelihood_ : float
        Marginal log likelihood of the training data at the estimates.
    n_iter_ : int
        Optimizer iterations.

    Examples
    --------
    >>> from marginal_occupancy.simulate.occupancy_simulation import simulate_single_season
    >>> data = simulate_single_season(n_units=500, n_trials=4, p=0.4, psi=0.6)
    >>> model = SingleSeasonOccupancy().fit(data.y, data.n_trials)
    """

    def __init__(
        self,
        p_prior: BetaPrior | None = None,
        psi_prior: BetaPrior | None = None,
        maxiter: int = _DEFAULT_MAXITER,
        tol: float = _DEFAULT_TOL,
    ):
        self.p_prior = p_prior
        self.psi_prior = psi_prior
        self.maxiter = maxiter
        self.tol = tol

    @staticmethod
    def _as_counts(y: np.ndarray) -> tuple[np.ndarray, int]:
        y = val.as_float_array(y, "y")
        if y.ndim != 1:
            raise ShapeMismatchError(
                "y must hold one detection count per unit",
                expected="shape (N,)",
                got=f"shape {y.shape}",
            )
        return y, y.shape[0]

    def fit(self, y: np.ndarray, n_trials: int) -> "SingleSeasonOccupancy":
        """Maximize the marginal log posterior of `p` and `psi`.

        Parameters
        ----------
        y : np.ndarray, shape (n_units,)
            Detection counts.
        n_trials : int
            Surveys per unit.

        Returns
        -------
        self
        """
        y, n_units = self._as_counts(y)
        y, _, _ = single_season._check_inputs(n_units, n_trials, y, 0.5, 0.5)
        priors = {"p": self.p_prior, "psi": self.psi_prior}

        def log_posterior(params):
            return jnp.sum(
                single_season.single_season_pointwise_log_likelihood(
                    y, n_trials, params["p"], params["psi"]
                )
            ) + log_prior(params, priors)

        logger.info("Fitting single-season occupancy model to %d units...", n_units)
        estimates = self._maximize(log_posterior, ("p", "psi"))

        self.p_ = estimates["p"]
        self.psi_ = estimates["psi"]
        self.log_likelihood_ = single_season.evaluate(
            n_units, n_trials, y, self.p_, self.psi_
        )
        logger.info(
            "Estimated p = %.3f, psi = %.3f (log likelihood %.3f)",
            self.p_,
            self.psi_,
            self.log_likelihood_,
        )
        return self

    def score(self, y: np.ndarray, n_trials: int) -> float:
        """Marginal log likelihood of `y` at the fitted parameters."""
        check_is_fitted(self)
        y, n_units = self._as_counts(y)
        return single_season.evaluate(n_units, n_trials, y, self.p_, self.psi_)

    def predict_occupancy(self, y: np.ndarray, n_trials: int) -> np.ndarray:
        """Posterior probability that each unit is occupied.

        Returns
        -------
        occupancy_probability : np.ndarray, shape (n_units,)
        """
        check_is_fitted(self)
        y, n_units = self._as_counts(y)
        return single_season_occupancy_posterior(
            n_units, n_trials, y, self.p_, self.psi_
        )
