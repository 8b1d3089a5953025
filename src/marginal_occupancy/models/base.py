"""Shared maximum a posteriori machinery for occupancy estimators."""

from collections.abc import Callable
from logging import getLogger

import jax
import jax.numpy as jnp
import numpy as np
from jax.scipy.special import expit
from scipy.optimize import minimize  # type: ignore[import-untyped]
from sklearn.base import BaseEstimator

from marginal_occupancy.exceptions import ConvergenceError, FittingError
from marginal_occupancy.likelihoods.common import x64_precision
from marginal_occupancy.models._defaults import (
    _DEFAULT_INITIAL_PROBABILITY,
    _DEFAULT_OPTIMIZATION_METHOD,
    _LOGIT_BOUND,
)

logger = getLogger(__name__)


class _OccupancyEstimatorBase(BaseEstimator):
    """Base class for occupancy estimators.

    Subclasses build a log posterior over named probability parameters and
    call :meth:`_maximize`, which optimizes it on the logit scale.
    """

    def _maximize(
        self,
        log_posterior: Callable[[dict[str, jnp.ndarray]], jnp.ndarray],
        parameter_names: tuple[str, ...],
    ) -> dict[str, float]:
        """Maximize `log_posterior` over probabilities in (0, 1).

        Parameters
        ----------
        log_posterior : Callable
            Maps a dict of parameter values to a scalar log posterior.
        parameter_names : tuple[str, ...]
            Order of the parameters in the optimizer's vector.

        Returns
        -------
        estimates : dict[str, float]

        Raises
        ------
        FittingError
            If the objective is NaN.
        ConvergenceError
            If the optimizer hits its iteration limit.
        """

        def negative_log_posterior(logit_params: jnp.ndarray) -> jnp.ndarray:
            params = dict(zip(parameter_names, expit(logit_params)))
            return -log_posterior(params)

        value_and_grad = jax.jit(jax.value_and_grad(negative_log_posterior))

        def objective(logit_params: np.ndarray) -> tuple[float, np.ndarray]:
            value, grad = value_and_grad(jnp.asarray(logit_params))
            if not np.isfinite(value):
                raise FittingError(
                    f"Negative log posterior is {float(value)} at "
                    f"{dict(zip(parameter_names, expit(logit_params).tolist()))}",
                    hint="Check that the data are consistent with the priors",
                )
            return float(value), np.asarray(grad, dtype=np.float64)

        x0 = np.full(
            len(parameter_names),
            np.log(_DEFAULT_INITIAL_PROBABILITY / (1 - _DEFAULT_INITIAL_PROBABILITY)),
        )
        with x64_precision():
            result = minimize(
                objective,
                x0=x0,
                jac=True,
                method=_DEFAULT_OPTIMIZATION_METHOD,
                bounds=[(-_LOGIT_BOUND, _LOGIT_BOUND)] * len(parameter_names),
                tol=self.tol,
                options={"maxiter": self.maxiter},
            )
            estimates = np.asarray(expit(result.x)).tolist()
        logger.debug("Optimizer finished: %s", result.message)

        if result.status == 1:
            raise ConvergenceError(
                "Maximum a posteriori fit did not converge",
                iterations=result.nit,
                tolerance=self.tol,
                hint="Increase maxiter or use more informative priors",
            )
        if not result.success:
            logger.warning("Optimizer stopped early: %s", result.message)

        self.n_iter_ = int(result.nit)
        return dict(zip(parameter_names, estimates))
