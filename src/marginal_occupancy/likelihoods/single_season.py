"""Marginal log likelihood of the single-season occupancy model.

Each unit `i` is surveyed `K` times and `y_i` of those surveys record a
detection. The occupancy state `z_i ~ Bernoulli(psi)` is summed out:

.. math::
    P(y_i) = \\psi \\, \\mathrm{Bin}(y_i; K, p) + (1 - \\psi) \\, [y_i = 0]

An unoccupied unit cannot produce a detection, so for `y_i > 0` the second
term vanishes and the marginal is `psi * Bin(y_i; K, p)`. For `y_i = 0` both
terms are combined with a log-sum-exp.
"""

import jax
import jax.numpy as jnp
import numpy as np
from jax.typing import ArrayLike

from marginal_occupancy import _validation as val
from marginal_occupancy.core import (
    binomial_log_pmf,
    log1m,
    marginalize_occupancy,
    safe_log,
)
from marginal_occupancy.likelihoods.common import (
    as_probability,
    to_float,
    x64_precision,
)
from marginal_occupancy.priors import BetaPrior, log_prior


@jax.jit
def single_season_pointwise_log_likelihood(
    y: ArrayLike, n_trials: ArrayLike, p: ArrayLike, psi: ArrayLike
) -> jnp.ndarray:
    """Per-unit marginal log likelihood, without input validation.

    Safe to trace (``jax.grad``, ``jax.vmap``) from a sampler or optimizer.

    Parameters
    ----------
    y : ArrayLike, shape (n_units,)
        Number of surveys with a detection for each unit.
    n_trials : ArrayLike
        Number of surveys per unit (K).
    p : ArrayLike, shape () or (n_units,)
        Detection probability.
    psi : ArrayLike, shape () or (n_units,)
        Occupancy probability.

    Returns
    -------
    log_likelihood : jnp.ndarray, shape (n_units,)
    """
    y = jnp.asarray(y)
    log_lik_occupied = binomial_log_pmf(y, n_trials, p)
    return marginalize_occupancy(safe_log(psi), log1m(psi), log_lik_occupied, y > 0)


def _check_inputs(
    n_units: int, n_trials: int, y: ArrayLike, p: ArrayLike, psi: ArrayLike
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    val.ensure_positive_integer(n_units, "n_units")
    val.ensure_positive_integer(n_trials, "n_trials")
    p = as_probability(p, "p", n_units)
    psi = as_probability(psi, "psi", n_units)

    y = val.as_float_array(y, "y")
    val.ensure_shape(y, "y", (n_units,))
    val.ensure_counts(y, "y", n_trials)

    return y, p, psi


def evaluate_pointwise(
    n_units: int, n_trials: int, y: ArrayLike, p: ArrayLike, psi: ArrayLike
) -> np.ndarray:
    """Validated per-unit marginal log likelihoods.

    Parameters
    ----------
    n_units : int
        Number of units (N).
    n_trials : int
        Number of surveys per unit (K).
    y : array-like, shape (n_units,)
        Detection counts, each in [0, n_trials].
    p : float or array-like, shape (n_units,)
        Detection probability.
    psi : float or array-like, shape (n_units,)
        Occupancy probability.

    Returns
    -------
    log_likelihood : np.ndarray, shape (n_units,)
    """
    y, p, psi = _check_inputs(n_units, n_trials, y, p, psi)
    with x64_precision():
        return np.asarray(single_season_pointwise_log_likelihood(y, n_trials, p, psi))


def evaluate(
    n_units: int,
    n_trials: int,
    y: ArrayLike,
    p: ArrayLike,
    psi: ArrayLike,
    *,
    p_prior: BetaPrior | None = None,
    psi_prior: BetaPrior | None = None,
) -> float:
    """Total log likelihood of the single-season occupancy model.

    Returns the sum of the per-unit marginal log likelihoods plus the prior
    log densities of `p` and `psi` (both uniform by default, contributing 0).

    Parameters
    ----------
    n_units : int
        Number of units (N >= 1).
    n_trials : int
        Number of surveys per unit (K >= 1).
    y : array-like, shape (n_units,)
        Detection counts, each in [0, n_trials].
    p : float or array-like, shape (n_units,)
        Detection probability in [0, 1].
    psi : float or array-like, shape (n_units,)
        Occupancy probability in [0, 1].
    p_prior, psi_prior : BetaPrior, optional
        Priors on `p` and `psi`. Defaults to Beta(1, 1).

    Returns
    -------
    log_likelihood : float
        Finite and <= 0 under uniform priors, or -inf when the data are
        impossible (e.g. `psi = 0` and some `y > 0`).

    Raises
    ------
    InvalidParameterError
        If `p` or `psi` is outside [0, 1].
    ShapeMismatchError
        If `y`, `p` or `psi` do not match `n_units`.
    DataError
        If a count is not a whole number in [0, n_trials].

    Examples
    --------
    >>> round(evaluate(1, 3, [0], p=0.5, psi=0.5), 4)
    -0.5754
    >>> round(evaluate(1, 3, [2], p=0.5, psi=0.5), 4)
    -1.674
    """
    y, p, psi = _check_inputs(n_units, n_trials, y, p, psi)
    with x64_precision():
        log_likelihood = jnp.sum(
            single_season_pointwise_log_likelihood(y, n_trials, p, psi)
        ) + log_prior({"p": p, "psi": psi}, {"p": p_prior, "psi": psi_prior})
        return to_float(log_likelihood, "Single-season")
