"""Posterior probability that each unit is occupied.

Summing the occupancy state out of the likelihood does not lose it: given
the parameters, Bayes' rule recovers

.. math::
    P(z_i = 1 \\mid y_i) = \\frac{\\psi \\, P(y_i \\mid z_i = 1)}{P(y_i)},

which is 1 for any unit with a detection (no false positives) and
shrinks toward 0 for undetected units as detection probability grows.
"""

import jax.numpy as jnp
import numpy as np
from jax.typing import ArrayLike

from marginal_occupancy.core import bernoulli_log_pmf, binomial_log_pmf, safe_log
from marginal_occupancy.likelihoods import dynamic, single_season
from marginal_occupancy.likelihoods.common import x64_precision


def _conditional_occupancy(
    log_occupied: jnp.ndarray, log_marginal: jnp.ndarray, detected: jnp.ndarray
) -> np.ndarray:
    return np.asarray(jnp.where(detected, 1.0, jnp.exp(log_occupied - log_marginal)))


def single_season_occupancy_posterior(
    n_units: int, n_trials: int, y: ArrayLike, p: ArrayLike, psi: ArrayLike
) -> np.ndarray:
    """P(z_i = 1 | y_i) for the single-season model.

    Parameters
    ----------
    n_units : int
    n_trials : int
    y : array-like, shape (n_units,)
        Detection counts.
    p, psi : float or array-like, shape (n_units,)

    Returns
    -------
    occupancy_probability : np.ndarray, shape (n_units,)
        1 for units with a detection. NaN for an undetected unit whose
        observation is impossible under the parameters.

    Examples
    --------
    >>> single_season_occupancy_posterior(2, 3, [0, 2], p=0.5, psi=0.5)
    array([0.11111111, 1.        ])
    """
    y, p, psi = single_season._check_inputs(n_units, n_trials, y, p, psi)
    with x64_precision():
        log_occupied = safe_log(psi) + binomial_log_pmf(y, n_trials, p)
        log_marginal = single_season.single_season_pointwise_log_likelihood(
            y, n_trials, p, psi
        )
        return _conditional_occupancy(log_occupied, log_marginal, y > 0)


def dynamic_occupancy_posterior(
    n_units: int,
    n_seasons: int,
    y: ArrayLike,
    phi: ArrayLike,
    gamma: ArrayLike,
    psi1: ArrayLike,
    p: ArrayLike,
    *,
    n_repeats: int | None = None,
) -> np.ndarray:
    """P(z[i, t] = 1 | y[i, t, :]) under the implicit-dynamics model.

    Parameters
    ----------
    n_units, n_seasons : int
    y : array-like, shape (n_units, n_seasons, n_repeats)
        0/1 detection history.
    phi, gamma, psi1, p : float or array-like, shape (n_units,)
    n_repeats : int, optional

    Returns
    -------
    occupancy_probability : np.ndarray, shape (n_units, n_seasons)
    """
    y, phi, gamma, psi1, p = dynamic._check_inputs(
        n_units, n_seasons, y, phi, gamma, psi1, p, n_repeats
    )
    p_survey = p if p.ndim == 0 else p[:, None, None]
    with x64_precision():
        psi = dynamic.occupancy_trajectory(
            psi1, phi, gamma, n_seasons=n_seasons, n_units=n_units
        )
        log_occupied = safe_log(psi) + bernoulli_log_pmf(y, p_survey).sum(axis=-1)
        log_marginal = dynamic.dynamic_pointwise_log_likelihood(
            y, phi, gamma, psi1, p
        )
        return _conditional_occupancy(
            log_occupied, log_marginal, y.sum(axis=-1) > 0
        )
