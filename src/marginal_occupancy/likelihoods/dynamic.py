"""Marginal log likelihood of the multi-season (dynamic) occupancy model.

Units are surveyed `R` times in each of `T` seasons. Between seasons an
occupied unit stays occupied with probability `phi` (persistence) and an
empty unit becomes occupied with probability `gamma` (colonization).

Two formulations are provided:

- The implicit-dynamics likelihood (:func:`evaluate_dynamic`) propagates the
  marginal occupancy probability forward,

  .. math::
      \\psi_{i,1} = \\psi_1, \\quad
      \\psi_{i,t} = \\psi_{i,t-1} \\phi + (1 - \\psi_{i,t-1}) \\gamma,

  and sums the occupancy state out of each unit-season independently.

- The exact likelihood (:func:`evaluate_dynamic_hmm`) treats each unit's
  occupancy history as a two-state Markov chain and sums out the whole
  history with the forward algorithm.

Both assume conditionally independent repeat surveys and no false-positive
detections.
"""

from functools import partial

import jax
import jax.numpy as jnp
import numpy as np
from jax.typing import ArrayLike

from marginal_occupancy import _validation as val
from marginal_occupancy.core import (
    bernoulli_log_pmf,
    forward_log_normalizer,
    log1m,
    marginalize_occupancy,
    safe_log,
)
from marginal_occupancy.exceptions import ShapeMismatchError
from marginal_occupancy.likelihoods.common import (
    as_probability,
    to_float,
    x64_precision,
)
from marginal_occupancy.priors import BetaPrior, log_prior


@partial(jax.jit, static_argnames=("n_seasons", "n_units"))
def occupancy_trajectory(
    psi1: ArrayLike,
    phi: ArrayLike,
    gamma: ArrayLike,
    n_seasons: int,
    n_units: int | None = None,
) -> jnp.ndarray:
    """Marginal occupancy probability of each unit in each season.

    Parameters
    ----------
    psi1 : ArrayLike, shape () or (n_units,)
        Occupancy probability in the first season.
    phi : ArrayLike, shape () or (n_units,)
        Persistence probability.
    gamma : ArrayLike, shape () or (n_units,)
        Colonization probability.
    n_seasons : int
        Number of seasons (T).
    n_units : int, optional
        Broadcast the result to this many units. By default the units are
        taken from the parameter shapes.

    Returns
    -------
    psi : jnp.ndarray, shape (n_units, n_seasons) or (n_seasons,)
        `psi[..., 0]` equals `psi1`.

    Examples
    --------
    >>> psi = occupancy_trajectory(0.5, 0.4, 0.2, n_seasons=3)
    >>> [round(float(x), 4) for x in psi]
    [0.5, 0.3, 0.26]
    """
    dtype = jnp.result_type(psi1, phi, gamma, float)
    shape = jnp.broadcast_shapes(jnp.shape(psi1), jnp.shape(phi), jnp.shape(gamma))
    if n_units is not None:
        shape = jnp.broadcast_shapes(shape, (n_units,))

    phi = jnp.broadcast_to(jnp.asarray(phi, dtype=dtype), shape)
    gamma = jnp.broadcast_to(jnp.asarray(gamma, dtype=dtype), shape)
    psi1 = jnp.broadcast_to(jnp.asarray(psi1, dtype=dtype), shape)

    def _step(psi_previous, _):
        psi_next = psi_previous * phi + (1.0 - psi_previous) * gamma
        # stays in [0, 1] under round-off
        psi_next = jnp.clip(psi_next, 0.0, 1.0)
        return psi_next, psi_next

    _, psi_later = jax.lax.scan(_step, psi1, None, length=n_seasons - 1)
    psi = jnp.concatenate([psi1[None], psi_later], axis=0)
    return jnp.moveaxis(psi, 0, -1)


def _per_survey(p: jnp.ndarray) -> jnp.ndarray:
    """Reshape a shared or per-unit detection probability to broadcast over
    (unit, season, survey)."""
    return p if p.ndim == 0 else p[:, None, None]


@jax.jit
def dynamic_pointwise_log_likelihood(
    y: ArrayLike,
    phi: ArrayLike,
    gamma: ArrayLike,
    psi1: ArrayLike,
    p: ArrayLike,
) -> jnp.ndarray:
    """Per unit-season marginal log likelihood (implicit dynamics), without
    input validation.

    Parameters
    ----------
    y : ArrayLike, shape (n_units, n_seasons, n_repeats)
        0/1 detection history.
    phi, gamma, psi1, p : ArrayLike, shape () or (n_units,)

    Returns
    -------
    log_likelihood : jnp.ndarray, shape (n_units, n_seasons)
    """
    y = jnp.asarray(y)
    n_units, n_seasons = y.shape[:2]
    psi = occupancy_trajectory(psi1, phi, gamma, n_seasons=n_seasons, n_units=n_units)

    log_lik_occupied = bernoulli_log_pmf(y, _per_survey(jnp.asarray(p))).sum(axis=-1)
    detected = y.sum(axis=-1) > 0

    return marginalize_occupancy(safe_log(psi), log1m(psi), log_lik_occupied, detected)


@jax.jit
def dynamic_hmm_log_likelihood(
    y: ArrayLike,
    phi: ArrayLike,
    gamma: ArrayLike,
    psi1: ArrayLike,
    p: ArrayLike,
) -> jnp.ndarray:
    """Per-unit exact marginal log likelihood of the occupancy history,
    without input validation.

    State 0 is unoccupied and state 1 is occupied.

    Parameters
    ----------
    y : ArrayLike, shape (n_units, n_seasons, n_repeats)
        0/1 detection history.
    phi, gamma, psi1, p : ArrayLike, shape () or (n_units,)

    Returns
    -------
    log_likelihood : jnp.ndarray, shape (n_units,)
    """
    y = jnp.asarray(y)
    n_units = y.shape[0]
    dtype = jnp.result_type(y, phi, gamma, psi1, p, float)
    phi, gamma, psi1, p = (
        jnp.broadcast_to(jnp.asarray(param, dtype=dtype), (n_units,))
        for param in (phi, gamma, psi1, p)
    )

    def _unit(y_unit, phi_unit, gamma_unit, psi1_unit, p_unit):
        initial_distribution = jnp.stack([1.0 - psi1_unit, psi1_unit])
        transition_matrix = jnp.stack(
            [
                jnp.stack([1.0 - gamma_unit, gamma_unit]),
                jnp.stack([1.0 - phi_unit, phi_unit]),
            ]
        )
        log_lik_occupied = bernoulli_log_pmf(y_unit, p_unit).sum(axis=-1)
        log_lik_empty = jnp.where(y_unit.sum(axis=-1) > 0, -jnp.inf, 0.0)
        log_likelihoods = jnp.stack([log_lik_empty, log_lik_occupied], axis=-1)
        return forward_log_normalizer(
            initial_distribution, transition_matrix, log_likelihoods
        )

    return jax.vmap(_unit)(y, phi, gamma, psi1, p)


def _check_inputs(
    n_units: int,
    n_seasons: int,
    y: ArrayLike,
    phi: ArrayLike,
    gamma: ArrayLike,
    psi1: ArrayLike,
    p: ArrayLike,
    n_repeats: int | None,
) -> tuple[np.ndarray, ...]:
    val.ensure_positive_integer(n_units, "n_units")
    val.ensure_positive_integer(n_seasons, "n_seasons")
    if n_repeats is not None:
        val.ensure_positive_integer(n_repeats, "n_repeats")

    phi = as_probability(phi, "phi", n_units)
    gamma = as_probability(gamma, "gamma", n_units)
    psi1 = as_probability(psi1, "psi1", n_units)
    p = as_probability(p, "p", n_units)

    y = val.as_float_array(y, "y")
    val.ensure_shape(y, "y", (n_units, n_seasons, n_repeats))
    if y.shape[-1] < 1:
        raise ShapeMismatchError(
            "y must contain at least one repeat survey per season",
            expected="shape (N, T, R) with R >= 1",
            got=f"shape {y.shape}",
        )
    val.ensure_binary(y, "y")

    return y, phi, gamma, psi1, p


def _priors(
    phi: np.ndarray,
    gamma: np.ndarray,
    psi1: np.ndarray,
    p: np.ndarray,
    phi_prior: BetaPrior | None,
    gamma_prior: BetaPrior | None,
    psi1_prior: BetaPrior | None,
    p_prior: BetaPrior | None,
) -> jnp.ndarray:
    return log_prior(
        {"phi": phi, "gamma": gamma, "psi1": psi1, "p": p},
        {"phi": phi_prior, "gamma": gamma_prior, "psi1": psi1_prior, "p": p_prior},
    )


def evaluate_dynamic_pointwise(
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
    """Validated per unit-season marginal log likelihoods (implicit dynamics).

    Returns
    -------
    log_likelihood : np.ndarray, shape (n_units, n_seasons)
    """
    y, phi, gamma, psi1, p = _check_inputs(
        n_units, n_seasons, y, phi, gamma, psi1, p, n_repeats
    )
    with x64_precision():
        return np.asarray(dynamic_pointwise_log_likelihood(y, phi, gamma, psi1, p))


def evaluate_dynamic(
    n_units: int,
    n_seasons: int,
    y: ArrayLike,
    phi: ArrayLike,
    gamma: ArrayLike,
    psi1: ArrayLike,
    p: ArrayLike,
    *,
    n_repeats: int | None = None,
    phi_prior: BetaPrior | None = None,
    gamma_prior: BetaPrior | None = None,
    psi1_prior: BetaPrior | None = None,
    p_prior: BetaPrior | None = None,
) -> float:
    """Total log likelihood of the dynamic occupancy model (implicit dynamics).

    Parameters
    ----------
    n_units : int
        Number of units (N >= 1).
    n_seasons : int
        Number of seasons (T >= 1).
    y : array-like, shape (n_units, n_seasons, n_repeats)
        0/1 detection history indexed (unit, season, repeat survey).
    phi : float or array-like, shape (n_units,)
        Persistence probability.
    gamma : float or array-like, shape (n_units,)
        Colonization probability.
    psi1 : float or array-like, shape (n_units,)
        First-season occupancy probability.
    p : float or array-like, shape (n_units,)
        Detection probability.
    n_repeats : int, optional
        Declared number of repeat surveys. Checked against `y` if given.
    phi_prior, gamma_prior, psi1_prior, p_prior : BetaPrior, optional
        Priors on the parameters. Default to Beta(1, 1).

    Returns
    -------
    log_likelihood : float
        Sum over all unit-seasons plus the prior terms. -inf when the data
        are impossible under the parameters.

    Raises
    ------
    InvalidParameterError
        If any probability is outside [0, 1].
    ShapeMismatchError
        If `y` or a per-unit parameter disagrees with the declared sizes.
    DataError
        If `y` has values other than 0 and 1.
    """
    y, phi, gamma, psi1, p = _check_inputs(
        n_units, n_seasons, y, phi, gamma, psi1, p, n_repeats
    )
    with x64_precision():
        log_likelihood = jnp.sum(
            dynamic_pointwise_log_likelihood(y, phi, gamma, psi1, p)
        ) + _priors(
            phi, gamma, psi1, p, phi_prior, gamma_prior, psi1_prior, p_prior
        )
        return to_float(log_likelihood, "Dynamic")


def evaluate_dynamic_hmm(
    n_units: int,
    n_seasons: int,
    y: ArrayLike,
    phi: ArrayLike,
    gamma: ArrayLike,
    psi1: ArrayLike,
    p: ArrayLike,
    *,
    n_repeats: int | None = None,
    phi_prior: BetaPrior | None = None,
    gamma_prior: BetaPrior | None = None,
    psi1_prior: BetaPrior | None = None,
    p_prior: BetaPrior | None = None,
) -> float:
    """Total exact log likelihood of the dynamic occupancy model.

    Takes the same arguments as :func:`evaluate_dynamic`. Each unit's
    occupancy history is summed out with the forward algorithm, so the
    result agrees with :func:`evaluate_dynamic` when `n_seasons == 1`.
    """
    y, phi, gamma, psi1, p = _check_inputs(
        n_units, n_seasons, y, phi, gamma, psi1, p, n_repeats
    )
    with x64_precision():
        log_likelihood = jnp.sum(
            dynamic_hmm_log_likelihood(y, phi, gamma, psi1, p)
        ) + _priors(
            phi, gamma, psi1, p, phi_prior, gamma_prior, psi1_prior, p_prior
        )
        return to_float(log_likelihood, "Dynamic HMM")
