"""Log-space numerical primitives for marginalizing binary occupancy states.

Everything here is a pure JAX function with no validation; the public
evaluators in :mod:`marginal_occupancy.likelihoods` check their inputs first.
"""

import jax
import jax.numpy as jnp
from jax.scipy.special import gammaln, logsumexp, xlog1py, xlogy
from jax.typing import ArrayLike


def safe_log(x: ArrayLike) -> jnp.ndarray:
    """Compute log of probabilities safely, handling zeros.

    Returns -inf for zero probabilities (valid in log space) instead of NaN.

    Parameters
    ----------
    x : ArrayLike
        Probability array (may contain zeros)

    Returns
    -------
    log_x : jnp.ndarray
        Log probabilities with -inf for zeros
    """
    x = jnp.asarray(x)
    return jnp.where(x > 0, jnp.log(jnp.where(x > 0, x, 1.0)), -jnp.inf)


def log1m(x: ArrayLike) -> jnp.ndarray:
    """Compute log(1 - x) without losing precision for small x."""
    return jnp.log1p(-jnp.asarray(x))


def log_sum_exp(a: ArrayLike, b: ArrayLike) -> jnp.ndarray:
    """Element-wise log(exp(a) + exp(b)) with the maximum factored out.

    Returns -inf where both `a` and `b` are -inf.
    """
    return logsumexp(jnp.stack(jnp.broadcast_arrays(a, b)), axis=0)


def binomial_log_pmf(y: ArrayLike, n_trials: ArrayLike, p: ArrayLike) -> jnp.ndarray:
    """Log probability of `y` successes in `n_trials` Bernoulli(p) trials.

    Exact at the boundaries: `p = 0` gives 0 for `y = 0` and -inf otherwise,
    `p = 1` gives 0 for `y = n_trials` and -inf otherwise.

    Parameters
    ----------
    y : ArrayLike
        Number of successes
    n_trials : ArrayLike
        Number of trials
    p : ArrayLike
        Success probability

    Returns
    -------
    log_pmf : jnp.ndarray
    """
    y = jnp.asarray(y, dtype=jnp.result_type(float))
    n_trials = jnp.asarray(n_trials, dtype=y.dtype)
    log_n_choose_y = gammaln(n_trials + 1.0) - gammaln(y + 1.0) - gammaln(
        n_trials - y + 1.0
    )
    return log_n_choose_y + xlogy(y, p) + xlog1py(n_trials - y, -jnp.asarray(p))


def bernoulli_log_pmf(y: ArrayLike, p: ArrayLike) -> jnp.ndarray:
    """Log probability of a single 0/1 outcome."""
    y = jnp.asarray(y, dtype=jnp.result_type(float))
    return xlogy(y, p) + xlog1py(1.0 - y, -jnp.asarray(p))


def marginalize_occupancy(
    log_psi: ArrayLike,
    log1m_psi: ArrayLike,
    log_lik_occupied: ArrayLike,
    detected: ArrayLike,
) -> jnp.ndarray:
    """Sum the binary occupancy state out of a unit's likelihood.

    An unoccupied unit can only produce all-zero observations, so the
    unoccupied term is added only where nothing was detected.

    Parameters
    ----------
    log_psi : ArrayLike
        log P(z = 1)
    log1m_psi : ArrayLike
        log P(z = 0)
    log_lik_occupied : ArrayLike
        log P(observations | z = 1)
    detected : ArrayLike, bool
        Whether the unit had at least one detection

    Returns
    -------
    log_marginal : jnp.ndarray
        log P(observations), summed over z
    """
    log_occupied = log_psi + log_lik_occupied
    return jnp.where(detected, log_occupied, log_sum_exp(log_occupied, log1m_psi))


## NOTE: adapted from dynamax: https://github.com/probml/dynamax/ with modifications ##
def forward_log_normalizer(
    initial_distribution: ArrayLike,
    transition_matrix: ArrayLike,
    log_likelihoods: ArrayLike,
) -> jnp.ndarray:
    """Marginal log likelihood of a hidden Markov chain, log P(x_{1:T}).

    Runs the forward pass of the forward-backward algorithm entirely in log
    space, so zero-probability states and transitions stay exact.

    Parameters
    ----------
    initial_distribution : jnp.ndarray, shape (n_states,)
        Probability distribution of the initial state, P(z_1).
    transition_matrix : jnp.ndarray, shape (n_states, n_states)
        State transition probability matrix, P(z_t | z_{t-1}).
    log_likelihoods : jnp.ndarray, shape (n_time, n_states)
        Log likelihood of the observations for each state at each time step,
        log P(x_t | z_t).

    Returns
    -------
    marginal_log_likelihood : jnp.ndarray, shape ()
        log P(x_{1:T}); -inf if the observations are impossible.
    """
    dtype = jnp.result_type(initial_distribution, transition_matrix, log_likelihoods)
    log_transition = safe_log(jnp.asarray(transition_matrix, dtype=dtype))

    def _step(log_predicted, ll):
        # log P(z_t, x_{1:t})
        log_joint = log_predicted + ll
        log_predicted_next = logsumexp(log_joint[:, None] + log_transition, axis=0)
        return log_predicted_next, log_joint

    _, log_joint = jax.lax.scan(
        _step,
        safe_log(jnp.asarray(initial_distribution, dtype=dtype)),
        jnp.asarray(log_likelihoods, dtype=dtype),
    )
    return logsumexp(log_joint[-1])


forward_log_normalizer = jax.jit(forward_log_normalizer)
