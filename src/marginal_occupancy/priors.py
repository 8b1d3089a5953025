"""Beta priors on probability parameters."""

from dataclasses import dataclass

import jax.numpy as jnp
import jax.scipy.stats
from jax.typing import ArrayLike

from marginal_occupancy.exceptions import ConfigurationError


@dataclass(frozen=True)
class BetaPrior:
    """Beta(alpha, beta) prior on a probability parameter.

    The default Beta(1, 1) is uniform on [0, 1] and contributes 0 to the
    log posterior.

    Parameters
    ----------
    alpha : float, default=1.0
    beta : float, default=1.0

    Examples
    --------
    >>> float(BetaPrior().log_prob(0.3))
    0.0
    >>> round(float(BetaPrior(2.0, 2.0).log_prob(0.5)), 4)  # log(1.5)
    0.4055
    """

    alpha: float = 1.0
    beta: float = 1.0

    def __post_init__(self) -> None:
        if not (self.alpha > 0 and self.beta > 0):
            raise ConfigurationError(
                f"Beta prior hyperparameters must be positive, got "
                f"alpha={self.alpha}, beta={self.beta}",
                hint="Use BetaPrior(1.0, 1.0) for a uniform prior",
            )

    def log_prob(self, x: ArrayLike) -> jnp.ndarray:
        """Summed log density over all elements of `x`."""
        return jnp.sum(jax.scipy.stats.beta.logpdf(x, self.alpha, self.beta))


_UNIFORM_PRIOR = BetaPrior()


def log_prior(
    params: dict[str, ArrayLike], priors: dict[str, BetaPrior | None]
) -> jnp.ndarray:
    """Sum of prior log densities.

    Parameters
    ----------
    params : dict[str, ArrayLike]
        Parameter values keyed by name.
    priors : dict[str, BetaPrior or None]
        Priors keyed by the same names. Missing or None entries are uniform.

    Returns
    -------
    log_prior : jnp.ndarray, shape ()
    """
    total = jnp.zeros(())
    for name, value in params.items():
        prior = priors.get(name)
        total += (_UNIFORM_PRIOR if prior is None else prior).log_prob(value)
    return total
