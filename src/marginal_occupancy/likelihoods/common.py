"""Helpers shared by the single-season and dynamic evaluators."""

from logging import getLogger

import jax
import jax.numpy as jnp
import numpy as np

from marginal_occupancy import _validation as val

logger = getLogger(__name__)


def x64_precision(enabled: bool = True):
    """Context manager that sets JAX 64-bit mode within its block.

    The validated evaluators run under ``x64_precision()`` so that tiny
    probabilities (e.g. ``psi = 1e-50``) and large survey counts keep their
    float64 precision whatever the global ``jax_enable_x64`` flag says.
    Jitted functions are recompiled for each setting.
    """
    if hasattr(jax, "enable_x64"):
        return jax.enable_x64(enabled)
    from jax.experimental import disable_x64, enable_x64

    return enable_x64() if enabled else disable_x64()


def as_probability(value, name: str, n_units: int) -> np.ndarray:
    """Validate a probability parameter and return it as a float array.

    Parameters
    ----------
    value : float or array-like, shape () or (n_units,)
    name : str
    n_units : int

    Returns
    -------
    value : np.ndarray, shape () or (n_units,)
    """
    val.ensure_parameter_shape(value, name, n_units)
    val.ensure_probability(value, name)
    return np.asarray(value, dtype=float)


def to_float(log_likelihood: jnp.ndarray, name: str) -> float:
    """Convert a total log likelihood to a Python float.

    -inf is a valid result (the data are impossible under the parameters).
    NaN is never valid and is logged before being returned.
    """
    log_likelihood = float(log_likelihood)
    if np.isnan(log_likelihood):
        logger.warning(
            "%s log likelihood is NaN; the inputs passed validation, so this "
            "indicates a numerical defect",
            name,
        )
    return log_likelihood
