from collections.abc import Callable

from marginal_occupancy.exceptions import ConfigurationError
from marginal_occupancy.likelihoods.dynamic import (  # noqa
    dynamic_hmm_log_likelihood,
    dynamic_pointwise_log_likelihood,
    evaluate_dynamic,
    evaluate_dynamic_hmm,
    evaluate_dynamic_pointwise,
    occupancy_trajectory,
)
from marginal_occupancy.likelihoods.single_season import (  # noqa
    evaluate,
    evaluate_pointwise,
    single_season_pointwise_log_likelihood,
)

_OCCUPANCY_LIKELIHOODS: dict[str, Callable[..., float]] = {
    "single_season": evaluate,
    "dynamic": evaluate_dynamic,
    "dynamic_hmm": evaluate_dynamic_hmm,
}


def get_likelihood(name: str) -> Callable[..., float]:
    """Look up a validated log-likelihood evaluator by name.

    Parameters
    ----------
    name : {"single_season", "dynamic", "dynamic_hmm"}

    Returns
    -------
    evaluator : Callable[..., float]

    Raises
    ------
    ConfigurationError
        If `name` is not a known likelihood.
    """
    try:
        return _OCCUPANCY_LIKELIHOODS[name]
    except KeyError as err:
        raise ConfigurationError(
            f"Unknown likelihood {name!r}",
            hint=f"Choose one of {sorted(_OCCUPANCY_LIKELIHOODS)}",
        ) from err
