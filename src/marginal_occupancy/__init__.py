from importlib.metadata import PackageNotFoundError, version

from marginal_occupancy.exceptions import (  # noqa
    ConfigurationError,
    ConvergenceError,
    DataError,
    FittingError,
    InvalidParameterError,
    OccupancyModelError,
    ShapeMismatchError,
    ValidationError,
)
from marginal_occupancy.likelihoods import (  # noqa
    evaluate,
    evaluate_dynamic,
    evaluate_dynamic_hmm,
    evaluate_dynamic_pointwise,
    evaluate_pointwise,
    get_likelihood,
    occupancy_trajectory,
)
from marginal_occupancy.models import DynamicOccupancy, SingleSeasonOccupancy  # noqa
from marginal_occupancy.posterior import (  # noqa
    dynamic_occupancy_posterior,
    single_season_occupancy_posterior,
)
from marginal_occupancy.priors import BetaPrior  # noqa
from marginal_occupancy.simulate.occupancy_simulation import (  # noqa
    simulate_dynamic,
    simulate_single_season,
)

try:
    __version__ = version("marginal-occupancy")
except PackageNotFoundError:
    pass
