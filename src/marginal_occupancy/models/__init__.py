from marginal_occupancy.models.dynamic import DynamicOccupancy  # noqa
from marginal_occupancy.models.single_season import SingleSeasonOccupancy  # noqa
