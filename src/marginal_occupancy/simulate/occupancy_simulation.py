"""Simulate detection data from single-season and dynamic occupancy models.

The simulated latent occupancy states are returned alongside the
observations so tests and examples can compare estimates against truth.
"""

from dataclasses import dataclass

import numpy as np

from marginal_occupancy import _validation as val

N_UNITS = 100
N_TRIALS = 4
N_SEASONS = 5
N_REPEATS = 3


@dataclass
class SingleSeasonData:
    """Simulated single-season survey.

    Attributes
    ----------
    y : np.ndarray, shape (n_units,)
        Number of surveys with a detection at each unit.
    z : np.ndarray, shape (n_units,)
        True occupancy state (0/1).
    n_trials : int
        Surveys per unit.
    """

    y: np.ndarray
    z: np.ndarray
    n_trials: int

    @property
    def n_units(self) -> int:
        return self.y.shape[0]


@dataclass
class DynamicData:
    """Simulated multi-season survey.

    Attributes
    ----------
    y : np.ndarray, shape (n_units, n_seasons, n_repeats)
        0/1 detection history.
    z : np.ndarray, shape (n_units, n_seasons)
        True occupancy state in each season (0/1).
    """

    y: np.ndarray
    z: np.ndarray

    @property
    def n_units(self) -> int:
        return self.y.shape[0]

    @property
    def n_seasons(self) -> int:
        return self.y.shape[1]

    @property
    def n_repeats(self) -> int:
        return self.y.shape[2]


def _check_parameter(value, name: str, n_units: int) -> np.ndarray:
    val.ensure_parameter_shape(value, name, n_units)
    val.ensure_probability(value, name)
    return np.broadcast_to(np.asarray(value, dtype=float), (n_units,))


def simulate_single_season(
    n_units: int = N_UNITS,
    n_trials: int = N_TRIALS,
    p: float | np.ndarray = 0.5,
    psi: float | np.ndarray = 0.5,
    seed: int | None = 0,
) -> SingleSeasonData:
    """Draw occupancy states and detection counts.

    Parameters
    ----------
    n_units : int, optional
        Number of units. Default is 100.
    n_trials : int, optional
        Surveys per unit. Default is 4.
    p : float or np.ndarray, shape (n_units,), optional
        Detection probability. Default is 0.5.
    psi : float or np.ndarray, shape (n_units,), optional
        Occupancy probability. Default is 0.5.
    seed : int or None, optional
        Random seed for reproducibility. If None, uses system randomness.

    Returns
    -------
    data : SingleSeasonData
    """
    val.ensure_positive_integer(n_units, "n_units")
    val.ensure_positive_integer(n_trials, "n_trials")
    p = _check_parameter(p, "p", n_units)
    psi = _check_parameter(psi, "psi", n_units)

    rng = np.random.default_rng(seed)
    z = rng.binomial(1, psi)
    y = rng.binomial(n_trials, z * p)

    return SingleSeasonData(y=y, z=z, n_trials=n_trials)


def simulate_dynamic(
    n_units: int = N_UNITS,
    n_seasons: int = N_SEASONS,
    n_repeats: int = N_REPEATS,
    phi: float | np.ndarray = 0.8,
    gamma: float | np.ndarray = 0.2,
    psi1: float | np.ndarray = 0.5,
    p: float | np.ndarray = 0.5,
    seed: int | None = 0,
) -> DynamicData:
    """Draw an occupancy history for each unit and repeat-survey detections.

    Occupancy follows a two-state Markov chain: an occupied unit stays
    occupied with probability `phi` and an empty one is colonized with
    probability `gamma`.

    Parameters
    ----------
    n_units : int, optional
        Number of units. Default is 100.
    n_seasons : int, optional
        Number of seasons. Default is 5.
    n_repeats : int, optional
        Repeat surveys per season. Default is 3.
    phi : float or np.ndarray, shape (n_units,), optional
        Persistence probability. Default is 0.8.
    gamma : float or np.ndarray, shape (n_units,), optional
        Colonization probability. Default is 0.2.
    psi1 : float or np.ndarray, shape (n_units,), optional
        First-season occupancy probability. Default is 0.5.
    p : float or np.ndarray, shape (n_units,), optional
        Detection probability. Default is 0.5.
    seed : int or None, optional
        Random seed for reproducibility. If None, uses system randomness.

    Returns
    -------
    data : DynamicData
    """
    val.ensure_positive_integer(n_units, "n_units")
    val.ensure_positive_integer(n_seasons, "n_seasons")
    val.ensure_positive_integer(n_repeats, "n_repeats")
    phi = _check_parameter(phi, "phi", n_units)
    gamma = _check_parameter(gamma, "gamma", n_units)
    psi1 = _check_parameter(psi1, "psi1", n_units)
    p = _check_parameter(p, "p", n_units)

    rng = np.random.default_rng(seed)
    z = np.zeros((n_units, n_seasons), dtype=int)
    z[:, 0] = rng.binomial(1, psi1)
    for season in range(1, n_seasons):
        previous = z[:, season - 1]
        z[:, season] = rng.binomial(1, np.where(previous == 1, phi, gamma))

    y = rng.binomial(1, (z * p[:, None])[..., None], size=(n_units, n_seasons, n_repeats))

    return DynamicData(y=y, z=z)
