"""Custom exceptions for marginal_occupancy.

Error messages should tell the user what was expected, what was received,
and how to fix it.

Usage Guidelines
----------------
- **InvalidParameterError**: A probability argument (detection, occupancy,
  colonization, persistence) lies outside [0, 1] or is NaN.

- **ShapeMismatchError**: Array dimensions disagree with the declared number
  of units, seasons or repeat surveys, or a parameter is neither scalar nor
  one value per unit.

- **DataError**: Observed values are outside their support, e.g. a count
  above the number of trials or a detection that is not 0/1.

- **ValidationError**: A declared size (units, trials, seasons, repeats) is
  not an integer >= 1.

- **ConfigurationError**: Prior hyperparameters are invalid, or an unknown
  likelihood was requested.

- **FittingError** / **ConvergenceError**: An estimator could not maximize the
  marginal log posterior.

All exceptions inherit from **OccupancyModelError**. A log-likelihood of
``-inf`` is a valid result (the data are impossible under the parameters) and
is never raised.

Examples
--------
>>> from marginal_occupancy.exceptions import (
...     InvalidParameterError,
...     OccupancyModelError,
... )
>>> try:
...     raise InvalidParameterError(
...         "Invalid value for psi",
...         expected="psi in [0, 1]",
...         got="psi = 1.2",
...     )
... except OccupancyModelError as e:
...     print(e)
"""


class OccupancyModelError(Exception):
    """Base exception for all marginal_occupancy errors."""

    pass


class ValidationError(OccupancyModelError):
    """Raised when input validation fails.

    Parameters
    ----------
    message : str
        Description of what went wrong
    expected : str, optional
        What was expected (for structured error messages)
    got : str, optional
        What was actually received
    hint : str, optional
        Actionable suggestion for fixing the error
    example : str, optional
        Code snippet showing correct usage

    Examples
    --------
    >>> raise ValidationError(
    ...     "Detection array has the wrong shape",
    ...     expected="shape (50, 4, 3)",
    ...     got="shape (50, 4)",
    ...     hint="Detections are indexed (unit, season, repeat survey)"
    ... )
    """

    def __init__(
        self,
        message: str,
        expected: str | None = None,
        got: str | None = None,
        hint: str | None = None,
        example: str | None = None,
    ):
        """Initialize ValidationError with structured message components."""
        parts = [message]

        if expected is not None:
            parts.append(f"\nExpected: {expected}")

        if got is not None:
            parts.append(f"Got: {got}")

        if hint is not None:
            parts.append(f"\nHint: {hint}")

        if example is not None:
            parts.append(f"\nExample:\n{example}")

        super().__init__("\n".join(parts))


class InvalidParameterError(ValidationError):
    """Raised when a probability parameter lies outside [0, 1].

    Inside a sampling loop this usually means the proposal should be
    rejected rather than the run aborted.
    """

    pass


class ShapeMismatchError(ValidationError):
    """Raised when array dimensions disagree with the declared sizes."""

    pass


class DataError(OccupancyModelError):
    """Raised when observed data are outside their support.

    Parameters
    ----------
    message : str
        Description of the data problem
    data_name : str, optional
        Name of the problematic data variable
    hint : str, optional
        Actionable suggestion for fixing the data issue

    Examples
    --------
    >>> raise DataError(
    ...     "Counts exceed the number of trials",
    ...     data_name="y",
    ...     hint="Each count must be at most n_trials"
    ... )
    """

    def __init__(
        self, message: str, data_name: str | None = None, hint: str | None = None
    ) -> None:
        if data_name is not None:
            message = f"{message} (data: {data_name})"
        if hint is not None:
            message = f"{message}\n\nHint: {hint}"
        super().__init__(message)


class ConfigurationError(OccupancyModelError):
    """Raised when configuration is invalid or inconsistent.

    Parameters
    ----------
    message : str
        Description of the configuration problem
    hint : str, optional
        Actionable suggestion for fixing the configuration
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        if hint is not None:
            message = f"{message}\n\nHint: {hint}"
        super().__init__(message)


class FittingError(OccupancyModelError):
    """Raised when maximizing the marginal log posterior fails.

    Parameters
    ----------
    message : str
        Description of what went wrong during fitting
    hint : str, optional
        Actionable suggestion for fixing the error

    Examples
    --------
    >>> raise FittingError(
    ...     "Objective evaluated to NaN",
    ...     hint="Check the detection history for non-binary values"
    ... )
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        if hint is not None:
            message = f"{message}\n\nHint: {hint}"
        super().__init__(message)


class ConvergenceError(FittingError):
    """Raised when the optimizer fails to converge.

    Parameters
    ----------
    message : str
        Description of the convergence failure
    iterations : int, optional
        Number of iterations attempted
    tolerance : float, optional
        Convergence tolerance that wasn't met
    hint : str, optional
        Actionable suggestion for fixing convergence issues
    """

    def __init__(
        self,
        message: str,
        iterations: int | None = None,
        tolerance: float | None = None,
        hint: str | None = None,
    ) -> None:
        if iterations is not None:
            message = f"{message} (iterations: {iterations})"
        if tolerance is not None:
            message = f"{message} (tolerance: {tolerance})"

        super().__init__(message, hint=hint)
