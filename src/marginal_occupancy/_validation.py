"""Internal validation utilities for parameter and data checking.

These checks run eagerly on concrete numpy arrays, before any JAX tracing,
so that bad input fails synchronously with a readable message.

These functions are for internal use only (note the leading underscore in module name).
"""

from typing import Any

import numpy as np

from marginal_occupancy.exceptions import (
    DataError,
    InvalidParameterError,
    ShapeMismatchError,
    ValidationError,
)


def ensure_positive_integer(value: Any, name: str) -> None:
    """Verify a declared size is an integer >= 1.

    Parameters
    ----------
    value : Any
        Value to check
    name : str
        Name of the parameter for error messages

    Raises
    ------
    ValidationError
        If value is not an integer or is less than 1

    Examples
    --------
    >>> ensure_positive_integer(3, "n_trials")  # OK
    >>> ensure_positive_integer(0, "n_trials")  # Raises
    """
    if isinstance(value, (bool, np.bool_)) or not isinstance(
        value, (int, np.integer)
    ):
        raise ValidationError(
            f"{name} must be an integer",
            expected=f"{name} >= 1 (int)",
            got=f"{name} = {value!r} ({type(value).__name__})",
            example=f"    {name} = 3",
        )

    if value < 1:
        raise ValidationError(
            f"Invalid value for {name}",
            expected=f"{name} >= 1",
            got=f"{name} = {value}",
            hint="Declared sizes count units, seasons or surveys and cannot be empty",
        )


def ensure_probability(value: Any, name: str) -> None:
    """Verify all elements of a probability parameter lie in [0, 1].

    NaN values fail the check.

    Parameters
    ----------
    value : float or np.ndarray
        Parameter to check
    name : str
        Name of the parameter for error messages

    Raises
    ------
    InvalidParameterError
        If any element is outside [0, 1] or is NaN

    Examples
    --------
    >>> ensure_probability(0.5, "psi")  # OK
    >>> ensure_probability(np.array([0.2, 1.3]), "psi")  # Raises
    """
    arr = np.asarray(value, dtype=float)
    is_valid = (arr >= 0.0) & (arr <= 1.0)

    if not np.all(is_valid):
        n_bad = int(np.sum(~is_valid))
        bad = arr[~is_valid] if arr.ndim > 0 else arr
        raise InvalidParameterError(
            f"Invalid value for {name}",
            expected=f"{name} in [0, 1]",
            got=f"{n_bad} value(s) outside [0, 1]: {np.atleast_1d(bad)[:5].tolist()}",
            hint=f"{name} is a probability. Transform unconstrained values with a "
            "logistic function before evaluating the likelihood",
        )


def ensure_parameter_shape(value: Any, name: str, n_units: int) -> None:
    """Verify a parameter is shared (scalar) or has one value per unit.

    Parameters
    ----------
    value : float or np.ndarray
        Parameter to check
    name : str
        Name of the parameter for error messages
    n_units : int
        Declared number of units

    Raises
    ------
    ShapeMismatchError
        If the parameter shape is neither () nor (n_units,)

    Examples
    --------
    >>> ensure_parameter_shape(0.5, "p", 10)  # OK
    >>> ensure_parameter_shape(np.full(10, 0.5), "p", 10)  # OK
    >>> ensure_parameter_shape(np.full(9, 0.5), "p", 10)  # Raises
    """
    shape = np.shape(value)
    if shape not in ((), (n_units,)):
        raise ShapeMismatchError(
            f"{name} must be a scalar or have one value per unit",
            expected=f"shape () or ({n_units},)",
            got=f"shape {shape}",
            hint=f"Pass a single float for a shared {name}",
        )


def as_float_array(value: Any, name: str) -> np.ndarray:
    """Coerce observed data to a rectangular float array.

    Parameters
    ----------
    value : array-like
        Data to convert
    name : str
        Name of the data for error messages

    Returns
    -------
    arr : np.ndarray

    Raises
    ------
    ShapeMismatchError
        If nested sequences have inconsistent lengths (a ragged array)
    DataError
        If the values are not numeric

    Examples
    --------
    >>> as_float_array([[0, 1], [1, 1]], "y")  # OK
    >>> as_float_array([[0, 1], [1]], "y")  # Raises
    """
    try:
        return np.asarray(value, dtype=float)
    except (TypeError, ValueError) as err:
        try:
            items = np.asarray(value, dtype=object).ravel()
            is_ragged = any(np.ndim(item) > 0 for item in items)
        except ValueError:
            # nested arrays that cannot share even an object container
            is_ragged = True
        if is_ragged:
            raise ShapeMismatchError(
                f"{name} is ragged",
                expected="nested sequences of equal length along every axis",
                got=str(err),
                hint="Every unit needs the same number of seasons and surveys",
            ) from err
        raise DataError(
            f"{name} must contain numeric values",
            data_name=name,
            hint=str(err),
        ) from err


def ensure_shape(arr: np.ndarray, name: str, expected_shape: tuple) -> None:
    """Verify an array matches the declared dimensions.

    ``None`` entries in `expected_shape` match any size along that axis.

    Parameters
    ----------
    arr : np.ndarray
        Array to check
    name : str
        Name of the array for error messages
    expected_shape : tuple
        Declared shape

    Raises
    ------
    ShapeMismatchError
        If the number of dimensions or any declared size differs

    Examples
    --------
    >>> ensure_shape(np.zeros((5, 3, 2)), "y", (5, 3, None))  # OK
    >>> ensure_shape(np.zeros((5, 2, 2)), "y", (5, 3, None))  # Raises
    """
    expected_str = "(" + ", ".join(
        "R" if size is None else str(size) for size in expected_shape
    ) + ("," if len(expected_shape) == 1 else "") + ")"

    if arr.ndim != len(expected_shape) or any(
        size is not None and size != actual
        for size, actual in zip(expected_shape, arr.shape)
    ):
        raise ShapeMismatchError(
            f"{name} does not match the declared dimensions",
            expected=f"shape {expected_str}",
            got=f"shape {arr.shape}",
            hint="Check the declared number of units, seasons and repeat surveys",
        )


def ensure_all_finite(arr: np.ndarray, name: str) -> None:
    """Verify all array elements are finite (no NaN or Inf).

    Raises
    ------
    DataError
        If array contains NaN or Inf values
    """
    if not np.all(np.isfinite(arr)):
        n_nan = np.sum(np.isnan(arr))
        n_inf = np.sum(np.isinf(arr))
        raise DataError(
            f"Found non-finite values in {name}",
            data_name=name,
            hint=f"Array contains {n_nan} NaN value(s) and {n_inf} Inf value(s). "
            "Missing surveys are not supported; drop them before evaluating.",
        )


def ensure_counts(y: np.ndarray, name: str, n_trials: int) -> None:
    """Verify counts are integers in [0, n_trials].

    Parameters
    ----------
    y : np.ndarray
        Observed counts
    name : str
        Name of the array for error messages
    n_trials : int
        Number of trials per unit

    Raises
    ------
    DataError
        If any count is non-finite, non-integer, negative or above n_trials

    Examples
    --------
    >>> ensure_counts(np.array([0, 2, 3]), "y", 3)  # OK
    >>> ensure_counts(np.array([0, 4]), "y", 3)  # Raises
    """
    ensure_all_finite(y, name)

    if not np.all(y == np.round(y)):
        raise DataError(
            f"{name} must contain whole-number counts",
            data_name=name,
            hint="Counts are the number of surveys with a detection",
        )

    if np.any(y < 0) or np.any(y > n_trials):
        raise DataError(
            f"{name} values must be in range [0, {n_trials}]",
            data_name=name,
            hint=f"Found values in [{y.min():g}, {y.max():g}]. A unit cannot be "
            "detected on more surveys than it received.",
        )


def ensure_binary(arr: np.ndarray, name: str) -> None:
    """Verify all array elements are 0 or 1.

    Raises
    ------
    DataError
        If any value is not 0 or 1
    """
    is_binary = (arr == 0) | (arr == 1)
    if not np.all(is_binary):
        n_bad = int(np.sum(~is_binary))
        raise DataError(
            f"{name} must contain only 0/1 detections",
            data_name=name,
            hint=f"Found {n_bad} non-binary value(s). Encode detection as 1 and "
            "non-detection as 0.",
        )
