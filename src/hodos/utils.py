"""
Utility functions for the Hodos package.
"""

import warnings
from typing import Optional, Type

import numpy as np

from .config import config


def validation_error(message: str, error_class: Type[Exception] = ValueError,
                     strict: Optional[bool] = None):
    """
    Raise error or warn based on a strictness flag.

    This function provides consistent validation behavior across the package.
    When strict (by default ``config.STRICT_VALIDATION``), raises the
    specified exception. Otherwise, issues a UserWarning instead.

    Parameters
    ----------
    message : str
        Validation error message
    error_class : Type[Exception], optional
        Exception class to raise if strict.
        Default: ValueError
    strict : bool, optional
        Overrides ``config.STRICT_VALIDATION`` for this call.

    Raises
    ------
    Exception (of type error_class)
        If strict

    Warns
    -----
    UserWarning
        If not strict

    Examples
    --------
    >>> from hodos.utils import validation_error
    >>> from hodos.errors import MissingEphemerisError
    >>> validation_error("Invalid value")  # Raises ValueError
    >>> validation_error("No rotation model", MissingEphemerisError,
    ...                  strict=False)  # Issues warning
    """
    if strict is None:
        strict = config.STRICT_VALIDATION
    if strict:
        raise error_class(message)
    else:
        warnings.warn(message, UserWarning, stacklevel=3)


def precision_name(dtype) -> str:
    """Short human-readable name of a floating point dtype."""
    dtype = np.dtype(dtype)
    if dtype == np.dtype(np.longdouble) and dtype != np.dtype(np.float64):
        return "long double"
    return dtype.name
