"""Input validation utilities."""

from typing import Any, Optional, Union

import numpy as np

from ..exceptions import DimensionError, DomainError


def as_matrix(value: Any, dim: Optional[int] = None, name: str = "matrix") -> np.ndarray:
    """
    Convert a scalar, vector or matrix argument to a 2-D float array.

    Scalars become ``value * I`` of size ``dim`` and 1-D arrays become a
    single column.
    """
    arr = np.asarray(value, dtype=np.float64)

    if arr.ndim == 0:
        if dim is None:
            raise DimensionError(f"{name} is a scalar but no dimension was given")
        return float(arr) * np.eye(dim)
    if arr.ndim == 1:
        return arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise DimensionError(f"{name} must be 2D, got shape {arr.shape}")
    return arr


def as_bounds(value: Union[float, np.ndarray], dim: int, name: str) -> np.ndarray:
    """Broadcast a scalar bound to ``dim`` entries, or validate a bound vector."""
    arr = np.asarray(value, dtype=np.float64).ravel()

    if np.any(np.isnan(arr)):
        raise DomainError(f"{name} contains NaN values")

    if arr.shape[0] == 1:
        return np.full(dim, arr[0])
    if arr.shape[0] != dim:
        raise DimensionError(f"{name} must have {dim} entries, got {arr.shape[0]}")
    return arr


def check_shape(M: np.ndarray, shape: tuple, name: str) -> None:
    """Raise DimensionError if ``M`` does not have ``shape``."""
    if M.shape != shape:
        raise DimensionError(f"{name} must be {shape}, got {M.shape}")


def check_symmetric(M: np.ndarray, name: str, tol: float = 1e-10) -> None:
    """Raise DomainError if ``M`` is not symmetric."""
    if M.shape[0] != M.shape[1] or not np.allclose(M, M.T, atol=tol, rtol=0.0):
        raise DomainError(f"{name} must be symmetric")


def check_positive_definite(M: np.ndarray, name: str) -> None:
    """Raise DomainError if ``M`` is not symmetric positive definite."""
    check_symmetric(M, name)
    try:
        np.linalg.cholesky(M)
    except np.linalg.LinAlgError:
        raise DomainError(f"{name} must be symmetric positive definite") from None
