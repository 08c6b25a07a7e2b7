"""Utility helpers: block matrices and argument validation."""

from .blocks import BlockMatrix, block_kron

__all__ = ["BlockMatrix", "block_kron"]
