"""
Block Matrices
==============

Dense matrices that remember their block partition, so stage-indexed
components of condensed matrices can be read back directly.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple, Union

import numpy as np


class BlockMatrix:
    """
    Dense array with a block partition along each axis.

    Args:
        data: 1-D or 2-D array
        row_sizes: Sizes of the row blocks (must sum to ``data.shape[0]``)
        col_sizes: Sizes of the column blocks (2-D data only)

    Example:
        >>> M = BlockMatrix(np.arange(16.0).reshape(4, 4), [2, 2], [2, 2])
        >>> M.block(1, 0)
        array([[ 8.,  9.],
               [12., 13.]])
    """

    def __init__(
        self,
        data: np.ndarray,
        row_sizes: Sequence[int],
        col_sizes: Optional[Sequence[int]] = None,
    ) -> None:
        self.data = np.asarray(data)
        self.row_sizes = tuple(int(s) for s in row_sizes)

        if sum(self.row_sizes) != self.data.shape[0]:
            raise ValueError(
                f"Row blocks sum to {sum(self.row_sizes)}, data has {self.data.shape[0]} rows"
            )

        if self.data.ndim == 1:
            if col_sizes is not None:
                raise ValueError("col_sizes given for 1-D data")
            self.col_sizes: Optional[Tuple[int, ...]] = None
        elif self.data.ndim == 2:
            if col_sizes is None:
                col_sizes = [self.data.shape[1]]
            self.col_sizes = tuple(int(s) for s in col_sizes)
            if sum(self.col_sizes) != self.data.shape[1]:
                raise ValueError(
                    f"Column blocks sum to {sum(self.col_sizes)}, data has {self.data.shape[1]} columns"
                )
        else:
            raise ValueError(f"BlockMatrix data must be 1-D or 2-D, got {self.data.ndim}-D")

        self._row_offsets = np.concatenate([[0], np.cumsum(self.row_sizes)]).astype(int)
        if self.col_sizes is not None:
            self._col_offsets = np.concatenate([[0], np.cumsum(self.col_sizes)]).astype(int)

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.data.shape

    @property
    def ndim(self) -> int:
        return self.data.ndim

    @property
    def block_shape(self) -> Tuple[int, ...]:
        """Number of blocks along each axis."""
        if self.col_sizes is None:
            return (len(self.row_sizes),)
        return (len(self.row_sizes), len(self.col_sizes))

    def _slices(self, i: int, j: Optional[int]) -> Union[slice, Tuple[slice, slice]]:
        rows = slice(self._row_offsets[i], self._row_offsets[i + 1])
        if self.col_sizes is None:
            if j not in (None, 0):
                raise IndexError("Block vectors only have one block column")
            return rows
        if j is None:
            raise IndexError("A column block index is required for 2-D block matrices")
        cols = slice(self._col_offsets[j], self._col_offsets[j + 1])
        return rows, cols

    def block(self, i: int, j: Optional[int] = None) -> np.ndarray:
        """View of block ``(i, j)`` (0-based)."""
        return self.data[self._slices(i, j)]

    def set_block(self, i: int, j: Optional[int], value: np.ndarray) -> None:
        """Overwrite block ``(i, j)`` in place."""
        self.data[self._slices(i, j)] = value

    def copy(self) -> "BlockMatrix":
        return BlockMatrix(self.data.copy(), self.row_sizes, self.col_sizes)

    @property
    def T(self) -> "BlockMatrix":
        if self.col_sizes is None:
            return BlockMatrix(self.data, self.row_sizes)
        return BlockMatrix(self.data.T, self.col_sizes, self.row_sizes)

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self.data
        return self.data.astype(dtype)

    def __matmul__(self, other):
        return self.data @ np.asarray(other)

    def __rmatmul__(self, other):
        return np.asarray(other) @ self.data

    def __getitem__(self, key):
        return self.data[key]

    def __len__(self) -> int:
        return self.data.shape[0]

    def __repr__(self) -> str:
        return f"BlockMatrix(shape={self.shape}, blocks={self.block_shape})"


def block_kron(A: np.ndarray, B: np.ndarray) -> BlockMatrix:
    """
    Kronecker product ``A ⊗ B`` partitioned into ``B``-sized blocks.

    Args:
        A: 1-D or 2-D coefficient array (e.g. ``np.eye(N)`` or ``np.ones(N)``)
        B: 1-D or 2-D array replicated into each block

    Returns:
        BlockMatrix with ``A.shape`` blocks, each equal to ``A[i, j] * B``.
        A 1-D ``A`` gives a single block column; 1-D ``A`` and ``B`` give a
        block vector.
    """
    A = np.asarray(A, dtype=np.float64)
    B = np.asarray(B, dtype=np.float64)

    if A.ndim == 1 and B.ndim == 1:
        return BlockMatrix(np.kron(A, B), [B.shape[0]] * A.shape[0])

    A2 = A.reshape(-1, 1) if A.ndim == 1 else A
    B2 = B.reshape(-1, 1) if B.ndim == 1 else B

    n, m = A2.shape
    a, b = B2.shape

    return BlockMatrix(np.kron(A2, B2), [a] * n, [b] * m)
