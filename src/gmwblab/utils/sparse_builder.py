# src/gmwblab/utils/sparse_builder.py
"""
Triplet (COO) accumulation for sparse operator assembly.

Operators append (row, column, value) blocks, then convert once to CSR.
Duplicate (row, column) pairs are summed on conversion.
"""

from typing import List, Tuple

import numpy as np
import scipy.sparse as sp


class SparseMatrixBuilder:
    """Accumulate sparse entries and emit a compressed matrix."""

    def __init__(self, shape: Tuple[int, int]):
        self.shape = shape
        self._rows: List[np.ndarray] = []
        self._cols: List[np.ndarray] = []
        self._vals: List[np.ndarray] = []

    def add(self, rows, cols, values) -> "SparseMatrixBuilder":
        """Append a block of entries; scalars broadcast against arrays."""
        rows, cols, values = np.broadcast_arrays(
            np.asarray(rows, dtype=np.int64),
            np.asarray(cols, dtype=np.int64),
            np.asarray(values, dtype=float),
        )
        self._rows.append(rows.ravel())
        self._cols.append(cols.ravel())
        self._vals.append(values.ravel())
        return self

    @property
    def nnz(self) -> int:
        return int(sum(v.size for v in self._vals))

    def to_csr(self) -> sp.csr_matrix:
        if not self._vals:
            return sp.csr_matrix(self.shape)
        matrix = sp.coo_matrix(
            (
                np.concatenate(self._vals),
                (np.concatenate(self._rows), np.concatenate(self._cols)),
            ),
            shape=self.shape,
        )
        return matrix.tocsr()
