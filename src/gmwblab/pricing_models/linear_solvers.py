# src/gmwblab/pricing_models/linear_solvers.py
"""
Sparse linear solvers.

    - SparseLUSolver: direct solve (SuperLU via scipy), deterministic.
    - BiCGSTABSolver: Krylov solve with a diagonal (Jacobi) preconditioner.

Both raise ``LinearSolveError`` instead of returning a truncated or
non-finite solution.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import numpy as np
import scipy.sparse as sp
from scipy.sparse.linalg import LinearOperator, bicgstab, spsolve

from gmwblab.exceptions import LinearSolveError


class LinearSolver(ABC):
    """Solves ``A x = b`` for a sparse square ``A``."""

    @abstractmethod
    def solve(self, A: sp.spmatrix, b: np.ndarray) -> np.ndarray:
        pass

    @staticmethod
    def _check(A, b) -> None:
        if A.shape[0] != A.shape[1]:
            raise LinearSolveError(details=f"matrix is not square: {A.shape}")
        if A.shape[0] != b.shape[0]:
            raise LinearSolveError(
                details=f"shape mismatch: A is {A.shape}, b has {b.shape[0]} rows"
            )


class SparseLUSolver(LinearSolver):
    def solve(self, A, b):
        self._check(A, b)
        x = np.atleast_1d(spsolve(sp.csc_matrix(A), np.asarray(b, dtype=float)))
        if not np.all(np.isfinite(x)):
            raise LinearSolveError(details="direct solve produced non-finite values")
        return x


@dataclass
class BiCGSTABSolver(LinearSolver):
    """
    Attributes:
        rtol: Relative residual tolerance.
        max_iterations: Iteration cap (scipy default when None).
    """

    rtol: float = 1e-12
    max_iterations: Optional[int] = None

    def solve(self, A, b):
        self._check(A, b)
        A = sp.csr_matrix(A)
        b = np.asarray(b, dtype=float)

        diagonal = A.diagonal()
        if np.any(diagonal == 0):
            raise LinearSolveError(details="zero on the diagonal; Jacobi preconditioner undefined")
        inverse_diagonal = 1.0 / diagonal
        M = LinearOperator(A.shape, matvec=lambda v: inverse_diagonal * np.ravel(v))

        x, info = bicgstab(A, b, rtol=self.rtol, atol=0.0, maxiter=self.max_iterations, M=M)
        if info > 0:
            raise LinearSolveError(details=f"BiCGSTAB did not converge in {info} iterations")
        if info < 0:
            raise LinearSolveError(details=f"BiCGSTAB breakdown (info={info})")
        if not np.all(np.isfinite(x)):
            raise LinearSolveError(details="BiCGSTAB produced non-finite values")
        return x
