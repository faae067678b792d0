from gmwblab.utils.sparse_builder import SparseMatrixBuilder
from gmwblab.utils.decorators.timing import timeit

__all__ = [
    "SparseMatrixBuilder",
    "timeit",
]
