# src/gmwblab/pricing_models/grid.py
"""
Rectilinear Grids and Bilinear Interpolation.

A grid is the Cartesian product of two strictly increasing axes:

    axis 0: investment level S
    axis 1: guaranteed withdrawal balance W

Nodes are stored in a flat vector with the first axis varying fastest,

    index(i, j) = i + j * len(axis 0)

so that a step of ``len(axis 0)`` in the flat index moves one tick along W.

Points off the grid are clamped to its bounding box before interpolation.

Usage:
    >>> from gmwblab.pricing_models.grid import Axis, RectilinearGrid2
    >>> grid = RectilinearGrid2(Axis.range(0, 50, 200), Axis.range(0, 50, 200))
    >>> value = grid.interpolate(grid.s + grid.w, 75.0, 30.0)
"""

from typing import Iterator, Sequence, Tuple, Union

import numpy as np
import scipy.sparse as sp

from gmwblab.exceptions import InvalidAxisError

ArrayLike = Union[float, Sequence[float], np.ndarray]


class Axis:
    """Strictly increasing, immutable sequence of ticks."""

    def __init__(self, ticks: ArrayLike):
        ticks = np.array(ticks, dtype=float).ravel()

        if ticks.size < 2:
            raise InvalidAxisError("an axis needs at least two ticks")
        if not np.all(np.isfinite(ticks)):
            raise InvalidAxisError("ticks must be finite")
        if np.any(np.diff(ticks) <= 0):
            raise InvalidAxisError("ticks must be strictly increasing")

        ticks.setflags(write=False)
        self._ticks = ticks

    @classmethod
    def range(cls, start: float, step: float, stop: float) -> "Axis":
        """Ticks ``start : step : stop`` with ``stop`` included."""
        if step <= 0:
            raise InvalidAxisError(f"step must be positive, got {step}")
        count = int(np.floor((stop - start) / step + 1e-9))
        return cls(start + step * np.arange(count + 1))

    @property
    def ticks(self) -> np.ndarray:
        return self._ticks

    def __len__(self) -> int:
        return self._ticks.size

    def __getitem__(self, item):
        return self._ticks[item]

    def __iter__(self) -> Iterator[float]:
        return iter(self._ticks.tolist())

    def __eq__(self, other) -> bool:
        if not isinstance(other, Axis):
            return NotImplemented
        return np.array_equal(self._ticks, other._ticks)

    def __repr__(self) -> str:
        return f"Axis(n={len(self)}, min={self._ticks[0]:g}, max={self._ticks[-1]:g})"

    def refined(self) -> "Axis":
        """New axis with a tick inserted halfway between each pair."""
        ticks = self._ticks
        refined = np.empty(2 * ticks.size - 1)
        refined[0::2] = ticks
        refined[1::2] = 0.5 * (ticks[:-1] + ticks[1:])
        return Axis(refined)

    def bracket(self, x: ArrayLike) -> Tuple[np.ndarray, np.ndarray]:
        """
        Locate points between ticks.

        Returns:
            Tuple ``(lower, weight)`` where ``lower`` is the index of the tick
            at or below the (clamped) point and ``weight`` the linear weight
            carried by that tick; ``1 - weight`` goes to ``lower + 1``.
        """
        ticks = self._ticks
        x = np.clip(np.asarray(x, dtype=float), ticks[0], ticks[-1])

        lower = np.searchsorted(ticks, x, side="right") - 1
        lower = np.clip(lower, 0, ticks.size - 2)

        weight = (ticks[lower + 1] - x) / (ticks[lower + 1] - ticks[lower])
        return lower, weight


class RectilinearGrid2:
    """
    Two-dimensional rectilinear grid over (investment, withdrawal balance).

    The grid is read-only; ``refined()`` returns a new grid.
    """

    def __init__(self, investment: Union[Axis, ArrayLike], withdrawal: Union[Axis, ArrayLike]):
        self.axes = (
            investment if isinstance(investment, Axis) else Axis(investment),
            withdrawal if isinstance(withdrawal, Axis) else Axis(withdrawal),
        )

        s, w = np.meshgrid(self.axes[0].ticks, self.axes[1].ticks, indexing="xy")
        self._s = s.ravel()
        self._w = w.ravel()
        self._s.setflags(write=False)
        self._w.setflags(write=False)

    def __getitem__(self, dim: int) -> Axis:
        return self.axes[dim]

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        return zip(self._s.tolist(), self._w.tolist())

    def __repr__(self) -> str:
        return f"RectilinearGrid2({self.axes[0]!r}, {self.axes[1]!r})"

    @property
    def shape(self) -> Tuple[int, int]:
        return len(self.axes[0]), len(self.axes[1])

    @property
    def size(self) -> int:
        return len(self.axes[0]) * len(self.axes[1])

    @property
    def s(self) -> np.ndarray:
        """Investment coordinate of every node, in node order."""
        return self._s

    @property
    def w(self) -> np.ndarray:
        """Withdrawal-balance coordinate of every node, in node order."""
        return self._w

    @property
    def nodes(self) -> np.ndarray:
        return np.column_stack((self._s, self._w))

    def index(self, i, j):
        return i + j * len(self.axes[0])

    def position(self, index) -> Tuple[int, int]:
        n0 = len(self.axes[0])
        return index % n0, index // n0

    def node(self, index: int) -> Tuple[float, float]:
        return float(self._s[index]), float(self._w[index])

    def vector(self) -> np.ndarray:
        return np.zeros(self.size)

    def identity(self) -> sp.csr_matrix:
        return sp.identity(self.size, format="csr")

    def image(self, func) -> np.ndarray:
        """Evaluate ``func(S, W)`` at every node."""
        return np.broadcast_to(
            np.asarray(func(self._s, self._w), dtype=float), (self.size,)
        ).copy()

    def reshape(self, values: np.ndarray) -> np.ndarray:
        """View a node vector as an array indexed ``[i_S, i_W]``."""
        return np.asarray(values).reshape(self.shape[1], self.shape[0]).T

    def interpolation_data(self, x: ArrayLike, y: ArrayLike) -> Tuple[np.ndarray, np.ndarray]:
        """
        Bilinear interpolation stencils for arbitrary points.

        Args:
            x: Investment coordinates.
            y: Withdrawal-balance coordinates (broadcast against ``x``).

        Returns:
            ``(indices, weights)``, both of shape ``(n_points, 4)``. The
            weights of each point are non-negative and sum to one.
        """
        x, y = np.broadcast_arrays(np.asarray(x, dtype=float), np.asarray(y, dtype=float))
        i0, w0 = self.axes[0].bracket(x.ravel())
        i1, w1 = self.axes[1].bracket(y.ravel())

        n0 = len(self.axes[0])
        j = self.index(i0, i1)

        indices = np.column_stack((j, j + n0, j + 1, j + 1 + n0))
        weights = np.column_stack(
            (
                w0 * w1,
                w0 * (1 - w1),
                (1 - w0) * w1,
                (1 - w0) * (1 - w1),
            )
        )
        return indices, weights

    def interpolate(self, values: np.ndarray, x: ArrayLike, y: ArrayLike) -> np.ndarray:
        """Bilinear interpolation of a node vector at arbitrary points."""
        values = np.asarray(values, dtype=float)
        if values.shape != (self.size,):
            raise ValueError(
                f"values must have shape ({self.size},), got {values.shape}"
            )

        shape = np.broadcast(np.asarray(x), np.asarray(y)).shape
        indices, weights = self.interpolation_data(x, y)
        result = np.sum(values[indices] * weights, axis=1)
        return result.reshape(shape) if shape else result[0]

    def refined(self) -> "RectilinearGrid2":
        """New grid with a tick inserted between each pair on both axes."""
        return RectilinearGrid2(self.axes[0].refined(), self.axes[1].refined())
