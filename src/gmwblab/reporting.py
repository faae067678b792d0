# src/gmwblab/reporting.py
"""
Result reporting: price surfaces on a print grid, refinement tables and
heat-maps.

Usage:
    >>> from gmwblab.reporting import format_report, refinement_table
    >>> print(format_report(result))
    >>> refinement_table(results, query=(100.0, 100.0))
"""

from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from matplotlib.figure import Figure

from gmwblab.common.config import DEFAULT_QUERY_POINT
from gmwblab.pricing_models.gmwb import GMWBResult, print_grid
from gmwblab.pricing_models.grid import RectilinearGrid2


def price_surface_frame(
    result: GMWBResult,
    grid: Optional[RectilinearGrid2] = None,
) -> pd.DataFrame:
    """Values interpolated on ``grid`` (print grid by default), S rows × W columns."""
    grid = grid if grid is not None else print_grid()
    values = grid.reshape(result.price(grid.s, grid.w))
    frame = pd.DataFrame(
        values,
        index=pd.Index(grid[0].ticks, name="S"),
        columns=pd.Index(grid[1].ticks, name="W"),
    )
    return frame


def refinement_table(
    results: Sequence[GMWBResult],
    query: Tuple[float, float] = DEFAULT_QUERY_POINT,
) -> pd.DataFrame:
    """
    Convergence table of a refinement study.

    Columns: level, nodes, timesteps, controls, value at ``query``, change from
    the previous level, ratio of successive changes, mean inner iterations.
    """
    rows = [
        {
            "level": r.level,
            "nodes": r.grid.size,
            "timesteps": r.n_timesteps,
            "controls": len(r.controls),
            "value": r.price(*query),
            "mean_iterations": r.mean_iterations,
        }
        for r in results
    ]
    table = pd.DataFrame(
        rows,
        columns=["level", "nodes", "timesteps", "controls", "value", "mean_iterations"],
    )
    table["change"] = table["value"].diff().abs()
    table["ratio"] = table["change"].shift(1) / table["change"]
    return table[
        ["level", "nodes", "timesteps", "controls", "value", "change", "ratio", "mean_iterations"]
    ]


def format_report(result: GMWBResult, grid: Optional[RectilinearGrid2] = None) -> str:
    surface = price_surface_frame(result, grid)
    return (
        f"{surface.to_string(float_format=lambda v: f'{v:.6f}')}\n\n"
        f"average number of inner iterations: {result.mean_iterations:.6g}\n"
    )


def plot_price_surface(
    result: GMWBResult,
    grid: Optional[RectilinearGrid2] = None,
    ax=None,
):
    """Heat-map of the price surface; returns the matplotlib Axes."""
    surface = price_surface_frame(result, grid)

    if ax is None:
        fig = Figure(figsize=(7, 5))
        ax = fig.subplots()

    mesh = ax.pcolormesh(
        surface.columns.to_numpy(),
        surface.index.to_numpy(),
        surface.to_numpy(),
        shading="nearest",
        cmap="viridis",
    )
    ax.figure.colorbar(mesh, ax=ax, label="Contract value")
    ax.set_xlabel("Withdrawal balance W")
    ax.set_ylabel("Investment S")
    ax.set_title(f"GMWB value, refinement level {result.level}")
    return ax
