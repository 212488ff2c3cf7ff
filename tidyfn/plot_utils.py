"""Grid composition for plotnine plots."""

from functools import reduce
from math import ceil
from operator import or_, truediv

from plotnine import theme


def compose_plots(
    plot_list: list,
    ncol: int = 2,
    width_per_col: float = 4,
    height_per_row: float = 3,
):
    """
    Compose plotnine plots into a grid, filled row by row.

    Parameters
    ----------
    plot_list : list
        List of plotnine plots.
    ncol : int, default 2
        Number of columns in the grid.
    width_per_col, height_per_row : float
        Size of one grid cell in inches.

    Returns
    -------
    plotnine object or None
        A single plot is returned as is; an empty list gives None.
    """
    if not plot_list:
        return None
    if len(plot_list) == 1:
        return plot_list[0]
    if ncol < 1:
        raise ValueError(f"ncol must be at least 1, got {ncol}")

    nrow = ceil(len(plot_list) / ncol)
    rows = [reduce(or_, plot_list[i * ncol : (i + 1) * ncol]) for i in range(nrow)]
    combined = reduce(truediv, rows)

    fig_width = width_per_col * min(ncol, len(plot_list))
    fig_height = height_per_row * nrow
    return combined + theme(figure_size=(fig_width, fig_height))
