"""
plots - Plot helpers that map deferred references to plotnine aesthetics.

Examples:
    histogram(diamonds, "carat", binwidth=0.1)
    histogram(diamonds, "log10(price)")
    sorted_bars(diamonds, "cut")
    conditional_bars(diamonds, "cut = 'Good'", "clarity")
    density(diamonds, "carat", color="cut", facets=embrace_all("clarity"))
    hex_plot(diamonds, "carat", "price", "depth")
"""

import polars as pl
from plotnine import (
    aes,
    after_stat,
    coord_flip,
    element_text,
    facet_wrap,
    geom_bar,
    geom_freqpoly,
    geom_histogram,
    geom_line,
    geom_point,
    geom_smooth,
    geom_tile,
    ggplot,
    labs,
    scale_x_discrete,
    theme,
    theme_bw,
)

from tidyfn.errors import ContextMismatchError
from tidyfn.plot_utils import compose_plots
from tidyfn.tidyeval.defer import Deferred, embrace, embrace_all, require_deferred
from tidyfn.tidyeval.label import englue
from tidyfn.verbs import TableVerbs, get_verbs

# aesthetics that take an axis or legend title
_LABELLED = {"x", "y", "color", "colour", "fill", "size", "alpha", "shape", "linetype"}

_SUMMARIES = {"mean", "median", "sum", "min", "max", "std", "count"}


def _as_text(ref: Deferred) -> Deferred:
    """Discrete version of a reference, for bars and colour legends."""
    return ref.map(lambda e: e.cast(pl.Utf8), label=ref.label)


def _single(ref, operation: str) -> Deferred:
    ref = require_deferred(ref, operation)
    if not isinstance(ref, Deferred):
        raise ContextMismatchError(
            operation, ref.label, "An aesthetic or facet maps to a single column"
        )
    return ref


def _facet_refs(facets) -> tuple:
    if facets is None:
        return ()
    if isinstance(facets, (tuple, list)):
        return tuple(_single(f, "facet_wrap") for f in facets)
    return (_single(facets, "facet_wrap"),)


def deferred_ggplot(
    data,
    facets=None,
    ncol: int | None = None,
    verbs: TableVerbs | None = None,
    **aesthetics,
) -> ggplot:
    """
    Start a plot with aesthetics given as deferred references.

    Each aesthetic is resolved against ``data`` and stored in a private
    column; the ``aes`` mapping points at those columns and the axis and
    legend titles use the reference labels.

    Parameters
    ----------
    data : pl.DataFrame, pd.DataFrame or Grouped
        Data to plot.
    facets : Deferred or tuple of Deferred, optional
        Facet variables, e.g. ``embrace_all("cut", "color")``. They are passed
        to ``facet_wrap`` in order.
    ncol : int, optional
        Number of facet columns.
    verbs : TableVerbs, optional
        Verb implementation to use.
    **aesthetics
        ``x``, ``y``, ``color``, ``fill``, ``size``, ``group``, ... as
        deferred references. None values are skipped.

    Returns
    -------
    plotnine.ggplot
    """
    frame = get_verbs(verbs).ungroup(data)
    mapping, titles, cols = {}, {}, []
    for aesthetic, ref in aesthetics.items():
        if ref is None:
            continue
        ref = _single(ref, "aes")
        name = f"_{aesthetic}_"
        cols.append(ref.resolve(frame, "aes").alias(name))
        mapping[aesthetic] = name
        if aesthetic in _LABELLED:
            titles[aesthetic] = ref.label

    facet_cols = []
    for i, ref in enumerate(_facet_refs(facets)):
        name = f"_facet{i}_"
        cols.append(ref.resolve(frame, "facet_wrap").alias(name))
        facet_cols.append(name)

    plot_data = frame.with_columns(cols) if cols else frame
    p = ggplot(plot_data, aes(**mapping))
    if titles:
        p = p + labs(**titles)
    if facet_cols:
        p = p + facet_wrap(facet_cols, ncol=ncol)
    return p


def histogram(data, var, binwidth: float | None = None, verbs: TableVerbs | None = None):
    """Histogram of ``var``; without ``binwidth`` 30 bins are used."""
    var = embrace(var)
    title = englue(
        "A histogram of {var}[ with binwidth {binwidth}]", var=var, binwidth=binwidth
    )
    if binwidth is None:
        geom = geom_histogram(bins=30, fill="slateblue", alpha=0.8)
    else:
        geom = geom_histogram(binwidth=binwidth, fill="slateblue", alpha=0.8)
    return (
        deferred_ggplot(data, x=var, verbs=verbs)
        + geom
        + labs(y="Count", title=title)
        + theme_bw()
        + theme(plot_title=element_text(size=10, weight="bold"))
    )


def histograms(
    data,
    *vars,
    binwidth: float | None = None,
    ncol: int = 2,
    verbs: TableVerbs | None = None,
):
    """One histogram per variable, composed into a grid."""
    plots = [
        histogram(data, var, binwidth=binwidth, verbs=verbs) for var in embrace_all(*vars)
    ]
    return compose_plots(plots, ncol=ncol)


def density(
    data,
    x,
    color=None,
    facets=None,
    binwidth: float = 0.1,
    verbs: TableVerbs | None = None,
):
    """Frequency polygons of the density of ``x``, coloured and faceted."""
    x = embrace(x)
    color = embrace(color, optional=True)
    if isinstance(facets, (tuple, list)):
        facets = embrace_all(*facets)
    else:
        facets = embrace(facets, optional=True)
    return (
        deferred_ggplot(
            data,
            x=x,
            color=_as_text(color) if color is not None else None,
            facets=facets,
            verbs=verbs,
        )
        + geom_freqpoly(aes(y=after_stat("density")), binwidth=binwidth)
        + labs(y="density")
        + theme_bw()
    )


def linearity_check(data, x, y, verbs: TableVerbs | None = None):
    """Scatter plot with a lowess smooth (red) and a linear fit (blue)."""
    x, y = embrace(x), embrace(y)
    return (
        deferred_ggplot(data, x=x, y=y, verbs=verbs)
        + geom_point(alpha=0.5)
        + geom_smooth(method="lowess", color="red", se=False)
        + geom_smooth(method="lm", color="blue", se=False)
        + labs(title=englue("{y} vs {x}", x=x, y=y))
        + theme_bw()
    )


def _bin_axis(values: pl.Series, bins: int) -> tuple[float, float]:
    lo, hi = values.min(), values.max()
    width = (hi - lo) / bins
    return lo, width if width > 0 else 1.0


def hex_plot(data, x, y, z, bins: int = 20, fun: str = "mean", verbs: TableVerbs | None = None):
    """
    Summary of ``z`` over a ``bins`` x ``bins`` grid of ``x`` and ``y``.

    Parameters
    ----------
    fun : str
        One of "mean", "median", "sum", "min", "max", "std" or "count".

    Returns
    -------
    plotnine.ggplot
        Tiles filled with the summary; ``plot.data`` holds one row per
        non-empty cell.
    """
    if fun not in _SUMMARIES:
        raise ValueError(f"fun must be one of {sorted(_SUMMARIES)}, got {fun!r}")
    if bins < 1:
        raise ValueError(f"bins must be at least 1, got {bins}")
    x, y, z = embrace(x), embrace(y), embrace(z)
    frame = get_verbs(verbs).ungroup(data)
    vals = frame.select(
        x.resolve(frame, "hex_plot").cast(pl.Float64).alias("_x_"),
        y.resolve(frame, "hex_plot").cast(pl.Float64).alias("_y_"),
        z.resolve(frame, "hex_plot").alias("_z_"),
    ).drop_nulls()
    if vals.height == 0:
        raise ValueError("hex_plot() needs at least one row without missing values")

    x_lo, x_width = _bin_axis(vals["_x_"], bins)
    y_lo, y_width = _bin_axis(vals["_y_"], bins)
    summary = pl.len() if fun == "count" else getattr(pl.col("_z_"), fun)()
    tiles = (
        vals.with_columns(
            ((pl.col("_x_") - x_lo) / x_width).floor().clip(0, bins - 1).alias("_bx_"),
            ((pl.col("_y_") - y_lo) / y_width).floor().clip(0, bins - 1).alias("_by_"),
        )
        .group_by(["_bx_", "_by_"])
        .agg(summary.alias("_fill_"))
        .with_columns(
            (x_lo + (pl.col("_bx_") + 0.5) * x_width).alias("_x_"),
            (y_lo + (pl.col("_by_") + 0.5) * y_width).alias("_y_"),
        )
        .sort(["_bx_", "_by_"])
    )
    return (
        ggplot(tiles, aes(x="_x_", y="_y_", fill="_fill_"))
        + geom_tile(width=x_width, height=y_width)
        + labs(x=x.label, y=y.label, fill=f"{fun}({z.label})")
        + theme_bw()
    )


def sorted_bars(data, var, verbs: TableVerbs | None = None):
    """Horizontal bar chart of ``var`` with the most frequent level on top."""
    v = get_verbs(verbs)
    var = embrace(var)
    counts = v.count(data, var, sort=True)
    levels = counts.to_series(0).cast(pl.Utf8).drop_nulls().to_list()
    present = v.filter(v.ungroup(data), var.is_not_null())
    return (
        deferred_ggplot(present, x=_as_text(var), verbs=v)
        + geom_bar(fill="slateblue", alpha=0.8)
        + scale_x_discrete(limits=levels[::-1])
        + coord_flip()
        + theme_bw()
    )


def conditional_bars(data, condition, var, verbs: TableVerbs | None = None):
    """Bar chart of ``var`` for the rows where ``condition`` holds."""
    v = get_verbs(verbs)
    condition, var = embrace(condition), embrace(var)
    return (
        deferred_ggplot(v.filter(data, condition), x=_as_text(var), verbs=v)
        + geom_bar(fill="slateblue", alpha=0.8)
        + labs(title=englue("Counts of {var} where {condition}", var=var, condition=condition))
        + theme_bw()
        + theme(axis_text_x=element_text(rotation=45, ha="right"))
    )


def fancy_ts(data, val, group, x="date", verbs: TableVerbs | None = None):
    """Time series of ``val`` with one coloured line per ``group``."""
    x, val, group = embrace(x), embrace(val), embrace(group)
    group_text = _as_text(group)
    return (
        deferred_ggplot(data, x=x, y=val, color=group_text, group=group_text, verbs=verbs)
        + geom_line(size=1)
        + geom_point(size=1.5)
        + labs(title=englue("{val} over {x} by {group}", val=val, x=x, group=group))
        + theme_bw()
        + theme(legend_position="bottom")
    )
