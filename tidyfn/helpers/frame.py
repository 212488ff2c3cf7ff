"""
frame - Data frame helpers built on deferred references.

Each helper embraces the column references it receives and passes them on to
the verbs, so callers can use bare column names or expressions:

    grouped_mean(diamonds, "cut", "carat")
    summary6(diamonds, "log10(price)")
    count_prop(diamonds, "clarity", sort=True)
    count_missing(flights, ["year", "month", "day"], "dep_time")
    count_wide(diamonds, "clarity", ["color", "cut"])
"""

import polars as pl

from tidyfn.helpers.vector import n_missing
from tidyfn.tidyeval.defer import embrace, quo
from tidyfn.tidyeval.select import Selection, as_selection, embrace_select, pick
from tidyfn.utils import convert_to_list
from tidyfn.verbs import TableVerbs, get_verbs


def grouped_mean(data, group_var, mean_var, verbs: TableVerbs | None = None) -> pl.DataFrame:
    """Mean of ``mean_var`` per level of ``group_var``."""
    v = get_verbs(verbs)
    group_var, mean_var = embrace(group_var), embrace(mean_var)
    return v.summarize(v.group_by(data, group_var), mean=mean_var.mean())


def summary6(data, var, verbs: TableVerbs | None = None) -> pl.DataFrame:
    """
    Six summary statistics of ``var``: min, mean, median, max, n and n_miss.

    ``data`` can be grouped, in which case the statistics are per group.
    """
    v = get_verbs(verbs)
    var = embrace(var)
    return v.summarize(
        data,
        min=var.min(),
        mean=var.mean(),
        median=var.median(),
        max=var.max(),
        n=quo(pl.len(), label="n()"),
        n_miss=var.map(n_missing),
    )


def count_prop(data, var, sort: bool = False, verbs: TableVerbs | None = None) -> pl.DataFrame:
    """
    Counts of ``var`` with the proportion of each level.

    Returns
    -------
    pl.DataFrame
        The ``var`` column, ``n`` and ``prop = n / sum(n)``.
    """
    v = get_verbs(verbs)
    counted = v.count(data, embrace(var), sort=sort)
    n = quo(counted.columns[-1])
    return v.mutate(counted, prop=n / n.sum())


def unique_where(data, condition, var, verbs: TableVerbs | None = None) -> pl.DataFrame:
    """Sorted distinct values of ``var`` in the rows where ``condition`` holds."""
    v = get_verbs(verbs)
    condition, var = embrace(condition), embrace(var)
    values = v.distinct(v.filter(data, condition), var)
    return v.arrange(values, quo(pl.col(values.columns[0]), label=var.label))


def pull_unique(data, var, verbs: TableVerbs | None = None) -> list:
    """Distinct values of ``var``, in order of first appearance."""
    return get_verbs(verbs).pull_unique(data, embrace(var))


def subset_rows_cols(data, rows, cols, verbs: TableVerbs | None = None) -> pl.DataFrame:
    """
    Filter rows with a deferred condition, then keep a selection of columns.

    ``cols`` is a column name, a list of names, a polars selector or a
    ``Selection``.
    """
    v = get_verbs(verbs)
    return v.select(v.filter(data, embrace(rows)), as_selection(cols))


def count_missing(data, group_vars, x_var, verbs: TableVerbs | None = None) -> pl.DataFrame:
    """
    Number of missing and present ``x_var`` values per group.

    ``group_vars`` is a selection (names, list of names or selector); it is
    used for grouping through ``pick()``.
    """
    v = get_verbs(verbs)
    x_var = embrace(x_var)
    grouped = v.group_by(data, pick(group_vars))
    return v.summarize(
        grouped,
        n_miss=x_var.map(n_missing),
        n=x_var.map(lambda e: e.len() - n_missing(e)),
    )


def count_wide(data, rows, cols, verbs: TableVerbs | None = None) -> pl.DataFrame:
    """
    Count combinations of ``rows`` and ``cols`` and spread ``cols`` into columns.

    Both arguments are selections. Missing combinations are filled with 0.
    """
    v = get_verbs(verbs)
    rows, cols = as_selection(rows), as_selection(cols)
    counted = v.count(data, pick(rows), pick(cols))
    return v.pivot_wider(counted, names_from=cols, values_from=counted.columns[-1], values_fill=0)


def summarize_means(data, group_vars, *value_vars, verbs: TableVerbs | None = None) -> pl.DataFrame:
    """
    Mean of each selected value column per group.

    ``value_vars`` are captured as a selection and expanded in order, for
    example ``summarize_means(df, "cut", "carat", cs.starts_with("pr"))``.
    """
    v = get_verbs(verbs)
    grouped = v.group_by(data, pick(*convert_to_list(group_vars)))
    values: Selection = embrace_select(*value_vars)
    names = [n for n in pick(values).names(grouped.data, "summarize_means") if n not in grouped.keys]
    return v.summarize(grouped, **{n: quo(n).mean() for n in names})
