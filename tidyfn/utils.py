from functools import lru_cache

import numpy as np
import polars as pl


def setdiff(x: list, y: list) -> list:
    """Elements of x not in y, keeping the order of x."""
    return [e for e in x if e not in y]


def unique_list(x: list) -> list:
    """Remove duplicates, keeping the first occurrence."""
    seen = set()
    out = []
    for e in x:
        if e not in seen:
            seen.add(e)
            out.append(e)
    return out


def convert_to_list(v) -> list:
    if v is None:
        return []
    if isinstance(v, (list, tuple)):
        return list(v)
    return [v]


def check_dataframe(data) -> pl.DataFrame:
    """
    Return a polars DataFrame for the supported input types.

    Parameters
    ----------
    data : pl.DataFrame, pd.DataFrame or dict
        Data to check. A dict of columns is converted with ``pl.DataFrame``.

    Returns
    -------
    pl.DataFrame
    """
    if isinstance(data, pl.DataFrame):
        return data
    if isinstance(data, pl.LazyFrame):
        return data.collect()
    if isinstance(data, dict):
        return pl.DataFrame(data)

    import pandas as pd

    if isinstance(data, pd.DataFrame):
        return pl.from_pandas(data)
    raise TypeError(
        f"Expected a polars or pandas DataFrame, got {type(data).__name__}"
    )


def as_series(x, name: str = "x") -> pl.Series | pl.Expr:
    """Convert lists and numpy arrays to a Series. Series and Expr pass through."""
    if isinstance(x, (pl.Series, pl.Expr)):
        return x
    if isinstance(x, np.ndarray):
        return pl.Series(name, x)
    import pandas as pd

    if isinstance(x, pd.Series):
        return pl.from_pandas(x)
    if isinstance(x, (list, tuple)):
        # None and float("nan") are both allowed in numeric input
        return pl.Series(name, list(x), strict=False)
    raise TypeError(f"Can't use an object of type {type(x).__name__} as a vector")


def is_notebook() -> bool:
    """Detect if running in a Jupyter/IPython notebook environment."""
    try:
        from IPython import get_ipython

        ipy = get_ipython()
        if ipy is not None and "IPKernelApp" in ipy.config:
            return True
    except (ImportError, AttributeError):
        pass
    return False


@lru_cache(maxsize=1)
def _get_display():
    """Lazy load IPython.display.display."""
    from IPython.display import display

    return display


def show(
    data: pl.DataFrame,
    title: str | None = None,
    dec: int = 3,
    plain: bool = True,
) -> None:
    """
    Print a table with floats rounded to ``dec`` decimals.

    Parameters
    ----------
    data : pl.DataFrame
        Table to show.
    title : str, optional
        Printed above the table.
    dec : int
        Number of decimal places to display.
    plain : bool
        If True (default), print plain text output. If False and running
        in a Jupyter notebook, use a styled great_tables table.
    """
    data = check_dataframe(data)
    float_cols = [c for c in data.columns if data[c].dtype.is_float()]
    if float_cols:
        data = data.with_columns(pl.col(float_cols).round(dec))

    if not plain and is_notebook():
        gt = data.style.tab_header(title=title or "").tab_options(
            table_margin_left="0px"
        )
        _get_display()(gt)
        return

    if title:
        print(title)
    with pl.Config(
        tbl_rows=-1,
        tbl_cols=-1,
        fmt_str_lengths=100,
        tbl_width_chars=200,
        tbl_hide_dataframe_shape=True,
        tbl_hide_column_data_types=True,
    ):
        print(data)
