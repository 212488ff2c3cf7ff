"""
vector - Helpers that take a vector and return a vector or a single value.

Every helper is written once against the polars expression API. Passing a
``pl.Expr`` returns an expression (so the helper can be used in ``mutate``,
``summarize`` or ``Deferred.map``); passing a Series, list or numpy array
evaluates it right away.

Examples:
    rescale01([0.2, 0.5, 1.0, float("nan"), 2.0])
    tv.mutate(diamonds, carat01=quo("carat").map(rescale01))
    tv.summarize(tv.group_by(diamonds, quo("cut")), cv=quo("price").map(cv))
"""

import math
import warnings
from functools import lru_cache, wraps

import polars as pl

from tidyfn.utils import as_series


@lru_cache(maxsize=1)
def _get_scipy_skew():
    """Lazy load scipy.stats.skew."""
    from scipy.stats import skew

    return skew


def _eager(fn, x, *args, **kwargs) -> pl.Series:
    s = as_series(x)
    name = s.name or "x"
    return pl.DataFrame({name: s}).select(fn(pl.col(name), *args, **kwargs)).to_series()


def elementwise(fn):
    """Evaluate an expression helper eagerly for non-expression input."""

    @wraps(fn)
    def wrapper(x, *args, **kwargs):
        if isinstance(x, pl.Expr):
            return fn(x, *args, **kwargs)
        return _eager(fn, x, *args, **kwargs)

    return wrapper


def summary(fn):
    """Like ``elementwise`` but return a scalar for non-expression input."""

    @wraps(fn)
    def wrapper(x, *args, **kwargs):
        if isinstance(x, pl.Expr):
            return fn(x, *args, **kwargs)
        return _eager(fn, x, *args, **kwargs).item()

    return wrapper


def _missing_mask(s: pl.Series) -> pl.Series:
    if s.dtype.is_float():
        return s.is_null() | s.is_nan().fill_null(False)
    return s.is_null()


def _is_missing(x: pl.Expr) -> pl.Expr:
    """Null, or NaN for float data."""
    return x.map_batches(_missing_mask, return_dtype=pl.Boolean, is_elementwise=True)


def _rescale01(x: pl.Expr) -> pl.Expr:
    x = x.cast(pl.Float64)
    finite = x.filter(x.is_finite())
    lo, hi = finite.min(), finite.max()
    return (x - lo) / (hi - lo)


def rescale01(x):
    """
    Rescale to the [0, 1] range.

    The minimum and maximum are taken over finite, non-missing values only,
    so missing and NaN entries stay missing and infinite values map to
    +/-inf.

    Parameters
    ----------
    x : pl.Expr, pl.Series, list or np.ndarray

    Returns
    -------
    pl.Expr or pl.Series
    """
    if isinstance(x, pl.Expr):
        return _rescale01(x)
    s = as_series(x).cast(pl.Float64)
    finite = s.filter(s.is_finite())
    if finite.len() > 0 and finite.min() == finite.max():
        warnings.warn(
            "rescale01(): all finite values are equal; result is NaN",
            RuntimeWarning,
            stacklevel=2,
        )
    return _eager(_rescale01, s)


@elementwise
def z_score(x):
    x = x.cast(pl.Float64)
    return (x - x.mean()) / x.std()


def clamp(x, lower, upper):
    """Clip values into ``[lower, upper]``."""
    if lower > upper:
        raise ValueError(f"lower ({lower}) must not be larger than upper ({upper})")
    if isinstance(x, pl.Expr):
        return x.clip(lower, upper)
    return _eager(lambda e: e.clip(lower, upper), x)


@elementwise
def first_upper(x):
    """Upper-case the first character of each string."""
    return x.str.slice(0, 1).str.to_uppercase() + x.str.slice(1)


@elementwise
def clean_number(x):
    """
    Parse numbers from text such as ``"$12,300"`` or ``"45%"``.

    Percentages are divided by 100. Text without a number becomes null.
    """
    x = x.cast(pl.Utf8)
    num = (
        x.str.extract(r"(-?[0-9][0-9,]*\.?[0-9]*|-?\.[0-9]+)", 1)
        .str.replace_all(",", "", literal=True)
        .cast(pl.Float64, strict=False)
    )
    return pl.when(x.str.contains("%", literal=True)).then(num / 100).otherwise(num)


@elementwise
def fix_na(x, codes=(997, 998, 999)):
    """Replace sentinel codes with null."""
    return pl.when(~x.is_in(list(codes))).then(x)


def commas(x, last: str = " and ") -> str:
    """
    Join values as ``"a, b and c"``. Nulls are skipped.

    Only eager input is supported.
    """
    if isinstance(x, pl.Expr):
        raise TypeError("commas() needs values, not an expression")
    values = [str(v) for v in as_series(x).drop_nulls().to_list()]
    if len(values) <= 1:
        return "".join(values)
    return ", ".join(values[:-1]) + last + values[-1]


@summary
def cv(x):
    """Coefficient of variation: standard deviation / mean."""
    x = x.cast(pl.Float64)
    return x.std() / x.mean()


@summary
def n_missing(x):
    return _is_missing(x).sum()


@summary
def prop_missing(x):
    return _is_missing(x).mean()


@summary
def variance(x):
    """Sample variance (n - 1 in the denominator)."""
    return x.cast(pl.Float64).var(ddof=1)


def skewness(x) -> float:
    """Bias-corrected sample skewness of the non-missing values."""
    if isinstance(x, pl.Expr):
        raise TypeError("skewness() needs values, not an expression")
    s = as_series(x).cast(pl.Float64)
    s = s.filter(s.is_finite())
    return float(_get_scipy_skew()(s.to_numpy(), bias=False))


def _pairwise(fn, x, y):
    if isinstance(x, pl.Expr) or isinstance(y, pl.Expr):
        return fn(_as_expr(x), _as_expr(y))
    x, y = as_series(x, "x"), as_series(y, "y")
    if len(x) != len(y):
        raise ValueError(f"x and y must have the same length ({len(x)} != {len(y)})")
    return pl.DataFrame({"x": x, "y": y}).select(fn(pl.col("x"), pl.col("y"))).item()


def _as_expr(v) -> pl.Expr:
    return v if isinstance(v, pl.Expr) else pl.lit(v)


def both_na(x, y):
    """Number of positions where both x and y are missing."""
    return _pairwise(lambda a, b: (_is_missing(a) & _is_missing(b)).sum(), x, y)


def mape(actual, predicted):
    """Mean absolute percentage error."""
    return _pairwise(
        lambda a, p: ((a.cast(pl.Float64) - p) / a).abs().mean(), actual, predicted
    )


def haversine(lat1, lon1, lat2, lon2, radius: float = 6371.0):
    """
    Great-circle distance between two points given in degrees.

    Accepts scalars, vectors or expressions. The result is in the unit of
    ``radius`` (kilometres by default).
    """
    args = (lat1, lon1, lat2, lon2)
    if all(isinstance(a, (int, float)) for a in args):
        phi1, phi2 = math.radians(lat1), math.radians(lat2)
        dphi, dlambda = math.radians(lat2 - lat1), math.radians(lon2 - lon1)
        a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
        return 2 * radius * math.asin(math.sqrt(a))

    def distance(la1, lo1, la2, lo2):
        phi1, phi2 = la1.radians(), la2.radians()
        dphi, dlambda = (la2 - la1).radians(), (lo2 - lo1).radians()
        a = (dphi / 2).sin() ** 2 + phi1.cos() * phi2.cos() * (dlambda / 2).sin() ** 2
        return 2 * radius * a.sqrt().arcsin()

    if any(isinstance(a, pl.Expr) for a in args):
        return distance(*(_as_expr(a) for a in args))

    cols = {}
    for name, a in zip(("lat1", "lon1", "lat2", "lon2"), args):
        cols[name] = a if isinstance(a, (int, float)) else as_series(a, name)
    frame = pl.DataFrame({k: v for k, v in cols.items() if isinstance(v, pl.Series)})
    exprs = [pl.col(k) if isinstance(v, pl.Series) else pl.lit(float(v)) for k, v in cols.items()]
    return frame.select(distance(*exprs).alias("distance")).to_series()
