"""
defer - Deferred (embraced) references to columns and expressions.

A wrapper function receives column references from its caller and passes
them, unevaluated, into the verbs and plots it calls. ``embrace()`` marks such
a parameter as deferred; each consuming operation resolves it against the
data it is working on at that point.

Examples:
    import polars as pl
    from tidyfn.tidyeval import embrace, quo
    from tidyfn import verbs as tv

    def grouped_mean(df, group_var, mean_var):
        group_var, mean_var = embrace(group_var), embrace(mean_var)
        return tv.summarize(tv.group_by(df, group_var), mean=mean_var.mean())

    grouped_mean(diamonds, "cut", "carat")
    grouped_mean(diamonds, "cut", "price / carat")
    grouped_mean(diamonds, quo(pl.col("cut")), pl.col("price").log())
"""

import logging
import operator
from collections.abc import Callable

import polars as pl

from tidyfn.errors import (
    ContextMismatchError,
    InvalidExpressionError,
    UnresolvedReferenceError,
)

logger = logging.getLogger(__name__)

Source = str | pl.Expr | Callable

_BINARY_SYMBOLS = {
    operator.gt: ">",
    operator.ge: ">=",
    operator.lt: "<",
    operator.le: "<=",
    operator.eq: "==",
    operator.ne: "!=",
    operator.add: "+",
    operator.sub: "-",
    operator.mul: "*",
    operator.truediv: "/",
    operator.floordiv: "//",
    operator.mod: "%",
    operator.pow: "**",
    operator.and_: "&",
    operator.or_: "|",
}


def _literal_text(value) -> str:
    if isinstance(value, Deferred):
        return value._nested_label()
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)


def _check_roots(expr: pl.Expr, data: pl.DataFrame, operation: str) -> pl.Expr:
    for name in expr.meta.root_names():
        if name not in data.columns:
            raise UnresolvedReferenceError(operation, name)
    return expr


def _resolve_text(text: str, data: pl.DataFrame, operation: str) -> pl.Expr:
    """Column names resolve to ``pl.col``; anything else is parsed as SQL."""
    if text in data.columns:
        return pl.col(text)
    if text.isidentifier():
        raise UnresolvedReferenceError(operation, text)
    try:
        expr = pl.sql_expr(text)
    except pl.exceptions.PolarsError as e:
        raise InvalidExpressionError(text, str(e)) from e
    return _check_roots(expr, data, operation)


class Deferred:
    """
    An unevaluated column reference or expression.

    A Deferred pairs a source with a human-readable label. The source is
    resolved against a DataFrame only when a consuming operation asks for it,
    and it is re-resolved every time.

    Attributes
    ----------
    label : str
        Text used for plot titles, axis labels and default column names.
    column : str or None
        The column name if the reference is a bare column, otherwise None.
    """

    __slots__ = ("_resolver", "_label", "_column", "_binary")

    def __init__(
        self,
        resolver: Callable[[pl.DataFrame, str], pl.Expr],
        label: str,
        column: str | None = None,
        binary: bool = False,
    ):
        self._resolver = resolver
        self._label = label
        self._column = column
        self._binary = binary

    @classmethod
    def from_source(cls, source: Source, label: str | None = None) -> "Deferred":
        if isinstance(source, str):
            column = source if source.isidentifier() else None

            def resolver(data, operation):
                return _resolve_text(source, data, operation)

            return cls(resolver, label or source, column=column)

        if isinstance(source, pl.Expr):
            column = source.meta.output_name() if source.meta.is_column() else None

            def resolver(data, operation):
                return _check_roots(source, data, operation)

            return cls(resolver, label or column or str(source), column=column)

        if callable(source):

            def resolver(data, operation):
                out = source(data)
                if isinstance(out, pl.Series):
                    if len(out) != data.height:
                        raise ValueError(
                            f"{operation}(): {label or source.__name__} returned "
                            f"{len(out)} values for {data.height} rows"
                        )
                    return pl.lit(out)
                if isinstance(out, pl.Expr):
                    return _check_roots(out, data, operation)
                raise TypeError(
                    f"{operation}(): a deferred function must return a polars "
                    f"Expr or Series, not {type(out).__name__}"
                )

            return cls(resolver, label or getattr(source, "__name__", "<function>"))

        raise TypeError(f"Can't defer an object of type {type(source).__name__}")

    @property
    def label(self) -> str:
        return self._label

    @property
    def column(self) -> str | None:
        return self._column

    def relabel(self, label: str) -> "Deferred":
        return Deferred(self._resolver, label, self._column, self._binary)

    def resolve(self, data: pl.DataFrame, operation: str = "resolve") -> pl.Expr:
        """
        Resolve the reference against ``data``.

        Parameters
        ----------
        data : pl.DataFrame
            The data context of the consuming operation.
        operation : str
            Name of the consuming operation, used in error messages.

        Returns
        -------
        pl.Expr
            An expression that can be evaluated against ``data``.

        Raises
        ------
        UnresolvedReferenceError
            If a referenced column does not exist in ``data``.
        InvalidExpressionError
            If expression text could not be parsed.
        """
        logger.debug(
            "%s(): resolving %r against %d columns", operation, self._label, data.width
        )
        return self._resolver(data, operation)

    def evaluate(self, data: pl.DataFrame, operation: str = "evaluate") -> pl.Series:
        """Resolve and evaluate over all rows of ``data``."""
        return data.select(self.resolve(data, operation).alias(self._label)).to_series()

    def map(self, fn: Callable[[pl.Expr], pl.Expr], label: str | None = None):
        """
        Derive a new reference by applying ``fn`` to the resolved expression.

        ``fn`` receives the resolved ``pl.Expr`` and must return a ``pl.Expr``.
        The vector helpers in ``tidyfn.helpers.vector`` can be used directly.
        """
        if label is None:
            name = getattr(fn, "__name__", "")
            label = f"{name}({self._label})" if name.isidentifier() else self._label
        parent = self

        def resolver(data, operation):
            return fn(parent.resolve(data, operation))

        return Deferred(resolver, label)

    def _nested_label(self) -> str:
        return f"({self._label})" if self._binary else self._label

    def _binary_op(self, op, other, reflected: bool = False) -> "Deferred":
        symbol = _BINARY_SYMBOLS[op]
        left, right = (other, self) if reflected else (self, other)
        label = f"{_literal_text(left)} {symbol} {_literal_text(right)}"

        def value(side, data, operation):
            if isinstance(side, Deferred):
                return side.resolve(data, operation)
            if isinstance(side, str):
                return pl.lit(side)
            return side

        def resolver(data, operation):
            return op(value(left, data, operation), value(right, data, operation))

        return Deferred(resolver, label, binary=True)

    def __gt__(self, other):
        return self._binary_op(operator.gt, other)

    def __ge__(self, other):
        return self._binary_op(operator.ge, other)

    def __lt__(self, other):
        return self._binary_op(operator.lt, other)

    def __le__(self, other):
        return self._binary_op(operator.le, other)

    def __eq__(self, other):
        return self._binary_op(operator.eq, other)

    def __ne__(self, other):
        return self._binary_op(operator.ne, other)

    __hash__ = None

    def __add__(self, other):
        return self._binary_op(operator.add, other)

    def __radd__(self, other):
        return self._binary_op(operator.add, other, reflected=True)

    def __sub__(self, other):
        return self._binary_op(operator.sub, other)

    def __rsub__(self, other):
        return self._binary_op(operator.sub, other, reflected=True)

    def __mul__(self, other):
        return self._binary_op(operator.mul, other)

    def __rmul__(self, other):
        return self._binary_op(operator.mul, other, reflected=True)

    def __truediv__(self, other):
        return self._binary_op(operator.truediv, other)

    def __rtruediv__(self, other):
        return self._binary_op(operator.truediv, other, reflected=True)

    def __floordiv__(self, other):
        return self._binary_op(operator.floordiv, other)

    def __mod__(self, other):
        return self._binary_op(operator.mod, other)

    def __pow__(self, other):
        return self._binary_op(operator.pow, other)

    def __and__(self, other):
        return self._binary_op(operator.and_, other)

    def __rand__(self, other):
        return self._binary_op(operator.and_, other, reflected=True)

    def __or__(self, other):
        return self._binary_op(operator.or_, other)

    def __ror__(self, other):
        return self._binary_op(operator.or_, other, reflected=True)

    def __invert__(self):
        return self.map(operator.invert, label=f"!{self._nested_label()}")

    def __neg__(self):
        return self.map(operator.neg, label=f"-{self._nested_label()}")

    def __bool__(self):
        raise TypeError(
            f"The truth value of deferred reference '{self._label}' is unknown "
            "until it is resolved against data"
        )

    def __repr__(self) -> str:
        return f"<Deferred: {self._label}>"

    def is_in(self, values) -> "Deferred":
        values = list(values)
        return self.map(lambda e: e.is_in(values), label=f"is_in({self._label})")

    def round(self, decimals: int = 0) -> "Deferred":
        return self.map(lambda e: e.round(decimals), label=f"round({self._label})")


def _method(name: str):
    def method(self) -> Deferred:
        return self.map(lambda e: getattr(e, name)(), label=f"{name}({self._label})")

    method.__name__ = name
    method.__doc__ = f"Deferred ``pl.Expr.{name}()`` of this reference."
    return method


for _name in (
    "mean",
    "median",
    "sum",
    "min",
    "max",
    "std",
    "var",
    "n_unique",
    "null_count",
    "count",
    "first",
    "last",
    "is_null",
    "is_not_null",
    "abs",
):
    setattr(Deferred, _name, _method(_name))


def is_deferred(value) -> bool:
    return isinstance(value, Deferred)


def embrace(value, *, label: str | None = None, optional: bool = False):
    """
    Mark a parameter as a deferred reference.

    Parameters
    ----------
    value : str, pl.Expr, callable or Deferred
        Column name, expression text (e.g. ``"price / carat"``), polars
        expression, or a function of the data returning an Expr or Series.
    label : str, optional
        Label to use instead of the one derived from ``value``.
    optional : bool
        If True, ``None`` is returned as ``None`` so callers can omit the
        argument. Otherwise ``None`` raises ``TypeError``.

    Returns
    -------
    Deferred or None
    """
    if isinstance(value, Deferred):
        return value if label is None else value.relabel(label)
    if getattr(value, "_deferred_context", None) == "masking":
        return value
    if getattr(value, "_deferred_context", None) == "selection":
        raise ContextMismatchError(
            "embrace",
            value.label,
            "A selection chooses columns. Use pick() to use it in a computation",
        )
    if value is None:
        if optional:
            return None
        raise TypeError("A column name or expression is required, got None")
    if isinstance(value, (str, pl.Expr)) or callable(value):
        return Deferred.from_source(value, label)
    raise TypeError(
        f"Can't embrace the literal value {value!r}. Pass a column name, "
        "expression text, polars expression or function of the data"
    )


def quo(value, label: str | None = None) -> Deferred:
    """Create a deferred reference at the call site."""
    return embrace(value, label=label)


def embrace_all(*values) -> tuple[Deferred, ...]:
    """Embrace variadic arguments, keeping their order and any duplicates."""
    return tuple(embrace(v) for v in values)


def require_deferred(arg, operation: str):
    """
    Check that ``arg`` can be used in a masking (computation) position.

    Returns the Deferred or Picked object unchanged.

    Raises
    ------
    UnresolvedReferenceError
        If a plain value was passed instead of an embraced reference.
    ContextMismatchError
        If a selection was passed without the ``pick()`` adapter.
    """
    if isinstance(arg, Deferred):
        return arg
    context = getattr(arg, "_deferred_context", None)
    if context == "masking":
        return arg
    if context == "selection":
        raise ContextMismatchError(
            operation,
            arg.label,
            "Selections choose existing columns. Wrap them in pick() to use "
            "them in a computation",
        )
    if isinstance(arg, str):
        raise UnresolvedReferenceError(
            operation,
            arg,
            "The value was passed as a plain string. Use embrace() so it is "
            "resolved against the data",
        )
    name = str(arg) if isinstance(arg, pl.Expr) else repr(arg)
    raise UnresolvedReferenceError(
        operation,
        name,
        f"Expected an embraced reference, got {type(arg).__name__}",
    )
