"""
verbs - Table operations that consume deferred references.

Verbs come in two contexts:

- masking verbs (filter, group_by, summarize, mutate, arrange, distinct,
  pull, count) compute with their arguments and take embraced references
  (``Deferred``) or ``pick()`` adapters;
- selection verbs (select, pivot_wider) only choose existing columns and take
  selections, column names, or bare-column references.

``TableVerbs`` is the capability set helpers are written against;
``PolarsVerbs`` implements it on polars DataFrames. Module-level functions
delegate to a shared ``PolarsVerbs`` instance.

Examples:
    from tidyfn import verbs as tv
    from tidyfn.tidyeval import quo, pick

    tv.filter_rows(diamonds, quo("carat > 1"))
    tv.summarize(tv.group_by(diamonds, quo("cut")), n=quo(pl.len()))
    tv.count(diamonds, pick("cut", "color"), sort=True)
"""

import logging
import warnings
from abc import ABC, abstractmethod

import polars as pl

from tidyfn.errors import ContextMismatchError
from tidyfn.tidyeval.defer import Deferred, require_deferred
from tidyfn.tidyeval.select import Picked, as_selection
from tidyfn.utils import check_dataframe, setdiff, unique_list

logger = logging.getLogger(__name__)

MASKING = "masking"
SELECTION = "selection"


def masking_verb(fn):
    fn.context = MASKING
    return fn


def selection_verb(fn):
    fn.context = SELECTION
    return fn


class Grouped:
    """A DataFrame together with the names of its grouping columns."""

    def __init__(self, data: pl.DataFrame, keys: list[str]):
        self.data = data
        self.keys = list(keys)

    @property
    def columns(self) -> list[str]:
        return self.data.columns

    @property
    def height(self) -> int:
        return self.data.height

    def __repr__(self) -> str:
        return f"Groups: {', '.join(self.keys)}\n{self.data!r}"


def _unpack(data) -> tuple[pl.DataFrame, list[str]]:
    if isinstance(data, Grouped):
        return data.data, data.keys
    return check_dataframe(data), []


def _rewrap(frame: pl.DataFrame, keys: list[str]):
    return Grouped(frame, keys) if keys else frame


def _output_name(arg) -> str:
    if isinstance(arg, Deferred):
        return arg.column or arg.label
    return arg.label


class TableVerbs(ABC):
    """
    Capability set of table operations used by helper functions.

    Each verb carries a ``context`` attribute (``"masking"`` or
    ``"selection"``) that decides which kind of reference it accepts.
    """

    @classmethod
    def context_of(cls, verb: str) -> str:
        return getattr(getattr(cls, verb), "context")

    @abstractmethod
    def filter(self, data, *conditions): ...

    @abstractmethod
    def group_by(self, data, *keys, **named) -> Grouped: ...

    @abstractmethod
    def summarize(self, data, *args, **named) -> pl.DataFrame: ...

    @abstractmethod
    def mutate(self, data, *args, **named): ...

    @abstractmethod
    def arrange(self, data, *keys, descending: bool = False): ...

    @abstractmethod
    def select(self, data, *items): ...

    @abstractmethod
    def distinct(self, data, *refs) -> pl.DataFrame: ...

    @abstractmethod
    def pull(self, data, ref) -> pl.Series: ...

    @abstractmethod
    def count(self, data, *keys, sort: bool = False, name: str = "n") -> pl.DataFrame: ...

    @abstractmethod
    def pivot_wider(self, data, names_from, values_from, values_fill=None) -> pl.DataFrame: ...

    def ungroup(self, data) -> pl.DataFrame:
        frame, _ = _unpack(data)
        return frame

    @masking_verb
    def pull_unique(self, data, ref) -> list:
        """Distinct values of ``ref`` in order of first appearance."""
        return self.distinct(data, ref).to_series().to_list()


class PolarsVerbs(TableVerbs):
    """Table verbs implemented with polars."""

    def _exprs(self, args, frame: pl.DataFrame, operation: str) -> list[tuple[str, pl.Expr]]:
        """Resolve masking arguments to (name, expression) pairs."""
        out = []
        for arg in args:
            if arg is None:
                continue
            arg = require_deferred(arg, operation)
            if isinstance(arg, Picked):
                out.extend(zip(arg.names(frame, operation), arg.resolve_many(frame, operation)))
            else:
                out.append((_output_name(arg), arg.resolve(frame, operation)))
        return out

    def _one(self, arg, frame: pl.DataFrame, operation: str) -> pl.Expr:
        arg = require_deferred(arg, operation)
        if isinstance(arg, Picked):
            raise ContextMismatchError(
                operation,
                arg.label,
                "pick() yields several columns. Use it in group_by(), count(), "
                "distinct() or arrange()",
            )
        return arg.resolve(frame, operation)

    def _named(self, args, named: dict, frame: pl.DataFrame, operation: str) -> list[pl.Expr]:
        exprs = [expr.alias(name) for name, expr in self._exprs(args, frame, operation)]
        for name, arg in named.items():
            exprs.append(self._one(arg, frame, operation).alias(name))
        return exprs

    def _selection(self, item, frame: pl.DataFrame, operation: str) -> list[str]:
        if isinstance(item, Picked):
            return item.names(frame, operation)
        return as_selection(item).resolve(frame, operation)

    @masking_verb
    def filter(self, data, *conditions):
        """Keep rows where every condition is true; null conditions drop the row."""
        frame, keys = _unpack(data)
        exprs = [e for _, e in self._exprs(conditions, frame, "filter")]
        if not exprs:
            return data
        if keys:
            exprs = [e.over(keys) for e in exprs]
        out = frame.filter(pl.all_horizontal(exprs))
        logger.debug("filter(): kept %d of %d rows", out.height, frame.height)
        return _rewrap(out, keys)

    @masking_verb
    def group_by(self, data, *keys, **named) -> Grouped:
        """
        Group by deferred references.

        Bare columns are used as they are. Computed keys are added as columns
        named by their label, or by keyword for ``named`` keys. Existing groups
        are replaced.
        """
        frame, _ = _unpack(data)
        names = []
        new_cols = []
        for name, expr in self._exprs(keys, frame, "group_by"):
            if name not in frame.columns or not expr.meta.is_column():
                new_cols.append(expr.alias(name))
            names.append(name)
        for name, arg in named.items():
            new_cols.append(self._one(arg, frame, "group_by").alias(name))
            names.append(name)
        if new_cols:
            frame = frame.with_columns(new_cols)
        return Grouped(frame, unique_list(names))

    @masking_verb
    def summarize(self, data, *args, **named) -> pl.DataFrame:
        """One row per group (sorted by the group keys), or one row without groups."""
        frame, keys = _unpack(data)
        for arg in args:
            if isinstance(arg, Picked):
                raise ContextMismatchError(
                    "summarize",
                    arg.label,
                    "pick() yields columns, not summaries. Summarize each column instead",
                )
        exprs = self._named(args, named, frame, "summarize")
        if not keys:
            return frame.select(exprs)
        return (
            frame.group_by(keys, maintain_order=True)
            .agg(exprs)
            .sort(keys, nulls_last=True)
        )

    @masking_verb
    def mutate(self, data, *args, **named):
        """Add or replace columns; expressions are evaluated per group for grouped data."""
        frame, keys = _unpack(data)
        exprs = self._named(args, named, frame, "mutate")
        if keys:
            exprs = [e.over(keys) for e in exprs]
        return _rewrap(frame.with_columns(exprs), keys)

    @masking_verb
    def arrange(self, data, *keys, descending: bool = False):
        frame, groups = _unpack(data)
        exprs = [e for _, e in self._exprs(keys, frame, "arrange")]
        if not exprs:
            return data
        out = frame.sort(exprs, descending=descending, nulls_last=True, maintain_order=True)
        return _rewrap(out, groups)

    @selection_verb
    def select(self, data, *items):
        """Keep the selected columns; group keys of grouped data are always kept."""
        frame, keys = _unpack(data)
        names = []
        for item in items:
            names.extend(self._selection(item, frame, "select"))
        names = unique_list(setdiff(keys, names) + names)
        return _rewrap(frame.select(names), keys)

    @masking_verb
    def distinct(self, data, *refs) -> pl.DataFrame:
        """Distinct rows of the referenced values, in order of first appearance."""
        frame, _ = _unpack(data)
        if not refs:
            return frame.unique(maintain_order=True)
        exprs = [e.alias(n) for n, e in self._exprs(refs, frame, "distinct")]
        return frame.select(exprs).unique(maintain_order=True)

    @masking_verb
    def pull(self, data, ref) -> pl.Series:
        frame, _ = _unpack(data)
        expr = self._one(ref, frame, "pull")
        return frame.select(expr.alias(_output_name(ref))).to_series()

    @masking_verb
    def count(self, data, *keys, sort: bool = False, name: str = "n") -> pl.DataFrame:
        """
        Count rows per combination of keys.

        The result is sorted by the keys, or by descending count (ties in key
        order) when ``sort=True``. Keys of grouped input are kept. If ``name``
        is already a key, "n" is appended until it is not.
        """
        frame, existing = _unpack(data)
        if keys:
            grouped = self.group_by(frame, *keys)
            frame, by = grouped.data, unique_list(existing + grouped.keys)
        else:
            by = existing
        if not by:
            return frame.select(pl.len().alias(name))
        if name in by:
            stored = name
            while stored in by:
                stored += "n"
            warnings.warn(
                f"count(): storing counts in '{stored}', as '{name}' is already a key",
                UserWarning,
                stacklevel=2,
            )
            name = stored
        out = (
            frame.group_by(by, maintain_order=True)
            .agg(pl.len().alias(name))
            .sort(by, nulls_last=True)
        )
        if sort:
            out = out.sort(name, descending=True, maintain_order=True)
        return out

    @selection_verb
    def pivot_wider(self, data, names_from, values_from, values_fill=None) -> pl.DataFrame:
        """
        Spread ``names_from`` column values into new columns.

        Several ``names_from`` columns are joined with ``_``. All columns not
        used as names or values identify the rows.
        """
        frame, _ = _unpack(data)
        names = unique_list(self._selection(names_from, frame, "pivot_wider"))
        values = unique_list(self._selection(values_from, frame, "pivot_wider"))
        if len(values) != 1:
            raise ValueError(
                f"pivot_wider() needs exactly one values_from column, got {len(values)}"
            )
        index = setdiff(frame.columns, names + values)
        if not index:
            raise ValueError("pivot_wider() needs at least one column to identify rows")

        on = names[0]
        if len(names) > 1:
            on = "_".join(names)
            frame = frame.with_columns(
                pl.concat_str([pl.col(n).cast(pl.Utf8) for n in names], separator="_").alias(on)
            ).drop(names)
        out = frame.pivot(on=on, index=index, values=values[0], maintain_order=True)
        if values_fill is not None:
            new_cols = setdiff(out.columns, index)
            out = out.with_columns(pl.col(new_cols).fill_null(values_fill))
        return out


default_verbs = PolarsVerbs()


def get_verbs(verbs: TableVerbs | None = None) -> TableVerbs:
    return verbs if verbs is not None else default_verbs


def filter_rows(data, *conditions):
    return default_verbs.filter(data, *conditions)


def group_by(data, *keys, **named) -> Grouped:
    return default_verbs.group_by(data, *keys, **named)


def ungroup(data) -> pl.DataFrame:
    return default_verbs.ungroup(data)


def summarize(data, *args, **named) -> pl.DataFrame:
    return default_verbs.summarize(data, *args, **named)


def mutate(data, *args, **named):
    return default_verbs.mutate(data, *args, **named)


def arrange(data, *keys, descending: bool = False):
    return default_verbs.arrange(data, *keys, descending=descending)


def select(data, *items):
    return default_verbs.select(data, *items)


def distinct(data, *refs) -> pl.DataFrame:
    return default_verbs.distinct(data, *refs)


def pull(data, ref) -> pl.Series:
    return default_verbs.pull(data, ref)


def pull_unique(data, ref) -> list:
    return default_verbs.pull_unique(data, ref)


def count(data, *keys, sort: bool = False, name: str = "n") -> pl.DataFrame:
    return default_verbs.count(data, *keys, sort=sort, name=name)


def pivot_wider(data, names_from, values_from, values_fill=None) -> pl.DataFrame:
    return default_verbs.pivot_wider(data, names_from, values_from, values_fill=values_fill)
