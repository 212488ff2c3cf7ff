"""
select - Selection-style references and the ``pick()`` adapter.

Selections choose existing columns (by name, range, polars selector or
predicate) without computing anything. Verbs such as ``select`` and
``pivot_wider`` take selections; verbs that compute (``group_by``,
``count``, ``summarize``) take deferred references. ``pick()`` bridges the
two by exposing a selection as positional column references.
"""

from collections.abc import Callable

import polars as pl
import polars.selectors as cs

from tidyfn.errors import ContextMismatchError, UnresolvedReferenceError
from tidyfn.tidyeval.defer import Deferred
from tidyfn.utils import unique_list


class where:
    """Select the columns for which ``predicate(series)`` is True."""

    def __init__(self, predicate: Callable[[pl.Series], bool]):
        self.predicate = predicate

    @property
    def label(self) -> str:
        return f"where({getattr(self.predicate, '__name__', 'predicate')})"

    def columns(self, data: pl.DataFrame) -> list[str]:
        return [c for c in data.columns if bool(self.predicate(data[c]))]


def _range(item: str, data: pl.DataFrame, operation: str) -> list[str]:
    start, end = (s.strip() for s in item.split(":", 1))
    for name in (start, end):
        if name not in data.columns:
            raise UnresolvedReferenceError(operation, name)
    i, j = data.columns.index(start), data.columns.index(end)
    if i <= j:
        return data.columns[i : j + 1]
    return data.columns[j : i + 1][::-1]


def _item_label(item) -> str:
    if isinstance(item, (Deferred, Selection, where)):
        return item.label
    return str(item)


class Selection:
    """
    An ordered list of selection items, resolved to column names on demand.

    Items can be column names, ranges such as ``"x:z"``, polars selectors
    (``polars.selectors``), ``where()`` predicates, bare-column deferred
    references, or other selections.
    """

    _deferred_context = "selection"

    def __init__(self, items):
        self.items = tuple(items)

    @property
    def label(self) -> str:
        return ", ".join(_item_label(i) for i in self.items)

    def __repr__(self) -> str:
        return f"<Selection: {self.label}>"

    def __len__(self) -> int:
        return len(self.items)

    def resolve(self, data: pl.DataFrame, operation: str = "select") -> list[str]:
        """
        Resolve to column names of ``data``.

        Names are returned in item order. Duplicates are kept; consumers that
        need unique columns collapse them.
        """
        names = []
        for item in self.items:
            names.extend(self._resolve_item(item, data, operation))
        return names

    def _resolve_item(self, item, data: pl.DataFrame, operation: str) -> list[str]:
        if isinstance(item, Selection):
            return item.resolve(data, operation)
        if isinstance(item, Picked):
            return item.selection.resolve(data, operation)
        if isinstance(item, where):
            return item.columns(data)
        if isinstance(item, str):
            if item in data.columns:
                return [item]
            if ":" in item:
                return _range(item, data, operation)
            raise UnresolvedReferenceError(operation, item)
        if isinstance(item, Deferred):
            if item.column is None:
                raise ContextMismatchError(
                    operation,
                    item.label,
                    "Computed expressions can't select columns. Create the "
                    "column with mutate() first",
                )
            if item.column not in data.columns:
                raise UnresolvedReferenceError(operation, item.column)
            return [item.column]
        if cs.is_selector(item):
            return list(cs.expand_selector(data, item))
        if isinstance(item, pl.Expr):
            if item.meta.is_column():
                name = item.meta.output_name()
                if name not in data.columns:
                    raise UnresolvedReferenceError(operation, name)
                return [name]
            raise ContextMismatchError(
                operation, str(item), "Only column references can select columns"
            )
        raise TypeError(
            f"{operation}(): can't select columns with {type(item).__name__}"
        )


class Picked:
    """A selection exposed to computing verbs as positional column references."""

    _deferred_context = "masking"

    def __init__(self, selection: Selection):
        self.selection = selection

    @property
    def label(self) -> str:
        return f"pick({self.selection.label})"

    def __repr__(self) -> str:
        return f"<Picked: {self.selection.label}>"

    def names(self, data: pl.DataFrame, operation: str = "pick") -> list[str]:
        return unique_list(self.selection.resolve(data, operation))

    def resolve_many(self, data: pl.DataFrame, operation: str = "pick") -> list[pl.Expr]:
        return [pl.col(n) for n in self.names(data, operation)]


def embrace_select(*items) -> Selection:
    """Mark (variadic) arguments as selection-style references."""
    return Selection(i for i in items if i is not None)


def as_selection(value) -> Selection:
    """Wrap a name, list of names or selector as a Selection."""
    if isinstance(value, Selection):
        return value
    if isinstance(value, Picked):
        return value.selection
    if isinstance(value, (list, tuple)):
        return Selection(value)
    return Selection((value,))


def pick(*items) -> Picked:
    """
    Use a selection inside a computing verb.

    Examples
    --------
    tv.group_by(df, pick("cut", "color"))
    tv.count(df, pick(cs.starts_with("dep_")))
    """
    if len(items) == 1:
        return Picked(as_selection(items[0]))
    return Picked(Selection(items))
