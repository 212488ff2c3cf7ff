"""Labels for plots and tables built from deferred references."""

import re
from string import Formatter

from tidyfn.errors import LabelError
from tidyfn.tidyeval.defer import Deferred
from tidyfn.tidyeval.select import Picked, Selection, where

_OPTIONAL = re.compile(r"\[([^\[\]]*)\]")
_formatter = Formatter()


class _LabelFormatter(Formatter):
    """Formatter that shows None as ``missing`` and skips its format spec."""

    def __init__(self, missing: str):
        self.missing = missing

    def format_field(self, value, format_spec):
        if value is None:
            return self.missing
        return super().format_field(value, format_spec)


def as_label(value, missing: str = "default") -> str:
    """
    Human-readable text for a reference or literal value.

    Deferred references, selections and picks use their label, ``None``
    becomes ``missing``, anything else is converted with ``str()``.
    """
    if value is None:
        return missing
    if isinstance(value, (Deferred, Selection, Picked, where)):
        return value.label
    return str(value)


def _field_names(text: str) -> list[str]:
    names = []
    for _, field, _, _ in _formatter.parse(text):
        if field:
            names.append(re.split(r"[.\[]", field, maxsplit=1)[0])
    return names


def englue(template: str, missing: str = "default", **values) -> str:
    """
    Fill a label template with reference labels and literal values.

    ``{name}`` fields are replaced by the label of a deferred reference or the
    value of a literal (format specs such as ``{bw:.2f}`` apply to literals).
    A bracketed segment such as ``"[ with binwidth {binwidth}]"`` is optional:
    it is dropped when any field inside it is None and kept, without the
    brackets, otherwise. A None field outside an optional segment is shown as
    ``missing``.

    Parameters
    ----------
    template : str
        Label template.
    missing : str
        Text for absent values outside optional segments.
    **values
        Field values.

    Returns
    -------
    str

    Raises
    ------
    LabelError
        If the template uses a field that was not passed.

    Examples
    --------
    >>> englue("A histogram of {var}[ with binwidth {binwidth}]", var=quo("carat"), binwidth=None)
    'A histogram of carat'
    """
    for name in _field_names(template):
        if name not in values:
            raise LabelError(name, template)

    rendered = {}
    for name, value in values.items():
        if isinstance(value, (Deferred, Selection, Picked, where)):
            rendered[name] = as_label(value)
        else:
            rendered[name] = value

    formatter = _LabelFormatter(missing)
    pieces = []
    pos = 0
    for match in _OPTIONAL.finditer(template):
        pieces.append(formatter.vformat(template[pos : match.start()], (), rendered))
        segment = match.group(1)
        fields = _field_names(segment)
        if not fields:
            pieces.append(match.group(0))
        elif all(values[f] is not None for f in fields):
            pieces.append(formatter.vformat(segment, (), rendered))
        pos = match.end()
    pieces.append(formatter.vformat(template[pos:], (), rendered))
    return "".join(pieces)
