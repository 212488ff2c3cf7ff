"""
tidyfn.tidyeval - Deferred references for writing data-frame and plot helpers.

- embrace() / quo(): mark a column name or expression as deferred
- embrace_all(): variadic capture of deferred references
- embrace_select() / pick(): selection-style references and the adapter
  that lets computing verbs use them
- englue() / as_label(): labels built from deferred references
"""

from importlib import import_module

_EXPORTS = {
    "Deferred": "tidyfn.tidyeval.defer",
    "embrace": "tidyfn.tidyeval.defer",
    "embrace_all": "tidyfn.tidyeval.defer",
    "is_deferred": "tidyfn.tidyeval.defer",
    "quo": "tidyfn.tidyeval.defer",
    "require_deferred": "tidyfn.tidyeval.defer",
    "Picked": "tidyfn.tidyeval.select",
    "Selection": "tidyfn.tidyeval.select",
    "as_selection": "tidyfn.tidyeval.select",
    "embrace_select": "tidyfn.tidyeval.select",
    "pick": "tidyfn.tidyeval.select",
    "where": "tidyfn.tidyeval.select",
    "as_label": "tidyfn.tidyeval.label",
    "englue": "tidyfn.tidyeval.label",
}


def __getattr__(name):
    if name in _EXPORTS:
        module = import_module(_EXPORTS[name])
        attr = getattr(module, name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def __dir__():
    return sorted(list(_EXPORTS))


__all__ = list(_EXPORTS)
