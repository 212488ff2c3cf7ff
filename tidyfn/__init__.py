from importlib import import_module

__version__ = "0.3.0"

_LAZY_MODULES = {
    "errors": "tidyfn.errors",
    "helpers": "tidyfn.helpers",
    "plot_utils": "tidyfn.plot_utils",
    "tidyeval": "tidyfn.tidyeval",
    "utils": "tidyfn.utils",
    "verbs": "tidyfn.verbs",
}

# The deferred-reference API is used often enough to live at the top level
_LAZY_FUNCTIONS = {
    "embrace": "tidyfn.tidyeval.defer",
    "embrace_all": "tidyfn.tidyeval.defer",
    "quo": "tidyfn.tidyeval.defer",
    "embrace_select": "tidyfn.tidyeval.select",
    "pick": "tidyfn.tidyeval.select",
    "where": "tidyfn.tidyeval.select",
    "englue": "tidyfn.tidyeval.label",
    "as_label": "tidyfn.tidyeval.label",
    "show": "tidyfn.utils",
}


def __getattr__(name):
    if name in _LAZY_MODULES:
        module = import_module(_LAZY_MODULES[name])
        globals()[name] = module
        return module
    if name in _LAZY_FUNCTIONS:
        module = import_module(_LAZY_FUNCTIONS[name])
        func = getattr(module, name)
        globals()[name] = func
        return func
    raise AttributeError(f"module 'tidyfn' has no attribute '{name}'")


def __dir__():
    return sorted(list(_LAZY_MODULES) + list(_LAZY_FUNCTIONS))


__all__ = list(_LAZY_MODULES) + list(_LAZY_FUNCTIONS)
