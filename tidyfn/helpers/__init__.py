"""
tidyfn.helpers - Ready-made helpers written with deferred references.

- vector: rescale01(), z_score(), clamp(), clean_number(), cv(), haversine(), ...
- frame: grouped_mean(), summary6(), count_prop(), count_missing(), count_wide(), ...
- plots: histogram(), density(), sorted_bars(), conditional_bars(), hex_plot(), ...
"""

from importlib import import_module

_SUBMODULES = {"vector", "frame", "plots"}

# Functions to import from specific modules
_LAZY_FUNCTIONS = {
    "rescale01": "vector",
    "z_score": "vector",
    "clamp": "vector",
    "first_upper": "vector",
    "clean_number": "vector",
    "fix_na": "vector",
    "commas": "vector",
    "cv": "vector",
    "n_missing": "vector",
    "prop_missing": "vector",
    "both_na": "vector",
    "mape": "vector",
    "haversine": "vector",
    "variance": "vector",
    "skewness": "vector",
    "grouped_mean": "frame",
    "summary6": "frame",
    "count_prop": "frame",
    "unique_where": "frame",
    "pull_unique": "frame",
    "subset_rows_cols": "frame",
    "count_missing": "frame",
    "count_wide": "frame",
    "summarize_means": "frame",
    "deferred_ggplot": "plots",
    "histogram": "plots",
    "histograms": "plots",
    "density": "plots",
    "linearity_check": "plots",
    "hex_plot": "plots",
    "sorted_bars": "plots",
    "conditional_bars": "plots",
    "fancy_ts": "plots",
}


def __getattr__(name):
    if name in _SUBMODULES:
        module = import_module(f"{__name__}.{name}")
        globals()[name] = module
        return module
    if name in _LAZY_FUNCTIONS:
        module = import_module(f"{__name__}.{_LAZY_FUNCTIONS[name]}")
        attr = getattr(module, name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def __dir__():
    return sorted(list(_SUBMODULES) + list(_LAZY_FUNCTIONS))


__all__ = list(_SUBMODULES) + list(_LAZY_FUNCTIONS)
