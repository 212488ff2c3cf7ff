import math

import numpy as np
import polars as pl
import pytest

from tidyfn import verbs as tv
from tidyfn.helpers.vector import (
    both_na,
    clamp,
    clean_number,
    commas,
    cv,
    first_upper,
    fix_na,
    haversine,
    mape,
    n_missing,
    prop_missing,
    rescale01,
    skewness,
    variance,
    z_score,
)
from tidyfn.tidyeval import quo


def test_rescale01_ignores_missing_and_keeps_them():
    result = rescale01([0.2, 0.5, 1.0, float("nan"), 2.0]).round(4).to_list()
    assert result[:3] == [0.0, 0.1667, 0.4444]
    assert math.isnan(result[3])
    assert result[4] == 1.0


def test_rescale01_ignores_infinite_values():
    result = rescale01(np.array([1.0, 2.0, 3.0, np.inf])).to_list()
    assert result[:3] == [0.0, 0.5, 1.0]
    assert result[3] == math.inf


def test_rescale01_keeps_nulls():
    assert rescale01(pl.Series([1, None, 3])).to_list() == [0.0, None, 1.0]


def test_rescale01_constant_warns():
    with pytest.warns(RuntimeWarning, match="equal"):
        result = rescale01([2.0, 2.0])
    assert all(math.isnan(v) for v in result.to_list())


def test_rescale01_as_expression_per_group():
    df = pl.DataFrame({"g": ["a", "a", "b", "b"], "x": [1.0, 3.0, 10.0, 20.0]})
    out = tv.mutate(tv.group_by(df, quo("g")), x01=quo("x").map(rescale01))
    assert out.data["x01"].to_list() == [0.0, 1.0, 0.0, 1.0]


def test_z_score():
    result = z_score([1.0, 2.0, 3.0])
    assert result.to_list() == pytest.approx([-1.0, 0.0, 1.0])


def test_clamp():
    assert clamp([1, 5, 10], 2, 8).to_list() == [2, 5, 8]
    with pytest.raises(ValueError, match="lower"):
        clamp([1, 2], 5, 1)


def test_first_upper():
    assert first_upper(["hello", "world", ""]).to_list() == ["Hello", "World", ""]


def test_clean_number():
    result = clean_number(["$12,300", "45%", "-1.5", "abc"]).to_list()
    assert result[:3] == pytest.approx([12300.0, 0.45, -1.5])
    assert result[3] is None


def test_fix_na():
    assert fix_na([1, 997, 10, 999]).to_list() == [1, None, 10, None]
    assert fix_na([1, -99], codes=(-99,)).to_list() == [1, None]


def test_commas():
    assert commas(["cats", "dogs", "mice"]) == "cats, dogs and mice"
    assert commas(["x", "y"], last=" or ") == "x or y"
    assert commas(["only"]) == "only"
    assert commas([]) == ""
    with pytest.raises(TypeError):
        commas(pl.col("x"))


def test_summary_functions_return_scalars():
    x = [1.0, 2.0, None, float("nan"), 4.0]
    assert n_missing(x) == 2
    assert prop_missing(x) == pytest.approx(0.4)
    assert n_missing(["a", None, "b"]) == 1
    assert cv([2.0, 4.0, 6.0]) == pytest.approx(0.5)
    assert variance([1.0, 2.0, 3.0, 4.0]) == pytest.approx(1.6667, abs=1e-4)


def test_summary_functions_in_summarize():
    df = pl.DataFrame({"g": ["a", "a", "b"], "x": [1.0, None, 2.0]})
    out = tv.summarize(tv.group_by(df, quo("g")), miss=quo("x").map(n_missing))
    assert out.rows() == [("a", 1), ("b", 0)]


def test_skewness():
    assert skewness([1.0, 2.0, 3.0]) == pytest.approx(0.0)
    assert skewness([1.0, 1.0, 1.0, 10.0]) > 0


def test_both_na():
    assert both_na([None, 1.0, float("nan"), 2.0], [None, None, float("nan"), 3.0]) == 2
    with pytest.raises(ValueError, match="same length"):
        both_na([1.0], [1.0, 2.0])


def test_mape():
    assert mape([100.0, 200.0], [110.0, 180.0]) == pytest.approx(0.1)


def test_haversine_scalar():
    # JFK to LAX
    d = haversine(40.6413, -73.7781, 33.9416, -118.4085)
    assert d == pytest.approx(3983, rel=0.01)
    assert haversine(10.0, 20.0, 10.0, 20.0) == 0.0


def test_haversine_vectors_and_expressions():
    df = pl.DataFrame(
        {"lat1": [0.0, 0.0], "lon1": [0.0, 0.0], "lat2": [0.0, 90.0], "lon2": [90.0, 0.0]}
    )
    quarter = math.pi / 2 * 6371.0
    eager = haversine(df["lat1"], df["lon1"], df["lat2"], df["lon2"])
    assert eager.to_list() == pytest.approx([quarter, quarter])

    lazy = df.select(
        haversine(pl.col("lat1"), pl.col("lon1"), pl.col("lat2"), pl.col("lon2")).alias("d")
    )
    assert lazy["d"].to_list() == pytest.approx([quarter, quarter])

    mixed = haversine(df["lat1"], df["lon1"], 0.0, 90.0)
    assert mixed.to_list() == pytest.approx([quarter, quarter])


def test_missing_text_is_not_nan():
    assert n_missing(pl.Series(["NaN", "x", None])) == 1
    assert prop_missing(["nan", "NaN", "a", None]) == pytest.approx(0.25)
    assert both_na(["NaN", None], [float("nan"), None]) == 1
