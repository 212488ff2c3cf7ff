import polars as pl
import polars.selectors as cs
import pytest

from tidyfn import verbs as tv
from tidyfn.errors import UnresolvedReferenceError
from tidyfn.helpers.frame import (
    count_missing,
    count_prop,
    count_wide,
    grouped_mean,
    pull_unique,
    subset_rows_cols,
    summarize_means,
    summary6,
    unique_where,
)
from tidyfn.tidyeval import embrace_select, quo


class TestCountProp:
    def test_counts_and_proportions(self, clarity_frame):
        out = count_prop(clarity_frame, "clarity")
        assert out.columns == ["clarity", "n", "prop"]
        rows = [(c, n, round(p, 3)) for c, n, p in out.rows()]
        assert rows == [("A", 2, 0.667), ("B", 1, 0.333)]
        assert out["prop"].sum() == pytest.approx(1.0)

    def test_sorted(self, diamonds_data):
        out = count_prop(diamonds_data, "cut", sort=True)
        assert out["cut"][0] == "Premium"
        assert out["n"].to_list() == sorted(out["n"].to_list(), reverse=True)

    def test_expression(self, diamonds_data):
        out = count_prop(diamonds_data, "carat > 1")
        assert out.rows() == [(False, 23, pytest.approx(23 / 26)), (True, 3, pytest.approx(3 / 26))]


class TestGroupedMean:
    def test_column(self):
        df = pl.DataFrame({"g": ["a", "b", "a"], "x": [1.0, 5.0, 3.0]})
        assert grouped_mean(df, "g", "x").rows() == [("a", 2.0), ("b", 5.0)]

    def test_expression_value(self, diamonds_data):
        out = grouped_mean(diamonds_data, "cut", "price / carat")
        assert out.columns == ["cut", "mean"]
        assert out.height == 5

    def test_missing_column_names_operation(self, diamonds_data):
        with pytest.raises(UnresolvedReferenceError, match="group_by\\(\\): object 'nope'"):
            grouped_mean(diamonds_data, "nope", "carat")


class TestSummary6:
    def test_ungrouped(self, synthetic_group_frame):
        _, df = synthetic_group_frame
        out = summary6(df.filter(pl.col("group") == "b"), "value")
        assert out.columns == ["min", "mean", "median", "max", "n", "n_miss"]
        assert out.row(0) == (0.5, 0.5, 0.5, 0.5, 3, 0)

    def test_grouped(self):
        df = pl.DataFrame({"g": ["a", "a", "b", "b"], "x": [1.0, None, 2.0, 4.0]})
        out = summary6(tv.group_by(df, quo("g")), "x")
        assert out.columns == ["g", "min", "mean", "median", "max", "n", "n_miss"]
        assert out.row(0) == ("a", 1.0, 1.0, 1.0, 1.0, 2, 1)
        assert out.row(1) == ("b", 2.0, 3.0, 3.0, 4.0, 2, 0)

    def test_expression(self, diamonds_data):
        out = summary6(diamonds_data, "log10(price)")
        assert out["max"].item() == pytest.approx(4.1818, abs=1e-4)


class TestUniqueWhere:
    def test_sorted_distinct(self, flights_data):
        out = unique_where(flights_data, "month = 1", "carrier")
        assert out["carrier"].to_list() == ["AA", "B6", "DL", "UA"]

    def test_compound_condition(self, flights_data):
        out = unique_where(flights_data, quo("dep_delay") < 0, "origin")
        assert out["origin"].to_list() == ["EWR", "JFK", "LGA"]


def test_pull_unique(diamonds_data):
    assert pull_unique(diamonds_data, "cut") == ["Ideal", "Premium", "Good", "Very Good", "Fair"]


class TestSubset:
    def test_rows_and_cols(self, flights_data):
        out = subset_rows_cols(flights_data, "dep_time IS NULL", ["carrier", "origin"])
        assert out.rows() == [("DL", "LGA"), ("B6", "EWR"), ("UA", "EWR")]

    def test_selector_cols(self, flights_data):
        out = subset_rows_cols(flights_data, "distance > 2000", cs.ends_with("delay"))
        assert out.columns == ["dep_delay", "arr_delay"]
        assert out.height == 1


class TestCountMissing:
    def test_by_day(self, flights_data):
        out = count_missing(flights_data, ["year", "month", "day"], "dep_time")
        assert out.columns == ["year", "month", "day", "n_miss", "n"]
        assert out.select("month", "day", "n_miss", "n").rows() == [
            (1, 1, 1, 4),
            (1, 2, 1, 3),
            (2, 1, 1, 3),
        ]

    def test_selection_range(self, flights_data):
        out = count_missing(flights_data, embrace_select("year:day"), "dep_time")
        assert out.height == 3


class TestCountWide:
    def test_counts_spread(self, flights_data):
        out = count_wide(flights_data, "origin", "carrier")
        assert out["origin"].to_list() == ["EWR", "JFK", "LGA"]
        assert set(out.columns) == {"origin", "AA", "B6", "DL", "UA"}
        ewr = out.filter(pl.col("origin") == "EWR").row(0, named=True)
        assert ewr == {"origin": "EWR", "B6": 1, "UA": 4, "AA": 0, "DL": 0}

    def test_several_columns(self, diamonds_data):
        out = count_wide(diamonds_data, "cut", ["color", "clarity"])
        assert out["cut"].to_list() == ["Fair", "Good", "Ideal", "Premium", "Very Good"]
        assert "E_SI2" in out.columns
        total = out.select(pl.sum_horizontal(pl.exclude("cut"))).to_series().sum()
        assert total == diamonds_data.height


def test_summarize_means_variadic(numeric_frame):
    out = summarize_means(numeric_frame, "g", "score_b", cs.starts_with("score"))
    assert out.columns == ["g", "score_b", "score_a"]
    assert out.row(0) == ("x", pytest.approx(23 / 3), pytest.approx(31 / 3))


def test_count_missing_partitions_groups_with_nan(synthetic_group_frame):
    _, df = synthetic_group_frame
    out = count_missing(df, "group", "value")
    assert out.rows() == [("a", 1, 1), ("b", 0, 3), ("c", 1, 3)]
    sizes = df.group_by("group").len().sort("group")["len"]
    assert (out["n_miss"] + out["n"]).to_list() == sizes.to_list()


def test_count_prop_on_column_named_n():
    df = pl.DataFrame({"n": [1, 1, 2]})
    with pytest.warns(UserWarning, match="'nn'"):
        out = count_prop(df, "n")
    assert out.columns == ["n", "nn", "prop"]
    assert [(k, c, round(p, 3)) for k, c, p in out.rows()] == [(1, 2, 0.667), (2, 1, 0.333)]
