import pytest

from tidyfn.errors import LabelError
from tidyfn.tidyeval import as_label, embrace_select, englue, pick, quo, where


def test_optional_segment_kept_when_value_given():
    title = englue("A histogram of {var}[ with binwidth {binwidth}]", var=quo("carat"), binwidth=0.1)
    assert title == "A histogram of carat with binwidth 0.1"


def test_optional_segment_dropped_when_value_missing():
    title = englue("A histogram of {var}[ with binwidth {binwidth}]", var=quo("carat"), binwidth=None)
    assert title == "A histogram of carat"


def test_missing_marker_outside_optional_segment():
    assert englue("{var} by {group}", var=quo("price"), group=None) == "price by default"
    assert englue("{var} by {group}", missing="-", var=quo("price"), group=None) == "price by -"


def test_field_not_supplied():
    with pytest.raises(LabelError) as exc:
        englue("{var} vs {other}", var=quo("x"))
    assert exc.value.field == "other"
    assert "other" in str(exc.value)


def test_expression_labels_and_format_spec():
    d = quo("price / carat")
    assert englue("mean of {v}: {m:.2f}", v=d.mean(), m=3.14159) == "mean of mean(price / carat): 3.14"


def test_bracket_without_fields_is_literal():
    assert englue("{x} [units]", x=quo("depth")) == "depth [units]"


def test_selection_and_pick_labels():
    assert englue("by {cols}", cols=embrace_select("cut", "color")) == "by cut, color"
    assert englue("by {cols}", cols=pick("cut")) == "by pick(cut)"


def test_as_label():
    assert as_label(quo("x") > 1) == "x > 1"
    assert as_label(None) == "default"
    assert as_label(None, missing="none") == "none"
    assert as_label(3) == "3"

    def is_numeric(s):
        return s.dtype.is_numeric()

    assert as_label(where(is_numeric)) == "where(is_numeric)"


def test_missing_value_ignores_format_spec():
    assert englue("bw {bw:.2f}", bw=None) == "bw default"
    assert englue("bw {bw:.2f}", bw=0.25) == "bw 0.25"
    assert englue("{var}[ (bw {bw:.1f})]", var=quo("carat"), bw=None) == "carat"
