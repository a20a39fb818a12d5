import copy

import pytest

from taxwise.tax.base import BracketRule, BracketTableError
from taxwise.tax.brackets import (
    bracket_table_from_params,
    round_half_up,
    validate_bracket_table,
    walk_brackets,
)
from taxwise.tax.nigeria_2025 import Nigeria2025TaxEngine, load_params


@pytest.fixture
def params():
    return load_params()


def test_default_table_matches_2025_schedule(params):
    table = bracket_table_from_params(params)
    assert [(r.lower_bound, r.upper_bound, r.rate) for r in table] == [
        (0, 800_000, 0.00),
        (800_001, 3_000_000, 0.15),
        (3_000_001, 12_000_000, 0.18),
        (12_000_001, 25_000_000, 0.21),
        (25_000_001, 50_000_000, 0.23),
        (50_000_001, None, 0.25),
    ]
    assert [r.label for r in table] == [
        "First ₦800,000",
        "Next ₦2,200,000",
        "Next ₦9,000,000",
        "Next ₦13,000,000",
        "Next ₦25,000,000",
        "Above ₦50,000,000",
    ]


def test_explicit_label_is_kept(params):
    params["pit"]["brackets"][0]["label"] = "Tax free"
    table = bracket_table_from_params(params)
    assert table[0].label == "Tax free"


def test_walk_stops_when_income_is_used_up(params):
    table = bracket_table_from_params(params)
    breakdown, total = walk_brackets(3_000_001, table)
    assert [b.taxable_amount_in_bracket for b in breakdown] == [800_001, 2_200_000]
    assert total == pytest.approx(330_000)


def test_walk_of_zero_is_empty(params):
    breakdown, total = walk_brackets(0, bracket_table_from_params(params))
    assert breakdown == ()
    assert total == 0


@pytest.mark.parametrize(
    "rules, message",
    [
        ([], "empty"),
        ([BracketRule(1, None, 0.1)], "start at 0"),
        ([BracketRule(0, 100, 0.1)], "open-ended"),
        ([BracketRule(0, 100, 0.1), BracketRule(150, None, 0.2)], "does not follow"),
        ([BracketRule(0, 100, 0.1), BracketRule(100, None, 0.2)], "does not follow"),
        ([BracketRule(0, 100, 0.2), BracketRule(101, None, 0.1)], "non-decreasing"),
        ([BracketRule(0, 100, -0.1), BracketRule(101, None, 0.1)], "negative rate"),
        ([BracketRule(0, None, 0.1), BracketRule(1, None, 0.1)], "only the last"),
        ([BracketRule(0, 0, 0.1), BracketRule(1, None, 0.1)], "must exceed"),
    ],
)
def test_invalid_tables_are_rejected(rules, message):
    with pytest.raises(BracketTableError, match=message):
        validate_bracket_table(rules)


def test_malformed_params_are_rejected(params):
    broken = copy.deepcopy(params)
    del broken["pit"]["brackets"][2]["rate"]
    with pytest.raises(BracketTableError, match="malformed"):
        bracket_table_from_params(broken)

    with pytest.raises(BracketTableError, match="missing pit.brackets"):
        bracket_table_from_params({"cit": {}})

    missing_levy = copy.deepcopy(params)
    del missing_levy["levies"]["vat_rate"]
    with pytest.raises(BracketTableError, match="levies.vat_rate"):
        Nigeria2025TaxEngine(missing_levy)


def test_gap_in_params_table_is_rejected(params):
    params["pit"]["brackets"][1]["lower"] = 900_000
    with pytest.raises(BracketTableError):
        Nigeria2025TaxEngine(params)


@pytest.mark.parametrize(
    "value, places, expected",
    [
        (0.5, 0, 1.0),
        (1.5, 0, 2.0),
        (2.5, 0, 3.0),
        (29_999.85, 0, 30_000.0),
        (2.999985, 2, 3.0),
        (13.7999964, 2, 13.8),
        (0.125, 2, 0.13),
    ],
)
def test_round_half_up(value, places, expected):
    assert round_half_up(value, places) == expected


@pytest.mark.parametrize("value, places", [(4e28, 0), (1e30, 2), (2.5e29, 4)])
def test_round_half_up_large_magnitudes(value, places):
    assert round_half_up(value, places) == value
