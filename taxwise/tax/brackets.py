"""
Bracket tables: construction from rate parameters, validation and the
progressive walk shared by the income tax engines.
"""

from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any, Dict, List, Sequence, Tuple

from .base import BracketContribution, BracketRule, BracketTableError

BracketTable = Tuple[BracketRule, ...]


def round_half_up(value: float, places: int = 0) -> float:
    """Round to `places` decimals, halves away from zero (no banker's rounding)."""
    quantum = Decimal(1).scaleb(-places)
    exact = Decimal(repr(value))
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the kept decimals
        ctx.prec = max(28, exact.adjusted() + places + 2)
        return float(exact.quantize(quantum, rounding=ROUND_HALF_UP))


def _money(amount: float, symbol: str) -> str:
    return f"{symbol}{amount:,.0f}"


def bracket_width(rule: BracketRule) -> float:
    """Inclusive width of a bounded bracket; open-ended brackets have no width."""
    if rule.upper_bound is None:
        raise BracketTableError("open-ended bracket has no fixed width")
    return rule.upper_bound - rule.lower_bound + 1


def default_label(rule: BracketRule, position: int, symbol: str) -> str:
    if rule.upper_bound is None:
        return f"Above {_money(rule.lower_bound - 1, symbol)}"
    if position == 0:
        return f"First {_money(rule.upper_bound, symbol)}"
    return f"Next {_money(bracket_width(rule), symbol)}"


def validate_bracket_table(rules: Sequence[BracketRule]) -> None:
    if not rules:
        raise BracketTableError("bracket table is empty")
    if rules[0].lower_bound != 0:
        raise BracketTableError("first bracket must start at 0")
    if rules[-1].upper_bound is not None:
        raise BracketTableError("last bracket must be open-ended")

    previous = None
    for i, rule in enumerate(rules):
        if rule.rate < 0:
            raise BracketTableError(f"bracket {i}: negative rate {rule.rate}")
        if rule.upper_bound is None and i != len(rules) - 1:
            raise BracketTableError(f"bracket {i}: only the last bracket may be open-ended")
        if rule.upper_bound is not None and rule.upper_bound <= rule.lower_bound:
            raise BracketTableError(f"bracket {i}: upper bound must exceed lower bound")
        if previous is not None:
            if rule.lower_bound != previous.upper_bound + 1:
                raise BracketTableError(
                    f"bracket {i}: lower bound {rule.lower_bound:g} does not follow "
                    f"previous upper bound {previous.upper_bound:g}"
                )
            if rule.rate < previous.rate:
                raise BracketTableError(f"bracket {i}: rates must be non-decreasing")
        previous = rule


def bracket_table_from_params(params: Dict[str, Any]) -> BracketTable:
    try:
        raw_brackets = params["pit"]["brackets"]
    except (KeyError, TypeError):
        raise BracketTableError("params are missing pit.brackets")
    if not isinstance(raw_brackets, list):
        raise BracketTableError("pit.brackets must be a list")

    symbol = params.get("currency_symbol", "")
    rules: List[BracketRule] = []
    for i, raw in enumerate(raw_brackets):
        try:
            upper = raw.get("upper")
            rules.append(BracketRule(
                lower_bound=float(raw["lower"]),
                upper_bound=None if upper is None else float(upper),
                rate=float(raw["rate"]),
                label=raw.get("label") or "",
            ))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise BracketTableError(f"bracket {i} is malformed: {e}")

    validate_bracket_table(rules)

    labelled = []
    for i, rule in enumerate(rules):
        if rule.label:
            labelled.append(rule)
        else:
            labelled.append(BracketRule(
                lower_bound=rule.lower_bound,
                upper_bound=rule.upper_bound,
                rate=rule.rate,
                label=default_label(rule, i, symbol),
            ))
    return tuple(labelled)


def walk_brackets(amount: float, table: BracketTable) -> Tuple[Tuple[BracketContribution, ...], float]:
    """
    Spread `amount` across the table from the bottom up.

    Returns the per-bracket contributions (only brackets that received income)
    and the unrounded total tax.
    """
    remaining = amount
    total = 0.0
    breakdown: List[BracketContribution] = []

    for rule in table:
        if remaining <= 0:
            break
        width = remaining if rule.upper_bound is None else bracket_width(rule)
        in_bracket = min(remaining, width)
        tax = in_bracket * rule.rate
        total += tax
        remaining -= in_bracket
        if in_bracket > 0:
            breakdown.append(BracketContribution(
                bracket_label=rule.label,
                rate=rule.rate,
                taxable_amount_in_bracket=in_bracket,
                tax_in_bracket=tax,
            ))

    return tuple(breakdown), total
