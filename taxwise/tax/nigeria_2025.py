import logging
import math
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .base import (
    BracketContribution,
    BracketTableError,
    CalculationInput,
    CalculationResult,
    InvalidInputError,
    SupplementaryLevies,
    TaxEngine,
    TaxpayerClass,
)
from .brackets import bracket_table_from_params, round_half_up, walk_brackets

logger = logging.getLogger(__name__)

DEFAULT_PARAMS_PATH = Path(__file__).resolve().parent.parent / "config" / "rates_ng_2025.yaml"

EXEMPT_INDIVIDUAL = "individual_threshold"
EXEMPT_SMALL_COMPANY = "small_company"

# Labels used by the signup, pricing and profile screens over time.
_CLASS_ALIASES = {
    "individual": TaxpayerClass.INDIVIDUAL,
    "startup": TaxpayerClass.SMALL_BUSINESS,
    "small_business": TaxpayerClass.SMALL_BUSINESS,
    "small_businesses": TaxpayerClass.SMALL_BUSINESS,
    "big_firm": TaxpayerClass.LARGE_CORPORATION,
    "large_corporation": TaxpayerClass.LARGE_CORPORATION,
    "large_corporations": TaxpayerClass.LARGE_CORPORATION,
}


def load_params(path: Union[str, Path, None] = None) -> Dict[str, Any]:
    path = path or os.getenv("TAXWISE_RATES_PATH") or DEFAULT_PARAMS_PATH
    with open(path, "r", encoding="utf-8") as f:
        params = yaml.safe_load(f)
    if not isinstance(params, dict):
        raise BracketTableError(f"{path} does not contain a rates mapping")
    logger.info("Loaded tax rates from %s", path)
    return params


def normalize_taxpayer_class(raw: Union[str, TaxpayerClass, None]) -> TaxpayerClass:
    """Map any of the historical classification labels onto TaxpayerClass."""
    if isinstance(raw, TaxpayerClass):
        return raw
    if not isinstance(raw, str):
        raise InvalidInputError("taxpayer_class", f"expected a label, got {raw!r}")
    key = raw.strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return _CLASS_ALIASES[key]
    except KeyError:
        raise InvalidInputError("taxpayer_class", f"unknown taxpayer class {raw!r}")


def _check_amount(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(name, f"must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidInputError(name, "must be finite")
    if value < 0:
        raise InvalidInputError(name, f"must not be negative, got {value}")
    return float(value)


def _param(params: Dict[str, Any], section: str, key: str) -> float:
    try:
        return float(params[section][key])
    except (KeyError, TypeError, ValueError):
        raise BracketTableError(f"params are missing a numeric {section}.{key}")


class Nigeria2025TaxEngine(TaxEngine):
    """
    Personal and companies income tax estimate under the Nigeria Tax Act 2025.

    Individuals above the exemption threshold are taxed through the
    progressive bracket table; companies above the small company threshold
    pay a flat rate and also get development levy and VAT estimates.
    Amounts are only rounded once, when the result is assembled.
    """

    def __init__(self, params: Optional[Dict[str, Any]] = None):
        params = params if params is not None else load_params()
        self.table = bracket_table_from_params(params)
        self.individual_threshold = _param(params, "pit", "exemption_threshold")
        self.small_company_threshold = _param(params, "cit", "small_company_threshold")
        self.flat_rates = {
            TaxpayerClass.SMALL_BUSINESS: _param(params, "cit", "general_rate"),
            TaxpayerClass.LARGE_CORPORATION: _param(params, "cit", "large_enterprise_rate"),
        }
        self.development_levy_rate = _param(params, "levies", "development_levy_rate")
        self.development_levy_threshold = _param(params, "levies", "development_levy_threshold")
        self.vat_rate = _param(params, "levies", "vat_rate")

    def compute(self, calc_input: CalculationInput) -> CalculationResult:
        taxpayer_class = calc_input.taxpayer_class
        if not isinstance(taxpayer_class, TaxpayerClass):
            raise InvalidInputError("taxpayer_class", f"unknown taxpayer class {taxpayer_class!r}")
        gross = _check_amount("gross_earnings", calc_input.gross_earnings)
        deductions = _check_amount("deductions", calc_input.deductions)

        taxable = max(0.0, gross - deductions)
        is_individual = taxpayer_class is TaxpayerClass.INDIVIDUAL

        exemption = None
        breakdown = ()
        tax = 0.0
        if is_individual:
            if taxable <= self.individual_threshold:
                exemption = EXEMPT_INDIVIDUAL
            else:
                breakdown, tax = walk_brackets(taxable, self.table)
        else:
            if taxable <= self.small_company_threshold:
                exemption = EXEMPT_SMALL_COMPANY
            else:
                rate = self.flat_rates[taxpayer_class]
                tax = taxable * rate
                breakdown = (BracketContribution(
                    bracket_label=f"Flat rate {rate * 100:g}%",
                    rate=rate,
                    taxable_amount_in_bracket=taxable,
                    tax_in_bracket=tax,
                ),)

        effective_rate = (tax / taxable * 100.0) if taxable > 0 else 0.0

        levies = None
        if not is_individual:
            levies = self._levies(gross, taxable)

        logger.debug(
            "Computed %s tax on %.2f taxable income: %.2f (exemption=%s)",
            taxpayer_class.value, taxable, tax, exemption,
        )
        return CalculationResult(
            taxpayer_class=taxpayer_class,
            gross_earnings=gross,
            deductions=deductions,
            taxable_income=taxable,
            total_tax_owed=round_half_up(tax),
            effective_rate=round_half_up(effective_rate, 2),
            breakdown=breakdown,
            supplementary_levies=levies,
            exemption=exemption,
            year=calc_input.year,
        )

    def _levies(self, gross: float, taxable: float) -> SupplementaryLevies:
        development_levy = 0.0
        if taxable > self.development_levy_threshold:
            development_levy = round_half_up(taxable * self.development_levy_rate)
        # VAT is estimated on turnover, hence gross earnings rather than taxable income.
        return SupplementaryLevies(
            development_levy=development_levy,
            vat_estimate=round_half_up(gross * self.vat_rate),
        )


@lru_cache(maxsize=1)
def default_engine() -> Nigeria2025TaxEngine:
    return Nigeria2025TaxEngine()


def compute_tax(calc_input: CalculationInput, params: Optional[Dict[str, Any]] = None) -> CalculationResult:
    engine = Nigeria2025TaxEngine(params) if params is not None else default_engine()
    return engine.compute(calc_input)
