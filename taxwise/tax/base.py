from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class TaxpayerClass(str, Enum):
    INDIVIDUAL = "individual"
    SMALL_BUSINESS = "small_business"
    LARGE_CORPORATION = "large_corporation"


class InvalidInputError(Exception):
    """Raised when a calculation input is out of range or unrecognised."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class BracketTableError(ValueError):
    """Raised when the rate parameters do not describe a valid bracket table."""


@dataclass(frozen=True)
class BracketRule:
    lower_bound: float
    upper_bound: Optional[float]  # None = no ceiling
    rate: float
    label: str = ""

    @property
    def is_open_ended(self) -> bool:
        return self.upper_bound is None


@dataclass(frozen=True)
class CalculationInput:
    taxpayer_class: TaxpayerClass
    gross_earnings: float
    deductions: float = 0.0
    year: Optional[int] = None


@dataclass(frozen=True)
class BracketContribution:
    bracket_label: str
    rate: float
    taxable_amount_in_bracket: float
    tax_in_bracket: float


@dataclass(frozen=True)
class SupplementaryLevies:
    development_levy: float
    vat_estimate: float


@dataclass(frozen=True)
class CalculationResult:
    taxpayer_class: TaxpayerClass
    gross_earnings: float
    deductions: float
    taxable_income: float
    total_tax_owed: float
    effective_rate: float
    breakdown: Tuple[BracketContribution, ...] = field(default_factory=tuple)
    supplementary_levies: Optional[SupplementaryLevies] = None
    exemption: Optional[str] = None
    year: Optional[int] = None


class TaxEngine:
    def compute(self, calc_input: CalculationInput) -> CalculationResult:
        raise NotImplementedError
