from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional, Dict

from .tax.base import CalculationResult
from .tax.brackets import round_half_up


class TaxRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    income: Optional[float] = None
    deductions: Optional[float] = 0.0
    year: Optional[int] = None
    taxpayer_class: Optional[str] = Field(default=None, alias="taxpayerClass")

    @field_validator("income", "deductions", mode="before")
    @classmethod
    def reject_booleans(cls, v):
        if isinstance(v, bool):
            raise ValueError("must be a number, not a boolean")
        return v


class BreakdownItem(BaseModel):
    bracket: str
    rate: float
    amount: float


class Levies(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    development_levy: float = Field(alias="developmentLevy")
    vat_estimate: float = Field(alias="vatEstimate")


class TaxResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    income: float
    deductions: float
    taxable_income: float = Field(alias="taxableIncome")
    estimated_tax: float = Field(alias="estimatedTax")
    tax_rate: float = Field(alias="taxRate")
    effective_rate: float = Field(alias="effectiveRate")
    breakdown: List[BreakdownItem] = []
    year: Optional[int] = None
    taxpayer_class: str = Field(alias="taxpayerClass")
    exemption: Optional[str] = None
    supplementary_levies: Optional[Levies] = Field(default=None, alias="supplementaryLevies")

    @classmethod
    def from_result(cls, result: CalculationResult) -> "TaxResponse":
        levies = None
        if result.supplementary_levies is not None:
            levies = Levies(
                development_levy=result.supplementary_levies.development_levy,
                vat_estimate=result.supplementary_levies.vat_estimate,
            )
        return cls(
            income=result.gross_earnings,
            deductions=result.deductions,
            taxable_income=result.taxable_income,
            estimated_tax=result.total_tax_owed,
            tax_rate=round_half_up(result.effective_rate / 100.0, 4),
            effective_rate=result.effective_rate,
            breakdown=[
                BreakdownItem(
                    bracket=b.bracket_label,
                    rate=b.rate,
                    amount=round_half_up(b.tax_in_bracket, 2),
                )
                for b in result.breakdown
            ],
            year=result.year,
            taxpayer_class=result.taxpayer_class.value,
            exemption=result.exemption,
            supplementary_levies=levies,
        )


class Entry(BaseModel):
    type: str
    amount: float
    category: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None


class SummaryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    entries: List[Entry] = []
    year: Optional[int] = None
    taxpayer_class: Optional[str] = Field(default=None, alias="taxpayerClass")


class EntryTotals(BaseModel):
    total_earnings: float = 0.0
    total_deductions: float = 0.0
    entry_count: int = 0
    earnings_by_category: Dict[str, float] = Field(default_factory=dict)
    deductions_by_category: Dict[str, float] = Field(default_factory=dict)


class TaxSummary(BaseModel):
    year: Optional[int] = None
    totals: EntryTotals
    tax: TaxResponse
    warnings: List[str] = []
