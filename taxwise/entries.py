import logging
from typing import List, Optional, Tuple

import pandas as pd

from .models import EntryTotals, TaxResponse, TaxSummary
from .tax.base import CalculationInput, InvalidInputError, TaxEngine, TaxpayerClass
from .tax.nigeria_2025 import default_engine

logger = logging.getLogger(__name__)

ENTRY_TYPES = {"earning", "deduction"}
UNCATEGORIZED = "uncategorized"


def normalize_entries(df: pd.DataFrame) -> Tuple[pd.DataFrame, List[str]]:
    df = df.copy()
    df.columns = [str(c).lower().strip() for c in df.columns]
    req = {"type", "amount"}
    if not req.issubset(set(df.columns)):
        raise InvalidInputError("entries", f"missing required columns: {sorted(req - set(df.columns))}")

    warnings: List[str] = []
    df["type"] = df["type"].astype(str).str.strip().str.lower()
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0)
    if "category" not in df.columns:
        df["category"] = UNCATEGORIZED
    df["category"] = df["category"].fillna(UNCATEGORIZED).astype(str).str.strip()
    df.loc[df["category"] == "", "category"] = UNCATEGORIZED
    if "date" in df.columns:
        df["date"] = pd.to_datetime(df["date"], errors="coerce")
    else:
        df["date"] = pd.NaT

    unknown = ~df["type"].isin(ENTRY_TYPES)
    if unknown.any():
        warnings.append(f"{int(unknown.sum())} entries ignored: type must be 'earning' or 'deduction'.")
        df = df.loc[~unknown]

    if (df["amount"] < 0).any():
        raise InvalidInputError("amount", "entry amounts must not be negative")
    return df, warnings


def summarize_entries(df: pd.DataFrame, year: Optional[int] = None) -> Tuple[EntryTotals, List[str]]:
    df, warnings = normalize_entries(df)

    if year is not None:
        undated = df["date"].isna()
        if undated.any():
            warnings.append(f"{int(undated.sum())} undated entries left out of the {year} totals.")
        df = df.loc[~undated & (df["date"].dt.year == year)]
        if df.empty:
            warnings.append(f"No entries recorded for {year}.")

    earnings = df.loc[df["type"] == "earning"]
    deductions = df.loc[df["type"] == "deduction"]

    totals = EntryTotals(
        total_earnings=round(float(earnings["amount"].sum()), 2),
        total_deductions=round(float(deductions["amount"].sum()), 2),
        entry_count=int(len(df)),
        earnings_by_category={k: round(float(v), 2) for k, v in earnings.groupby("category")["amount"].sum().items()},
        deductions_by_category={k: round(float(v), 2) for k, v in deductions.groupby("category")["amount"].sum().items()},
    )
    return totals, warnings


def _latest_entry_year(df: pd.DataFrame) -> Optional[int]:
    cols = {str(c).lower().strip(): c for c in df.columns}
    if "date" not in cols:
        return None
    dates = pd.to_datetime(df[cols["date"]], errors="coerce").dropna()
    if dates.empty:
        return None
    return int(dates.max().year)


def build_tax_summary(
    df: pd.DataFrame,
    *,
    taxpayer_class: TaxpayerClass = TaxpayerClass.INDIVIDUAL,
    year: Optional[int] = None,
    default_year: Optional[int] = None,
    engine: Optional[TaxEngine] = None,
) -> TaxSummary:
    """
    Total a ledger of earning/deduction entries and estimate the tax on it.

    When `year` is given only entries dated in that year count; otherwise the
    whole ledger is used and reported under the latest entry year (or
    `default_year` when nothing is dated).
    """
    engine = engine or default_engine()
    totals, warnings = summarize_entries(df, year=year)

    report_year = year
    if report_year is None:
        report_year = _latest_entry_year(df) or default_year

    result = engine.compute(CalculationInput(
        taxpayer_class=taxpayer_class,
        gross_earnings=totals.total_earnings,
        deductions=totals.total_deductions,
        year=report_year,
    ))

    if totals.total_deductions > totals.total_earnings:
        warnings.append("Deductions exceed earnings: taxable income is zero.")

    logger.info(
        "Tax summary for %s (%s): %d entries, tax %.0f",
        report_year, taxpayer_class.value, totals.entry_count, result.total_tax_owed,
    )
    return TaxSummary(
        year=report_year,
        totals=totals,
        tax=TaxResponse.from_result(result),
        warnings=warnings,
    )
