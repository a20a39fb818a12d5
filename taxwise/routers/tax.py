import io
import logging
from datetime import date
from typing import Optional

import pandas as pd
from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import JSONResponse

from ..entries import build_tax_summary
from ..models import SummaryRequest, TaxRequest, TaxResponse, TaxSummary
from ..settings import get_cors_headers
from ..tax.base import CalculationInput, InvalidInputError
from ..tax.nigeria_2025 import default_engine, normalize_taxpayer_class

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Tax"])

ENTRY_COLUMNS = ["type", "amount", "category", "description", "date"]


def current_tax_year() -> int:
    return date.today().year


def _taxpayer_class(raw: Optional[str]):
    return normalize_taxpayer_class(raw or "individual")


@router.post("/calculate-tax", response_model=TaxResponse)
def calculate_tax(body: TaxRequest):
    if body.income is None or body.income < 0:
        raise InvalidInputError("income", "Valid income amount required")

    calc_input = CalculationInput(
        taxpayer_class=_taxpayer_class(body.taxpayer_class),
        gross_earnings=body.income,
        deductions=body.deductions or 0.0,
        year=body.year if body.year is not None else current_tax_year(),
    )
    result = default_engine().compute(calc_input)
    response = TaxResponse.from_result(result)

    return JSONResponse(
        content=response.model_dump(by_alias=True),
        headers=get_cors_headers()
    )


@router.post("/tax/summary", response_model=TaxSummary)
def tax_summary(body: SummaryRequest):
    df = pd.DataFrame([e.model_dump() for e in body.entries], columns=ENTRY_COLUMNS)
    summary = build_tax_summary(
        df,
        taxpayer_class=_taxpayer_class(body.taxpayer_class),
        year=body.year,
        default_year=current_tax_year(),
    )
    return JSONResponse(
        content=summary.model_dump(by_alias=True),
        headers=get_cors_headers()
    )


@router.post("/tax/summary/csv", response_model=TaxSummary)
async def tax_summary_csv(
    file: UploadFile = File(...),
    year: Optional[int] = Form(None),
    taxpayer_class: Optional[str] = Form(None, alias="taxpayerClass"),
):
    if not (file.filename or "").lower().endswith(".csv"):
        raise InvalidInputError("file", "Please upload a CSV file.")

    try:
        df = pd.read_csv(io.BytesIO(await file.read()))
    except Exception as e:
        logger.warning("Unreadable entries CSV %s: %s", file.filename, e)
        raise InvalidInputError("file", "Unreadable CSV")

    summary = build_tax_summary(
        df,
        taxpayer_class=_taxpayer_class(taxpayer_class),
        year=year,
        default_year=current_tax_year(),
    )
    return JSONResponse(
        content=summary.model_dump(by_alias=True),
        headers=get_cors_headers()
    )
