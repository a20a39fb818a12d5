import pandas as pd
from taxwise.entries import build_tax_summary

def test_smoke():
    df = pd.DataFrame([
        {"type": "earning", "category": "Salary", "amount": 1000000, "date": "2025-06-30"},
        {"type": "deduction", "category": "Pension", "amount": 80000, "date": "2025-06-30"},
    ])
    res = build_tax_summary(df, year=2025)
    assert res.totals.total_earnings == 1000000
    assert res.tax.estimated_tax >= 0
