"""
Tax model for the comparison engine.

Two layers:
- `effective_rate` turns a jurisdiction's flat rates into the single decimal the
  projection engine uses. Every rate is clamped into [0, 1] first (below 0 floors
  to 0, above 1 caps to 1, NaN maps to 0).
- Simplified progressive income tax (allowance + bands) used to derive a flat
  average rate from a country's bracket table at a reference income.

Sub-jurisdiction composition rule (e.g. a US state on top of federal):
  ADDITIVE: min(1, national + sub)     <- default
  MAX:      max(national, sub)
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from models import IncomeType, JurisdictionTaxProfile, RateComposition, clamp_rate


def compose(national: float, sub: Optional[float],
            rule: RateComposition = RateComposition.ADDITIVE) -> float:
    national = clamp_rate(national)
    if sub is None:
        return national
    sub = clamp_rate(sub)
    if rule == RateComposition.MAX:
        return max(national, sub)
    return clamp_rate(national + sub)


def effective_rate(profile: JurisdictionTaxProfile, income_type: IncomeType) -> float:
    """Combined rate in [0, 1] for `income_type`. Pure; never raises on bad rates."""
    if IncomeType(income_type) == IncomeType.CAPITAL_GAINS:
        national, sub = profile.capital_gains_tax_rate, profile.sub_capital_gains_tax_rate
    else:
        national, sub = profile.income_tax_rate, profile.sub_income_tax_rate
    return compose(national, sub, profile.composition)


# ---------- Progressive brackets ----------
@dataclass
class Band:
    up_to: float  # upper threshold of taxable income (after allowance); math.inf for top
    rate: float   # marginal rate, e.g., 0.20 for 20%


@dataclass
class TaxSystem:
    name: str
    allowance: float = 0.0             # personal allowance / standard deduction (applied before bands)
    bands: List[Band] = field(default_factory=list)  # sorted by up_to
    taper_start: Optional[float] = None  # UK-style allowance taper threshold
    taper_ratio: float = 0.5             # allowance lost per unit above taper_start


def _allowance(gross: float, sys: TaxSystem) -> float:
    if sys.taper_start is None or gross <= sys.taper_start:
        return sys.allowance
    return max(0.0, sys.allowance - (gross - sys.taper_start) * sys.taper_ratio)


def tax_due(gross: float, sys: TaxSystem) -> float:
    if not gross > 0:
        return 0.0
    taxable = max(0.0, gross - _allowance(gross, sys))
    tax = 0.0
    last = 0.0
    for band in sys.bands:
        width = max(0.0, min(taxable, band.up_to) - last)
        tax += width * band.rate
        last = band.up_to
        if taxable <= last:
            break
    return tax


def net_from_gross(gross: float, sys: TaxSystem) -> float:
    return gross - tax_due(gross, sys)


def gross_for_net(net_target: float, sys: TaxSystem) -> float:
    """Gross income needed to keep `net_target` after tax (bisection)."""
    if not net_target > 0:
        return 0.0
    lo, hi = 0.0, max(2_000_000.0, net_target * 100)
    for _ in range(70):
        mid = (lo + hi) / 2.0
        if net_from_gross(mid, sys) < net_target:
            lo = mid
        else:
            hi = mid
    return hi


def average_rate(gross: float, sys: TaxSystem) -> float:
    """Effective (average) income tax rate at `gross`, in [0, 1]."""
    if not (gross > 0 and math.isfinite(gross)):
        return 0.0
    return clamp_rate(tax_due(gross, sys) / gross)


def tax_breakdown(gross: float, sys: TaxSystem, gains: float = 0.0, gains_rate: float = 0.0) -> dict:
    """
    Itemised tax on `gross` income plus `gains` taxed at a flat `gains_rate`.
    `bands` has one row per band the income reaches: lower, upper, rate,
    taxable_amount, tax. Totals agree with `tax_due`.
    """
    gross = gross if gross > 0 and math.isfinite(gross) else 0.0
    gains = gains if gains > 0 and math.isfinite(gains) else 0.0
    allowance = min(gross, _allowance(gross, sys))
    taxable = gross - allowance

    rows = []
    last = 0.0
    for band in sys.bands:
        if taxable <= last:
            break
        amount = min(taxable, band.up_to) - last
        rows.append({"lower": last, "upper": band.up_to, "rate": band.rate,
                     "taxable_amount": amount, "tax": amount * band.rate})
        last = band.up_to

    bands = pd.DataFrame(rows, columns=["lower", "upper", "rate", "taxable_amount", "tax"])
    income_tax = float(bands["tax"].sum())
    gains_tax = gains * clamp_rate(gains_rate)
    total = income_tax + gains_tax
    return {
        "gross_income": gross,
        "allowance": allowance,
        "taxable_income": taxable,
        "income_tax": income_tax,
        "income_tax_rate": income_tax / gross if gross else 0.0,
        "capital_gains": gains,
        "capital_gains_tax": gains_tax,
        "total_tax": total,
        "effective_rate": total / (gross + gains) if gross + gains else 0.0,
        "net_income": gross + gains - total,
        "bands": bands,
    }
