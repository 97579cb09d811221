"""
Value types shared by the tax model, projection engine, simulator and comparator.

Every entity is created fresh per comparison and never mutated afterwards.
Raw inputs go through `sanitize_profile` / `sanitize_tax` before any arithmetic:
out-of-range values are clamped to documented fallbacks instead of raising, so a
comparison always produces a result even from partially malformed input.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from loguru import logger

from config import DEFAULTS

MIN_AGE, MAX_AGE = 1, 120
# Sentinel for "FIRE not reached within the horizon cap".
NEVER = None


class MissingJurisdictionData(LookupError):
    """A tax/cost profile was not supplied for a side of the comparison."""


class IncomeType(str, Enum):
    INCOME = "income"
    CAPITAL_GAINS = "capitalGains"


class RateComposition(str, Enum):
    ADDITIVE = "additive"   # national + sub-jurisdiction, capped at 1.0
    MAX = "max"             # larger of the two


class Winner(str, Enum):
    A = "A"
    B = "B"


class WinReason(str, Enum):
    EARLIER_RETIREMENT = "earlierRetirement"
    LOWER_FIRE_NUMBER = "lowerFireNumber"


# ---------- Clamping ----------
def _is_number(x) -> bool:
    return isinstance(x, (int, float, np.integer, np.floating)) and not isinstance(x, bool)


def clamp_rate(x, lo: float = 0.0, hi: float = 1.0, default: float = 0.0) -> float:
    """Clamp into [lo, hi]; None and NaN map to `default`."""
    if not _is_number(x) or math.isnan(x):
        return default
    return float(min(hi, max(lo, x)))


def clamp_money(x) -> float:
    """Non-negative finite amount; anything else is 0."""
    if not _is_number(x) or not math.isfinite(x) or x < 0:
        return 0.0
    return float(x)


def clamp_age(x, default: int = DEFAULTS["current_age"]) -> int:
    if not _is_number(x) or not math.isfinite(x):
        return default
    return int(min(MAX_AGE, max(MIN_AGE, round(x))))


def positive_or(x, fallback: float) -> float:
    """Strictly positive finite value, else `fallback`. Guards every divisor."""
    if not _is_number(x) or not math.isfinite(x) or x <= 0:
        return fallback
    return float(x)


def finite_rate(x, lo: float = -1.0, default: float = 0.0) -> float:
    """Rate floored at `lo`. None, NaN and infinities map to `default`."""
    if not _is_number(x) or not math.isfinite(x):
        return default
    return float(max(lo, x))


# ---------- Inputs ----------
@dataclass(frozen=True)
class FinancialProfile:
    current_age: int
    net_worth: float
    annual_contribution: float = 0.0
    gross_income: float = 0.0
    savings_rate: float = 0.0            # share of gross income saved on top of annual_contribution
    expected_return: float = DEFAULTS["expected_return"]   # nominal
    annual_spending: float = 0.0
    safe_withdrawal_rate: float = DEFAULTS["safe_withdrawal_rate"]
    inflation_rate: Optional[float] = None
    pension_amount: float = DEFAULTS["pension_amount"]    # annual, today's money, base currency
    pension_age: int = DEFAULTS["pension_age"]

    @property
    def gross_contribution(self) -> float:
        return self.annual_contribution + self.savings_rate * self.gross_income


@dataclass(frozen=True)
class JurisdictionTaxProfile:
    income_tax_rate: float
    capital_gains_tax_rate: float
    sub_income_tax_rate: Optional[float] = None
    sub_capital_gains_tax_rate: Optional[float] = None
    composition: RateComposition = RateComposition.ADDITIVE
    cost_of_living_multiplier: float = DEFAULTS["cost_of_living_multiplier"]
    code: str = ""
    currency: str = DEFAULTS["base_currency"]


def _log_clamped(kind: str, before, after):
    changed = [k for k in vars(before) if not _same(getattr(before, k), getattr(after, k))]
    if changed:
        logger.warning(f"Clamped invalid {kind} field(s): {', '.join(changed)}")


def _same(a, b) -> bool:
    if _is_number(a) and _is_number(b):
        return a == b or (math.isnan(a) and math.isnan(b))
    return a == b


def sanitize_profile(p: FinancialProfile) -> FinancialProfile:
    out = FinancialProfile(
        current_age=clamp_age(p.current_age),
        net_worth=clamp_money(p.net_worth),
        annual_contribution=clamp_money(p.annual_contribution),
        gross_income=clamp_money(p.gross_income),
        savings_rate=clamp_rate(p.savings_rate),
        expected_return=finite_rate(p.expected_return),
        annual_spending=clamp_money(p.annual_spending),
        safe_withdrawal_rate=min(1.0, positive_or(p.safe_withdrawal_rate, DEFAULTS["safe_withdrawal_rate"])),
        inflation_rate=finite_rate(p.inflation_rate, default=DEFAULTS["inflation_rate"]),
        pension_amount=clamp_money(p.pension_amount),
        pension_age=clamp_age(p.pension_age, default=DEFAULTS["pension_age"]),
    )
    # An unset inflation rate is expected, not invalid.
    _log_clamped("profile", replace(p, inflation_rate=out.inflation_rate) if p.inflation_rate is None else p, out)
    return out


def _composition(value) -> RateComposition:
    try:
        return RateComposition(value)
    except ValueError:
        return RateComposition.ADDITIVE


def sanitize_tax(t: Optional[JurisdictionTaxProfile]) -> JurisdictionTaxProfile:
    if t is None:
        raise MissingJurisdictionData("No tax/cost profile supplied for this jurisdiction")
    out = replace(
        t,
        income_tax_rate=clamp_rate(t.income_tax_rate),
        capital_gains_tax_rate=clamp_rate(t.capital_gains_tax_rate),
        sub_income_tax_rate=None if t.sub_income_tax_rate is None else clamp_rate(t.sub_income_tax_rate),
        sub_capital_gains_tax_rate=None if t.sub_capital_gains_tax_rate is None else clamp_rate(t.sub_capital_gains_tax_rate),
        composition=_composition(t.composition),
        cost_of_living_multiplier=positive_or(t.cost_of_living_multiplier, DEFAULTS["cost_of_living_multiplier"]),
    )
    _log_clamped("tax profile", t, out)
    return out


# ---------- Results ----------
@dataclass(frozen=True)
class YearSnapshot:
    year: int
    age: int
    net_worth: float
    contribution: float
    growth: float
    withdrawal: float
    fire_number: float
    is_fire: bool
    pension: float = 0.0


@dataclass(frozen=True)
class ProjectionResult:
    years_until_fire: Optional[int]     # NEVER (None) if not reached within the horizon cap
    fire_number: float                  # year-0 FIRE number, base currency
    trajectory: List[YearSnapshot]
    fire_age: Optional[int]
    income_tax_rate: float
    capital_gains_tax_rate: float
    gross_withdrawal: float
    warnings: List[str] = field(default_factory=list)   # e.g. portfolio depleted
    notes: List[str] = field(default_factory=list)      # jurisdiction facts worth knowing

    @property
    def reaches_fire(self) -> bool:
        return self.years_until_fire is not NEVER

    def trajectory_frame(self) -> pd.DataFrame:
        return pd.DataFrame([vars(s) for s in self.trajectory])


@dataclass
class SimulationResult:
    success_probability: float
    trials: int
    horizon_years: int
    ages: np.ndarray
    bands: Dict[int, np.ndarray]
    median_ending_net_worth: float
    median_years_to_fire: Optional[int]
    years_to_fire_distribution: np.ndarray

    def bands_frame(self) -> pd.DataFrame:
        df = pd.DataFrame({"age": self.ages})
        for p in sorted(self.bands):
            df[f"p{p}"] = self.bands[p]
        return df


@dataclass(frozen=True)
class Side:
    profile: FinancialProfile
    tax: Optional[JurisdictionTaxProfile]
    label: str = ""


@dataclass(frozen=True)
class ComparisonSummary:
    fire_number_difference: float
    fire_number_difference_pct: float   # of the mean of both FIRE numbers
    income_tax_rate_difference: float


@dataclass
class ComparisonResult:
    a: ProjectionResult
    b: ProjectionResult
    winner: Winner
    reason: WinReason
    summary: ComparisonSummary
    simulation_a: Optional[SimulationResult] = None
    simulation_b: Optional[SimulationResult] = None

    @property
    def winning(self) -> ProjectionResult:
        return self.a if self.winner is Winner.A else self.b


@dataclass(frozen=True)
class ComparisonRequest:
    """Everything a shareable comparison link carries."""
    home_country: str = DEFAULTS["home_country"]
    target_country: str = DEFAULTS["target_country"]
    home_state: Optional[str] = None
    target_state: Optional[str] = None
    base_currency: str = DEFAULTS["base_currency"]
    current_age: int = DEFAULTS["current_age"]
    net_worth: float = DEFAULTS["net_worth"]
    annual_contribution: float = DEFAULTS["annual_contribution"]
    gross_income: float = DEFAULTS["gross_income"]
    savings_rate: float = DEFAULTS["savings_rate"]
    expected_return: float = DEFAULTS["expected_return"]
    annual_spending: float = DEFAULTS["annual_spending"]
    safe_withdrawal_rate: float = DEFAULTS["safe_withdrawal_rate"]
    inflation_rate: float = DEFAULTS["inflation_rate"]
    pension_amount: float = DEFAULTS["pension_amount"]
    pension_age: int = DEFAULTS["pension_age"]
    trials: int = DEFAULTS["num_trials"]
    horizon_years: int = DEFAULTS["horizon_years"]
    volatility: float = DEFAULTS["volatility"]
    seed: int = DEFAULTS["seed"]

    def profile(self) -> FinancialProfile:
        return FinancialProfile(
            current_age=self.current_age,
            net_worth=self.net_worth,
            annual_contribution=self.annual_contribution,
            gross_income=self.gross_income,
            savings_rate=self.savings_rate,
            expected_return=self.expected_return,
            annual_spending=self.annual_spending,
            safe_withdrawal_rate=self.safe_withdrawal_rate,
            inflation_rate=self.inflation_rate,
            pension_amount=self.pension_amount,
            pension_age=self.pension_age,
        )
