"""
Deterministic FIRE projection for one jurisdiction.

Each simulated year, in order:
  1. grow the opening balance by the expected return net of capital-gains drag
     (drag applies to positive growth only; losses are not tax-credited),
  2. add the year's contribution after effective income tax,
  3. compare against that year's FIRE number.

FIRE number(year) = spending * cost_of_living * (1 + inflation)^year
                    / (1 - income_tax_rate) / safe_withdrawal_rate

Years-until-FIRE is the first whole year at which net worth >= FIRE number, i.e. the
ceiling of the fractional crossing time. The search stops at the horizon cap and
reports NEVER instead of looping on.
"""

import math
from typing import Optional

import numpy as np
from loguru import logger

from config import DEFAULTS
from models import (NEVER, FinancialProfile, IncomeType, JurisdictionTaxProfile,
                    ProjectionResult, YearSnapshot, positive_or, sanitize_profile, sanitize_tax)
from taxes import effective_rate

LUXURY_LEVELS = [(30_000, "lean"), (60_000, "moderate"), (100_000, "comfortable")]


def compound(rate: float, years: int) -> float:
    try:
        return (1 + rate) ** years
    except OverflowError:
        return math.inf


def after_gains_drag(expected_return, gains_rate: float):
    """Return net of tax on realized positive growth. Works on floats and arrays."""
    return expected_return - gains_rate * np.maximum(expected_return, 0.0)


def accumulate(balance, growth_rate, contribution):
    """One working year. Returns (closing_balance, growth); balances never go negative."""
    growth = balance * growth_rate
    return np.maximum(balance + growth + contribution, 0.0), growth


def gross_up(spending: float, income_rate: float) -> float:
    """Pre-tax withdrawal needed to keep `spending` after tax. inf when the rate is 100%."""
    if spending <= 0:
        return 0.0
    if income_rate >= 1.0:
        return math.inf
    return spending / (1.0 - income_rate)


def fire_number(gross_withdrawal: float, inflation: float, year: int, swr: float) -> float:
    factor = compound(inflation, year)
    if gross_withdrawal == 0 or factor == 0:
        return 0.0
    return gross_withdrawal * factor / swr


def pension_income(profile: FinancialProfile, year: int) -> float:
    """State pension received in `year`, inflated from today's money. 0 before pension age."""
    if profile.pension_amount <= 0 or profile.current_age + year < profile.pension_age:
        return 0.0
    return profile.pension_amount * compound(profile.inflation_rate, year)


def project(profile: FinancialProfile, tax: Optional[JurisdictionTaxProfile],
            horizon_cap: int = DEFAULTS["horizon_cap_years"],
            buffer_years: int = DEFAULTS["trajectory_buffer_years"]) -> ProjectionResult:
    """Years-to-FIRE, FIRE number and a yearly trajectory. Pure; same inputs, same result."""
    p = sanitize_profile(profile)
    t = sanitize_tax(tax)
    horizon_cap = max(0, int(horizon_cap))

    income_rate = effective_rate(t, IncomeType.INCOME)
    gains_rate = effective_rate(t, IncomeType.CAPITAL_GAINS)
    growth_rate = float(after_gains_drag(p.expected_return, gains_rate))
    contribution = p.gross_contribution * (1.0 - income_rate)
    spending = p.annual_spending * t.cost_of_living_multiplier
    gross_withdrawal = gross_up(spending, income_rate)
    warnings = []

    def snap(year, balance, contrib, growth, withdrawal, target, is_fire, pension=0.0):
        return YearSnapshot(year=year, age=p.current_age + year, net_worth=float(balance),
                            contribution=float(contrib), growth=float(growth),
                            withdrawal=float(withdrawal), fire_number=target, is_fire=bool(is_fire),
                            pension=float(pension))

    balance = p.net_worth
    target = fire_number(gross_withdrawal, p.inflation_rate, 0, p.safe_withdrawal_rate)
    years = 0 if balance >= target else NEVER
    trajectory = [snap(0, balance, 0.0, 0.0, 0.0, target, years == 0)]

    year = 0
    while years is NEVER and year < horizon_cap:
        year += 1
        balance, growth = accumulate(balance, growth_rate, contribution)
        target = fire_number(gross_withdrawal, p.inflation_rate, year, p.safe_withdrawal_rate)
        if balance >= target:
            years = year
        trajectory.append(snap(year, balance, contribution, growth, 0.0, target, years == year))

    if years is NEVER:
        logger.debug(f"FIRE not reached within {horizon_cap} years ({t.code or 'unnamed jurisdiction'})")
    else:
        # Drawdown after FIRE: contributions stop, inflated spending less any
        # state pension is withdrawn grossed up for tax.
        for year in range(years + 1, years + 1 + max(0, buffer_years)):
            pension = pension_income(p, year)
            withdrawal = gross_up(max(0.0, spending * compound(p.inflation_rate, year) - pension), income_rate)
            growth = balance * growth_rate
            depleted = balance > 0 and balance + growth < withdrawal
            balance = max(0.0, balance + growth - withdrawal)
            target = fire_number(gross_withdrawal, p.inflation_rate, year, p.safe_withdrawal_rate)
            trajectory.append(snap(year, balance, 0.0, growth, withdrawal, target, True, pension))
            if depleted:
                warnings.append(f"Portfolio depleted at age {p.current_age + year}")

    return ProjectionResult(
        years_until_fire=years,
        fire_number=fire_number(gross_withdrawal, p.inflation_rate, 0, p.safe_withdrawal_rate),
        trajectory=trajectory,
        fire_age=None if years is NEVER else p.current_age + years,
        income_tax_rate=income_rate,
        capital_gains_tax_rate=gains_rate,
        gross_withdrawal=gross_withdrawal,
        warnings=warnings,
    )


def coast_fire(profile: FinancialProfile, tax: Optional[JurisdictionTaxProfile], target_age: int) -> dict:
    """
    Coast FIRE = amount needed today so that growth alone (no more contributions)
    reaches today's FIRE number by `target_age`, using the real return.
    """
    p = sanitize_profile(profile)
    t = sanitize_tax(tax)
    income_rate = effective_rate(t, IncomeType.INCOME)
    gains_rate = effective_rate(t, IncomeType.CAPITAL_GAINS)
    target = fire_number(gross_up(p.annual_spending * t.cost_of_living_multiplier, income_rate),
                         p.inflation_rate, 0, p.safe_withdrawal_rate)
    real_return = float(after_gains_drag(p.expected_return, gains_rate)) - p.inflation_rate
    years = int(target_age) - p.current_age

    if years <= 0 or real_return <= 0:
        coast_number = target
    else:
        coast_number = target / compound(real_return, years)
    return {
        "coast_number": coast_number,
        "years_to_target": max(0, years),
        "already_coast": p.net_worth >= coast_number,
        "fire_number": target,
    }


def sustainable_spending(portfolio: float, tax: Optional[JurisdictionTaxProfile],
                         safe_withdrawal_rate: float = DEFAULTS["safe_withdrawal_rate"],
                         current_spending: Optional[float] = None) -> dict:
    """Reverse calculator: after-tax spending a portfolio supports at a withdrawal rate."""
    t = sanitize_tax(tax)
    swr = min(1.0, positive_or(safe_withdrawal_rate, DEFAULTS["safe_withdrawal_rate"]))
    income_rate = effective_rate(t, IncomeType.INCOME)
    gross = max(0.0, portfolio if portfolio and math.isfinite(portfolio) else 0.0) * swr
    net = gross * (1.0 - income_rate)
    # Spending power expressed at home price levels.
    home_equivalent = net / t.cost_of_living_multiplier

    level = "fat"
    for ceiling, name in LUXURY_LEVELS:
        if home_equivalent < ceiling:
            level = name
            break

    out = {
        "gross": gross,
        "net": net,
        "monthly_net": net / 12.0,
        "effective_tax_rate": income_rate,
        "safe_withdrawal_rate": swr,
        "home_equivalent": home_equivalent,
        "luxury_level": level,
    }
    if current_spending is not None and current_spending > 0:
        out["vs_current_pct"] = (net - current_spending) / current_spending * 100.0
        out["can_afford_more"] = net >= current_spending
    return out
