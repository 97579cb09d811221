import math
from dataclasses import replace
from typing import Dict, Optional

import numpy as np
from loguru import logger

from jurisdictions import country_notes, pension_warnings, tax_profile_for
from models import (ComparisonRequest, ComparisonResult, ComparisonSummary, ProjectionResult, Side,
                    Winner, WinReason, sanitize_profile)
from projection import project
from simulation import simulate


def _years_key(result: ProjectionResult) -> float:
    # NEVER sorts after every finite year count
    return math.inf if result.years_until_fire is None else result.years_until_fire


def pick_winner(a: ProjectionResult, b: ProjectionResult):
    """
    1. fewer years until FIRE wins (earlierRetirement)
    2. equal years: smaller-or-equal FIRE number wins (lowerFireNumber)
    3. full tie: side A
    """
    ya, yb = _years_key(a), _years_key(b)
    if ya != yb:
        return (Winner.A if ya < yb else Winner.B), WinReason.EARLIER_RETIREMENT
    return (Winner.A if a.fire_number <= b.fire_number else Winner.B), WinReason.LOWER_FIRE_NUMBER


def summarize(a: ProjectionResult, b: ProjectionResult) -> ComparisonSummary:
    diff = abs(a.fire_number - b.fire_number)
    mean = (a.fire_number + b.fire_number) / 2.0
    pct = diff / mean if mean > 0 and math.isfinite(diff) else 0.0
    return ComparisonSummary(
        fire_number_difference=diff,
        fire_number_difference_pct=pct,
        income_tax_rate_difference=abs(a.income_tax_rate - b.income_tax_rate),
    )


def compare(side_a: Side, side_b: Side) -> ComparisonResult:
    """Project both sides and pick a winner. Pure function of its two inputs."""
    a = project(side_a.profile, side_a.tax)
    b = project(side_b.profile, side_b.tax)
    winner, reason = pick_winner(a, b)
    return ComparisonResult(a=a, b=b, winner=winner, reason=reason, summary=summarize(a, b))


def compare_with_simulation(side_a: Side, side_b: Side, trials: int, horizon_years: int,
                            volatility: float, seed: int, **sim_kwargs) -> ComparisonResult:
    """
    `compare` plus a Monte Carlo run per side. Each side gets its own generator
    spawned from `seed`, so side B's draws don't depend on side A's trial count.
    """
    result = compare(side_a, side_b)
    rng_a, rng_b = [np.random.default_rng(s) for s in np.random.SeedSequence(seed).spawn(2)]
    result.simulation_a = simulate(side_a.profile, side_a.tax, trials, horizon_years, volatility,
                                   rng=rng_a, **sim_kwargs)
    result.simulation_b = simulate(side_b.profile, side_b.tax, trials, horizon_years, volatility,
                                   rng=rng_b, **sim_kwargs)
    return result


def sides_for(request: ComparisonRequest, rates: Optional[Dict[str, float]] = None):
    """Build both sides from the jurisdiction tables. Side A is home; cost of living is relative to it."""
    profile = sanitize_profile(request.profile())
    reference_income = profile.gross_income if profile.gross_income > 0 else profile.annual_spending

    def side(code, state):
        tax = tax_profile_for(code, state=state, home=request.home_country,
                              reference_income=reference_income,
                              base_currency=request.base_currency, rates=rates)
        return Side(profile=profile, tax=tax, label=tax.code)

    return side(request.home_country, request.home_state), side(request.target_country, request.target_state)


def run_request(request: ComparisonRequest, rates: Optional[Dict[str, float]] = None,
                with_simulation: bool = True) -> ComparisonResult:
    side_a, side_b = sides_for(request, rates)
    logger.debug(f"Comparing {side_a.label} vs {side_b.label}")
    if with_simulation:
        result = compare_with_simulation(side_a, side_b, request.trials, request.horizon_years,
                                         request.volatility, request.seed)
    else:
        result = compare(side_a, side_b)

    pension = side_a.profile.pension_amount
    result.a = replace(result.a, notes=country_notes(request.home_country))
    result.b = replace(result.b, notes=country_notes(request.target_country),
                       warnings=result.b.warnings + pension_warnings(request.home_country,
                                                                     request.target_country, pension))
    return result
