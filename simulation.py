"""
Monte Carlo confidence estimate for one jurisdiction.

Each trial replays the projection engine's working-year update with a random
annual return per year instead of the constant expected return. The random
source is always passed in (a `numpy.random.Generator` or an int seed) and the
return distribution is a swappable callable, so a fixed seed gives bit-identical
results.

Default distribution: annual nominal return ~ Normal(expected_return, volatility),
floored at -100%.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Sequence, Tuple, Union

import numpy as np
from loguru import logger

from config import DEFAULTS
from models import (FinancialProfile, IncomeType, JurisdictionTaxProfile, SimulationResult,
                    finite_rate, sanitize_profile, sanitize_tax)
from projection import accumulate, after_gains_drag, fire_number, gross_up
from taxes import effective_rate

# (rng, mean, volatility, shape) -> array of annual returns
ReturnModel = Callable[[np.random.Generator, float, float, Tuple[int, int]], np.ndarray]


def normal_returns(rng: np.random.Generator, mean: float, volatility: float, size) -> np.ndarray:
    return rng.normal(loc=mean, scale=volatility, size=size)


def lognormal_returns(rng: np.random.Generator, mean: float, volatility: float, size) -> np.ndarray:
    """Gross return (1 + r) lognormal with arithmetic mean 1 + mean and stdev volatility."""
    m = 1.0 + mean
    if m <= 0:
        return np.full(size, -1.0)
    sigma2 = np.log(1.0 + (volatility / m) ** 2)
    mu = np.log(m) - sigma2 / 2.0
    return rng.lognormal(mean=mu, sigma=np.sqrt(sigma2), size=size) - 1.0


def _rank_percentile(sorted_values: np.ndarray, q: float):
    # sorted[floor(p * (n - 1))], rows are trials
    return sorted_values[int(np.floor(q / 100.0 * (sorted_values.shape[0] - 1)))]


def _run_paths(start: float, growth: np.ndarray, contribution: float) -> np.ndarray:
    n, years = growth.shape
    paths = np.empty((n, years + 1))
    paths[:, 0] = start
    for y in range(1, years + 1):
        paths[:, y], _ = accumulate(paths[:, y - 1], growth[:, y - 1], contribution)
    return paths


def simulate(profile: FinancialProfile, tax: Optional[JurisdictionTaxProfile],
             trials: int = DEFAULTS["num_trials"],
             horizon_years: int = DEFAULTS["horizon_years"],
             return_volatility: float = DEFAULTS["volatility"],
             rng: Union[np.random.Generator, int] = DEFAULTS["seed"],
             return_model: ReturnModel = normal_returns,
             percentiles: Sequence[int] = DEFAULTS["percentiles"],
             workers: int = 1) -> SimulationResult:
    """
    Success probability = share of trials whose net worth meets that year's FIRE
    number at some year in 0..horizon_years. Bands are rank-based percentiles of
    net worth per year.

    All returns are drawn before work is split across `workers` threads, so the
    worker count never changes the result.
    """
    if int(trials) <= 0:
        raise ValueError("trials must be positive")
    if int(horizon_years) < 0:
        raise ValueError("horizon_years must be non-negative")
    if any(not 0 <= q <= 100 for q in percentiles):
        raise ValueError(f"percentiles must lie in 0..100, got {list(percentiles)}")
    trials, horizon_years = int(trials), int(horizon_years)
    if not isinstance(rng, np.random.Generator):
        rng = np.random.default_rng(rng)

    p = sanitize_profile(profile)
    t = sanitize_tax(tax)
    volatility = finite_rate(return_volatility, lo=0.0, default=DEFAULTS["volatility"])
    income_rate = effective_rate(t, IncomeType.INCOME)
    gains_rate = effective_rate(t, IncomeType.CAPITAL_GAINS)
    contribution = p.gross_contribution * (1.0 - income_rate)
    gross_withdrawal = gross_up(p.annual_spending * t.cost_of_living_multiplier, income_rate)
    targets = np.array([fire_number(gross_withdrawal, p.inflation_rate, y, p.safe_withdrawal_rate)
                        for y in range(horizon_years + 1)])

    logger.debug(f"Simulating {trials} trials x {horizon_years} years "
                 f"(mu={p.expected_return:.4f}, vol={volatility:.4f}, workers={workers})")

    returns = np.maximum(return_model(rng, p.expected_return, volatility, (trials, horizon_years)), -1.0)
    growth = after_gains_drag(returns, gains_rate)

    if workers > 1 and trials > 1:
        chunks = np.array_split(growth, min(workers, trials))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            paths = np.vstack(list(pool.map(lambda g: _run_paths(p.net_worth, g, contribution), chunks)))
    else:
        paths = _run_paths(p.net_worth, growth, contribution)

    hit = paths >= targets[None, :]
    reached = hit.any(axis=1)
    first_year = np.where(reached, hit.argmax(axis=1), -1)
    success_count = int(reached.sum())

    distribution = np.bincount(first_year[reached], minlength=horizon_years + 1)
    ranked_years = np.sort(np.where(reached, first_year, np.iinfo(np.int64).max))
    median_years = int(_rank_percentile(ranked_years, 50))
    median_years = median_years if median_years <= horizon_years else None

    ranked = np.sort(paths, axis=0)
    bands = {int(q): _rank_percentile(ranked, q).copy() for q in percentiles}

    return SimulationResult(
        success_probability=success_count / trials,
        trials=trials,
        horizon_years=horizon_years,
        ages=p.current_age + np.arange(horizon_years + 1),
        bands=bands,
        median_ending_net_worth=float(_rank_percentile(ranked[:, -1], 50)),
        median_years_to_fire=median_years,
        years_to_fire_distribution=distribution,
    )
