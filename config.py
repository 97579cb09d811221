import os
import sys

from loguru import logger

APP_NAME = "FIRE Abroad: Compare Early Retirement Between Countries"

# Fallbacks used when an input is missing or out of range.
DEFAULTS = {
    # Profile
    "current_age": 35,
    "net_worth": 250_000,
    "annual_contribution": 20_000,
    "gross_income": 90_000,
    "savings_rate": 0.0,
    "expected_return": 0.07,           # nominal
    "annual_spending": 40_000,
    "safe_withdrawal_rate": 0.04,
    "inflation_rate": 0.03,
    "pension_amount": 0.0,             # annual state pension, today's money
    "pension_age": 67,
    "coast_target_age": 65,

    # Jurisdictions
    "home_country": "US",
    "target_country": "PT",
    "base_currency": "USD",
    "cost_of_living_multiplier": 1.0,

    # Projection
    "horizon_cap_years": 100,
    "trajectory_buffer_years": 5,

    # Sims
    "num_trials": 1000,
    "horizon_years": 50,
    "volatility": 0.15,
    "seed": 42,
    "percentiles": (10, 25, 50, 75, 90),
}

# Long-run nominal estimates. Vol = annualized standard deviation.
RETURN_PRESETS = {
    "Global equities": {"mu": 0.07, "vol": 0.17},
    "S&P 500": {"mu": 0.08, "vol": 0.18},
    "60/40 balanced": {"mu": 0.055, "vol": 0.11},
    "Bonds": {"mu": 0.03, "vol": 0.06},
}

LOG_LEVEL = os.environ.get("FIRE_LOG_LEVEL", "WARNING")


def configure_logging(level: str = LOG_LEVEL):
    """Replace loguru's default sink with a stderr sink at `level`."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(),
               format="{time:HH:mm:ss} | {level: <7} | {name}:{function} - {message}")
    return logger
