"""
Currency conversion over an explicitly supplied rate snapshot.

Rates are units of currency per 1 USD. The engine never fetches rates; callers
pass the snapshot they resolved beforehand (or rely on `FALLBACK_RATES`).
"""

import math
from typing import Dict, Optional

from loguru import logger

RATES_AS_OF = "2025-02"

FALLBACK_RATES: Dict[str, float] = {
    "USD": 1.0,
    "GBP": 0.79,
    "EUR": 0.92,
    "CAD": 1.36,
    "AUD": 1.53,
    "CHF": 0.88,
    "AED": 3.67,
    "SGD": 1.34,
    "MXN": 17.15,
    "THB": 35.5,
    "CRC": 510.0,
    "JPY": 149.5,
    "NZD": 1.62,
    "COP": 4150.0,
    "MYR": 4.47,
    "VND": 24500.0,
}


def _rate(code: str, rates: Dict[str, float]) -> float:
    r = rates.get(code) or FALLBACK_RATES.get(code)
    if not r or not math.isfinite(r) or r <= 0:
        logger.warning(f"Missing exchange rate for {code}, treating as 1.0")
        return 1.0
    if code not in rates:
        logger.debug(f"No {code} rate in supplied snapshot, using fallback {r}")
    return r


def convert(amount: float, from_code: str, to_code: str,
            rates: Optional[Dict[str, float]] = None) -> float:
    """Convert through USD. Non-finite or missing amounts convert to 0."""
    if amount is None or not math.isfinite(amount):
        return 0.0
    if from_code == to_code:
        return amount
    rates = FALLBACK_RATES if rates is None else rates
    in_usd = amount / _rate(from_code, rates)
    return in_usd * _rate(to_code, rates)


def display_rate(from_code: str, to_code: str, rates: Optional[Dict[str, float]] = None) -> str:
    """e.g. display_rate("USD", "GBP") -> "0.7900"."""
    if from_code == to_code:
        return "1.00"
    return f"{convert(1.0, from_code, to_code, rates):.4f}"
