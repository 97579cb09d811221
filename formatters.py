"""Display formatting for engine output. Never raises; None/NaN/inf render as zero."""

import math

SYMBOLS = {
    "USD": "$",
    "GBP": "£",
    "EUR": "€",
    "CHF": "CHF ",
    "AUD": "A$",
    "CAD": "C$",
    "MXN": "MX$",
    "THB": "฿",
    "JPY": "¥",
    "SGD": "S$",
    "AED": "AED ",
    "NZD": "NZ$",
    "COP": "COL$",
    "MYR": "RM",
    "VND": "₫",
    "CRC": "₡",
}


def _finite(x) -> float:
    try:
        x = float(x)
    except (TypeError, ValueError):
        return 0.0
    return x if math.isfinite(x) else 0.0


def symbol(currency: str) -> str:
    return SYMBOLS.get(currency, f"{currency} ")


def format_currency(amount, currency: str = "USD") -> str:
    """Whole units with thousand separators, e.g. $1,250,000 / -£3,400."""
    value = round(_finite(amount))
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol(currency)}{abs(value):,.0f}"


def format_number(amount, decimals: int = 0) -> str:
    return f"{_finite(amount):,.{decimals}f}"


def format_percent(rate, decimals: int = 1) -> str:
    return f"{_finite(rate) * 100:.{decimals}f}%"


def format_years(years) -> str:
    if years is None:
        return "Never"
    try:
        years = float(years)
    except (TypeError, ValueError):
        return "0 years"
    if math.isnan(years):
        return "0 years"
    if math.isinf(years):
        return "Never" if years > 0 else "Already FIRE"
    if years < 0:
        return "Already FIRE"
    if years == 0:
        return "Now"
    if years == 1:
        return "1 year"
    return f"{int(years)} years" if years.is_integer() else f"{years} years"


def format_compact(amount, currency: str = "USD") -> str:
    """$1.2M, £450K, €800."""
    value = _finite(amount)
    sym = symbol(currency)
    if abs(value) >= 1_000_000:
        return f"{sym}{value / 1_000_000:.1f}M"
    if abs(value) >= 1_000:
        return f"{sym}{value / 1_000:.0f}K"
    return f"{sym}{value:.0f}"
