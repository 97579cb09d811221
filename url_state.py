"""
Compact query-string encoding of a comparison request, for bookmarking/sharing.

Floats are written with repr() (shortest exact form) so decode(encode(x)) == x for
every valid request. Decoding never raises: a missing, malformed or out-of-range
field keeps the value from `defaults`.
"""

import math
from dataclasses import fields, replace
from typing import Mapping, Optional, Union
from urllib.parse import parse_qs, urlencode

from config import DEFAULTS
from currency import FALLBACK_RATES
from jurisdictions import COUNTRIES, US_STATES
from models import MAX_AGE, MIN_AGE, ComparisonRequest

# field name -> query key
KEYS = {
    "home_country": "from",
    "target_country": "to",
    "home_state": "fst",
    "target_state": "tst",
    "base_currency": "cur",
    "current_age": "age",
    "net_worth": "nw",
    "annual_contribution": "save",
    "gross_income": "inc",
    "savings_rate": "sr",
    "expected_return": "ret",
    "annual_spending": "spend",
    "safe_withdrawal_rate": "swr",
    "inflation_rate": "infl",
    "pension_amount": "pen",
    "pension_age": "penage",
    "trials": "n",
    "horizon_years": "hz",
    "volatility": "vol",
    "seed": "seed",
}


def _float(raw: str) -> Optional[float]:
    try:
        v = float(raw)
    except ValueError:
        return None
    return v if math.isfinite(v) else None


def _int(raw: str) -> Optional[int]:
    try:
        return int(raw)
    except ValueError:
        return None


def _between(lo, hi):
    return lambda v: v is not None and lo <= v <= hi


_money = _between(0.0, math.inf)
_rate = _between(-1.0, math.inf)

# field name -> (parser, validator)
FIELDS = {
    "home_country": (str.upper, lambda v: v in COUNTRIES),
    "target_country": (str.upper, lambda v: v in COUNTRIES),
    "home_state": (str.upper, lambda v: v in US_STATES),
    "target_state": (str.upper, lambda v: v in US_STATES),
    "base_currency": (str.upper, lambda v: v in FALLBACK_RATES),
    "current_age": (_int, _between(MIN_AGE, MAX_AGE)),
    "net_worth": (_float, _money),
    "annual_contribution": (_float, _money),
    "gross_income": (_float, _money),
    "savings_rate": (_float, _between(0.0, 1.0)),
    "expected_return": (_float, _rate),
    "annual_spending": (_float, _money),
    "safe_withdrawal_rate": (_float, lambda v: v is not None and 0.0 < v <= 1.0),
    "inflation_rate": (_float, _rate),
    "pension_amount": (_float, _money),
    "pension_age": (_int, _between(MIN_AGE, MAX_AGE)),
    "trials": (_int, _between(1, 1_000_000)),
    "horizon_years": (_int, _between(0, DEFAULTS["horizon_cap_years"])),
    "volatility": (_float, _money),
    "seed": (_int, _between(0, 2**63 - 1)),
}


def _text(value) -> str:
    return repr(value) if isinstance(value, float) else str(value)


def encode_request(request: ComparisonRequest) -> str:
    params = {}
    for f in fields(request):
        value = getattr(request, f.name)
        if value is None:
            continue
        params[KEYS[f.name]] = _text(value)
    return urlencode(params)


def decode_request(query: Union[str, Mapping[str, str]],
                   defaults: ComparisonRequest = ComparisonRequest()) -> ComparisonRequest:
    if isinstance(query, str):
        parsed = {k: v[0] for k, v in parse_qs(query.lstrip("?")).items()}
    else:
        parsed = dict(query)

    updates = {}
    for name, key in KEYS.items():
        raw = parsed.get(key)
        if raw is None or raw == "":
            continue
        parse, valid = FIELDS[name]
        value = parse(raw)
        if valid(value):
            updates[name] = value
    return replace(defaults, **updates)


def shareable_url(request: ComparisonRequest, base_url: str = "https://fireabroad.com") -> str:
    return f"{base_url}?{encode_request(request)}"
