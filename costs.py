import numpy as np
import pandas as pd

from config import DEFAULTS
from models import positive_or

# Indices are relative to US = 100.
BASE_INDEX = 100.0


def cost_of_living_multiplier(from_index: float, to_index: float) -> float:
    """Scalar applied to spending when moving from one price level to another."""
    return positive_or(to_index, BASE_INDEX) / positive_or(from_index, BASE_INDEX)


def adjusted_spending(base_spending: float, from_index: float, to_index: float) -> float:
    return base_spending * cost_of_living_multiplier(from_index, to_index)


def cost_of_living_comparison(from_index: float, to_index: float) -> dict:
    from_index = positive_or(from_index, BASE_INDEX)
    to_index = positive_or(to_index, BASE_INDEX)
    return {
        "percentage_diff": (to_index - from_index) / from_index * 100.0,
        "cheaper": to_index < from_index,
        "from_index": from_index,
        "to_index": to_index,
    }


def spending_schedule(annual_spending: float, inflation: float, years: int,
                      multiplier: float = DEFAULTS["cost_of_living_multiplier"]) -> pd.DataFrame:
    """
    Year-by-year spending target, cost-of-living adjusted.
    Nominal grows with inflation; real is expressed in today's money (flat by construction).
    """
    idx = np.arange(max(0, years) + 1)  # 0..years
    base = annual_spending * positive_or(multiplier, DEFAULTS["cost_of_living_multiplier"])
    nominal = base * (1 + inflation) ** idx
    return pd.DataFrame({
        "year": idx,
        "annual_nominal": nominal,
        "annual_real_today": nominal / (1 + inflation) ** idx,
        "monthly_nominal": nominal / 12.0,
    })
