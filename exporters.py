# exporters.py
import json
from dataclasses import asdict
from enum import Enum

import numpy as np
import pandas as pd

from models import ComparisonRequest, ComparisonResult, ProjectionResult, SimulationResult


def export_trajectory(result: ProjectionResult, label: str = "projection") -> tuple[str, bytes]:
    df = result.trajectory_frame()
    return f"{label}_trajectory.csv", df.to_csv(index=False).encode()


def export_bands(sim: SimulationResult, label: str = "simulation") -> tuple[str, bytes]:
    return f"{label}_bands.csv", sim.bands_frame().to_csv(index=False).encode()


def export_side_by_side(result: ComparisonResult, labels=("A", "B")) -> tuple[str, bytes]:
    """Both trajectories on one sheet, joined on year."""
    a = result.a.trajectory_frame()[["year", "age", "net_worth", "fire_number"]]
    b = result.b.trajectory_frame()[["year", "net_worth", "fire_number"]]
    df = a.merge(b, on="year", how="outer", suffixes=(f"_{labels[0]}", f"_{labels[1]}"))
    return "comparison.csv", df.to_csv(index=False).encode()


def _json_default(o):
    # Handle numpy arrays & scalars cleanly for JSON
    if isinstance(o, np.ndarray):
        return o.tolist()
    if isinstance(o, np.generic):
        return o.item()
    if isinstance(o, Enum):
        return o.value
    # Let json raise for anything else unexpected
    raise TypeError(f"Object of type {o.__class__.__name__} is not JSON serializable")


def export_request(request: ComparisonRequest) -> tuple[str, bytes]:
    blob = json.dumps(asdict(request), indent=2, default=_json_default)
    return "comparison_request.json", blob.encode()


def export_comparison(result: ComparisonResult) -> tuple[str, bytes]:
    """
    Winner, reason and headline numbers per side. Trajectories are left to the CSV
    exports. Infinite FIRE numbers become null.
    """
    def side(p: ProjectionResult, sim: SimulationResult = None):
        out = {
            "years_until_fire": p.years_until_fire,
            "fire_age": p.fire_age,
            "fire_number": p.fire_number if np.isfinite(p.fire_number) else None,
            "income_tax_rate": p.income_tax_rate,
            "capital_gains_tax_rate": p.capital_gains_tax_rate,
            "warnings": p.warnings,
            "notes": p.notes,
        }
        if sim is not None:
            out["success_probability"] = sim.success_probability
            out["median_years_to_fire"] = sim.median_years_to_fire
        return out

    payload = {
        "winner": result.winner,
        "reason": result.reason,
        "a": side(result.a, result.simulation_a),
        "b": side(result.b, result.simulation_b),
        "summary": asdict(result.summary),
    }
    blob = json.dumps(payload, indent=2, default=_json_default)
    return "comparison.json", blob.encode()


def bands_long(sim: SimulationResult) -> pd.DataFrame:
    """Tidy (age, percentile, net_worth) rows for charting."""
    return sim.bands_frame().melt(id_vars="age", var_name="percentile", value_name="net_worth")
