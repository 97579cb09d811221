import io
import json

import pandas as pd

from exporters import bands_long, export_comparison, export_request, export_side_by_side, export_trajectory
from models import ComparisonRequest
from scenarios import run_request

RESULT = run_request(ComparisonRequest(home_country="US", target_country="PT", trials=100, horizon_years=20))


class TestCsv:
    def test_trajectory(self):
        name, data = export_trajectory(RESULT.a, "US")
        df = pd.read_csv(io.BytesIO(data))
        assert name == "US_trajectory.csv"
        assert len(df) == len(RESULT.a.trajectory)
        assert df["year"].iloc[0] == 0

    def test_side_by_side(self):
        _, data = export_side_by_side(RESULT, ("US", "PT"))
        df = pd.read_csv(io.BytesIO(data))
        assert {"year", "net_worth_US", "net_worth_PT", "fire_number_US", "fire_number_PT"} <= set(df.columns)
        assert len(df) == max(len(RESULT.a.trajectory), len(RESULT.b.trajectory))

    def test_bands_long(self):
        tidy = bands_long(RESULT.simulation_a)
        assert set(tidy["percentile"]) == {"p10", "p25", "p50", "p75", "p90"}
        assert len(tidy) == 5 * 21


class TestJson:
    def test_comparison(self):
        _, data = export_comparison(RESULT)
        payload = json.loads(data)
        assert payload["winner"] == RESULT.winner.value
        assert payload["reason"] == RESULT.reason.value
        assert payload["a"]["fire_number"] == RESULT.a.fire_number
        assert 0.0 <= payload["b"]["success_probability"] <= 1.0
        assert isinstance(payload["a"]["warnings"], list)
        assert payload["b"]["notes"] == RESULT.b.notes
        assert any("NHR" in n for n in payload["b"]["notes"])

    def test_request(self):
        name, data = export_request(ComparisonRequest(target_country="MX"))
        payload = json.loads(data)
        assert name == "comparison_request.json"
        assert payload["target_country"] == "MX"
        assert payload["home_state"] is None
