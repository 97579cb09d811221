import math

import pytest

from models import (NEVER, ComparisonRequest, FinancialProfile, JurisdictionTaxProfile, MissingJurisdictionData,
                    ProjectionResult, Side, Winner, WinReason)
from scenarios import compare, compare_with_simulation, pick_winner, run_request, summarize


def _result(years, fire_number, income_rate=0.0):
    return ProjectionResult(years_until_fire=years, fire_number=fire_number, trajectory=[],
                            fire_age=None, income_tax_rate=income_rate, capital_gains_tax_rate=0.0,
                            gross_withdrawal=0.0)


PROFILE = FinancialProfile(current_age=35, net_worth=200_000.0, annual_contribution=30_000.0,
                           expected_return=0.07, annual_spending=40_000.0, inflation_rate=0.03)
HOME = JurisdictionTaxProfile(0.25, 0.15, code="US")
CHEAP = JurisdictionTaxProfile(0.25, 0.15, cost_of_living_multiplier=0.6, code="PT")


class TestPickWinner:
    """Fewer years wins; then the smaller FIRE number; then side A."""
    def test_equal_years_lower_fire_number(self):
        assert pick_winner(_result(10, 1_000_000), _result(10, 800_000)) == (Winner.B, WinReason.LOWER_FIRE_NUMBER)

    def test_fewer_years_wins_regardless_of_number(self):
        assert pick_winner(_result(15, 500_000), _result(10, 2_000_000)) == (Winner.B, WinReason.EARLIER_RETIREMENT)
        assert pick_winner(_result(3, 2_000_000), _result(4, 500_000)) == (Winner.A, WinReason.EARLIER_RETIREMENT)

    def test_full_tie_goes_to_a(self):
        assert pick_winner(_result(10, 1_000_000), _result(10, 1_000_000)) == (Winner.A, WinReason.LOWER_FIRE_NUMBER)

    def test_never_loses_to_any_finite_year(self):
        assert pick_winner(_result(NEVER, 100), _result(99, 5_000_000)) == (Winner.B, WinReason.EARLIER_RETIREMENT)

    def test_both_never_falls_back_to_fire_number(self):
        assert pick_winner(_result(NEVER, 3e6), _result(NEVER, 2e6)) == (Winner.B, WinReason.LOWER_FIRE_NUMBER)


class TestCompare:
    def test_cheaper_country_retires_earlier(self):
        r = compare(Side(PROFILE, HOME), Side(PROFILE, CHEAP))
        assert r.winner is Winner.B
        assert r.reason is WinReason.EARLIER_RETIREMENT
        assert r.b.years_until_fire < r.a.years_until_fire
        assert r.winning is r.b

    def test_identical_sides(self):
        r = compare(Side(PROFILE, HOME), Side(PROFILE, HOME))
        assert (r.winner, r.reason) == (Winner.A, WinReason.LOWER_FIRE_NUMBER)
        assert r.summary.fire_number_difference == 0.0

    def test_missing_side_refuses(self):
        with pytest.raises(MissingJurisdictionData):
            compare(Side(PROFILE, HOME), Side(PROFILE, None))

    def test_summary(self):
        s = summarize(_result(10, 1_000_000, 0.3), _result(10, 600_000, 0.1))
        assert s.fire_number_difference == pytest.approx(400_000)
        assert s.fire_number_difference_pct == pytest.approx(0.5)
        assert s.income_tax_rate_difference == pytest.approx(0.2)

    def test_with_simulation_is_reproducible(self):
        a = compare_with_simulation(Side(PROFILE, HOME), Side(PROFILE, CHEAP), trials=300, horizon_years=30,
                                    volatility=0.15, seed=9)
        b = compare_with_simulation(Side(PROFILE, HOME), Side(PROFILE, CHEAP), trials=300, horizon_years=30,
                                    volatility=0.15, seed=9)
        assert a.simulation_a.success_probability == b.simulation_a.success_probability
        assert a.simulation_b.success_probability == b.simulation_b.success_probability
        assert a.simulation_b.success_probability >= a.simulation_a.success_probability


class TestRunRequest:
    def test_us_to_thailand(self):
        req = ComparisonRequest(home_country="US", target_country="TH", trials=200, horizon_years=30)
        r = run_request(req)
        assert r.winner is Winner.B
        assert r.reason is WinReason.EARLIER_RETIREMENT
        assert r.simulation_a.trials == 200

    def test_without_simulation(self):
        r = run_request(ComparisonRequest(), with_simulation=False)
        assert r.simulation_a is None and r.simulation_b is None

    def test_state_tax_applies_to_home(self):
        plain = run_request(ComparisonRequest(home_country="US", target_country="US"), with_simulation=False)
        ca = run_request(ComparisonRequest(home_country="US", target_country="US", target_state="CA"),
                         with_simulation=False)
        assert ca.b.income_tax_rate == pytest.approx(plain.b.income_tax_rate + 0.133)
        assert ca.winner is Winner.A

    def test_unknown_country(self):
        with pytest.raises(MissingJurisdictionData):
            run_request(ComparisonRequest(target_country="ZZ"), with_simulation=False)


class TestMalformedRequest:
    """Bad money fields are clamped before any arithmetic."""

    @pytest.mark.parametrize("bad", [None, math.nan, -1.0, math.inf])
    def test_money_fields(self, bad):
        req = ComparisonRequest(gross_income=bad, net_worth=bad, annual_contribution=bad,
                                annual_spending=bad, trials=50, horizon_years=10)
        r = run_request(req)
        # nothing to spend, so both sides are already there
        assert r.a.years_until_fire == 0 and r.b.years_until_fire == 0
        assert r.winner is Winner.A

    def test_none_income_uses_spending_for_tax(self):
        r = run_request(ComparisonRequest(gross_income=None), with_simulation=False)
        ref = run_request(ComparisonRequest(gross_income=0.0), with_simulation=False)
        assert r.a.income_tax_rate == ref.a.income_tax_rate > 0


class TestNotesAndWarnings:
    def test_country_notes_attached(self):
        r = run_request(ComparisonRequest(home_country="US", target_country="PT"), with_simulation=False)
        assert any("NHR" in n for n in r.b.notes)
        assert any("state" in n for n in r.a.notes)

    def test_pension_not_payable_abroad(self):
        req = ComparisonRequest(home_country="SG", target_country="TH", base_currency="SGD",
                                pension_amount=15_000.0)
        r = run_request(req, with_simulation=False)
        assert any("CPF LIFE" in w for w in r.b.warnings)
        assert not any("CPF LIFE" in w for w in r.a.warnings)

    def test_no_pension_no_warning(self):
        r = run_request(ComparisonRequest(home_country="SG", target_country="TH"), with_simulation=False)
        assert r.b.warnings == []
