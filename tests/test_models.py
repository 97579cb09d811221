import math

import pytest

from models import (ComparisonRequest, FinancialProfile, JurisdictionTaxProfile, MissingJurisdictionData,
                    clamp_age, clamp_money, clamp_rate, finite_rate, sanitize_profile, sanitize_tax)


class TestClamping:
    def test_rate(self):
        assert clamp_rate(math.nan) == 0.0
        assert clamp_rate(None) == 0.0
        assert clamp_rate(-3) == 0.0
        assert clamp_rate(7) == 1.0
        assert clamp_rate(0.42) == 0.42

    def test_money(self):
        assert clamp_money(-5) == 0.0
        assert clamp_money(math.nan) == 0.0
        assert clamp_money(math.inf) == 0.0
        assert clamp_money(1_000) == 1_000.0

    def test_age(self):
        assert clamp_age(0) == 1
        assert clamp_age(500) == 120
        assert clamp_age(math.nan) == 35
        assert clamp_age(40.6) == 41


class TestSanitize:
    def test_profile_fallbacks(self):
        p = sanitize_profile(FinancialProfile(
            current_age=200, net_worth=-1, annual_contribution=math.nan, expected_return=math.nan,
            annual_spending=-40_000, safe_withdrawal_rate=0, inflation_rate=None,
        ))
        assert p.current_age == 120
        assert p.net_worth == 0.0
        assert p.annual_contribution == 0.0
        assert p.expected_return == 0.0
        assert p.annual_spending == 0.0
        assert p.safe_withdrawal_rate == 0.04
        assert p.inflation_rate == 0.03

    def test_negative_return_kept_but_floored(self):
        assert sanitize_profile(FinancialProfile(30, 0, expected_return=-0.2)).expected_return == -0.2
        assert sanitize_profile(FinancialProfile(30, 0, expected_return=-5)).expected_return == -1.0

    def test_gross_contribution_includes_savings_rate(self):
        p = FinancialProfile(30, 0, annual_contribution=1_000, gross_income=50_000, savings_rate=0.1)
        assert p.gross_contribution == pytest.approx(6_000)

    def test_tax_fallbacks(self):
        t = sanitize_tax(JurisdictionTaxProfile(1.5, -0.1, sub_income_tax_rate=math.nan,
                                                composition="bogus", cost_of_living_multiplier=0))
        assert t.income_tax_rate == 1.0
        assert t.capital_gains_tax_rate == 0.0
        assert t.sub_income_tax_rate == 0.0
        assert t.composition == "additive"
        assert t.cost_of_living_multiplier == 1.0

    def test_missing_tax_profile_refuses(self):
        with pytest.raises(MissingJurisdictionData):
            sanitize_tax(None)


def test_request_builds_profile():
    req = ComparisonRequest(current_age=42, net_worth=750_000.0, annual_spending=60_000.0)
    p = req.profile()
    assert (p.current_age, p.net_worth, p.annual_spending) == (42, 750_000.0, 60_000.0)


class TestNonFinite:
    def test_infinite_rates_take_defaults(self):
        p = sanitize_profile(FinancialProfile(30, 0, expected_return=math.inf, inflation_rate=-math.inf))
        assert p.expected_return == 0.0
        assert p.inflation_rate == 0.03

    def test_finite_rate(self):
        assert finite_rate(math.inf) == 0.0
        assert finite_rate(None, default=0.03) == 0.03
        assert finite_rate(-7.0) == -1.0
        assert finite_rate(0.25, lo=0.0) == 0.25


def test_pension_fields_sanitized():
    p = sanitize_profile(FinancialProfile(30, 0, pension_amount=-1.0, pension_age=math.nan))
    assert p.pension_amount == 0.0
    assert p.pension_age == 67
