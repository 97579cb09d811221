import pytest

from costs import adjusted_spending, cost_of_living_comparison, cost_of_living_multiplier, spending_schedule
from currency import FALLBACK_RATES, convert, display_rate
from jurisdictions import (COUNTRIES, US_STATES, country_notes, get_country, get_state, get_state_pension,
                           no_income_tax_states, pension_warnings, tax_profile_for)
from models import IncomeType, MissingJurisdictionData
from taxes import effective_rate


class TestTables:
    def test_every_country_currency_has_a_rate(self):
        for country in COUNTRIES.values():
            assert country.currency in FALLBACK_RATES
            assert country.cost_of_living_index > 0
            assert 0.0 <= country.capital_gains_rate <= 1.0

    def test_states(self):
        assert len(US_STATES) == 51
        codes = {s.code for s in no_income_tax_states()}
        assert {"TX", "FL", "WA"} <= codes
        assert "CA" not in codes

    def test_lookup_is_case_insensitive(self):
        assert get_country("pt").name == "Portugal"
        assert get_state("ca").code == "CA"

    @pytest.mark.parametrize("code", ["ZZ", "", None])
    def test_unknown_country(self, code):
        with pytest.raises(MissingJurisdictionData):
            get_country(code)

    def test_unknown_state(self):
        with pytest.raises(MissingJurisdictionData):
            get_state("XX")


class TestTaxProfileFor:
    def test_cost_of_living_relative_to_home(self):
        assert tax_profile_for("PT", home="US").cost_of_living_multiplier == pytest.approx(0.65)
        assert tax_profile_for("US", home="PT").cost_of_living_multiplier == pytest.approx(100 / 65)
        assert tax_profile_for("PT").cost_of_living_multiplier == pytest.approx(1.0)

    def test_no_income_means_no_income_tax(self):
        assert tax_profile_for("UK", reference_income=0).income_tax_rate == 0.0

    def test_income_converted_to_local_currency(self):
        # 79,000 GBP expressed in USD is 100,000
        from_usd = tax_profile_for("UK", reference_income=100_000, base_currency="USD")
        from_gbp = tax_profile_for("UK", reference_income=79_000, base_currency="GBP")
        assert from_usd.income_tax_rate == pytest.approx(from_gbp.income_tax_rate)

    def test_state_added_to_federal(self):
        t = tax_profile_for("US", state="CA", reference_income=90_000)
        assert t.code == "US-CA"
        assert t.sub_income_tax_rate == pytest.approx(0.133)
        assert effective_rate(t, IncomeType.INCOME) == pytest.approx(t.income_tax_rate + 0.133)
        assert effective_rate(t, IncomeType.CAPITAL_GAINS) == pytest.approx(0.15 + 0.133)

    def test_state_ignored_outside_us(self):
        t = tax_profile_for("PT", state="CA")
        assert t.code == "PT"
        assert t.sub_income_tax_rate is None


class TestCurrency:
    def test_convert(self):
        assert convert(100, "USD", "GBP") == pytest.approx(79.0)
        assert convert(100, "GBP", "EUR") == pytest.approx(100 / 0.79 * 0.92)
        assert convert(123.45, "THB", "THB") == 123.45

    def test_supplied_snapshot_wins(self):
        assert convert(100, "USD", "GBP", {"USD": 1.0, "GBP": 0.5}) == pytest.approx(50.0)

    def test_unknown_code_treated_as_parity(self):
        assert convert(100, "USD", "XXX", {"USD": 1.0}) == pytest.approx(100.0)

    def test_non_finite_amount(self):
        assert convert(float("nan"), "USD", "GBP") == 0.0
        assert convert(None, "USD", "GBP") == 0.0

    def test_display_rate(self):
        assert display_rate("USD", "GBP") == "0.7900"
        assert display_rate("EUR", "EUR") == "1.00"


class TestCosts:
    def test_multiplier(self):
        assert cost_of_living_multiplier(100, 65) == pytest.approx(0.65)
        assert cost_of_living_multiplier(0, 50) == pytest.approx(0.5)
        assert adjusted_spending(40_000, 100, 65) == pytest.approx(26_000)

    def test_comparison(self):
        out = cost_of_living_comparison(100, 65)
        assert out["cheaper"] is True
        assert out["percentage_diff"] == pytest.approx(-35.0)

    def test_schedule(self):
        df = spending_schedule(40_000, 0.03, 10, multiplier=0.5)
        assert len(df) == 11
        assert df["annual_nominal"].iloc[0] == pytest.approx(20_000)
        assert df["annual_nominal"].iloc[10] == pytest.approx(20_000 * 1.03 ** 10)
        assert df["annual_real_today"].tolist() == pytest.approx([20_000] * 11)


class TestNotes:
    def test_zero_gains_tax_and_regimes(self):
        notes = country_notes("CH")
        assert notes[0] == "Switzerland has no capital gains tax on private investments."
        assert "Cantonal tax varies and is not modelled." in notes
        assert any(n.startswith("Lump-sum Taxation") for n in notes)

    def test_special_regime(self):
        assert any("NHR" in n for n in country_notes("pt"))

    def test_unknown_country(self):
        with pytest.raises(MissingJurisdictionData):
            country_notes("ZZ")


class TestStatePensions:
    def test_lookup(self):
        assert get_state_pension("sg").name == "CPF LIFE"
        assert get_state_pension("ZZ") is None
        assert get_state_pension(None) is None

    def test_not_payable_abroad(self):
        (warning,) = pension_warnings("SG", "TH", 15_000)
        assert warning == "CPF LIFE may not be payable while living in Thailand. Verify eligibility."

    @pytest.mark.parametrize("home, target, amount", [
        ("SG", "SG", 15_000),
        ("US", "TH", 20_000),
        ("SG", "TH", 0.0),
        ("SG", "TH", float("nan")),
        ("SG", "TH", None),
        ("ZZ", "TH", 10_000),
    ])
    def test_no_warning(self, home, target, amount):
        assert pension_warnings(home, target, amount) == []
