from urllib.parse import parse_qs

import pytest

from models import ComparisonRequest
from url_state import KEYS, decode_request, encode_request, shareable_url


class TestRoundTrip:
    @pytest.mark.parametrize("request_", [
        ComparisonRequest(),
        ComparisonRequest(home_country="UK", target_country="ES", base_currency="GBP", current_age=52,
                          net_worth=1_234_567.89, annual_contribution=0.0, expected_return=-0.013,
                          annual_spending=31_415.92, safe_withdrawal_rate=0.0325, inflation_rate=0.021,
                          trials=5000, horizon_years=0, volatility=0.0, seed=0),
        ComparisonRequest(home_country="US", home_state="CA", target_country="US", target_state="TX",
                          savings_rate=0.15, gross_income=180_000.0, seed=2**40),
        ComparisonRequest(home_country="SG", target_country="TH", base_currency="SGD",
                          pension_amount=15_000.0, pension_age=63),
    ])
    def test_decode_inverts_encode(self, request_):
        assert decode_request(encode_request(request_)) == request_

    def test_keys_are_short(self):
        qs = parse_qs(encode_request(ComparisonRequest(home_country="US", target_country="PT")))
        assert qs["from"] == ["US"] and qs["to"] == ["PT"]
        assert set(qs) <= set(KEYS.values())

    def test_unset_states_omitted(self):
        qs = parse_qs(encode_request(ComparisonRequest()))
        assert "fst" not in qs and "tst" not in qs

    def test_accepts_mapping_and_leading_question_mark(self):
        assert decode_request({"to": "th", "age": "44"}).target_country == "TH"
        assert decode_request("?age=44").current_age == 44


class TestInvalidFieldsKeepDefaults:
    """Malformed or out-of-range values never raise."""
    @pytest.mark.parametrize("query, field", [
        ("age=0", "current_age"),
        ("age=121", "current_age"),
        ("age=thirty", "current_age"),
        ("nw=-5", "net_worth"),
        ("nw=nan", "net_worth"),
        ("nw=inf", "net_worth"),
        ("to=ZZ", "target_country"),
        ("tst=XX", "target_state"),
        ("cur=BTC", "base_currency"),
        ("swr=0", "safe_withdrawal_rate"),
        ("swr=1.5", "safe_withdrawal_rate"),
        ("n=0", "trials"),
        ("hz=101", "horizon_years"),
        ("ret=-2", "expected_return"),
        ("seed=-1", "seed"),
        ("pen=-100", "pension_amount"),
        ("penage=0", "pension_age"),
    ])
    def test_field_falls_back(self, query, field):
        default = ComparisonRequest()
        assert getattr(decode_request(query), field) == getattr(default, field)

    def test_empty_and_garbage(self):
        assert decode_request("") == ComparisonRequest()
        assert decode_request("%%%&&&==") == ComparisonRequest()

    def test_other_fields_still_applied(self):
        r = decode_request("age=abc&nw=500000")
        assert r.current_age == ComparisonRequest().current_age
        assert r.net_worth == 500_000.0

    def test_custom_defaults(self):
        base = ComparisonRequest(target_country="MX")
        assert decode_request("to=nowhere", defaults=base).target_country == "MX"


def test_shareable_url():
    url = shareable_url(ComparisonRequest(), base_url="https://example.org/fire")
    assert url.startswith("https://example.org/fire?")
    assert decode_request(url.split("?", 1)[1]) == ComparisonRequest()
