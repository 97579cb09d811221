# app.py
from typing import Callable, Optional
from urllib.parse import parse_qsl

import plotly.graph_objects as go
import streamlit as st
from loguru import logger

from config import APP_NAME, DEFAULTS, RETURN_PRESETS, configure_logging
from costs import spending_schedule
from currency import FALLBACK_RATES, convert
from exporters import bands_long, export_bands, export_comparison, export_request, export_side_by_side
from formatters import format_compact, format_currency, format_percent, format_years
from jurisdictions import COUNTRIES, US_STATES, get_state_pension
from models import ComparisonRequest, Winner
from projection import coast_fire, sustainable_spending
from scenarios import run_request, sides_for
from taxes import tax_breakdown
from ui import header, helptext, inject_css, kpi_card, verdict
from url_state import decode_request, encode_request

# Optional analytics sink. The engine never calls it; only this page does.
AnalyticsSink = Callable[[str, dict], None]


def log_sink(event: str, payload: dict):
    logger.info(f"analytics {event}: {payload}")


def emit(sink: Optional[AnalyticsSink], event: str, payload: dict):
    if sink is not None:
        sink(event, payload)


configure_logging()
sink: Optional[AnalyticsSink] = log_sink

# ------------- Page setup -------------
st.set_page_config(page_title=APP_NAME, page_icon="🌍", layout="wide")
inject_css()
header(APP_NAME, "Estimates only, not tax or legal advice.")

# Shared links restore every input.
start = decode_request(dict(st.query_params))

codes = list(COUNTRIES.keys())
state_codes = [""] + list(US_STATES.keys())
CURRENCIES = list(FALLBACK_RATES)


def _country(label, value, key):
    return st.sidebar.selectbox(label, codes, index=codes.index(value), key=key,
                                format_func=lambda c: f"{c} · {COUNTRIES[c].name}")


def _state(label, value, key):
    return st.sidebar.selectbox(label, state_codes, index=state_codes.index(value or ""), key=key,
                                help="US only. State income tax is added to federal, capped at 100%.") or None


# ------------- Sidebar (inputs) -------------
st.sidebar.header("Where")
home = _country("Where you live now", start.home_country, "home")
home_state = _state("US state (now)", start.home_state, "home_state") if home == "US" else None
target = _country("Where you might retire", start.target_country, "target")
target_state = _state("US state (target)", start.target_state, "target_state") if target == "US" else None

st.sidebar.header("Your money")
currency = st.sidebar.selectbox("Currency of your figures", CURRENCIES,
                                index=CURRENCIES.index(start.base_currency) if start.base_currency in CURRENCIES else 0)
age = st.sidebar.number_input("Your age", min_value=1, max_value=120, value=start.current_age)
net_worth = st.sidebar.number_input("Invested net worth", min_value=0.0, value=float(start.net_worth), step=10_000.0)
income = st.sidebar.number_input("Gross annual income", min_value=0.0, value=float(start.gross_income), step=5_000.0)
contribution = st.sidebar.number_input("Annual savings (pre-tax)", min_value=0.0,
                                       value=float(start.annual_contribution), step=1_000.0)
savings_rate = st.sidebar.number_input("Plus share of income saved", min_value=0.0, max_value=1.0,
                                       value=float(start.savings_rate), step=0.01, format="%.2f")
spending = st.sidebar.number_input("Annual spending in retirement (today's money, home prices)",
                                   min_value=0.0, value=float(start.annual_spending), step=1_000.0)

home_pension = get_state_pension(home)
pension_amount = st.sidebar.number_input("Expected state pension per year (today's money)", min_value=0.0,
                                         value=float(start.pension_amount), step=1_000.0,
                                         help=f"Typical {home_pension.name}: {home_pension.average_annual:,.0f} "
                                              f"{home_pension.currency}" if home_pension else None)
pension_age = st.sidebar.number_input("Pension starts at age", min_value=1, max_value=120, value=start.pension_age)

st.sidebar.header("Assumptions")
preset = st.sidebar.selectbox("Return preset", ["Custom"] + list(RETURN_PRESETS.keys()))
mu_default = RETURN_PRESETS[preset]["mu"] if preset != "Custom" else start.expected_return
vol_default = RETURN_PRESETS[preset]["vol"] if preset != "Custom" else start.volatility
expected_return = st.sidebar.number_input("Expected nominal return", value=float(mu_default), step=0.005, format="%.3f")
inflation = st.sidebar.number_input("Inflation", value=float(start.inflation_rate), step=0.005, format="%.3f")
swr = st.sidebar.number_input("Safe withdrawal rate", min_value=0.0, max_value=1.0,
                              value=float(start.safe_withdrawal_rate), step=0.0025, format="%.4f")
coast_age = st.sidebar.number_input("Coast FIRE target age", min_value=1, max_value=120,
                                    value=max(start.current_age, DEFAULTS["coast_target_age"]))

st.sidebar.header("Simulation")
volatility = st.sidebar.number_input("Volatility (σ, per year)", value=float(vol_default), step=0.01, format="%.2f")
trials = st.sidebar.number_input("Simulated futures", min_value=1, max_value=1_000_000, value=start.trials, step=100)
horizon = st.sidebar.slider("Horizon (years)", 0, DEFAULTS["horizon_cap_years"], start.horizon_years, 1)
seed = st.sidebar.number_input("Random seed", min_value=0, value=int(start.seed))

request = ComparisonRequest(
    home_country=home, target_country=target, home_state=home_state, target_state=target_state,
    base_currency=currency, current_age=int(age), net_worth=net_worth, annual_contribution=contribution,
    gross_income=income, savings_rate=savings_rate, expected_return=expected_return, annual_spending=spending,
    safe_withdrawal_rate=swr, inflation_rate=inflation, pension_amount=pension_amount,
    pension_age=int(pension_age), trials=int(trials), horizon_years=int(horizon), volatility=volatility,
    seed=int(seed),
)
st.query_params.from_dict(dict(parse_qsl(encode_request(request))))


@st.cache_data(show_spinner=False)
def run_cached(req: ComparisonRequest):
    return run_request(req)


with st.spinner("Projecting both countries…"):
    result = run_cached(request)

label_a = f"{COUNTRIES[home].name}{' (' + home_state + ')' if home_state else ''}"
label_b = f"{COUNTRIES[target].name}{' (' + target_state + ')' if target_state else ''}"
emit(sink, "comparison_viewed", {"from": home, "to": target, "winner": result.winner.value,
                                 "reason": result.reason.value})

# ------------- Verdict -------------
st.markdown("### 1) Who gets you there first?")
st.markdown(verdict(result.winner, result.reason, label_a, label_b))

side_a, side_b = sides_for(request)
cols = st.columns(2)
for col, label, code, side, proj, sim, is_win in [
    (cols[0], label_a, home, side_a, result.a, result.simulation_a, result.winner is Winner.A),
    (cols[1], label_b, target, side_b, result.b, result.simulation_b, result.winner is Winner.B),
]:
    with col:
        st.markdown(f"#### {label}")
        st.markdown(kpi_card("Years until FIRE", format_years(proj.years_until_fire),
                             f"FIRE at {proj.fire_age}" if proj.fire_age else "", win=is_win),
                    unsafe_allow_html=True)
        st.markdown(kpi_card("FIRE number (today)", format_currency(proj.fire_number, currency),
                             f"Income tax {format_percent(proj.income_tax_rate)} · "
                             f"gains tax {format_percent(proj.capital_gains_tax_rate)}"),
                    unsafe_allow_html=True)
        if sim is not None:
            st.markdown(kpi_card(f"Chance of FIRE within {sim.horizon_years} years",
                                 format_percent(sim.success_probability),
                                 f"{sim.trials:,} simulated futures"),
                        unsafe_allow_html=True)

        coast = coast_fire(side.profile, side.tax, int(coast_age))
        to_go = max(0.0, coast["coast_number"] - side.profile.net_worth)
        st.markdown(kpi_card(f"Coast FIRE by {int(coast_age)}", format_currency(coast["coast_number"], currency),
                             "Already coasting" if coast["already_coast"] else f"{format_compact(to_go, currency)} to go"),
                    unsafe_allow_html=True)
        reverse = sustainable_spending(side.profile.net_worth, side.tax, side.profile.safe_withdrawal_rate,
                                       current_spending=spending * side.tax.cost_of_living_multiplier)
        st.markdown(kpi_card("Your portfolio supports today", f"{format_currency(reverse['net'], currency)} / yr",
                             f"{reverse['luxury_level'].title()} at home prices · "
                             f"{format_currency(reverse['monthly_net'], currency)} a month"),
                    unsafe_allow_html=True)
        for warning in proj.warnings:
            st.warning(warning)
        for note in proj.notes:
            st.caption(note)
        with st.expander("Tax breakdown"):
            country = COUNTRIES[code]
            local = convert(income, currency, country.currency)
            breakdown = tax_breakdown(local, country.income_tax)
            st.caption(f"Income tax on {format_currency(local, country.currency)}: "
                       f"{format_currency(breakdown['income_tax'], country.currency)} "
                       f"({format_percent(breakdown['income_tax_rate'])} average)")
            st.dataframe(breakdown["bands"], hide_index=True)

st.caption(f"FIRE numbers differ by {format_currency(result.summary.fire_number_difference, currency)} "
           f"({format_percent(result.summary.fire_number_difference_pct)}).")

# ------------- Charts -------------
st.markdown("### 2) Net worth paths")
helptext("Solid lines are the deterministic projection; the shaded band is the 10th–90th percentile of simulated futures.")

figW = go.Figure()
for label, proj, sim, color in [(label_a, result.a, result.simulation_a, "#1f77b4"),
                                (label_b, result.b, result.simulation_b, "#ff7f0e")]:
    traj = proj.trajectory_frame()
    figW.add_trace(go.Scatter(x=traj["age"], y=traj["net_worth"], mode="lines", name=f"{label} projection",
                              line=dict(color=color)))
    figW.add_trace(go.Scatter(x=traj["age"], y=traj["fire_number"], mode="lines", name=f"{label} FIRE number",
                              line=dict(color=color, dash="dash")))
    if sim is not None:
        tidy = bands_long(sim)
        lo, hi = tidy[tidy["percentile"] == "p10"], tidy[tidy["percentile"] == "p90"]
        figW.add_trace(go.Scatter(x=hi["age"], y=hi["net_worth"], mode="lines", name=f"{label} p90",
                                  line=dict(color=color, width=0), showlegend=False))
        figW.add_trace(go.Scatter(x=lo["age"], y=lo["net_worth"], mode="lines", name=f"{label} p10–p90",
                                  line=dict(color=color, width=0), fill="tonexty", opacity=0.2))
figW.update_layout(xaxis_title="Age", yaxis_title=f"Net worth ({currency})",
                   hovermode="x unified", margin=dict(l=30, r=20, t=40, b=30))
st.plotly_chart(figW, use_container_width=True)

sched = spending_schedule(spending, inflation, int(horizon))
figS = go.Figure(go.Scatter(x=sched["year"], y=sched["annual_nominal"], mode="lines", name="Spending (nominal)"))
figS.update_layout(title="Spending target at home prices", xaxis_title="Years from now",
                   yaxis_title=currency, margin=dict(l=30, r=20, t=60, b=30))
st.plotly_chart(figS, use_container_width=True)

# ------------- Export -------------
st.markdown("### 3) Export & share")
st.code(f"?{encode_request(request)}", language=None)
name, data = export_side_by_side(result, (home, target))
st.download_button("⬇️ Both trajectories (CSV)", data, file_name=name, mime="text/csv")
if result.simulation_b is not None:
    name, data = export_bands(result.simulation_b, target)
    st.download_button(f"⬇️ {target} simulation bands (CSV)", data, file_name=name, mime="text/csv")
name, data = export_comparison(result)
st.download_button("⬇️ Comparison summary (JSON)", data, file_name=name, mime="application/json")
name, data = export_request(request)
st.download_button("⬇️ Your inputs (JSON)", data, file_name=name, mime="application/json")

st.markdown("---")
st.caption("Simplified tax tables and long-run return estimates. A planning tool, not personal advice.")
