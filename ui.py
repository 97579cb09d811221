import streamlit as st

from models import Winner, WinReason


def inject_css():
    st.markdown("""
<style>
.card {border: 1px solid #e6e6e6; border-radius: 10px; padding: 0.8rem 1rem; margin-bottom: 0.6rem;}
.card.win {border-color: #2e7d32;}
.kpi {font-size: 1.6rem; font-weight: 600;}
.caption {color: #6b6b6b; font-size: 0.85rem;}
</style>
""", unsafe_allow_html=True)


def header(title: str, subtitle: str = ""):
    st.markdown(f"## {title}")
    if subtitle:
        st.caption(subtitle)


def helptext(text: str):
    st.caption(text)


def kpi_card(caption: str, value: str, sub: str = "", win: bool = False) -> str:
    extra = f"<div class='caption'>{sub}</div>" if sub else ""
    cls = "card win" if win else "card"
    return (f"<div class='{cls}'><div class='caption'>{caption}</div>"
            f"<div class='kpi'>{value}</div>{extra}</div>")


def verdict(winner: Winner, reason: WinReason, label_a: str, label_b: str) -> str:
    name = label_a if winner is Winner.A else label_b
    if reason is WinReason.EARLIER_RETIREMENT:
        return f"**{name}** gets you to FIRE sooner."
    return f"Same timeline; **{name}** needs a smaller FIRE number."
