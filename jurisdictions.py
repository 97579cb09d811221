"""
Versioned snapshot of country and US-state tax / cost-of-living data.

Simplified: income tax is resident, single filer, brackets on taxable income after
the personal allowance. Capital gains use one representative long-term rate.
Cost-of-living index is relative to US = 100.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from loguru import logger

from config import DEFAULTS
from costs import cost_of_living_multiplier
from currency import convert
from models import JurisdictionTaxProfile, MissingJurisdictionData, RateComposition, clamp_money
from taxes import Band, TaxSystem, average_rate

DATA_AS_OF = "2025"
INF = math.inf


@dataclass(frozen=True)
class Country:
    code: str
    name: str
    currency: str
    cost_of_living_index: float
    income_tax: TaxSystem
    capital_gains_rate: float
    notes: str = ""


@dataclass(frozen=True)
class USState:
    code: str
    name: str
    income_tax_rate: float     # top marginal rate for simplicity
    capital_gains_rate: float  # most states tax gains as income
    notes: str = ""

    @property
    def has_no_income_tax(self) -> bool:
        return self.income_tax_rate == 0


def _bands(*pairs):
    return [Band(up_to, rate) for up_to, rate in pairs]


COUNTRIES: Dict[str, Country] = {c.code: c for c in [
    Country("US", "United States", "USD", 100, TaxSystem(
        "United States (federal, single)", allowance=15_000,
        bands=_bands((11_925, 0.10), (48_475, 0.12), (103_350, 0.22), (197_300, 0.24),
                     (250_525, 0.32), (626_350, 0.35), (INF, 0.37))),
        0.15, "Federal only; add a state for state income tax."),
    Country("UK", "United Kingdom", "GBP", 85, TaxSystem(
        "United Kingdom", allowance=12_570, taper_start=100_000, taper_ratio=0.5,
        bands=_bands((37_700, 0.20), (125_140, 0.40), (INF, 0.45))),
        0.24, "Personal allowance tapers above £100k."),
    Country("IE", "Ireland", "EUR", 95, TaxSystem(
        "Ireland", bands=_bands((42_000, 0.20), (INF, 0.40))),
        0.33, "Tax credits not modelled."),
    Country("PT", "Portugal", "EUR", 65, TaxSystem(
        "Portugal", allowance=4_104,
        bands=_bands((7_703, 0.1325), (11_623, 0.18), (16_472, 0.23), (21_321, 0.26),
                     (27_146, 0.3275), (39_791, 0.37), (51_997, 0.435), (81_199, 0.45),
                     (INF, 0.48))),
        0.28),
    Country("ES", "Spain", "EUR", 60, TaxSystem(
        "Spain", allowance=5_550,
        bands=_bands((12_450, 0.19), (20_200, 0.24), (35_200, 0.30), (60_000, 0.37),
                     (300_000, 0.45), (INF, 0.47))),
        0.21),
    Country("DE", "Germany", "EUR", 75, TaxSystem(
        "Germany (simplified)",
        bands=_bands((11_604, 0.0), (17_005, 0.14), (66_760, 0.24), (277_825, 0.42), (INF, 0.45))),
        0.26375, "Solidarity surcharge included in the gains rate."),
    Country("NL", "Netherlands", "EUR", 80, TaxSystem(
        "Netherlands", bands=_bands((75_518, 0.3697), (INF, 0.495))),
        0.36, "Box 3 deemed return approximated as a gains rate."),
    Country("CA", "Canada", "CAD", 75, TaxSystem(
        "Canada (federal)", allowance=15_705,
        bands=_bands((55_867, 0.15), (111_733, 0.205), (173_205, 0.26), (246_752, 0.29), (INF, 0.33))),
        0.25),
    Country("AU", "Australia", "AUD", 80, TaxSystem(
        "Australia (resident)",
        bands=_bands((18_200, 0.0), (45_000, 0.19), (120_000, 0.325), (180_000, 0.37), (INF, 0.45))),
        0.095, "50% CGT discount applied."),
    Country("FR", "France", "EUR", 75, TaxSystem(
        "France (1 part)",
        bands=_bands((11_294, 0.0), (28_797, 0.11), (82_341, 0.30), (177_106, 0.41), (INF, 0.45))),
        0.30, "Flat tax (PFU) on gains."),
    Country("IT", "Italy", "EUR", 65, TaxSystem(
        "Italy", bands=_bands((28_000, 0.23), (50_000, 0.35), (INF, 0.43))),
        0.26),
    Country("CH", "Switzerland", "CHF", 130, TaxSystem(
        "Switzerland (federal)",
        bands=_bands((31_600, 0.0), (41_400, 0.0077), (55_200, 0.0088), (72_500, 0.0264),
                     (78_100, 0.0297), (103_600, 0.0561), (134_600, 0.0666), (176_000, 0.0888),
                     (INF, 0.115))),
        0.0, "Cantonal tax varies and is not modelled."),
    Country("AE", "UAE (Dubai)", "AED", 70, TaxSystem("UAE", bands=_bands((INF, 0.0))), 0.0),
    Country("SG", "Singapore", "SGD", 90, TaxSystem(
        "Singapore",
        bands=_bands((20_000, 0.0), (30_000, 0.02), (40_000, 0.035), (80_000, 0.07),
                     (120_000, 0.115), (160_000, 0.15), (200_000, 0.18), (240_000, 0.19),
                     (280_000, 0.195), (320_000, 0.20), (500_000, 0.22), (1_000_000, 0.23),
                     (INF, 0.24))),
        0.0),
    Country("MX", "Mexico", "MXN", 35, TaxSystem(
        "Mexico",
        bands=_bands((8_952, 0.0192), (75_984, 0.064), (133_536, 0.1088), (155_229, 0.16),
                     (185_852, 0.1792), (374_837, 0.2136), (590_796, 0.2352), (1_127_926, 0.30),
                     (1_503_902, 0.32), (4_511_707, 0.34), (INF, 0.35))),
        0.10),
    Country("TH", "Thailand", "THB", 30, TaxSystem(
        "Thailand", allowance=60_000,
        bands=_bands((150_000, 0.0), (300_000, 0.05), (500_000, 0.10), (750_000, 0.15),
                     (1_000_000, 0.20), (2_000_000, 0.25), (5_000_000, 0.30), (INF, 0.35))),
        0.0),
    Country("CR", "Costa Rica", "CRC", 45, TaxSystem(
        "Costa Rica",
        bands=_bands((4_200_000, 0.0), (6_300_000, 0.10), (10_500_000, 0.15),
                     (21_000_000, 0.20), (INF, 0.25))),
        0.15, "Territorial: foreign income largely untaxed."),
    Country("GR", "Greece", "EUR", 55, TaxSystem(
        "Greece",
        bands=_bands((10_000, 0.09), (20_000, 0.22), (30_000, 0.28), (40_000, 0.36), (INF, 0.44))),
        0.15),
]}

US_STATES: Dict[str, USState] = {s.code: s for s in [
    USState("AL", "Alabama", 0.05, 0.05),
    USState("AK", "Alaska", 0.0, 0.0, "No state income tax"),
    USState("AZ", "Arizona", 0.025, 0.025),
    USState("AR", "Arkansas", 0.047, 0.047),
    USState("CA", "California", 0.133, 0.133, "Highest state income tax"),
    USState("CO", "Colorado", 0.044, 0.044),
    USState("CT", "Connecticut", 0.0699, 0.0699),
    USState("DE", "Delaware", 0.066, 0.066),
    USState("FL", "Florida", 0.0, 0.0, "No state income tax"),
    USState("GA", "Georgia", 0.0549, 0.0549),
    USState("HI", "Hawaii", 0.11, 0.0725),
    USState("ID", "Idaho", 0.058, 0.058),
    USState("IL", "Illinois", 0.0495, 0.0495),
    USState("IN", "Indiana", 0.0315, 0.0315),
    USState("IA", "Iowa", 0.057, 0.057),
    USState("KS", "Kansas", 0.057, 0.057),
    USState("KY", "Kentucky", 0.04, 0.04),
    USState("LA", "Louisiana", 0.0425, 0.0425),
    USState("ME", "Maine", 0.0715, 0.0715),
    USState("MD", "Maryland", 0.0575, 0.0575),
    USState("MA", "Massachusetts", 0.09, 0.09, "Includes 4% surtax on income over $1M"),
    USState("MI", "Michigan", 0.0425, 0.0425),
    USState("MN", "Minnesota", 0.0985, 0.0985),
    USState("MS", "Mississippi", 0.05, 0.05),
    USState("MO", "Missouri", 0.048, 0.048),
    USState("MT", "Montana", 0.059, 0.059),
    USState("NE", "Nebraska", 0.0584, 0.0584),
    USState("NV", "Nevada", 0.0, 0.0, "No state income tax"),
    USState("NH", "New Hampshire", 0.03, 0.0, "Tax on interest/dividends only (phasing out)"),
    USState("NJ", "New Jersey", 0.1075, 0.1075),
    USState("NM", "New Mexico", 0.059, 0.059),
    USState("NY", "New York", 0.109, 0.109, "NYC adds up to 3.88% more"),
    USState("NC", "North Carolina", 0.0475, 0.0475),
    USState("ND", "North Dakota", 0.029, 0.029),
    USState("OH", "Ohio", 0.0399, 0.0399),
    USState("OK", "Oklahoma", 0.0475, 0.0475),
    USState("OR", "Oregon", 0.099, 0.099),
    USState("PA", "Pennsylvania", 0.0307, 0.0307),
    USState("RI", "Rhode Island", 0.0599, 0.0599),
    USState("SC", "South Carolina", 0.064, 0.064),
    USState("SD", "South Dakota", 0.0, 0.0, "No state income tax"),
    USState("TN", "Tennessee", 0.0, 0.0, "No state income tax"),
    USState("TX", "Texas", 0.0, 0.0, "No state income tax"),
    USState("UT", "Utah", 0.0465, 0.0465),
    USState("VT", "Vermont", 0.0875, 0.0875),
    USState("VA", "Virginia", 0.0575, 0.0575),
    USState("WA", "Washington", 0.0, 0.07, "No income tax, but 7% CG tax on gains over $270K"),
    USState("WV", "West Virginia", 0.055, 0.055),
    USState("WI", "Wisconsin", 0.0765, 0.0765),
    USState("WY", "Wyoming", 0.0, 0.0, "No state income tax"),
    USState("DC", "Washington D.C.", 0.105, 0.105),
]}


def get_country(code: str) -> Country:
    try:
        return COUNTRIES[(code or "").upper()]
    except KeyError:
        raise MissingJurisdictionData(f"Country {code!r} not found") from None


def get_state(code: str) -> USState:
    try:
        return US_STATES[(code or "").upper()]
    except KeyError:
        raise MissingJurisdictionData(f"US state {code!r} not found") from None


def no_income_tax_states():
    return [s for s in US_STATES.values() if s.has_no_income_tax]


def tax_profile_for(code: str, state: Optional[str] = None, home: Optional[str] = None,
                    reference_income: float = 0.0,
                    base_currency: str = DEFAULTS["base_currency"],
                    rates: Optional[Dict[str, float]] = None,
                    composition: RateComposition = RateComposition.ADDITIVE) -> JurisdictionTaxProfile:
    """
    Flatten a country (and optional US state) into the engine's tax profile.

    The income rate is the average bracket rate at `reference_income`, converted
    from `base_currency` into the country's currency first. The cost-of-living
    multiplier is relative to `home` (defaults to the country itself -> 1.0).
    """
    country = get_country(code)
    home_country = get_country(home) if home else country

    sub_income = sub_gains = None
    if state:
        if country.code != "US":
            logger.warning(f"Ignoring state {state!r}: sub-jurisdictions are only modelled for US")
        else:
            st = get_state(state)
            sub_income, sub_gains = st.income_tax_rate, st.capital_gains_rate

    local_income = convert(reference_income, base_currency, country.currency, rates)
    return JurisdictionTaxProfile(
        income_tax_rate=average_rate(local_income, country.income_tax),
        capital_gains_tax_rate=country.capital_gains_rate,
        sub_income_tax_rate=sub_income,
        sub_capital_gains_tax_rate=sub_gains,
        composition=composition,
        cost_of_living_multiplier=cost_of_living_multiplier(
            home_country.cost_of_living_index, country.cost_of_living_index),
        code=country.code if sub_income is None else f"{country.code}-{state.upper()}",
        currency=country.currency,
    )


# ---------- State pensions ----------
@dataclass(frozen=True)
class StatePension:
    name: str
    eligibility_age: int
    average_annual: float      # local currency
    currency: str
    can_claim_abroad: bool = True


STATE_PENSIONS: Dict[str, StatePension] = {
    "US": StatePension("Social Security", 67, 22_000, "USD"),
    "UK": StatePension("State Pension", 66, 9_500, "GBP"),
    "DE": StatePension("Gesetzliche Rentenversicherung", 67, 18_000, "EUR"),
    "FR": StatePension("Retraite de base", 64, 17_000, "EUR"),
    "ES": StatePension("Pensión de jubilación", 67, 16_000, "EUR"),
    "PT": StatePension("Pensão de velhice", 66, 9_000, "EUR"),
    "IT": StatePension("Pensione di vecchiaia", 67, 18_000, "EUR"),
    "NL": StatePension("AOW", 67, 15_000, "EUR"),
    "IE": StatePension("State Pension (Contributory)", 66, 12_000, "EUR"),
    "CH": StatePension("AHV/AVS", 65, 22_000, "CHF"),
    "CA": StatePension("CPP/QPP + OAS", 65, 15_000, "CAD"),
    "AU": StatePension("Age Pension", 67, 24_000, "AUD"),
    "SG": StatePension("CPF LIFE", 65, 15_000, "SGD", can_claim_abroad=False),
    "MX": StatePension("IMSS Pension", 65, 60_000, "MXN"),
}

SPECIAL_REGIMES: Dict[str, List[str]] = {
    "PT": ["NHR 2.0: 20% flat tax on eligible employment income for 10 years"],
    "ES": ["Beckham Law: 24% flat tax on Spanish income up to €600k for 6 years"],
    "NL": ["30% Ruling: 30% of salary tax-free for 5 years"],
    "IT": ["Flat Tax for Retirees: 7% on all foreign income in small southern towns for 10 years"],
    "UK": ["Remittance Basis: only UK-source and remitted foreign income taxed"],
    "CH": ["Lump-sum Taxation: tax based on living expenses, not income or assets"],
}


def get_state_pension(code: str) -> Optional[StatePension]:
    return STATE_PENSIONS.get((code or "").upper())


def country_notes(code: str) -> List[str]:
    """Facts about a country worth showing next to its projection."""
    country = get_country(code)
    notes = []
    if country.capital_gains_rate == 0:
        notes.append(f"{country.name} has no capital gains tax on private investments.")
    if country.notes:
        notes.append(country.notes)
    notes.extend(SPECIAL_REGIMES.get(country.code, []))
    return notes


def pension_warnings(home: str, target: str, pension_amount: float) -> List[str]:
    """Warn when a pension earned at `home` may not be paid while living in `target`."""
    if clamp_money(pension_amount) <= 0 or (home or "").upper() == (target or "").upper():
        return []
    pension = get_state_pension(home)
    if pension is None or pension.can_claim_abroad:
        return []
    return [f"{pension.name} may not be payable while living in {get_country(target).name}. Verify eligibility."]
