"""Keyword-driven category classifier.

Classification is an ordered table of :class:`Rule` records evaluated top to
bottom by a single matcher; the first rule whose predicate matches decides the
category and later rules are never consulted. Precedence is therefore the
declaration order of :data:`RULES` and nothing else (not keyword length, not
match count). Where a specific keyword overlaps a generic one (``uber eats``
vs ``uber``), the specific rule is declared first and the generic rule also
excludes the specific trigger.

Predicates test case-insensitive substring membership against the
space-joined descriptive fields, optionally combined with the sector hint
exported by the card issuer (``Secteur``). Keyword sets carry French and
English variants since statements mix both.

When no rule matches, the sector hint is mapped through :data:`SECTOR_RULES`;
an unmapped sector becomes ``Miscellaneous/<Sector>``. Without a sector, a
last transfer check runs before the ``Miscellaneous/Other`` default.
:func:`classify` is total: it never raises.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import NamedTuple, TypeAlias

from .models import DEFAULT_CATEGORY_NAME, DEFAULT_SUBCATEGORY_NAME, Category


class Subject(NamedTuple):
    """Lower-cased classifier input."""

    text: str
    sector: str


Predicate: TypeAlias = Callable[[Subject], bool]


# ---------------------------------------------------------------------------
# Predicate combinators
# ---------------------------------------------------------------------------


def contains_any(*keywords: str) -> Predicate:
    kws = tuple(k.lower() for k in keywords)

    def _pred(s: Subject) -> bool:
        return any(k in s.text for k in kws)

    return _pred


def contains_all(*keywords: str) -> Predicate:
    kws = tuple(k.lower() for k in keywords)

    def _pred(s: Subject) -> bool:
        return all(k in s.text for k in kws)

    return _pred


def lacks(*keywords: str) -> Predicate:
    kws = tuple(k.lower() for k in keywords)

    def _pred(s: Subject) -> bool:
        return not any(k in s.text for k in kws)

    return _pred


def sector_any(*keywords: str) -> Predicate:
    kws = tuple(k.lower() for k in keywords)

    def _pred(s: Subject) -> bool:
        return any(k in s.sector for k in kws)

    return _pred


def either(*predicates: Predicate) -> Predicate:
    def _pred(s: Subject) -> bool:
        return any(p(s) for p in predicates)

    return _pred


def both(*predicates: Predicate) -> Predicate:
    def _pred(s: Subject) -> bool:
        return all(p(s) for p in predicates)

    return _pred


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Rule:
    """One row of the classifier table.

    ``refine`` is an ordered second pass: the first matching ``(predicate,
    category)`` pair wins, ``category`` being the default when none match.
    """

    label: str
    when: Predicate
    category: Category
    refine: tuple[tuple[Predicate, Category], ...] = ()

    def resolve(self, subject: Subject) -> Category:
        for pred, cat in self.refine:
            if pred(subject):
                return cat
        return self.category


def _cat(name: str, sub: str = "") -> Category:
    return Category(name=name, sub=sub)


_SALARY_EMPLOYER = either(
    contains_any("hopitaux universitaires", "hôpitaux universitaires"),
    contains_all("geneve", "perret-gentil"),
)

_AIRLINES = contains_any(
    "qatar",
    "swiss air",
    "easyjet",
    "lufthansa",
    "air france",
    "skywestair",
    "british airways",
    "klm",
    "emirates",
)

RULES: tuple[Rule, ...] = (
    Rule("salary", _SALARY_EMPLOYER, _cat("Income", "Salary")),
    Rule(
        "brokerage",
        contains_any("trading 212", "ibkr", "interactive brokers"),
        _cat("Investments", "Trading"),
    ),
    Rule("atm", contains_any("retrait au bancomat"), _cat("ATM withdrawals")),
    Rule(
        "retirement",
        contains_any("frankly", "truewealth", "pillar 3a", "pilier 3a"),
        _cat("Retirement", "Pillar 3A"),
    ),
    Rule(
        "pension-fund",
        contains_any("david nicolas de ridder"),
        _cat("Investments", "Pension fund"),
    ),
    Rule("taxes", contains_any("etat de genève", "etat de geneve"), _cat("Taxes")),
    Rule(
        "rent-landlord",
        either(contains_any("bordier schmidhauser"), contains_all("loyer", "geneve")),
        _cat("Housing", "Rent"),
    ),
    Rule("airlines", _AIRLINES, _cat("Travel", "Flights")),
    Rule(
        "transfer-income",
        contains_any("virement", "transfer", "versement", "credit", "crédit"),
        _cat("Income", "Transfer"),
        refine=(
            (
                either(
                    contains_any(
                        "hopitaux universitaires de geneve",
                        "hôpitaux",
                        "universite de geneve",
                        "universitaires",
                    ),
                    contains_all("geneve", "perret-gentil"),
                ),
                _cat("Income", "Salary"),
            ),
            (contains_any("salaire", "salary", "paie", "payroll"), _cat("Income", "Salary")),
            (
                contains_any("dividend", "dividende", "investment", "investissement"),
                _cat("Income", "Investments"),
            ),
        ),
    ),
    Rule(
        "bank-fees",
        contains_any("frais", "fee", "commission", "intérêt", "interest"),
        _cat("Banking", "Fees & Interest"),
    ),
    Rule(
        "health-insurer",
        contains_any(
            "assura",
            "groupe mutuel",
            "mutuel assurance",
            "css",
            "helsana",
            "sanitas",
            "swica",
            "concordia",
            "supra-1846",
            "visana",
        ),
        _cat("Insurance", "Health"),
    ),
    Rule(
        "insurer",
        contains_any(
            "insurance",
            "assurance",
            "axa",
            "zurich",
            "baloise",
            "allianz",
            "generali",
            "helvetia",
        ),
        _cat("Insurance", "Other"),
        refine=(
            (contains_any("car", "auto", "voiture", "vehicule"), _cat("Insurance", "Car")),
            (
                contains_any("health", "santé", "maladie", "medical"),
                _cat("Insurance", "Health"),
            ),
            (
                contains_any("home", "maison", "habitation", "household", "apartment"),
                _cat("Insurance", "Home"),
            ),
        ),
    ),
    Rule(
        "subscription",
        either(
            contains_any(
                "spotify",
                "netflix",
                "apple.com/bill",
                "amazon prime",
                "disney+",
                "hbo",
                "youtube",
                "twitch",
                "crunchyroll",
                "deezer",
                "pandora",
                "tidal",
                "abonnement",
                "subscription",
            ),
            sector_any("médias numériques"),
        ),
        _cat("Subscriptions", "Other"),
        refine=(
            (
                contains_any("spotify", "apple music", "deezer", "tidal", "pandora"),
                _cat("Subscriptions", "Music"),
            ),
            (
                contains_any(
                    "netflix",
                    "disney+",
                    "hbo",
                    "amazon prime",
                    "youtube premium",
                    "crunchyroll",
                ),
                _cat("Subscriptions", "Video"),
            ),
            (contains_any("apple.com"), _cat("Subscriptions", "Apple Services")),
            (
                contains_any("microsoft", "office", "adobe", "dropbox", "google"),
                _cat("Subscriptions", "Software"),
            ),
            (contains_any("claude", "chatgpt"), _cat("Subscriptions", "AI")),
        ),
    ),
    # Must precede "taxi": a generic "uber" would otherwise claim Uber Eats.
    Rule(
        "food-delivery",
        either(
            contains_any(
                "uber *eats",
                "uber eats",
                "deliveroo",
                "just eat",
                "takeaway",
                "delivery",
                "livraison repas",
                "smood",
                "eat.ch",
            ),
            contains_all("uber", "eats"),
        ),
        _cat("Food", "Takeaway"),
    ),
    Rule(
        "groceries",
        either(
            contains_any(
                "migros",
                "coop",
                "denner",
                "aldi",
                "lidl",
                "manor",
                "globus",
                "spar",
                "volg",
                "carrefour",
                "casino",
                "monoprix",
                "grocery",
                "supermarket",
                "supermarché",
            ),
            sector_any("alimentation", "magasin d alimentation"),
        ),
        _cat("Home", "Groceries"),
    ),
    Rule(
        "furniture",
        contains_any(
            "ikea",
            "conforama",
            "home depot",
            "jumbo",
            "hornbach",
            "bauhaus",
            "möbel",
            "furniture",
            "meuble",
        ),
        _cat("Home", "Furniture"),
    ),
    Rule(
        "telecom",
        contains_any(
            "swisscom",
            "salt",
            "sunrise",
            "internet",
            "téléphone",
            "phone bill",
            "telecommunications",
        ),
        _cat("Home", "Phone & TV"),
    ),
    Rule(
        "utilities",
        contains_any(
            "eau",
            "water",
            "électricité",
            "electricity",
            "gaz",
            "gas",
            "service industriel",
            "utility",
            "chauffage",
            "heating",
        ),
        _cat("Home", "Utilities"),
    ),
    Rule(
        "restaurant",
        either(
            contains_any(
                "restaurant",
                "café",
                "cafe",
                "bar",
                "bistro",
                "brasserie",
                "mcdonalds",
                "burger king",
                "starbucks",
                "coffeeshop",
            ),
            sector_any("restaurant", "restauration"),
        ),
        _cat("Food", "Restaurant"),
    ),
    Rule(
        "public-transport",
        contains_any(
            "cff", "sbb", "sncf", "tpg", "metro", "tram", "bus", "train", "transport public"
        ),
        _cat("Transport", "Public Transport"),
    ),
    Rule(
        "taxi",
        either(
            contains_any("uber *trip", "uber trip", "uber *one", "taxi", "cabify", "lyft"),
            both(contains_any("uber"), lacks("eats", "eat")),
        ),
        _cat("Transport", "Taxi"),
    ),
    Rule(
        "fuel",
        contains_any(
            "gas station",
            "essence",
            "petrol",
            "carburant",
            "shell",
            "bp ",
            "caltex",
            "migrol",
            "tamoil",
            "avia",
            "station service",
        ),
        _cat("Transport", "Fuel"),
    ),
    Rule(
        "parking",
        contains_any("parking", "parkmeter", "parkhaus", "stationnement"),
        _cat("Transport", "Parking"),
    ),
    Rule(
        "car-maintenance",
        contains_any(
            "mecanique", "garage", "auto repair", "car service", "entretien voiture"
        ),
        _cat("Transport", "Car Maintenance"),
    ),
    Rule(
        "clothes",
        either(
            contains_any(
                "h&m",
                "zara",
                "mango",
                "c&a",
                "primark",
                "esprit",
                "pull and bear",
                "bershka",
                "massimo dutti",
                "uniqlo",
            ),
            sector_any("vêtements", "clothing"),
        ),
        _cat("Shopping", "Clothes"),
    ),
    Rule(
        "online-shopping",
        contains_any(
            "amazon",
            "aliexpress",
            "ebay",
            "zalando",
            "galaxus",
            "digitec",
            "online shopping",
        ),
        _cat("Shopping", "Online"),
    ),
    Rule(
        "electronics",
        contains_any(
            "fnac",
            "mediamarkt",
            "interdiscount",
            "fust",
            "microspot",
            "brack",
            "electronic",
            "electronique",
        ),
        _cat("Shopping", "Electronics"),
    ),
    Rule(
        "sport",
        contains_any(
            "gym",
            "fitness",
            "sport",
            "crossfit",
            "yoga",
            "pilates",
            "tennis",
            "golf",
            "swimming",
            "natation",
        ),
        _cat("Health & Wellness", "Sport"),
    ),
    Rule(
        "medical",
        contains_any(
            "medecin",
            "doctor",
            "hopital",
            "hospital",
            "clinic",
            "clinique",
            "dentist",
            "dentiste",
            "medical",
            "médical",
        ),
        _cat("Health & Wellness", "Medical"),
    ),
    Rule(
        "pharmacy",
        contains_any(
            "pharmacy",
            "pharmacie",
            "amavita",
            "sunkstore",
            "coop vitality",
            "medication",
            "médicament",
        ),
        _cat("Health & Wellness", "Pharmacy"),
    ),
    Rule(
        "rent",
        contains_any(
            "loyer", "location", "regies", "property management", "appartement payment"
        ),
        _cat("Housing", "Rent"),
    ),
    Rule(
        "mortgage",
        contains_any("mortgage", "hypothèque", "hypotheque", "home loan"),
        _cat("Housing", "Mortgage"),
    ),
    Rule(
        "cinema",
        contains_any("cinema", "movie", "film", "pathé", "arena cinemas"),
        _cat("Entertainment", "Cinema"),
    ),
    Rule(
        "events",
        contains_any(
            "concert",
            "festival",
            "ticket master",
            "show",
            "theatre",
            "théâtre",
            "opéra",
            "spectacle",
        ),
        _cat("Entertainment", "Events"),
    ),
    Rule(
        "accommodation",
        contains_any(
            "hotel", "airbnb", "booking.com", "lodging", "accommodation", "hébergement"
        ),
        _cat("Travel", "Accommodation"),
    ),
    Rule(
        "flights",
        contains_any(
            "airline",
            "flight",
            "swiss",
            "easyjet",
            "lufthansa",
            "air france",
            "british airways",
            "aérien",
        ),
        _cat("Travel", "Flights"),
    ),
)

# Consulted only when no rule in RULES matched and a sector hint is present.
SECTOR_RULES: tuple[tuple[tuple[str, ...], Category], ...] = (
    (("restaurant", "fast-food"), _cat("Food", "Restaurant")),
    (("alimentation", "supermarché"), _cat("Home", "Groceries")),
    (("vêtements", "clothing"), _cat("Shopping", "Clothes")),
    (("médias", "musique", "livres"), _cat("Entertainment", "Media")),
    (("voyage", "hôtel"), _cat("Travel", "Accommodation")),
)

# Shadowed by the "transfer-income" rule, which already claims both keywords;
# Banking/Transfer is therefore never produced by the current table.
_LATE_TRANSFER = contains_any("transfer", "virement")
_DEFAULT = _cat(DEFAULT_CATEGORY_NAME, DEFAULT_SUBCATEGORY_NAME)


# ---------------------------------------------------------------------------
# Matcher
# ---------------------------------------------------------------------------


def make_subject(*descriptions: str | None, sector: str | None = None) -> Subject:
    text = " ".join(d or "" for d in descriptions).lower()
    return Subject(text=text, sector=(sector or "").lower())


def _decide(subject: Subject) -> tuple[str, Category]:
    for rule in RULES:
        if rule.when(subject):
            return rule.label, rule.resolve(subject)

    sector = subject.sector
    if sector:
        for keywords, cat in SECTOR_RULES:
            if any(k in sector for k in keywords):
                return "sector", cat
        return "sector-raw", _cat(DEFAULT_CATEGORY_NAME, sector[:1].upper() + sector[1:])

    if _LATE_TRANSFER(subject):
        return "late-transfer", _cat("Banking", "Transfer")
    return "default", _DEFAULT


def classify(*descriptions: str | None, sector: str | None = None) -> Category:
    """Return the category for the given descriptive fields.

    ``descriptions`` are joined with spaces before matching, so callers can
    pass every free-text column of a row. ``sector`` is the issuer's merchant
    sector hint, when the format has one.
    """

    return _decide(make_subject(*descriptions, sector=sector))[1]


def explain(*descriptions: str | None, sector: str | None = None) -> str:
    """Return the label of the rule (or fallback) that :func:`classify` applies."""

    return _decide(make_subject(*descriptions, sector=sector))[0]


__all__ = [
    "RULES",
    "SECTOR_RULES",
    "Rule",
    "Subject",
    "classify",
    "explain",
    "make_subject",
]
