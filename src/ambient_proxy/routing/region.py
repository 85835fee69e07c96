"""Region classification.

Clients are served by one of two upstream regions. The canonical policy keys
on the continent reported by the GeoIP database: the Americas go to ``US``,
everything else (including unknown) goes to ``EU``.

The country tables below are the explicit form of the same policy, used when
a country code arrives without a continent (the ``X-AppEngine-Country``
header). ``classify_country`` goes through ``continent_for_country`` and then
``classify``, so both forms agree on every code the tables list.
"""

from __future__ import annotations

from enum import Enum


class RegionBucket(Enum):
    """Upstream region serving a client."""

    US = "us"
    EU = "eu"


DEFAULT_BUCKET = RegionBucket.EU

US_CONTINENTS = frozenset({"NA", "SA"})

# North and Central America, the Caribbean
NORTH_AMERICA_COUNTRIES = frozenset({
    "AG", "AI", "AW", "BB", "BL", "BM", "BQ", "BS", "BZ", "CA",
    "CR", "CU", "CW", "DM", "DO", "GD", "GL", "GP", "GT", "HN",
    "HT", "JM", "KN", "KY", "LC", "MF", "MQ", "MS", "MX", "NI",
    "PA", "PM", "PR", "SV", "SX", "TC", "TT", "US", "VC", "VG",
    "VI",
})

SOUTH_AMERICA_COUNTRIES = frozenset({
    "AR", "BO", "BR", "CL", "CO", "EC", "FK", "GF", "GY", "PE",
    "PY", "SR", "UY", "VE",
})

# Europe and adjacent territories
EUROPE_COUNTRIES = frozenset({
    "AD", "AL", "AT", "AX", "BA", "BE", "BG", "BY", "CH", "CY",
    "CZ", "DE", "DK", "EE", "ES", "FI", "FO", "FR", "GB", "GG",
    "GI", "GR", "HR", "HU", "IE", "IM", "IS", "IT", "JE", "LI",
    "LT", "LU", "LV", "MC", "MD", "ME", "MK", "MT", "NL", "NO",
    "PL", "PT", "RO", "RS", "RU", "SE", "SI", "SJ", "SK", "SM",
    "UA", "VA", "XK",
})

_COUNTRY_CONTINENTS: dict[str, str] = {
    **{code: "NA" for code in NORTH_AMERICA_COUNTRIES},
    **{code: "SA" for code in SOUTH_AMERICA_COUNTRIES},
    **{code: "EU" for code in EUROPE_COUNTRIES},
}


def classify(continent: str | None) -> RegionBucket:
    """Map an upper-case continent code to the region bucket serving it."""
    if continent in US_CONTINENTS:
        return RegionBucket.US
    return DEFAULT_BUCKET


def is_country_code(value: str | None) -> bool:
    """Check that ``value`` is exactly two ASCII letters."""
    return value is not None and len(value) == 2 and value.isascii() and value.isalpha()


def continent_for_country(country: str | None) -> str | None:
    """Continent implied by the explicit country tables, if listed."""
    if not is_country_code(country):
        return None
    return _COUNTRY_CONTINENTS.get(country.upper())


def classify_country(country: str | None) -> RegionBucket:
    """Map a country code to its region bucket via the country tables.

    Codes missing from the tables, malformed codes and the ``ZZ`` sentinel
    all fall back to the default bucket.
    """
    return classify(continent_for_country(country))
