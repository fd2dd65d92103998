"""Template-based search prompt generation.

Turns a business profile (industry, country, location) into the fixed battery of
10 conversational prompts that are asked to every AI backend on each tracking
run. Output is deterministic: the same inputs always produce the same list.

Country differences (phrasing, how the location is written) live in
``COUNTRY_STRATEGIES`` so that supporting another country is one table entry.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

PROMPT_TEMPLATES: tuple[str, ...] = (
    "I need {service} in {location}, who should I hire?",
    "Can you recommend a good {business_type} in {location}?",
    "What are the best {business_types} in {location}?",
    "Looking for someone to {action} in {location}, any suggestions?",
    "I'm planning to {action} in {location}, who are my options?",
    "Who does quality {service} in {location}?",
    "Need recommendations for {service} in {location}",
    "What are my options for {service} in {location}?",
    "Looking for a reliable {business_type} in {location}",
    "Affordable {service} in {location}",
)

# Which location variant each template slot uses:
# 0 = city, 1 = abbreviation, 2 = full location string, 3 = "the {city} area"
LOCATION_SLOTS: tuple[int, ...] = (0, 0, 1, 0, 1, 0, 1, 0, 3, 1)


@dataclass(frozen=True)
class PromptVariables:
    service: str
    business_type: str
    business_types: str
    action: str


def _vars(service: str, business_type: str, action: str, business_types: str) -> PromptVariables:
    return PromptVariables(service=service, business_type=business_type, business_types=business_types, action=action)


# industry → {phrasing key → variables}
INDUSTRY_VARIABLES: dict[str, dict[str, PromptVariables]] = {
    "Home Renovation/Remodeling": {
        "us": _vars("kitchen renovation", "contractor", "remodel my kitchen", "contractors"),
        "sg": _vars("kitchen renovation", "contractor", "renovate my kitchen", "contractors"),
    },
    "Photography (Wedding, Event, Portrait)": {
        "us": _vars("wedding photography", "photographer", "find a wedding photographer", "photographers"),
        "sg": _vars("wedding photography", "photographer", "find a wedding photographer", "photographers"),
    },
    "Real Estate Agent (US) / Property Agent (SG)": {
        "us": _vars("real estate", "agent", "find a real estate agent", "agents"),
        "sg": _vars("property", "agent", "find a property agent", "agents"),
    },
    "Plumbing Services": {
        "us": _vars("plumbing", "plumber", "fix a plumbing issue", "plumbers"),
        "sg": _vars("plumbing", "plumber", "fix a plumbing issue", "plumbers"),
    },
    "Consulting (Business, Marketing, IT)": {
        "us": _vars("business consulting", "consultant", "hire a business consultant", "consultants"),
        "sg": _vars("business consulting", "consultant", "hire a business consultant", "consultants"),
    },
    "Web Design/Development": {
        "us": _vars("web design", "web designer", "build a website", "web designers"),
        "sg": _vars("web design", "web designer", "build a website", "web designers"),
    },
    "HVAC Services (US) / Air Conditioning Services (SG)": {
        "us": _vars("HVAC", "HVAC contractor", "repair my HVAC system", "HVAC contractors"),
        "sg": _vars("aircon servicing", "aircon technician", "service my air conditioning", "aircon technicians"),
    },
    "Landscaping/Lawn Care": {
        "us": _vars("landscaping", "landscaper", "landscape my yard", "landscapers"),
        "sg": _vars("landscaping", "landscaper", "landscape my garden", "landscapers"),
    },
}

INDUSTRIES: tuple[str, ...] = tuple(INDUSTRY_VARIABLES)


def city_location_variants(location: str) -> list[str]:
    """Variants for a "City, Region" location.

    >>> city_location_variants("Los Angeles, CA")
    ['Los Angeles', 'LA', 'Los Angeles, CA', 'the Los Angeles area']
    """
    parts = [p.strip() for p in location.split(",")]
    city = parts[0] or location

    words = city.split(" ")
    if len(words) > 1:
        abbreviation = "".join(w[0] for w in words if w).upper()
    else:
        abbreviation = city[:2].upper()

    return [city, abbreviation, location, f"the {city} area"]


def singapore_location_variants(location: str) -> list[str]:
    return ["Singapore"]


@dataclass(frozen=True)
class CountryStrategy:
    phrasing: str  # key into INDUSTRY_VARIABLES[industry]
    location_variants: Callable[[str], list[str]]


COUNTRY_STRATEGIES: dict[str, CountryStrategy] = {
    "United States": CountryStrategy(phrasing="us", location_variants=city_location_variants),
    "Singapore": CountryStrategy(phrasing="sg", location_variants=singapore_location_variants),
}

COUNTRIES: tuple[str, ...] = tuple(COUNTRY_STRATEGIES)


def generate_prompts(industry: str, country: str, location: str) -> list[str]:
    """Return the 10 tracking prompts for a business profile.

    Returns an empty list for an unmapped industry or an unsupported country;
    callers must treat that as a configuration error.
    """
    industry_vars = INDUSTRY_VARIABLES.get(industry)
    if industry_vars is None:
        logger.warning("Unknown industry: %s", industry)
        return []

    strategy = COUNTRY_STRATEGIES.get(country)
    if strategy is None:
        logger.warning("Unsupported country: %s", country)
        return []

    variables = industry_vars[strategy.phrasing]
    variants = strategy.location_variants(location)

    prompts: list[str] = []
    for template, slot in zip(PROMPT_TEMPLATES, LOCATION_SLOTS):
        location_text = variants[slot] if slot < len(variants) else variants[0]
        prompts.append(
            template.format(
                service=variables.service,
                business_type=variables.business_type,
                business_types=variables.business_types,
                action=variables.action,
                location=location_text,
            )
        )
    return prompts
