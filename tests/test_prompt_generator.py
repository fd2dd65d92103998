"""Tests for template-based prompt generation."""

import logging

import pytest

from app.prompts.generator import (
    COUNTRIES,
    INDUSTRIES,
    LOCATION_SLOTS,
    PROMPT_TEMPLATES,
    city_location_variants,
    generate_prompts,
)


class TestLocationVariants:
    def test_multi_word_city_uses_initials(self):
        assert city_location_variants("Los Angeles, CA") == [
            "Los Angeles",
            "LA",
            "Los Angeles, CA",
            "the Los Angeles area",
        ]

    def test_single_word_city_uses_first_two_chars(self):
        variants = city_location_variants("Austin, TX")
        assert variants[0] == "Austin"
        assert variants[1] == "AU"
        assert variants[2] == "Austin, TX"
        assert variants[3] == "the Austin area"

    def test_location_without_region(self):
        assert city_location_variants("Denver")[:3] == ["Denver", "DE", "Denver"]


class TestGeneratePrompts:
    def test_austin_plumbing(self):
        prompts = generate_prompts("Plumbing Services", "United States", "Austin, TX")
        assert len(prompts) == 10
        assert prompts[0] == "I need plumbing in Austin, who should I hire?"
        assert prompts[2] == "What are the best plumbers in AU?"
        assert prompts[8] == "Looking for a reliable plumber in the Austin area"

    @pytest.mark.parametrize("industry", INDUSTRIES)
    @pytest.mark.parametrize("country", COUNTRIES)
    def test_every_industry_and_country_yields_ten_prompts(self, industry, country):
        location = "Singapore" if country == "Singapore" else "San Francisco, CA"
        prompts = generate_prompts(industry, country, location)
        assert len(prompts) == len(PROMPT_TEMPLATES) == 10
        assert all(p.strip() for p in prompts)
        assert all("{" not in p for p in prompts)
        assert prompts == generate_prompts(industry, country, location)

    def test_singapore_uses_single_variant_everywhere(self):
        prompts = generate_prompts("Plumbing Services", "Singapore", "Tampines, Singapore")
        assert all(p.endswith(("Singapore", "Singapore?")) or "in Singapore," in p for p in prompts)
        assert not any("the Singapore area" in p for p in prompts)

    def test_country_specific_phrasing(self):
        us = generate_prompts("Home Renovation/Remodeling", "United States", "Austin, TX")
        sg = generate_prompts("Home Renovation/Remodeling", "Singapore", "Singapore")
        assert "remodel my kitchen" in us[3]
        assert "renovate my kitchen" in sg[3]

        us_hvac = generate_prompts("HVAC Services (US) / Air Conditioning Services (SG)", "United States", "Austin, TX")
        sg_hvac = generate_prompts("HVAC Services (US) / Air Conditioning Services (SG)", "Singapore", "Singapore")
        assert us_hvac[0] == "I need HVAC in Austin, who should I hire?"
        assert sg_hvac[0] == "I need aircon servicing in Singapore, who should I hire?"

    def test_real_estate_vs_property(self):
        us = generate_prompts("Real Estate Agent (US) / Property Agent (SG)", "United States", "Austin, TX")
        sg = generate_prompts("Real Estate Agent (US) / Property Agent (SG)", "Singapore", "Singapore")
        assert us[0].startswith("I need real estate in")
        assert sg[0].startswith("I need property in")

    def test_unmapped_industry_returns_empty(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert generate_prompts("Dog Grooming", "United States", "Austin, TX") == []
        assert "Unknown industry" in caplog.text

    def test_unsupported_country_returns_empty(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert generate_prompts("Plumbing Services", "Canada", "Toronto, ON") == []
        assert "Unsupported country" in caplog.text

    def test_slot_table_covers_every_template(self):
        assert len(LOCATION_SLOTS) == len(PROMPT_TEMPLATES)
