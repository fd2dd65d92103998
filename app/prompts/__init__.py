"""Search prompt generation from business profiles."""
