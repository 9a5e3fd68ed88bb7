"""Server-enforced constants for recipe extraction."""

from __future__ import annotations

# Vocabulary the model's tag suggestions are filtered against.
ALLOWED_TAGS: tuple[str, ...] = (
    "obiad",
    "śniadanie",
    "kolacja",
    "deser",
    "ciasto",
    "zupa",
    "makaron",
    "mięso",
    "ryby",
    "wegetariańskie",
    "wegańskie",
    "latwe",
    "szybkie",
    "trudne",
)

# Hosts accepted by URL extraction (subdomains included).
SUPPORTED_URL_DOMAINS: tuple[str, ...] = ("aniagotuje.pl", "kwestiasmaku.com")

DAILY_EXTRACTION_LIMIT = 100

MAX_TEXT_LENGTH = 10_000
MIN_REDUCED_TEXT_LENGTH = 100

PLACEHOLDER_RECIPE_NAME = "New Recipe"
