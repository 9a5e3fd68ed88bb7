from __future__ import annotations

import pytest

from recipe_keeper.config.settings import RecipeKeeperSettings, get_settings, reset_settings


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("OPENROUTER_MAX_RETRIES", "5")
    monkeypatch.setenv("SCRAPE_TIMEOUT_SECONDS", "12.5")
    reset_settings()

    settings = get_settings()

    assert settings.openrouter_max_retries == 5
    assert settings.scrape_timeout_seconds == 12.5
    assert get_settings() is settings


@pytest.mark.parametrize(
    "field, value",
    [
        ("http_port", 0),
        ("openrouter_timeout_seconds", 0),
        ("openrouter_max_retries", -1),
        ("openrouter_backoff_multiplier", 0.5),
        ("scrape_timeout_seconds", -1),
    ],
)
def test_validate_rejects_out_of_range_values(field: str, value) -> None:
    with pytest.raises(ValueError):
        RecipeKeeperSettings(**{field: value}).validate()
