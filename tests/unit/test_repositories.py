from __future__ import annotations

from recipe_keeper.domain.models import ExtractionModule, FeedbackType


async def test_daily_counter_upsert_increments(limit_repo) -> None:
    assert await limit_repo.get_count("user-1", "2026-03-01") == 0
    assert await limit_repo.increment("user-1", "2026-03-01") == 1
    assert await limit_repo.increment("user-1", "2026-03-01") == 2
    assert await limit_repo.get_count("user-1", "2026-03-01") == 2
    # Other days and other users have their own counters.
    assert await limit_repo.get_count("user-1", "2026-03-02") == 0
    assert await limit_repo.get_count("user-2", "2026-03-01") == 0


async def test_log_insert_and_read_back(log_repo) -> None:
    log_id = await log_repo.insert_log(
        user_id="user-1",
        module=ExtractionModule.TEXT,
        input_data="Jajecznica",
        extraction_result={"name": "Jajecznica"},
        error_message=None,
        tokens_used=None,
        generation_duration=1234,
    )

    log = await log_repo.get_log(log_id)
    assert log is not None
    assert log.user_id == "user-1"
    assert log.module == "text"
    assert log.extraction_result == {"name": "Jajecznica"}
    assert log.tokens_used is None
    assert log.generation_duration == 1234
    assert await log_repo.get_log("missing") is None


async def test_feedback_is_stored_separately(log_repo) -> None:
    log_id = await log_repo.insert_log(
        user_id="user-1",
        module=ExtractionModule.URL,
        input_data="https://aniagotuje.pl/x",
        extraction_result=None,
        error_message="boom",
        tokens_used=None,
        generation_duration=None,
    )
    feedback_id = await log_repo.insert_feedback(log_id=log_id, user_id="user-1", feedback=FeedbackType.NEGATIVE)

    assert feedback_id
    log = await log_repo.get_log(log_id)
    assert log.error_message == "boom"
