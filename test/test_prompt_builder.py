from datetime import datetime, timezone

from generation.prompt_builder import build_prompt, format_now

NOW = datetime(2025, 4, 26, 22, 6, tzinfo=timezone.utc)


def test_format_now():
    assert format_now(NOW) == "Saturday, April 26, 2025 at 10:06 PM UTC"


def test_format_now_morning_hour_has_no_leading_zero():
    assert " at 9:05 AM " in format_now(datetime(2025, 1, 3, 9, 5, tzinfo=timezone.utc))


def test_prompt_contains_labels_goal_and_time():
    goal = "Learn to juggle: three balls by Friday"
    prompt = build_prompt(goal, NOW)

    for label in ("Title:", "Description:", "Start Time:", "Duration:", "Color:"):
        assert label in prompt
    assert f"Here is the user's goal: {goal}" in prompt
    assert "Saturday, April 26, 2025 at 10:06 PM UTC" in prompt
    assert "ISO 8601" in prompt
    assert "blank line" in prompt


def test_prompt_is_deterministic():
    assert build_prompt("x", NOW) == build_prompt("x", NOW)
