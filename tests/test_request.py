# tests/test_request.py
"""Tests for story_generation/request.py - story request normalisation."""

from typing import Any

import pytest

from storytime.common import StoryValidationError
from storytime.story_generation import normalize_story_request


def _payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "characters": ["Fox", "Owl", "Bear"],
        "setting": "A misty forest clearing",
        "age": 5,
        "storyLength": "5min",
    }
    payload.update(overrides)
    return payload


class TestCharacters:
    def test_characters_and_setting_are_trimmed(self) -> None:
        request = normalize_story_request(
            _payload(characters=["  Fox ", "Owl", " Bear"], setting="   A misty forest clearing  ")
        )

        assert request.characters == ("Fox", "Owl", "Bear")
        assert request.setting == "A misty forest clearing"

    def test_five_characters_are_accepted(self) -> None:
        request = normalize_story_request(_payload(characters=["A", "B", "C", "D", "E"]))
        assert len(request.characters) == 5

    def test_two_characters_are_rejected(self) -> None:
        with pytest.raises(StoryValidationError):
            normalize_story_request(_payload(characters=["Fox", "Owl"]))

    def test_six_characters_are_rejected(self) -> None:
        with pytest.raises(StoryValidationError):
            normalize_story_request(_payload(characters=["A", "B", "C", "D", "E", "F"]))

    def test_six_entries_with_a_blank_are_rejected(self) -> None:
        with pytest.raises(StoryValidationError, match="At most 5"):
            normalize_story_request(_payload(characters=["A", "B", "C", "D", "E", " "]))

    def test_blank_entries_are_dropped_before_counting(self) -> None:
        with pytest.raises(StoryValidationError):
            normalize_story_request(_payload(characters=["Fox", "  ", "Owl", ""]))

        request = normalize_story_request(_payload(characters=["Fox", "", "Owl", " ", "Bear"]))
        assert request.characters == ("Fox", "Owl", "Bear")

    @pytest.mark.parametrize("characters", ["Fox, Owl, Bear", ["Fox", 3, "Bear"], None])
    def test_non_list_of_strings_is_rejected(self, characters: Any) -> None:
        with pytest.raises(StoryValidationError):
            normalize_story_request(_payload(characters=characters))


class TestSetting:
    def test_ten_character_setting_is_accepted(self) -> None:
        request = normalize_story_request(_payload(setting="abcdefghij"))
        assert request.setting == "abcdefghij"

    def test_nine_character_setting_is_rejected(self) -> None:
        with pytest.raises(StoryValidationError):
            normalize_story_request(_payload(setting="abcdefghi"))

    def test_length_is_measured_after_trimming(self) -> None:
        with pytest.raises(StoryValidationError):
            normalize_story_request(_payload(setting="   abcdefghi   "))


class TestAge:
    @pytest.mark.parametrize("age", [0, 12, "6", 7.0])
    def test_valid_ages(self, age: Any) -> None:
        assert normalize_story_request(_payload(age=age)).age == int(age)

    @pytest.mark.parametrize("age", [-1, 13, 6.5, True, None, "six"])
    def test_invalid_ages(self, age: Any) -> None:
        with pytest.raises(StoryValidationError):
            normalize_story_request(_payload(age=age))


class TestStoryLengthAndMoral:
    @pytest.mark.parametrize("length", ["5min", "10min"])
    def test_known_lengths(self, length: str) -> None:
        assert normalize_story_request(_payload(storyLength=length)).story_length == length

    @pytest.mark.parametrize("length", ["15min", "5", "", None])
    def test_unknown_lengths_are_rejected(self, length: Any) -> None:
        with pytest.raises(StoryValidationError):
            normalize_story_request(_payload(storyLength=length))

    @pytest.mark.parametrize("moral", ["auto", "AUTO", "", "   ", None])
    def test_auto_moral_means_provider_chooses(self, moral: Any) -> None:
        assert normalize_story_request(_payload(moralTheme=moral)).moral_theme is None

    def test_explicit_moral_is_kept(self) -> None:
        request = normalize_story_request(_payload(moralTheme=" kindness "))
        assert request.moral_theme == "kindness"

    def test_snake_case_aliases(self) -> None:
        payload = _payload(story_length="10min", moral_theme="honesty")
        del payload["storyLength"]

        request = normalize_story_request(payload)

        assert request.story_length == "10min"
        assert request.moral_theme == "honesty"

    def test_validation_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            normalize_story_request(["not", "a", "mapping"])  # type: ignore[arg-type]
