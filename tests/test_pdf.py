# tests/test_pdf.py
"""Tests for pdf_generation/builder.py - PDF export of saved stories."""

import re
from datetime import datetime, timezone

import pytest
import requests

from storytime.library import Story
from storytime.pdf_generation import StoryPDFBuilder
from storytime.pdf_generation import builder as builder_module

# 1x1 transparent PNG
TINY_PNG = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def _story(paragraphs: int = 3, illustration_url: str | None = None, moral: str | None = "Kindness grows.") -> Story:
    body = "\n\n".join(
        f"Paragraph {index}: the fox, the owl and the bear walked softly under the silver moon, "
        "whispering about the stars and the quiet river that sang them all to sleep."
        for index in range(paragraphs)
    )
    return Story(
        id=1,
        title="The Lantern in the Clearing",
        content=body + "\n\nThe End",
        characters=("Fox", "Owl", "Bear"),
        setting="A misty forest clearing",
        age=6,
        story_length="5min",
        curriculum_stage="Key Stage 1",
        created_at=datetime(2024, 3, 14, 19, 30, tzinfo=timezone.utc),
        moral_theme=moral,
        illustration_url=illustration_url,
    )


def _page_count(pdf: bytes) -> int:
    return len(re.findall(rb"/Type /Page\b", pdf))


class TestRender:
    def test_short_story_is_one_page(self) -> None:
        pdf = StoryPDFBuilder().render(_story())

        assert pdf.startswith(b"%PDF")
        assert _page_count(pdf) == 1

    def test_long_story_flows_onto_more_pages(self) -> None:
        short = StoryPDFBuilder().render(_story(paragraphs=3))
        long = StoryPDFBuilder().render(_story(paragraphs=60))

        assert _page_count(long) > _page_count(short)

    def test_story_without_moral_renders(self) -> None:
        assert StoryPDFBuilder().render(_story(moral=None)).startswith(b"%PDF")

    def test_data_uri_illustration_is_embedded(self) -> None:
        pdf = StoryPDFBuilder().render(_story(illustration_url=f"data:image/png;base64,{TINY_PNG}"))

        assert b"/Subtype /Image" in pdf

    def test_unreachable_illustration_is_skipped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def refuse(*args, **kwargs):
            raise requests.ConnectionError("no route to host")

        monkeypatch.setattr(builder_module.requests, "get", refuse)

        pdf = StoryPDFBuilder().render(_story(illustration_url="https://images.example/lantern.png"))

        assert pdf.startswith(b"%PDF")
        assert b"/Subtype /Image" not in pdf

    def test_build_writes_file(self, tmp_path) -> None:
        output = StoryPDFBuilder().build(_story(), tmp_path / "exports" / "story.pdf")

        assert output.exists()
        assert output.read_bytes().startswith(b"%PDF")


class TestLayoutText:
    def test_footer_uses_uk_date(self) -> None:
        assert StoryPDFBuilder._footer_text(_story()) == "Bedtime Stories - Created 14/03/2024"

    def test_details_line(self) -> None:
        line = StoryPDFBuilder._details_line(_story())

        assert line.startswith("Age: 6 years")
        assert "5 minutes" in line
        assert "Key Stage 1" in line
