"""
Render saved bedtime stories into printable PDFs.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Any, Optional
from xml.sax.saxutils import escape

import requests
from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT
from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import inch, mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph

from storytime.curriculum import resolve_curriculum_profile
from storytime.library import Story

logger = logging.getLogger(__name__)

PAGE_SIZES = {
    "a4": A4,
    "letter": LETTER,
    "square": (8 * inch, 8 * inch),
}

FOOTER_LABEL = "Bedtime Stories"
MORAL_HEADING = "Tonight's Lesson:"


@dataclass(frozen=True)
class PageLayoutConfig:
    text_color: colors.Color
    detail_color: colors.Color
    accent_color: colors.Color
    footer_color: colors.Color


DEFAULT_LAYOUT = PageLayoutConfig(
    text_color=colors.HexColor("#2F2A40"),
    detail_color=colors.HexColor("#4B506D"),
    accent_color=colors.HexColor("#6C4FD3"),
    footer_color=colors.HexColor("#8A8FA8"),
)


class _NumberedCanvas(canvas.Canvas):
    """
    Canvas that defers page output so every footer can say "Page i of n".
    """

    def __init__(self, *args: Any, footer_text: str = "", footer_color: colors.Color = colors.grey,
                 margin: float = 20 * mm, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._saved_page_states: list[dict[str, Any]] = []
        self._footer_text = footer_text
        self._footer_color = footer_color
        self._margin = margin

    def showPage(self) -> None:  # noqa: N802 - reportlab API
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int) -> None:
        width, _ = self._pagesize
        self.saveState()
        self.setFont("Helvetica", 8)
        self.setFillColor(self._footer_color)
        self.drawString(self._margin, 10 * mm / 1.5, self._footer_text)
        self.drawRightString(width - self._margin, 10 * mm / 1.5, f"Page {self._pageNumber} of {total}")
        self.restoreState()


class StoryPDFBuilder:
    """
    Render a library story as a simple flowing document.

    Layout: title, a details line (age, length, curriculum stage), the illustration
    when it can be fetched, the story paragraphs, then the moral. Before each block
    is drawn its height is measured against the space left on the current page; a
    block that does not fit starts a new page.
    """

    def __init__(
        self,
        *,
        page_size: tuple[float, float] = PAGE_SIZES["a4"],
        margin_mm: float = 20.0,
        layout: PageLayoutConfig = DEFAULT_LAYOUT,
        request_timeout: float = 30.0,
        image_width_mm: float = 150.0,
    ) -> None:
        self.page_size = page_size
        self.margin = margin_mm * mm
        self.layout = layout
        self.request_timeout = request_timeout
        self.image_width = image_width_mm * mm

        self.title_style = ParagraphStyle(
            name="StoryTitle",
            fontName="Helvetica-Bold",
            fontSize=20,
            leading=24,
            alignment=TA_LEFT,
            textColor=self.layout.text_color,
        )
        self.detail_style = ParagraphStyle(
            name="StoryDetails",
            fontName="Helvetica",
            fontSize=10,
            leading=13,
            textColor=self.layout.detail_color,
        )
        self.body_style = ParagraphStyle(
            name="Body",
            fontName="Helvetica",
            fontSize=12,
            leading=17,
            textColor=self.layout.text_color,
        )
        self.moral_heading_style = ParagraphStyle(
            name="MoralHeading",
            fontName="Helvetica-Bold",
            fontSize=14,
            leading=18,
            textColor=self.layout.accent_color,
        )
        self.moral_style = ParagraphStyle(
            name="Moral",
            fontName="Helvetica-Oblique",
            fontSize=11,
            leading=15,
            textColor=self.layout.text_color,
        )

    def build(self, story: Story, output_path: Path | str) -> Path:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_bytes(self.render(story))
        return output_file

    def render(self, story: Story) -> bytes:
        buffer = BytesIO()
        pdf = _NumberedCanvas(
            buffer,
            pagesize=self.page_size,
            footer_text=self._footer_text(story),
            footer_color=self.layout.footer_color,
            margin=self.margin,
        )
        pdf.setTitle(story.title)

        width, height = self.page_size
        content_width = width - 2 * self.margin
        cursor = _PageCursor(pdf, top=height - self.margin, bottom=self.margin + 10 * mm)

        cursor.place(self._paragraph(story.title, self.title_style), content_width, self.margin, space_after=10)
        cursor.place(
            self._paragraph(self._details_line(story), self.detail_style),
            content_width,
            self.margin,
            space_after=16,
        )

        image = self._fetch_image(story.illustration_url) if story.illustration_url else None
        if image is not None:
            self._place_image(cursor, image, content_width)

        for block in story.paragraphs:
            cursor.place(self._paragraph(block, self.body_style), content_width, self.margin, space_after=8)

        if story.moral_theme:
            cursor.place_group(
                [
                    self._paragraph(MORAL_HEADING, self.moral_heading_style),
                    self._paragraph(story.moral_theme, self.moral_style),
                ],
                content_width,
                self.margin,
                space_before=12,
                gap=6,
            )

        pdf.showPage()
        pdf.save()
        return buffer.getvalue()

    # ------------------------------------------------------------------ helpers

    @staticmethod
    def _paragraph(text: str, style: ParagraphStyle) -> Paragraph:
        return Paragraph(escape(text).replace("\n", "<br/>"), style)

    @staticmethod
    def _details_line(story: Story) -> str:
        profile = resolve_curriculum_profile(story.age)
        minutes = story.story_length.removesuffix("min")
        return (
            f"Age: {story.age} years • {minutes} minutes • {story.curriculum_stage}"
            f" • {profile.reading_level}"
        )

    @staticmethod
    def _footer_text(story: Story) -> str:
        return f"{FOOTER_LABEL} - Created {story.created_at.strftime('%d/%m/%Y')}"

    def _place_image(self, cursor: "_PageCursor", image: ImageReader, content_width: float) -> None:
        img_width, img_height = image.getSize()
        draw_width = min(self.image_width, content_width)
        draw_height = img_height * draw_width / img_width
        max_height = cursor.page_height
        if draw_height > max_height:
            draw_width *= max_height / draw_height
            draw_height = max_height

        cursor.ensure(draw_height)
        x = self.margin + (content_width - draw_width) / 2
        cursor.canvas.drawImage(
            image,
            x,
            cursor.y - draw_height,
            draw_width,
            draw_height,
            preserveAspectRatio=True,
            mask="auto",
        )
        cursor.advance(draw_height + 20)

    def _fetch_image(self, url: str) -> Optional[ImageReader]:
        if url.startswith("data:"):
            try:
                _, encoded = url.split(",", 1)
                payload = base64.b64decode(encoded)
            except (ValueError, binascii.Error):
                logger.warning("Skipping illustration with malformed data URI.")
                return None
        else:
            try:
                response = requests.get(url, timeout=self.request_timeout)
                response.raise_for_status()
            except requests.RequestException:
                logger.warning("Could not download illustration %s; exporting without it.", url)
                return None
            payload = response.content

        try:
            return ImageReader(BytesIO(payload))
        except (OSError, ValueError):
            logger.warning("Illustration %s is not a readable image; exporting without it.", url[:80])
            return None


class _PageCursor:
    """Tracks the vertical write position and starts new pages as blocks require."""

    def __init__(self, pdf: canvas.Canvas, *, top: float, bottom: float) -> None:
        self.canvas = pdf
        self.top = top
        self.bottom = bottom
        self.y = top

    @property
    def page_height(self) -> float:
        return self.top - self.bottom

    def ensure(self, block_height: float) -> None:
        if self.y - block_height < self.bottom and self.y < self.top:
            self.canvas.showPage()
            self.y = self.top

    def advance(self, amount: float) -> None:
        self.y -= amount

    def place(self, paragraph: Paragraph, width: float, x: float, *, space_after: float = 0) -> None:
        _, block_height = paragraph.wrap(width, self.page_height)
        if block_height > self.page_height:
            self._place_split(paragraph, width, x, space_after=space_after)
            return

        self.ensure(block_height)
        paragraph.drawOn(self.canvas, x, self.y - block_height)
        self.advance(block_height + space_after)

    def place_group(
        self,
        paragraphs: list[Paragraph],
        width: float,
        x: float,
        *,
        space_before: float = 0,
        gap: float = 0,
    ) -> None:
        heights = [paragraph.wrap(width, self.page_height)[1] for paragraph in paragraphs]
        total = space_before + sum(heights) + gap * (len(paragraphs) - 1)
        if total > self.page_height:
            for paragraph in paragraphs:
                self.place(paragraph, width, x, space_after=gap)
            return

        self.ensure(total)
        self.advance(space_before)
        for paragraph, block_height in zip(paragraphs, heights):
            paragraph.drawOn(self.canvas, x, self.y - block_height)
            self.advance(block_height + gap)

    def _place_split(self, paragraph: Paragraph, width: float, x: float, *, space_after: float) -> None:
        # A single paragraph taller than a page is split across pages.
        remaining = [paragraph]
        while remaining:
            current = remaining.pop(0)
            _, block_height = current.wrap(width, self.y - self.bottom)
            if block_height <= self.y - self.bottom:
                current.drawOn(self.canvas, x, self.y - block_height)
                self.advance(block_height + space_after)
                continue

            parts = current.split(width, self.y - self.bottom)
            if len(parts) < 2:
                self.canvas.showPage()
                self.y = self.top
                remaining.insert(0, current)
                continue

            head, *tail = parts
            _, head_height = head.wrap(width, self.y - self.bottom)
            head.drawOn(self.canvas, x, self.y - head_height)
            self.canvas.showPage()
            self.y = self.top
            remaining = list(tail) + remaining
