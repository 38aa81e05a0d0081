"""
Render a saved bedtime story into a printable PDF.

Usage:
    python scripts/render_story_pdf.py \
        --story generated_story.yaml \
        --output bedtime_story.pdf

    python scripts/render_story_pdf.py \
        --story-id 3 --database-url sqlite:///stories.db \
        --output bedtime_story.pdf
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure project root is on the Python path.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from storytime import Story, StoryPDFBuilder, create_library_store  # noqa: E402
from storytime.pdf_generation import PAGE_SIZES  # noqa: E402
from storytime.pipeline import load_mapping_file  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert a saved bedtime story into a PDF.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--story",
        help="Path to a story YAML/JSON file (output of generate_story.py).",
    )
    source.add_argument(
        "--story-id",
        type=int,
        help="Id of a story in the library database.",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL of the library, required with --story-id.",
    )
    parser.add_argument(
        "--output",
        required=True,
        help="Destination PDF file path.",
    )
    parser.add_argument(
        "--page-size",
        choices=sorted(PAGE_SIZES.keys()),
        default="a4",
        help="Page size to render (default: a4).",
    )
    parser.add_argument(
        "--margin-mm",
        type=float,
        default=20.0,
        help="Page margin in millimetres (default: 20).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Timeout in seconds for downloading the illustration (default: 30).",
    )
    return parser.parse_args()


def load_story(args: argparse.Namespace) -> Story | None:
    if args.story:
        data = load_mapping_file(Path(args.story))
        return Story.from_dict(data.get("story", data))

    if not args.database_url:
        raise SystemExit("--database-url is required with --story-id")
    store = create_library_store(args.database_url, seed=False)
    try:
        return store.get_story(args.story_id)
    finally:
        store.close()


def main() -> int:
    args = parse_args()

    story = load_story(args)
    if story is None:
        print(f"Story {args.story_id} not found")
        return 1

    builder = StoryPDFBuilder(
        page_size=PAGE_SIZES[args.page_size],
        margin_mm=args.margin_mm,
        request_timeout=args.timeout,
    )
    builder.build(story, args.output)

    print(f"Rendered story PDF to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
