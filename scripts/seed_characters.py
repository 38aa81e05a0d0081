"""
Seed the character suggestion table of a library database.

Usage:
    python scripts/seed_characters.py --database-url sqlite:///stories.db
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from tqdm.auto import tqdm

# Ensure project root is on the Python path.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from storytime.library import DEFAULT_CHARACTER_SUGGESTIONS, SqlLibraryStore  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the library schema and seed character suggestions.")
    parser.add_argument(
        "--database-url",
        required=True,
        help="SQLAlchemy URL of the library database.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    store = SqlLibraryStore(args.database_url)
    try:
        store.create_schema()
        added = store.seed_character_suggestions(DEFAULT_CHARACTER_SUGGESTIONS)
    finally:
        store.close()

    if added:
        tqdm.write(f"Seeded {added} character suggestions.")
    else:
        tqdm.write("Character suggestions already present; nothing seeded.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
