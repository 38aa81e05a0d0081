# tests/test_scripts.py
"""Tests for the command line scripts under scripts/."""

import importlib.util
import sys
from pathlib import Path

import pytest

from storytime.library import DEFAULT_CHARACTER_SUGGESTIONS, SqlLibraryStore

SCRIPTS_DIR = Path(__file__).resolve().parents[1] / "scripts"


def _load_script(name: str):
    spec = importlib.util.spec_from_file_location(f"script_{name}", SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestSeedCharacters:
    def test_seeds_once_and_reports_through_tqdm(self, tmp_path, monkeypatch) -> None:
        script = _load_script("seed_characters")
        database_url = f"sqlite:///{tmp_path / 'stories.db'}"
        messages: list[str] = []
        monkeypatch.setattr(script.tqdm, "write", messages.append)
        monkeypatch.setattr(sys, "argv", ["seed_characters.py", "--database-url", database_url])

        assert script.main() == 0
        assert script.main() == 0

        assert messages == [
            f"Seeded {len(DEFAULT_CHARACTER_SUGGESTIONS)} character suggestions.",
            "Character suggestions already present; nothing seeded.",
        ]
        store = SqlLibraryStore(database_url)
        try:
            assert len(store.get_character_suggestions()) == len(DEFAULT_CHARACTER_SUGGESTIONS)
        finally:
            store.close()

    def test_database_url_is_required(self, monkeypatch) -> None:
        script = _load_script("seed_characters")
        monkeypatch.setattr(sys, "argv", ["seed_characters.py"])

        with pytest.raises(SystemExit):
            script.main()
