from __future__ import annotations

from pathlib import Path

import pytest

from ai_digest import tokens


class WhitespaceEncoding:
    """Stand-in for a tiktoken encoding: one token per whitespace-separated word."""

    def encode(self, text: str, **_: object) -> list[str]:
        return text.split()


@pytest.fixture(autouse=True)
def offline_tokenizer(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tokens, "get_encoding", lambda model=tokens.TOKEN_MODEL: WhitespaceEncoding())


@pytest.fixture
def folder_tree(tmp_path: Path) -> Path:
    """folder-a/{root.txt, folder-b/b.txt, folder-c/c.txt} plus outside.txt."""
    (tmp_path / "folder-a" / "folder-b").mkdir(parents=True)
    (tmp_path / "folder-a" / "folder-c").mkdir(parents=True)
    (tmp_path / "folder-a" / "root.txt").write_text("Root file in folder-a", encoding="utf-8")
    (tmp_path / "folder-a" / "folder-b" / "b.txt").write_text("File in folder-b", encoding="utf-8")
    (tmp_path / "folder-a" / "folder-c" / "c.txt").write_text("File in folder-c", encoding="utf-8")
    (tmp_path / "outside.txt").write_text("File outside folder-a", encoding="utf-8")
    return tmp_path
