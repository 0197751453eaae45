from __future__ import annotations

from pathlib import Path

import pytest

from ai_digest import cli


def headings(output: Path) -> list[str]:
    return [line[2:] for line in output.read_text(encoding="utf-8").splitlines() if line.startswith("# ")]


@pytest.mark.end2end
def test_end_to_end_default_run(folder_tree: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(folder_tree)

    exit_code = cli.main([])

    assert exit_code == 0
    assert headings(folder_tree / "codebase.md") == [
        "folder-a/folder-b/b.txt",
        "folder-a/folder-c/c.txt",
        "folder-a/root.txt",
        "outside.txt",
    ]


@pytest.mark.end2end
def test_end_to_end_ignore_nested_folder(
    folder_tree: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(folder_tree)

    exit_code = cli.main(["-i", "folder-a", "--ignore", "folder-a/folder-b", "-o", "digest.md"])

    assert exit_code == 0
    assert headings(folder_tree / "digest.md") == ["folder-a/folder-c/c.txt", "folder-a/root.txt"]
    assert "files=2" in capsys.readouterr().out


@pytest.mark.end2end
def test_end_to_end_glob_input(folder_tree: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(folder_tree)

    exit_code = cli.main(["-i", "**/*.txt", "--ignore", "**/folder-b/**"])

    assert exit_code == 0
    assert headings(folder_tree / "codebase.md") == ["folder-a/folder-c/c.txt", "folder-a/root.txt", "outside.txt"]


@pytest.mark.end2end
def test_end_to_end_include_and_no_default_ignores(folder_tree: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (folder_tree / "folder-a" / "build").mkdir()
    (folder_tree / "folder-a" / "build" / "out.txt").write_text("built", encoding="utf-8")
    monkeypatch.chdir(folder_tree)

    assert cli.main(["--include", "folder-a", "-o", "with.md"]) == 0
    assert cli.main(["--include", "folder-a", "--no-default-ignores", "-o", "without.md"]) == 0

    assert "folder-a/build/out.txt" not in headings(folder_tree / "with.md")
    assert "folder-a/build/out.txt" in headings(folder_tree / "without.md")
    assert "outside.txt" not in headings(folder_tree / "without.md")


@pytest.mark.end2end
def test_end_to_end_dry_run_with_token_breakdown(
    folder_tree: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(folder_tree)

    exit_code = cli.main(["--dry-run", "--show-tokens", "--concurrent"])

    assert exit_code == 0
    assert not (folder_tree / "codebase.md").exists()
    out = capsys.readouterr().out
    assert "Token analysis:" in out
    assert "outside.txt" in out
    assert "Dry run: would write" in out


@pytest.mark.end2end
def test_end_to_end_missing_input_exits_1(
    folder_tree: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(folder_tree)

    exit_code = cli.main(["-i", "does-not-exist"])

    assert exit_code == 1
    assert "Error: Cannot resolve input path 'does-not-exist'" in capsys.readouterr().err
    assert not (folder_tree / "codebase.md").exists()


@pytest.mark.end2end
def test_end_to_end_input_exclude(folder_tree: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(folder_tree)

    exit_code = cli.main(["-i", "folder-a", "--input-exclude", "folder-c"])

    assert exit_code == 0
    assert headings(folder_tree / "codebase.md") == ["folder-a/folder-b/b.txt", "folder-a/root.txt"]
