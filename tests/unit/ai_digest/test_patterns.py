from __future__ import annotations

import pytest

from ai_digest.config import PatternSource
from ai_digest.patterns import compile_patterns, expand_pattern, is_glob


@pytest.mark.unit
@pytest.mark.parametrize("path", ["foo", "foo/bar", "a/foo/b", "a/foo"])
def test_directory_pattern_matches_at_any_depth(path: str) -> None:
    predicate = compile_patterns(["foo"])

    assert predicate.matches(path)


@pytest.mark.unit
@pytest.mark.parametrize("path", ["foobar", "a/foobar/b", "barfoo", "a/b.foo"])
def test_directory_pattern_needs_a_whole_segment(path: str) -> None:
    predicate = compile_patterns(["foo"])

    assert not predicate.matches(path)


@pytest.mark.unit
def test_nested_directory_pattern() -> None:
    predicate = compile_patterns(["folder-a/folder-b"])

    assert predicate.matches("folder-a/folder-b/b.txt")
    assert predicate.matches("project/folder-a/folder-b/b.txt")
    assert not predicate.matches("folder-a/root.txt")
    assert not predicate.matches("folder-a/folder-c/c.txt")


@pytest.mark.unit
def test_file_name_pattern_matches_same_name_anywhere() -> None:
    predicate = compile_patterns(["package-lock.json"])

    assert predicate.matches("package-lock.json")
    assert predicate.matches("web/app/package-lock.json")
    assert not predicate.matches("package-lock.json.bak")
    assert not predicate.matches("my-package-lock.json")


@pytest.mark.unit
def test_extension_glob_matches_in_any_directory() -> None:
    predicate = compile_patterns(["*.css"])

    assert predicate.matches("b.css")
    assert predicate.matches("styles/deep/b.css")
    assert not predicate.matches("b.scss")
    assert not predicate.matches("a.ts")


@pytest.mark.unit
def test_recursive_glob_matches_folder_at_any_depth() -> None:
    predicate = compile_patterns(["**/folder-b/**"])

    assert predicate.matches("folder-a/folder-b/b.txt")
    assert predicate.matches("folder-b/b.txt")
    assert not predicate.matches("folder-a/folder-c/c.txt")


@pytest.mark.unit
def test_star_does_not_cross_directories() -> None:
    predicate = compile_patterns(["src/*.py"])

    assert predicate.matches("src/app.py")
    assert predicate.matches("pkg/src/app.py")
    assert not predicate.matches("src/sub/app.py")


@pytest.mark.unit
def test_backslashes_are_normalised() -> None:
    predicate = compile_patterns(["folder-a\\folder-b"])

    assert predicate.matches("folder-a/folder-b/b.txt")
    assert predicate.matches("folder-a\\folder-b\\b.txt")


@pytest.mark.unit
def test_matching_is_case_sensitive() -> None:
    predicate = compile_patterns(["Build"])

    assert predicate.matches("Build/out.js")
    assert not predicate.matches("build/out.js")


@pytest.mark.unit
def test_empty_predicate_matches_nothing() -> None:
    predicate = compile_patterns(["", "   "], source=PatternSource.INCLUDE)

    assert not predicate
    assert predicate.patterns == ()
    assert not predicate.matches("anything.txt")
    assert predicate.source is PatternSource.INCLUDE


@pytest.mark.unit
def test_expand_pattern_keeps_recursive_globs_as_is() -> None:
    assert expand_pattern("**/*.txt") == ["/**/*.txt"]
    assert expand_pattern("*.txt") == ["/*.txt", "/**/*.txt"]
    assert expand_pattern("dist/") == ["/dist", "/dist/**", "/**/dist/**", "/**/dist"]


@pytest.mark.unit
def test_is_glob() -> None:
    assert is_glob("*.py")
    assert is_glob("file?.txt")
    assert is_glob("[ab].txt")
    assert not is_glob("folder-a/folder-b")
