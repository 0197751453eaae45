from __future__ import annotations

import os
import posixpath
from enum import StrEnum, auto
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field

MAX_OUTPUT_SIZE = 10 * 1024 * 1024
MAX_SINGLE_FILE_SIZE = 5 * 1024 * 1024
BINARY_TOKEN_COUNT = 10
DEFAULT_CONCURRENCY = 4
DEFAULT_OUTPUT = "codebase.md"
DEFAULT_IGNORE_FILE = ".aidigestignore"

WHITESPACE_DEPENDENT_EXTENSIONS = frozenset({
    ".py",
    ".yaml",
    ".yml",
    ".jade",
    ".haml",
    ".slim",
    ".coffee",
    ".pug",
    ".styl",
    ".gd",
})

DEFAULT_IGNORES = [
    # Node.js
    "node_modules",
    "package-lock.json",
    "npm-debug.log",
    "yarn.lock",
    "yarn-error.log",
    "pnpm-lock.yaml",
    "bun.lockb",
    "deno.lock",
    # PHP
    "vendor",
    "composer.lock",
    # Python
    "__pycache__",
    "*.pyc",
    "*.pyo",
    "*.pyd",
    ".Python",
    "pip-log.txt",
    "pip-delete-this-directory.txt",
    ".venv",
    "venv",
    "ENV",
    "env",
    # Godot
    ".godot",
    "*.import",
    # Ruby
    "Gemfile.lock",
    ".bundle",
    # Java, Gradle, Maven
    "target",
    "*.class",
    ".gradle",
    "build",
    "pom.xml.tag",
    "pom.xml.releaseBackup",
    "pom.xml.versionsBackup",
    "pom.xml.next",
    # .NET
    "bin",
    "obj",
    "*.suo",
    "*.user",
    # Go, Rust
    "go.sum",
    "Cargo.lock",
    # VCS and OS metadata
    ".git",
    ".svn",
    ".hg",
    ".DS_Store",
    "Thumbs.db",
    # Environment files
    ".env",
    ".env.local",
    ".env.development.local",
    ".env.test.local",
    ".env.production.local",
    "*.env",
    "*.env.*",
    # Framework caches and build output
    ".svelte-kit",
    ".next",
    ".nuxt",
    ".vuepress",
    ".cache",
    "dist",
    "tmp",
    ".turbo",
    ".vercel",
    ".netlify",
    # Our own output
    DEFAULT_OUTPUT,
    "LICENSE",
]


class FileType(StrEnum):
    """Human readable label of a non-text file, derived from its extension."""

    IMAGE = "Image"
    SVG = "SVG Image"
    WEBASSEMBLY = "WebAssembly"
    PDF = "PDF"
    WORD = "Word Document"
    EXCEL = "Excel Spreadsheet"
    POWERPOINT = "PowerPoint Presentation"
    ARCHIVE = "Compressed Archive"
    EXECUTABLE = "Executable"
    DLL = "Dynamic-link Library"
    SHARED_OBJECT = "Shared Object"
    DYNAMIC_LIBRARY = "Dynamic Library"
    BINARY = "Binary"


EXT2TYPE: dict[str, FileType] = {
    ".7z": FileType.ARCHIVE,
    ".bmp": FileType.IMAGE,
    ".dll": FileType.DLL,
    ".doc": FileType.WORD,
    ".docx": FileType.WORD,
    ".dylib": FileType.DYNAMIC_LIBRARY,
    ".exe": FileType.EXECUTABLE,
    ".gif": FileType.IMAGE,
    ".jpeg": FileType.IMAGE,
    ".jpg": FileType.IMAGE,
    ".pdf": FileType.PDF,
    ".png": FileType.IMAGE,
    ".ppt": FileType.POWERPOINT,
    ".pptx": FileType.POWERPOINT,
    ".rar": FileType.ARCHIVE,
    ".so": FileType.SHARED_OBJECT,
    ".svg": FileType.SVG,
    ".wasm": FileType.WEBASSEMBLY,
    ".webp": FileType.IMAGE,
    ".xls": FileType.EXCEL,
    ".xlsx": FileType.EXCEL,
    ".zip": FileType.ARCHIVE,
}


class Verdict(StrEnum):
    """Outcome of the ignore rules for one candidate file."""

    INCLUDED = auto()
    EXCLUDED_DEFAULT = auto()
    EXCLUDED_CUSTOM = auto()


class PatternSource(StrEnum):
    """Where a set of patterns came from, for reporting."""

    DEFAULT = "default"
    IGNORE_FILE = "ignore-file"
    CLI = "cli"
    INCLUDE = "include"


class CandidateFile(BaseModel):
    """A file discovered while resolving the inputs.

    Attributes:
        base_dir: Directory the relative path is anchored to.
        rel_path: Path below `base_dir`, always with `/` separators.
    """

    model_config = ConfigDict(frozen=True)

    base_dir: str = Field(..., description="Base directory of the candidate")
    rel_path: str = Field(..., description="Path relative to base_dir, POSIX separators")

    @computed_field
    @property
    def absolute_path(self) -> str:
        """Normalised absolute path of the file on disk."""
        return os.path.abspath(os.path.join(self.base_dir, self.rel_path))

    @computed_field
    @property
    def extension(self) -> str:
        """Extension of the file name including the leading dot, or empty."""
        return posixpath.splitext(self.rel_path)[1]


class Classification(BaseModel):
    """How a file's content should be represented in the output."""

    model_config = ConfigDict(frozen=True)

    is_text: bool
    treat_as_binary: bool
    file_type: FileType

    @property
    def renders_as_text(self) -> bool:
        return self.is_text and not self.treat_as_binary


class RenderResult(BaseModel):
    """Markdown snippet and metadata produced for one candidate."""

    model_config = ConfigDict(frozen=True)

    snippet: str = ""
    verdict: Verdict
    display_path: str = ""
    is_binary_or_svg: bool = False
    token_count: int = Field(default=0, ge=0)
    failed: bool = Field(default=False, description="An I/O error prevented rendering")

    @property
    def was_included(self) -> bool:
        return self.verdict is Verdict.INCLUDED


class FileTokenInfo(BaseModel):
    """Token share of one included file."""

    model_config = ConfigDict(frozen=True)

    path: str
    token_count: int
    percentage: float


class AggregationSummary(BaseModel):
    """Counts and measurements of one aggregation run."""

    model_config = ConfigDict(frozen=True)

    output_path: Path
    dry_run: bool = False
    total_found: int = 0
    included: int = 0
    excluded_default: int = 0
    excluded_custom: int = 0
    binary_and_svg: int = 0
    failed: int = 0
    size_bytes: int = 0
    token_count: int | None = None
    elapsed_seconds: float = 0.0
    included_files: list[str] = Field(default_factory=list)
    file_tokens: list[FileTokenInfo] = Field(default_factory=list)
