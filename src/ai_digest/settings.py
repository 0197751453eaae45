from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ai_digest.config import DEFAULT_IGNORE_FILE, DEFAULT_OUTPUT


class Settings(BaseModel):
    """Options of one aggregation run."""

    model_config = ConfigDict(frozen=True)

    inputs: list[str] = Field(default_factory=list, description="Input files, directories or globs.")
    output: Path = Field(default=Path(DEFAULT_OUTPUT), description="Output Markdown file.")
    ignore_file: Path = Field(default=Path(DEFAULT_IGNORE_FILE), description="Ignore file path.")
    use_default_ignores: bool = Field(default=True, description="Apply the built-in ignore list.")
    remove_whitespace: bool = Field(
        default=False,
        description="Collapse whitespace, except for whitespace-dependent languages.",
    )
    show_output_files: bool = Field(default=False, description="List the included files.")
    show_tokens: bool = Field(default=False, description="Show the per-file token breakdown.")
    ignore_patterns: list[str] = Field(default_factory=list, description="Extra ignore patterns.")
    include_patterns: list[str] = Field(default_factory=list, description="Keep only matching files.")
    input_includes: list[str] = Field(
        default_factory=list,
        description="Patterns a discovered file must match to become a candidate.",
    )
    input_excludes: list[str] = Field(
        default_factory=list,
        description="Patterns dropping discovered files before they become candidates.",
    )
    concurrency: int = Field(default=0, ge=0, description="Render workers, 0 for sequential.")
    dry_run: bool = Field(default=False, description="Do not write the output file.")
    verbose: bool = Field(default=False, description="Emit debug logs.")
    log_file: str = Field(default="", description="Log file path.")

    @field_validator("ignore_patterns", "include_patterns", "input_includes", "input_excludes", mode="after")
    @classmethod
    def _drop_blank_patterns(cls, value: list[str]) -> list[str]:
        return [p.strip() for p in value if p and p.strip()]
