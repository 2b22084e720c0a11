from pydantic import BaseModel, Field
from typing import Literal


class SourceConfig(BaseModel):
    entry_candidates: list[str] = Field(
        default_factory=lambda: ["index.html", "index.md", "README.md"]
    )
    extensions: dict[str, Literal["html", "markdown"]] = Field(default_factory=lambda: {
        ".html": "html",
        ".htm": "html",
        ".md": "markdown",
        ".markdown": "markdown",
    })
    ignore_patterns: list[str] = Field(default_factory=lambda: [
        ".git", "node_modules", "dist", "build", "_site", ".venv", "__pycache__"
    ])


class FormatterConfig(BaseModel):
    line_ending: Literal["lf", "crlf"] = "lf"
    max_blank_lines: int = Field(default=1, ge=1)
    quote_style: Literal["double", "single"] = "double"
    list_marker: Literal["-", "*", "+"] = "-"
    command: list[str] | None = None
    command_timeout: int = Field(default=30, gt=0)


class CommandCheckConfig(BaseModel):
    name: str
    run: list[str] = Field(min_length=1)
    timeout: int = Field(default=300, gt=0)


class GateConfig(BaseModel):
    checks: list[Literal["entry", "valid", "format", "links"]] = Field(
        default_factory=lambda: ["entry", "valid", "format", "links"]
    )
    mode: Literal["strict", "warn", "off"] = "strict"
    commands: list[CommandCheckConfig] = Field(default_factory=list)


class WatchConfig(BaseModel):
    debounce_seconds: float = Field(default=0.5, ge=0)


class SitegateConfig(BaseModel):
    source: SourceConfig = Field(default_factory=SourceConfig)
    formatter: FormatterConfig = Field(default_factory=FormatterConfig)
    gate: GateConfig = Field(default_factory=GateConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
