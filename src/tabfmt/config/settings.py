"""Render configuration loader.

Loads the packaged ``config.yaml`` once and exposes typed accessors for the
rendering defaults. ``RenderOptions`` snapshots those defaults into an
immutable value that a single render call can override.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, cast

import yaml
from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "CombineMissing",
    "DuplicatePolicy",
    "LabelPlacement",
    "MarkStyle",
    "RenderOptions",
    "TableConfig",
    "config",
]

DuplicatePolicy = Literal["error", "last"]
CombineMissing = Literal["partial", "omit", "error"]
LabelPlacement = Literal["indented", "separate-column"]
MarkStyle = Literal["numeric", "symbols"]


class TableConfig:
    """Render configuration singleton."""

    _instance: TableConfig | None = None
    _config: dict[str, Any] | None = None

    def __new__(cls) -> TableConfig:
        """Singleton pattern to ensure config is loaded once."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Load configuration from YAML file."""
        if self._config is None:
            config_path = Path(__file__).parent / "config.yaml"
            with open(config_path, encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}

    def get(self, *keys: str, default: Any = None) -> Any:
        """Get configuration value by nested keys.

        Args:
            *keys: Nested keys to traverse (e.g., "render", "missing_marker")
            default: Default value if key path not found

        Returns:
            Configuration value or default

        Examples:
            >>> config = TableConfig()
            >>> config.get("render", "error_marker")
            'ERR'

        """
        value = self._config
        for key in keys:
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    @property
    def missing_marker(self) -> str:
        """Text rendered for missing values."""
        return cast(str, self.get("render", "missing_marker", default=""))

    @property
    def error_marker(self) -> str:
        """Text rendered in cells whose resolution failed."""
        return cast(str, self.get("render", "error_marker", default="ERR"))

    @property
    def max_workers(self) -> int:
        """Worker threads used for cell resolution."""
        return cast(int, self.get("render", "max_workers", default=1))

    @property
    def duplicates(self) -> DuplicatePolicy:
        """Policy for duplicate data points."""
        return cast(DuplicatePolicy, self.get("render", "duplicates", default="error"))

    @property
    def combine_missing(self) -> CombineMissing:
        """Policy for combine cells with absent parameters."""
        return cast(CombineMissing, self.get("render", "combine_missing", default="partial"))

    @property
    def require_default_rule(self) -> bool:
        """Whether a catch-all body rule is required before rendering."""
        return cast(bool, self.get("render", "require_default_rule", default=True))

    @property
    def indent(self) -> str:
        """Indentation prefix for nested row labels."""
        return cast(str, self.get("rows", "indent", default="  "))

    @property
    def label_placement(self) -> LabelPlacement:
        """Default placement of group and row labels."""
        return cast(LabelPlacement, self.get("rows", "label_placement", default="indented"))

    @property
    def mark_style(self) -> MarkStyle:
        """Footnote mark style."""
        return cast(MarkStyle, self.get("footnotes", "mark_style", default="numeric"))

    @property
    def mark_symbols(self) -> list[str]:
        """Symbol sequence used when mark_style is "symbols"."""
        return cast(
            list[str], self.get("footnotes", "symbols", default=["*", "†", "‡", "§", "¶"])
        )

    @property
    def big_n_pattern(self) -> str:
        """Default pattern for big-N header annotations."""
        return cast(str, self.get("big_n", "pattern", default="\nN = xx"))


# Global singleton instance
config = TableConfig()


class RenderOptions(BaseModel):
    """Per-render options, defaulting to the packaged configuration.

    Attributes:
        missing_marker: Text for missing values without a format-level override.
        error_marker: Text for cells whose resolution failed.
        max_workers: Threads used to resolve cells (1 = sequential).
        duplicates: ``"error"`` aborts on duplicate data points, ``"last"`` keeps
            the last one and records a warning.
        combine_missing: Default policy for combine cells with absent parameters.
        require_default_rule: Refuse to render without a catch-all rule.
        indent: Prefix applied per nesting level to indented labels.
        label_placement: Group label placement when the row-group plan sets none.
        mark_style: Footnote mark style.
        mark_symbols: Symbols used when ``mark_style`` is ``"symbols"``.

    """

    model_config = ConfigDict(frozen=True)

    missing_marker: str = Field(default_factory=lambda: config.missing_marker)
    error_marker: str = Field(default_factory=lambda: config.error_marker)
    max_workers: int = Field(default_factory=lambda: config.max_workers, ge=1)
    duplicates: DuplicatePolicy = Field(default_factory=lambda: config.duplicates)
    combine_missing: CombineMissing = Field(default_factory=lambda: config.combine_missing)
    require_default_rule: bool = Field(default_factory=lambda: config.require_default_rule)
    indent: str = Field(default_factory=lambda: config.indent)
    label_placement: LabelPlacement = Field(default_factory=lambda: config.label_placement)
    mark_style: MarkStyle = Field(default_factory=lambda: config.mark_style)
    mark_symbols: tuple[str, ...] = Field(default_factory=lambda: tuple(config.mark_symbols))
