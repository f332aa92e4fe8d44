"""Unit tests for render configuration."""

import pytest
from pydantic import ValidationError

from tabfmt.config import RenderOptions, TableConfig, config


def test_config_singleton():
    """Test config is a singleton."""
    assert TableConfig() is TableConfig()
    assert TableConfig() is config


def test_config_render_defaults():
    """Test packaged render defaults."""
    assert config.missing_marker == ""
    assert config.error_marker == "ERR"
    assert config.max_workers == 1
    assert config.duplicates == "error"
    assert config.combine_missing == "partial"
    assert config.require_default_rule is True


def test_config_layout_defaults():
    """Test row, footnote and big-N defaults."""
    assert config.indent == "  "
    assert config.label_placement == "indented"
    assert config.mark_style == "numeric"
    assert config.mark_symbols[:3] == ["*", "†", "‡"]
    assert config.big_n_pattern == "\nN = xx"


def test_config_get_nested():
    """Test nested key access."""
    assert config.get("render", "error_marker") == "ERR"
    assert config.get("footnotes", "mark_style") == "numeric"
    assert config.get("nonexistent", "key", default="default") == "default"


class TestRenderOptions:
    """Tests for RenderOptions."""

    def test_defaults_from_config(self) -> None:
        options = RenderOptions()
        assert options.error_marker == config.error_marker
        assert options.label_placement == config.label_placement
        assert options.mark_symbols == tuple(config.mark_symbols)

    def test_override(self) -> None:
        options = RenderOptions(missing_marker="NA", max_workers=4, duplicates="last")
        assert options.missing_marker == "NA"
        assert options.max_workers == 4
        assert options.duplicates == "last"

    @pytest.mark.parametrize(
        "field,value",
        [("max_workers", 0), ("duplicates", "first"), ("mark_style", "roman")],
    )
    def test_invalid_values_rejected(self, field: str, value: object) -> None:
        with pytest.raises(ValidationError):
            RenderOptions(**{field: value})
