"""Tests for CLI commands.

Python justification: Required for pytest testing framework and Click testing.
"""

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from tabfmt.cli.main import cli

BASE_YAML = """
bindings:
  group: var
  label: label
  column: [arm]
  parameter: param
  value: value
body_plan:
  - format: "xx.x"
  - label: Mean (SD)
    format:
      template: "{mean} ({sd})"
      formats: {mean: "xx.x", sd: "x.xx"}
big_n: {parameter: bigN, format: " (N=xx)"}
"""

STUDY_YAML = """
body_plan:
  - parameter: median
    format: "xx.xx"
footnote_plan:
  - text: Mean of observed values.
    label: Mean (SD)
"""

DATA_CSV = """var,label,arm,param,value
,,Placebo,bigN,86
Age,Mean (SD),Placebo,mean,75.2093
Age,Mean (SD),Placebo,sd,8.59017
Age,Median,Placebo,median,76
,,Active,bigN,84
Age,Mean (SD),Active,mean,75.6667
Age,Mean (SD),Active,sd,7.88614
Age,Median,Active,median,77.5
"""


@pytest.fixture
def files(tmp_path: Path) -> dict[str, Path]:
    paths = {
        "base": tmp_path / "base.yaml",
        "study": tmp_path / "study.yaml",
        "data": tmp_path / "data.csv",
    }
    paths["base"].write_text(BASE_YAML)
    paths["study"].write_text(STUDY_YAML)
    paths["data"].write_text(DATA_CSV)
    return paths


class TestCLIGroup:
    """Tests for main CLI group."""

    def test_help(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "Declarative table formatting" in result.output
        for command in ("validate", "merge", "render"):
            assert command in result.output

    def test_version(self) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestValidateCommand:
    """Tests for 'validate' command."""

    def test_valid_layers(self, files: dict[str, Path]) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["validate", str(files["base"]), str(files["study"])])

        assert result.exit_code == 0
        assert "OK: 2 layer(s), 3 format rule(s), 1 footnote(s)" in result.output

    def test_invalid_spec(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text('body_plan:\n  - format: {cases: [[">1", "x"]]}\n')
        runner = CliRunner()
        result = runner.invoke(cli, ["validate", str(path)])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_missing_catch_all_warns(self, files: dict[str, Path]) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["validate", str(files["study"])])

        assert result.exit_code == 0
        assert "no catch-all" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["validate", str(tmp_path / "absent.yaml")])

        assert result.exit_code != 0


class TestMergeCommand:
    """Tests for 'merge' command."""

    def test_merge_to_stdout(self, files: dict[str, Path]) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["merge", str(files["base"]), str(files["study"])])

        assert result.exit_code == 0
        merged = yaml.safe_load(result.output)
        assert len(merged["body_plan"]) == 3
        assert merged["big_n"]["parameter"] == "bigN"

    def test_merge_to_file(self, files: dict[str, Path], tmp_path: Path) -> None:
        output = tmp_path / "out" / "effective.yaml"
        runner = CliRunner()
        result = runner.invoke(
            cli, ["merge", str(files["base"]), str(files["study"]), "-o", str(output)]
        )

        assert result.exit_code == 0
        assert "Merged specification written to" in result.output
        merged = yaml.safe_load(output.read_text())
        assert len(merged["footnote_plan"]) == 1

    def test_merged_output_validates(self, tmp_path: Path) -> None:
        """Layers repeating a selector merge into a file that loads again."""
        house = tmp_path / "house.yaml"
        house.write_text("body_plan:\n  - format: \"xx\"\n")
        study = tmp_path / "study.yaml"
        study.write_text("body_plan:\n  - format: \"xx.x\"\n")
        effective = tmp_path / "effective.yaml"
        runner = CliRunner()

        merged = runner.invoke(cli, ["merge", str(house), str(study), "-o", str(effective)])
        assert merged.exit_code == 0

        result = runner.invoke(cli, ["validate", str(effective)])
        assert result.exit_code == 0
        assert "OK: 1 layer(s), 2 format rule(s)" in result.output


class TestRenderCommand:
    """Tests for 'render' command."""

    def test_render_text(self, files: dict[str, Path]) -> None:
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["render", str(files["base"]), str(files["study"]), "--data", str(files["data"])],
        )

        assert result.exit_code == 0
        assert "Placebo (N=86)" in result.output
        assert "75.2 (8.59)" in result.output
        assert "77.50" in result.output
        assert "1 Mean of observed values." in result.output

    def test_render_csv(self, files: dict[str, Path]) -> None:
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["render", str(files["base"]), "--data", str(files["data"]), "--format", "csv"],
        )

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == ",Placebo (N=86),Active (N=84)"
        assert "  Median,76.0,77.5" in lines

    def test_render_missing_catch_all(self, files: dict[str, Path]) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["render", str(files["study"]), "--data", str(files["data"])])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_invalid_workers(self, files: dict[str, Path]) -> None:
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["render", str(files["base"]), "--data", str(files["data"]), "--workers", "0"],
        )

        assert result.exit_code == 2
