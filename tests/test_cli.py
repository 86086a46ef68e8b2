"""Tests for the command line interface."""

import json
from pathlib import Path

from typer.testing import CliRunner

from importsniff import __version__
from importsniff.cli import EXIT_FINDINGS, EXIT_OK, EXIT_USAGE_ERROR, app

runner = CliRunner()


def make_project(root: Path, source: str, dependencies: tuple[str, ...] = ()) -> Path:
    (root / "package.json").write_text(
        json.dumps({"dependencies": {name: "1.0.0" for name in dependencies}})
    )
    src = root / "src"
    src.mkdir(exist_ok=True)
    (src / "app.ts").write_text(source)
    return root


class TestExitCodes:
    """Tests for exit statuses."""

    def test_clean_project(self, tmp_path: Path):
        make_project(tmp_path, "import { join } from 'path';\njoin('a');\n")

        result = runner.invoke(app, [str(tmp_path)])

        assert result.exit_code == EXIT_OK
        assert "No unused or broken imports found" in result.stdout

    def test_findings(self, tmp_path: Path):
        make_project(tmp_path, "import { unused } from './missing';\n")

        result = runner.invoke(app, [str(tmp_path)])

        assert result.exit_code == EXIT_FINDINGS
        assert "./missing" in result.stdout
        assert "Import Summary" in result.stdout

    def test_not_a_directory(self, tmp_path: Path):
        result = runner.invoke(app, [str(tmp_path / "nope")])

        assert result.exit_code == EXIT_USAGE_ERROR

    def test_invalid_config(self, tmp_path: Path):
        make_project(tmp_path, "")
        (tmp_path / "sniff.toml").write_text("[imports\n")

        result = runner.invoke(app, [str(tmp_path)])

        assert result.exit_code == EXIT_USAGE_ERROR

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == EXIT_OK
        assert __version__ in result.stdout


class TestJsonOutput:
    """Tests for --json and --output."""

    def test_json_to_stdout(self, tmp_path: Path):
        make_project(tmp_path, "import axios from 'axios';\naxios.get('/');\n")

        result = runner.invoke(app, [str(tmp_path), "--json"])

        assert result.exit_code == EXIT_FINDINGS
        envelope = json.loads(result.stdout)
        assert envelope["command"] == "imports"
        (finding,) = envelope["data"]["findings"]
        assert finding["classification"] == "module_not_installed"
        assert finding["hint"] == "Run: npm install axios"

    def test_output_file(self, tmp_path: Path):
        make_project(tmp_path, "import React from 'react';\n", dependencies=("react",))
        (tmp_path / "sniff.toml").write_text("[imports]\nexcluded_patterns = []\n")
        output = tmp_path / "report.json"

        result = runner.invoke(app, [str(tmp_path), "-q", "-o", str(output)])

        assert result.exit_code == EXIT_FINDINGS
        data = json.loads(output.read_text())
        assert data["summary"]["unused_imports"] == 1
        assert data["summary"]["potential_savings"] == "~1 lines of code"

    def test_scan_excludes_from_config(self, tmp_path: Path):
        """[scan] exclude keeps matching files out of the report."""
        make_project(tmp_path, "import { join } from 'path';\njoin('a');\n")
        fixtures = tmp_path / "fixtures"
        fixtures.mkdir()
        (fixtures / "broken.ts").write_text("import x from './nowhere';\n")
        (tmp_path / "sniff.toml").write_text("[scan]\nexclude = ['fixtures/']\n")

        result = runner.invoke(app, [str(tmp_path), "--json"])

        assert result.exit_code == EXIT_OK
        assert json.loads(result.stdout)["summary"]["files_scanned"] == 1

    def test_include_ignored(self, tmp_path: Path):
        """--include-ignored brings back files listed in .gitignore."""
        make_project(tmp_path, "")
        generated = tmp_path / "generated"
        generated.mkdir()
        (generated / "api.ts").write_text("import x from './nowhere';\n")
        (tmp_path / ".gitignore").write_text("generated/\n")

        ignored = runner.invoke(app, [str(tmp_path), "--json"])
        included = runner.invoke(app, [str(tmp_path), "--json", "--include-ignored"])

        assert ignored.exit_code == EXIT_OK
        assert included.exit_code == EXIT_FINDINGS
