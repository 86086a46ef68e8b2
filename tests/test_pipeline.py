"""Tests for per-file analysis and report aggregation."""

import json
from pathlib import Path

import pytest

from importsniff.analysis.context import AnalysisContext
from importsniff.analysis.pipeline import (
    analyze_file,
    analyze_files,
    analyze_project,
    classify_severity,
)
from importsniff.config import ImportsSettings
from importsniff.models.resolution import ResolutionStatus
from importsniff.models.results import Severity

NO_EXCLUDES = ImportsSettings(excluded_patterns=())


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def manifest(root: Path, *packages: str) -> None:
    (root / "package.json").write_text(
        json.dumps({"dependencies": {name: "1.0.0" for name in packages}})
    )


def findings_of(report) -> list[tuple[str, str]]:
    return [(f.type, f.classification) for f in report.findings()]


class TestScenarios:
    """End-to-end analysis of small projects."""

    def test_destructured_hook_is_clean(self, tmp_path: Path):
        """A destructured hook call from an installed package yields nothing."""
        manifest(tmp_path, "react")
        app = write(
            tmp_path / "src" / "component.tsx",
            "import { useState } from 'react';\n"
            "function C(){ const [x,setX]=useState(0); return x; }\n",
        )

        report = analyze_project(tmp_path, [app], NO_EXCLUDES)

        assert report.findings() == []
        assert not report.has_findings
        assert report.summary.total_imports == 1
        assert report.summary.severity is Severity.NONE

    def test_missing_file_with_suggestion(self, tmp_path: Path):
        """A renamed module is broken and the new name is suggested."""
        app = write(tmp_path / "src" / "app.ts", "import { x } from './old-thing';\nx();\n")
        write(tmp_path / "src" / "new-thing.ts", "export const x = 1;\n")

        report = analyze_project(tmp_path, [app], NO_EXCLUDES)

        (finding,) = report.findings()
        assert finding.type == "broken_import"
        assert finding.classification == "file_not_found"
        assert [s.candidate for s in finding.suggestions] == ["./new-thing"]
        assert report.summary.severity is Severity.ERROR

    def test_unused_and_broken_reported_independently(self, tmp_path: Path):
        """An import can be both unused and not installed."""
        app = write(tmp_path / "util.js", "import _ from 'lodash';\nexport const y = 1;\n")

        report = analyze_project(tmp_path, [app], NO_EXCLUDES)

        assert findings_of(report) == [
            ("unused_import", "fully_unused"),
            ("broken_import", "module_not_installed"),
        ]
        assert report.summary.unused_imports == 1
        assert report.summary.broken_imports == 1

    def test_default_excludes_without_manifest(self, tmp_path: Path):
        """Without package.json, excluded packages are skipped and others broken."""
        app = write(
            tmp_path / "app.tsx",
            "import axios from 'axios';\n"
            "import React from 'react';\n"
            "axios.get('/');\n"
            "export const A = () => React.createElement('div');\n",
        )

        report = analyze_project(tmp_path, [app])

        (finding,) = report.findings()
        assert finding.specifier == "axios"
        assert finding.hint == "Run: npm install axios"
        react = report.files[0].imports[1]
        assert react.ignored
        assert react.resolution.status is ResolutionStatus.IGNORED

    def test_truncated_import_reports_nothing(self, tmp_path: Path):
        """A broken import statement does not turn the next line into an import."""
        app = write(tmp_path / "app.ts", "import foo\nconst label = 'hello';\nconsole.log(label);\n")

        report = analyze_project(tmp_path, [app], NO_EXCLUDES)

        assert report.findings() == []
        (imp,) = report.files[0].imports
        assert imp.record.malformed
        assert imp.resolution.status is ResolutionStatus.UNRESOLVABLE

    def test_jsx_text_does_not_hide_components(self, tmp_path: Path):
        """Quotes and URLs in element text leave later tags visible."""
        write(tmp_path / "Button.tsx", "export default function Button() { return null; }\n")
        write(tmp_path / "Icon.jsx", "export default function Icon() { return null; }\n")
        app = write(
            tmp_path / "app.jsx",
            "import Button from './Button';\n"
            "import Icon from './Icon';\n"
            "export const A = () => <p>Don't click <Button /> see http://x.io <Icon /></p>;\n",
        )

        report = analyze_project(tmp_path, [app], NO_EXCLUDES)

        assert report.findings() == []

    def test_partially_unused(self, tmp_path: Path):
        """Unused names of a partially used import are listed."""
        write(tmp_path / "ab.ts", "export const a = 1, b = 2;\n")
        app = write(tmp_path / "main.ts", "import { a, b } from './ab';\nconsole.log(a);\n")

        report = analyze_project(tmp_path, [app], NO_EXCLUDES)

        (finding,) = report.findings()
        assert finding.classification == "partially_unused"
        assert finding.bindings == ("b",)
        assert report.summary.unused_bindings == 1
        assert report.summary.estimated_lines_removable == 0


class TestSummary:
    """Tests for report aggregation."""

    def test_removable_lines_count_fully_unused_imports(self, tmp_path: Path):
        """One line per fully unused import."""
        write(tmp_path / "a.ts", "export const a = 1;\n")
        write(tmp_path / "b.ts", "export const b = 1, c = 2;\n")
        app = write(
            tmp_path / "main.ts",
            "import { a } from './a';\n"
            "import { b, c } from './b';\n"
            "import './a';\n",
        )

        report = analyze_project(tmp_path, [app], NO_EXCLUDES)

        assert report.summary.unused_imports == 2
        assert report.summary.unused_bindings == 3
        assert report.summary.estimated_lines_removable == 2
        assert report.summary.potential_savings == "~2 lines of code"
        assert report.summary.severity is Severity.WARNING

    def test_idempotent(self, tmp_path: Path):
        """Two runs over the same tree give the same report."""
        app = write(tmp_path / "app.ts", "import { gone } from './gone';\nimport fs from 'fs';\n")

        first = analyze_project(tmp_path, [app], NO_EXCLUDES)
        second = analyze_project(tmp_path, [app], NO_EXCLUDES)

        assert first == second

    @pytest.mark.parametrize(
        "unused,broken,expected",
        [
            (0, 0, Severity.NONE),
            (3, 0, Severity.WARNING),
            (0, 1, Severity.ERROR),
            (5, 2, Severity.ERROR),
        ],
    )
    def test_classify_severity(self, unused: int, broken: int, expected: Severity):
        assert classify_severity(unused, broken, ImportsSettings()) is expected

    def test_thresholds_raise_tolerance(self):
        """Counts at or below a threshold do not escalate."""
        settings = ImportsSettings(unused_threshold=5, broken_threshold=1)

        assert classify_severity(5, 1, settings) is Severity.NONE
        assert classify_severity(6, 1, settings) is Severity.WARNING


class TestFileErrors:
    """Tests for per-file failures."""

    def test_binary_file(self, tmp_path: Path):
        """A file with NUL bytes becomes an error note."""
        binary = tmp_path / "blob.ts"
        binary.write_bytes(b"\x00\x01\x02import")

        report = analyze_file(binary, AnalysisContext(project_root=tmp_path))

        assert report.imports == ()
        assert report.error.startswith("Unreadable file")

    def test_missing_file(self, tmp_path: Path):
        """A file that vanished becomes an error note."""
        report = analyze_file(tmp_path / "gone.ts", AnalysisContext(project_root=tmp_path))

        assert report.error.startswith("Unreadable file")

    def test_error_does_not_stop_the_run(self, tmp_path: Path):
        """Other files are still analyzed and errors are counted."""
        bad = tmp_path / "bad.ts"
        bad.write_bytes(b"\xff\xfe\x00")
        good = write(tmp_path / "good.ts", "import { unused } from 'fs';\n")

        report = analyze_project(tmp_path, [bad, good], NO_EXCLUDES)

        assert report.summary.files_scanned == 2
        assert report.summary.files_with_errors == 1
        assert report.summary.unused_imports == 1


class TestParallel:
    """Tests for the worker pool."""

    def test_pool_keeps_input_order(self, tmp_path: Path):
        """Reports should follow the input order regardless of completion order."""
        files = [
            write(tmp_path / f"m{i:02d}.ts", f"import {{ v{i} }} from './missing{i}';\n")
            for i in range(12)
        ]
        context = AnalysisContext(project_root=tmp_path)
        done = []

        reports = analyze_files(
            files, context, parallel_threshold=2, max_workers=4, on_file_done=done.append
        )

        assert [r.file for r in reports] == files
        assert sorted(done) == sorted(files)

    def test_pool_matches_sequential(self, tmp_path: Path):
        """Parallel and sequential analysis give identical results."""
        files = [
            write(tmp_path / f"f{i}.ts", f"import x{i} from './f{(i + 1) % 5}';\nx{i}();\n")
            for i in range(5)
        ]
        context = AnalysisContext(project_root=tmp_path)

        sequential = analyze_files(files, context, parallel_threshold=50)
        parallel = analyze_files(files, context, parallel_threshold=0, max_workers=3)

        assert sequential == parallel
