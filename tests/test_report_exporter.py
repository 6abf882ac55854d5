"""Tests for JSON, CSV and Markdown export of a comparison."""

import csv
import io
import json
from datetime import datetime

import pytest

from bytescope.contract.comparator import ContractComparator
from bytescope.contract.contract_model import ContractComparison
from bytescope.dashboard.report_exporter import (
    ExportFormat,
    default_filename,
    export_csv,
    export_json,
    export_to_file,
    format_bytes,
    generate_summary_report,
)

from conftest import ADDRESS_A, ADDRESS_B, ADDRESS_C, ERC20_REQUIRED, analyze


@pytest.fixture
def comparison():
    return ContractComparator().compare(
        [
            analyze(ADDRESS_A, ["0x5c60da1b"], "Proxy"),
            analyze(ADDRESS_B, ERC20_REQUIRED + ["0x8da5cb5b"], "Token"),
        ],
        failed_addresses=[ADDRESS_C],
        network="mainnet",
    )


class TestJson:

    def test_structure(self, comparison):
        data = json.loads(export_json(comparison))

        assert data["metadata"]["total_contracts"] == 2
        assert data["metadata"]["analysis_type"] == "multiple"
        assert data["metadata"]["network"] == "mainnet"
        assert data["summary"]["proxy_contracts_count"] == 1
        assert data["summary"]["security_features_found"] == ["Ownable"]
        assert data["failed_addresses"] == [ADDRESS_C]
        assert data["contracts"][1]["size_formatted"].endswith("B")
        assert data["relationships"][0]["type"] == "proxy-implementation"

    def test_metadata_override(self, comparison):
        data = json.loads(export_json(comparison, {"version": "2.0.0"}))
        assert data["metadata"]["version"] == "2.0.0"

    def test_not_comparable(self):
        data = json.loads(export_json(ContractComparison.not_comparable()))
        assert data["status"] == "not_comparable"
        assert data["summary"]["average_size"] == 0.0


class TestCsv:

    def test_sections(self, comparison):
        rows = list(csv.reader(io.StringIO(export_csv(comparison))))
        titles = [r[0] for r in rows if len(r) == 1]

        assert titles == ["Contract Analysis Summary", "Detected Functions", "Contract Similarities"]

    def test_contract_rows(self, comparison):
        rows = list(csv.reader(io.StringIO(export_csv(comparison))))
        token = next(r for r in rows if r[:2] == [ADDRESS_B, "Token"] and len(r) == 11)

        assert token[5] == "7"
        assert token[8] == "Ownable"
        assert token[9] == "False"

    def test_function_rows(self, comparison):
        rows = list(csv.reader(io.StringIO(export_csv(comparison))))
        functions = [r for r in rows if len(r) == 5 and r[2] == "0x5c60da1b"]
        assert functions == [[ADDRESS_A, "Proxy", "0x5c60da1b", "implementation()", "Proxy"]]


class TestMarkdown:

    def test_summary_report(self, comparison):
        report = generate_summary_report(comparison)

        assert report.startswith("# Bytecode Analysis Summary Report")
        assert "### Token" in report
        assert "- Proxy Type: Transparent Proxy (EIP-1967)" in report
        assert "## Detected Relationships" in report
        assert f"- Failed Addresses: {ADDRESS_C}" in report


class TestFiles:

    def test_export_to_file(self, comparison, tmp_path):
        path = tmp_path / "report.json"
        written = export_to_file(comparison, str(path), ExportFormat.JSON)

        assert written == str(path)
        assert json.loads(path.read_text(encoding="utf-8"))["summary"]["total_contracts"] == 2

    def test_export_csv_file(self, comparison, tmp_path):
        path = tmp_path / "report.csv"
        export_to_file(comparison, str(path), ExportFormat.CSV)
        assert path.read_text(encoding="utf-8").startswith("Contract Analysis Summary")

    def test_default_filename(self):
        day = datetime(2024, 1, 31)
        assert default_filename(ExportFormat.JSON, day) == "bytecode-analysis-2024-01-31.json"
        assert default_filename(ExportFormat.MARKDOWN, day) == "bytecode-analysis-2024-01-31.md"

    @pytest.mark.parametrize("size,expected", [
        (512, "512B"),
        (1536, "1.5KB"),
        (3 * 1024 * 1024, "3.0MB"),
    ])
    def test_format_bytes(self, size, expected):
        assert format_bytes(size) == expected
