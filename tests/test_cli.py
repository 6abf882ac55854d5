"""Tests for the bytescope command line."""

import json

import pytest

from bytescope import cli
from bytescope.contract.errors import BytecodeNotFoundError
from bytescope.fetcher.code_fetcher import FetchReport

from conftest import ADDRESS_A, ADDRESS_B, ADDRESS_C, ADDRESS_D, ERC20_REQUIRED, build_bytecode


class FakeFetcher:
    """Returns canned bytecode instead of calling an RPC node."""

    codes = {}

    def __init__(self, rpc_url=None, **kwargs):
        self.rpc_url = rpc_url

    def network_name(self):
        return "holesky"

    def get_code(self, address, block_identifier=None):
        if address == ADDRESS_D:
            raise ConnectionError("connection refused")
        if address not in self.codes:
            raise BytecodeNotFoundError(address)
        return self.codes[address]

    def fetch_many(self, addresses, block_identifier=None):
        bytecodes = {a: self.codes[a] for a in addresses if a in self.codes}
        failures = {a: "no code" for a in addresses if a not in self.codes}
        return FetchReport(bytecodes=bytecodes, failures=failures)


@pytest.fixture
def fake_fetcher(monkeypatch):
    FakeFetcher.codes = {
        ADDRESS_A: build_bytecode(["0x5c60da1b"]),
        ADDRESS_B: build_bytecode(ERC20_REQUIRED + ["0x8da5cb5b"]),
    }
    monkeypatch.setattr(cli, "CodeFetcher", FakeFetcher)
    return FakeFetcher


class TestInspect:

    def test_erc20(self, erc20_bytecode):
        assert cli.main(["inspect", "--bytecode", erc20_bytecode, "--name", "Token"]) == 0

    def test_empty_bytecode(self):
        assert cli.main(["inspect", "--bytecode", "0x"]) == 1


class TestAnalyze:

    def test_known_contract(self, fake_fetcher):
        assert cli.main(["analyze", ADDRESS_B]) == 0

    def test_no_code(self, fake_fetcher):
        assert cli.main(["analyze", ADDRESS_C]) == 1

    def test_unreachable_rpc(self, fake_fetcher):
        assert cli.main(["analyze", ADDRESS_D]) == 1


class TestCompare:

    def test_not_enough_contracts(self, fake_fetcher):
        assert cli.main(["compare", ADDRESS_A, ADDRESS_C]) == 1

    def test_export(self, fake_fetcher, tmp_path):
        path = tmp_path / "out.json"
        code = cli.main([
            "compare", ADDRESS_A, ADDRESS_B, ADDRESS_C,
            "--export", str(path), "--network", "sepolia",
        ])

        assert code == 0
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["metadata"]["network"] == "sepolia"
        assert data["summary"]["total_contracts"] == 2
        assert data["failed_addresses"] == [ADDRESS_C]

    def test_markdown_export(self, fake_fetcher, tmp_path):
        path = tmp_path / "out.md"
        cli.main([
            "compare", ADDRESS_A, ADDRESS_B,
            "--export", str(path), "--format", "markdown",
        ])
        assert path.read_text(encoding="utf-8").startswith("# Bytecode Analysis Summary Report")

    def test_network_read_from_chain(self, fake_fetcher, tmp_path):
        path = tmp_path / "out.json"
        cli.main(["compare", ADDRESS_A, ADDRESS_B, "--export", str(path)])

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["metadata"]["network"] == "holesky"


class TestBlockIdentifier:

    def test_number_and_tag(self):
        assert cli.block_identifier("19000000") == 19000000
        assert cli.block_identifier("latest") == "latest"
