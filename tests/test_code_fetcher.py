"""Tests for the web3-backed bytecode fetcher."""

from unittest.mock import MagicMock

import pytest
import requests
from eth_utils import to_checksum_address
from web3.exceptions import Web3Exception

from bytescope.contract.errors import BytecodeNotFoundError
from bytescope.fetcher.code_fetcher import TRANSPORT_ERRORS, CodeFetcher, FetchReport

from conftest import ADDRESS_A, ADDRESS_B, ADDRESS_C


@pytest.fixture
def w3():
    return MagicMock()


@pytest.fixture
def fetcher(w3) -> CodeFetcher:
    return CodeFetcher(w3=w3, requests_per_second=1000)


class TestGetCode:

    def test_returns_prefixed_hex(self, fetcher, w3):
        w3.eth.get_code.return_value = bytes.fromhex("6080604052")
        assert fetcher.get_code(ADDRESS_A) == "0x6080604052"

    def test_checksums_address(self, fetcher, w3):
        w3.eth.get_code.return_value = b"\x00"
        fetcher.get_code(ADDRESS_A, "latest")
        w3.eth.get_code.assert_called_once_with(
            to_checksum_address(ADDRESS_A), block_identifier="latest"
        )

    def test_block_number(self, fetcher, w3):
        w3.eth.get_code.return_value = b"\x00"
        fetcher.get_code(ADDRESS_A, 19000000)
        assert w3.eth.get_code.call_args.kwargs["block_identifier"] == 19000000

    def test_no_code(self, fetcher, w3):
        w3.eth.get_code.return_value = b""
        with pytest.raises(BytecodeNotFoundError) as exc_info:
            fetcher.get_code(ADDRESS_A, "latest")
        assert exc_info.value.address == ADDRESS_A

    def test_invalid_address(self, fetcher, w3):
        with pytest.raises(ValueError):
            fetcher.get_code("0x1234")
        w3.eth.get_code.assert_not_called()


class TestFetchMany:

    def test_failures_are_per_address(self, fetcher, w3):
        codes = {
            to_checksum_address(ADDRESS_A): bytes.fromhex("6080"),
            to_checksum_address(ADDRESS_B): b"",
        }

        def get_code(address, block_identifier):
            if address not in codes:
                raise ConnectionError("rpc down")
            return codes[address]

        w3.eth.get_code.side_effect = get_code
        report = fetcher.fetch_many([ADDRESS_A, ADDRESS_B, ADDRESS_C, "not-an-address"])

        assert isinstance(report, FetchReport)
        assert report.bytecodes == {ADDRESS_A: "0x6080"}
        assert report.failed_addresses == [ADDRESS_B, ADDRESS_C, "not-an-address"]
        assert "rpc down" in report.failures[ADDRESS_C]
        assert report.success_count == 1

    def test_empty_request(self, fetcher):
        report = fetcher.fetch_many([])
        assert report.bytecodes == {}
        assert report.failures == {}


class TestNetwork:

    def test_known_chain(self, fetcher, w3):
        w3.eth.chain_id = 1
        assert fetcher.network_name() == "mainnet"

    def test_unknown_chain(self, fetcher, w3):
        w3.eth.chain_id = 31337
        assert fetcher.network_name() == "chain-31337"


class TestConnection:

    def test_explicit_rpc_url(self):
        fetcher = CodeFetcher(rpc_url="http://localhost:8545")
        assert fetcher.rpc_url == "http://localhost:8545"
        assert fetcher.w3 is fetcher.w3

    def test_transport_errors(self):
        assert issubclass(requests.exceptions.ConnectionError, TRANSPORT_ERRORS)
        assert issubclass(requests.exceptions.Timeout, TRANSPORT_ERRORS)
        assert issubclass(Web3Exception, TRANSPORT_ERRORS)
