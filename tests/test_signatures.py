"""Tests for the function signature dictionary."""

import re

import pytest

from bytescope.contract.contract_model import SignatureCategory
from bytescope.parser.signatures import (
    DICTIONARY_ORDER,
    SIGNATURE_DICTIONARY,
    compute_selector,
    get_signature,
    get_signature_name,
    signatures_by_category,
)


class TestComputeSelector:

    @pytest.mark.parametrize("signature,selector", [
        ("transfer(address,uint256)", "0xa9059cbb"),
        ("balanceOf(address)", "0x70a08231"),
        ("approve(address,uint256)", "0x095ea7b3"),
        ("implementation()", "0x5c60da1b"),
        ("proxiableUUID()", "0x52d1902d"),
        ("supportsInterface(bytes4)", "0x01ffc9a7"),
    ])
    def test_known_selectors(self, signature, selector):
        assert compute_selector(signature) == selector

    def test_every_entry_matches_keccak(self):
        mismatched = [
            (selector, entry.name)
            for selector, entry in SIGNATURE_DICTIONARY.items()
            if compute_selector(entry.name) != selector
        ]
        assert mismatched == []

    def test_reentrancy_guard_selector(self):
        assert get_signature("0x129ea136").name == "nonReentrant()"
        assert get_signature("0x6ef8d66d") is None


class TestDictionary:

    def test_selectors_are_canonical(self):
        for selector, entry in SIGNATURE_DICTIONARY.items():
            assert re.fullmatch(r"0x[0-9a-f]{8}", selector)
            assert entry.selector == selector

    def test_dictionary_is_read_only(self):
        with pytest.raises(TypeError):
            SIGNATURE_DICTIONARY["0xdeadbeef"] = None

    def test_first_registration_wins(self):
        assert get_signature("0x70a08231").category == SignatureCategory.ERC20
        assert get_signature("0x23b872dd").category == SignatureCategory.ERC20
        assert get_signature("0x01ffc9a7").category == SignatureCategory.ERC721
        assert get_signature("0xa22cb465").category == SignatureCategory.ERC721

    def test_order_follows_registration(self):
        assert DICTIONARY_ORDER["0x70a08231"] == 0
        assert DICTIONARY_ORDER["0x70a08231"] < DICTIONARY_ORDER["0xa9059cbb"]
        assert DICTIONARY_ORDER["0xa9059cbb"] < DICTIONARY_ORDER["0x5c60da1b"]

    def test_standard_metadata(self):
        assert get_signature("0xa9059cbb").standard == "ERC-20"
        assert get_signature("0x5c60da1b").standard is None


class TestLookup:

    def test_case_insensitive(self):
        assert get_signature("0xA9059CBB").name == "transfer(address,uint256)"

    def test_prefix_optional(self):
        assert get_signature("a9059cbb").name == "transfer(address,uint256)"

    def test_unknown_selector(self):
        assert get_signature("0xdeadbeef") is None
        assert get_signature("") is None

    def test_signature_name_falls_back_to_selector(self):
        assert get_signature_name("0xdeadbeef") == "0xdeadbeef"
        assert get_signature_name("0x8da5cb5b") == "owner()"

    def test_signatures_by_category(self):
        proxy_names = [e.name for e in signatures_by_category(SignatureCategory.PROXY)]
        assert "implementation()" in proxy_names
        assert "proxiableUUID()" in proxy_names
        assert all(
            e.category == SignatureCategory.SECURITY
            for e in signatures_by_category(SignatureCategory.SECURITY)
        )
