"""Shared bytecode builders for the bytescope test suite."""

from typing import Iterable, Optional

import pytest

from bytescope.contract.contract_analyzer import ContractAnalyzer
from bytescope.contract.contract_model import DetectedPattern
from bytescope.parser.signatures import get_signature


# PUSH1 0x80 PUSH1 0x40 MSTORE PUSH1 0x04 CALLDATASIZE LT PUSH2 0x00ee JUMPI
# PUSH1 0x00 CALLDATALOAD PUSH1 0xe0 SHR
PROLOGUE = "6080604052600436106100ee5760003560e01c"

# JUMPDEST PUSH1 0x00 DUP1 REVERT
TRAILER = "5b600080fd"

IPFS_DIGEST = "ab" * 32

# a2 64 "ipfs" 58 22 <multihash> 64 "solc" 43 <version> 0033
METADATA_TRAILER = "a264697066735822" + "1220" + IPFS_DIGEST + "64736f6c6343" + "0008140033"

ERC20_REQUIRED = [
    "0x70a08231",
    "0xa9059cbb",
    "0x23b872dd",
    "0x095ea7b3",
    "0xdd62ed3e",
    "0x18160ddd",
]
ERC20_OPTIONAL = ["0x06fdde03", "0x95d89b41", "0x313ce567"]

ADDRESS_A = "0x" + "a" * 40
ADDRESS_B = "0x" + "b" * 40
ADDRESS_C = "0x" + "c" * 40
ADDRESS_D = "0x" + "d" * 40


def dispatch_entry(selector: str) -> str:
    """DUP1 PUSH4 <selector> EQ PUSH2 0x0041 JUMPI"""
    return "80" + "63" + selector[2:] + "14" + "61" + "0041" + "57"


def build_bytecode(
    selectors: Iterable[str],
    repeated: Iterable[str] = (),
    extra: str = "",
    metadata: bool = False
) -> str:
    """Solidity-like runtime code with one dispatcher entry per selector.

    Selectors in ``repeated`` are pushed a second time after the dispatcher.
    """
    body = PROLOGUE + "".join(dispatch_entry(s) for s in selectors)
    for selector in repeated:
        # JUMPDEST PUSH4 <selector> POP
        body += "5b" + "63" + selector[2:] + "50"
    body += extra + TRAILER
    if metadata:
        body += METADATA_TRAILER
    return "0x" + body


def make_pattern(selector: str, confidence: float = 0.7) -> DetectedPattern:
    entry = get_signature(selector)
    return DetectedPattern(
        selector=entry.selector,
        name=entry.name,
        category=entry.category,
        confidence=confidence,
        standard=entry.standard,
    )


def analyze(address: str, selectors: Iterable[str], name: Optional[str] = None, **kwargs):
    return ContractAnalyzer().analyze(address, build_bytecode(selectors, **kwargs), name)


@pytest.fixture
def analyzer() -> ContractAnalyzer:
    return ContractAnalyzer()


@pytest.fixture
def erc20_bytecode() -> str:
    return build_bytecode(ERC20_REQUIRED + ERC20_OPTIONAL)
