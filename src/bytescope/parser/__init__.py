"""
函数签名库
"""

from bytescope.parser.signatures import (
    SIGNATURE_DICTIONARY,
    compute_selector,
    get_signature,
    get_signature_name,
    signatures_by_category,
)

__all__ = [
    "SIGNATURE_DICTIONARY",
    "compute_selector",
    "get_signature",
    "get_signature_name",
    "signatures_by_category",
]
