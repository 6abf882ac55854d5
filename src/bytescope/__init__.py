"""
bytescope

EVM 字节码分析与多合约比较引擎
"""

from bytescope.contract import (
    ContractAnalysis,
    ContractAnalyzer,
    ContractComparator,
    ContractComparison,
)

__version__ = "0.1.0"

__all__ = [
    "ContractAnalysis",
    "ContractAnalyzer",
    "ContractComparator",
    "ContractComparison",
    "__version__",
]
