"""
合约字节码分析与比较

模块：
- contract_model: 数据模型
- errors: 异常
- bytecode_analyzer: 选择器提取与操作码扫描
- pattern_classifier: 签名库匹配与置信度
- feature_analyzers: 标准符合度、安全特性、代理类型、复杂度、Gas优化
- contract_analyzer: 单合约分析聚合
- comparator: 多合约比较与家族聚类
"""

from bytescope.contract.contract_model import (
    SignatureCategory,
    SignatureEntry,
    DetectedPattern,
    StandardCompliance,
    ProxyType,
    ComplexityLevel,
    ContractAnalysis,
    SimilarityResult,
    RelationshipType,
    ContractRelationship,
    ComparisonStatus,
    ContractComparison,
)
from bytescope.contract.errors import (
    BytescopeError,
    EmptyBytecodeError,
    BytecodeNotFoundError,
    SelfComparisonError,
    DuplicateContractError,
)
from bytescope.contract.bytecode_analyzer import extract_selectors
from bytescope.contract.pattern_classifier import classify
from bytescope.contract.contract_analyzer import ContractAnalyzer
from bytescope.contract.comparator import ContractComparator, find_families

__all__ = [
    "SignatureCategory",
    "SignatureEntry",
    "DetectedPattern",
    "StandardCompliance",
    "ProxyType",
    "ComplexityLevel",
    "ContractAnalysis",
    "SimilarityResult",
    "RelationshipType",
    "ContractRelationship",
    "ComparisonStatus",
    "ContractComparison",
    "BytescopeError",
    "EmptyBytecodeError",
    "BytecodeNotFoundError",
    "SelfComparisonError",
    "DuplicateContractError",
    "extract_selectors",
    "classify",
    "ContractAnalyzer",
    "ContractComparator",
    "find_families",
]
