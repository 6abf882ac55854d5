"""
合约特征分析

基于分类结果和原始字节码的纯函数，每个函数产出合约画像的一个方面：
- 标准符合度（ERC-20 / ERC-721 / ERC-1155）
- 安全特性
- 代理类型
- 复杂度评分
- Gas优化特征
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Set, Tuple
import math

from bytescope.contract.bytecode_analyzer import normalize_bytecode
from bytescope.contract.contract_model import (
    ComplexityLevel,
    DetectedPattern,
    ProxyType,
    SignatureCategory,
    StandardCompliance,
)
from bytescope.parser.signatures import get_signature_name


@dataclass(frozen=True)
class StandardDefinition:
    """标准定义：必需与可选选择器"""
    name: str
    required: Tuple[str, ...]
    optional: Tuple[str, ...] = ()


STANDARD_DEFINITIONS: Tuple[StandardDefinition, ...] = (
    StandardDefinition(
        name="ERC20",
        required=(
            "0x70a08231",  # balanceOf
            "0xa9059cbb",  # transfer
            "0x23b872dd",  # transferFrom
            "0x095ea7b3",  # approve
            "0xdd62ed3e",  # allowance
            "0x18160ddd",  # totalSupply
        ),
        optional=("0x06fdde03", "0x95d89b41", "0x313ce567"),
    ),
    StandardDefinition(
        name="ERC721",
        required=(
            "0x70a08231",  # balanceOf
            "0x6352211e",  # ownerOf
            "0x23b872dd",  # transferFrom
            "0x42842e0e",  # safeTransferFrom
            "0xa22cb465",  # setApprovalForAll
        ),
        optional=("0xc87b56dd", "0x01ffc9a7"),
    ),
    StandardDefinition(
        name="ERC1155",
        required=(
            "0x00fdd58e",  # balanceOf(address,uint256)
            "0x4e1273f4",  # balanceOfBatch
            "0xf242432a",  # safeTransferFrom
            "0x2eb2c2d6",  # safeBatchTransferFrom
            "0xa22cb465",  # setApprovalForAll
        ),
        optional=("0x0e89341c", "0x01ffc9a7"),
    ),
)


# 安全特性规则表：(名称子串, 特性)
SECURITY_RULES: Tuple[Tuple[str, str], ...] = (
    ("owner", "Ownable"),
    ("pause", "Pausable"),
    ("Role", "Access Control"),
    ("nonReentrant", "Reentrancy Guard"),
)

PatternPredicate = Callable[[DetectedPattern], bool]


def _name_contains(fragment: str) -> PatternPredicate:
    return lambda pattern: fragment in pattern.name


# 代理类型规则：按顺序匹配，第一个命中的生效
PROXY_RULES: Tuple[Tuple[PatternPredicate, ProxyType], ...] = (
    (_name_contains("facet"), ProxyType.DIAMOND),
    (_name_contains("proxiableUUID"), ProxyType.UUPS),
    (_name_contains("beacon"), ProxyType.BEACON),
    (_name_contains("implementation"), ProxyType.TRANSPARENT),
)

# 复杂度系数
PROXY_COMPLEXITY_FACTOR = 0.7
DEFI_COMPLEXITY_FACTOR = 1.3


def _has_category(patterns: Sequence[DetectedPattern], category: SignatureCategory) -> bool:
    return any(p.category == category for p in patterns)


def analyze_standards_compliance(
    patterns: Sequence[DetectedPattern]
) -> Tuple[StandardCompliance, ...]:
    """计算各标准的符合度，只返回符合度大于0的标准"""
    detected: Set[str] = {p.selector for p in patterns}
    results: List[StandardCompliance] = []

    for standard in STANDARD_DEFINITIONS:
        found = [s for s in standard.required if s in detected]
        compliance = round(len(found) / len(standard.required) * 100)
        compliance = max(0, min(100, compliance))

        if compliance <= 0:
            continue

        results.append(StandardCompliance(
            standard=standard.name,
            compliance_percent=compliance,
            missing_functions=[
                get_signature_name(s) for s in standard.required if s not in detected
            ],
            extra_functions=[
                get_signature_name(s) for s in standard.optional if s in detected
            ],
        ))

    return tuple(results)


def detect_security_features(patterns: Sequence[DetectedPattern]) -> Tuple[str, ...]:
    """按规则表检测安全特性"""
    security_patterns = [p for p in patterns if p.category == SignatureCategory.SECURITY]

    return tuple(
        feature
        for fragment, feature in SECURITY_RULES
        if any(fragment in p.name for p in security_patterns)
    )


def detect_proxy_type(patterns: Sequence[DetectedPattern]) -> Optional[ProxyType]:
    """识别代理类型

    没有Proxy分类的模式时返回None。
    同一代理可能同时暴露多个Proxy选择器，按规则顺序取第一个命中。
    """
    proxy_patterns = [p for p in patterns if p.category == SignatureCategory.PROXY]
    if not proxy_patterns:
        return None

    for predicate, proxy_type in PROXY_RULES:
        if any(predicate(p) for p in proxy_patterns):
            return proxy_type

    return ProxyType.UNKNOWN


def calculate_complexity_score(size_bytes: int, patterns: Sequence[DetectedPattern]) -> int:
    """复杂度评分 0-100

    score = log10(size) * 10 + 函数数 * 2
    代理合约 * 0.7，DeFi合约 * 1.3
    """
    size_component = math.log10(size_bytes) * 10 if size_bytes > 0 else 0.0
    complexity = size_component + len(patterns) * 2

    if _has_category(patterns, SignatureCategory.PROXY):
        complexity *= PROXY_COMPLEXITY_FACTOR

    if _has_category(patterns, SignatureCategory.DEFI):
        complexity *= DEFI_COMPLEXITY_FACTOR

    return int(round(max(0.0, min(100.0, complexity))))


def complexity_level(score: int) -> ComplexityLevel:
    """复杂度等级：Low < 30 <= Medium < 70 <= High"""
    return ComplexityLevel.from_score(score)


def detect_gas_optimizations(
    patterns: Sequence[DetectedPattern],
    bytecode: Optional[str]
) -> Tuple[str, ...]:
    """基于字节码子串的Gas优化特征"""
    code = normalize_bytecode(bytecode)
    optimizations: List[str] = []

    # RETURNDATASIZE链 / GAS STATICCALL
    if "3d3d3d3d" in code or "5afa" in code:
        optimizations.append("Assembly Optimizations")

    if any("batch" in p.name or "multi" in p.name for p in patterns):
        optimizations.append("Batch Operations")

    # PUSH1 ... MSTORE
    if "60" in code and "52" in code:
        optimizations.append("Packed Storage")

    if "f5" in code:
        optimizations.append("CREATE2 Deployment")

    return tuple(optimizations)
