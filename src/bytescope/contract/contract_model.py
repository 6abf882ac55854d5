"""
合约分析数据模型

定义字节码分析与多合约比较相关的数据结构：
- 函数签名条目与分类
- 检测到的模式
- 单合约分析结果
- 相似度、合约关系与比较结果
"""

from dataclasses import dataclass, field as dc_field
from typing import Dict, List, Optional, Any, Tuple, FrozenSet
from enum import Enum


# 复杂度等级阈值
LOW_COMPLEXITY_BELOW = 30
MEDIUM_COMPLEXITY_BELOW = 70


class SignatureCategory(str, Enum):
    """函数签名分类"""
    ERC20 = "ERC20"
    ERC721 = "ERC721"
    ERC1155 = "ERC1155"
    PROXY = "Proxy"
    SECURITY = "Security"
    DEFI = "DeFi"
    GAS_OPTIMIZATION = "Gas Optimization"


class ProxyType(str, Enum):
    """代理合约类型"""
    TRANSPARENT = "Transparent Proxy (EIP-1967)"
    UUPS = "UUPS Proxy (EIP-1822)"
    BEACON = "Beacon Proxy"
    DIAMOND = "Diamond Proxy (EIP-2535)"
    UNKNOWN = "Unknown Proxy Pattern"


class ComplexityLevel(str, Enum):
    """复杂度等级"""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def from_score(cls, score: float) -> "ComplexityLevel":
        if score < LOW_COMPLEXITY_BELOW:
            return cls.LOW
        if score < MEDIUM_COMPLEXITY_BELOW:
            return cls.MEDIUM
        return cls.HIGH


class RelationshipType(str, Enum):
    """合约关系类型"""
    PROXY_IMPLEMENTATION = "proxy-implementation"
    SIMILAR_IMPLEMENTATION = "similar-implementation"


class ComparisonStatus(str, Enum):
    """比较结果状态"""
    COMPARED = "compared"
    NOT_COMPARABLE = "not_comparable"    # 可用合约少于2个


@dataclass(frozen=True)
class SignatureEntry:
    """签名库条目（进程内只读）"""
    selector: str                        # 0x + 8位小写十六进制
    name: str                            # 规范函数签名，如 transfer(address,uint256)
    category: SignatureCategory
    standard: Optional[str] = None       # 如 "ERC-20"


@dataclass(frozen=True)
class DetectedPattern:
    """检测到的函数模式"""
    selector: str
    name: str
    category: SignatureCategory
    confidence: float                    # 0-1
    standard: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selector": self.selector,
            "name": self.name,
            "category": self.category.value,
            "confidence": self.confidence,
            "standard": self.standard,
        }


@dataclass(frozen=True)
class StandardCompliance:
    """标准符合度"""
    standard: str
    compliance_percent: int              # 0-100
    missing_functions: List[str] = dc_field(default_factory=list)
    extra_functions: List[str] = dc_field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "standard": self.standard,
            "compliance": self.compliance_percent,
            "missing_functions": list(self.missing_functions),
            "extra_functions": list(self.extra_functions),
        }


@dataclass(frozen=True)
class BytecodeMetadata:
    """Solidity编译器附加的CBOR元数据"""
    has_metadata: bool = False
    ipfs_hash: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_metadata": self.has_metadata,
            "ipfs_hash": self.ipfs_hash,
        }


@dataclass(frozen=True)
class ContractAnalysis:
    """单合约分析结果"""
    address: str
    contract_name: str
    size_bytes: int = 0
    bytecode_hash: str = ""

    # 提取器找到的候选选择器数量（含未识别的）
    total_selectors: int = 0

    # 按置信度降序
    detected_patterns: Tuple[DetectedPattern, ...] = ()

    # 特征
    standards_compliance: Tuple[StandardCompliance, ...] = ()
    security_features: Tuple[str, ...] = ()
    proxy_type: Optional[ProxyType] = None
    complexity_score: int = 0            # 0-100
    gas_optimization_features: Tuple[str, ...] = ()

    # 线性扫描得到的值得关注的操作码
    opcode_flags: Tuple[str, ...] = ()
    metadata: BytecodeMetadata = dc_field(default_factory=BytecodeMetadata)

    @property
    def selectors(self) -> FrozenSet[str]:
        return frozenset(p.selector for p in self.detected_patterns)

    @property
    def function_count(self) -> int:
        return len(self.detected_patterns)

    @property
    def standards(self) -> List[str]:
        return [c.standard for c in self.standards_compliance]

    @property
    def is_proxy(self) -> bool:
        return self.proxy_type is not None

    @property
    def has_security_controls(self) -> bool:
        return len(self.security_features) > 0

    @property
    def complexity_level(self) -> ComplexityLevel:
        return ComplexityLevel.from_score(self.complexity_score)

    def patterns_in(self, category: SignatureCategory) -> List[DetectedPattern]:
        """获取指定分类的模式"""
        return [p for p in self.detected_patterns if p.category == category]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "contract_name": self.contract_name,
            "size": self.size_bytes,
            "bytecode_hash": self.bytecode_hash,
            "total_selectors": self.total_selectors,
            "detected_patterns": [p.to_dict() for p in self.detected_patterns],
            "standards": self.standards,
            "standards_compliance": [c.to_dict() for c in self.standards_compliance],
            "security": {
                "has_controls": self.has_security_controls,
                "features": list(self.security_features),
            },
            "proxy": {
                "is_proxy": self.is_proxy,
                "type": self.proxy_type.value if self.proxy_type else None,
            },
            "complexity": {
                "score": self.complexity_score,
                "level": self.complexity_level.value,
            },
            "gas_optimizations": list(self.gas_optimization_features),
            "opcode_flags": list(self.opcode_flags),
            "metadata": self.metadata.to_dict(),
        }

    def summary(self) -> str:
        """生成摘要"""
        lines = [
            f"Contract: {self.contract_name} ({self.address})",
            f"Size: {self.size_bytes} bytes",
            f"Functions: {self.function_count} recognised / {self.total_selectors} candidates",
            f"Complexity: {self.complexity_score}/100 ({self.complexity_level.value})",
        ]
        if self.standards_compliance:
            lines.append("Standards:")
            for c in self.standards_compliance:
                lines.append(f"  - {c.standard}: {c.compliance_percent}%")
        if self.proxy_type:
            lines.append(f"Proxy: {self.proxy_type.value}")
        if self.security_features:
            lines.append(f"Security: {', '.join(self.security_features)}")
        return "\n".join(lines)


@dataclass(frozen=True)
class SimilarityResult:
    """两合约间的相似度"""
    contract_a: str
    contract_b: str
    similarity: float                    # 0-100
    shared_functions: Tuple[str, ...] = ()
    total_functions: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contract_a": self.contract_a,
            "contract_b": self.contract_b,
            "similarity": self.similarity,
            "shared_functions": list(self.shared_functions),
            "total_functions": self.total_functions,
        }


@dataclass(frozen=True)
class ContractRelationship:
    """合约关系（proxy-implementation时contracts[0]为代理）"""
    contracts: Tuple[str, str]
    relationship_type: RelationshipType
    description: str
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.relationship_type.value,
            "contracts": list(self.contracts),
            "description": self.description,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class ContractComparison:
    """多合约比较结果（聚合根，构建后只读）"""
    contracts: Tuple[ContractAnalysis, ...] = ()
    similarities: Tuple[SimilarityResult, ...] = ()
    relationships: Tuple[ContractRelationship, ...] = ()
    status: ComparisonStatus = ComparisonStatus.COMPARED
    failed_addresses: Tuple[str, ...] = ()
    network: Optional[str] = None

    @classmethod
    def not_comparable(
        cls,
        contracts: Tuple[ContractAnalysis, ...] = (),
        failed_addresses: Tuple[str, ...] = (),
        network: Optional[str] = None
    ) -> "ContractComparison":
        """可用合约不足2个时的显式结果"""
        return cls(
            contracts=tuple(contracts),
            status=ComparisonStatus.NOT_COMPARABLE,
            failed_addresses=tuple(failed_addresses),
            network=network,
        )

    @property
    def is_comparable(self) -> bool:
        return self.status == ComparisonStatus.COMPARED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "network": self.network,
            "contracts": [c.to_dict() for c in self.contracts],
            "similarities": [s.to_dict() for s in self.similarities],
            "relationships": [r.to_dict() for r in self.relationships],
            "failed_addresses": list(self.failed_addresses),
        }
