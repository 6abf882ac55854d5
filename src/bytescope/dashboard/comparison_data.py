"""
比较结果数据聚合器

把 ContractComparison 投影成图表可直接使用的字典列表，
所有函数均为纯函数，空合约列表返回零值结构
"""

from collections import defaultdict
from typing import Dict, List, Optional, Any, Sequence

from bytescope.contract.contract_model import (
    ComplexityLevel,
    ContractAnalysis,
    ContractComparison,
    ContractRelationship,
    RelationshipType,
    SimilarityResult,
)
from bytescope.contract.contract_analyzer import shorten_address


# 按输入顺序循环取色
CHART_COLORS = (
    "#667eea",
    "#764ba2",
    "#2ed573",
    "#ffa502",
    "#ff6b35",
    "#1e90ff",
    "#ff4757",
    "#a4b0be",
)

SECONDARY_COLOR = "#a4b0be"

STANDARD_COLORS = {
    "ERC20": "#667eea",
    "ERC721": "#764ba2",
    "ERC1155": "#1e90ff",
    "Proxy": "#ffa502",
    "Security": "#2ed573",
    "DeFi": "#ff6b35",
    "Gas Optimization": "#ff4757",
}

COMPLEXITY_COLORS = {
    ComplexityLevel.LOW: "#2ed573",
    ComplexityLevel.MEDIUM: "#ffa502",
    ComplexityLevel.HIGH: "#ff4757",
}


def _percentage(part: float, total: float) -> float:
    return round(part / total * 100, 2) if total > 0 else 0.0


def process_contract_sizes(contracts: Sequence[ContractAnalysis]) -> List[Dict[str, Any]]:
    """合约大小分布，颜色按输入位置分配，按大小降序"""
    total_size = sum(c.size_bytes for c in contracts)

    rows = [
        {
            "contract_name": contract.contract_name,
            "address": contract.address,
            "size": contract.size_bytes,
            "percentage": _percentage(contract.size_bytes, total_size),
            "color": CHART_COLORS[index % len(CHART_COLORS)],
        }
        for index, contract in enumerate(contracts)
    ]
    return sorted(rows, key=lambda r: -r["size"])


def process_function_distribution(contracts: Sequence[ContractAnalysis]) -> List[Dict[str, Any]]:
    """各分类的函数数量"""
    category_count: Dict[str, int] = defaultdict(int)
    total_functions = 0

    for contract in contracts:
        for pattern in contract.detected_patterns:
            category_count[pattern.category.value] += 1
            total_functions += 1

    rows = [
        {
            "category": category,
            "count": count,
            "percentage": _percentage(count, total_functions),
            "color": STANDARD_COLORS.get(category, SECONDARY_COLOR),
        }
        for category, count in category_count.items()
    ]
    return sorted(rows, key=lambda r: -r["count"])


def process_similarity_matrix(similarities: Sequence[SimilarityResult]) -> List[Dict[str, Any]]:
    """热力图数据"""
    return [
        {
            "contract_a": sim.contract_a,
            "contract_b": sim.contract_b,
            "similarity": sim.similarity,
            "shared_functions": list(sim.shared_functions),
        }
        for sim in similarities
    ]


def process_standards_compliance(contracts: Sequence[ContractAnalysis]) -> List[Dict[str, Any]]:
    """各标准被多少合约实现"""
    standards_count: Dict[str, int] = defaultdict(int)
    total_contracts = len(contracts)

    for contract in contracts:
        for standard in contract.standards:
            standards_count[standard] += 1

    rows = [
        {
            "standard": standard,
            "compliant_contracts": count,
            "total_contracts": total_contracts,
            "percentage": _percentage(count, total_contracts),
            "color": STANDARD_COLORS.get(standard, SECONDARY_COLOR),
        }
        for standard, count in standards_count.items()
    ]
    return sorted(rows, key=lambda r: -r["compliant_contracts"])


def process_security_features(contracts: Sequence[ContractAnalysis]) -> List[Dict[str, Any]]:
    """安全特性覆盖"""
    feature_contracts: Dict[str, List[str]] = defaultdict(list)

    for contract in contracts:
        for feature in contract.security_features:
            feature_contracts[feature].append(contract.contract_name)

    rows = [
        {
            "feature": feature,
            "contracts_with_feature": names,
            "count": len(names),
            "percentage": _percentage(len(names), len(contracts)),
        }
        for feature, names in feature_contracts.items()
    ]
    return sorted(rows, key=lambda r: -r["count"])


def process_complexity_distribution(contracts: Sequence[ContractAnalysis]) -> List[Dict[str, Any]]:
    """复杂度分桶，每个合约恰好落入一个桶，空桶省略"""
    buckets: Dict[ComplexityLevel, List[str]] = {level: [] for level in ComplexityLevel}

    for contract in contracts:
        buckets[contract.complexity_level].append(contract.contract_name)

    return [
        {
            "complexity_level": level.value,
            "count": len(names),
            "contracts": names,
            "color": COMPLEXITY_COLORS[level],
        }
        for level, names in buckets.items()
        if names
    ]


def process_proxy_relationships(
    relationships: Sequence[ContractRelationship],
    contracts: Sequence[ContractAnalysis] = ()
) -> List[Dict[str, Any]]:
    """代理-实现关系，附带双方的实际大小"""
    sizes = {c.address: c.size_bytes for c in contracts}
    rows = []

    for rel in relationships:
        if rel.relationship_type != RelationshipType.PROXY_IMPLEMENTATION:
            continue

        proxy_address, implementation_address = rel.contracts
        rows.append({
            "proxy_address": proxy_address,
            "implementation_address": implementation_address,
            "proxy_name": f"Proxy ({shorten_address(proxy_address)})",
            "implementation_name": f"Implementation ({shorten_address(implementation_address)})",
            "proxy_size": sizes.get(proxy_address, 0),
            "implementation_size": sizes.get(implementation_address, 0),
            "relationship": rel.description,
        })

    return rows


def _contract_ref(contract: Optional[ContractAnalysis]) -> Dict[str, Any]:
    if contract is None:
        return {"name": "", "address": "", "size": 0}
    return {
        "name": contract.contract_name,
        "address": contract.address,
        "size": contract.size_bytes,
    }


def calculate_metrics(contracts: Sequence[ContractAnalysis]) -> Dict[str, Any]:
    """汇总指标"""
    if not contracts:
        return {
            "total_contracts": 0,
            "total_size": 0,
            "average_size": 0.0,
            "largest_contract": _contract_ref(None),
            "smallest_contract": _contract_ref(None),
            "standards_detected": [],
            "security_features_found": 0,
            "proxy_contracts_found": 0,
        }

    total_size = sum(c.size_bytes for c in contracts)
    by_size = sorted(contracts, key=lambda c: -c.size_bytes)

    standards: List[str] = []
    for contract in contracts:
        for standard in contract.standards:
            if standard not in standards:
                standards.append(standard)

    return {
        "total_contracts": len(contracts),
        "total_size": total_size,
        "average_size": round(total_size / len(contracts), 2),
        "largest_contract": _contract_ref(by_size[0]),
        "smallest_contract": _contract_ref(by_size[-1]),
        "standards_detected": standards,
        "security_features_found": len([c for c in contracts if c.has_security_controls]),
        "proxy_contracts_found": len([c for c in contracts if c.is_proxy]),
    }


def process_all(comparison: ContractComparison) -> Dict[str, Any]:
    """一次性生成全部图表数据"""
    contracts = comparison.contracts

    return {
        "contract_sizes": process_contract_sizes(contracts),
        "function_distribution": process_function_distribution(contracts),
        "similarity_matrix": process_similarity_matrix(comparison.similarities),
        "standards_compliance": process_standards_compliance(contracts),
        "security_features": process_security_features(contracts),
        "complexity_distribution": process_complexity_distribution(contracts),
        "proxy_relationships": process_proxy_relationships(comparison.relationships, contracts),
        "metrics": calculate_metrics(contracts),
    }


class ComparisonDataAggregator:
    """比较结果的图表数据聚合器（首次访问时计算并缓存）"""

    def __init__(self, comparison: ContractComparison):
        self.comparison = comparison
        self._processed: Optional[Dict[str, Any]] = None

    @property
    def processed(self) -> Dict[str, Any]:
        if self._processed is None:
            self._processed = process_all(self.comparison)
        return self._processed

    def get_metrics(self) -> Dict[str, Any]:
        return self.processed["metrics"]

    def get_chart(self, name: str) -> List[Dict[str, Any]]:
        """获取单个图表数据

        Raises:
            KeyError: 未知图表名
        """
        if name == "metrics":
            raise KeyError(name)
        return self.processed[name]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.comparison.status.value,
            "network": self.comparison.network,
            **self.processed,
        }
