"""
多合约比较器

功能：
- 两两函数重叠相似度（Jaccard）
- 合约关系识别（代理-实现、相似实现）
- 合约家族聚类（并查集）
- 相似度矩阵与比较洞察
"""

from dataclasses import replace
from typing import Dict, List, Optional, Any, Sequence, Tuple
import logging

from bytescope.contract.contract_model import (
    ContractAnalysis,
    ContractComparison,
    ContractRelationship,
    ProxyType,
    RelationshipType,
    SignatureCategory,
    SimilarityResult,
)
from bytescope.contract.contract_analyzer import ContractAnalyzer
from bytescope.contract.bytecode_analyzer import is_empty_bytecode
from bytescope.contract.errors import DuplicateContractError, SelfComparisonError

logger = logging.getLogger(__name__)


# 相似度超过该值视为相似实现
SIMILAR_THRESHOLD = 80.0

# 家族聚类默认阈值
FAMILY_THRESHOLD = 70.0

# 代理自身（非Proxy分类）函数数 / 实现合约函数数 的上限
PROXY_SURFACE_RATIO = 0.5

PROXY_RELATIONSHIP_CONFIDENCE = 0.95


class DisjointSet:
    """基于下标的并查集"""

    def __init__(self, size: int):
        self.parent = list(range(size))
        self.rank = [0] * size

    def find(self, index: int) -> int:
        root = index
        while self.parent[root] != root:
            root = self.parent[root]
        # 路径压缩
        while self.parent[index] != root:
            self.parent[index], index = root, self.parent[index]
        return root

    def union(self, a: int, b: int) -> bool:
        root_a, root_b = self.find(a), self.find(b)
        if root_a == root_b:
            return False
        if self.rank[root_a] < self.rank[root_b]:
            root_a, root_b = root_b, root_a
        self.parent[root_b] = root_a
        if self.rank[root_a] == self.rank[root_b]:
            self.rank[root_a] += 1
        return True


def calculate_similarity(
    contract_a: ContractAnalysis,
    contract_b: ContractAnalysis
) -> Optional[SimilarityResult]:
    """计算两合约的函数重叠相似度

    Returns:
        SimilarityResult；两边都没有识别出函数时返回None

    Raises:
        SelfComparisonError: 两边是同一地址
    """
    if contract_a.address.lower() == contract_b.address.lower():
        raise SelfComparisonError(contract_a.address)

    selectors_a = contract_a.selectors
    selectors_b = contract_b.selectors
    union = selectors_a | selectors_b

    if not union:
        return None

    shared = selectors_a & selectors_b
    names = {p.selector: p.name for p in contract_a.detected_patterns}

    return SimilarityResult(
        contract_a=contract_a.address,
        contract_b=contract_b.address,
        similarity=round(len(shared) / len(union) * 100, 2),
        shared_functions=tuple(sorted(names[s] for s in shared)),
        total_functions=len(union),
    )


def _looks_like_proxy_for(proxy: ContractAnalysis, implementation: ContractAnalysis) -> bool:
    """代理很薄，而实现合约暴露了更大的函数面"""
    if proxy.proxy_type is None or proxy.proxy_type == ProxyType.UNKNOWN:
        return False

    if implementation.function_count <= proxy.function_count:
        return False

    own_functions = len([
        p for p in proxy.detected_patterns if p.category != SignatureCategory.PROXY
    ])
    return own_functions <= PROXY_SURFACE_RATIO * implementation.function_count


class ContractComparator:
    """合约比较器"""

    def __init__(
        self,
        similar_threshold: float = SIMILAR_THRESHOLD,
        analyzer: Optional[ContractAnalyzer] = None
    ):
        self.similar_threshold = similar_threshold
        self.analyzer = analyzer or ContractAnalyzer()

    def compare(
        self,
        analyses: Sequence[ContractAnalysis],
        failed_addresses: Sequence[str] = (),
        network: Optional[str] = None
    ) -> ContractComparison:
        """比较多个合约

        Args:
            analyses: 已完成的单合约分析（地址必须唯一）
            failed_addresses: 获取字节码失败的地址，仅记录
            network: 网络名称，仅用于展示

        Returns:
            ContractComparison；可用合约少于2个时状态为 not_comparable

        Raises:
            DuplicateContractError: 地址重复（合约与自身比较）
        """
        # 所有分析就绪后才开始两两比较
        contracts = tuple(analyses)
        failed = tuple(failed_addresses)

        seen = set()
        for contract in contracts:
            key = contract.address.lower()
            if key in seen:
                raise DuplicateContractError(contract.address)
            seen.add(key)

        if len(contracts) < 2:
            logger.warning(
                f"Comparison needs at least 2 contracts, got {len(contracts)} "
                f"({len(failed)} failed)"
            )
            return ContractComparison.not_comparable(
                contracts=contracts,
                failed_addresses=failed,
                network=network,
            )

        similarities: List[SimilarityResult] = []
        relationships: List[ContractRelationship] = []

        for i in range(len(contracts)):
            for j in range(i + 1, len(contracts)):
                similarity = calculate_similarity(contracts[i], contracts[j])
                if similarity is not None:
                    similarities.append(similarity)

                relationship = self.detect_relationship(contracts[i], contracts[j], similarity)
                if relationship:
                    relationships.append(relationship)

        similarities.sort(key=lambda s: -s.similarity)

        logger.info(
            f"Compared {len(contracts)} contracts: "
            f"{len(similarities)} similarities, {len(relationships)} relationships"
        )

        return ContractComparison(
            contracts=contracts,
            similarities=tuple(similarities),
            relationships=tuple(relationships),
            failed_addresses=failed,
            network=network,
        )

    def detect_relationship(
        self,
        contract_a: ContractAnalysis,
        contract_b: ContractAnalysis,
        similarity: Optional[SimilarityResult] = None
    ) -> Optional[ContractRelationship]:
        """识别两合约之间的关系"""
        for proxy, implementation in ((contract_a, contract_b), (contract_b, contract_a)):
            if _looks_like_proxy_for(proxy, implementation):
                return ContractRelationship(
                    contracts=(proxy.address, implementation.address),
                    relationship_type=RelationshipType.PROXY_IMPLEMENTATION,
                    description=(
                        f"{proxy.contract_name} appears to be a proxy for "
                        f"{implementation.contract_name}"
                    ),
                    confidence=PROXY_RELATIONSHIP_CONFIDENCE,
                )

        if similarity is not None and similarity.similarity > self.similar_threshold:
            return ContractRelationship(
                contracts=(contract_a.address, contract_b.address),
                relationship_type=RelationshipType.SIMILAR_IMPLEMENTATION,
                description=f"Contracts share {similarity.similarity}% function similarity",
                confidence=round(similarity.similarity / 100, 4),
            )

        return None

    def compare_bytecodes(
        self,
        contracts: Sequence[Dict[str, str]],
        bytecodes: Dict[str, str],
        failed_addresses: Sequence[str] = (),
        network: Optional[str] = None
    ) -> ContractComparison:
        """从部分地址->字节码映射构建比较

        Args:
            contracts: [{"address": "0x...", "name": "..."}, ...]
            bytecodes: 成功获取的字节码，缺失或为空的地址视为失败
            failed_addresses: 调用方已知的失败地址
            network: 网络名称

        Returns:
            ContractComparison
        """
        failed = list(failed_addresses)
        analyses: List[ContractAnalysis] = []
        seen = set()
        # 地址大小写不敏感
        codes = {k.lower(): v for k, v in bytecodes.items()}

        for contract in contracts:
            address = contract["address"]
            key = address.lower()
            if key in seen:
                logger.warning(f"Duplicate contract excluded from comparison: {address}")
                continue
            seen.add(key)

            bytecode = codes.get(key)
            if is_empty_bytecode(bytecode):
                if address not in failed:
                    failed.append(address)
                continue

            analyses.append(self.analyzer.analyze(address, bytecode, contract.get("name")))

        return self.compare(analyses, failed_addresses=failed, network=network)


def find_families(
    comparison: ContractComparison,
    threshold: float = FAMILY_THRESHOLD
) -> List[List[ContractAnalysis]]:
    """合约家族聚类

    相似度 >= threshold 的两个合约合并到同一家族，传递闭包，
    只返回至少2个成员的家族，按首次出现顺序排列。
    """
    contracts = comparison.contracts
    index_of = {c.address: i for i, c in enumerate(contracts)}
    groups = DisjointSet(len(contracts))

    for sim in comparison.similarities:
        if sim.similarity < threshold:
            continue
        a = index_of.get(sim.contract_a)
        b = index_of.get(sim.contract_b)
        if a is not None and b is not None:
            groups.union(a, b)

    families: Dict[int, List[ContractAnalysis]] = {}
    for i, contract in enumerate(contracts):
        families.setdefault(groups.find(i), []).append(contract)

    return [members for members in families.values() if len(members) > 1]


def similarity_matrix(comparison: ContractComparison) -> List[List[float]]:
    """n x n 相似度矩阵，对角线为100，未定义处为0"""
    contracts = comparison.contracts
    index_of = {c.address: i for i, c in enumerate(contracts)}
    size = len(contracts)

    matrix = [[0.0] * size for _ in range(size)]
    for i in range(size):
        matrix[i][i] = 100.0

    for sim in comparison.similarities:
        a = index_of.get(sim.contract_a)
        b = index_of.get(sim.contract_b)
        if a is not None and b is not None:
            matrix[a][b] = sim.similarity
            matrix[b][a] = sim.similarity

    return matrix


def filter_comparison(
    comparison: ContractComparison,
    min_similarity: float = 0.0,
    include_relationships: bool = True
) -> ContractComparison:
    """按最低相似度过滤，返回新的比较结果"""
    return replace(
        comparison,
        similarities=tuple(s for s in comparison.similarities if s.similarity >= min_similarity),
        relationships=comparison.relationships if include_relationships else (),
    )


def comparison_insights(comparison: ContractComparison) -> Dict[str, Any]:
    """比较洞察"""
    values = [s.similarity for s in comparison.similarities]
    standards = {s for c in comparison.contracts for s in c.standards}

    return {
        "avg_similarity": round(sum(values) / len(values), 2) if values else 0.0,
        "max_similarity": round(max(values), 2) if values else 0.0,
        "min_similarity": round(min(values), 2) if values else 0.0,
        "proxy_count": len([c for c in comparison.contracts if c.is_proxy]),
        "standards_count": len(standards),
        "total_contracts": len(comparison.contracts),
        "total_relationships": len(comparison.relationships),
    }


def top_similarities(comparison: ContractComparison, limit: int = 5) -> Tuple[SimilarityResult, ...]:
    """相似度最高的若干对"""
    return comparison.similarities[:limit]
