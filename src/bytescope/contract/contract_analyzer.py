"""
合约分析聚合器

串联选择器提取、模式分类与各项特征分析，生成单合约的 ContractAnalysis
"""

from typing import Dict, List, Optional, Any
import time
import logging

from bytescope.contract.contract_model import ContractAnalysis
from bytescope.contract.errors import EmptyBytecodeError
from bytescope.contract.bytecode_analyzer import (
    extract_selectors,
    is_empty_bytecode,
    bytecode_size,
    bytecode_hash,
    detect_opcode_flags,
    parse_metadata,
)
from bytescope.contract.pattern_classifier import classify
from bytescope.contract.feature_analyzers import (
    analyze_standards_compliance,
    detect_security_features,
    detect_proxy_type,
    calculate_complexity_score,
    detect_gas_optimizations,
)

logger = logging.getLogger(__name__)


def shorten_address(address: str, chars: int = 4) -> str:
    """0x1234...abcd"""
    if not address or len(address) < 10:
        return address
    return f"{address[:2 + chars]}...{address[-chars:]}"


def default_contract_name(address: str) -> str:
    return f"Contract ({shorten_address(address)})"


class ContractAnalyzer:
    """合约分析器"""

    def analyze(
        self,
        address: str,
        bytecode: Optional[str],
        contract_name: Optional[str] = None
    ) -> ContractAnalysis:
        """分析合约字节码

        Args:
            address: 合约地址
            bytecode: 合约字节码（0x开头的十六进制字符串）
            contract_name: 展示名称（可选）

        Returns:
            ContractAnalysis

        Raises:
            EmptyBytecodeError: 字节码为空或为"0x"
        """
        if is_empty_bytecode(bytecode):
            raise EmptyBytecodeError(address)

        start_time = time.time()

        selectors = extract_selectors(bytecode)
        patterns = classify(selectors, bytecode)
        size = bytecode_size(bytecode)

        analysis = ContractAnalysis(
            address=address,
            contract_name=contract_name or default_contract_name(address),
            size_bytes=size,
            bytecode_hash=bytecode_hash(bytecode),
            total_selectors=len(selectors),
            detected_patterns=patterns,
            standards_compliance=analyze_standards_compliance(patterns),
            security_features=detect_security_features(patterns),
            proxy_type=detect_proxy_type(patterns),
            complexity_score=calculate_complexity_score(size, patterns),
            gas_optimization_features=detect_gas_optimizations(patterns, bytecode),
            opcode_flags=detect_opcode_flags(bytecode),
            metadata=parse_metadata(bytecode),
        )

        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Contract analysis completed: {address}, "
            f"patterns={analysis.function_count}, time={elapsed_ms:.1f}ms"
        )

        return analysis

    def quick_analyze(self, address: str, bytecode: str) -> Dict[str, Any]:
        """快速分析（返回简化结果）"""
        analysis = self.analyze(address, bytecode)

        return {
            "address": analysis.address,
            "size": analysis.size_bytes,
            "function_count": analysis.function_count,
            "standards": analysis.standards,
            "proxy_type": analysis.proxy_type.value if analysis.proxy_type else None,
            "complexity_score": analysis.complexity_score,
            "security_features": list(analysis.security_features),
        }

    def analyze_many(
        self,
        contracts: List[Dict[str, str]]
    ) -> List[ContractAnalysis]:
        """批量分析

        Args:
            contracts: [{"address": "0x...", "bytecode": "0x...", "name": "..."}, ...]

        Returns:
            成功的分析结果；失败的合约记录日志后跳过
        """
        analyses = []
        for contract in contracts:
            try:
                analyses.append(self.analyze(
                    address=contract["address"],
                    bytecode=contract.get("bytecode"),
                    contract_name=contract.get("name"),
                ))
            except EmptyBytecodeError as e:
                logger.warning(f"Skipping {contract.get('address')}: {e}")
        return analyses
