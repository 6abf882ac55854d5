"""
模式分类器

在签名库中查找提取到的选择器，并给出置信度。
签名库之外的选择器直接丢弃（封闭世界）。
"""

from typing import Dict, Iterable, List, Optional, Tuple
import logging

from bytescope.contract.bytecode_analyzer import normalize_bytecode
from bytescope.contract.contract_model import DetectedPattern
from bytescope.parser.signatures import SIGNATURE_DICTIONARY, DICTIONARY_ORDER

logger = logging.getLogger(__name__)


# 置信度权重（可调常量）
BASE_CONFIDENCE = 0.7
REOCCURRENCE_BONUS = 0.2
MAX_CONFIDENCE = 1.0

# 特定选择器的字符串线索：部分编译器会在字节码中留下函数名
STRING_HINTS: Dict[str, Tuple[str, float]] = {
    "0x70a08231": ("balanceof", 0.1),
}


def calculate_confidence(selector: str, code: str) -> float:
    """计算单个选择器的置信度

    Args:
        selector: 0x开头的选择器
        code: 规范化后的字节码（无0x前缀、小写）
    """
    confidence = BASE_CONFIDENCE

    # 选择器在字节码中不止出现一次
    if code.count(selector[2:]) > 1:
        confidence += REOCCURRENCE_BONUS

    hint = STRING_HINTS.get(selector)
    if hint and hint[0] in code:
        confidence += hint[1]

    return round(min(confidence, MAX_CONFIDENCE), 4)


def classify(
    selectors: Iterable[str],
    bytecode: Optional[str]
) -> Tuple[DetectedPattern, ...]:
    """对选择器分类

    Args:
        selectors: 候选选择器
        bytecode: 原始字节码

    Returns:
        按置信度降序的DetectedPattern；置信度相同时按签名库顺序
    """
    code = normalize_bytecode(bytecode)
    patterns: List[DetectedPattern] = []

    candidates = {s.lower() for s in selectors}

    for selector in candidates:
        entry = SIGNATURE_DICTIONARY.get(selector)
        if entry is None:
            continue

        patterns.append(DetectedPattern(
            selector=entry.selector,
            name=entry.name,
            category=entry.category,
            confidence=calculate_confidence(entry.selector, code),
            standard=entry.standard,
        ))

    patterns.sort(key=lambda p: (-p.confidence, DICTIONARY_ORDER[p.selector]))

    logger.debug(f"Classified {len(patterns)} of {len(candidates)} selectors")

    return tuple(patterns)
