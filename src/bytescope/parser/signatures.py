"""
函数签名数据库

字节码分析的核心知识库，包含：
- ERC-20 / ERC-721 / ERC-1155 标准函数
- 代理合约函数（EIP-1967、UUPS、Beacon、Diamond）
- 安全控制函数（Ownable、Pausable、AccessControl、多签）
- DeFi 协议函数
- Gas优化相关函数

签名库在导入时构建一次，之后只读。
"""

from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple
from eth_utils import keccak

from bytescope.contract.contract_model import SignatureCategory, SignatureEntry


def compute_selector(signature: str) -> str:
    """计算函数选择器

    Args:
        signature: 如 "transfer(address,uint256)"

    Returns:
        0x开头的选择器
    """
    return "0x" + keccak(text=signature).hex()[:8]


# ============================================================================
# 函数签名表（选择器 -> 规范签名）
# ============================================================================

ERC20_SIGNATURES: Dict[str, str] = {
    "0x70a08231": "balanceOf(address)",
    "0xa9059cbb": "transfer(address,uint256)",
    "0x23b872dd": "transferFrom(address,address,uint256)",
    "0x095ea7b3": "approve(address,uint256)",
    "0xdd62ed3e": "allowance(address,address)",
    "0x18160ddd": "totalSupply()",
    "0x06fdde03": "name()",
    "0x95d89b41": "symbol()",
    "0x313ce567": "decimals()",
    # 常见扩展
    "0x39509351": "increaseAllowance(address,uint256)",
    "0xa457c2d7": "decreaseAllowance(address,uint256)",
    "0x40c10f19": "mint(address,uint256)",
    "0x42966c68": "burn(uint256)",
    "0x79cc6790": "burnFrom(address,uint256)",
    "0x9dc29fac": "burn(address,uint256)",
}

ERC721_SIGNATURES: Dict[str, str] = {
    "0x70a08231": "balanceOf(address)",
    "0x6352211e": "ownerOf(uint256)",
    "0x42842e0e": "safeTransferFrom(address,address,uint256)",
    "0xb88d4fde": "safeTransferFrom(address,address,uint256,bytes)",
    "0x23b872dd": "transferFrom(address,address,uint256)",
    "0x095ea7b3": "approve(address,uint256)",
    "0xa22cb465": "setApprovalForAll(address,bool)",
    "0x081812fc": "getApproved(uint256)",
    "0xe985e9c5": "isApprovedForAll(address,address)",
    # Metadata / Enumerable
    "0xc87b56dd": "tokenURI(uint256)",
    "0x4f6ccce7": "tokenByIndex(uint256)",
    "0x2f745c59": "tokenOfOwnerByIndex(address,uint256)",
    "0x01ffc9a7": "supportsInterface(bytes4)",
}

ERC1155_SIGNATURES: Dict[str, str] = {
    "0x00fdd58e": "balanceOf(address,uint256)",
    "0x4e1273f4": "balanceOfBatch(address[],uint256[])",
    "0xf242432a": "safeTransferFrom(address,address,uint256,uint256,bytes)",
    "0x2eb2c2d6": "safeBatchTransferFrom(address,address,uint256[],uint256[],bytes)",
    "0xa22cb465": "setApprovalForAll(address,bool)",
    "0xe985e9c5": "isApprovedForAll(address,address)",
    "0x0e89341c": "uri(uint256)",
    "0x01ffc9a7": "supportsInterface(bytes4)",
}

PROXY_SIGNATURES: Dict[str, str] = {
    # EIP-1967 / Transparent
    "0x5c60da1b": "implementation()",
    "0x3659cfe6": "upgradeTo(address)",
    "0x4f1ef286": "upgradeToAndCall(address,bytes)",
    "0xf851a440": "admin()",
    "0x8f283970": "changeAdmin(address)",
    # UUPS (EIP-1822)
    "0x52d1902d": "proxiableUUID()",
    # Beacon
    "0x59659e90": "beacon()",
    # Diamond (EIP-2535)
    "0xcdffacc6": "facetAddress(bytes4)",
    "0x52ef6b2c": "facetAddresses()",
    "0xadfca15e": "facetFunctionSelectors(address)",
    "0x7a0ed627": "facets()",
    "0x1f931c1c": "diamondCut((address,uint8,bytes4[])[],address,bytes)",
}

SECURITY_SIGNATURES: Dict[str, str] = {
    # Ownable
    "0x8da5cb5b": "owner()",
    "0xf2fde38b": "transferOwnership(address)",
    "0x715018a6": "renounceOwnership()",
    # Pausable
    "0x8456cb59": "pause()",
    "0x3f4ba83a": "unpause()",
    "0x5c975abb": "paused()",
    # AccessControl
    "0x248a9ca3": "getRoleAdmin(bytes32)",
    "0x2f2ff15d": "grantRole(bytes32,address)",
    "0xd547741f": "revokeRole(bytes32,address)",
    "0x91d14854": "hasRole(bytes32,address)",
    "0x36568abe": "renounceRole(bytes32,address)",
    # ReentrancyGuard（部分实现会暴露该函数）
    "0x129ea136": "nonReentrant()",
    # 多签钱包
    "0xc6427474": "submitTransaction(address,uint256,bytes)",
    "0xc01a8c84": "confirmTransaction(uint256)",
    "0xee22610b": "executeTransaction(uint256)",
    "0x20ea8d86": "revokeConfirmation(uint256)",
}

DEFI_SIGNATURES: Dict[str, str] = {
    # Uniswap V2
    "0x022c0d9f": "swap(uint256,uint256,address,bytes)",
    "0xe8e33700": "addLiquidity(address,address,uint256,uint256,uint256,uint256,address,uint256)",
    "0xbaa2abde": "removeLiquidity(address,address,uint256,uint256,uint256,address,uint256)",
    "0x7ff36ab5": "swapExactETHForTokens(uint256,address[],address,uint256)",
    "0x18cbafe5": "swapExactTokensForETH(uint256,uint256,address[],address,uint256)",
    "0x38ed1739": "swapExactTokensForTokens(uint256,uint256,address[],address,uint256)",
    # Uniswap V3
    "0x414bf389": "exactInputSingle((address,address,uint24,address,uint256,uint256,uint256,uint160))",
    "0xc04b8d59": "exactInput((bytes,address,uint256,uint256,uint256))",
    # Compound
    "0xa0712d68": "mint(uint256)",
    "0xdb006a75": "redeem(uint256)",
    "0x852a12e3": "redeemUnderlying(uint256)",
    "0xc5ebeaec": "borrow(uint256)",
    "0x0e752702": "repayBorrow(uint256)",
    "0xf5e3c462": "liquidateBorrow(address,uint256,address)",
    # Aave
    "0xe8eda9df": "deposit(address,uint256,address,uint16)",
    "0x69328dec": "withdraw(address,uint256,address)",
    "0xa415bcad": "borrow(address,uint256,uint256,uint16,address)",
    "0x573ade81": "repay(address,uint256,uint256,address)",
    "0xab9c4b5d": "flashLoan(address,address[],uint256[],uint256[],address,bytes,uint16)",
}

GAS_OPTIMIZATION_SIGNATURES: Dict[str, str] = {
    "0x88d695b2": "batchTransfer(address[],uint256[])",
    "0xac9650d8": "multicall(bytes[])",
    "0x5ae401dc": "multicall(uint256,bytes[])",
}


# 注册顺序即优先级：同一选择器出现在多个表中时，先注册的分类生效
# （balanceOf 归为 ERC20，supportsInterface 归为 ERC721）
_REGISTRATION_ORDER: List[Tuple[Dict[str, str], SignatureCategory, Optional[str]]] = [
    (ERC20_SIGNATURES, SignatureCategory.ERC20, "ERC-20"),
    (ERC721_SIGNATURES, SignatureCategory.ERC721, "ERC-721"),
    (ERC1155_SIGNATURES, SignatureCategory.ERC1155, "ERC-1155"),
    (PROXY_SIGNATURES, SignatureCategory.PROXY, None),
    (SECURITY_SIGNATURES, SignatureCategory.SECURITY, None),
    (DEFI_SIGNATURES, SignatureCategory.DEFI, None),
    (GAS_OPTIMIZATION_SIGNATURES, SignatureCategory.GAS_OPTIMIZATION, None),
]


def _build_dictionary() -> Mapping[str, SignatureEntry]:
    entries: Dict[str, SignatureEntry] = {}
    for table, category, standard in _REGISTRATION_ORDER:
        for selector, name in table.items():
            selector = selector.lower()
            if selector in entries:
                continue
            entries[selector] = SignatureEntry(
                selector=selector,
                name=name,
                category=category,
                standard=standard,
            )
    return MappingProxyType(entries)


SIGNATURE_DICTIONARY: Mapping[str, SignatureEntry] = _build_dictionary()

# 字典插入顺序，用于置信度相同时的稳定排序
DICTIONARY_ORDER: Mapping[str, int] = MappingProxyType(
    {selector: index for index, selector in enumerate(SIGNATURE_DICTIONARY)}
)


def get_signature(selector: str) -> Optional[SignatureEntry]:
    """获取签名条目

    Args:
        selector: 0x开头的8字符选择器（大小写不敏感）

    Returns:
        SignatureEntry，未收录返回None
    """
    if not selector:
        return None
    selector = selector.lower()
    if not selector.startswith("0x"):
        selector = "0x" + selector
    return SIGNATURE_DICTIONARY.get(selector)


def get_signature_name(selector: str) -> str:
    """获取函数名，未收录时返回选择器本身"""
    entry = get_signature(selector)
    return entry.name if entry else selector


def signatures_by_category(category: SignatureCategory) -> List[SignatureEntry]:
    """按分类列出签名"""
    return [e for e in SIGNATURE_DICTIONARY.values() if e.category == category]
