"""
字节码分析器

对EVM字节码做静态文本扫描，提取特征：
- 函数选择器提取（PUSH4扫描、分发器比较扫描、跳转表扫描）
- 操作码统计（跳过PUSH数据的线性扫描）
- 编译器元数据（CBOR / IPFS）

三种选择器启发式相互独立，结果取并集。它们允许误报，
由模式分类器按签名库过滤。
"""

from typing import Dict, Optional, Tuple, FrozenSet
import hashlib
import re

from bytescope.contract.contract_model import BytecodeMetadata


# EVM操作码定义
OPCODES = {
    0x00: "STOP",
    0x01: "ADD",
    0x02: "MUL",
    0x03: "SUB",
    0x04: "DIV",
    0x05: "SDIV",
    0x06: "MOD",
    0x07: "SMOD",
    0x08: "ADDMOD",
    0x09: "MULMOD",
    0x0a: "EXP",
    0x0b: "SIGNEXTEND",
    0x10: "LT",
    0x11: "GT",
    0x12: "SLT",
    0x13: "SGT",
    0x14: "EQ",
    0x15: "ISZERO",
    0x16: "AND",
    0x17: "OR",
    0x18: "XOR",
    0x19: "NOT",
    0x1a: "BYTE",
    0x1b: "SHL",
    0x1c: "SHR",
    0x1d: "SAR",
    0x20: "SHA3",
    0x30: "ADDRESS",
    0x31: "BALANCE",
    0x32: "ORIGIN",
    0x33: "CALLER",
    0x34: "CALLVALUE",
    0x35: "CALLDATALOAD",
    0x36: "CALLDATASIZE",
    0x37: "CALLDATACOPY",
    0x38: "CODESIZE",
    0x39: "CODECOPY",
    0x3a: "GASPRICE",
    0x3b: "EXTCODESIZE",
    0x3c: "EXTCODECOPY",
    0x3d: "RETURNDATASIZE",
    0x3e: "RETURNDATACOPY",
    0x3f: "EXTCODEHASH",
    0x40: "BLOCKHASH",
    0x41: "COINBASE",
    0x42: "TIMESTAMP",
    0x43: "NUMBER",
    0x44: "PREVRANDAO",
    0x45: "GASLIMIT",
    0x46: "CHAINID",
    0x47: "SELFBALANCE",
    0x48: "BASEFEE",
    0x50: "POP",
    0x51: "MLOAD",
    0x52: "MSTORE",
    0x53: "MSTORE8",
    0x54: "SLOAD",
    0x55: "SSTORE",
    0x56: "JUMP",
    0x57: "JUMPI",
    0x58: "PC",
    0x59: "MSIZE",
    0x5a: "GAS",
    0x5b: "JUMPDEST",
    0x5c: "TLOAD",
    0x5d: "TSTORE",
    0x5e: "MCOPY",
    0x5f: "PUSH0",
    0xf0: "CREATE",
    0xf1: "CALL",
    0xf2: "CALLCODE",
    0xf3: "RETURN",
    0xf4: "DELEGATECALL",
    0xf5: "CREATE2",
    0xfa: "STATICCALL",
    0xfd: "REVERT",
    0xfe: "INVALID",
    0xff: "SELFDESTRUCT",
}

# PUSH操作码范围
for i in range(32):
    OPCODES[0x60 + i] = f"PUSH{i+1}"

# DUP操作码范围
for i in range(16):
    OPCODES[0x80 + i] = f"DUP{i+1}"

# SWAP操作码范围
for i in range(16):
    OPCODES[0x90 + i] = f"SWAP{i+1}"

# LOG操作码范围
for i in range(5):
    OPCODES[0xa0 + i] = f"LOG{i}"


# 需要在分析结果中标记的操作码
NOTABLE_OPCODES = ("DELEGATECALL", "SELFDESTRUCT", "CREATE", "CREATE2", "CALLCODE")

# PUSH4 <selector>
PUSH4_PATTERN = re.compile(r"63([0-9a-f]{8})")

# DUP1 PUSH1 0x04 CALLDATALOAD (LT|GT|EQ) <selector>
DISPATCHER_PATTERN = re.compile(r"80600435(?:10|11|14)([0-9a-f]{8})")

# JUMPDEST DUP1 PUSH1 0x04 CALLDATALOAD DUPn <selector>
JUMP_TABLE_PATTERN = re.compile(r"5b80600435(?:80|81|82|83)([0-9a-f]{8})")

# CBOR: {"ipfs": bytes(34)}
IPFS_METADATA_PATTERN = re.compile(r"a264697066735822([0-9a-f]{68})")

_HEX_PREFIX = re.compile(r"[0-9a-f]*")


def normalize_bytecode(bytecode: Optional[str]) -> str:
    """去掉0x前缀并转为小写"""
    if not bytecode:
        return ""
    code = bytecode.strip().lower()
    if code.startswith("0x"):
        code = code[2:]
    return code


def is_empty_bytecode(bytecode: Optional[str]) -> bool:
    """None、空串和"0x"都表示地址上没有代码"""
    return normalize_bytecode(bytecode) == ""


def _valid_prefix(code: str) -> str:
    """最长的合法偶数长度十六进制前缀"""
    prefix = _HEX_PREFIX.match(code).group(0)
    return prefix[:len(prefix) - len(prefix) % 2]


def bytecode_size(bytecode: Optional[str]) -> int:
    """字节码大小（字节）"""
    return len(normalize_bytecode(bytecode)) // 2


def bytecode_hash(bytecode: Optional[str]) -> str:
    """字节码的sha256哈希"""
    code = _valid_prefix(normalize_bytecode(bytecode))
    return hashlib.sha256(bytes.fromhex(code)).hexdigest()


def _scan(pattern: "re.Pattern[str]", code: str) -> FrozenSet[str]:
    return frozenset(f"0x{m.group(1)}" for m in pattern.finditer(code))


def scan_push4(code: str) -> FrozenSet[str]:
    """方法1: 查找PUSH4后跟的4字节

    纯文本扫描，PUSH数据中出现的0x63也会被匹配。
    """
    return _scan(PUSH4_PATTERN, normalize_bytecode(code))


def scan_dispatcher(code: str) -> FrozenSet[str]:
    """方法2: Solidity分发器中与calldata选择器比较的常量"""
    return _scan(DISPATCHER_PATTERN, normalize_bytecode(code))


def scan_jump_table(code: str) -> FrozenSet[str]:
    """方法3: JUMPDEST开头的跳转表分发"""
    return _scan(JUMP_TABLE_PATTERN, normalize_bytecode(code))


def extract_selectors(bytecode: Optional[str]) -> FrozenSet[str]:
    """提取候选函数选择器

    Args:
        bytecode: 合约字节码（0x开头的十六进制字符串）

    Returns:
        选择器集合，每个元素为 0x + 8位小写十六进制；
        空字节码返回空集合，非法字符只是不匹配，不会抛异常
    """
    code = normalize_bytecode(bytecode)
    if not code:
        return frozenset()

    return scan_push4(code) | scan_dispatcher(code) | scan_jump_table(code)


def count_opcodes(bytecode: Optional[str]) -> Dict[str, int]:
    """统计操作码"""
    counts: Dict[str, int] = {}
    code = bytes.fromhex(_valid_prefix(normalize_bytecode(bytecode)))
    i = 0
    length = len(code)

    while i < length:
        opcode = code[i]
        opcode_name = OPCODES.get(opcode, f"UNKNOWN_{hex(opcode)}")

        counts[opcode_name] = counts.get(opcode_name, 0) + 1

        # 跳过PUSH数据
        if 0x60 <= opcode <= 0x7f:
            i += opcode - 0x5f

        i += 1

    return counts


def detect_opcode_flags(bytecode: Optional[str]) -> Tuple[str, ...]:
    """返回字节码中实际出现的值得关注的操作码"""
    counts = count_opcodes(bytecode)
    return tuple(op for op in NOTABLE_OPCODES if counts.get(op, 0) > 0)


def parse_metadata(bytecode: Optional[str]) -> BytecodeMetadata:
    """解析Solidity附加的CBOR元数据

    ipfs_hash 为十六进制multihash（1220开头）。
    """
    match = IPFS_METADATA_PATTERN.search(normalize_bytecode(bytecode))
    if not match:
        return BytecodeMetadata()
    return BytecodeMetadata(has_metadata=True, ipfs_hash=match.group(1))
