"""
合约分析异常
"""


class BytescopeError(Exception):
    """所有bytescope异常的基类"""


class EmptyBytecodeError(BytescopeError, ValueError):
    """传入分析器的字节码为空（地址上没有合约）"""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"No bytecode at address {address}")


class BytecodeNotFoundError(BytescopeError):
    """eth_getCode返回0x"""

    def __init__(self, address: str, block_identifier: str = "latest"):
        self.address = address
        self.block_identifier = block_identifier
        super().__init__(f"No contract code at {address} (block {block_identifier})")


class SelfComparisonError(BytescopeError, ValueError):
    """合约与自身比较"""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Cannot compare contract {address} with itself")


class DuplicateContractError(SelfComparisonError):
    """比较请求中地址重复"""

    def __init__(self, address: str):
        super().__init__(address)
        self.args = (f"Duplicate contract in comparison request: {address}",)
