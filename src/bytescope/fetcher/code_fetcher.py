"""
合约字节码采集器

负责从以太坊网络获取合约运行时字节码
支持：
- 单地址获取（eth_getCode）
- 批量获取（逐个地址、失败互不影响）
"""

import time
from dataclasses import dataclass, field as dc_field
from typing import Dict, List, Optional, Sequence, Union
import logging

from dotenv import load_dotenv
from eth_utils import to_checksum_address
from web3 import Web3
from web3.exceptions import Web3Exception

from bytescope.config.settings import settings
from bytescope.contract.errors import BytecodeNotFoundError

load_dotenv()
logger = logging.getLogger(__name__)


PUBLIC_RPCS = [
    "https://eth.llamarpc.com",
    "https://rpc.ankr.com/eth",
    "https://ethereum.publicnode.com",
    "https://1rpc.io/eth",
]

CHAIN_NAMES = {
    1: "mainnet",
    17000: "holesky",
    11155111: "sepolia",
}

BlockIdentifier = Union[str, int]

# RPC不可达或节点返回错误（requests的异常均为OSError子类）
TRANSPORT_ERRORS = (OSError, Web3Exception)


@dataclass
class FetchReport:
    """批量采集结果，成功与失败分开保存"""
    bytecodes: Dict[str, str] = dc_field(default_factory=dict)
    failures: Dict[str, str] = dc_field(default_factory=dict)   # 地址 -> 原因
    fetch_time_ms: float = 0.0

    @property
    def failed_addresses(self) -> List[str]:
        return list(self.failures.keys())

    @property
    def success_count(self) -> int:
        return len(self.bytecodes)


class CodeFetcher:
    """字节码采集器"""

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        requests_per_second: Optional[int] = None,
        timeout: Optional[int] = None,
        w3: Optional[Web3] = None
    ):
        """初始化采集器

        Args:
            rpc_url: RPC端点URL，为空时依次尝试公共端点
            requests_per_second: 每秒最大请求数（用于速率限制）
            timeout: HTTP超时（秒）
            w3: 已构建的Web3实例（测试时注入）
        """
        self.rpc_url = rpc_url or settings.eth_rpc_url or None
        self.timeout = timeout or settings.rpc_timeout_seconds
        self._w3 = w3

        rate = requests_per_second or settings.rpc_requests_per_second
        self.request_interval = 1.0 / rate
        self.last_request_time = 0.0

    @property
    def w3(self) -> Web3:
        if self._w3 is None:
            self._w3 = self._connect()
        return self._w3

    def _provider(self, url: str) -> Web3:
        return Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": self.timeout}))

    def _connect(self) -> Web3:
        if self.rpc_url:
            return self._provider(self.rpc_url)

        # 尝试公共端点
        for rpc in PUBLIC_RPCS:
            w3 = self._provider(rpc)
            if w3.is_connected():
                self.rpc_url = rpc
                logger.info(f"Connected to public RPC {rpc}")
                return w3
            logger.warning(f"Public RPC unreachable: {rpc}")

        # 使用第一个作为默认
        self.rpc_url = PUBLIC_RPCS[0]
        return self._provider(self.rpc_url)

    def _rate_limit(self):
        """速率限制"""
        now = time.time()
        elapsed = now - self.last_request_time
        if elapsed < self.request_interval:
            time.sleep(self.request_interval - elapsed)
        self.last_request_time = time.time()

    def network_name(self) -> str:
        """当前链的名称，未知链返回 chain-<id>"""
        self._rate_limit()
        chain_id = self.w3.eth.chain_id
        return CHAIN_NAMES.get(chain_id, f"chain-{chain_id}")

    def get_code(
        self,
        address: str,
        block_identifier: Optional[BlockIdentifier] = None
    ) -> str:
        """获取合约字节码

        Args:
            address: 合约地址
            block_identifier: 区块号或标签，默认取配置

        Returns:
            0x开头的十六进制字节码

        Raises:
            ValueError: 地址格式非法
            BytecodeNotFoundError: 地址上没有代码（EOA或已销毁）
        """
        block_identifier = block_identifier or settings.default_block_tag
        checksum = to_checksum_address(address)

        self._rate_limit()
        code = self.w3.eth.get_code(checksum, block_identifier=block_identifier)

        bytecode = "0x" + bytes(code).hex()
        if bytecode == "0x":
            raise BytecodeNotFoundError(address, block_identifier)

        logger.debug(f"Fetched {len(code)} bytes of code for {checksum}")
        return bytecode

    def fetch_many(
        self,
        addresses: Sequence[str],
        block_identifier: Optional[BlockIdentifier] = None
    ) -> FetchReport:
        """批量获取字节码，单个地址失败只记录不中断

        Args:
            addresses: 合约地址列表
            block_identifier: 区块号或标签

        Returns:
            FetchReport对象（以传入的地址为键）
        """
        start_time = time.time()
        report = FetchReport()

        for address in addresses:
            try:
                report.bytecodes[address] = self.get_code(address, block_identifier)
            except BytecodeNotFoundError as e:
                logger.warning(str(e))
                report.failures[address] = str(e)
            except Exception as e:
                logger.error(f"Failed to fetch code for {address}: {e}")
                report.failures[address] = str(e)

        report.fetch_time_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Fetched {report.success_count}/{len(addresses)} contracts "
            f"in {report.fetch_time_ms:.0f}ms"
        )
        return report
