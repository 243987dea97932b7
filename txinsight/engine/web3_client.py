"""
Web3 client bound to a single RPC endpoint.

Each client wraps one synchronous Web3 HTTP provider. Calls run in the
default thread-pool executor so callers can fan them out with
``asyncio.gather``. Failover across endpoints lives in ChainRegistry; a
client never switches endpoint on its own.

File: txinsight/engine/web3_client.py
"""

import asyncio
import functools
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Union

from eth_typing import HexStr
from eth_utils import to_checksum_address
from web3 import Web3
from web3.exceptions import BlockNotFound, TransactionNotFound
from web3.middleware import ExtraDataToPOAMiddleware
from web3.types import BlockData, TxData, TxReceipt

logger = logging.getLogger(__name__)


class Web3Client:
    """
    Read-only JSON-RPC client for one endpoint.

    Not-found lookups (transaction, receipt, block) return None instead of
    raising. Every other RPC failure propagates to the caller.
    """

    def __init__(
        self,
        rpc_url: str,
        chain_id: Optional[int] = None,
        timeout_seconds: float = 10.0,
        web3: Optional[Web3] = None,
    ):
        """
        Initialize the client.

        Args:
            rpc_url: HTTP(S) JSON-RPC endpoint
            chain_id: Chain the endpoint serves (used for log naming)
            timeout_seconds: HTTP request timeout
            web3: Pre-built Web3 instance (tests inject a mock here)
        """
        self.rpc_url = rpc_url
        self.chain_id = chain_id
        self.logger = logging.getLogger(f'txinsight.engine.web3.{chain_id or "unknown"}')
        self._web3 = web3 if web3 is not None else self._create_web3(rpc_url, timeout_seconds)

        # Performance tracking
        self._total_requests = 0
        self._failed_requests = 0
        self._total_latency_ms = 0.0

    @staticmethod
    def _create_web3(rpc_url: str, timeout_seconds: float) -> Web3:
        """Create a Web3 instance with POA extra-data support."""
        w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={'timeout': timeout_seconds}))
        # POA chains (BSC, Polygon, ...) return oversized extraData in block headers
        w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        return w3

    async def _execute(self, operation: Callable, *args: Any) -> Any:
        """Run a synchronous Web3 operation in the thread pool."""
        loop = asyncio.get_running_loop()
        self._total_requests += 1
        start_time = time.time()
        try:
            return await loop.run_in_executor(None, functools.partial(operation, *args))
        except Exception:
            self._failed_requests += 1
            raise
        finally:
            self._total_latency_ms += (time.time() - start_time) * 1000

    # ====================
    # BLOCKCHAIN DATA RETRIEVAL
    # ====================

    async def get_block_number(self) -> int:
        """Get the latest block number."""
        def _get_block_number() -> int:
            return self._web3.eth.block_number

        return await self._execute(_get_block_number)

    async def get_transaction(self, tx_hash: HexStr) -> Optional[TxData]:
        """Get transaction data by hash, or None if the endpoint does not know it."""
        try:
            return await self._execute(self._web3.eth.get_transaction, tx_hash)
        except TransactionNotFound:
            self.logger.debug(f"Transaction {tx_hash} not found on {self.rpc_url}")
            return None

    async def get_transaction_receipt(self, tx_hash: HexStr) -> Optional[TxReceipt]:
        """Get the receipt for a mined transaction, or None if still pending."""
        try:
            return await self._execute(self._web3.eth.get_transaction_receipt, tx_hash)
        except TransactionNotFound:
            self.logger.debug(f"Receipt for {tx_hash} not available on {self.rpc_url}")
            return None

    async def get_block(self, block_identifier: Union[int, str, HexStr]) -> Optional[BlockData]:
        """Get block header data by number, hash or tag ('latest')."""
        try:
            return await self._execute(self._web3.eth.get_block, block_identifier)
        except BlockNotFound:
            self.logger.debug(f"Block {block_identifier} not found on {self.rpc_url}")
            return None

    async def get_code(self, address: str) -> bytes:
        """Get deployed bytecode at an address (empty for EOAs)."""
        return await self._execute(self._web3.eth.get_code, to_checksum_address(address))

    async def call_function(
        self,
        contract_address: str,
        abi: List[Dict[str, Any]],
        function_name: str,
        *function_inputs: Any,
    ) -> Any:
        """
        Call a read-only contract function.

        Args:
            contract_address: Contract to call
            abi: ABI containing the function
            function_name: Function to call
            function_inputs: Positional call arguments

        Returns:
            Decoded return value
        """
        def _call_function() -> Any:
            contract = self._web3.eth.contract(address=to_checksum_address(contract_address), abi=abi)
            contract_function = getattr(contract.functions, function_name)
            return contract_function(*function_inputs).call()

        return await self._execute(_call_function)

    def get_performance_stats(self) -> Dict[str, Any]:
        """Request counters for this client."""
        average_latency = (
            self._total_latency_ms / self._total_requests if self._total_requests else 0.0
        )
        return {
            'rpc_url': self.rpc_url,
            'total_requests': self._total_requests,
            'failed_requests': self._failed_requests,
            'average_latency_ms': round(average_latency, 2),
        }

    def __repr__(self) -> str:
        """String representation of Web3Client."""
        return f"Web3Client(chain={self.chain_id}, endpoint={self.rpc_url})"


def create_web3_client(rpc_url: str, chain_id: int, timeout_seconds: float = 10.0) -> Web3Client:
    """
    Default client factory used by ChainRegistry.

    Args:
        rpc_url: Endpoint to bind
        chain_id: Chain served by the endpoint
        timeout_seconds: HTTP request timeout

    Returns:
        Unchecked Web3Client (ChainRegistry performs the liveness check)
    """
    return Web3Client(rpc_url, chain_id=chain_id, timeout_seconds=timeout_seconds)
