"""
Token metadata resolution.

Reads name/symbol/decimals from token contracts. Results are never cached;
every call queries the chain again.

File: txinsight/engine/token_metadata.py
"""

import asyncio
import logging
import time
from typing import Tuple

from eth_utils import to_checksum_address

from ..shared.abis import TOKEN_ABIS
from ..shared.constants import (
    METADATA_ERROR_FAILED,
    METADATA_ERROR_INCOMPLETE,
    TOKEN_TYPE_ERC20,
    TOKEN_TYPE_ERC721,
)
from ..shared.schemas import TokenMetadata
from .web3_client import Web3Client

logger = logging.getLogger(__name__)

# Accessors queried per standard; ERC1155 and unknown standards have none
TOKEN_ACCESSORS = {
    TOKEN_TYPE_ERC20: ('name', 'symbol', 'decimals'),
    TOKEN_TYPE_ERC721: ('name', 'symbol'),
}


class TokenMetadataResolver:
    """Best-effort token metadata lookups that never raise."""

    def __init__(self):
        self.logger = logging.getLogger('txinsight.engine.token_metadata')

    async def resolve(self, client: Web3Client, contract_address: str, standard: str) -> TokenMetadata:
        """
        Resolve metadata for a token contract.

        All accessors for the standard are called concurrently. If any of them
        fails the record carries an error marker and none of the accessor
        fields, never a partial set.

        Args:
            client: Connected client
            contract_address: Token contract
            standard: Declared token standard (ERC20, ERC721, ERC1155)

        Returns:
            TokenMetadata (with ``error`` set on failure)
        """
        timestamp = int(time.time() * 1000)
        try:
            address = to_checksum_address(contract_address)
            accessors: Tuple[str, ...] = TOKEN_ACCESSORS.get(standard, ())
            if not accessors:
                return TokenMetadata(address=address, token_type=standard, timestamp=timestamp)

            abi = TOKEN_ABIS[standard]
            results = await asyncio.gather(
                *(client.call_function(address, abi, accessor) for accessor in accessors),
                return_exceptions=True,
            )

            incomplete = False
            for accessor, result in zip(accessors, results):
                if isinstance(result, Exception):
                    self.logger.warning(f"{standard} {accessor}() failed for {address}: {result}")
                    incomplete = True

            if incomplete:
                return TokenMetadata(
                    address=address,
                    token_type=standard,
                    error=METADATA_ERROR_INCOMPLETE,
                    timestamp=timestamp,
                )

            return TokenMetadata(
                address=address,
                token_type=standard,
                timestamp=timestamp,
                **dict(zip(accessors, results)),
            )

        except Exception as e:
            self.logger.error(f"Failed to fetch {standard} metadata for {contract_address}: {e}")
            return TokenMetadata(
                address=contract_address if isinstance(contract_address, str) else None,
                token_type=standard,
                error=METADATA_ERROR_FAILED,
                timestamp=timestamp,
            )
