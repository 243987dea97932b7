"""
Chain registry with RPC endpoint failover.

ChainListCache downloads the public chain list (chainid.network) and keeps
the filtered chain descriptors in memory. ChainRegistry resolves chain ids
against that cache and opens a Web3Client on the first endpoint that answers
a block-number query.

File: txinsight/engine/chain_registry.py
"""

import asyncio
import functools
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import aiohttp
from pydantic import ValidationError

from ..settings import get_settings
from ..shared.constants import (
    CUSTOM_CHAINS,
    RPC_ALLOWED_SCHEMES,
    RPC_DENYLIST,
    RPC_PLACEHOLDER_MARKERS,
)
from ..shared.exceptions import (
    AllEndpointsFailedError,
    ChainListFetchError,
    ChainNotFoundError,
    NoEndpointsError,
)
from ..shared.schemas import ChainConfig
from .web3_client import Web3Client, create_web3_client

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, int], Web3Client]


# =============================================================================
# ENDPOINT FILTERING
# =============================================================================

def is_usable_rpc_url(url: str) -> bool:
    """
    Check whether an RPC URL can be used without further configuration.

    Rejects non-HTTP(S) transports, templated URLs whose API key was never
    filled in, and the denylisted public relays.
    """
    if not url.startswith(RPC_ALLOWED_SCHEMES):
        return False
    if any(marker in url for marker in RPC_PLACEHOLDER_MARKERS):
        return False
    if any(blocked in url for blocked in RPC_DENYLIST):
        return False
    return True


def filter_rpc_urls(urls: Iterable[str]) -> List[str]:
    """Drop unusable and duplicate endpoints, keeping the original order."""
    usable: List[str] = []
    for url in urls:
        if url not in usable and is_usable_rpc_url(url):
            usable.append(url)
    return usable


# =============================================================================
# CHAIN LIST CACHE
# =============================================================================

class ChainListCache:
    """
    In-memory cache of chain descriptors.

    The first lookup of an unknown chain downloads the list and keeps only
    that chain. refresh() downloads the list and replaces the whole cache,
    dropping chains that have no usable endpoint. Loads within one event loop
    happen under an asyncio.Lock so concurrent first lookups share a single
    download. Each event loop gets its own lock, so a cache can outlive the
    loop that first used it (successive asyncio.run calls).
    """

    def __init__(
        self,
        source_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        custom_chains: Optional[List[Dict[str, Any]]] = None,
    ):
        settings = get_settings()
        self.source_url = source_url or settings.chainlist_url
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.chainlist_timeout_seconds
        )
        self.custom_chains = list(CUSTOM_CHAINS if custom_chains is None else custom_chains)

        self._chains: Dict[int, ChainConfig] = {}
        self._fully_loaded = False
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None

    def __len__(self) -> int:
        return len(self._chains)

    def __contains__(self, chain_id: int) -> bool:
        return chain_id in self._chains

    def _get_lock(self) -> asyncio.Lock:
        """Lock for the running event loop, created on first use in that loop."""
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    @property
    def chains(self) -> Dict[int, ChainConfig]:
        """Snapshot of the cached chains."""
        return dict(self._chains)

    async def get(self, chain_id: int) -> Optional[ChainConfig]:
        """
        Look up a chain, downloading the list on a cache miss.

        Args:
            chain_id: EIP-155 chain identifier

        Returns:
            ChainConfig, or None if the registry does not know the chain
        """
        async with self._get_lock():
            chain = self._chains.get(chain_id)
            if chain is not None or self._fully_loaded:
                return chain

            descriptors = await self._fetch_chain_list()
            scoped = self._build_chains(descriptors, scope=chain_id)
            self._chains.update(scoped)

            chain = self._chains.get(chain_id)
            if chain is None:
                logger.warning(f"Chain {chain_id} is not present in the chain list")
            return chain

    async def refresh(self) -> int:
        """
        Download the full chain list and replace the cache contents.

        Returns:
            Number of chains kept after filtering
        """
        async with self._get_lock():
            descriptors = await self._fetch_chain_list()
            self._chains = self._build_chains(descriptors, scope=None)
            self._fully_loaded = True
            logger.info(f"Chain list refreshed: {len(self._chains)} chains with usable endpoints")
            return len(self._chains)

    async def _fetch_chain_list(self) -> List[Dict[str, Any]]:
        """Download raw chain descriptors and append the custom chains."""
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.source_url) as response:
                    if response.status != 200:
                        raise ChainListFetchError(
                            f"Chain list request to {self.source_url} failed with HTTP {response.status}"
                        )
                    payload = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise ChainListFetchError(f"Chain list request to {self.source_url} timed out") from e
        except (aiohttp.ClientError, ValueError) as e:
            raise ChainListFetchError(f"Failed to fetch chain list from {self.source_url}: {e}") from e

        if not isinstance(payload, list):
            raise ChainListFetchError("Chain list payload is not a JSON array")

        logger.debug(f"Fetched {len(payload)} chain descriptors from {self.source_url}")
        return payload + self.custom_chains

    def _build_chains(
        self,
        descriptors: List[Dict[str, Any]],
        scope: Optional[int],
    ) -> Dict[int, ChainConfig]:
        """
        Parse and filter raw descriptors.

        Args:
            descriptors: Raw chain list entries
            scope: Keep only this chain id (None keeps every chain that has endpoints)

        Returns:
            Chains keyed by chain id; later descriptors win on duplicate ids
        """
        chains: Dict[int, ChainConfig] = {}
        for descriptor in descriptors:
            if not isinstance(descriptor, dict):
                continue
            if scope is not None and descriptor.get('chainId') != scope:
                continue

            try:
                chain = ChainConfig.model_validate(descriptor)
            except ValidationError as e:
                logger.debug(f"Skipping malformed chain descriptor {descriptor.get('chainId')}: {e}")
                continue

            chain = chain.with_rpc(filter_rpc_urls(chain.rpc))
            if scope is None and not chain.rpc:
                continue
            chains[chain.chain_id] = chain
        return chains


# =============================================================================
# CHAIN REGISTRY
# =============================================================================

class ChainRegistry:
    """
    Resolves chains and connects to a live RPC endpoint.

    Endpoints are tried strictly in registry order, one at a time.
    """

    def __init__(
        self,
        cache: ChainListCache,
        client_factory: Optional[ClientFactory] = None,
    ):
        """
        Initialize the registry.

        Args:
            cache: Chain list cache shared across requests
            client_factory: Builds an unchecked client for (rpc_url, chain_id)
        """
        self.cache = cache
        if client_factory is None:
            client_factory = functools.partial(
                create_web3_client,
                timeout_seconds=get_settings().rpc_timeout_seconds,
            )
        self.client_factory = client_factory
        self.logger = logging.getLogger('txinsight.engine.chain.registry')

    async def resolve(self, chain_id: int) -> Optional[ChainConfig]:
        """Return the chain descriptor, or None if the chain is unknown."""
        return await self.cache.get(chain_id)

    async def connect(self, chain_id: int) -> Web3Client:
        """
        Open a client on the first endpoint that answers a block-number query.

        Raises:
            ChainNotFoundError: Chain is not in the registry
            NoEndpointsError: Chain has no usable endpoint
            AllEndpointsFailedError: Every endpoint failed its liveness check
        """
        chain = await self.resolve(chain_id)
        if chain is None:
            raise ChainNotFoundError(chain_id)
        if not chain.rpc:
            raise NoEndpointsError(chain_id)

        failures: List[Tuple[str, str]] = []
        for rpc_url in chain.rpc:
            try:
                client = self.client_factory(rpc_url, chain_id)
                block_number = await client.get_block_number()
            except Exception as e:
                reason = str(e) or type(e).__name__
                self.logger.warning(f"RPC {rpc_url} failed for chain {chain_id}: {reason}")
                failures.append((rpc_url, reason))
                continue

            self.logger.info(
                f"Connected to {chain.name} ({chain_id}) via {rpc_url} at block {block_number}"
            )
            return client

        self.logger.error(f"All {len(failures)} RPC endpoints failed for chain {chain_id}")
        raise AllEndpointsFailedError(chain_id, failures)
