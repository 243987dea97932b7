"""
Caller-facing entry point for transaction analysis.

Wraps TransactionAnalyzer in a success/error envelope so a conversational
tool layer can call it without handling exceptions.

File: txinsight/service.py
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from .engine.analyzer import TransactionAnalyzer
from .engine.chain_registry import ChainListCache, ChainRegistry
from .shared.schemas import ToolResponse

logger = logging.getLogger(__name__)

# Shared by calls that do not bring their own cache
default_chain_cache = ChainListCache()


async def analyze_transaction_tool(
    transaction_hash: str,
    chain_id: int,
    cache: Optional[ChainListCache] = None,
    registry: Optional[ChainRegistry] = None,
) -> Dict[str, Any]:
    """
    Analyze a transaction and wrap the outcome in an envelope.

    Args:
        transaction_hash: 0x-prefixed transaction hash
        chain_id: EIP-155 chain identifier
        cache: Chain list cache (defaults to the module-level cache)
        registry: Pre-built registry (overrides ``cache``)

    Returns:
        {"success": True, "data": "<report json>"} or {"success": False, "error": "..."}
    """
    try:
        if registry is None:
            registry = ChainRegistry(cache or default_chain_cache)
        report = await TransactionAnalyzer(registry).analyze(transaction_hash, chain_id)
        response = ToolResponse(success=True, data=json.dumps(report.to_json_dict()))
    except Exception as e:
        logger.error(f"Transaction analysis failed for {transaction_hash} on chain {chain_id}: {e}")
        response = ToolResponse(success=False, error=str(e) or type(e).__name__)
    return response.to_json_dict()


def analyze_transaction_tool_sync(
    transaction_hash: str,
    chain_id: int,
    cache: Optional[ChainListCache] = None,
) -> Dict[str, Any]:
    """Synchronous wrapper for callers without a running event loop."""
    return asyncio.run(analyze_transaction_tool(transaction_hash, chain_id, cache=cache))
