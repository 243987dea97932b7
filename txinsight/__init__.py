"""
txinsight: classified analysis of EVM transactions.

Resolves a chain from the public chain list, connects to a live RPC
endpoint, decodes the transaction's receipt logs and produces a structured
report of transfers, contract actions and heuristic risk scores.
"""

import logging

from .service import analyze_transaction_tool, analyze_transaction_tool_sync

__version__ = "1.0.0"

logger = logging.getLogger(__name__)

__all__ = [
    'analyze_transaction_tool',
    'analyze_transaction_tool_sync',
]
