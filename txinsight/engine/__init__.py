"""
Async Web3 side of transaction analysis.

Chain resolution with endpoint failover, token metadata, log classification
and the analysis pipeline.
"""

from .analyzer import TransactionAnalyzer
from .chain_registry import ChainListCache, ChainRegistry
from .events import LogClassifier
from .token_metadata import TokenMetadataResolver
from .web3_client import Web3Client

__all__ = [
    'ChainListCache',
    'ChainRegistry',
    'LogClassifier',
    'TokenMetadataResolver',
    'TransactionAnalyzer',
    'Web3Client',
]
