"""
Exception hierarchy for transaction analysis.

Resolution and connectivity errors are fatal to an analysis and propagate to
the caller. Decoder errors never leave the events module: a log that cannot
be decoded is demoted to an opaque "other event".

File: txinsight/shared/exceptions.py
"""

from typing import List, Optional, Tuple


class TxInsightError(Exception):
    """Base class for all txinsight errors."""


# =============================================================================
# RESOLUTION ERRORS
# =============================================================================

class ResolutionError(TxInsightError):
    """A chain or transaction could not be resolved."""


class ChainNotFoundError(ResolutionError):
    """Chain identifier is not present in the chain registry."""

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        super().__init__(f"Chain {chain_id} not found")


class TransactionNotFoundError(ResolutionError):
    """Transaction hash is unknown to the connected endpoint."""

    def __init__(self, tx_hash: str, chain_id: Optional[int] = None):
        self.tx_hash = tx_hash
        self.chain_id = chain_id
        super().__init__("Transaction not found")


# =============================================================================
# CONNECTIVITY ERRORS
# =============================================================================

class ConnectivityError(TxInsightError):
    """No usable connection could be established."""


class ChainListFetchError(ConnectivityError):
    """The remote chain registry could not be downloaded or parsed."""


class NoEndpointsError(ConnectivityError):
    """Chain exists but has no usable RPC endpoint after filtering."""

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        super().__init__(f"No RPC endpoints found for chain {chain_id}")


class AllEndpointsFailedError(ConnectivityError):
    """Every candidate RPC endpoint for a chain failed its liveness check."""

    def __init__(self, chain_id: int, failures: List[Tuple[str, str]]):
        self.chain_id = chain_id
        self.failures = failures
        details = ", ".join(f"{url}: {reason}" for url, reason in failures)
        super().__init__(f"All RPCs failed for chain {chain_id}. Errors: {details}")


# =============================================================================
# DECODING ERRORS
# =============================================================================

class DecodeError(TxInsightError):
    """A log matched a known signature but could not be decoded."""


class ShapeMismatch(DecodeError):
    """
    The log's data region is shorter than the candidate ABI expects.

    Raised by a decoder to signal that the next candidate ABI should be tried,
    e.g. an ERC721 Transfer (tokenId in topics) read with the ERC20 layout
    (value in data).
    """
