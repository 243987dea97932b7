"""
Shared module for transaction analysis.

Schemas, static ABIs, constants and the exception hierarchy used by the
engine and the service entry point.
"""

from .exceptions import (
    AllEndpointsFailedError, ChainListFetchError, ChainNotFoundError,
    ConnectivityError, DecodeError, NoEndpointsError, ResolutionError,
    ShapeMismatch, TransactionNotFoundError, TxInsightError,
)
from .schemas import AnalysisReport, ChainConfig, TokenMetadata, ToolResponse

__all__ = [
    'AllEndpointsFailedError',
    'AnalysisReport',
    'ChainConfig',
    'ChainListFetchError',
    'ChainNotFoundError',
    'ConnectivityError',
    'DecodeError',
    'NoEndpointsError',
    'ResolutionError',
    'ShapeMismatch',
    'TokenMetadata',
    'ToolResponse',
    'TransactionNotFoundError',
    'TxInsightError',
]
