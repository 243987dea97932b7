"""
Shared schemas for transaction analysis reports.

Models serialize to camelCase JSON (plus the literal ``from``/``to``/``type``
keys consumers expect). Every on-chain integer is carried as decimal text so
the report survives generic JSON serialization without precision loss.

File: txinsight/shared/schemas.py
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from eth_utils import to_hex
from hexbytes import HexBytes
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class ReportModel(BaseModel):
    """Base class for all report models."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> Dict[str, Any]:
        """Return a JSON-safe dict using the public (camelCase) field names."""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


# =============================================================================
# ENUMS
# =============================================================================

class ComplexityLevel(str, Enum):
    """Transaction complexity categories."""
    SIMPLE = "Simple"
    MODERATE = "Moderate"
    COMPLEX = "Complex"
    VERY_COMPLEX = "Very Complex"


class RiskLevel(str, Enum):
    """Heuristic transaction risk levels."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# =============================================================================
# CHAIN CONFIGURATION
# =============================================================================

class NativeCurrency(ReportModel):
    """Native currency of a chain."""

    name: str = Field(..., description="Currency name, e.g. 'Ether'")
    symbol: str = Field(..., description="Currency ticker, e.g. 'ETH'")
    decimals: int = Field(18, description="Base-unit exponent")


class ChainConfig(ReportModel):
    """Chain descriptor as published by the chain registry."""

    model_config = ConfigDict(frozen=True)

    chain_id: int = Field(..., description="EIP-155 chain identifier")
    name: str = Field(..., description="Human readable chain name")
    short_name: Optional[str] = Field(None, description="Registry short name")
    native_currency: NativeCurrency = Field(..., description="Native currency")
    rpc: Tuple[str, ...] = Field(default_factory=tuple, description="Candidate RPC endpoints in priority order")

    @field_validator('rpc', mode='before')
    @classmethod
    def normalize_rpc(cls, v: Any) -> Tuple[str, ...]:
        """Accept plain URL strings or registry objects of the form {"url": ...}."""
        if v is None:
            return ()
        urls = []
        for entry in v:
            if isinstance(entry, dict):
                entry = entry.get('url')
            if isinstance(entry, str) and entry:
                urls.append(entry)
        return tuple(urls)

    def with_rpc(self, rpc: List[str]) -> 'ChainConfig':
        """Return a copy of this config with a replaced endpoint list."""
        return self.model_copy(update={'rpc': tuple(rpc)})


# =============================================================================
# TOKENS AND LOGS
# =============================================================================

class TokenMetadata(ReportModel):
    """Best-effort token metadata. ``error`` is set when any accessor failed."""

    address: Optional[str] = Field(None, description="Token contract address (None for native currency)")
    token_type: str = Field(..., alias='type', description="Declared token standard")
    name: Optional[str] = Field(None, description="Token name")
    symbol: Optional[str] = Field(None, description="Token symbol")
    decimals: Optional[int] = Field(None, description="Token decimals")
    error: Optional[str] = Field(None, description="Error marker when metadata is incomplete")
    timestamp: Optional[int] = Field(None, description="Resolution time, ms since epoch")


class RawLog(ReportModel):
    """Undecoded event log, kept verbatim for downstream interpretation."""

    address: str = Field(..., description="Emitting contract")
    topics: List[str] = Field(default_factory=list, description="0x-prefixed topic hashes")
    data: str = Field('0x', description="0x-prefixed data region")

    @classmethod
    def from_receipt_log(cls, log: Any) -> 'RawLog':
        """Build a RawLog from a web3 receipt log entry (AttributeDict or plain dict)."""
        return cls(
            address=log['address'],
            topics=[to_hex(HexBytes(topic)) for topic in log.get('topics') or []],
            data=to_hex(HexBytes(log.get('data') or b'')),
        )


# =============================================================================
# DECODED EVENTS
# =============================================================================

class DecodedEvent(ReportModel):
    """Base class for a successfully decoded event log."""

    event_name: str = Field(..., description="Event name from the ABI")
    address: str = Field(..., description="Emitting contract")
    signature: str = Field(..., description="Canonical event signature")


class ERC20TransferEvent(DecodedEvent):
    """Transfer(address indexed from, address indexed to, uint256 value)."""

    from_address: str = Field(..., alias='from')
    to_address: str = Field(..., alias='to')
    value: str


class ERC721TransferEvent(DecodedEvent):
    """Transfer(address indexed from, address indexed to, uint256 indexed tokenId)."""

    from_address: str = Field(..., alias='from')
    to_address: str = Field(..., alias='to')
    token_id: str


class TransferSingleEvent(DecodedEvent):
    """ERC1155 TransferSingle."""

    operator: str
    from_address: str = Field(..., alias='from')
    to_address: str = Field(..., alias='to')
    token_id: str = Field(..., alias='id')
    value: str


class TransferBatchEvent(DecodedEvent):
    """ERC1155 TransferBatch."""

    operator: str
    from_address: str = Field(..., alias='from')
    to_address: str = Field(..., alias='to')
    token_ids: List[str] = Field(..., alias='ids')
    amounts: List[str] = Field(..., alias='values')


class GenericEvent(DecodedEvent):
    """Any decoded event that is not a token transfer."""

    args: Dict[str, Any] = Field(default_factory=dict, description="Decoded parameters by name")


AnyDecodedEvent = Union[
    ERC20TransferEvent,
    ERC721TransferEvent,
    TransferSingleEvent,
    TransferBatchEvent,
    GenericEvent,
]


# =============================================================================
# TRANSFER RECORDS
# =============================================================================

class TransferRecord(ReportModel):
    """Common fields of every transfer record."""

    token: TokenMetadata
    from_address: str = Field(..., alias='from')
    to_address: str = Field(..., alias='to')


class NativeTransfer(TransferRecord):
    token_type: Literal['Native'] = 'Native'
    value: str = Field(..., description="Amount in display units")


class ERC20Transfer(TransferRecord):
    token_type: Literal['ERC20'] = 'ERC20'
    value: str = Field(..., description="Amount in display units")


class ERC721Transfer(TransferRecord):
    token_type: Literal['ERC721'] = 'ERC721'
    token_id: str


class ERC1155SingleTransfer(TransferRecord):
    token_type: Literal['ERC1155'] = 'ERC1155'
    operator: str
    token_id: str
    value: str = Field(..., description="Amount in base units")


class ERC1155BatchTransfer(TransferRecord):
    token_type: Literal['ERC1155'] = 'ERC1155'
    operator: str
    token_ids: List[str]
    amounts: List[str]

    @model_validator(mode='after')
    def check_parallel_lists(self) -> 'ERC1155BatchTransfer':
        if len(self.token_ids) != len(self.amounts):
            raise ValueError(
                f"tokenIds and amounts differ in length ({len(self.token_ids)} != {len(self.amounts)})"
            )
        return self


AnyTransfer = Union[
    NativeTransfer,
    ERC20Transfer,
    ERC721Transfer,
    ERC1155SingleTransfer,
    ERC1155BatchTransfer,
]


# =============================================================================
# ANALYSIS REPORT
# =============================================================================

class SecurityObservation(ReportModel):
    observation_type: str = Field(..., alias='type', description="Severity, e.g. 'Warning'")
    message: str
    address: Optional[str] = None


class NetworkInfo(ReportModel):
    name: str
    chain_id: int
    currency: str
    block_number: Optional[int] = None
    block_timestamp: str = 'unknown'
    average_gas_price: Optional[str] = Field(None, description="Mean base fee of recent blocks in gwei")


class TransactionInfo(ReportModel):
    hash: str
    from_address: str = Field(..., alias='from')
    to_address: Optional[str] = Field(None, alias='to')
    value: str = Field(..., description="Value in native display units")
    nonce: Optional[int] = None
    status: str
    gas_used: Optional[str] = None
    gas_price: str = 'unknown'
    max_fee_per_gas: Optional[str] = None
    max_priority_fee_per_gas: Optional[str] = None
    total_cost: str = 'unknown'
    function_selector: Optional[str] = None


class AnalysisSummary(ReportModel):
    total_transfers: int
    unique_tokens: int
    unique_contracts: int
    complexity_score: ComplexityLevel
    risk_level: RiskLevel


class AnalysisReport(ReportModel):
    """Full classified description of one transaction."""

    network: NetworkInfo
    transaction: TransactionInfo
    action_types: List[str] = Field(default_factory=list)
    transfers: List[AnyTransfer] = Field(default_factory=list)
    actions: List[GenericEvent] = Field(default_factory=list)
    interactions: List[str] = Field(default_factory=list)
    security_info: List[SecurityObservation] = Field(default_factory=list)
    other_events: List[RawLog] = Field(default_factory=list)
    summary: AnalysisSummary


class ToolResponse(ReportModel):
    """Envelope returned to the conversational layer."""

    success: bool
    data: Optional[str] = Field(None, description="Serialized AnalysisReport (JSON text)")
    error: Optional[str] = None
