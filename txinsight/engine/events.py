"""
Receipt log decoding and classification.

EventDecoder turns a raw log into a typed DecodedEvent for one ABI set.
DecoderChain tries several decoders in order, moving on only when a log's
data region is too short for the candidate layout (ERC20 vs ERC721 Transfer
share a topic0). LogClassifier walks a receipt and sorts each log into
transfers, named actions or opaque other events.

File: txinsight/engine/events.py
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError, InsufficientDataBytes
from eth_utils import keccak, to_checksum_address, to_hex
from hexbytes import HexBytes

from ..settings import get_settings
from ..shared.abis import ERC721_EVENTS_ABI, EVENTS_ABI
from ..shared.constants import (
    ACTION_NFT_TRANSFER,
    ACTION_TOKEN_TRANSFER,
    DEFAULT_TOKEN_DECIMALS,
    TOKEN_TYPE_ERC20,
    TOKEN_TYPE_ERC721,
    TOKEN_TYPE_ERC1155,
)
from ..shared.exceptions import DecodeError, ShapeMismatch
from ..shared.schemas import (
    AnyDecodedEvent,
    AnyTransfer,
    DecodedEvent,
    ERC20Transfer,
    ERC20TransferEvent,
    ERC721Transfer,
    ERC721TransferEvent,
    ERC1155BatchTransfer,
    ERC1155SingleTransfer,
    GenericEvent,
    RawLog,
    TransferBatchEvent,
    TransferSingleEvent,
)
from .token_metadata import TokenMetadataResolver
from .utils import format_units, topic_to_address
from .web3_client import Web3Client

logger = logging.getLogger(__name__)


# =============================================================================
# ABI HELPERS
# =============================================================================

def event_signature(event_abi: Dict[str, Any]) -> str:
    """Canonical signature, e.g. 'Transfer(address,address,uint256)'."""
    types = ','.join(param['type'] for param in event_abi['inputs'])
    return f"{event_abi['name']}({types})"


def event_topic(event_abi: Dict[str, Any]) -> str:
    """Topic0 hash for a non-anonymous event."""
    return to_hex(keccak(text=event_signature(event_abi)))


def _is_dynamic_type(abi_type: str) -> bool:
    return abi_type in ('string', 'bytes') or abi_type.endswith(']') or abi_type.startswith('(')


def normalize_abi_value(abi_type: str, value: Any) -> Any:
    """
    Convert a decoded ABI value to its JSON-safe report form.

    Integers become decimal text, byte strings 0x-hex, addresses checksummed.
    """
    if abi_type.endswith(']'):
        base_type = abi_type[:abi_type.rindex('[')]
        return [normalize_abi_value(base_type, item) for item in value]
    if abi_type == 'address':
        return to_checksum_address(value)
    if abi_type.startswith(('uint', 'int')):
        return str(value)
    if abi_type.startswith('bytes'):
        return to_hex(value)
    return value


# Typed variants keyed by (event name, indexed flags of its inputs)
EVENT_VARIANTS: Dict[Tuple[str, Tuple[bool, ...]], Type[DecodedEvent]] = {
    ('Transfer', (True, True, False)): ERC20TransferEvent,
    ('Transfer', (True, True, True)): ERC721TransferEvent,
    ('TransferSingle', (True, True, True, False, False)): TransferSingleEvent,
    ('TransferBatch', (True, True, True, False, False)): TransferBatchEvent,
}


# =============================================================================
# DECODERS
# =============================================================================

class EventDecoder:
    """Decodes logs whose topic0 matches an event in one ABI list."""

    def __init__(self, abi: Sequence[Dict[str, Any]], name: str = 'events'):
        self.name = name
        self._events: Dict[str, Dict[str, Any]] = {}
        for entry in abi:
            if entry.get('type') == 'event' and not entry.get('anonymous', False):
                self._events[event_topic(entry)] = entry

    def decode(self, log: RawLog) -> Optional[AnyDecodedEvent]:
        """
        Decode a log against this decoder's ABI.

        Returns:
            Typed event, or None if topic0 matches no known event

        Raises:
            ShapeMismatch: Data region shorter than the event layout needs
            DecodeError: Too few topics or invalid encoding
        """
        if not log.topics:
            return None
        event_abi = self._events.get(log.topics[0].lower())
        if event_abi is None:
            return None

        signature = event_signature(event_abi)
        inputs = event_abi['inputs']
        indexed_inputs = [param for param in inputs if param.get('indexed')]
        data_inputs = [param for param in inputs if not param.get('indexed')]

        if len(log.topics) - 1 < len(indexed_inputs):
            raise DecodeError(
                f"{signature} needs {len(indexed_inputs)} indexed topics, log has {len(log.topics) - 1}"
            )

        args: Dict[str, Any] = {}
        try:
            for param, topic in zip(indexed_inputs, log.topics[1:]):
                args[param['name']] = self._decode_topic(param['type'], topic)
        except (DecodingError, ValueError, TypeError) as e:
            raise DecodeError(f"{signature}: invalid indexed topic ({e})") from e

        try:
            data_values = abi_decode([param['type'] for param in data_inputs], HexBytes(log.data))
        except InsufficientDataBytes as e:
            raise ShapeMismatch(f"{signature}: data region too short ({e})") from e
        except (DecodingError, ValueError, TypeError) as e:
            raise DecodeError(f"{signature}: invalid data region ({e})") from e

        for param, value in zip(data_inputs, data_values):
            args[param['name']] = normalize_abi_value(param['type'], value)

        address = to_checksum_address(log.address)
        pattern = tuple(bool(param.get('indexed')) for param in inputs)
        variant = EVENT_VARIANTS.get((event_abi['name'], pattern))
        if variant is None:
            return GenericEvent(event_name=event_abi['name'], address=address, signature=signature, args=args)
        return variant(event_name=event_abi['name'], address=address, signature=signature, **args)

    @staticmethod
    def _decode_topic(abi_type: str, topic: str) -> Any:
        # Indexed dynamic values are stored as their keccak hash
        if _is_dynamic_type(abi_type):
            return topic
        (value,) = abi_decode([abi_type], HexBytes(topic))
        return normalize_abi_value(abi_type, value)


class DecoderChain:
    """Ordered decoder candidates; a ShapeMismatch moves on to the next one."""

    def __init__(self, decoders: Sequence[EventDecoder]):
        self.decoders = list(decoders)

    def decode(self, log: RawLog) -> Optional[AnyDecodedEvent]:
        """Return the first successful decode, or None on decode failure."""
        for decoder in self.decoders:
            try:
                return decoder.decode(log)
            except ShapeMismatch as e:
                logger.debug(f"{decoder.name} decoder shape mismatch for log from {log.address}: {e}")
            except DecodeError as e:
                logger.debug(f"{decoder.name} decoder failed for log from {log.address}: {e}")
                return None
        return None


def build_default_decoder_chain() -> DecoderChain:
    """Multi-standard event ABI first, ERC721 indexed-tokenId layout as fallback."""
    return DecoderChain([
        EventDecoder(EVENTS_ABI, name='events'),
        EventDecoder(ERC721_EVENTS_ABI, name='erc721_events'),
    ])


# =============================================================================
# CLASSIFICATION
# =============================================================================

@dataclass
class ClassifiedEvents:
    """Everything extracted from one receipt's logs."""

    contract_interactions: List[str] = field(default_factory=list)
    transfers: List[AnyTransfer] = field(default_factory=list)
    actions: List[GenericEvent] = field(default_factory=list)
    other_events: List[RawLog] = field(default_factory=list)
    action_types: List[str] = field(default_factory=list)

    def add_interaction(self, address: str):
        if address not in self.contract_interactions:
            self.contract_interactions.append(address)


class LogClassifier:
    """
    Sorts receipt logs into transfers, actions and other events.

    Logs are processed one at a time in receipt order. Token metadata is
    resolved for each transfer as it is found.
    """

    def __init__(
        self,
        metadata_resolver: Optional[TokenMetadataResolver] = None,
        decoder_chain: Optional[DecoderChain] = None,
        strict_transfers: Optional[bool] = None,
    ):
        """
        Initialize the classifier.

        Args:
            metadata_resolver: Token metadata source
            decoder_chain: Decoder candidates (defaults to the built-in ABIs)
            strict_transfers: Keep Transfer logs with an unexpected topic
                count as other events instead of dropping them
        """
        self.metadata_resolver = metadata_resolver or TokenMetadataResolver()
        self.decoder_chain = decoder_chain or build_default_decoder_chain()
        if strict_transfers is None:
            strict_transfers = get_settings().strict_transfers
        self.strict_transfers = strict_transfers
        self.logger = logging.getLogger('txinsight.engine.events')

    async def classify(self, receipt: Any, client: Web3Client) -> ClassifiedEvents:
        """
        Classify every log in a receipt.

        Args:
            receipt: Transaction receipt (web3 AttributeDict or plain dict)
            client: Connected client used for token metadata

        Returns:
            ClassifiedEvents
        """
        start_time = time.time()
        result = ClassifiedEvents()
        receipt_logs = (receipt.get('logs') if receipt else None) or []

        for receipt_log in receipt_logs:
            await self._process_log(RawLog.from_receipt_log(receipt_log), client, result)

        elapsed_ms = (time.time() - start_time) * 1000
        self.logger.debug(
            f"Processed {len(receipt_logs)} logs in {elapsed_ms:.1f}ms: "
            f"{len(result.transfers)} transfers, {len(result.actions)} actions, "
            f"{len(result.other_events)} other"
        )
        return result

    async def _process_log(self, log: RawLog, client: Web3Client, result: ClassifiedEvents):
        result.add_interaction(to_checksum_address(log.address))

        event = self.decoder_chain.decode(log)
        if event is None:
            result.other_events.append(log)
            return

        if isinstance(event, ERC20TransferEvent):
            if len(log.topics) == 3:
                await self._add_erc20_transfer(log, event, client, result)
            else:
                self._skip_malformed_transfer(log, event, result)

        elif isinstance(event, ERC721TransferEvent):
            if len(log.topics) == 4:
                await self._add_erc721_transfer(event, client, result)
            else:
                self._skip_malformed_transfer(log, event, result)

        elif isinstance(event, TransferSingleEvent):
            token = await self.metadata_resolver.resolve(client, event.address, TOKEN_TYPE_ERC1155)
            result.transfers.append(ERC1155SingleTransfer(
                token=token,
                from_address=event.from_address,
                to_address=event.to_address,
                operator=event.operator,
                token_id=event.token_id,
                value=event.value,
            ))
            result.action_types.append(ACTION_NFT_TRANSFER)

        elif isinstance(event, TransferBatchEvent):
            if len(event.token_ids) != len(event.amounts):
                self.logger.warning(
                    f"TransferBatch from {log.address} has {len(event.token_ids)} ids "
                    f"and {len(event.amounts)} values"
                )
                result.other_events.append(log)
                return
            token = await self.metadata_resolver.resolve(client, event.address, TOKEN_TYPE_ERC1155)
            result.transfers.append(ERC1155BatchTransfer(
                token=token,
                from_address=event.from_address,
                to_address=event.to_address,
                operator=event.operator,
                token_ids=event.token_ids,
                amounts=event.amounts,
            ))
            result.action_types.append(ACTION_NFT_TRANSFER)

        else:
            result.actions.append(event)
            result.action_types.append(event.event_name)

    async def _add_erc20_transfer(
        self,
        log: RawLog,
        event: ERC20TransferEvent,
        client: Web3Client,
        result: ClassifiedEvents,
    ):
        token = await self.metadata_resolver.resolve(client, event.address, TOKEN_TYPE_ERC20)
        decimals = token.decimals if token.decimals is not None else DEFAULT_TOKEN_DECIMALS
        result.transfers.append(ERC20Transfer(
            token=token,
            from_address=to_checksum_address(topic_to_address(log.topics[1])),
            to_address=to_checksum_address(topic_to_address(log.topics[2])),
            value=format_units(event.value, decimals),
        ))
        result.action_types.append(ACTION_TOKEN_TRANSFER)

    async def _add_erc721_transfer(
        self,
        event: ERC721TransferEvent,
        client: Web3Client,
        result: ClassifiedEvents,
    ):
        token = await self.metadata_resolver.resolve(client, event.address, TOKEN_TYPE_ERC721)
        result.transfers.append(ERC721Transfer(
            token=token,
            from_address=event.from_address,
            to_address=event.to_address,
            token_id=event.token_id,
        ))
        result.action_types.append(ACTION_NFT_TRANSFER)

    def _skip_malformed_transfer(self, log: RawLog, event: DecodedEvent, result: ClassifiedEvents):
        # Transfer whose topic count does not match its decoded layout
        if self.strict_transfers:
            result.other_events.append(log)
            return
        self.logger.debug(
            f"Ignoring {type(event).__name__} from {log.address} with {len(log.topics)} topics"
        )
