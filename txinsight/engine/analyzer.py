"""
Transaction analysis pipeline.

TransactionAnalyzer resolves the chain, connects to a live endpoint, fetches
the transaction with its receipt and block, classifies the receipt logs and
assembles an AnalysisReport with heuristic complexity and risk scores.

Only steps up to fetching the transaction are fatal. Average gas price and
contract checks degrade to omitted fields with a logged warning.

File: txinsight/engine/analyzer.py
"""

import asyncio
import logging
import time
from typing import Any, List, Optional

from ..settings import get_settings
from ..shared.constants import (
    ACTION_CONTRACT_DEPLOYMENT,
    ACTION_CONTRACT_INTERACTION,
    ACTION_NATIVE_TRANSFER,
    CONTRACT_CREATION_PLACEHOLDER,
    SECURITY_WARNING,
    STATUS_FAILED,
    STATUS_SUCCESS,
    TOKEN_TYPE_NATIVE,
    UNKNOWN_VALUE,
    validate_transaction_hash,
)
from ..shared.exceptions import ChainNotFoundError, ResolutionError, TransactionNotFoundError
from ..shared.schemas import (
    AnalysisReport,
    AnyTransfer,
    ChainConfig,
    NativeTransfer,
    NetworkInfo,
    SecurityObservation,
    TokenMetadata,
    TransactionInfo,
)
from .chain_registry import ChainRegistry
from .events import ClassifiedEvents, LogClassifier
from .scoring import build_summary
from .utils import (
    checksum_or_none,
    format_block_timestamp,
    format_hash,
    to_hex_str,
    to_int,
    wei_to_ether,
    wei_to_gwei,
)
from .web3_client import Web3Client

logger = logging.getLogger(__name__)


class TransactionAnalyzer:
    """
    Builds a classified report for one transaction.

    Service objects are injected so tests can substitute the registry or
    classifier; by default a classifier with the built-in decoders is used.
    """

    def __init__(
        self,
        registry: ChainRegistry,
        classifier: Optional[LogClassifier] = None,
        gas_sample_blocks: Optional[int] = None,
    ):
        """
        Initialize the analyzer.

        Args:
            registry: Chain registry used to resolve and connect
            classifier: Receipt log classifier
            gas_sample_blocks: Recent blocks averaged for the gas price estimate
        """
        self.registry = registry
        self.classifier = classifier or LogClassifier()
        self.gas_sample_blocks = gas_sample_blocks or get_settings().gas_sample_blocks
        self.logger = logging.getLogger('txinsight.engine.analyzer')

    async def analyze(self, tx_hash: str, chain_id: int) -> AnalysisReport:
        """
        Analyze a transaction.

        Args:
            tx_hash: 0x-prefixed 32-byte transaction hash
            chain_id: EIP-155 chain identifier

        Returns:
            AnalysisReport

        Raises:
            ResolutionError: Invalid hash, unknown chain or unknown transaction
            ConnectivityError: No endpoint could be reached
        """
        if not validate_transaction_hash(tx_hash):
            raise ResolutionError(f"Invalid transaction hash: {tx_hash}")

        start_time = time.time()
        self.logger.info(f"Analyzing transaction {format_hash(tx_hash)} on chain {chain_id}")

        chain, client = await asyncio.gather(
            self.registry.resolve(chain_id),
            self.registry.connect(chain_id),
        )
        if chain is None:
            raise ChainNotFoundError(chain_id)

        tx = await client.get_transaction(tx_hash)
        if tx is None:
            raise TransactionNotFoundError(tx_hash, chain_id)

        block_number = tx.get('blockNumber')
        if block_number is None:
            self.logger.info(f"Transaction {format_hash(tx_hash)} is pending")
            receipt, block = await client.get_transaction_receipt(tx_hash), None
        else:
            receipt, block = await asyncio.gather(
                client.get_transaction_receipt(tx_hash),
                client.get_block(block_number),
            )

        network = self._build_network_info(chain, tx, block)
        transaction = self._build_transaction_info(tx, receipt)

        action_types: List[str] = []
        transfers: List[AnyTransfer] = []

        value_wei = to_int(tx.get('value', 0))
        if value_wei > 0:
            transfers.append(self._build_native_transfer(chain, tx, value_wei))
            action_types.append(ACTION_NATIVE_TRANSFER)

        classified: ClassifiedEvents = await self.classifier.classify(receipt, client)
        action_types.extend(classified.action_types)
        transfers.extend(classified.transfers)

        input_data = to_hex_str(tx.get('input'))
        if transaction.to_address is None:
            action_types.append(ACTION_CONTRACT_DEPLOYMENT)
        elif input_data != '0x':
            action_types.append(ACTION_CONTRACT_INTERACTION)
            transaction.function_selector = input_data[:10]

        interactions = list(classified.contract_interactions)
        average_gas_price, security_info = await asyncio.gather(
            self._average_gas_price(client),
            self._check_contracts(client, interactions),
        )
        network.average_gas_price = average_gas_price

        report = AnalysisReport(
            network=network,
            transaction=transaction,
            action_types=action_types,
            transfers=transfers,
            actions=classified.actions,
            interactions=interactions,
            security_info=security_info,
            other_events=classified.other_events,
            summary=build_summary(transfers, interactions, security_info, action_types),
        )

        elapsed_ms = (time.time() - start_time) * 1000
        self.logger.info(
            f"Analysis of {format_hash(tx_hash)} finished in {elapsed_ms:.1f}ms: "
            f"{report.summary.total_transfers} transfers, "
            f"complexity {report.summary.complexity_score.value}, risk {report.summary.risk_level.value}"
        )
        self.logger.debug(f"RPC usage: {client.get_performance_stats()}")
        return report

    # ====================
    # REPORT SECTIONS
    # ====================

    def _build_network_info(self, chain: ChainConfig, tx: Any, block: Any) -> NetworkInfo:
        return NetworkInfo(
            name=chain.name,
            chain_id=chain.chain_id,
            currency=chain.native_currency.symbol,
            block_number=tx.get('blockNumber'),
            block_timestamp=format_block_timestamp(block.get('timestamp')) if block else UNKNOWN_VALUE,
        )

    def _build_transaction_info(self, tx: Any, receipt: Any) -> TransactionInfo:
        gas_price = tx.get('gasPrice')
        gas_used = receipt.get('gasUsed') if receipt else None
        max_fee = tx.get('maxFeePerGas')
        max_priority_fee = tx.get('maxPriorityFeePerGas')

        if gas_used is not None and gas_price is not None:
            total_cost = wei_to_ether(to_int(gas_used) * to_int(gas_price))
        else:
            total_cost = UNKNOWN_VALUE

        return TransactionInfo(
            hash=to_hex_str(tx.get('hash')),
            from_address=checksum_or_none(tx.get('from')),
            to_address=checksum_or_none(tx.get('to')),
            value=wei_to_ether(tx.get('value', 0)),
            nonce=tx.get('nonce'),
            status=STATUS_SUCCESS if receipt and receipt.get('status') else STATUS_FAILED,
            gas_used=str(to_int(gas_used)) if gas_used is not None else None,
            gas_price=wei_to_gwei(gas_price) if gas_price is not None else UNKNOWN_VALUE,
            max_fee_per_gas=wei_to_gwei(max_fee) if max_fee is not None else None,
            max_priority_fee_per_gas=wei_to_gwei(max_priority_fee) if max_priority_fee is not None else None,
            total_cost=total_cost,
        )

    def _build_native_transfer(self, chain: ChainConfig, tx: Any, value_wei: int) -> NativeTransfer:
        currency = chain.native_currency
        token = TokenMetadata(
            token_type=TOKEN_TYPE_NATIVE,
            name=currency.name,
            symbol=currency.symbol,
            decimals=currency.decimals,
        )
        return NativeTransfer(
            token=token,
            from_address=checksum_or_none(tx.get('from')),
            to_address=checksum_or_none(tx.get('to')) or CONTRACT_CREATION_PLACEHOLDER,
            value=wei_to_ether(value_wei),
        )

    # ====================
    # BEST-EFFORT ENRICHMENT
    # ====================

    async def _average_gas_price(self, client: Web3Client) -> Optional[str]:
        """Mean base fee of the latest blocks in gwei, or None on failure."""
        try:
            latest = await client.get_block('latest')
            latest_number = latest['number'] if latest else 0
            blocks = await asyncio.gather(*(
                client.get_block(max(latest_number - offset, 0))
                for offset in range(self.gas_sample_blocks)
            ))
            total_base_fee = sum(
                to_int(block.get('baseFeePerGas') or 0) if block else 0
                for block in blocks
            )
            return wei_to_gwei(total_base_fee // len(blocks))
        except Exception as e:
            self.logger.warning(f"Error getting average gas price: {e}")
            return None

    async def _check_contracts(self, client: Web3Client, addresses: List[str]) -> List[SecurityObservation]:
        """Flag interacted addresses that hold no bytecode."""
        results = await asyncio.gather(
            *(client.get_code(address) for address in addresses),
            return_exceptions=True,
        )

        observations: List[SecurityObservation] = []
        for address, code in zip(addresses, results):
            if isinstance(code, Exception):
                self.logger.warning(f"Error checking contract at {address}: {code}")
                continue
            if to_hex_str(code) == '0x':
                observations.append(SecurityObservation(
                    observation_type=SECURITY_WARNING,
                    message=f"Address {address} is not a contract",
                    address=address,
                ))
        return observations
