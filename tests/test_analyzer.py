"""
TransactionAnalyzer pipeline tests.

All RPC traffic goes through the mock client from conftest.py.

File: tests/test_analyzer.py
"""

from unittest.mock import AsyncMock

import pytest
from hexbytes import HexBytes

from factories import (
    BLOCK_NUMBER,
    MULTI_TOKEN_ADDRESS,
    RECIPIENT,
    SENDER,
    TOKEN_ADDRESS,
    TX_HASH,
    erc20_transfer_log,
    make_block,
    make_receipt,
    make_transaction,
    transfer_batch_log,
)

from txinsight.engine.analyzer import TransactionAnalyzer
from txinsight.shared.exceptions import (
    AllEndpointsFailedError,
    ChainNotFoundError,
    ResolutionError,
    TransactionNotFoundError,
)
from txinsight.shared.schemas import NativeTransfer


@pytest.fixture
def analyzer(mock_registry, classifier):
    return TransactionAnalyzer(mock_registry, classifier=classifier, gas_sample_blocks=5)


# =============================================================================
# REPORT ASSEMBLY TESTS
# =============================================================================

class TestTransactionAnalyzer:
    """Test suite for TransactionAnalyzer.analyze."""

    @pytest.mark.asyncio
    async def test_native_transfer_without_logs(self, analyzer, mock_client):
        mock_client.get_transaction = AsyncMock(return_value=make_transaction(value=15 * 10 ** 17))

        report = await analyzer.analyze(TX_HASH, 1)

        assert len(report.transfers) == 1
        transfer = report.transfers[0]
        assert isinstance(transfer, NativeTransfer)
        assert transfer.token_type == 'Native'
        assert transfer.value == '1.5'
        assert transfer.from_address == SENDER
        assert transfer.to_address == RECIPIENT
        assert transfer.token.symbol == 'ETH'
        assert report.action_types == ['Native Transfer']
        assert report.interactions == []
        assert report.summary.total_transfers == 1
        assert report.summary.unique_tokens == 1
        assert report.summary.complexity_score == 'Simple'
        assert report.summary.risk_level == 'Low'

    @pytest.mark.asyncio
    async def test_network_and_transaction_fields(self, analyzer, mock_client):
        report = await analyzer.analyze(TX_HASH, 1)

        assert report.network.name == 'Ethereum Mainnet'
        assert report.network.chain_id == 1
        assert report.network.currency == 'ETH'
        assert report.network.block_number == BLOCK_NUMBER
        assert report.network.block_timestamp == '2023-11-14T22:13:20.000Z'
        assert report.network.average_gas_price == '30.0'

        tx = report.transaction
        assert tx.hash == TX_HASH
        assert tx.status == 'Success'
        assert tx.nonce == 7
        assert tx.value == '0.0'
        assert tx.gas_used == '21000'
        assert tx.gas_price == '20.0'
        assert tx.total_cost == '0.00042'
        assert tx.max_fee_per_gas is None
        assert tx.function_selector is None

    @pytest.mark.asyncio
    async def test_eip1559_fee_fields(self, analyzer, mock_client):
        mock_client.get_transaction = AsyncMock(return_value=make_transaction(
            maxFeePerGas=50 * 10 ** 9,
            maxPriorityFeePerGas=15 * 10 ** 8,
        ))

        report = await analyzer.analyze(TX_HASH, 1)

        assert report.transaction.max_fee_per_gas == '50.0'
        assert report.transaction.max_priority_fee_per_gas == '1.5'

    @pytest.mark.asyncio
    async def test_failed_status(self, analyzer, mock_client):
        mock_client.get_transaction_receipt = AsyncMock(return_value=make_receipt(status=0))

        report = await analyzer.analyze(TX_HASH, 1)

        assert report.transaction.status == 'Failed'

    @pytest.mark.asyncio
    async def test_contract_deployment(self, analyzer, mock_client):
        mock_client.get_transaction = AsyncMock(return_value=make_transaction(
            to=None,
            value=10 ** 18,
            input=HexBytes('0x6080604052'),
        ))

        report = await analyzer.analyze(TX_HASH, 1)

        assert report.action_types == ['Native Transfer', 'Contract Deployment']
        assert report.transfers[0].to_address == 'Contract Creation'
        assert report.transaction.to_address is None
        assert report.transaction.function_selector is None

    @pytest.mark.asyncio
    async def test_contract_interaction_records_selector(self, analyzer, mock_client):
        calldata = '0xa9059cbb' + '00' * 64
        mock_client.get_transaction = AsyncMock(return_value=make_transaction(
            to=TOKEN_ADDRESS,
            input=HexBytes(calldata),
        ))
        mock_client.get_transaction_receipt = AsyncMock(return_value=make_receipt(
            [erc20_transfer_log(5 * 10 ** 18)],
            gas_used=52000,
        ))

        report = await analyzer.analyze(TX_HASH, 1)

        assert report.transaction.function_selector == '0xa9059cbb'
        assert report.action_types == ['Token Transfer', 'Contract Interaction']
        assert report.interactions == [TOKEN_ADDRESS]
        assert report.transfers[0].value == '5.0'
        assert report.summary.complexity_score == 'Moderate'

    @pytest.mark.asyncio
    async def test_non_contract_interaction_is_flagged(self, analyzer, mock_client):
        mock_client.get_transaction_receipt = AsyncMock(return_value=make_receipt(
            [erc20_transfer_log(10 ** 18)],
        ))
        mock_client.get_code = AsyncMock(return_value=HexBytes('0x'))

        report = await analyzer.analyze(TX_HASH, 1)

        assert len(report.security_info) == 1
        observation = report.security_info[0]
        assert observation.observation_type == 'Warning'
        assert observation.message == f"Address {TOKEN_ADDRESS} is not a contract"
        assert report.summary.risk_level == 'Medium'

    @pytest.mark.asyncio
    async def test_code_lookup_failure_is_skipped(self, analyzer, mock_client):
        mock_client.get_transaction_receipt = AsyncMock(return_value=make_receipt(
            [erc20_transfer_log(10 ** 18)],
        ))
        mock_client.get_code = AsyncMock(side_effect=ConnectionError('reset by peer'))

        report = await analyzer.analyze(TX_HASH, 1)

        assert report.security_info == []

    @pytest.mark.asyncio
    async def test_average_gas_price_over_recent_blocks(self, analyzer, mock_client):
        base_fees = {100: 10, 99: 20, 98: 30, 97: 40, 96: 51}

        def _get_block(block_identifier):
            number = 100 if block_identifier == 'latest' else block_identifier
            return make_block(number, base_fee=base_fees[number] * 10 ** 9)

        mock_client.get_block = AsyncMock(side_effect=_get_block)
        mock_client.get_transaction = AsyncMock(return_value=make_transaction(blockNumber=99))

        report = await analyzer.analyze(TX_HASH, 1)

        assert report.network.average_gas_price == '30.2'

    @pytest.mark.asyncio
    async def test_average_gas_price_failure_omits_field(self, analyzer, mock_client):
        async def _get_block(block_identifier):
            if block_identifier == 'latest':
                raise ConnectionError('rate limited')
            return make_block(block_identifier)

        mock_client.get_block = AsyncMock(side_effect=_get_block)

        report = await analyzer.analyze(TX_HASH, 1)

        assert report.network.average_gas_price is None
        assert 'averageGasPrice' not in report.to_json_dict()['network']
        assert report.network.block_timestamp == '2023-11-14T22:13:20.000Z'

    @pytest.mark.asyncio
    async def test_pending_transaction(self, analyzer, mock_client):
        mock_client.get_transaction = AsyncMock(return_value=make_transaction(blockNumber=None))
        mock_client.get_transaction_receipt = AsyncMock(return_value=None)

        report = await analyzer.analyze(TX_HASH, 1)

        assert report.network.block_timestamp == 'unknown'
        assert report.transaction.status == 'Failed'
        assert report.transaction.gas_used is None
        assert report.transaction.total_cost == 'unknown'
        assert None not in [call.args[0] for call in mock_client.get_block.await_args_list]

    @pytest.mark.asyncio
    async def test_report_json_shape(self, analyzer, mock_client):
        mock_client.get_transaction = AsyncMock(return_value=make_transaction(value=10 ** 18))

        data = (await analyzer.analyze(TX_HASH, 1)).to_json_dict()

        assert set(data) == {
            'network', 'transaction', 'actionTypes', 'transfers', 'actions',
            'interactions', 'securityInfo', 'otherEvents', 'summary',
        }
        assert data['transaction']['from'] == SENDER
        assert data['transfers'][0]['tokenType'] == 'Native'
        assert data['transfers'][0]['token']['type'] == 'Native'
        assert data['summary']['totalTransfers'] == 1

    @pytest.mark.asyncio
    async def test_malformed_batch_log_does_not_abort_report(self, analyzer, mock_client):
        mock_client.get_transaction_receipt = AsyncMock(return_value=make_receipt(
            [transfer_batch_log([1, 2, 3], [10, 20])],
        ))

        data = (await analyzer.analyze(TX_HASH, 1)).to_json_dict()

        assert data['transfers'] == []
        assert len(data['otherEvents']) == 1
        assert data['interactions'] == [MULTI_TOKEN_ADDRESS]


# =============================================================================
# ERROR HANDLING TESTS
# =============================================================================

class TestAnalyzerErrors:
    """Test suite for fatal analyzer failures."""

    @pytest.mark.asyncio
    async def test_invalid_hash(self, analyzer, mock_registry):
        with pytest.raises(ResolutionError, match='Invalid transaction hash'):
            await analyzer.analyze('0x1234', 1)

        mock_registry.connect.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_chain(self, analyzer, mock_registry):
        mock_registry.resolve = AsyncMock(return_value=None)
        mock_registry.connect = AsyncMock(side_effect=ChainNotFoundError(999))

        with pytest.raises(ChainNotFoundError, match='Chain 999 not found'):
            await analyzer.analyze(TX_HASH, 999)

    @pytest.mark.asyncio
    async def test_unreachable_chain(self, analyzer, mock_registry):
        mock_registry.connect = AsyncMock(
            side_effect=AllEndpointsFailedError(1, [('https://rpc-a.example', 'timeout')])
        )

        with pytest.raises(AllEndpointsFailedError):
            await analyzer.analyze(TX_HASH, 1)

    @pytest.mark.asyncio
    async def test_transaction_not_found(self, analyzer, mock_client):
        mock_client.get_transaction = AsyncMock(return_value=None)

        with pytest.raises(TransactionNotFoundError, match='Transaction not found'):
            await analyzer.analyze(TX_HASH, 1)

        mock_client.get_transaction_receipt.assert_not_awaited()
