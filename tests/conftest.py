"""
Shared fixtures for the txinsight test suite.

File: tests/conftest.py

Run with: python -m pytest tests -v
"""

from unittest.mock import AsyncMock, Mock

import pytest
from hexbytes import HexBytes

from factories import LATEST_BLOCK, make_block, make_chain, make_receipt, make_transaction

from txinsight.engine.events import LogClassifier
from txinsight.engine.token_metadata import TokenMetadataResolver


# =============================================================================
# TEST CONFIGURATION AND FIXTURES
# =============================================================================

@pytest.fixture
def token_info():
    """Values returned by token accessor calls."""
    return {
        'name': 'Dai Stablecoin',
        'symbol': 'DAI',
        'decimals': 18,
    }


@pytest.fixture
def mock_client(token_info):
    """Mock Web3Client answering for a mined transaction."""
    def _call_function(address, abi, function_name, *args):
        return token_info[function_name]

    def _get_block(block_identifier):
        number = LATEST_BLOCK if block_identifier == 'latest' else block_identifier
        return make_block(number)

    client = Mock()
    client.rpc_url = 'https://rpc-a.example'
    client.get_block_number = AsyncMock(return_value=LATEST_BLOCK)
    client.call_function = AsyncMock(side_effect=_call_function)
    client.get_transaction = AsyncMock(return_value=make_transaction())
    client.get_transaction_receipt = AsyncMock(return_value=make_receipt())
    client.get_block = AsyncMock(side_effect=_get_block)
    client.get_code = AsyncMock(return_value=HexBytes('0x6080604052'))
    client.get_performance_stats = Mock(return_value={'total_requests': 0})
    return client


@pytest.fixture
def mock_registry(mock_client):
    """Mock ChainRegistry resolving chain 1 and connecting to mock_client."""
    registry = Mock()
    registry.resolve = AsyncMock(return_value=make_chain())
    registry.connect = AsyncMock(return_value=mock_client)
    return registry


@pytest.fixture
def classifier():
    """Classifier with the built-in decoders and lenient transfer handling."""
    return LogClassifier(metadata_resolver=TokenMetadataResolver(), strict_transfers=False)
