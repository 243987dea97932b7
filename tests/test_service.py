"""
Envelope entry point tests.

File: tests/test_service.py
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from factories import TX_HASH, make_transaction

from txinsight import service
from txinsight.shared.exceptions import ChainNotFoundError


class TestAnalyzeTransactionTool:
    """Test suite for analyze_transaction_tool."""

    @pytest.mark.asyncio
    async def test_success_envelope(self, mock_registry, mock_client):
        mock_client.get_transaction = AsyncMock(return_value=make_transaction(value=10 ** 18))

        response = await service.analyze_transaction_tool(TX_HASH, 1, registry=mock_registry)

        assert response['success'] is True
        assert 'error' not in response
        report = json.loads(response['data'])
        assert report['transfers'][0]['value'] == '1.0'
        assert report['actionTypes'] == ['Native Transfer']

    @pytest.mark.asyncio
    async def test_error_envelope(self, mock_registry):
        mock_registry.resolve = AsyncMock(return_value=None)
        mock_registry.connect = AsyncMock(side_effect=ChainNotFoundError(999))

        response = await service.analyze_transaction_tool(TX_HASH, 999, registry=mock_registry)

        assert response == {'success': False, 'error': 'Chain 999 not found'}

    @pytest.mark.asyncio
    async def test_missing_transaction_envelope(self, mock_registry, mock_client):
        mock_client.get_transaction = AsyncMock(return_value=None)

        response = await service.analyze_transaction_tool(TX_HASH, 1, registry=mock_registry)

        assert response == {'success': False, 'error': 'Transaction not found'}

    @pytest.mark.asyncio
    async def test_invalid_hash_envelope(self, mock_registry):
        response = await service.analyze_transaction_tool('not-a-hash', 1, registry=mock_registry)

        assert response['success'] is False
        assert 'Invalid transaction hash' in response['error']

    def test_sync_wrapper(self):
        expected = {'success': True, 'data': '{}'}
        with patch.object(service, 'analyze_transaction_tool', new=AsyncMock(return_value=expected)) as tool:
            response = service.analyze_transaction_tool_sync(TX_HASH, 1)

        assert response == expected
        assert tool.await_args.args == (TX_HASH, 1)
