"""
Shared constants for transaction analysis.

Registry locations, endpoint filtering rules, report labels and the
thresholds used by the complexity and risk heuristics.

File: txinsight/shared/constants.py
"""

import logging
import re
from typing import Any, Dict, List

from .schemas import ComplexityLevel

logger = logging.getLogger(__name__)

# =============================================================================
# CHAIN REGISTRY
# =============================================================================

CHAINLIST_URL = 'https://chainid.network/chains.json'

# Chains appended to the upstream registry. Entries use the chainlist
# descriptor format: chainId, name, nativeCurrency{name,symbol,decimals}, rpc.
CUSTOM_CHAINS: List[Dict[str, Any]] = []

# Substrings marking a templated URL whose credential was never filled in
RPC_PLACEHOLDER_MARKERS = (
    '${',
    'INFURA_API_KEY',
    'ALCHEMY_API_KEY',
    'API_KEY',
    'api-key',
)

# Public relays that answer liveness checks but fail real queries
RPC_DENYLIST = (
    'https://cloudflare-eth.com',
    'https://ethereum-rpc.publicnode.com',
)

RPC_ALLOWED_SCHEMES = ('http://', 'https://')

# =============================================================================
# TOKEN STANDARDS
# =============================================================================

TOKEN_TYPE_NATIVE = 'Native'
TOKEN_TYPE_ERC20 = 'ERC20'
TOKEN_TYPE_ERC721 = 'ERC721'
TOKEN_TYPE_ERC1155 = 'ERC1155'

DEFAULT_TOKEN_DECIMALS = 18

METADATA_ERROR_INCOMPLETE = 'Incomplete metadata'
METADATA_ERROR_FAILED = 'Failed to fetch metadata'

# =============================================================================
# REPORT LABELS
# =============================================================================

ACTION_NATIVE_TRANSFER = 'Native Transfer'
ACTION_TOKEN_TRANSFER = 'Token Transfer'
ACTION_NFT_TRANSFER = 'NFT Transfer'
ACTION_CONTRACT_DEPLOYMENT = 'Contract Deployment'
ACTION_CONTRACT_INTERACTION = 'Contract Interaction'
ACTION_SWAP = 'Swap'

CONTRACT_CREATION_PLACEHOLDER = 'Contract Creation'
UNKNOWN_VALUE = 'unknown'

SECURITY_WARNING = 'Warning'

STATUS_SUCCESS = 'Success'
STATUS_FAILED = 'Failed'

# =============================================================================
# SCORING THRESHOLDS
# =============================================================================

COMPLEXITY_WEIGHTS = {
    'transfer': 2,
    'interaction': 3,
    'security_observation': 2,
    'multiple_action_types': 5,
}

# Upper bounds (inclusive) for each complexity category
COMPLEXITY_LEVELS = (
    (5, ComplexityLevel.SIMPLE),
    (15, ComplexityLevel.MODERATE),
    (30, ComplexityLevel.COMPLEX),
)
COMPLEXITY_MAX_LEVEL = ComplexityLevel.VERY_COMPLEX

RISK_THRESHOLDS = {
    'max_interactions': 3,
    'max_transfers': 5,
    'warning_weight': 2,
}

# =============================================================================
# FORMAT PATTERNS
# =============================================================================

TRANSACTION_HASH_PATTERN = r'^0x[a-fA-F0-9]{64}$'

GWEI_DECIMALS = 9
ETHER_DECIMALS = 18
GAS_SAMPLE_BLOCKS = 5


def validate_transaction_hash(tx_hash: str) -> bool:
    """
    Validate transaction hash format.

    Args:
        tx_hash: Transaction hash to validate

    Returns:
        True if valid transaction hash format
    """
    return bool(re.match(TRANSACTION_HASH_PATTERN, tx_hash or ''))
