"""
Static contract ABIs used for token accessors and event decoding.

EVENTS_ABI is the primary multi-standard event set. ERC721_EVENTS_ABI is the
fallback for events whose topic0 collides with an ERC20 event but which keep
the token id in an indexed topic instead of the data region.

File: txinsight/shared/abis.py
"""

from typing import Any, Dict, List


def _view(name: str, output_type: str) -> Dict[str, Any]:
    return {
        "constant": True,
        "inputs": [],
        "name": name,
        "outputs": [{"name": "", "type": output_type}],
        "stateMutability": "view",
        "type": "function",
    }


def _param(name: str, abi_type: str, indexed: bool = False) -> Dict[str, Any]:
    return {"indexed": indexed, "name": name, "type": abi_type}


def _event(name: str, *inputs: Dict[str, Any]) -> Dict[str, Any]:
    return {"anonymous": False, "inputs": list(inputs), "name": name, "type": "event"}


# =============================================================================
# TOKEN ACCESSOR ABIS
# =============================================================================

ERC20_ABI: List[Dict[str, Any]] = [
    _view("name", "string"),
    _view("symbol", "string"),
    _view("decimals", "uint8"),
    _view("totalSupply", "uint256"),
]

ERC721_ABI: List[Dict[str, Any]] = [
    _view("name", "string"),
    _view("symbol", "string"),
]

# ERC1155 mandates no name/symbol accessors; uri(id) is the only metadata hook
ERC1155_ABI: List[Dict[str, Any]] = [
    {
        "constant": True,
        "inputs": [{"name": "id", "type": "uint256"}],
        "name": "uri",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
]

TOKEN_ABIS = {
    'ERC20': ERC20_ABI,
    'ERC721': ERC721_ABI,
    'ERC1155': ERC1155_ABI,
}

# =============================================================================
# EVENT ABIS
# =============================================================================

EVENTS_ABI: List[Dict[str, Any]] = [
    # ERC20
    _event(
        "Transfer",
        _param("from", "address", True),
        _param("to", "address", True),
        _param("value", "uint256"),
    ),
    _event(
        "Approval",
        _param("owner", "address", True),
        _param("spender", "address", True),
        _param("value", "uint256"),
    ),
    # ERC721 / ERC1155
    _event(
        "ApprovalForAll",
        _param("owner", "address", True),
        _param("operator", "address", True),
        _param("approved", "bool"),
    ),
    # ERC1155
    _event(
        "TransferSingle",
        _param("operator", "address", True),
        _param("from", "address", True),
        _param("to", "address", True),
        _param("id", "uint256"),
        _param("value", "uint256"),
    ),
    _event(
        "TransferBatch",
        _param("operator", "address", True),
        _param("from", "address", True),
        _param("to", "address", True),
        _param("ids", "uint256[]"),
        _param("values", "uint256[]"),
    ),
    _event(
        "URI",
        _param("value", "string"),
        _param("id", "uint256", True),
    ),
    # WETH
    _event(
        "Deposit",
        _param("dst", "address", True),
        _param("wad", "uint256"),
    ),
    _event(
        "Withdrawal",
        _param("src", "address", True),
        _param("wad", "uint256"),
    ),
    # Uniswap V2 pair
    _event(
        "Swap",
        _param("sender", "address", True),
        _param("amount0In", "uint256"),
        _param("amount1In", "uint256"),
        _param("amount0Out", "uint256"),
        _param("amount1Out", "uint256"),
        _param("to", "address", True),
    ),
    _event(
        "Sync",
        _param("reserve0", "uint112"),
        _param("reserve1", "uint112"),
    ),
    _event(
        "Mint",
        _param("sender", "address", True),
        _param("amount0", "uint256"),
        _param("amount1", "uint256"),
    ),
    _event(
        "Burn",
        _param("sender", "address", True),
        _param("amount0", "uint256"),
        _param("amount1", "uint256"),
        _param("to", "address", True),
    ),
    # Uniswap V3 pool
    _event(
        "Swap",
        _param("sender", "address", True),
        _param("recipient", "address", True),
        _param("amount0", "int256"),
        _param("amount1", "int256"),
        _param("sqrtPriceX96", "uint160"),
        _param("liquidity", "uint128"),
        _param("tick", "int24"),
    ),
]

ERC721_EVENTS_ABI: List[Dict[str, Any]] = [
    _event(
        "Transfer",
        _param("from", "address", True),
        _param("to", "address", True),
        _param("tokenId", "uint256", True),
    ),
    _event(
        "Approval",
        _param("owner", "address", True),
        _param("approved", "address", True),
        _param("tokenId", "uint256", True),
    ),
]
