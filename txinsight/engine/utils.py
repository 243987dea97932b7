"""
Engine utilities for Web3 integration.

Unit formatting, hex normalization and logging helpers shared by the
analysis components.

File: txinsight/engine/utils.py
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Union

from eth_utils import to_checksum_address, to_hex

from ..shared.constants import ETHER_DECIMALS, GWEI_DECIMALS

logger = logging.getLogger(__name__)


# =============================================================================
# UNIT FORMATTING
# =============================================================================

def format_units(value: Union[int, str], decimals: int = ETHER_DECIMALS) -> str:
    """
    Format a base-unit integer as decimal text in display units.

    Exact integer arithmetic, no float rounding. The fractional part keeps at
    least one digit, so whole amounts render as "1.0".

    Args:
        value: Amount in base units (int or decimal/hex string)
        decimals: Base-unit exponent

    Returns:
        Display-unit string, e.g. format_units(1500000000000000000) == "1.5"
    """
    amount = to_int(value)
    if decimals <= 0:
        return f"{amount}.0"

    sign = '-' if amount < 0 else ''
    whole, fraction = divmod(abs(amount), 10 ** decimals)
    fraction_text = str(fraction).rjust(decimals, '0').rstrip('0') or '0'
    return f"{sign}{whole}.{fraction_text}"


def wei_to_ether(wei_amount: Union[int, str]) -> str:
    """Format a wei amount as ether text."""
    return format_units(wei_amount, ETHER_DECIMALS)


def wei_to_gwei(wei_amount: Union[int, str]) -> str:
    """Format a wei amount as gwei text."""
    return format_units(wei_amount, GWEI_DECIMALS)


def to_int(value: Any) -> int:
    """
    Convert an RPC numeric value to int.

    Accepts ints, decimal strings and 0x-prefixed hex strings.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.lower().startswith('0x'):
            return int(text, 16)
        return int(text)
    raise TypeError(f"Cannot convert {type(value).__name__} to int")


# =============================================================================
# HEX AND ADDRESS HELPERS
# =============================================================================

def to_hex_str(value: Any) -> str:
    """
    Normalize bytes, HexBytes or hex text to a lowercase 0x-prefixed string.

    Args:
        value: Raw value from an RPC response

    Returns:
        Hex string ("0x" for empty input)
    """
    if value is None:
        return '0x'
    if isinstance(value, (bytes, bytearray)):
        return to_hex(bytes(value))
    text = str(value)
    if not text.lower().startswith('0x'):
        text = '0x' + text
    return text.lower()


def topic_to_address(topic: Any) -> str:
    """
    Extract the address stored in the last 20 bytes of a 32-byte topic.

    Returns:
        Lowercase 0x-prefixed address
    """
    return '0x' + to_hex_str(topic)[-40:]


def checksum_or_none(address: Optional[str]) -> Optional[str]:
    """Checksum an address, passing None through."""
    if address is None:
        return None
    return to_checksum_address(address)


def format_hash(tx_hash: str, length: int = 10) -> str:
    """
    Format transaction hash for display.

    Args:
        tx_hash: Full transaction hash
        length: Number of characters to show from start

    Returns:
        Formatted hash (e.g., "0x1234567...")
    """
    if not tx_hash or len(tx_hash) < 10:
        return tx_hash

    return f"{tx_hash[:length]}..."


def format_block_timestamp(timestamp: Any) -> str:
    """Render a unix block timestamp as ISO-8601 UTC, or 'unknown'."""
    if not timestamp:
        return 'unknown'
    moment = datetime.fromtimestamp(to_int(timestamp), tz=timezone.utc)
    return moment.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


# =============================================================================
# LOGGING
# =============================================================================

def setup_logging(level: str = "INFO"):
    """
    Set up basic logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='[%(levelname)s] %(asctime)s %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
