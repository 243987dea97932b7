"""
Runtime configuration for transaction analysis.

Values come from environment variables (optionally loaded from a ``.env``
file). Settings are read once per process; call ``get_settings.cache_clear()``
to pick up changes.

File: txinsight/settings.py
"""

import os
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

from .shared.constants import CHAINLIST_URL, GAS_SAMPLE_BLOCKS

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / '.env')

# =============================================================================
# HELPER FUNCTIONS FOR ENVIRONMENT VARIABLES
# =============================================================================

def get_env_str(key: str, default: str) -> str:
    """Read a string environment variable, treating blank values as unset."""
    value = os.getenv(key, '').strip()
    return value or default


def get_env_int(key: str, default: str) -> int:
    """Safely convert environment variable to integer, handling float strings."""
    return int(float(os.getenv(key, default)))


def get_env_float(key: str, default: str) -> float:
    """Convert environment variable to float."""
    return float(os.getenv(key, default))


def get_env_bool(key: str, default: str) -> bool:
    """Convert environment variable to boolean."""
    value = os.getenv(key, default).lower()
    return value in ('true', '1', 'yes', 'on')


# =============================================================================
# SETTINGS
# =============================================================================

@dataclass(frozen=True)
class AnalyzerSettings:
    """
    Settings for the analysis pipeline.

    Environment variables:
    - TXINSIGHT_CHAINLIST_URL
    - TXINSIGHT_CHAINLIST_TIMEOUT_SECONDS
    - TXINSIGHT_RPC_TIMEOUT_SECONDS
    - TXINSIGHT_GAS_SAMPLE_BLOCKS
    - TXINSIGHT_STRICT_TRANSFERS
    - TXINSIGHT_LOG_LEVEL
    """

    chainlist_url: str = CHAINLIST_URL
    chainlist_timeout_seconds: float = 30.0
    rpc_timeout_seconds: float = 10.0
    gas_sample_blocks: int = GAS_SAMPLE_BLOCKS
    # Route Transfer logs with an unexpected shape to other_events instead of dropping them
    strict_transfers: bool = False
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'AnalyzerSettings':
        """Load settings from environment variables with defaults."""
        settings = cls(
            chainlist_url=get_env_str('TXINSIGHT_CHAINLIST_URL', CHAINLIST_URL),
            chainlist_timeout_seconds=get_env_float('TXINSIGHT_CHAINLIST_TIMEOUT_SECONDS', '30'),
            rpc_timeout_seconds=get_env_float('TXINSIGHT_RPC_TIMEOUT_SECONDS', '10'),
            gas_sample_blocks=max(1, get_env_int('TXINSIGHT_GAS_SAMPLE_BLOCKS', str(GAS_SAMPLE_BLOCKS))),
            strict_transfers=get_env_bool('TXINSIGHT_STRICT_TRANSFERS', 'False'),
            log_level=get_env_str('TXINSIGHT_LOG_LEVEL', 'INFO').upper(),
        )
        logger.debug(f"Loaded analyzer settings: {settings}")
        return settings


@lru_cache(maxsize=1)
def get_settings() -> AnalyzerSettings:
    """Return process-wide settings, loaded on first use."""
    return AnalyzerSettings.from_env()
