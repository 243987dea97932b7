"""
Command line entry point.

Usage:
    python -m txinsight <transaction_hash> --chain-id 1

File: txinsight/__main__.py
"""

import argparse
import json
import sys

from .engine.utils import setup_logging
from .service import analyze_transaction_tool_sync
from .settings import get_settings


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Analyze an EVM transaction')
    parser.add_argument('transaction_hash', help='0x-prefixed transaction hash')
    parser.add_argument('--chain-id', type=int, default=1, help='EIP-155 chain id (default: 1)')
    parser.add_argument('--log-level', default=None, help='Override TXINSIGHT_LOG_LEVEL')
    args = parser.parse_args(argv)

    setup_logging(args.log_level or get_settings().log_level)

    response = analyze_transaction_tool_sync(args.transaction_hash, args.chain_id)
    if not response['success']:
        print(f"Error: {response['error']}", file=sys.stderr)
        return 1

    print(json.dumps(json.loads(response['data']), indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
