#!/usr/bin/env python3
"""
Issue a development account token for the cart service.

The token is signed with CART_JWT_SECRET (or the development default), the
same secret the cart service verifies bearer tokens with. Use it to try the
login-time merge without a real authentication service.

Usage:
    python scripts/issue_token.py <user_id> [--minutes 60]
"""

import sys
import argparse
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

# Project root
PROJECT_ROOT = Path(__file__).parent.parent


def main():
    parser = argparse.ArgumentParser(description="Issue a development account token")
    parser.add_argument("user_id", help="Account the token is issued for")
    parser.add_argument("--minutes", type=int, default=60, help="Token lifetime in minutes")
    args = parser.parse_args()

    load_dotenv(PROJECT_ROOT / ".env")

    from cart_service.security.owner import issue_account_token

    token = issue_account_token(args.user_id, expires_in=timedelta(minutes=args.minutes))

    print("=" * 60)
    print(f"Account token for {args.user_id} ({args.minutes} min)")
    print("=" * 60)
    print(token)
    print("\nTry the merge flow with:")
    print(f"  python -m storefront.main {args.user_id} {token}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
