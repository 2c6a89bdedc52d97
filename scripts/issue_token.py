"""Issue a bearer token for local development.

In production tokens come from the identity provider; this signs one with
the configured JWT secret so the API can be exercised by hand.

Usage:
    python scripts/issue_token.py --user-id <user-id> [--hours 8]
"""
import argparse
import sys
from datetime import timedelta
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.utils.auth import create_access_token


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Issue a development access token")
    parser.add_argument("--user-id", required=True, help="Subject of the token")
    parser.add_argument(
        "--hours",
        type=float,
        default=None,
        help="Token lifetime in hours (defaults to JWT_EXPIRATION_MINUTES)",
    )

    args = parser.parse_args()

    expires = timedelta(hours=args.hours) if args.hours else None
    print(create_access_token(user_id=args.user_id, expires_delta=expires))


if __name__ == "__main__":
    main()
