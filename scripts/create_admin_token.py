#!/usr/bin/env python3
"""
CLI script to issue an admin access token for the settings API.

Usage (interactive):
    python scripts/create_admin_token.py

Usage (non-interactive):
    python scripts/create_admin_token.py --subject admin@example.com --name "Shop Admin" --days 30
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from kerzenwelt.utils.security import create_access_token


def create_admin_token(subject: str | None = None, name: str = "", days: int = 1) -> str | None:
    """Create an admin token, prompting for missing values."""
    print("\n" + "=" * 50)
    print("Kerzenwelt - Admin Token")
    print("=" * 50 + "\n")

    if not subject:
        subject = input("Enter admin email or identifier: ").strip().lower()
        if not subject:
            print("An identifier is required.")
            return None

    if days < 1:
        print("Token lifetime must be at least one day.")
        return None

    token = create_access_token(
        subject,
        is_admin=True,
        name=name,
        expires_delta=timedelta(days=days),
    )

    print(f"  Subject: {subject}")
    print(f"  Valid for: {days} day(s)")
    print("\nSet API_TOKEN to the following value:\n")
    print(token)
    print()
    return token


def main():
    parser = argparse.ArgumentParser(description="Issue an admin token for the settings API")
    parser.add_argument("--subject", help="Admin email or identifier")
    parser.add_argument("--name", default="", help="Display name")
    parser.add_argument("--days", type=int, default=1, help="Token lifetime in days")
    args = parser.parse_args()

    token = create_admin_token(args.subject, args.name, args.days)
    sys.exit(0 if token else 1)


if __name__ == "__main__":
    main()
