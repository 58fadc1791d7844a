#!/usr/bin/env python3
"""Script to list all user accounts from the database."""
import argparse
import sqlite3
import sys
from pathlib import Path

from movieinfo.config import load_config


def main() -> int:
    parser = argparse.ArgumentParser(description="List Movie Info user accounts")
    parser.add_argument("--db", help="SQLite database path (default: DATABASE_PATH)")
    args = parser.parse_args()

    db_path = Path(args.db or load_config({"ENV": "development"})["DATABASE_PATH"])
    if not db_path.exists():
        print(f"Error: Database file not found at {db_path}")
        return 1

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    rows = conn.execute(
        """
        SELECT u.id, u.name, u.email, u.role, u.created_at,
               (SELECT COUNT(*) FROM reviews r WHERE r.user_id = u.id) AS review_count,
               (SELECT COUNT(*) FROM favorites f WHERE f.user_id = u.id) AS favorite_count
        FROM users u
        ORDER BY u.id
        """
    ).fetchall()
    conn.close()

    print("\n" + "=" * 96)
    print("ALL USER ACCOUNTS")
    print("=" * 96)

    if not rows:
        print("No accounts found in the database.")
    else:
        print(f"{'ID':<6} | {'Name':<20} | {'Email':<32} | {'Role':<6} | {'Reviews':<7} | {'Favs':<5} | Created At")
        print("-" * 96)
        for row in rows:
            print(
                f"{row['id']:<6} | {(row['name'] or '')[:20]:<20} | {row['email'][:32]:<32} | "
                f"{row['role']:<6} | {row['review_count']:<7} | {row['favorite_count']:<5} | {row['created_at'] or 'N/A'}"
            )

    print("=" * 96)
    print(f"Total accounts: {len(rows)}")
    print("=" * 96)
    return 0


if __name__ == "__main__":
    sys.exit(main())
