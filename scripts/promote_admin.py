#!/usr/bin/env python3
"""
Set the role of an existing account directly in the database.

The admin API can only be used by an admin, so the first one has to be made
here:  python scripts/promote_admin.py alice@example.com
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from movieinfo import accounts
from movieinfo.config import load_config
from movieinfo.db import connect
from movieinfo.errors import ApiError
from movieinfo.models import init_db


def main() -> int:
    parser = argparse.ArgumentParser(description="Promote (or demote) a Movie Info account")
    parser.add_argument("email", help="Email of the account to change")
    parser.add_argument("--role", default="admin", choices=accounts.ROLES)
    parser.add_argument("--db", help="SQLite database path (default: DATABASE_PATH)")
    args = parser.parse_args()

    db_path = args.db or load_config({"ENV": "development"})["DATABASE_PATH"]
    conn = connect(db_path)
    try:
        init_db(conn)
        row = accounts.find_by_email(conn, args.email)
        if not row:
            print(f"Error: no account with email {args.email}")
            return 1
        user = accounts.set_role(conn, row["id"], args.role)
    except ApiError as e:
        print(f"Error: {e.message}")
        return 1
    finally:
        conn.close()

    print(f"[OK] {user['email']} (id {user['id']}) is now '{user['role']}'")
    return 0


if __name__ == "__main__":
    sys.exit(main())
