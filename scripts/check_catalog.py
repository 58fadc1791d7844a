#!/usr/bin/env python3
"""
Check that the configured TMDb credentials work and show what the catalog
proxy will see.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from movieinfo.config import load_config
from movieinfo.errors import ApiError
from movieinfo.tmdb import TMDbClient


def main():
    config = load_config({"ENV": "development"})
    if not config.get("TMDB_API_KEY"):
        print("Missing TMDB_API_KEY. Set it in your environment or .env file.", file=sys.stderr)
        return 1

    client = TMDbClient(
        api_key=config["TMDB_API_KEY"],
        base_url=config["TMDB_BASE_URL"],
        timeout=config["TMDB_TIMEOUT"],
    )

    print(f"Querying {config['TMDB_BASE_URL']} ...")
    print("-" * 50)
    checks = [
        ("Popular", lambda: client.popular(1)),
        ("Top rated", lambda: client.top_rated(1)),
        ("Upcoming", lambda: client.upcoming(1)),
        ("Discover", lambda: client.discover({"page": 1, "sort_by": "popularity.desc"})),
    ]
    failures = 0
    for label, call in checks:
        try:
            data = call()
        except ApiError as e:
            failures += 1
            print(f"{label:<10}: ERROR {e.message}")
            continue
        print(f"{label:<10}: {data.get('total_results', 0):,} results over {data.get('total_pages', 0):,} pages")

    try:
        genres = client.genres().get("genres", [])
        print(f"{'Genres':<10}: {len(genres)}")
    except ApiError as e:
        failures += 1
        print(f"{'Genres':<10}: ERROR {e.message}")

    print("-" * 50)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
