#!/usr/bin/env python3
"""
Seed the movie catalog from TMDB list endpoints (trending, now playing,
upcoming, popular, top rated). Movies already cached are skipped.
"""
import os
import sys
import time
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from cinelog import create_app
from cinelog.services.catalog import MovieCatalog
from cinelog.services.seeding import CatalogSeeder
from cinelog.services.tmdb import TmdbClient


def seed_catalog():
    app = create_app()
    with app.app_context():
        if not (app.config.get("TMDB_API_KEY") or app.config.get("TMDB_BEARER_TOKEN")):
            print("✗ TMDB_API_KEY not found in environment or .env")
            sys.exit(1)

        print("Starting catalog seeding...")
        print("=" * 60)
        started = time.time()
        seeder = CatalogSeeder(
            TmdbClient.from_config(app.config),
            MovieCatalog(),
            cast_limit=app.config.get("SEED_CAST_LIMIT", 15),
            delay=app.config.get("IMPORT_DELAY_SECONDS", 0.3),
        )
        total = seeder.seed()

        minutes = (time.time() - started) / 60
        print("=" * 60)
        print("✓ Seeding complete!")
        print(f"Total movies cached: {total}")
        print(f"Duration: {minutes:.2f} minutes")
        if minutes > 0:
            print(f"Average: {total / minutes:.1f} movies/min")


if __name__ == "__main__":
    seed_catalog()
