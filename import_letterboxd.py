#!/usr/bin/env python3
"""
Import a user's Letterboxd reviews from the shell.

    python import_letterboxd.py carl carl_on_letterboxd
"""
import argparse
import os
import sys
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from cinelog import create_app
from cinelog.extensions import db
from cinelog.models.settings import UserSettings
from cinelog.models.user import User
from cinelog.services.importer import build_importer


def print_progress(progress):
    if progress.processed == 0:
        print(f"Found {progress.total} reviews in the feed")
        return
    print(
        f"[{progress.processed}/{progress.total}] {progress.current_movie}"
        f"  imported={progress.imported} skipped={progress.skipped} failed={progress.failed}"
    )


def import_letterboxd(username, letterboxd_username=None):
    app = create_app()
    with app.app_context():
        user = User.query.filter_by(username=username).first()
        if user is None:
            print(f"✗ No such user: {username}")
            sys.exit(1)

        settings = UserSettings.for_user(user)
        handle = letterboxd_username or settings.letterboxd_username
        if not handle:
            print("✗ No Letterboxd username given or saved in settings")
            sys.exit(1)

        result = build_importer().run(user.id, handle, print_progress)
        if not result.success:
            print(f"✗ Import failed: {result.errors[0]}")
            sys.exit(1)

        settings.letterboxd_username = handle
        settings.record_import(result.imported)
        db.session.commit()

        print(f"\n✓ Imported {result.imported}, skipped {result.skipped}, failed {result.failed}")
        for line in result.errors:
            print(f"  ✗ {line}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Import Letterboxd reviews for a user")
    parser.add_argument("username", help="local username")
    parser.add_argument("letterboxd_username", nargs="?", help="defaults to the one saved in settings")
    args = parser.parse_args()
    import_letterboxd(args.username, args.letterboxd_username)
