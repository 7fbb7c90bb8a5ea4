#!/usr/bin/env python3
"""
Create the database tables for users, settings, the movie catalog and reviews
"""
import os
import sys
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from cinelog import create_app
from cinelog.extensions import db


def create_tables():
    app = create_app()
    with app.app_context():
        print("Creating missing tables...")
        db.create_all()
        print("Tables created successfully!")

        inspector = db.inspect(db.engine)
        tables = inspector.get_table_names()
        print(f"Existing tables: {tables}")

        if "reviews" in tables:
            print("Reviews table columns:")
            for col in inspector.get_columns("reviews"):
                print(f"  - {col['name']}: {col['type']}")


if __name__ == "__main__":
    create_tables()
