#!/usr/bin/env python3
"""
Add a login, or reset the password of an existing one.

    python create_user.py carl secret --email carl@example.com
"""
import argparse
import os
import sys
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from cinelog import create_app
from cinelog.extensions import db
from cinelog.models.settings import UserSettings
from cinelog.models.user import User


def create_user(username, password, email=None):
    app = create_app()
    with app.app_context():
        user = User.query.filter_by(username=username).first()
        created = user is None
        if created:
            user = User(username=username)
            db.session.add(user)
        user.set_password(password)
        if email:
            user.email = email
        db.session.commit()
        UserSettings.for_user(user)
        print(f"{'Created' if created else 'Updated'} user {username} (id {user.id})")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("username")
    parser.add_argument("password")
    parser.add_argument("--email")
    args = parser.parse_args()
    create_user(args.username, args.password, args.email)
