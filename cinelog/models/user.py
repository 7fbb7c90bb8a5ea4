import hashlib
import secrets

from flask_login import UserMixin

from . import db, utcnow


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False)
    email = db.Column(db.String(255), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    last_login = db.Column(db.DateTime)

    # Relationships
    reviews = db.relationship("Review", back_populates="user", cascade="all, delete-orphan")
    settings = db.relationship(
        "UserSettings", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    def set_password(self, password: str):
        salt = secrets.token_hex(16)
        digest = hashlib.sha256((password + salt).encode("utf-8")).hexdigest()
        self.password_hash = f"{salt}:{digest}"

    def check_password(self, password: str) -> bool:
        if ":" not in (self.password_hash or ""):
            return False
        salt, stored = self.password_hash.split(":", 1)
        digest = hashlib.sha256((password + salt).encode("utf-8")).hexdigest()
        return secrets.compare_digest(digest, stored)

    def get_id(self):
        return str(self.id)

    def __repr__(self):
        return f"<User {self.username}>"
