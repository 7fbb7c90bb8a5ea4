from . import db, utcnow

PROFILE_VISIBILITY = ("public", "private")
REVIEW_VISIBILITY = ("public", "friends", "private")
SORT_OPTIONS = ("popularity", "rating", "releaseDate", "alphabetical")
THEME_MODES = ("light", "dark", "system")

# attribute name -> (JSON key, allowed values or None)
EDITABLE_FIELDS = {
    "display_name": ("displayName", None),
    "bio": ("bio", None),
    "favorite_genres": ("favoriteGenres", None),
    "profile_visibility": ("profileVisibility", PROFILE_VISIBILITY),
    "review_visibility": ("reviewVisibility", REVIEW_VISIBILITY),
    "show_email": ("showEmail", None),
    "default_sort": ("defaultSort", SORT_OPTIONS),
    "theme_mode": ("themeMode", THEME_MODES),
    "letterboxd_username": ("letterboxdUsername", None),
}


class UserSettings(db.Model):
    __tablename__ = "user_settings"

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), primary_key=True)
    display_name = db.Column(db.String(100), nullable=False, default="")
    bio = db.Column(db.Text, nullable=False, default="")
    favorite_genres = db.Column(db.JSON, default=list)
    profile_visibility = db.Column(db.String(10), nullable=False, default="public")
    review_visibility = db.Column(db.String(10), nullable=False, default="public")
    show_email = db.Column(db.Boolean, nullable=False, default=False)
    default_sort = db.Column(db.String(20), nullable=False, default="popularity")
    theme_mode = db.Column(db.String(10), nullable=False, default="system")

    # Letterboxd integration
    letterboxd_username = db.Column(db.String(100), nullable=False, default="")
    letterboxd_last_import = db.Column(db.DateTime, nullable=True)
    letterboxd_total_imported = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow)

    user = db.relationship("User", back_populates="settings")

    @classmethod
    def for_user(cls, user):
        """Return the user's settings row, creating it with defaults on first access."""
        settings = db.session.get(cls, user.id)
        if settings is None:
            settings = cls(user_id=user.id)
            settings.apply_defaults(user)
            db.session.add(settings)
            db.session.commit()
        return settings

    def apply_defaults(self, user=None):
        self.display_name = user.username if user is not None else ""
        self.bio = ""
        self.favorite_genres = []
        self.profile_visibility = "public"
        self.review_visibility = "public"
        self.show_email = False
        self.default_sort = "popularity"
        self.theme_mode = "system"
        self.letterboxd_username = ""
        self.letterboxd_last_import = None
        self.letterboxd_total_imported = 0
        self.created_at = utcnow()
        self.updated_at = self.created_at

    def update_from(self, data):
        """
        Apply a partial update from a JSON body. Raises ValueError on an unknown
        enumeration value; unknown keys are ignored.
        """
        for attr, (key, allowed) in EDITABLE_FIELDS.items():
            if key not in data:
                continue
            value = data[key]
            if allowed is not None and value not in allowed:
                raise ValueError(f"{key} must be one of {', '.join(allowed)}")
            if attr == "favorite_genres":
                value = [str(g) for g in (value or [])]
            elif attr == "show_email":
                value = bool(value)
            else:
                value = (value or "").strip()
            setattr(self, attr, value)
        self.updated_at = utcnow()

    def record_import(self, imported: int):
        self.letterboxd_last_import = utcnow()
        self.letterboxd_total_imported = (self.letterboxd_total_imported or 0) + imported
        self.updated_at = utcnow()

    def to_dict(self):
        return {
            "displayName": self.display_name,
            "bio": self.bio,
            "favoriteGenres": self.favorite_genres or [],
            "profileVisibility": self.profile_visibility,
            "reviewVisibility": self.review_visibility,
            "showEmail": self.show_email,
            "defaultSort": self.default_sort,
            "themeMode": self.theme_mode,
            "letterboxd": {
                "username": self.letterboxd_username,
                "lastImportDate": (
                    self.letterboxd_last_import.isoformat() if self.letterboxd_last_import else None
                ),
                "totalReviewsImported": self.letterboxd_total_imported,
            },
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
