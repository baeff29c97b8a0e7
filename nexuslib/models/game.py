"""
Model: Game
Durable catalog record. Scan-owned fields are refreshed on every merge; the
user-owned block is only ever written by explicit user actions.
"""

from nexuslib.db import db
from nexuslib.utils import format_datetime, now_utc


class Game(db.Model):
    __tablename__ = "games"

    id = db.Column(db.Integer, primary_key=True)
    canonical_key = db.Column(db.String, unique=True, index=True, nullable=False)
    normalized_title = db.Column(db.String, index=True, nullable=False)

    # Scan-owned fields
    title = db.Column(db.String, nullable=False)
    mechanism = db.Column(db.String(20))  # None for user-added entries
    app_id = db.Column(db.String)
    install_path = db.Column(db.String)
    executable_path = db.Column(db.String)
    status = db.Column(db.String(10), default="MISSING")

    # Descriptive metadata (filled by enrichment only while empty)
    cover_url = db.Column(db.String(512))
    hero_url = db.Column(db.String(512))
    description = db.Column(db.Text)
    developer = db.Column(db.String)
    release_date = db.Column(db.String)

    # === USER-OWNED ===
    favorite = db.Column(db.Boolean, default=False, nullable=False)
    last_played = db.Column(db.DateTime)
    total_play_time = db.Column(db.Integer, default=0, nullable=False)  # seconds
    custom_description = db.Column(db.Text)
    custom_cover_url = db.Column(db.String(512))
    ignored = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=now_utc)
    updated_at = db.Column(db.DateTime, default=now_utc, onupdate=now_utc)

    @property
    def is_manual(self):
        return self.mechanism is None

    @property
    def display_cover_url(self):
        return self.custom_cover_url or self.cover_url

    @property
    def display_description(self):
        return self.custom_description or self.description

    def to_dict(self):
        return {
            "id": self.id,
            "canonical_key": self.canonical_key,
            "normalized_title": self.normalized_title,
            "title": self.title,
            "mechanism": self.mechanism,
            "app_id": self.app_id,
            "install_path": self.install_path,
            "executable_path": self.executable_path,
            "status": self.status,
            "cover_url": self.display_cover_url,
            "hero_url": self.hero_url,
            "description": self.display_description,
            "developer": self.developer,
            "release_date": self.release_date,
            "favorite": bool(self.favorite),
            "last_played": format_datetime(self.last_played),
            "total_play_time": self.total_play_time or 0,
            "ignored": bool(self.ignored),
            "is_manual": self.is_manual,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }

    def __repr__(self):
        return f"<Game {self.id} {self.canonical_key!r} {self.status}>"
