"""
Model: IgnoredGame
Titles the user asked to suppress, and tombstones of entries the user
deleted. Scans consult it, never write it.
"""

from nexuslib.db import db
from nexuslib.titles import normalize_title
from nexuslib.utils import format_datetime, now_utc

KIND_IGNORED = "ignored"
KIND_DELETED = "deleted"


class IgnoredGame(db.Model):
    __tablename__ = "ignored_games"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String, nullable=False)
    normalized_title = db.Column(db.String, index=True, nullable=False)
    canonical_key = db.Column(db.String, index=True)
    install_path = db.Column(db.String)
    kind = db.Column(db.String(10), default=KIND_IGNORED, nullable=False)
    ignored_at = db.Column(db.DateTime, default=now_utc)

    def __init__(self, title, canonical_key=None, install_path=None, kind=KIND_IGNORED, **kwargs):
        super().__init__(
            title=title,
            normalized_title=normalize_title(title),
            canonical_key=canonical_key,
            install_path=install_path,
            kind=kind,
            **kwargs,
        )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "normalized_title": self.normalized_title,
            "canonical_key": self.canonical_key,
            "install_path": self.install_path,
            "kind": self.kind,
            "ignored_at": format_datetime(self.ignored_at),
        }
