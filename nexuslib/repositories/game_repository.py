"""
Repository for Game (persisted catalog) database operations
"""

import logging
from sqlalchemy.exc import SQLAlchemyError
from nexuslib.db import db
from nexuslib.exceptions import NotFoundException, PersistenceException, ValidationException
from nexuslib.models.game import Game
from nexuslib.titles import canonical_key, normalize_title

logger = logging.getLogger("main")

# Fields a user may edit through the API; scans never write these
USER_FIELDS = ("favorite", "custom_description", "custom_cover_url", "last_played", "total_play_time")


class GameRepository:
    """Repository for Game database operations"""

    @staticmethod
    def find_all():
        """Get all catalog entries in insertion order"""
        return Game.query.order_by(Game.id).all()

    @staticmethod
    def get_by_id(id):
        """Get Game by primary key ID"""
        return db.session.get(Game, id)

    @staticmethod
    def find_by_canonical_key(key):
        try:
            return Game.query.filter_by(canonical_key=key).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceException(f"Could not look up {key}: {e}") from e

    @staticmethod
    def find_by_normalized_title(normalized_title):
        """Oldest entry sharing the normalized title"""
        if not normalized_title:
            return None
        try:
            return Game.query.filter_by(normalized_title=normalized_title).order_by(Game.id).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceException(f"Could not look up title {normalized_title}: {e}") from e

    @staticmethod
    def save(game):
        """Insert or update a single entry and commit it on its own"""
        try:
            game.normalized_title = normalize_title(game.title)
            db.session.add(game)
            db.session.commit()
            return game
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error saving {game.canonical_key}: {e}")
            raise PersistenceException(f"Could not save {game.canonical_key}: {e}") from e

    @staticmethod
    def delete(id):
        """Delete Game record, returns False when it does not exist"""
        game = db.session.get(Game, id)
        if not game:
            return False
        try:
            db.session.delete(game)
            db.session.commit()
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error deleting game {id}: {e}")
            raise PersistenceException(f"Could not delete game {id}: {e}") from e

    @staticmethod
    def create_manual(title, executable_path=None, install_path=None, **kwargs):
        """Add a user-created entry with no scan mechanism"""
        if not title or not title.strip():
            raise ValidationException("Title is required")
        key = canonical_key(None, None, title)
        if GameRepository.find_by_canonical_key(key):
            raise ValidationException(f"A manual entry for '{title}' already exists")

        game = Game(
            title=title.strip(),
            canonical_key=key,
            mechanism=None,
            executable_path=executable_path,
            install_path=install_path,
            status=kwargs.pop("status", "READY" if executable_path else "MISSING"),
            **kwargs,
        )
        return GameRepository.save(game)

    @staticmethod
    def update_user_fields(id, **fields):
        """Apply user edits; unknown or scan-owned fields are rejected"""
        game = GameRepository.get_by_id(id)
        if not game:
            raise NotFoundException(f"Game {id} not found")

        unknown = [k for k in fields if k not in USER_FIELDS]
        if unknown:
            raise ValidationException(f"Fields not editable: {', '.join(sorted(unknown))}")

        for key, value in fields.items():
            setattr(game, key, value)
        return GameRepository.save(game)

    @staticmethod
    def set_favorite(id, favorite=True):
        return GameRepository.update_user_fields(id, favorite=bool(favorite))

    @staticmethod
    def count():
        return Game.query.count()

    @staticmethod
    def rollback():
        """Discard a failed unit of work so the next entry starts clean"""
        db.session.rollback()
