"""
Repository for IgnoredGame database operations
"""

import logging
from sqlalchemy.exc import SQLAlchemyError
from nexuslib.db import db
from nexuslib.exceptions import NotFoundException, PersistenceException
from nexuslib.models.game import Game
from nexuslib.models.ignored_game import KIND_DELETED, IgnoredGame
from nexuslib.titles import normalize_title

logger = logging.getLogger("main")


class IgnoredGameRepository:
    """Repository for IgnoredGame database operations"""

    @staticmethod
    def find_ignored():
        """Get all ignored entries, alphabetically"""
        return IgnoredGame.query.order_by(IgnoredGame.title).all()

    @staticmethod
    def get_by_id(id):
        return db.session.get(IgnoredGame, id)

    @staticmethod
    def is_ignored(normalized_title):
        if not normalized_title:
            return False
        return IgnoredGame.query.filter_by(normalized_title=normalized_title).first() is not None

    @staticmethod
    def ignored_sets():
        """Snapshot used by the aggregator: (normalized titles, canonical keys)"""
        titles = set()
        keys = set()
        for rec in IgnoredGame.query.all():
            if rec.normalized_title:
                titles.add(rec.normalized_title)
            if rec.canonical_key:
                keys.add(rec.canonical_key)
        return titles, keys

    @staticmethod
    def ignore_title(title, canonical_key=None, install_path=None):
        """Create an ignore record for a title (idempotent on normalized title)"""
        existing = IgnoredGame.query.filter_by(normalized_title=normalize_title(title)).first()
        if existing:
            return existing
        try:
            item = IgnoredGame(title, canonical_key=canonical_key, install_path=install_path)
            db.session.add(item)
            db.session.commit()
            logger.info(f"Ignoring '{title}'")
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceException(f"Could not ignore '{title}': {e}") from e

    @staticmethod
    def ignore_game(game_id):
        """Ignore a catalog entry: flag it and record its title and key"""
        game = db.session.get(Game, game_id)
        if not game:
            raise NotFoundException(f"Game {game_id} not found")
        item = IgnoredGameRepository.ignore_title(game.title, game.canonical_key, game.install_path)
        try:
            game.ignored = True
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceException(f"Could not flag game {game_id} as ignored: {e}") from e
        return item

    @staticmethod
    def delete_game(game_id):
        """
        User delete: remove the entry and leave a tombstone so later scans
        never recreate it. Manual entries need none; no scan produces them.
        """
        game = db.session.get(Game, game_id)
        if not game:
            return False
        title = game.title
        try:
            if not game.is_manual and not IgnoredGameRepository.is_ignored(game.normalized_title):
                db.session.add(
                    IgnoredGame(game.title, canonical_key=game.canonical_key, install_path=game.install_path, kind=KIND_DELETED)
                )
            db.session.delete(game)
            db.session.commit()
            logger.info(f"Deleted '{title}'")
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceException(f"Could not delete game {game_id}: {e}") from e

    @staticmethod
    def unignore(id):
        """Remove an ignore record and clear the flag on matching entries"""
        item = db.session.get(IgnoredGame, id)
        if not item:
            return False
        title = item.title
        try:
            Game.query.filter_by(normalized_title=item.normalized_title).update({"ignored": False})
            db.session.delete(item)
            db.session.commit()
            logger.info(f"Restored '{title}'")
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceException(f"Could not unignore {id}: {e}") from e

    @staticmethod
    def count():
        return IgnoredGame.query.count()
