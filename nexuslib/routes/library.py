"""
Library Routes - catalog entries, user edits and the ignore list
"""

from flask import Blueprint, request

from nexuslib.api_responses import ErrorCode, error_response, handle_api_errors, success_response
from nexuslib.exceptions import ValidationException
from nexuslib.repositories import GameRepository, IgnoredGameRepository
from nexuslib.repositories.game_repository import USER_FIELDS
from nexuslib.utils import ensure_utc

library_bp = Blueprint("library", __name__, url_prefix="/api")


def _flag(name, default=False):
    value = request.args.get(name)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes")


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationException("Request body must be a JSON object")
    return data


@library_bp.route("/games")
@handle_api_errors
def list_games():
    games = GameRepository.find_all()
    if not _flag("include_ignored"):
        games = [g for g in games if not g.ignored]
    if _flag("favorites"):
        games = [g for g in games if g.favorite]
    return success_response([g.to_dict() for g in games])


@library_bp.route("/games", methods=["POST"])
@handle_api_errors
def add_manual_game():
    """Add a user-created entry (not tied to any source)"""
    data = _json_body()
    game = GameRepository.create_manual(
        data.get("title"),
        executable_path=data.get("executable_path"),
        install_path=data.get("install_path"),
    )
    return success_response(game.to_dict(), message="Game added", status_code=201)


@library_bp.route("/games/<int:game_id>", methods=["PATCH"])
@handle_api_errors
def update_game(game_id):
    data = _json_body()
    unknown = sorted(k for k in data if k not in USER_FIELDS)
    if unknown:
        raise ValidationException(f"Fields not editable: {', '.join(unknown)}")

    if "favorite" in data:
        data["favorite"] = bool(data["favorite"])
    if "total_play_time" in data:
        data["total_play_time"] = int(data["total_play_time"] or 0)
    if data.get("last_played"):
        last_played = ensure_utc(data["last_played"])
        if last_played is None:
            raise ValidationException("last_played must be an ISO 8601 datetime")
        data["last_played"] = last_played

    game = GameRepository.update_user_fields(game_id, **data)
    return success_response(game.to_dict())


@library_bp.route("/games/<int:game_id>", methods=["DELETE"])
@handle_api_errors
def delete_game(game_id):
    """Delete an entry; scanned entries are not recreated by later scans"""
    if not IgnoredGameRepository.delete_game(game_id):
        return error_response(ErrorCode.NOT_FOUND, message=f"Game {game_id} not found", status_code=404)
    return success_response(message="Game deleted")


@library_bp.route("/games/<int:game_id>/ignore", methods=["POST"])
@handle_api_errors
def ignore_game(game_id):
    """Hide an entry from the library and from every future scan"""
    item = IgnoredGameRepository.ignore_game(game_id)
    return success_response(item.to_dict(), message="Game ignored", status_code=201)


@library_bp.route("/ignored")
@handle_api_errors
def list_ignored():
    return success_response([i.to_dict() for i in IgnoredGameRepository.find_ignored()])


@library_bp.route("/ignored/<int:ignored_id>", methods=["DELETE"])
@handle_api_errors
def unignore(ignored_id):
    if not IgnoredGameRepository.unignore(ignored_id):
        return error_response(ErrorCode.NOT_FOUND, message=f"Ignored entry {ignored_id} not found", status_code=404)
    return success_response(message="Game restored")
