"""Leaderboard and play-history persistence.

Submissions arrive either as a client-posted record or as the Result of
a session completed on this server. Both go through ``validate_submission``
so the stored rows always have the same shape.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from memorygame import db
from memorygame.models import HistoryEntry, Ranking
from memorygame.services.games.difficulty import ConfigurationError, resolve_difficulty
from memorygame.services.games.scoring import Result, parse_elapsed


class ResultValidationError(ValueError):
    """A submitted result record is malformed."""


def _first_present(data: Dict[str, Any], *keys: str):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _as_int(value, label: str, minimum: int = 0, maximum: Optional[int] = None) -> int:
    if isinstance(value, bool) or value is None:
        raise ResultValidationError(f'{label} is required and must be a number')
    if isinstance(value, float):
        if not value.is_integer():
            raise ResultValidationError(f'{label} must be a whole number')
        value = int(value)
    if not isinstance(value, int):
        try:
            value = int(str(value).strip())
        except ValueError:
            raise ResultValidationError(f'{label} must be a whole number') from None
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f'between {minimum} and {maximum}' if maximum is not None else f'at least {minimum}'
        raise ResultValidationError(f'{label} must be {bounds}')
    return value


def _parse_date(value) -> datetime:
    if value is None:
        return datetime.now(timezone.utc).replace(tzinfo=None)
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except ValueError:
            raise ResultValidationError('date must be an ISO-8601 timestamp') from None
    # Stored as naive UTC
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def validate_player_name(name) -> str:
    cfg = current_app.config
    min_len = int(cfg.get('PLAYER_NAME_MIN_LEN', 2))
    max_len = int(cfg.get('PLAYER_NAME_MAX_LEN', 20))
    cleaned = name.strip() if isinstance(name, str) else ''
    if not min_len <= len(cleaned) <= max_len:
        raise ResultValidationError(f'Name must be between {min_len} and {max_len} characters')
    return cleaned


def validate_submission(data: Dict[str, Any]) -> Dict[str, Any]:
    """Checks a result record and returns the normalized column values."""
    if not isinstance(data, dict):
        raise ResultValidationError('Request body must be a JSON object')
    player_name = validate_player_name(data.get('playerName'))
    score = _as_int(data.get('score'), 'score')
    moves = _as_int(data.get('moves'), 'moves')

    time_text = _first_present(data, 'elapsedTime', 'time')
    if time_text is None:
        raise ResultValidationError('elapsedTime is required (MM:SS)')
    try:
        elapsed_seconds = parse_elapsed(time_text)
    except ValueError as exc:
        raise ResultValidationError(str(exc)) from None

    try:
        difficulty = resolve_difficulty(data.get('difficulty') or '').name
    except ConfigurationError as exc:
        raise ResultValidationError(str(exc)) from None

    efficiency = _as_int(_first_present(data, 'efficiencyPercent', 'efficiency'), 'efficiency', 0, 100)

    return {
        'player_name': player_name,
        'score': score,
        'moves': moves,
        'time': f"{elapsed_seconds // 60:02d}:{elapsed_seconds % 60:02d}",
        'elapsed_seconds': elapsed_seconds,
        'difficulty': difficulty,
        'efficiency': efficiency,
        'date': _parse_date(data.get('date')),
    }


def submission_from_result(result: Result, player_name: str) -> Dict[str, Any]:
    payload = result.to_dict()
    payload['playerName'] = player_name
    payload['date'] = result.date
    return validate_submission(payload)


def save_ranking(fields: Dict[str, Any], user=None) -> Ranking:
    """Adds a ranking row to the current transaction. The caller commits."""
    entry = Ranking(user_id=user.id if user is not None else None, **fields)
    db.session.add(entry)
    db.session.flush()
    return entry


def record_history(fields: Dict[str, Any]) -> HistoryEntry:
    """Adds a history row and drops all but the newest HISTORY_LIMIT for that player.

    Like ``save_ranking`` this only flushes; the caller commits.
    """
    limit = int(current_app.config.get('HISTORY_LIMIT', 20))
    entry = HistoryEntry(**{k: v for k, v in fields.items() if k != 'elapsed_seconds'})
    db.session.add(entry)
    db.session.flush()
    stale = (
        HistoryEntry.query.filter_by(player_name=entry.player_name)
        .order_by(HistoryEntry.date.desc(), HistoryEntry.id.desc())
        .offset(limit)
        .all()
    )
    for row in stale:
        db.session.delete(row)
    return entry


def store_submission(fields: Dict[str, Any], user=None) -> Ranking:
    """Writes the ranking row and the history row in a single commit.

    On a database error the transaction is rolled back and the error is
    re-raised, so neither row is left behind.
    """
    try:
        entry = save_ranking(fields, user=user)
        record_history(fields)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    try:
        current_app.logger.info(
            f"[ranking-saved] id={entry.id} player={entry.player_name} score={entry.score} difficulty={entry.difficulty}"
        )
    except Exception:
        pass
    return entry


def top_rankings(limit: Optional[int] = None) -> List[Ranking]:
    max_limit = int(current_app.config.get('RANKING_GLOBAL_LIMIT', 100))
    limit = max_limit if limit is None else max(1, min(int(limit), max_limit))
    return (
        Ranking.query
        .order_by(Ranking.score.desc(), Ranking.moves.asc(), Ranking.elapsed_seconds.asc(), Ranking.id.asc())
        .limit(limit)
        .all()
    )


def player_rankings(name: str) -> List[Ranking]:
    limit = int(current_app.config.get('RANKING_PLAYER_LIMIT', 20))
    needle = (name or '').strip().lower()
    return (
        Ranking.query
        .filter(db.func.lower(Ranking.player_name).contains(needle, autoescape=True))
        .order_by(Ranking.score.desc(), Ranking.date.desc())
        .limit(limit)
        .all()
    )


def player_history(name: str) -> List[HistoryEntry]:
    limit = int(current_app.config.get('HISTORY_LIMIT', 20))
    return (
        HistoryEntry.query.filter_by(player_name=(name or '').strip())
        .order_by(HistoryEntry.date.desc(), HistoryEntry.id.desc())
        .limit(limit)
        .all()
    )
