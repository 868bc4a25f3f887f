from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from .scoring import Result


@dataclass(frozen=True)
class CardRef:
    index: int
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {'index': self.index, 'value': self.value}


@dataclass(frozen=True)
class CardFlipped:
    name = 'card_flipped'
    index: int
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {'index': self.index, 'value': self.value}


@dataclass(frozen=True)
class MatchFound:
    name = 'match_found'
    first: CardRef
    second: CardRef
    points: int
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'first': self.first.to_dict(),
            'second': self.second.to_dict(),
            'points': self.points,
            'score': self.score,
        }


@dataclass(frozen=True)
class MismatchFound:
    name = 'mismatch_found'
    first: CardRef
    second: CardRef

    def to_dict(self) -> Dict[str, Any]:
        return {'first': self.first.to_dict(), 'second': self.second.to_dict()}


@dataclass(frozen=True)
class MismatchSettled:
    """Both cards of a mismatch are face-down again."""
    name = 'mismatch_settled'
    first: CardRef
    second: CardRef

    def to_dict(self) -> Dict[str, Any]:
        return {'first': self.first.to_dict(), 'second': self.second.to_dict()}


@dataclass(frozen=True)
class SessionComplete:
    name = 'session_complete'
    result: 'Result'

    def to_dict(self) -> Dict[str, Any]:
        return {'result': self.result.to_dict(), 'performance': self.result.performance}
