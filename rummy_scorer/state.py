"""Game, player and round records owned by the scoring state machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from .rules import GameConfig

__all__ = ["GameStatus", "Player", "Round", "Game"]


class GameStatus(str, Enum):
    """Lifecycle of a scored game."""

    EMPTY = "empty"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def _parse_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass(slots=True)
class Player:
    """Cumulative standing of one seated player."""

    id: str
    name: str
    score: int = 0
    is_eliminated: bool = False

    def copy(self) -> "Player":
        return Player(id=self.id, name=self.name, score=self.score, is_eliminated=self.is_eliminated)

    def reset(self) -> None:
        self.score = 0
        self.is_eliminated = False

    def to_record(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "score": self.score, "isEliminated": self.is_eliminated}

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Player":
        return cls(
            id=str(record["id"]),
            name=str(record["name"]),
            score=int(record.get("score", 0)),
            is_eliminated=bool(record.get("isEliminated", False)),
        )


@dataclass(slots=True)
class Round:
    """Settled points of one round keyed by player id."""

    id: str
    timestamp: datetime
    scores: dict[str, int]
    winner: str | None = None

    def copy(self) -> "Round":
        return Round(id=self.id, timestamp=self.timestamp, scores=dict(self.scores), winner=self.winner)

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "scores": dict(self.scores),
        }
        if self.winner is not None:
            record["winner"] = self.winner
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Round":
        return cls(
            id=str(record["id"]),
            timestamp=_parse_time(record["timestamp"]),
            scores={str(key): int(value) for key, value in record["scores"].items()},
            winner=record.get("winner"),
        )


@dataclass(slots=True)
class Game:
    """A scored game; exclusively owns its players and rounds."""

    id: str
    config: GameConfig
    players: list[Player]
    rounds: list[Round] = field(default_factory=list)
    current_deal: int = 1
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None
    winner: str | None = None
    name: str | None = None

    @property
    def status(self) -> GameStatus:
        if self.winner is not None:
            return GameStatus.COMPLETED
        if not self.rounds:
            return GameStatus.EMPTY
        return GameStatus.IN_PROGRESS

    @property
    def active_players(self) -> list[Player]:
        return [player for player in self.players if not player.is_eliminated]

    def player(self, player_id: str) -> Player:
        for player in self.players:
            if player.id == player_id:
                return player
        raise KeyError(player_id)

    def round_index(self, round_id: str) -> int:
        for idx, entry in enumerate(self.rounds):
            if entry.id == round_id:
                return idx
        raise KeyError(round_id)

    def copy(self) -> "Game":
        """Return a deep copy sharing no mutable records with ``self``."""

        return Game(
            id=self.id,
            config=self.config,
            players=[player.copy() for player in self.players],
            rounds=[entry.copy() for entry in self.rounds],
            current_deal=self.current_deal,
            started_at=self.started_at,
            completed_at=self.completed_at,
            winner=self.winner,
            name=self.name,
        )

    def to_record(self) -> dict[str, Any]:
        """Return the persisted form of the game (JSON-compatible)."""

        record: dict[str, Any] = {
            "id": self.id,
            "config": self.config.to_record(),
            "players": [player.to_record() for player in self.players],
            "rounds": [entry.to_record() for entry in self.rounds],
            "currentDeal": self.current_deal,
            "startedAt": self.started_at.isoformat(),
        }
        if self.name is not None:
            record["name"] = self.name
        if self.completed_at is not None:
            record["completedAt"] = self.completed_at.isoformat()
        if self.winner is not None:
            record["winner"] = self.winner
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Game":
        completed_at = record.get("completedAt")
        return cls(
            id=str(record["id"]),
            name=record.get("name"),
            config=GameConfig.from_record(record["config"]),
            players=[Player.from_record(item) for item in record["players"]],
            rounds=[Round.from_record(item) for item in record.get("rounds", [])],
            current_deal=int(record.get("currentDeal", 1)),
            started_at=_parse_time(record["startedAt"]),
            completed_at=_parse_time(completed_at) if completed_at is not None else None,
            winner=record.get("winner"),
        )
