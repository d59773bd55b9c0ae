"""Persistence back-ends for scored games."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Final, Protocol

from .state import Game

__all__ = [
    "GameRepository",
    "InMemoryGameRepository",
    "JsonGameRepository",
    "STORE_ENV_VAR",
    "default_store_dir",
]

logger = logging.getLogger(__name__)

STORE_ENV_VAR: Final[str] = "RUMMY_SCORER_HOME"


class GameRepository(Protocol):
    """Structural protocol for game stores used by the score keeper."""

    def save(self, game: Game) -> None:  # pragma: no cover - protocol only
        ...

    def load(self, game_id: str) -> Game | None:  # pragma: no cover - protocol only
        ...


class InMemoryGameRepository:
    """Dictionary-backed store, mostly for tests and embedding."""

    def __init__(self) -> None:
        self._records: dict[str, dict] = {}

    def save(self, game: Game) -> None:
        self._records[game.id] = game.to_record()

    def load(self, game_id: str) -> Game | None:
        record = self._records.get(game_id)
        return Game.from_record(record) if record is not None else None

    def list_games(self) -> list[Game]:
        return [Game.from_record(record) for record in self._records.values()]


def default_store_dir() -> Path:
    configured = os.environ.get(STORE_ENV_VAR)
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".rummy_scorer"


class JsonGameRepository:
    """One JSON document per game inside ``directory``."""

    def __init__(self, directory: Path | str | None = None) -> None:
        self.directory = Path(directory) if directory is not None else default_store_dir()

    def _path(self, game_id: str) -> Path:
        return self.directory / f"{game_id}.json"

    def save(self, game: Game) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(game.id)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(game.to_record(), indent=2), encoding="utf-8")
        tmp_path.replace(path)
        logger.debug("Saved game %s to %s", game.id, path)

    def load(self, game_id: str) -> Game | None:
        path = self._path(game_id)
        if not path.exists():
            return None
        record = json.loads(path.read_text(encoding="utf-8"))
        return Game.from_record(record)

    def list_games(self) -> list[Game]:
        """Return every readable stored game, newest first."""

        games: list[Game] = []
        if not self.directory.exists():
            return games
        for path in sorted(self.directory.glob("*.json")):
            try:
                games.append(Game.from_record(json.loads(path.read_text(encoding="utf-8"))))
            except (OSError, ValueError, KeyError) as exc:
                logger.warning("Skipping unreadable game file %s: %s", path, exc)
        games.sort(key=lambda game: game.started_at, reverse=True)
        return games
