"""Round-scoring state machine: settlement, elimination, wins and replay."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Sequence

from .rules import (
    GameConfig,
    RoundRejected,
    ScoreInput,
    Variant,
    round_starter,
    settle_points,
    validate_submission,
)
from .state import Game, GameStatus, Player, Round
from .storage import GameRepository

__all__ = [
    "UnknownRound",
    "NoActiveGame",
    "Standing",
    "ScoreKeeper",
    "settle_round",
    "apply_round",
    "replay",
    "standings",
]

logger = logging.getLogger(__name__)

Listener = Callable[[Game | None], None]


class UnknownRound(LookupError):
    """Raised when an edit names a round the game does not contain."""


class NoActiveGame(RuntimeError):
    """Raised when a round is submitted before a game exists."""


@dataclass(frozen=True, slots=True)
class Standing:
    """Leaderboard entry for one player."""

    rank: int
    player_id: str
    name: str
    score: int
    is_eliminated: bool


def settle_round(scores: Sequence[ScoreInput], config: GameConfig) -> tuple[dict[str, int], str | None]:
    """Return settled points per player and the round winner (if valid)."""

    settled = {score.player_id: settle_points(score, config) for score in scores}
    starter = round_starter(scores)
    winner = None if starter.has_invalid_declaration else starter.player_id
    return settled, winner


def _game_winner(game: Game, deal_number: int) -> str | None:
    config = game.config
    if config.variant is Variant.POOL:
        active = game.active_players
        return active[0].id if len(active) == 1 else None
    if config.variant is Variant.DEALS and deal_number >= config.number_of_deals:
        lowest = min(player.score for player in game.players)
        return next(player.id for player in game.players if player.score == lowest)
    return None


def apply_round(game: Game, entry: Round) -> None:
    """Fold ``entry`` into the cumulative player state and re-check the win."""

    config = game.config
    for player in game.players:
        player.score += entry.scores.get(player.id, 0)
        if config.variant is Variant.POOL and player.score > config.pool_limit:
            player.is_eliminated = True

    deal_number = game.current_deal
    game.current_deal += 1
    winner = _game_winner(game, deal_number)
    if winner != game.winner:
        game.winner = winner
        game.completed_at = entry.timestamp if winner is not None else None


def replay(game: Game) -> None:
    """Recompute every player and the win state from the stored rounds."""

    for player in game.players:
        player.reset()
    game.current_deal = 1
    game.winner = None
    game.completed_at = None
    for entry in game.rounds:
        apply_round(game, entry)


def _eliminated_before(game: Game, index: int) -> list[str]:
    """Return the players already out when the round at ``index`` was played."""

    earlier = game.copy()
    earlier.rounds = earlier.rounds[:index]
    replay(earlier)
    return [player.id for player in earlier.players if player.is_eliminated]


def standings(game: Game) -> list[Standing]:
    """Rank players: active before eliminated, then lower score, then seat."""

    seats = {player.id: idx for idx, player in enumerate(game.players)}
    ordered = sorted(game.players, key=lambda p: (p.is_eliminated, p.score, seats[p.id]))
    return [
        Standing(
            rank=idx,
            player_id=player.id,
            name=player.name,
            score=player.score,
            is_eliminated=player.is_eliminated,
        )
        for idx, player in enumerate(ordered, start=1)
    ]


def _new_id() -> str:
    return uuid.uuid4().hex


class ScoreKeeper:
    """Service owning the current game; the only path that mutates it.

    Every transition is persisted through ``repository`` on a best-effort
    basis and then announced to subscribers.
    """

    def __init__(
        self,
        repository: GameRepository | None = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._repository = repository
        self._clock = clock
        self._id_factory = id_factory
        self._game: Game | None = None
        self._listeners: list[Listener] = []
        self.last_persistence_error: Exception | None = None

    def get_state(self) -> Game | None:
        """Return a detached copy of the current game."""

        return self._game.copy() if self._game is not None else None

    @property
    def status(self) -> GameStatus:
        return self._game.status if self._game is not None else GameStatus.EMPTY

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def new_game(
        self,
        config: GameConfig,
        players: Sequence[Player | str],
        *,
        name: str | None = None,
    ) -> Game:
        seated: list[Player] = []
        for entry in players:
            if isinstance(entry, Player):
                seated.append(Player(id=entry.id, name=entry.name))
            else:
                seated.append(Player(id=self._id_factory(), name=entry))
        if len(seated) < 2:
            raise ValueError("a game needs at least two players")
        if len({player.id for player in seated}) != len(seated):
            raise ValueError("player ids must be unique")

        self._game = Game(
            id=self._id_factory(),
            config=config,
            players=seated,
            started_at=self._clock(),
            name=name,
        )
        logger.info("Started %s game %s with %d players", config.variant.value, self._game.id, len(seated))
        self._commit()
        return self._game.copy()

    def load(self, game_id: str) -> Game | None:
        """Make the stored game ``game_id`` current; ``None`` if unavailable."""

        if self._repository is None:
            return None
        try:
            game = self._repository.load(game_id)
        except (OSError, ValueError, KeyError) as exc:
            logger.warning("Could not load game %s: %s", game_id, exc)
            self.last_persistence_error = exc
            return None
        if game is None:
            return None
        replay(game)
        self._game = game
        self._notify()
        return game.copy()

    def reset(self) -> None:
        self._game = None
        self._notify()

    def _require_game(self) -> Game:
        if self._game is None:
            raise NoActiveGame("no game in progress")
        return self._game

    def add_round(self, scores: Sequence[ScoreInput]) -> Round:
        """Settle and append a round; rejects without side effects."""

        game = self._require_game()
        if game.status is GameStatus.COMPLETED:
            raise RoundRejected("game is already complete")
        validate_submission(
            scores,
            (player.id for player in game.players),
            (player.id for player in game.players if player.is_eliminated),
        )

        settled, winner = settle_round(scores, game.config)
        entry = Round(id=self._id_factory(), timestamp=self._clock(), scores=settled, winner=winner)
        game.rounds.append(entry)
        apply_round(game, entry)
        logger.info("Recorded round %d of game %s", len(game.rounds), game.id)
        if game.winner is not None:
            logger.info("Game %s won by %s", game.id, game.winner)
        self._commit()
        return entry.copy()

    def update_round(self, round_id: str, scores: Sequence[ScoreInput]) -> Round:
        """Replace the scores of ``round_id`` and replay the whole game."""

        game = self._require_game()
        try:
            index = game.round_index(round_id)
        except KeyError:
            raise UnknownRound(f"round '{round_id}' not found") from None
        validate_submission(scores, (player.id for player in game.players), _eliminated_before(game, index))

        settled, winner = settle_round(scores, game.config)
        previous = game.rounds[index]
        game.rounds[index] = Round(id=previous.id, timestamp=previous.timestamp, scores=settled, winner=winner)
        previous_winner = game.winner
        replay(game)
        logger.info("Edited round %d of game %s", index + 1, game.id)
        if previous_winner != game.winner:
            logger.info("Game %s winner changed from %s to %s", game.id, previous_winner, game.winner)
        self._commit()
        return game.rounds[index].copy()

    def _commit(self) -> None:
        self._persist()
        self._notify()

    def _persist(self) -> None:
        if self._repository is None or self._game is None:
            return
        try:
            self._repository.save(self._game.copy())
        except Exception as exc:  # non-fatal: memory stays the source of truth
            logger.exception("Failed to save game %s", self._game.id)
            self.last_persistence_error = exc
        else:
            self.last_persistence_error = None

    def _notify(self) -> None:
        snapshot = self.get_state()
        for listener in list(self._listeners):
            listener(snapshot)
