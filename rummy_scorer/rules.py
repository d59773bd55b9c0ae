"""Game configuration, penalties and round settlement rules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final, Iterable, Mapping, Sequence

__all__ = [
    "Variant",
    "DropKind",
    "GameConfig",
    "ScoreInput",
    "RoundRejected",
    "DEFAULT_POOL_LIMIT",
    "POOL_LIMIT_PRESETS",
    "DEFAULT_NUMBER_OF_DEALS",
    "DEFAULT_FIRST_DROP",
    "DEFAULT_MIDDLE_DROP",
    "MAX_ROUND_POINTS",
    "settle_points",
    "drop_points",
    "validate_submission",
    "round_starter",
    "points_winnings",
]

DEFAULT_POOL_LIMIT: Final[int] = 101
POOL_LIMIT_PRESETS: Final[tuple[int, ...]] = (101, 201, 250)
DEFAULT_NUMBER_OF_DEALS: Final[int] = 2
DEFAULT_POINT_VALUE: Final[int] = 1
DEFAULT_FIRST_DROP: Final[int] = 25
DEFAULT_MIDDLE_DROP: Final[int] = 50
MAX_ROUND_POINTS: Final[int] = 80


class Variant(str, Enum):
    """Supported Indian Rummy formats."""

    POOL = "pool"
    POINTS = "points"
    DEALS = "deals"


class DropKind(str, Enum):
    FIRST = "first"
    MIDDLE = "middle"


class RoundRejected(ValueError):
    """Raised when a round submission fails validation; no state is changed."""


@dataclass(frozen=True, slots=True)
class GameConfig:
    """Options recognised for a scored game."""

    variant: Variant = Variant.POOL
    pool_limit: int = DEFAULT_POOL_LIMIT
    number_of_deals: int = DEFAULT_NUMBER_OF_DEALS
    point_value: int = DEFAULT_POINT_VALUE
    first_drop_penalty: int = DEFAULT_FIRST_DROP
    middle_drop_penalty: int = DEFAULT_MIDDLE_DROP
    invalid_declaration_penalty: int = MAX_ROUND_POINTS

    def __post_init__(self) -> None:
        if not isinstance(self.variant, Variant):
            object.__setattr__(self, "variant", Variant(self.variant))
        if self.pool_limit <= 0:
            raise ValueError("pool_limit must be positive")
        if self.number_of_deals <= 0:
            raise ValueError("number_of_deals must be positive")
        if self.point_value < 0:
            raise ValueError("point_value must not be negative")
        for name in ("first_drop_penalty", "middle_drop_penalty", "invalid_declaration_penalty"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    def to_record(self) -> dict[str, object]:
        return {
            "variant": self.variant.value,
            "poolLimit": self.pool_limit,
            "numberOfDeals": self.number_of_deals,
            "pointValue": self.point_value,
            "firstDropPenalty": self.first_drop_penalty,
            "middleDropPenalty": self.middle_drop_penalty,
            "invalidDeclarationPenalty": self.invalid_declaration_penalty,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, object]) -> "GameConfig":
        return cls(
            variant=Variant(record["variant"]),
            pool_limit=int(record.get("poolLimit", DEFAULT_POOL_LIMIT)),
            number_of_deals=int(record.get("numberOfDeals", DEFAULT_NUMBER_OF_DEALS)),
            point_value=int(record.get("pointValue", DEFAULT_POINT_VALUE)),
            first_drop_penalty=int(record.get("firstDropPenalty", DEFAULT_FIRST_DROP)),
            middle_drop_penalty=int(record.get("middleDropPenalty", DEFAULT_MIDDLE_DROP)),
            invalid_declaration_penalty=int(record.get("invalidDeclarationPenalty", MAX_ROUND_POINTS)),
        )


@dataclass(frozen=True, slots=True)
class ScoreInput:
    """One player's entry for a round, as decided by the caller."""

    player_id: str
    points: int = 0
    is_declared: bool = False
    has_invalid_declaration: bool = False

    @property
    def starts_round_end(self) -> bool:
        return self.is_declared or self.has_invalid_declaration


def settle_points(score: ScoreInput, config: GameConfig) -> int:
    """Return the points ``score`` adds to the player's running total."""

    if score.has_invalid_declaration:
        if config.variant is Variant.POOL:
            return config.invalid_declaration_penalty
        return min(score.points, MAX_ROUND_POINTS)
    if score.is_declared:
        return 0
    return score.points


def drop_points(kind: DropKind, config: GameConfig) -> int:
    return config.first_drop_penalty if kind is DropKind.FIRST else config.middle_drop_penalty


def validate_submission(
    scores: Sequence[ScoreInput],
    player_ids: Iterable[str],
    eliminated: Iterable[str] = (),
) -> None:
    """Raise :class:`RoundRejected` unless ``scores`` is a well-formed round.

    ``eliminated`` names players already out of a Pool game; they may not
    take part in further rounds.
    """

    known = set(player_ids)
    out = set(eliminated)
    seen: set[str] = set()
    for score in scores:
        if score.player_id not in known:
            raise RoundRejected(f"unknown player '{score.player_id}'")
        if score.player_id in out:
            raise RoundRejected(f"player '{score.player_id}' is eliminated")
        if score.player_id in seen:
            raise RoundRejected(f"duplicate score for player '{score.player_id}'")
        if score.points < 0:
            raise RoundRejected(f"points for player '{score.player_id}' must not be negative")
        seen.add(score.player_id)

    starters = [score for score in scores if score.starts_round_end]
    if not starters:
        raise RoundRejected("no winner marked")
    if len(starters) > 1:
        raise RoundRejected("only one player can be the winner")


def round_starter(scores: Sequence[ScoreInput]) -> ScoreInput:
    return next(score for score in scores if score.starts_round_end)


def points_winnings(scores: Mapping[str, int], winner_id: str, point_value: int) -> int:
    """Return what the winner collects in Points rummy for one round."""

    return sum(points for player_id, points in scores.items() if player_id != winner_id) * point_value
