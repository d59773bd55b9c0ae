"""Meld classification for Indian Rummy card groups."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final, Iterable, Sequence

from .cards import ACE_HIGH_INDEX, Card, Rank, iter_naturals, rank_position

__all__ = [
    "MeldType",
    "Meld",
    "MIN_MELD_SIZE",
    "MAX_SET_SIZE",
    "MAX_SEQUENCE_SIZE",
    "RUN_WINDOWS",
    "classify_meld",
    "can_add_to_meld",
    "find_meld_extensions",
]

MIN_MELD_SIZE: Final[int] = 3
MAX_SET_SIZE: Final[int] = 4
MAX_SEQUENCE_SIZE: Final[int] = len(Rank)
# (ace_high, lowest position, highest position) of the two ways a run can lie.
RUN_WINDOWS: Final[tuple[tuple[bool, int, int], ...]] = ((False, 1, MAX_SEQUENCE_SIZE), (True, 2, ACE_HIGH_INDEX))


class MeldType(str, Enum):
    """Kinds of valid melds."""

    PURE_SEQUENCE = "pure-sequence"
    SEQUENCE = "sequence"
    SET = "set"

    @property
    def is_sequence(self) -> bool:
        return self is not MeldType.SET


@dataclass(frozen=True, slots=True)
class Meld:
    """A classified group of three or more cards."""

    type: MeldType
    cards: tuple[Card, ...]

    @property
    def is_pure(self) -> bool:
        return self.type is MeldType.PURE_SEQUENCE

    @property
    def is_sequence(self) -> bool:
        return self.type.is_sequence

    @property
    def joker_count(self) -> int:
        return sum(1 for card in self.cards if card.is_joker)

    def card_ids(self) -> frozenset[str]:
        return frozenset(card.id for card in self.cards)

    def __len__(self) -> int:
        return len(self.cards)


def _is_set(naturals: Sequence[Card], size: int) -> bool:
    if size > MAX_SET_SIZE:
        return False
    ranks = {card.rank for card in naturals}
    suits = {card.suit for card in naturals}
    return len(ranks) == 1 and len(suits) == len(naturals)


def _fits_window(indexes: Sequence[int], jokers: int, low: int, high: int) -> bool:
    if len(set(indexes)) != len(indexes):
        return False
    if indexes[0] < low or indexes[-1] > high:
        return False
    gaps = sum(b - a - 1 for a, b in zip(indexes, indexes[1:]))
    if gaps > jokers:
        return False
    spare = jokers - gaps
    room = (indexes[0] - low) + (high - indexes[-1])
    return spare <= room


def _sequence_fits(naturals: Sequence[Card], jokers: int) -> bool:
    if len({card.suit for card in naturals}) != 1:
        return False
    for ace_high, low, high in RUN_WINDOWS:
        indexes = sorted(rank_position(card.rank, ace_high) for card in naturals)
        if _fits_window(indexes, jokers, low, high):
            return True
    return False


def classify_meld(cards: Iterable[Card]) -> Meld | None:
    """Return the meld formed by ``cards`` or ``None`` when they form none.

    Sets are tried first, so one natural card with two jokers is a set.
    Any joker in a valid run makes it a plain sequence. The Ace ends a run
    low (A-2-3) or high (Q-K-A); runs never wrap round the King.
    """

    group = tuple(cards)
    if len(group) < MIN_MELD_SIZE or len(group) > MAX_SEQUENCE_SIZE:
        return None
    naturals = list(iter_naturals(group))
    if not naturals:
        return None
    jokers = len(group) - len(naturals)

    if _is_set(naturals, len(group)):
        return Meld(MeldType.SET, group)
    if _sequence_fits(naturals, jokers):
        kind = MeldType.SEQUENCE if jokers else MeldType.PURE_SEQUENCE
        return Meld(kind, group)
    return None


def can_add_to_meld(meld: Meld, card: Card) -> bool:
    """Return ``True`` if ``card`` keeps ``meld`` valid and of the same family."""

    if card.id in meld.card_ids():
        return False
    extended = classify_meld(meld.cards + (card,))
    if extended is None:
        return False
    return extended.is_sequence == meld.is_sequence


def find_meld_extensions(meld: Meld, cards: Iterable[Card]) -> list[Card]:
    return [card for card in cards if can_add_to_meld(meld, card)]
