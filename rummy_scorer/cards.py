"""Card abstractions and deck helpers for Indian Rummy."""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Final, Iterable, Iterator, Sequence

__all__ = [
    "Suit",
    "Rank",
    "JokerType",
    "Card",
    "DealResult",
    "CARDS_PER_PLAYER",
    "PRINTED_JOKERS_PER_DECK",
    "ACE_HIGH_INDEX",
    "rank_position",
    "is_consecutive",
    "is_same_rank",
    "parse_cards",
    "full_deck",
    "with_wild_rank",
    "deal",
    "sort_by_suit",
    "sort_by_rank",
    "iter_naturals",
]

CARDS_PER_PLAYER: Final[int] = 13
PRINTED_JOKERS_PER_DECK: Final[int] = 2
ACE_HIGH_INDEX: Final[int] = 14


class Suit(str, Enum):
    """Enumeration of the four suits."""

    SPADES = "spades"
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"

    @property
    def letter(self) -> str:
        return self.value[0].upper()

    @classmethod
    def from_letter(cls, letter: str) -> "Suit":
        for suit in cls:
            if suit.letter == letter.upper():
                return suit
        raise ValueError(f"unknown suit letter '{letter}'")


class Rank(str, Enum):
    """Enumeration of ranks in sequence order, Ace first."""

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    @property
    def index(self) -> int:
        """Return the 1-based position used for run validation (A=1, K=13)."""

        return _RANK_INDEX[self]

    @property
    def points(self) -> int:
        """Return the penalty value of the rank when left as deadwood."""

        if self in (Rank.ACE, Rank.JACK, Rank.QUEEN, Rank.KING):
            return 10
        return int(self.value)

    @classmethod
    def from_index(cls, index: int) -> "Rank":
        return _ORDERED_RANKS[index - 1]


_ORDERED_RANKS: Final[tuple[Rank, ...]] = tuple(Rank)
_RANK_INDEX: Final[dict[Rank, int]] = {rank: idx for idx, rank in enumerate(_ORDERED_RANKS, start=1)}
_SUIT_ORDER: Final[dict[Suit, int]] = {suit: idx for idx, suit in enumerate(Suit)}


class JokerType(str, Enum):
    """How a card participates in melds."""

    NONE = "none"
    PRINTED = "printed"
    WILD = "wild"


@dataclass(frozen=True, slots=True)
class Card:
    """Value object describing one physical card.

    ``id`` is the identity; two decks produce cards with equal suit and rank.
    Printed jokers carry no suit or rank. Wild jokers keep theirs for display
    only and are never matched on them.
    """

    id: str
    suit: Suit | None
    rank: Rank | None
    joker_type: JokerType = JokerType.NONE

    @property
    def is_joker(self) -> bool:
        return self.joker_type is not JokerType.NONE

    @property
    def point_value(self) -> int:
        if self.is_joker or self.rank is None:
            return 0
        return self.rank.points

    @property
    def code(self) -> str:
        """Short text form understood by :meth:`from_code`."""

        if self.joker_type is JokerType.PRINTED or self.rank is None or self.suit is None:
            return "JOKER"
        suffix = "*" if self.joker_type is JokerType.WILD else ""
        return f"{self.rank.value}{self.suit.letter}{suffix}"

    def label(self) -> str:
        if self.joker_type is JokerType.PRINTED or self.rank is None or self.suit is None:
            return "🃏"
        symbol = _SUIT_SYMBOLS[self.suit]
        suffix = "*" if self.joker_type is JokerType.WILD else ""
        return f"{self.rank.value}{symbol}{suffix}"

    @classmethod
    def natural(cls, rank: Rank, suit: Suit, deck_index: int = 0) -> "Card":
        return cls(id=f"{suit.value}-{rank.value}-{deck_index}", suit=suit, rank=rank)

    @classmethod
    def printed_joker(cls, deck_index: int = 0, number: int = 0) -> "Card":
        return cls(id=f"joker-{deck_index}-{number}", suit=None, rank=None, joker_type=JokerType.PRINTED)

    @classmethod
    def from_code(cls, code: str, card_id: str | None = None) -> "Card":
        """Parse ``"7S"``, ``"10H"``, ``"QD*"`` (wild joker) or ``"JOKER"``."""

        text = code.strip().upper()
        if text in ("JOKER", "JK"):
            return cls(id=card_id or "joker", suit=None, rank=None, joker_type=JokerType.PRINTED)
        joker_type = JokerType.NONE
        if text.endswith("*"):
            joker_type = JokerType.WILD
            text = text[:-1]
        if len(text) < 2:
            raise ValueError(f"invalid card code '{code}'")
        try:
            rank = Rank(text[:-1])
            suit = Suit.from_letter(text[-1])
        except ValueError as exc:
            raise ValueError(f"invalid card code '{code}'") from exc
        identifier = card_id or f"{suit.value}-{rank.value}-0"
        return cls(id=identifier, suit=suit, rank=rank, joker_type=joker_type)


_SUIT_SYMBOLS: Final[dict[Suit, str]] = {
    Suit.SPADES: "♠",
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
}


def rank_position(rank: Rank, ace_high: bool = False) -> int:
    """Return the run position of ``rank``; the Ace sits above the King when ``ace_high``."""

    if ace_high and rank is Rank.ACE:
        return ACE_HIGH_INDEX
    return rank.index


def is_consecutive(ranks: Iterable[Rank]) -> bool:
    """Return ``True`` when ``ranks`` form an unbroken run.

    The Ace ends a run at either side (A-2-3 or Q-K-A) but never wraps, so
    K-A-2 is not consecutive.
    """

    ranks = list(ranks)
    if not ranks:
        return False
    for ace_high in (False, True):
        indexes = sorted(rank_position(rank, ace_high) for rank in ranks)
        if all(b - a == 1 for a, b in zip(indexes, indexes[1:])):
            return True
    return False


def is_same_rank(cards: Iterable[Card]) -> bool:
    ranks = {card.rank for card in cards}
    return len(ranks) == 1 and None not in ranks


def parse_cards(codes: Iterable[str]) -> list[Card]:
    """Parse card codes into cards with unique ids.

    Repeated codes are treated as copies from different decks.
    """

    seen: dict[str, int] = {}
    cards: list[Card] = []
    for code in codes:
        parsed = Card.from_code(code)
        face = parsed.code.rstrip("*")
        copy_index = seen.get(face, 0)
        seen[face] = copy_index + 1
        if parsed.joker_type is JokerType.PRINTED:
            card_id = f"joker-{copy_index}"
        else:
            card_id = f"{parsed.suit.value}-{parsed.rank.value}-{copy_index}"
        cards.append(replace(parsed, id=card_id))
    return cards


def full_deck(decks: int = 2) -> list[Card]:
    """Return ``decks`` standard decks plus their printed jokers in a fixed order."""

    cards: list[Card] = []
    for deck_index in range(decks):
        for suit in Suit:
            for rank in Rank:
                cards.append(Card.natural(rank, suit, deck_index))
        for number in range(PRINTED_JOKERS_PER_DECK):
            cards.append(Card.printed_joker(deck_index, number))
    return cards


def with_wild_rank(cards: Iterable[Card], wild_rank: Rank | None) -> list[Card]:
    """Mark every natural card of ``wild_rank`` as a wild joker."""

    if wild_rank is None:
        return list(cards)
    return [
        replace(card, joker_type=JokerType.WILD)
        if card.joker_type is JokerType.NONE and card.rank is wild_rank
        else card
        for card in cards
    ]


@dataclass(slots=True)
class DealResult:
    """Hands and piles produced by :func:`deal`."""

    hands: dict[str, list[Card]]
    draw_pile: list[Card]
    discard_pile: list[Card]
    wild_joker_card: Card | None


def deal(
    deck: Sequence[Card],
    player_ids: Sequence[str],
    rng: random.Random,
    hand_size: int = CARDS_PER_PLAYER,
) -> DealResult:
    """Shuffle ``deck`` and deal ``hand_size`` cards round-robin.

    The next stock card becomes the wild-joker indicator and the one after it
    opens the discard pile. A printed joker as indicator leaves no wild rank.
    """

    needed = hand_size * len(player_ids) + 2
    if len(deck) < needed:
        raise ValueError("insufficient cards in deck for requested hand size")

    shuffled = list(deck)
    rng.shuffle(shuffled)
    stock = iter(shuffled)

    hands: dict[str, list[Card]] = {player_id: [] for player_id in player_ids}
    for _ in range(hand_size):
        for player_id in player_ids:
            hands[player_id].append(next(stock))

    wild_joker_card = next(stock)
    wild_rank = None if wild_joker_card.joker_type is JokerType.PRINTED else wild_joker_card.rank
    discard_pile = [next(stock)]

    return DealResult(
        hands={player_id: with_wild_rank(hand, wild_rank) for player_id, hand in hands.items()},
        draw_pile=with_wild_rank(stock, wild_rank),
        discard_pile=with_wild_rank(discard_pile, wild_rank),
        wild_joker_card=wild_joker_card,
    )


def _joker_last(card: Card) -> int:
    if card.joker_type is JokerType.PRINTED:
        return 2
    if card.joker_type is JokerType.WILD:
        return 1
    return 0


def sort_by_suit(cards: Iterable[Card]) -> list[Card]:
    """Order by suit then rank, jokers at the end."""

    return sorted(
        cards,
        key=lambda c: (
            _joker_last(c),
            _SUIT_ORDER[c.suit] if c.suit is not None else 0,
            c.rank.index if c.rank is not None else 0,
            c.id,
        ),
    )


def sort_by_rank(cards: Iterable[Card]) -> list[Card]:
    """Order by rank then suit, jokers at the end."""

    return sorted(
        cards,
        key=lambda c: (
            _joker_last(c),
            c.rank.index if c.rank is not None else 0,
            _SUIT_ORDER[c.suit] if c.suit is not None else 0,
            c.id,
        ),
    )


def iter_naturals(cards: Iterable[Card]) -> Iterator[Card]:
    return (card for card in cards if not card.is_joker)
