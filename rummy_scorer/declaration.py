"""Declaration validation and hints for Indian Rummy hands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .arranger import auto_arrange
from .cards import CARDS_PER_PLAYER, Card, sort_by_suit
from .melds import Meld, classify_meld

__all__ = [
    "DeclarationResult",
    "MIN_SEQUENCES",
    "NEED_PURE_SEQUENCE",
    "NEED_TWO_SEQUENCES",
    "card_points",
    "deadwood_points",
    "validate_declaration",
    "evaluate_hand",
    "declaration_hints",
    "can_declare",
]

MIN_SEQUENCES = 2
NEED_PURE_SEQUENCE = "Need a pure sequence with no jokers"
NEED_TWO_SEQUENCES = "Need at least 2 sequences"


@dataclass(frozen=True, slots=True)
class DeclarationResult:
    """Outcome of checking a proposed declaration."""

    is_valid: bool
    has_pure_sequence: bool
    has_minimum_sequences: bool
    all_cards_melded: bool
    deadwood_points: int
    errors: tuple[str, ...] = ()
    melds: tuple[Meld, ...] = field(default=(), repr=False)
    deadwood: tuple[Card, ...] = field(default=(), repr=False)
    closing_card: Card | None = None


def card_points(card: Card) -> int:
    """Return the penalty value of ``card`` (jokers count zero)."""

    return card.point_value


def deadwood_points(cards: Iterable[Card]) -> int:
    return sum(card_points(card) for card in cards)


def _unmelded_message(count: int) -> str:
    noun = "card" if count == 1 else "cards"
    return f"{count} {noun} still unmelded"


def validate_declaration(melds: Sequence[Meld], deadwood: Sequence[Card] = ()) -> DeclarationResult:
    """Apply the declaration rule to ``melds`` and ``deadwood``.

    Each meld is re-classified; one whose cards do not form its stated type
    is moved to deadwood. When exactly 13 cards are melded and one card is
    left over, that card is the closing discard and does not count.
    """

    errors: list[str] = []
    valid_melds: list[Meld] = []
    leftovers: list[Card] = list(deadwood)

    for meld in melds:
        actual = classify_meld(meld.cards)
        if actual is None or actual.type is not meld.type:
            leftovers.extend(meld.cards)
            errors.append("Invalid meld: " + ", ".join(card.id for card in meld.cards))
            continue
        valid_melds.append(actual)

    melded_count = sum(len(meld) for meld in valid_melds)
    closing_card: Card | None = None
    if melded_count == CARDS_PER_PLAYER and len(leftovers) == 1:
        closing_card = leftovers.pop()

    has_pure_sequence = any(meld.is_pure for meld in valid_melds)
    has_minimum_sequences = sum(1 for meld in valid_melds if meld.is_sequence) >= MIN_SEQUENCES
    all_cards_melded = not leftovers
    points = deadwood_points(leftovers)

    if not has_pure_sequence:
        errors.append(NEED_PURE_SEQUENCE)
    if not has_minimum_sequences:
        errors.append(NEED_TWO_SEQUENCES)
    if not all_cards_melded:
        errors.append(_unmelded_message(len(leftovers)))

    return DeclarationResult(
        is_valid=has_pure_sequence and has_minimum_sequences and all_cards_melded,
        has_pure_sequence=has_pure_sequence,
        has_minimum_sequences=has_minimum_sequences,
        all_cards_melded=all_cards_melded,
        deadwood_points=points,
        errors=tuple(errors),
        melds=tuple(valid_melds),
        deadwood=tuple(leftovers),
        closing_card=closing_card,
    )


def evaluate_hand(hand: Iterable[Card]) -> DeclarationResult:
    """Arrange ``hand`` automatically and validate the result.

    A 14-card hand that does not meld as a whole is retried with each card
    set aside as the closing discard; the first declarable split wins.
    """

    cards = list(hand)
    arrangement = auto_arrange(cards)
    result = validate_declaration(arrangement.melds, arrangement.deadwood)
    if result.is_valid or len(cards) != CARDS_PER_PLAYER + 1:
        return result

    for closing in sort_by_suit(cards):
        rest = [card for card in cards if card.id != closing.id]
        arrangement = auto_arrange(rest)
        if arrangement.deadwood:
            continue
        candidate = validate_declaration(arrangement.melds, (closing,))
        if candidate.is_valid:
            return candidate
    return result


def declaration_hints(hand: Iterable[Card]) -> list[str]:
    """Return a message for every unmet declaration condition of ``hand``."""

    return list(evaluate_hand(hand).errors)


def can_declare(hand: Sequence[Card]) -> bool:
    if len(hand) not in (CARDS_PER_PLAYER, CARDS_PER_PLAYER + 1):
        return False
    return evaluate_hand(hand).is_valid
