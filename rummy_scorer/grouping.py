"""Manual card grouping kept outside the card value objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .arranger import HandArrangement
from .cards import Card
from .declaration import DeclarationResult, validate_declaration
from .melds import Meld, classify_meld

__all__ = ["Grouping"]


@dataclass(slots=True)
class Grouping:
    """Mapping from card id to a player-chosen group id."""

    assignments: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_arrangement(cls, arrangement: HandArrangement) -> "Grouping":
        grouping = cls()
        for group_id, meld in enumerate(arrangement.melds):
            grouping.assign((card.id for card in meld.cards), group_id)
        return grouping

    def assign(self, card_ids: Iterable[str], group_id: int) -> None:
        for card_id in card_ids:
            self.assignments[card_id] = group_id

    def new_group(self, card_ids: Iterable[str]) -> int:
        """Put ``card_ids`` into a fresh group and return its id."""

        group_id = max(self.assignments.values(), default=-1) + 1
        self.assign(card_ids, group_id)
        return group_id

    def ungroup(self, card_ids: Iterable[str]) -> None:
        for card_id in card_ids:
            self.assignments.pop(card_id, None)

    def clear(self) -> None:
        self.assignments.clear()

    def group_of(self, card_id: str) -> int | None:
        return self.assignments.get(card_id)

    def groups(self, hand: Sequence[Card]) -> list[list[Card]]:
        """Return grouped cards of ``hand`` ordered by group id.

        Ids for cards no longer in the hand are ignored.
        """

        by_group: dict[int, list[Card]] = {}
        for card in hand:
            group_id = self.assignments.get(card.id)
            if group_id is not None:
                by_group.setdefault(group_id, []).append(card)
        return [by_group[group_id] for group_id in sorted(by_group)]

    def ungrouped(self, hand: Sequence[Card]) -> list[Card]:
        return [card for card in hand if card.id not in self.assignments]

    def to_declaration(self, hand: Sequence[Card]) -> tuple[list[Meld], list[Card]]:
        """Classify every group; groups that form no meld become deadwood."""

        melds: list[Meld] = []
        deadwood: list[Card] = []
        for group in self.groups(hand):
            meld = classify_meld(group)
            if meld is None:
                deadwood.extend(group)
            else:
                melds.append(meld)
        deadwood.extend(self.ungrouped(hand))
        return melds, deadwood

    def evaluate(self, hand: Sequence[Card]) -> DeclarationResult:
        melds, deadwood = self.to_declaration(hand)
        return validate_declaration(melds, deadwood)
