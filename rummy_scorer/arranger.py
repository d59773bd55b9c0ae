"""Optimal arrangement of a hand into melds and deadwood."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations, product
from typing import Iterable, Sequence

from .cards import ACE_HIGH_INDEX, Card, Rank, Suit, rank_position, sort_by_suit
from .melds import MAX_SEQUENCE_SIZE, MAX_SET_SIZE, MIN_MELD_SIZE, RUN_WINDOWS, Meld, MeldType, classify_meld

__all__ = ["HandArrangement", "auto_arrange"]


@dataclass(frozen=True, slots=True)
class HandArrangement:
    """Partition of a hand into melds plus the cards left over."""

    melds: tuple[Meld, ...]
    deadwood: tuple[Card, ...]

    @property
    def melded_cards(self) -> list[Card]:
        return [card for meld in self.melds for card in meld.cards]

    @property
    def has_pure_sequence(self) -> bool:
        return any(meld.is_pure for meld in self.melds)

    @property
    def sequence_count(self) -> int:
        return sum(1 for meld in self.melds if meld.is_sequence)


@dataclass(frozen=True, slots=True)
class _Candidate:
    naturals: tuple[Card, ...]
    jokers: int
    kind: MeldType
    ace_high: bool = False

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(card.id for card in self.naturals)

    @property
    def size(self) -> int:
        return len(self.naturals) + self.jokers

    @property
    def capacity(self) -> int:
        limit = MAX_SET_SIZE if self.kind is MeldType.SET else MAX_SEQUENCE_SIZE
        return limit - self.size


@dataclass(slots=True)
class _Search:
    naturals: list[Card]
    jokers: int
    candidates_by_card: dict[str, list[_Candidate]]
    pure_possible: bool
    best_key: tuple[int, ...] | None = None
    best_choice: tuple[_Candidate, ...] = ()
    chosen: list[_Candidate] = field(default_factory=list)


def _copies_by_rank(cards: Iterable[Card]) -> dict[Rank, list[Card]]:
    grouped: dict[Rank, list[Card]] = {}
    for card in cards:
        grouped.setdefault(card.rank, []).append(card)
    return grouped


def _run_candidates(naturals: Sequence[Card], jokers: int) -> list[_Candidate]:
    candidates: list[_Candidate] = []
    seen: set[tuple[frozenset[str], int]] = set()
    by_suit: dict[Suit, list[Card]] = {}
    for card in naturals:
        by_suit.setdefault(card.suit, []).append(card)

    for suit_cards in by_suit.values():
        copies = _copies_by_rank(suit_cards)
        for ace_high, low, high in RUN_WINDOWS:
            for start in range(low, high + 1):
                for end in range(start + MIN_MELD_SIZE - 1, high + 1):
                    window = [_rank_at(idx) for idx in range(start, end + 1)]
                    present = [rank for rank in window if rank in copies]
                    missing = len(window) - len(present)
                    # One natural plus jokers is left to the set candidates.
                    if missing > jokers or len(present) < 2:
                        continue
                    kind = MeldType.PURE_SEQUENCE if missing == 0 else MeldType.SEQUENCE
                    for picks in product(*(copies[rank] for rank in present)):
                        key = (frozenset(card.id for card in picks), missing)
                        if key in seen:
                            continue
                        seen.add(key)
                        candidates.append(_Candidate(tuple(picks), missing, kind, ace_high))
    return candidates


def _rank_at(position: int) -> Rank:
    return Rank.ACE if position == ACE_HIGH_INDEX else Rank.from_index(position)


def _set_candidates(naturals: Sequence[Card], jokers: int) -> list[_Candidate]:
    candidates: list[_Candidate] = []
    for rank_cards in _copies_by_rank(naturals).values():
        for size in range(1, MAX_SET_SIZE + 1):
            for combo in combinations(rank_cards, size):
                if len({card.suit for card in combo}) != size:
                    continue
                needed = max(0, MIN_MELD_SIZE - size)
                if needed > jokers:
                    continue
                candidates.append(_Candidate(tuple(combo), needed, MeldType.SET))
    return candidates


def _absorbed_jokers(chosen: Sequence[_Candidate], spare: int) -> int:
    """Count spare jokers that fit into chosen melds without spoiling the first pure run."""

    capacity = 0
    primary_pure_skipped = False
    for candidate in chosen:
        if candidate.kind is MeldType.PURE_SEQUENCE and not primary_pure_skipped:
            primary_pure_skipped = True
            continue
        capacity += candidate.capacity
    return min(spare, capacity)


def _score(search: _Search, deadwood_points: int, deadwood_cards: int) -> tuple[int, ...]:
    chosen = search.chosen
    jokers_used = sum(candidate.jokers for candidate in chosen)
    spare = search.jokers - jokers_used
    loose_jokers = spare - _absorbed_jokers(chosen, spare)
    has_pure = any(candidate.kind is MeldType.PURE_SEQUENCE for candidate in chosen)
    sequences = sum(1 for candidate in chosen if candidate.kind is not MeldType.SET)
    missing_pure = 1 if search.pure_possible and not has_pure else 0
    return (missing_pure, deadwood_points, deadwood_cards + loose_jokers, -sequences)


def _search(search: _Search, index: int, used: set[str], jokers_left: int, points: int, loose: int) -> None:
    if search.best_key is not None and search.best_key[0] == 0 and points > search.best_key[1]:
        return

    while index < len(search.naturals) and search.naturals[index].id in used:
        index += 1

    if index == len(search.naturals):
        key = _score(search, points, loose)
        if search.best_key is None or key < search.best_key:
            search.best_key = key
            search.best_choice = tuple(search.chosen)
        return

    card = search.naturals[index]
    for candidate in search.candidates_by_card.get(card.id, []):
        if candidate.jokers > jokers_left:
            continue
        ids = candidate.ids
        if ids & used:
            continue
        search.chosen.append(candidate)
        _search(search, index + 1, used | ids, jokers_left - candidate.jokers, points, loose)
        search.chosen.pop()

    _search(search, index + 1, used | {card.id}, jokers_left, points + card.point_value, loose + 1)


def _materialize(candidate: _Candidate, jokers: list[Card]) -> Meld:
    taken = [jokers.pop(0) for _ in range(candidate.jokers)]
    if candidate.kind is MeldType.SET:
        cards = list(candidate.naturals) + taken
    else:
        cards = _interleave_run(candidate.naturals, taken, candidate.ace_high)
    meld = classify_meld(cards)
    if meld is None:  # pragma: no cover - candidates are generated valid
        raise RuntimeError("arranger produced an invalid meld")
    return meld


def _interleave_run(naturals: Sequence[Card], jokers: Sequence[Card], ace_high: bool = False) -> list[Card]:
    def position(card: Card) -> int:
        return rank_position(card.rank, ace_high)

    ordered = sorted(naturals, key=position)
    pending = list(jokers)
    cards: list[Card] = [ordered[0]]
    for prev, card in zip(ordered, ordered[1:]):
        for _ in range(position(card) - position(prev) - 1):
            cards.append(pending.pop(0))
        cards.append(card)
    if pending and position(ordered[-1]) == ACE_HIGH_INDEX:
        return pending + cards
    return cards + pending


def _place_spare_jokers(melds: list[Meld], spare: list[Card]) -> list[Meld]:
    primary = next((idx for idx, meld in enumerate(melds) if meld.is_pure), None)
    placed = list(melds)
    for idx, meld in enumerate(placed):
        if idx == primary or not spare:
            continue
        limit = MAX_SET_SIZE if meld.type is MeldType.SET else MAX_SEQUENCE_SIZE
        room = min(limit - len(meld), len(spare))
        if room <= 0:
            continue
        extended = classify_meld(meld.cards + tuple(spare[:room]))
        if extended is not None and extended.is_sequence == meld.is_sequence:
            placed[idx] = extended
            del spare[:room]
    return placed


def auto_arrange(cards: Iterable[Card]) -> HandArrangement:
    """Split ``cards`` into melds and deadwood with the fewest penalty points.

    Ranking, best first: a pure sequence when the hand can form one, fewer
    deadwood points, fewer deadwood cards, more sequences. Remaining ties keep
    the first arrangement found scanning suits S, H, D, C from Ace upwards.
    Never raises; the worst case is every card as deadwood.
    """

    hand = sort_by_suit(cards)
    naturals = [card for card in hand if not card.is_joker]
    jokers = [card for card in hand if card.is_joker]

    candidates = _run_candidates(naturals, len(jokers)) + _set_candidates(naturals, len(jokers))
    # Larger melds first so good partitions are found early and pruning bites.
    candidates.sort(key=lambda c: (c.kind is MeldType.SET, -c.size, c.jokers))
    candidates_by_card: dict[str, list[_Candidate]] = {}
    for candidate in candidates:
        first = min(candidate.naturals, key=naturals.index)
        candidates_by_card.setdefault(first.id, []).append(candidate)

    search = _Search(
        naturals=naturals,
        jokers=len(jokers),
        candidates_by_card=candidates_by_card,
        pure_possible=any(c.kind is MeldType.PURE_SEQUENCE for c in candidates),
    )
    _search(search, 0, set(), len(jokers), 0, 0)

    pool = list(jokers)
    melds = [_materialize(candidate, pool) for candidate in search.best_choice]
    melds = _place_spare_jokers(melds, pool)

    melded_ids = {card.id for meld in melds for card in meld.cards}
    deadwood = tuple(card for card in hand if card.id not in melded_ids)
    return HandArrangement(melds=tuple(melds), deadwood=deadwood)
