from __future__ import annotations

import random

import pytest

from rummy_scorer.cards import (
    Card,
    JokerType,
    Rank,
    Suit,
    deal,
    full_deck,
    is_consecutive,
    is_same_rank,
    parse_cards,
    sort_by_rank,
    sort_by_suit,
    with_wild_rank,
)


@pytest.mark.parametrize(
    ("ranks", "expected"),
    [
        ([Rank.FIVE, Rank.SIX, Rank.SEVEN], True),
        ([Rank.SEVEN, Rank.FIVE, Rank.SIX], True),
        ([Rank.ACE, Rank.TWO, Rank.THREE], True),
        ([Rank.QUEEN, Rank.KING, Rank.ACE], True),
        ([Rank.ACE, Rank.KING, Rank.QUEEN], True),
        ([Rank.KING, Rank.ACE, Rank.TWO], False),
        ([Rank.FIVE, Rank.SEVEN], False),
        ([], False),
    ],
)
def test_is_consecutive(ranks: list[Rank], expected: bool) -> None:
    assert is_consecutive(ranks) is expected


def test_is_same_rank_ignores_suit_and_rejects_jokers() -> None:
    sevens = parse_cards(["7H", "7D", "7C"])
    assert is_same_rank(sevens)
    assert not is_same_rank(parse_cards(["7H", "8H"]))
    assert not is_same_rank(parse_cards(["JOKER", "JOKER"]))


@pytest.mark.parametrize(
    ("code", "rank", "suit", "joker_type"),
    [
        ("7S", Rank.SEVEN, Suit.SPADES, JokerType.NONE),
        ("10h", Rank.TEN, Suit.HEARTS, JokerType.NONE),
        ("QD*", Rank.QUEEN, Suit.DIAMONDS, JokerType.WILD),
        ("JOKER", None, None, JokerType.PRINTED),
    ],
)
def test_from_code(code: str, rank: Rank | None, suit: Suit | None, joker_type: JokerType) -> None:
    card = Card.from_code(code)
    assert card.rank is rank
    assert card.suit is suit
    assert card.joker_type is joker_type


@pytest.mark.parametrize("code", ["", "S", "1X", "11S", "ZZ"])
def test_from_code_rejects_garbage(code: str) -> None:
    with pytest.raises(ValueError):
        Card.from_code(code)


def test_point_values() -> None:
    ace, ten, king, four, wild, joker = parse_cards(["AS", "10C", "KD", "4H", "9S*", "JOKER"])
    assert ace.point_value == 10
    assert ten.point_value == 10
    assert king.point_value == 10
    assert four.point_value == 4
    assert wild.point_value == 0
    assert joker.point_value == 0


def test_parse_cards_gives_copies_distinct_ids() -> None:
    cards = parse_cards(["7S", "7S", "7S*", "JOKER", "JOKER"])
    assert len({card.id for card in cards}) == len(cards)
    assert cards[0].id == "spades-7-0"
    assert cards[1].id == "spades-7-1"
    assert cards[2].id == "spades-7-2"
    assert cards[3].id == "joker-0"
    assert cards[4].id == "joker-1"


def test_code_round_trips_through_from_code() -> None:
    for card in parse_cards(["AS", "10H", "QD*", "JOKER"]):
        assert Card.from_code(card.code).code == card.code


def test_full_deck_composition() -> None:
    deck = full_deck(2)
    assert len(deck) == 108
    assert len({card.id for card in deck}) == 108
    assert sum(1 for card in deck if card.joker_type is JokerType.PRINTED) == 4
    assert sum(1 for card in deck if card.rank is Rank.ACE and card.suit is Suit.SPADES) == 2


def test_with_wild_rank_marks_only_naturals_of_that_rank() -> None:
    cards = with_wild_rank(parse_cards(["5S", "5H", "6S", "JOKER"]), Rank.FIVE)
    assert [card.joker_type for card in cards] == [
        JokerType.WILD,
        JokerType.WILD,
        JokerType.NONE,
        JokerType.PRINTED,
    ]
    assert cards[0].is_joker
    assert with_wild_rank(cards, None) == cards


def test_deal_conserves_cards_and_marks_wild_rank() -> None:
    deck = full_deck(2)
    result = deal(deck, ["p1", "p2"], random.Random(7))

    assert all(len(hand) == 13 for hand in result.hands.values())
    assert len(result.discard_pile) == 1
    assert len(result.draw_pile) == 108 - 26 - 2
    assert result.wild_joker_card is not None

    dealt = [card for hand in result.hands.values() for card in hand]
    everything = dealt + result.draw_pile + result.discard_pile + [result.wild_joker_card]
    assert sorted(card.id for card in everything) == sorted(card.id for card in deck)

    wild_rank = result.wild_joker_card.rank
    if wild_rank is not None:
        for card in dealt:
            if card.rank is wild_rank:
                assert card.joker_type is JokerType.WILD


def test_deal_is_reproducible_with_seed() -> None:
    first = deal(full_deck(2), ["a", "b", "c"], random.Random(42))
    second = deal(full_deck(2), ["a", "b", "c"], random.Random(42))
    assert first.hands == second.hands
    assert first.wild_joker_card == second.wild_joker_card


def test_deal_rejects_small_deck() -> None:
    with pytest.raises(ValueError):
        deal(full_deck(1)[:20], ["a", "b"], random.Random(0))


def test_sorting_puts_jokers_last() -> None:
    cards = parse_cards(["JOKER", "3C", "KS*", "2H", "AS"])
    wild = with_wild_rank(cards, Rank.KING)
    assert [card.code for card in sort_by_suit(wild)] == ["AS", "2H", "3C", "KS*", "JOKER"]
    assert [card.code for card in sort_by_rank(wild)] == ["AS", "2H", "3C", "KS*", "JOKER"]
    by_rank = sort_by_rank(parse_cards(["3S", "2C", "2H"]))
    assert [card.code for card in by_rank] == ["2H", "2C", "3S"]
