from __future__ import annotations

import pytest

from rummy_scorer.cards import parse_cards
from rummy_scorer.declaration import (
    NEED_PURE_SEQUENCE,
    NEED_TWO_SEQUENCES,
    can_declare,
    declaration_hints,
    deadwood_points,
    evaluate_hand,
    validate_declaration,
)
from rummy_scorer.melds import Meld, MeldType, classify_meld

VALID_HAND = ["AS", "2S", "3S", "5H", "6H", "7H", "8H", "9C", "10C", "JOKER", "KD", "KS", "KH"]


def _meld(*codes: str) -> Meld:
    meld = classify_meld(parse_cards(codes))
    assert meld is not None
    return meld


def test_deadwood_points_of_king_three_and_wild_joker() -> None:
    deadwood = parse_cards(["KD", "3C", "5S*"])
    assert deadwood_points(deadwood) == 13
    assert validate_declaration([], deadwood).deadwood_points == 13


def test_valid_declaration_has_no_errors() -> None:
    melds = [_meld("AS", "2S", "3S"), _meld("5H", "6H", "7H", "8H"), _meld("9C", "10C", "JOKER"), _meld("KD", "KS", "KH")]
    result = validate_declaration(melds)

    assert result.is_valid
    assert result.errors == ()
    assert result.deadwood_points == 0
    assert result.closing_card is None


def test_single_leftover_after_thirteen_melded_is_closing_card() -> None:
    melds = [_meld("AS", "2S", "3S"), _meld("5H", "6H", "7H", "8H"), _meld("9C", "10C", "JOKER"), _meld("KD", "KS", "KH")]
    leftover = parse_cards(["QC"])
    result = validate_declaration(melds, leftover)

    assert result.is_valid
    assert result.closing_card == leftover[0]
    assert result.deadwood == ()
    assert result.deadwood_points == 0


def test_two_leftovers_are_not_a_closing_card() -> None:
    melds = [_meld("AS", "2S", "3S"), _meld("5H", "6H", "7H", "8H"), _meld("9C", "10C", "JOKER")]
    result = validate_declaration(melds, parse_cards(["KD", "QC"]))

    assert not result.is_valid
    assert result.closing_card is None
    assert result.errors == ("2 cards still unmelded",)
    assert result.deadwood_points == 20


def test_missing_pure_and_second_sequence() -> None:
    result = validate_declaration([_meld("5S", "6S", "JOKER"), _meld("7H", "7D", "7C")])

    assert not result.has_pure_sequence
    assert not result.has_minimum_sequences
    assert result.all_cards_melded
    assert result.errors == (NEED_PURE_SEQUENCE, NEED_TWO_SEQUENCES)


def test_one_unmelded_card_message_is_singular() -> None:
    melds = [_meld("AS", "2S", "3S"), _meld("5H", "6H", "JOKER")]
    result = validate_declaration(melds, parse_cards(["9D"]))
    assert result.errors == ("1 card still unmelded",)


def test_mislabelled_meld_moves_to_deadwood() -> None:
    cards = tuple(parse_cards(["5S", "6S", "8S"]))
    bogus = Meld(MeldType.PURE_SEQUENCE, cards)
    result = validate_declaration([bogus, _meld("9H", "10H", "JH")])

    assert not result.is_valid
    assert result.errors[0].startswith("Invalid meld:")
    assert set(result.deadwood) == set(cards)
    assert result.deadwood_points == 19
    assert len(result.melds) == 1


def test_wrong_type_label_is_invalid() -> None:
    cards = tuple(parse_cards(["5S", "6S", "7S"]))
    result = validate_declaration([Meld(MeldType.SET, cards)])
    assert result.errors[0].startswith("Invalid meld:")
    assert result.melds == ()


@pytest.mark.parametrize(
    "melds",
    [
        [],
        [("AS", "2S", "3S")],
        [("AS", "2S", "3S"), ("4H", "5H", "JOKER")],
        [("4H", "5H", "JOKER"), ("7C", "8C", "JOKER")],
        [("KD", "KS", "KH"), ("AS", "2S", "3S")],
    ],
)
def test_validity_matches_its_three_conditions(melds: list[tuple[str, ...]]) -> None:
    result = validate_declaration([_meld(*codes) for codes in melds])
    expected = result.has_pure_sequence and result.has_minimum_sequences and result.all_cards_melded
    assert result.is_valid is expected


def test_evaluate_hand_arranges_then_validates() -> None:
    result = evaluate_hand(parse_cards(VALID_HAND))
    assert result.is_valid
    assert sum(len(meld) for meld in result.melds) == 13


def test_hints_list_every_missing_condition() -> None:
    hints = declaration_hints(parse_cards(["KD", "3C", "7H", "9S"]))
    assert hints == [NEED_PURE_SEQUENCE, NEED_TWO_SEQUENCES, "4 cards still unmelded"]


def test_hints_empty_for_valid_hand() -> None:
    assert declaration_hints(parse_cards(VALID_HAND)) == []


def test_can_declare() -> None:
    assert can_declare(parse_cards(VALID_HAND))
    assert can_declare(parse_cards(VALID_HAND + ["QC"]))
    assert not can_declare(parse_cards(VALID_HAND[:12]))
    assert not can_declare(parse_cards(VALID_HAND + ["QC", "JC"]))


FOURTEEN_CARDS = ["10D", "JD", "QD", "KD", "2H", "3H", "JOKER", "5C", "6C", "7C", "9S", "9H", "9C", "KS"]


def test_fourteen_card_hand_sets_aside_closing_card() -> None:
    hand = parse_cards(FOURTEEN_CARDS)
    result = evaluate_hand(hand)

    assert result.is_valid
    assert result.closing_card is not None
    assert result.closing_card.code == "KS"
    assert result.deadwood == ()
    assert sum(len(meld) for meld in result.melds) == 13
    assert can_declare(hand)
    assert declaration_hints(hand) == []


def test_fourteen_card_hand_without_a_split_stays_invalid() -> None:
    hand = parse_cards(["2S", "5H", "9D", "KC", "4S", "7H", "JD", "QC", "3D", "8C", "6S", "10H", "AD", "KH"])
    result = evaluate_hand(hand)

    assert not result.is_valid
    assert not can_declare(hand)


def test_queen_king_ace_counts_as_pure_sequence() -> None:
    melds = [_meld("QS", "KS", "AS"), _meld("4H", "5H", "JOKER")]
    result = validate_declaration(melds)
    assert result.is_valid
