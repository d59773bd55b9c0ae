from __future__ import annotations

from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from rummy_scorer.cli.main import app, parse_score_token
from rummy_scorer.rules import GameConfig, Variant
from rummy_scorer.state import Game, Player
from rummy_scorer.storage import JsonGameRepository

runner = CliRunner()


def _invoke(store: Path, *args: str):
    return runner.invoke(app, ["--store", str(store), *args])


def _start(store: Path, *extra: str) -> str:
    result = _invoke(store, "new", "Asha", "Ravi", *extra)
    assert result.exit_code == 0, result.output
    assert "Started game" in result.output
    return next(store.glob("*.json")).stem


def _game() -> Game:
    return Game(
        id="g1",
        config=GameConfig(first_drop_penalty=20, middle_drop_penalty=40),
        players=[Player("a", "Asha"), Player("r", "Ravi")],
    )


@pytest.mark.parametrize(
    ("token", "points", "declared", "invalid"),
    [
        ("Asha=win", 0, True, False),
        ("asha=25", 25, False, False),
        ("a=drop", 20, False, False),
        ("Asha=middle", 40, False, False),
        ("Asha=invalid", 0, False, True),
        ("Asha=invalid:60", 60, False, True),
    ],
)
def test_parse_score_token(token: str, points: int, declared: bool, invalid: bool) -> None:
    score = parse_score_token(token, _game())
    assert score.player_id == "a"
    assert score.points == points
    assert score.is_declared is declared
    assert score.has_invalid_declaration is invalid


@pytest.mark.parametrize("token", ["Asha", "Asha=", "Nobody=10", "Asha=lots", "Asha=invalid:abc", "Asha=invalidish"])
def test_parse_score_token_rejects(token: str) -> None:
    with pytest.raises(typer.BadParameter):
        parse_score_token(token, _game())


def test_arrange_reports_valid_hand() -> None:
    result = runner.invoke(
        app,
        ["arrange", "AS", "2S", "3S", "5H", "6H", "7H", "8H", "9C", "10C", "JOKER", "KD", "KS", "KH"],
    )
    assert result.exit_code == 0, result.output
    assert "Valid declaration" in result.output


def test_arrange_lists_hints_with_wild_rank() -> None:
    result = runner.invoke(app, ["arrange", "KD", "3C", "7H", "--wild", "7"])
    assert result.exit_code == 0, result.output
    assert "Not declarable" in result.output
    assert "Need a pure sequence with no jokers" in result.output


def test_arrange_rejects_bad_card() -> None:
    result = runner.invoke(app, ["arrange", "ZZ"])
    assert result.exit_code != 0


def test_deals_game_flow(tmp_path: Path) -> None:
    game_id = _start(tmp_path, "--variant", "deals", "--deals", "1")

    result = _invoke(tmp_path, "round", game_id, "Asha=win", "Ravi=30")
    assert result.exit_code == 0, result.output

    game = JsonGameRepository(tmp_path).load(game_id)
    assert game is not None
    assert [player.score for player in game.players] == [0, 30]
    assert game.winner == game.players[0].id


def test_rejected_round_exits_with_error(tmp_path: Path) -> None:
    game_id = _start(tmp_path)

    result = _invoke(tmp_path, "round", game_id, "Asha=20", "Ravi=30")
    assert result.exit_code == 1
    assert "no winner marked" in result.output

    game = JsonGameRepository(tmp_path).load(game_id)
    assert game is not None
    assert game.rounds == []


def test_edit_replays_game(tmp_path: Path) -> None:
    game_id = _start(tmp_path, "--pool-limit", "101")
    assert _invoke(tmp_path, "round", game_id, "Asha=win", "Ravi=80").exit_code == 0
    assert _invoke(tmp_path, "round", game_id, "Asha=win", "Ravi=30").exit_code == 0

    game = JsonGameRepository(tmp_path).load(game_id)
    assert game is not None and game.winner is not None

    result = _invoke(tmp_path, "edit", game_id, "1", "Asha=win", "Ravi=10")
    assert result.exit_code == 0, result.output
    game = JsonGameRepository(tmp_path).load(game_id)
    assert game is not None
    assert game.winner is None
    assert game.players[1].score == 40

    assert _invoke(tmp_path, "edit", game_id, "5", "Asha=win", "Ravi=10").exit_code == 1


def test_show_and_history(tmp_path: Path) -> None:
    game_id = _start(tmp_path, "--name", "Friday")

    shown = _invoke(tmp_path, "show", game_id)
    assert shown.exit_code == 0, shown.output
    assert "Asha" in shown.output

    listed = _invoke(tmp_path, "history")
    assert listed.exit_code == 0
    assert game_id in listed.output
    assert "Friday" in listed.output


def test_unknown_game(tmp_path: Path) -> None:
    result = _invoke(tmp_path, "show", "missing")
    assert result.exit_code == 1
    assert "not found" in result.output


def test_history_empty_store(tmp_path: Path) -> None:
    result = _invoke(tmp_path / "empty", "history")
    assert result.exit_code == 0
    assert "No saved games" in result.output


def test_new_game_uses_custom_drop_penalties(tmp_path: Path) -> None:
    game_id = _start(tmp_path, "--first-drop", "10", "--middle-drop", "30")

    result = _invoke(tmp_path, "round", game_id, "Asha=win", "Ravi=drop")
    assert result.exit_code == 0, result.output
    result = _invoke(tmp_path, "round", game_id, "Ravi=win", "Asha=middle")
    assert result.exit_code == 0, result.output

    game = JsonGameRepository(tmp_path).load(game_id)
    assert game is not None
    assert game.config.first_drop_penalty == 10
    assert game.config.middle_drop_penalty == 30
    assert [player.score for player in game.players] == [30, 10]


def test_round_with_eliminated_player_is_rejected(tmp_path: Path) -> None:
    result = _invoke(tmp_path, "new", "Asha", "Ravi", "Meera")
    assert result.exit_code == 0, result.output
    game_id = next(tmp_path.glob("*.json")).stem
    assert _invoke(tmp_path, "round", game_id, "Asha=win", "Ravi=102", "Meera=10").exit_code == 0

    result = _invoke(tmp_path, "round", game_id, "Asha=win", "Ravi=5")
    assert result.exit_code == 1
    assert "is eliminated" in result.output
