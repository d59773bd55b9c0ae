"""Typer entry-point wiring for the rummy score keeper CLI."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..cards import Rank, parse_cards, sort_by_suit, with_wild_rank
from ..declaration import evaluate_hand
from ..rules import DropKind, GameConfig, RoundRejected, ScoreInput, Variant, drop_points
from ..scoreboard import ScoreKeeper, UnknownRound
from ..state import Game
from ..storage import JsonGameRepository
from .render import format_cards, render_declaration, render_rounds, render_standings

app = typer.Typer(add_completion=False, rich_markup_mode="rich")
console = Console()
logger = logging.getLogger(__name__)


@app.callback()
def configure(
    ctx: typer.Context,
    store: Path | None = typer.Option(
        None,
        envvar="RUMMY_SCORER_HOME",
        help="Directory holding saved games (defaults to ~/.rummy_scorer).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
) -> None:
    """Score Indian Rummy games and check hands."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    ctx.obj = JsonGameRepository(store)
    logger.debug("Using game store %s", ctx.obj.directory)


def _keeper(ctx: typer.Context, game_id: str) -> ScoreKeeper:
    keeper = ScoreKeeper(ctx.obj)
    if keeper.load(game_id) is None:
        console.print(f"[red]Game '{game_id}' not found.[/red]")
        raise typer.Exit(code=1)
    return keeper


def _find_player_id(game: Game, label: str) -> str:
    for player in game.players:
        if label == player.id or label.lower() == player.name.lower():
            return player.id
    raise typer.BadParameter(f"no player named '{label}'")


def parse_score_token(token: str, game: Game) -> ScoreInput:
    """Turn ``name=value`` into a score input.

    Values: ``win``, ``invalid`` or ``invalid:<points>``, ``drop``,
    ``middle`` or a number of points.
    """

    label, sep, value = token.partition("=")
    if not sep or not value:
        raise typer.BadParameter(f"expected name=value, got '{token}'")
    player_id = _find_player_id(game, label.strip())
    value = value.strip().lower()

    if value == "win":
        return ScoreInput(player_id=player_id, is_declared=True)
    if value == "invalid" or value.startswith("invalid:"):
        _, _, points = value.partition(":")
        if points and not points.isdigit():
            raise typer.BadParameter(f"unrecognised penalty '{points}' for {label}")
        return ScoreInput(
            player_id=player_id,
            points=int(points) if points else 0,
            has_invalid_declaration=True,
        )
    if value == "drop":
        return ScoreInput(player_id=player_id, points=drop_points(DropKind.FIRST, game.config))
    if value == "middle":
        return ScoreInput(player_id=player_id, points=drop_points(DropKind.MIDDLE, game.config))
    if not value.isdigit():
        raise typer.BadParameter(f"unrecognised score '{value}' for {label}")
    return ScoreInput(player_id=player_id, points=int(value))


def _print_game(game: Game) -> None:
    console.print(render_standings(game))
    if game.rounds:
        console.print(render_rounds(game))


@app.command()
def arrange(
    cards: list[str] = typer.Argument(..., help="Card codes such as 7S 10H QD* JOKER."),
    wild: str | None = typer.Option(None, help="Rank whose cards act as wild jokers."),
) -> None:
    """Auto-arrange a hand and explain what a declaration still needs."""

    try:
        hand = parse_cards(cards)
        wild_rank = Rank(wild.upper()) if wild else None
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    hand = with_wild_rank(hand, wild_rank)
    logger.debug("Arranging %d cards (wild rank %s)", len(hand), wild_rank.value if wild_rank else "none")

    console.print(f"Hand: {format_cards(sort_by_suit(hand))}")
    result = evaluate_hand(hand)
    console.print(render_declaration(result))
    for hint in result.errors:
        console.print(f"[yellow]• {hint}[/yellow]")


@app.command()
def new(
    ctx: typer.Context,
    players: list[str] = typer.Argument(..., help="Player names in seating order."),
    variant: Variant = typer.Option(Variant.POOL, help="Game format."),
    pool_limit: int = typer.Option(101, min=1, help="Elimination threshold for pool games."),
    deals: int = typer.Option(2, min=1, help="Number of deals for deals games."),
    point_value: int = typer.Option(1, min=0, help="Value of one point in points games."),
    first_drop: int = typer.Option(25, min=0, help="Penalty for dropping before the first draw."),
    middle_drop: int = typer.Option(50, min=0, help="Penalty for dropping after drawing."),
    name: str | None = typer.Option(None, help="Optional label for the game."),
) -> None:
    """Start a new game and print its id."""

    try:
        config = GameConfig(
            variant=variant,
            pool_limit=pool_limit,
            number_of_deals=deals,
            point_value=point_value,
            first_drop_penalty=first_drop,
            middle_drop_penalty=middle_drop,
        )
        keeper = ScoreKeeper(ctx.obj)
        game = keeper.new_game(config, players, name=name)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if keeper.last_persistence_error is not None:
        console.print("[yellow]Warning: the game could not be saved.[/yellow]")
    console.print(f"[cyan]Started game[/cyan] [bold]{game.id}[/bold]")
    _print_game(game)


@app.command("round")
def add_round(
    ctx: typer.Context,
    game_id: str = typer.Argument(..., help="Id printed by 'new'."),
    scores: list[str] = typer.Argument(..., help="Entries like Asha=win Ravi=25 Meera=drop."),
) -> None:
    """Record a round for a stored game."""

    keeper = _keeper(ctx, game_id)
    game = keeper.get_state()
    inputs = [parse_score_token(token, game) for token in scores]
    try:
        keeper.add_round(inputs)
    except RoundRejected as exc:
        console.print(f"[red]Round rejected: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    _print_game(keeper.get_state())


@app.command()
def edit(
    ctx: typer.Context,
    game_id: str = typer.Argument(..., help="Id printed by 'new'."),
    round_number: int = typer.Argument(..., min=1, help="1-based round to replace."),
    scores: list[str] = typer.Argument(..., help="Entries like Asha=win Ravi=25 Meera=drop."),
) -> None:
    """Replace the scores of an earlier round and recompute the game."""

    keeper = _keeper(ctx, game_id)
    game = keeper.get_state()
    if round_number > len(game.rounds):
        console.print(f"[red]Game has only {len(game.rounds)} round(s).[/red]")
        raise typer.Exit(code=1)
    inputs = [parse_score_token(token, game) for token in scores]
    try:
        keeper.update_round(game.rounds[round_number - 1].id, inputs)
    except (RoundRejected, UnknownRound) as exc:
        console.print(f"[red]Edit rejected: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    _print_game(keeper.get_state())


@app.command()
def show(
    ctx: typer.Context,
    game_id: str = typer.Argument(..., help="Id printed by 'new'."),
) -> None:
    """Print standings and the round log."""

    _print_game(_keeper(ctx, game_id).get_state())


@app.command()
def history(ctx: typer.Context) -> None:
    """List stored games, newest first."""

    games = ctx.obj.list_games()
    if not games:
        console.print("[dim]No saved games.[/dim]")
        return
    for game in games:
        label = game.name or game.config.variant.value
        status = f"won by {game.player(game.winner).name}" if game.winner else f"{len(game.rounds)} round(s)"
        console.print(f"[bold]{game.id}[/bold]  {label}  {game.started_at:%Y-%m-%d %H:%M}  {status}")


def main() -> None:
    """Entry-point for ``python -m rummy_scorer.cli``."""

    app()


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    main()
