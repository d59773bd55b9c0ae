"""Rendering helpers dedicated to the CLI experience."""

from __future__ import annotations

from typing import Iterable

from rich import box
from rich.table import Table

from ..cards import Card, JokerType, Suit
from ..declaration import DeclarationResult
from ..rules import Variant, points_winnings
from ..scoreboard import standings
from ..state import Game

_SUIT_COLORS = {
    Suit.SPADES: "cyan",
    Suit.HEARTS: "red",
    Suit.DIAMONDS: "magenta",
    Suit.CLUBS: "green",
}


def format_card(card: Card) -> str:
    """Return a Rich-rendered label for ``card``."""

    if card.joker_type is JokerType.PRINTED or card.suit is None:
        return f"[magenta]{card.label()}[/magenta]"
    color = _SUIT_COLORS[card.suit]
    if card.joker_type is JokerType.WILD:
        return f"[bold {color}]{card.label()}[/bold {color}]"
    return f"[{color}]{card.label()}[/{color}]"


def format_cards(cards: Iterable[Card]) -> str:
    rendered = " ".join(format_card(card) for card in cards)
    return rendered or "—"


def render_declaration(result: DeclarationResult) -> Table:
    """Return a table listing melds, deadwood and the verdict."""

    table = Table(title="Hand Arrangement", box=box.SIMPLE_HEAVY)
    table.add_column("Group", justify="left")
    table.add_column("Cards", justify="left")

    for meld in result.melds:
        table.add_row(meld.type.value, format_cards(meld.cards))
    table.add_row("deadwood", format_cards(result.deadwood))
    if result.closing_card is not None:
        table.add_row("closing card", format_card(result.closing_card))

    verdict = "[bold green]Valid declaration[/bold green]" if result.is_valid else "[red]Not declarable[/red]"
    table.add_row("verdict", verdict)
    table.add_row("deadwood points", str(result.deadwood_points))
    return table


def render_standings(game: Game) -> Table:
    title = game.name or f"Game {game.id}"
    table = Table(title=f"{title} ({game.config.variant.value})", box=box.DOUBLE_EDGE)
    table.add_column("#", justify="right")
    table.add_column("Player", justify="center")
    table.add_column("Score", justify="right")
    table.add_column("Status", justify="center")

    for entry in standings(game):
        status = "Active"
        if entry.is_eliminated:
            status = "[dim]Eliminated[/dim]"
        if entry.player_id == game.winner:
            status = "[bold green]Winner[/bold green]"
        table.add_row(str(entry.rank), entry.name, str(entry.score), status)
    return table


def render_rounds(game: Game) -> Table:
    """Return the round log with one column per player."""

    table = Table(title="Rounds", box=box.SIMPLE)
    table.add_column("Round", justify="right")
    for player in game.players:
        table.add_column(player.name, justify="right")
    show_winnings = game.config.variant is Variant.POINTS
    if show_winnings:
        table.add_column("Winnings", justify="right")

    names = {player.id: player.name for player in game.players}
    for number, entry in enumerate(game.rounds, start=1):
        cells = []
        for player in game.players:
            points = entry.scores.get(player.id, 0)
            cell = str(points)
            if player.id == entry.winner:
                cell = f"[bold green]{cell}[/bold green]"
            cells.append(cell)
        row = [str(number), *cells]
        if show_winnings:
            if entry.winner is None:
                row.append("—")
            else:
                amount = points_winnings(entry.scores, entry.winner, game.config.point_value)
                row.append(f"{names[entry.winner]} +{amount}")
        table.add_row(*row)
    return table
