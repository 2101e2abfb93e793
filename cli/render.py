"""Rendering helpers dedicated to the terminal front end."""

from typing import Sequence

from rich import box
from rich.console import Group, RenderableType
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from solitaire.board import Board
from solitaire.cards import Card, Color
from solitaire.game import GameState, KlondikeGame

FACE_DOWN = "[blue]##[/blue]"
EMPTY = "[dim]--[/dim]"

_STATE_STYLES = {
    GameState.DEALING: "yellow",
    GameState.PLAYING: "green",
    GameState.STUCK: "red",
    GameState.WON: "bold magenta",
}


def format_card(card: Card | None) -> str:
    """Return a Rich-rendered label for ``card``."""
    if card is None:
        return EMPTY
    if not card.face_up:
        return FACE_DOWN
    color = "red" if card.color == Color.RED else "white"
    return f"[{color}]{card}[/{color}]"


def _top_row(board: Board, draw_count: int) -> Table:
    table = Table(box=None, show_header=True, padding=(0, 2))
    table.add_column("s")
    table.add_column("w", min_width=8)
    for i in range(len(board.foundations)):
        table.add_column(f"f{i + 1}")

    stock = f"{FACE_DOWN} {len(board.stock)}" if not board.stock.is_empty else EMPTY
    visible = board.waste.cards[-draw_count:]
    waste = " ".join(format_card(c) for c in visible) if visible else EMPTY
    foundations = [format_card(f.peek()) for f in board.foundations]
    table.add_row(stock, waste, *foundations)
    return table


def _tableau_grid(board: Board) -> Table:
    table = Table(box=box.SIMPLE_HEAD, show_header=True, padding=(0, 1))
    for tableau in board.tableaus:
        table.add_column(str(tableau.ref), justify="center", min_width=4)

    depth = max((len(t) for t in board.tableaus), default=0)
    for row in range(max(depth, 1)):
        cells = []
        for tableau in board.tableaus:
            if row < len(tableau):
                cells.append(format_card(tableau.cards[row]))
            elif row == 0:
                cells.append(EMPTY)
            else:
                cells.append("")
        table.add_row(*cells)
    return table


def status_line(game: KlondikeGame) -> str:
    """One-line summary of the game."""
    style = _STATE_STYLES[game.state]
    return (
        f"[{style}]{game.state}[/{style}]  moves {game.move_count}  "
        f"redeals {game.board.redeals}  seed {escape(str(game.seed))}"
    )


def render_game(game: KlondikeGame, events: Sequence[str] = ()) -> RenderableType:
    """Return a Rich panel describing the current table."""
    parts: list[RenderableType] = [
        _top_row(game.board, game.rules.draw_count),
        _tableau_grid(game.board),
        Text.from_markup(status_line(game)),
    ]
    if events:
        parts.append(Panel("\n".join(events), title="Log", border_style="dim", box=box.ROUNDED))
    return Panel(Group(*parts), title="Klondike", padding=(0, 1), border_style="cyan")
