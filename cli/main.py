"""Typer entry-point wiring for the Klondike terminal front end."""

from dataclasses import dataclass, replace

import typer
from rich.console import Console
from rich.markup import escape

from cli.render import format_card, render_game
from config import config
from solitaire.board import Board
from solitaire.game import EventType, GameEvent, KlondikeGame
from solitaire.moves import Move, is_productive, sorted_moves
from solitaire.pile import PileKind, PileRef

app = typer.Typer(add_completion=False, rich_markup_mode="rich")
console = Console()

MAX_EVENT_LOG = 8
MAX_HINTS = 5

HELP_TEXT = (
    "draw (d) | move SRC DST [N] (m) | auto SRC [N] (a) | finish | hint (h) | "
    "new [SEED] | quit (q)\n"
    "piles: s w f1-f4 t1-t7, 'f' = the card's own foundation"
)

_ALIASES = {
    "d": "draw",
    "m": "move",
    "a": "auto",
    "h": "hint",
    "q": "quit",
    "exit": "quit",
    "?": "help",
}


@dataclass(frozen=True, slots=True)
class Command:
    """A parsed player command."""

    name: str
    move: Move | None = None
    src: PileRef | None = None
    count: int = 1
    seed: int | str | None = None


def coerce_seed(value: str | None) -> int | str | None:
    """Numeric seeds become ints so they match the API's seeds."""
    if value is None:
        return None
    value = value.strip()
    return int(value) if value.lstrip("-").isdigit() else value


def _parse_count(args: list[str], index: int) -> int:
    if len(args) <= index:
        return 1
    if not args[index].isdigit():
        raise ValueError(f"Invalid card count: {args[index]}")
    return int(args[index])


def _resolve_destination(name: str, board: Board, src: PileRef) -> PileRef:
    """Parse a destination; bare 'f' means the foundation of the moving card's suit."""
    if name.strip().lower() != "f":
        return PileRef.from_string(name)
    card = board.pile(src).peek()
    if card is None:
        raise ValueError(f"{src} is empty")
    return PileRef.foundation_for(card.suit)


def parse_command(line: str, board: Board) -> Command:
    """
    Parse one line of player input.

    Args:
        line: Raw input such as ``"m t1 t4 2"`` or ``"draw"``
        board: The current board, used to resolve ``f``

    Raises:
        ValueError: If the command or one of its piles is not understood
    """
    words = line.split()
    if not words:
        raise ValueError("Type a command, or 'help'")
    name = _ALIASES.get(words[0].lower(), words[0].lower())
    args = words[1:]

    if name in ("draw", "finish", "hint", "quit", "help"):
        return Command(name)
    if name == "new":
        return Command(name, seed=coerce_seed(args[0]) if args else None)
    if name == "move":
        if len(args) not in (2, 3):
            raise ValueError("Usage: move SRC DST [N]")
        src = PileRef.from_string(args[0])
        dst = _resolve_destination(args[1], board, src)
        return Command(name, move=Move(src, dst, _parse_count(args, 2)))
    if name == "auto":
        if len(args) not in (1, 2):
            raise ValueError("Usage: auto SRC [N]")
        return Command(name, src=PileRef.from_string(args[0]), count=_parse_count(args, 1))
    raise ValueError(f"Unknown command: {words[0]}")


def describe_event(event: GameEvent) -> str | None:
    """Return a log line for ``event``, or None for events not worth showing."""
    data = event.data
    if event.event_type == EventType.GAME_STARTED:
        return f"New game, seed {escape(str(data['seed']))}, draw {data['draw_count']}"
    if event.event_type == EventType.CARD_MOVED:
        return f"{data['src']} -> {data['dst']}: {' '.join(data['cards'])}"
    if event.event_type == EventType.CARD_REVEALED:
        return f"Turned up {data['card']} on {data['pile']}"
    if event.event_type == EventType.WASTE_RECYCLED:
        return f"Waste turned over (redeal {data['redeals']})"
    if event.event_type == EventType.FOUNDATION_COMPLETED:
        return f"[magenta]{data['suit'].title()} complete[/magenta]"
    if event.event_type == EventType.GAME_WON:
        return f"[bold green]Won in {data['moves']} moves![/bold green]"
    if event.event_type == EventType.GAME_STUCK:
        return "[red]No productive moves left. Start a new game with 'new'.[/red]"
    if event.event_type == EventType.GAME_RESUMED:
        return "[green]Moves are available again[/green]"
    if event.event_type == EventType.INVALID_ACTION:
        return f"[red]{escape(data['message'])}[/red]"
    return None


def _append_event(log: list[str], message: str) -> None:
    """Append ``message`` to ``log`` maintaining a bounded log length."""
    log.append(message)
    excess = len(log) - MAX_EVENT_LOG
    if excess > 0:
        del log[:excess]


def hint(game: KlondikeGame) -> str:
    """Suggest moves, productive ones first."""
    moves = sorted_moves(game.legal_moves)
    productive = [m for m in moves if is_productive(game.board, m, game.rules)]
    if productive:
        suggestions = productive[:MAX_HINTS]
    elif game.can_draw:
        return "Try drawing from the stock"
    else:
        suggestions = moves[:MAX_HINTS]
    if not suggestions:
        return "No moves available"
    labels = []
    for move in suggestions:
        card = game.board.pile(move.src).cards[-move.count]
        labels.append(f"{move} ({format_card(card)})")
    return "Hint: " + ", ".join(labels)


def execute(game: KlondikeGame, command: Command, log: list[str]) -> None:
    """Run a parsed command against the game."""
    if command.name == "draw":
        game.draw()
    elif command.name == "move" and command.move is not None:
        game.move(command.move)
    elif command.name == "auto" and command.src is not None:
        if command.src.kind == PileKind.STOCK:
            game.draw()
        else:
            game.auto_move(command.src, command.count)
    elif command.name == "finish":
        moved = game.auto_play_to_foundation()
        _append_event(log, f"Moved {moved} card(s) to the foundations")
    elif command.name == "hint":
        _append_event(log, hint(game))
    elif command.name == "new":
        game.new_game(seed=command.seed)
    elif command.name == "help":
        _append_event(log, HELP_TEXT)


@app.command()
def play(
    seed: str | None = typer.Option(None, help="Shuffle seed for a reproducible deal (omit for randomness)."),
    draw_count: int = typer.Option(config.game.draw_count, "--draw-count", "-d", help="Cards turned per draw: 1 or 3."),
    max_redeals: int | None = typer.Option(None, min=0, help="Limit passes through the stock (omit for unlimited)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show engine log output."),
) -> None:
    """Play Klondike solitaire in the terminal."""
    if draw_count not in (1, 3):
        raise typer.BadParameter("Draw count must be 1 or 3.", param_hint="--draw-count")

    config.logging.configure(level=None if verbose else "WARNING")
    rules = config.game.to_rules(draw_count)
    if max_redeals is not None:
        rules = replace(rules, max_redeals=max_redeals)

    log: list[str] = []

    def on_event(event: GameEvent) -> None:
        message = describe_event(event)
        if message is not None:
            _append_event(log, message)

    game = KlondikeGame(rules=rules, deal=False)
    game.subscribe(on_event)
    game.new_game(seed=coerce_seed(seed))
    _append_event(log, HELP_TEXT)

    while True:
        console.print(render_game(game, log))
        try:
            line = console.input("[bold cyan]> [/bold cyan]")
        except (EOFError, KeyboardInterrupt):
            break

        try:
            command = parse_command(line, game.board)
        except ValueError as exc:
            _append_event(log, f"[red]{escape(str(exc))}[/red]")
            continue
        if command.name == "quit":
            break
        execute(game, command, log)

    console.print(f"[cyan]Finished after {game.move_count} move(s).[/cyan]")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
