"""Command-line driver: play against the computer or benchmark its difficulty levels."""

from __future__ import annotations

import argparse
import random
import statistics
from typing import Sequence

from salvo.ai.difficulty import AIOption
from salvo.ai.instrumented_engine import InstrumentedTargetingEngine
from salvo.ai.targeting import TargetingEngine
from salvo.config import GameConfig
from salvo.engine.game import GamePhase, Player
from salvo.engine.grid import AttackOutcome, EnemyView, SeaGrid, TileView
from salvo.engine.instrumented_game import InstrumentedBattleshipGame
from salvo.engine.location import Location
from salvo.telemetry import configure_console_logging, init_telemetry

ROW_LABELS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

SYMBOLS = {
    TileView.HIT: "X",
    TileView.MISS: "o",
    TileView.SHIP: "S",
    TileView.SEA: ".",
}


def parse_coordinate(text: str, height: int, width: int) -> Location:
    """Parse ``A5`` or ``'0 4'`` style input into a zero-based location."""
    cleaned = text.strip().upper()
    if not cleaned:
        raise ValueError("Empty coordinate.")
    if cleaned[0].isalpha():
        row = ROW_LABELS.find(cleaned[0])
        try:
            column = int(cleaned[1:]) - 1
        except ValueError as exc:
            raise ValueError(f"Column must be a number between 1 and {width}.") from exc
    else:
        parts = cleaned.split()
        if len(parts) != 2:
            raise ValueError("Use formats like A5 or '3 7'.")
        row, column = map(int, parts)
    location = Location(row, column)
    if not location.in_bounds(height, width):
        raise ValueError(f"Coordinates must be within the {height}x{width} board.")
    return location


def format_grid(grid: SeaGrid, show_ships: bool) -> str:
    header = "    " + " ".join(f"{column + 1:>2}" for column in range(grid.width))
    rows = [header]
    for row in range(grid.height):
        symbols = []
        for column in range(grid.width):
            tile = grid[row, column]
            if tile is TileView.SHIP and not show_ships:
                tile = TileView.SEA
            symbols.append(f"{SYMBOLS[tile]:>2}")
        rows.append(f"{ROW_LABELS[row]} |" + " ".join(symbols))
    return "\n".join(rows)


def _prompt_for_coordinate(game: InstrumentedBattleshipGame) -> Location:
    grid = game.grids[Player.COMPUTER]
    while True:
        raw = input("Enter target coordinate (e.g., A5) or 'q' to quit: ").strip()
        if raw.lower() == "q":
            raise SystemExit("Goodbye!")
        try:
            location = parse_coordinate(raw, grid.height, grid.width)
        except ValueError as exc:
            print(f"Invalid input: {exc}")
            continue
        if location in grid.shots:
            print("That cell has already been targeted. Choose another.")
            continue
        return location


def _label(location: Location) -> str:
    return f"{ROW_LABELS[location.row]}{location.column + 1}"


def play_game(config: GameConfig) -> None:
    print(f"Welcome to Battleship! Difficulty: {config.difficulty.value}\n")
    game = InstrumentedBattleshipGame(config, engine_factory=InstrumentedTargetingEngine)
    game.setup_random()

    while game.phase is GamePhase.IN_PROGRESS:
        if game.current_player is Player.HUMAN:
            print("\nYour Board:")
            print(format_grid(game.grids[Player.HUMAN], show_ships=True))
            print("\nEnemy Waters:")
            print(format_grid(game.grids[Player.COMPUTER], show_ships=False))
            print(f"Enemy ships left: {game.ships_left(Player.COMPUTER)}")
            location = _prompt_for_coordinate(game)
            result = game.shoot(location.row, location.column)
            print(f"You fired at {_label(location)}: {result}")
        else:
            for result in game.play_computer_turn():
                print(f"The AI fired at {_label(result.location)}: {result}")

    if game.winner is Player.HUMAN:
        print("\nCongratulations, you won!")
    else:
        print("\nThe AI won this time. Better luck next battle!")


def shots_to_win(config: GameConfig, rng: random.Random) -> int:
    """Let the engine sink a randomly deployed fleet and count the shots it needed."""
    grid = SeaGrid(config.width, config.height, owner="target")
    grid.random_placement(rng)
    engine = TargetingEngine(
        EnemyView(grid),
        config.difficulty,
        rng=random.Random(rng.random()),
        search_attempts=config.search_attempts,
    )
    shots = 0
    while True:
        location = engine.choose_shot()
        result = grid.attack(location.row, location.column)
        engine.on_shot_resolved(result.row, result.column, result.outcome, result.sunk_cells)
        shots += 1
        if result.outcome is AttackOutcome.GAME_OVER:
            return shots


def simulate(config: GameConfig, games: int) -> dict[str, float]:
    if games < 1:
        raise ValueError(f"games must be at least 1, got {games}.")
    rng = random.Random(config.seed)
    counts = [shots_to_win(config, rng) for _ in range(games)]
    return {
        "games": float(games),
        "mean": statistics.fmean(counts),
        "median": float(statistics.median(counts)),
        "best": float(min(counts)),
        "worst": float(max(counts)),
    }


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="salvo", description="Battleship against a computer opponent.")
    parser.add_argument(
        "--log-level", default=None, help="Console log level (defaults to SALVO_LOG_LEVEL or INFO)."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--difficulty",
        choices=[option.value for option in AIOption],
        default=None,
        help="Computer opponent difficulty.",
    )
    common.add_argument(
        "--seed", type=int, default=None, help="Optional RNG seed for reproducibility."
    )
    common.add_argument("--width", type=int, default=None)
    common.add_argument("--height", type=int, default=None)

    subparsers.add_parser("play", parents=[common], help="Play a game in the terminal.")
    simulate_parser = subparsers.add_parser(
        "simulate", parents=[common], help="Measure how many shots a difficulty needs to win."
    )
    simulate_parser.add_argument("--games", type=_positive_int, default=100)
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    telemetry = init_telemetry()
    configure_console_logging(args.log_level or telemetry.log_level)
    config = GameConfig.from_env(
        difficulty=args.difficulty,
        seed=args.seed,
        width=args.width,
        height=args.height,
    )

    if args.command == "play":
        if config.height > len(ROW_LABELS):
            raise SystemExit(f"The terminal board supports at most {len(ROW_LABELS)} rows.")
        play_game(config)
        return

    stats = simulate(config, args.games)
    print(
        f"{config.difficulty.value}: {int(stats['games'])} games, "
        f"mean {stats['mean']:.1f} shots, median {stats['median']:.0f}, "
        f"best {stats['best']:.0f}, worst {stats['worst']:.0f}"
    )


if __name__ == "__main__":
    main()
