"""
Command-line interface for the chess puzzle trainer.
"""

import argparse
import random
import sys
from pathlib import Path

import chess

from trainer.config import load_config, puzzle_database_path
from trainer.daily import fetch_daily_puzzle, puzzle_from_daily
from trainer.database import load_high_score, save_high_score
from trainer.errors import UnusablePuzzle, NoPlayablePuzzle, DailyPuzzleError
from trainer.evaluation import evaluator_from_config
from trainer.orientation import OrientationSelector, color_name
from trainer.puzzle import load_puzzle_database, pick_random
from trainer.review import review_game
from trainer.session import SurvivalRun, next_session, INCORRECT, ILLEGAL, SOLVED, CORRECT


def print_orientations(puzzles, selector):
    """Print the orientation decision for every puzzle."""
    print(f"\n{'Puzzle':<12} {'Rating':>6} {'To move':<8} {'Player':<7} {'Eval':>7} {'Source':<9} {'Auto move':<9}")
    print("-" * 66)
    skipped = 0
    for puzzle in puzzles:
        try:
            session = selector.prepare(puzzle)
        except UnusablePuzzle as e:
            skipped += 1
            print(f"{puzzle.puzzle_id:<12} {'':>6} unusable: {e.cause or 'no move left for the player'}")
            continue
        start_turn = color_name(chess.Board(puzzle.fen).turn)
        evaluation = session.evaluation
        score = f"{evaluation.score:+.2f}" if evaluation else "n/a"
        source = evaluation.source if evaluation else "none"
        rating = puzzle.rating if puzzle.rating is not None else "--"
        print(f"{puzzle.puzzle_id:<12} {rating:>6} {start_turn:<8} {color_name(session.orientation):<7} "
              f"{score:>7} {source:<9} {session.auto_move or '':<9}")
    print(f"\n{len(puzzles) - skipped}/{len(puzzles)} puzzles playable")


def print_board(session):
    board = session.board
    print()
    print(board if session.orientation == chess.WHITE else board.transform(chess.flip_vertical).transform(chess.flip_horizontal))
    print(f"\nYou play {color_name(session.orientation)}. "
          f"Rating: {session.puzzle.rating or '--'}  Themes: {session.puzzle.theme_text or '--'}")
    if session.auto_move and session.solution_index == 1:
        print(f"Opponent played: {session.auto_move}")


def play_session(session, input_fn=input) -> bool:
    """
    Play one puzzle interactively.

    Returns True when solved, False when the player gives up.
    """
    print_board(session)
    while not session.is_complete:
        answer = input_fn("Your move (UCI, 'hint', 'skip'): ").strip()
        if answer == 'skip':
            print(f"Solution: {' '.join(session.puzzle.solution[session.solution_index:])}")
            return False
        if answer == 'hint':
            print(f"  {session.hint().message}")
            continue
        outcome = session.submit_move(answer)
        if outcome.status == ILLEGAL:
            print("  Illegal move")
        elif outcome.status == INCORRECT:
            print("  Try again")
        elif outcome.status in (CORRECT, SOLVED):
            print("  Correct!" + (f" Opponent replies {outcome.reply}" if outcome.reply else ""))
    print("Puzzle solved!")
    return True


def run_play(puzzles, selector, difficulty, phase, rng, input_fn=input):
    """Serve random puzzles until the player quits (Ctrl-D / Ctrl-C)."""
    solved = 0
    try:
        while True:
            session = next_session(puzzles, selector,
                                   lambda p: pick_random(p, difficulty, phase, rng))
            if play_session(session, input_fn):
                solved += 1
    except (EOFError, KeyboardInterrupt):
        print(f"\n\nSolved {solved} puzzle(s). Bye!")


def run_survival(puzzles, selector, rng, settings, player, input_fn=input):
    """Play a survival run in the terminal."""
    run = SurvivalRun(puzzles, selector, rng, settings, player=player)
    run.next_puzzle()
    shown = None
    try:
        while not run.is_over:
            if run.current is not shown:
                shown = run.current
                print(f"\n{'='*40}")
                print(f"Lives: {run.lives}/{run.max_lives}  Score: {run.score}  Target: ~{run.target_rating}")
                print_board(run.current)
            answer = input_fn("Your move (UCI or 'hint'): ").strip()
            if answer == 'hint':
                print(f"  {run.current.hint().message}")
                continue
            outcome = run.submit_move(answer)
            if outcome.status == ILLEGAL:
                print("  Illegal move")
            elif outcome.status == INCORRECT:
                print(f"  Incorrect. Lives left: {run.lives}")
            elif outcome.status == SOLVED:
                print("  Solved! Next puzzle...")
            elif outcome.reply:
                print(f"  Correct! Opponent replies {outcome.reply}")
    except (EOFError, KeyboardInterrupt):
        print("\nRun abandoned.")

    print(f"\n{'='*40}")
    print("GAME OVER" if run.is_over else "RUN ENDED")
    print(f"Score: {run.score}  Reached target ~{run.best_rating}  Best streak: {run.best_streak}")
    record = save_high_score(run.player, run.best_rating, run.score, run.best_streak)
    if record:
        print(f"High score for {player}: rating {record['best_rating']}, "
              f"{record['puzzles_solved']} puzzles, streak {record['best_streak']}")
    return run


def run_review(pgn_path: Path, engine_cmd, depth: int):
    reviews = review_game(pgn_path.read_text(), engine_cmd, depth)
    print(f"\n{'Ply':>4} {'Move':<8} {'Best':<8} {'Loss':>6}  Quality")
    print("-" * 40)
    for r in reviews:
        print(f"{r.ply:>4} {r.san + r.quality.symbol:<8} {r.best_move or '--':<8} {r.loss:>6}  {r.quality.label}")


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Chess puzzle trainer",
        epilog="Moves are entered in UCI notation, e.g. e2e4 or e7e8q"
    )
    parser.add_argument("--puzzles", type=str, default=None, metavar="FILE",
                        help="Puzzle database JSON file (default: from config.toml / PUZZLE_DB_PATH)")
    parser.add_argument("--offline", action="store_true",
                        help="Skip remote analysis and use the material count only")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for puzzle selection")
    parser.add_argument("--orient", action="store_true",
                        help="Print the orientation decision for every puzzle in the database")
    parser.add_argument("--play", action="store_true",
                        help="Play random puzzles in the terminal")
    parser.add_argument("--difficulty", type=str, default=None,
                        help="With --play: only puzzles of this difficulty (e.g. beginner)")
    parser.add_argument("--phase", type=str, default=None,
                        help="With --play: only puzzles from this phase (e.g. middlegame, endgame)")
    parser.add_argument("--survival", action="store_true",
                        help="Survival mode: three lives, rising puzzle rating")
    parser.add_argument("--daily", action="store_true",
                        help="Play today's Lichess daily puzzle")
    parser.add_argument("--player", type=str, default="default",
                        help="Player name for high scores (default: default)")
    parser.add_argument("--highscore", action="store_true",
                        help="Show the stored high score for --player")
    parser.add_argument("--review", type=str, default=None, metavar="PGN",
                        help="Review the moves of a PGN game")
    parser.add_argument("--engine", type=str, default=None, metavar="CMD",
                        help="With --review: UCI engine executable (default: material count)")
    parser.add_argument("--depth", type=int, default=12,
                        help="With --review: engine search depth (default: 12)")

    args = parser.parse_args()

    if args.highscore:
        record = load_high_score(args.player)
        if record is None:
            print(f"No high score stored for {args.player} (is DATABASE_URL set?)")
        else:
            print(f"{args.player}: rating {record['best_rating']}, "
                  f"{record['puzzles_solved']} puzzles, best streak {record['best_streak']}")
        sys.exit(0)

    if args.review:
        pgn_path = Path(args.review)
        if not pgn_path.exists():
            print(f"Error: PGN file not found: {args.review}")
            sys.exit(1)
        run_review(pgn_path, args.engine, args.depth)
        sys.exit(0)

    config = load_config()
    evaluator = evaluator_from_config(config, offline=args.offline)
    selector = OrientationSelector(evaluator, config['analysis'].get('on_unavailable', 'side_to_move'))
    rng = random.Random(args.seed)

    if args.daily:
        try:
            session = selector.prepare(puzzle_from_daily(fetch_daily_puzzle()))
        except (DailyPuzzleError, UnusablePuzzle) as e:
            print(f"Error: {e}")
            sys.exit(1)
        try:
            play_session(session)
        except (EOFError, KeyboardInterrupt):
            print()
        sys.exit(0)

    db_path = Path(args.puzzles) if args.puzzles else puzzle_database_path(config)
    if not db_path.exists():
        print(f"Error: Puzzle database not found: {db_path}")
        sys.exit(1)
    puzzles = load_puzzle_database(db_path)
    if not puzzles:
        print(f"Error: No puzzles in {db_path}")
        sys.exit(1)
    print(f"Loaded {len(puzzles)} puzzles from {db_path}")

    try:
        if args.orient:
            print_orientations(puzzles, selector)
        elif args.survival:
            run_survival(puzzles, selector, rng, config.get('survival'), args.player)
        elif args.play:
            run_play(puzzles, selector, args.difficulty, args.phase, rng)
        else:
            parser.print_help()
    except NoPlayablePuzzle as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
