"""
Solution replay.

Applies a puzzle's solution to a private copy of the starting position so
the final position can be evaluated without touching the board the player
sees.
"""

import chess

from trainer.errors import InvalidSolutionMove, InvalidStartPosition


def board_from(start) -> chess.Board:
    """Return a fresh board for a FEN string or a copy of an existing board."""
    if isinstance(start, chess.Board):
        return start.copy(stack=False)
    try:
        return chess.Board(start)
    except ValueError as e:
        raise InvalidStartPosition(str(start), str(e)) from e


def parse_uci(board: chess.Board, uci: str) -> chess.Move:
    """
    Parse a UCI move against a board.

    A pawn reaching the last rank without a promotion suffix is promoted to
    a queen; puzzle records occasionally leave the piece off.
    """
    move = chess.Move.from_uci(uci)
    if move.promotion is None:
        piece = board.piece_at(move.from_square)
        if piece and piece.piece_type == chess.PAWN and chess.square_rank(move.to_square) in (0, 7):
            move = chess.Move(move.from_square, move.to_square, promotion=chess.QUEEN)
    return move


def apply_uci(board: chess.Board, uci: str, ply: int = 0) -> chess.Move:
    """Push a UCI move onto the board, raising InvalidSolutionMove if it is illegal."""
    fen = board.fen()
    try:
        move = parse_uci(board, uci)
    except (ValueError, TypeError) as e:
        raise InvalidSolutionMove(ply, uci, fen, f"unparseable ({e})") from e
    if not board.is_legal(move):
        raise InvalidSolutionMove(ply, uci, fen)
    board.push(move)
    return move


def replay_to_end(start, solution) -> chess.Board:
    """
    Replay every solution move from the start position.

    Returns the board after the last move. The input board (if one is
    passed) is left untouched.
    """
    board = board_from(start)
    for ply, uci in enumerate(solution):
        apply_uci(board, uci, ply)
    return board
