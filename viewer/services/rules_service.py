"""Rules and position service backed by python-chess.

Everything the viewer knows about chess rules goes through this module:
PGN parsing, replaying a move prefix into a FEN, and applying a single move
given in coordinate (UCI) or algebraic (SAN) notation.
"""

import io
import re
from dataclasses import dataclass, field
from typing import Sequence, Tuple

import chess
import chess.pgn

from viewer.services.errors import PgnParseError, IllegalMoveError


STARTING_FEN = chess.STARTING_FEN

_UCI_MOVE_PATTERN = re.compile(r'^[a-h][1-8][a-h][1-8][qrbn]?$')
_INVISIBLE_CHARS = re.compile(r'[\u200B-\u200D\uFEFF]')

# python-chess fills the seven tag roster with these when a tag is absent
_UNKNOWN_HEADER_VALUES = {"", "?", "????.??.??", "*"}


@dataclass(frozen=True)
class GameHeaders:
    """PGN header values shown by the viewer, with placeholders for missing names."""
    white: str = "White"
    black: str = "Black"
    result: str = ""
    event: str = ""
    site: str = ""
    date: str = ""
    round: str = ""


@dataclass(frozen=True)
class ParsedGame:
    """Mainline SAN moves, headers and starting position of a parsed PGN game."""
    moves: Tuple[str, ...]
    headers: GameHeaders = field(default_factory=GameHeaders)
    starting_fen: str = STARTING_FEN


@dataclass(frozen=True)
class AppliedMove:
    """Result of applying one move to a position."""
    fen: str
    san: str


def _header_value(headers: chess.pgn.Headers, name: str) -> str:
    value = headers.get(name, "").strip()
    return "" if value in _UNKNOWN_HEADER_VALUES else value


class RulesService:
    """Adapter over python-chess for PGN parsing and position replay."""

    @staticmethod
    def parse_pgn(pgn_text: str) -> ParsedGame:
        """Parse the first game in a PGN text.

        Args:
            pgn_text: Free-form PGN text (headers optional).

        Returns:
            ParsedGame with the mainline moves in SAN.

        Raises:
            PgnParseError: If the text is empty, malformed, or contains no moves.
        """
        if not pgn_text or not pgn_text.strip():
            raise PgnParseError("Empty PGN text")

        pgn_text = _INVISIBLE_CHARS.sub('', pgn_text.strip())

        try:
            game = chess.pgn.read_game(io.StringIO(pgn_text))
        except (ValueError, KeyError) as e:
            raise PgnParseError(f"Invalid PGN: {e}") from e

        if game is None:
            raise PgnParseError("Invalid PGN: no game found")
        if game.errors:
            raise PgnParseError(f"Invalid PGN: {game.errors[0]}")

        board = game.board()
        starting_fen = board.fen()
        moves = []
        for move in game.mainline_moves():
            moves.append(board.san(move))
            board.push(move)

        if not moves:
            raise PgnParseError("No moves found in PGN")

        headers = game.headers
        return ParsedGame(
            moves=tuple(moves),
            headers=GameHeaders(
                white=_header_value(headers, "White") or "White",
                black=_header_value(headers, "Black") or "Black",
                result=_header_value(headers, "Result"),
                event=_header_value(headers, "Event"),
                site=_header_value(headers, "Site"),
                date=_header_value(headers, "Date"),
                round=_header_value(headers, "Round"),
            ),
            starting_fen=starting_fen,
        )

    @staticmethod
    def position_after_prefix(moves: Sequence[str], ply: int, starting_fen: str = STARTING_FEN) -> str:
        """Replay the first `ply` moves from the starting position.

        The board is rebuilt from scratch on every call.

        Args:
            moves: SAN moves of the game.
            ply: Number of moves to play (0 = starting position).
            starting_fen: Position the game starts from.

        Returns:
            FEN of the position after `ply` moves.

        Raises:
            ValueError: If ply is outside 0..len(moves).
            IllegalMoveError: If a move in the prefix is not legal.
        """
        if ply < 0 or ply > len(moves):
            raise ValueError(f"Ply {ply} out of range 0..{len(moves)}")

        board = chess.Board(starting_fen)
        for san in moves[:ply]:
            try:
                board.push_san(san)
            except ValueError as e:
                raise IllegalMoveError(san, board.fen()) from e
        return board.fen()

    @staticmethod
    def apply_move(fen: str, move_text: str) -> AppliedMove:
        """Apply a move given in UCI or SAN notation to a copy of a position.

        Args:
            fen: Position before the move.
            move_text: Move as coordinates ("e2e4", "e7e8q") or SAN ("e4", "O-O").

        Returns:
            AppliedMove with the resulting FEN and the move's SAN.

        Raises:
            IllegalMoveError: If the move is malformed or not legal in the position.
        """
        try:
            board = chess.Board(fen)
        except ValueError as e:
            raise IllegalMoveError(move_text, fen) from e

        try:
            if _UCI_MOVE_PATTERN.match(move_text):
                move = chess.Move.from_uci(move_text)
                if move not in board.legal_moves:
                    raise IllegalMoveError(move_text, fen)
            else:
                move = board.parse_san(move_text)
        except ValueError as e:
            raise IllegalMoveError(move_text, fen) from e

        san = board.san(move)
        board.push(move)
        return AppliedMove(fen=board.fen(), san=san)

    @staticmethod
    def export_movetext(moves: Sequence[str]) -> str:
        """Join the moves with single spaces (no move numbers, headers or result).

        Args:
            moves: SAN moves.

        Returns:
            Movetext string, e.g. "e4 e5 Nf3".
        """
        return " ".join(moves)
