"""Tokenizer for preprocessed OpenQASM 2 source.

The terminal vocabulary lives in a packaged Lark grammar; only Lark's basic
lexer is used here; the statement structure is recovered by
:mod:`qasm2front.parser`.
"""

from __future__ import annotations

import enum
import importlib.resources as importlib_resources
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterator, List

from lark import Lark
from lark import Token as LarkToken
from lark.exceptions import UnexpectedCharacters

from qasm2front.errors import QasmLexicalError

__all__ = ["Token", "TokenKind", "KEYWORDS", "create_lexer", "iter_tokens", "tokenize"]

_GRAMMAR_PACKAGE = "qasm2front.grammar"
_GRAMMAR_FILE = "qasm2_tokens.lark"


class TokenKind(enum.Enum):
    """Coarse classification of a token."""

    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    INTEGER = "integer"
    REAL = "real"
    STRING = "string"
    SYMBOL = "symbol"
    OPERATOR = "operator"
    EOF = "eof"


KEYWORDS: frozenset[str] = frozenset(
    {"OPENQASM", "QREG", "CREG", "GATE", "OPAQUE", "IF", "MEASURE", "RESET", "BARRIER", "INCLUDE"}
)

_OPERATORS: frozenset[str] = frozenset({"PLUS", "MINUS", "STAR", "SLASH", "CARET"})

_LITERAL_KINDS: dict[str, TokenKind] = {
    "IDENTIFIER": TokenKind.IDENTIFIER,
    "INTEGER": TokenKind.INTEGER,
    "REAL": TokenKind.REAL,
    "STRING": TokenKind.STRING,
}


@dataclass(frozen=True)
class Token:
    """A classified lexical unit.

    Parameters
    ----------
    kind : TokenKind
        Coarse classification of the token.
    type : str
        Terminal name from the grammar (``"QREG"``, ``"LPAREN"``, ...) or
        ``"EOF"`` for the end-of-input marker.
    text : str
        Exact source lexeme.
    index : int
        Position of the token in the token sequence.
    line : int
        One-based source line.
    col : int
        One-based source column.
    start : int
        Offset of the first character in the lexed text.
    end : int
        Offset one past the last character in the lexed text.
    spacing : str
        Whitespace between the previous token (or the start of the text) and
        this one, exactly as written.
    """

    kind: TokenKind
    type: str
    text: str
    index: int
    line: int
    col: int
    start: int
    end: int
    spacing: str = ""

    def describe(self) -> str:
        """Return a short description suitable for diagnostics."""
        if self.kind is TokenKind.EOF:
            return "end of input"
        return repr(self.text)


def _classify(token_type: str) -> TokenKind:
    if token_type in KEYWORDS:
        return TokenKind.KEYWORD
    if token_type in _OPERATORS:
        return TokenKind.OPERATOR
    return _LITERAL_KINDS.get(token_type, TokenKind.SYMBOL)


@lru_cache(maxsize=1)
def create_lexer() -> Lark:
    """Instantiate the Lark lexer for the OpenQASM 2 terminal grammar.

    Returns
    -------
    Lark
        Configured instance whose :meth:`~lark.Lark.lex` method yields tokens.
    """
    try:
        grammar_text = importlib_resources.files(_GRAMMAR_PACKAGE).joinpath(_GRAMMAR_FILE).read_text(encoding="utf-8")
    except (FileNotFoundError, ModuleNotFoundError):
        grammar_path = Path(__file__).with_name("grammar").joinpath(_GRAMMAR_FILE)
        grammar_text = grammar_path.read_text(encoding="utf-8")
    return Lark(grammar_text, start="start", parser="lalr", lexer="basic")


def _end_position(text: str) -> tuple[int, int]:
    line = text.count("\n") + 1
    col = len(text) - (text.rfind("\n") + 1) + 1
    return line, col


def iter_tokens(text: str) -> Iterator[Token]:
    """Lazily tokenize ``text``, finishing with a single ``EOF`` token.

    Raises
    ------
    QasmLexicalError
        On the first character that does not start a valid token.
    """
    stream: Iterator[LarkToken] = create_lexer().lex(text)
    index = 0
    previous_end = 0
    while True:
        try:
            raw = next(stream)
        except StopIteration:
            break
        except UnexpectedCharacters as exc:
            line = getattr(exc, "line", 1) or 1
            column = getattr(exc, "column", 1) or 1
            if exc.char == '"':
                raise QasmLexicalError("E102", "Unterminated string literal.", line, column) from exc
            raise QasmLexicalError("E101", f"Unrecognized character {exc.char!r}.", line, column) from exc
        yield Token(
            kind=_classify(raw.type),
            type=raw.type,
            text=raw.value,
            index=index,
            line=raw.line,
            col=raw.column,
            start=raw.start_pos,
            end=raw.end_pos,
            spacing=text[previous_end : raw.start_pos],
        )
        previous_end = raw.end_pos
        index += 1
    line, col = _end_position(text)
    yield Token(TokenKind.EOF, "EOF", "", index, line, col, len(text), len(text), text[previous_end:])


def tokenize(text: str) -> List[Token]:
    """Convert preprocessed OpenQASM 2 source into a list of tokens.

    Parameters
    ----------
    text : str
        Source with comments stripped and includes expanded.

    Returns
    -------
    List[Token]
        Tokens in source order; the last element is always the ``EOF`` token.

    Raises
    ------
    QasmLexicalError
        If the source contains an unrecognized character (``E101``) or an
        unterminated string literal (``E102``).
    """
    return list(iter_tokens(text))
