"""OpenQASM 2 front end: preprocessing, lexing and parsing into an AST."""

from .errors import (
    QasmCyclicIncludeError,
    QasmError,
    QasmIncludeError,
    QasmLexicalError,
    QasmPreprocessError,
    QasmSyntaxError,
)
from .lexer import Token, TokenKind, tokenize
from .parser import parse, parse_program, parse_qasm, parse_qasm_file
from .preprocess import expand, expand_file, strip_comments

__all__ = [
    "QasmError",
    "QasmLexicalError",
    "QasmSyntaxError",
    "QasmPreprocessError",
    "QasmIncludeError",
    "QasmCyclicIncludeError",
    "Token",
    "TokenKind",
    "tokenize",
    "parse",
    "parse_program",
    "parse_qasm",
    "parse_qasm_file",
    "expand",
    "expand_file",
    "strip_comments",
]
