from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from qasm2front.ast_nodes import (
    Barrier,
    ClassicalRegisterDecl,
    Conditional,
    GateApplication,
    GateDefinition,
    IndexedRegister,
    Measure,
    OpaqueDeclaration,
    Program,
    QuantumOperation,
    QuantumRegisterDecl,
    Reference,
    Reset,
    Statement,
    WholeRegister,
)
from qasm2front.errors import QasmSyntaxError
from qasm2front.lexer import Token, TokenKind, tokenize
from qasm2front.preprocess import expand, expand_file

__all__ = ["QasmParser", "parse", "parse_program", "parse_qasm", "parse_qasm_file"]

SUPPORTED_MAJOR_VERSIONS: frozenset[str] = frozenset({"2"})

_DESCRIPTIONS: dict[str, str] = {
    "IDENTIFIER": "identifier",
    "INTEGER": "integer",
    "REAL": "real number",
    "STRING": "string",
    "OPENQASM": "'OPENQASM'",
    "QREG": "'qreg'",
    "CREG": "'creg'",
    "GATE": "'gate'",
    "OPAQUE": "'opaque'",
    "IF": "'if'",
    "MEASURE": "'measure'",
    "RESET": "'reset'",
    "BARRIER": "'barrier'",
    "INCLUDE": "'include'",
    "LBRACE": "'{'",
    "RBRACE": "'}'",
    "LPAREN": "'('",
    "RPAREN": "')'",
    "LBRACKET": "'['",
    "RBRACKET": "']'",
    "SEMICOLON": "';'",
    "COMMA": "','",
    "ARROW": "'->'",
    "EQUALS": "'=='",
}

_STATEMENT_STARTS: Tuple[str, ...] = ("QREG", "CREG", "GATE", "OPAQUE", "IF", "MEASURE", "RESET", "BARRIER", "IDENTIFIER")
_OPERATION_STARTS: Tuple[str, ...] = ("IDENTIFIER", "MEASURE", "RESET", "BARRIER")

# Tokens that may appear inside a parameter expression.
_EXPRESSION_TYPES: frozenset[str] = frozenset(
    {"IDENTIFIER", "INTEGER", "REAL", "PLUS", "MINUS", "STAR", "SLASH", "CARET", "LPAREN", "RPAREN"}
)


def _describe(token_types: Iterable[str]) -> Tuple[str, ...]:
    return tuple(_DESCRIPTIONS.get(token_type, token_type) for token_type in token_types)


def _source_text(tokens: Sequence[Token]) -> str:
    """Rebuild the source text spanned by ``tokens``.

    Whitespace between tokens is kept as written; whitespace containing a
    line break becomes a single space.
    """
    pieces: List[str] = []
    for position, token in enumerate(tokens):
        if position > 0:
            pieces.append(" " if "\n" in token.spacing else token.spacing)
        pieces.append(token.text)
    return "".join(pieces)


class QasmParser:
    """Recursive-descent parser over a token sequence.

    Parameters
    ----------
    tokens : Sequence[Token]
        Output of :func:`qasm2front.lexer.tokenize`. A trailing ``EOF`` token
        is appended when missing.

    Notes
    -----
    A parser instance holds a cursor and must not be shared between threads;
    create one per invocation.
    """

    def __init__(self, tokens: Sequence[Token]) -> None:
        self._tokens: List[Token] = list(tokens)
        if not self._tokens or self._tokens[-1].kind is not TokenKind.EOF:
            last = self._tokens[-1] if self._tokens else None
            line = last.line if last is not None else 1
            col = last.col + len(last.text) if last is not None else 1
            offset = last.end if last is not None else 0
            self._tokens.append(Token(TokenKind.EOF, "EOF", "", len(self._tokens), line, col, offset, offset))
        self._pos = 0

    # -----------------------------------------------------------------
    # Cursor helpers

    def _peek(self, offset: int = 0) -> Token:
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _at(self, *token_types: str) -> bool:
        return self._peek().type in token_types

    def _advance(self) -> Token:
        token = self._peek()
        if token.kind is not TokenKind.EOF:
            self._pos += 1
        return token

    def _error(self, token: Token, expected: Iterable[str]) -> QasmSyntaxError:
        descriptions = _describe(expected)
        wanted = " or ".join(descriptions)
        if token.kind is TokenKind.EOF:
            return QasmSyntaxError(
                "E202",
                f"Unexpected end of input; expected {wanted}.",
                token.line,
                token.col,
                expected=descriptions,
                found=None,
            )
        return QasmSyntaxError(
            "E201",
            f"Expected {wanted} but found {token.describe()}.",
            token.line,
            token.col,
            expected=descriptions,
            found=token.text,
        )

    def _expect(self, *token_types: str) -> Token:
        token = self._peek()
        if token.type not in token_types:
            raise self._error(token, token_types)
        return self._advance()

    def _accept(self, token_type: str) -> Optional[Token]:
        if self._at(token_type):
            return self._advance()
        return None

    # -----------------------------------------------------------------
    # Program

    def parse_program(self) -> Program:
        """Parse the whole token sequence."""
        version = self._parse_header()
        statements: List[Statement] = []
        while not self._at("EOF"):
            statements.append(self._parse_statement())
        return Program(version=version, statements=tuple(statements))

    def _parse_header(self) -> Optional[str]:
        if self._accept("OPENQASM") is None:
            return None
        number = self._expect("REAL", "INTEGER")
        self._expect("SEMICOLON")
        major = number.text.split(".", 1)[0].lstrip("0") or "0"
        if major not in SUPPORTED_MAJOR_VERSIONS:
            raise QasmSyntaxError(
                "E204",
                f"Unsupported OpenQASM version {number.text}; only 2.x is supported.",
                number.line,
                number.col,
                expected=("2.x",),
                found=number.text,
            )
        return number.text

    def _parse_statement(self) -> Statement:
        token = self._peek()
        if token.type in ("QREG", "CREG"):
            return self._parse_register_decl()
        if token.type == "GATE":
            return self._parse_gate_definition()
        if token.type == "OPAQUE":
            return self._parse_opaque()
        if token.type == "IF":
            return self._parse_conditional()
        if token.type in _OPERATION_STARTS:
            return self._parse_operation()
        if token.type == "INCLUDE":
            raise QasmSyntaxError(
                "E201",
                "Include directives must be expanded before parsing.",
                token.line,
                token.col,
                expected=_describe(_STATEMENT_STARTS),
                found=token.text,
            )
        raise self._error(token, _STATEMENT_STARTS)

    def _parse_operation(self) -> QuantumOperation:
        token = self._peek()
        if token.type == "MEASURE":
            return self._parse_measure()
        if token.type == "RESET":
            return self._parse_reset()
        if token.type == "BARRIER":
            return self._parse_barrier()
        if token.type == "IDENTIFIER":
            return self._parse_gate_application()
        raise self._error(token, _OPERATION_STARTS)

    # -----------------------------------------------------------------
    # Declarations

    def _parse_register_decl(self) -> Union[QuantumRegisterDecl, ClassicalRegisterDecl]:
        keyword = self._advance()
        name = self._expect("IDENTIFIER")
        self._expect("LBRACKET")
        size = self._expect("INTEGER")
        self._expect("RBRACKET")
        self._expect("SEMICOLON")
        node_type = QuantumRegisterDecl if keyword.type == "QREG" else ClassicalRegisterDecl
        return node_type(name=name.text, size=int(size.text), line=keyword.line, col=keyword.col)

    def _parse_gate_header(self) -> Tuple[Token, Tuple[str, ...], Tuple[str, ...]]:
        name = self._expect("IDENTIFIER")
        params: Tuple[str, ...] = ()
        if self._accept("LPAREN") is not None:
            if self._accept("RPAREN") is None:
                params = self._parse_identifier_list()
                self._expect("RPAREN")
        qargs = self._parse_identifier_list()
        return name, params, qargs

    def _parse_gate_definition(self) -> GateDefinition:
        keyword = self._advance()
        name, params, qargs = self._parse_gate_header()
        self._expect("LBRACE")
        body: List[GateApplication] = []
        while self._at("IDENTIFIER"):
            body.append(self._parse_gate_application())
        self._expect("RBRACE", "IDENTIFIER")
        return GateDefinition(
            name=name.text,
            params=params,
            qargs=qargs,
            body=tuple(body),
            line=keyword.line,
            col=keyword.col,
        )

    def _parse_opaque(self) -> OpaqueDeclaration:
        keyword = self._advance()
        name, params, qargs = self._parse_gate_header()
        self._expect("SEMICOLON")
        return OpaqueDeclaration(name=name.text, params=params, qargs=qargs, line=keyword.line, col=keyword.col)

    def _parse_identifier_list(self) -> Tuple[str, ...]:
        names = [self._expect("IDENTIFIER").text]
        while self._accept("COMMA") is not None:
            names.append(self._expect("IDENTIFIER").text)
        return tuple(names)

    # -----------------------------------------------------------------
    # Statements

    def _parse_gate_application(self) -> GateApplication:
        name = self._expect("IDENTIFIER")
        params: Tuple[str, ...] = ()
        if self._accept("LPAREN") is not None:
            if self._accept("RPAREN") is None:
                params = self._parse_expression_list()
        qargs = self._parse_reference_list()
        self._expect("SEMICOLON")
        return GateApplication(name=name.text, qargs=qargs, params=params, line=name.line, col=name.col)

    def _parse_expression_list(self) -> Tuple[str, ...]:
        """Capture comma-separated expressions up to the closing parenthesis."""
        opening = self._tokens[self._pos - 1]
        expressions: List[str] = []
        while True:
            expressions.append(self._parse_expression(opening))
            closing = self._expect("COMMA", "RPAREN")
            if closing.type == "RPAREN":
                return tuple(expressions)

    def _parse_expression(self, opening: Token) -> str:
        captured: List[Token] = []
        depth = 0
        while True:
            token = self._peek()
            if depth == 0 and token.type in ("COMMA", "RPAREN"):
                break
            if token.type not in _EXPRESSION_TYPES and not (depth > 0 and token.type == "COMMA"):
                if depth > 0:
                    raise QasmSyntaxError(
                        "E203",
                        "Unbalanced parenthesis in parameter expression.",
                        opening.line,
                        opening.col,
                        expected=("')'",),
                        found=token.text or None,
                    )
                raise self._error(token, ("expression", "COMMA", "RPAREN"))
            if token.type == "LPAREN":
                depth += 1
            elif token.type == "RPAREN":
                depth -= 1
            captured.append(self._advance())
        if not captured:
            token = self._peek()
            raise QasmSyntaxError(
                "E205",
                "Empty parameter expression.",
                token.line,
                token.col,
                expected=("expression",),
                found=token.text or None,
            )
        return _source_text(captured)

    def _parse_reference(self) -> Reference:
        name = self._expect("IDENTIFIER")
        if self._accept("LBRACKET") is None:
            return WholeRegister(name=name.text, line=name.line, col=name.col)
        index = self._expect("INTEGER")
        self._expect("RBRACKET")
        return IndexedRegister(name=name.text, index=int(index.text), line=name.line, col=name.col)

    def _parse_reference_list(self) -> Tuple[Reference, ...]:
        references = [self._parse_reference()]
        while self._accept("COMMA") is not None:
            references.append(self._parse_reference())
        return tuple(references)

    def _parse_measure(self) -> Measure:
        keyword = self._advance()
        source = self._parse_reference()
        self._expect("ARROW")
        dest = self._parse_reference()
        self._expect("SEMICOLON")
        return Measure(source=source, dest=dest, line=keyword.line, col=keyword.col)

    def _parse_reset(self) -> Reset:
        keyword = self._advance()
        target = self._parse_reference()
        self._expect("SEMICOLON")
        return Reset(target=target, line=keyword.line, col=keyword.col)

    def _parse_barrier(self) -> Barrier:
        keyword = self._advance()
        targets = self._parse_reference_list()
        self._expect("SEMICOLON")
        return Barrier(targets=targets, line=keyword.line, col=keyword.col)

    def _parse_conditional(self) -> Conditional:
        keyword = self._advance()
        self._expect("LPAREN")
        register = self._expect("IDENTIFIER")
        self._expect("EQUALS")
        value = self._expect("INTEGER")
        self._expect("RPAREN")
        operation = self._parse_operation()
        return Conditional(
            register=register.text,
            value=int(value.text),
            operation=operation,
            line=keyword.line,
            col=keyword.col,
        )


def parse_program(tokens: Sequence[Token]) -> Program:
    """Parse a token sequence into a :class:`Program`.

    Parameters
    ----------
    tokens : Sequence[Token]
        Tokens produced by :func:`qasm2front.lexer.tokenize`.

    Returns
    -------
    Program
        Header version (if any) and top-level statements.

    Raises
    ------
    QasmSyntaxError
        On the first malformed construct.
    """
    return QasmParser(tokens).parse_program()


def parse(tokens: Sequence[Token]) -> List[Statement]:
    """Parse a token sequence into top-level statements.

    Parameters
    ----------
    tokens : Sequence[Token]
        Tokens produced by :func:`qasm2front.lexer.tokenize`.

    Returns
    -------
    List[Statement]
        Statements in program order. The version header is not included.

    Raises
    ------
    QasmSyntaxError
        On the first malformed construct; no partial result is returned.
    """
    return list(parse_program(tokens).statements)


def parse_qasm(text: str, base_dir: Union[str, Path, None] = None) -> Program:
    """Run the full front end on OpenQASM 2 source.

    Parameters
    ----------
    text : str
        OpenQASM 2 source code.
    base_dir : str | Path | None
        Directory used to resolve ``include`` directives. Defaults to the
        current working directory.

    Returns
    -------
    Program
        Structured representation of the program.
    """
    expanded = expand(text, base_dir if base_dir is not None else Path.cwd())
    return parse_program(tokenize(expanded))


def parse_qasm_file(file_path: Union[str, Path]) -> Program:
    """Parse a file containing OpenQASM 2 source.

    Includes are resolved relative to the file's directory.

    Parameters
    ----------
    file_path : str | Path
        Path to the file that should be parsed.

    Returns
    -------
    Program
        Structured representation identical to :func:`parse_qasm`.
    """
    return parse_program(tokenize(expand_file(file_path)))
