"""Test suite for the OpenQASM 2.0 recursive-descent parser.

This module covers qasm2front.parser:
- Header parsing and version checks
- Register declarations (qreg, creg)
- Gate definitions and opaque declarations
- Gate applications with unevaluated parameter text
- Measurements, resets and barriers
- Conditionals
- Position tracking (line and column numbers)
- Fail-fast syntax errors
"""

from __future__ import annotations

import pytest

from qasm2front.ast_nodes import (
    Barrier,
    ClassicalRegisterDecl,
    Conditional,
    GateApplication,
    GateDefinition,
    IndexedRegister,
    Measure,
    OpaqueDeclaration,
    QuantumRegisterDecl,
    Reset,
    WholeRegister,
)
from qasm2front.errors import QasmSyntaxError
from qasm2front.lexer import tokenize
from qasm2front.parser import QasmParser, parse, parse_program


def _parse(source: str) -> list:
    return parse(tokenize(source))


# =============================================================================
# Header Tests
# =============================================================================


class TestHeader:
    """Tests for OPENQASM version header parsing."""

    def test_header_is_not_a_statement(self) -> None:
        """The header is recognised but yields no statement."""
        assert _parse("OPENQASM 2.0;") == []

    def test_header_version_is_surfaced_on_program(self) -> None:
        """parse_program keeps the version text."""
        program = parse_program(tokenize("OPENQASM 2.0;\nqreg q[1];"))
        assert program.version == "2.0"
        assert program.statements == (QuantumRegisterDecl("q", 1),)

    def test_header_is_optional(self) -> None:
        """A program without a header parses and has no version."""
        program = parse_program(tokenize("qreg q[1];"))
        assert program.version is None
        assert len(program.statements) == 1

    def test_integer_version(self) -> None:
        """``OPENQASM 2;`` is accepted."""
        assert parse_program(tokenize("OPENQASM 2;")).version == "2"

    def test_unsupported_version(self) -> None:
        """Major versions other than 2 are rejected."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("OPENQASM 3.0;")
        assert exc_info.value.code == "E204"
        assert exc_info.value.found == "3.0"

    def test_header_requires_number(self) -> None:
        """The version number is mandatory."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("OPENQASM;")
        assert exc_info.value.code == "E201"
        assert exc_info.value.found == ";"


# =============================================================================
# Register Declaration Tests
# =============================================================================


class TestRegisterDeclarations:
    """Tests for quantum and classical register declarations."""

    def test_qreg(self) -> None:
        """Declare a quantum register."""
        assert _parse("qreg q[3];") == [QuantumRegisterDecl(name="q", size=3)]

    def test_creg(self) -> None:
        """Declare a classical register."""
        assert _parse("creg c[5];") == [ClassicalRegisterDecl(name="c", size=5)]

    def test_quantum_and_classical_are_distinct(self) -> None:
        """Same shape, different node types."""
        assert QuantumRegisterDecl("r", 1) != ClassicalRegisterDecl("r", 1)

    def test_zero_size_register_accepted(self) -> None:
        """Zero-size registers are syntactically valid."""
        assert _parse("qreg empty[0];") == [QuantumRegisterDecl("empty", 0)]

    def test_duplicate_names_not_checked(self) -> None:
        """No uniqueness check is performed."""
        assert len(_parse("qreg q[1]; qreg q[2];")) == 2

    def test_real_size_rejected(self) -> None:
        """The size must be an integer literal."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("qreg q[2.0];")
        assert exc_info.value.expected == ("integer",)


# =============================================================================
# Gate Definition Tests
# =============================================================================


class TestGateDefinitions:
    """Tests for ``gate`` and ``opaque`` declarations."""

    def test_gate_without_params(self) -> None:
        """Parse a gate with qubit arguments only."""
        (gate,) = _parse("gate h a { u2(0,pi) a; }")
        assert gate == GateDefinition(
            name="h",
            params=(),
            qargs=("a",),
            body=(GateApplication("u2", (WholeRegister("a"),), ("0", "pi")),),
        )

    def test_gate_with_params(self) -> None:
        """Parse formal parameters and several qubit arguments."""
        (gate,) = _parse("gate cu1(lambda) a,b { u1(lambda/2) a; cx a,b; }")
        assert gate.params == ("lambda",)
        assert gate.qargs == ("a", "b")
        assert [call.name for call in gate.body] == ["u1", "cx"]
        assert gate.body[0].params == ("lambda/2",)

    def test_gate_with_empty_parens_and_body(self) -> None:
        """Empty parameter list and empty body are allowed."""
        (gate,) = _parse("gate nop() q { }")
        assert gate == GateDefinition("nop", (), ("q",), ())

    def test_gate_body_spans_lines(self) -> None:
        """Whitespace inside the body is insignificant."""
        source = "gate ccx a,b,c\n{\n  h c;\n  cx b,c;\n}\n"
        (gate,) = _parse(source)
        assert len(gate.body) == 2

    def test_gate_body_references_not_checked(self) -> None:
        """Body arguments outside the formal list are still accepted."""
        (gate,) = _parse("gate g a { x other[0]; }")
        assert gate.body[0].qargs == (IndexedRegister("other", 0),)

    def test_gate_requires_qubit_arguments(self) -> None:
        """The qubit argument list is mandatory."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("gate g { }")
        assert exc_info.value.expected == ("identifier",)
        assert exc_info.value.found == "{"

    def test_gate_body_rejects_measure(self) -> None:
        """Only gate applications may appear in a body."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("gate g a { measure a -> c; }")
        assert exc_info.value.found == "measure"

    def test_opaque(self) -> None:
        """Parse an opaque declaration."""
        assert _parse("opaque magic(theta, phi) a, b;") == [
            OpaqueDeclaration("magic", ("theta", "phi"), ("a", "b"))
        ]

    def test_opaque_without_params(self) -> None:
        """Parameters are optional for opaque gates."""
        assert _parse("opaque black q;") == [OpaqueDeclaration("black", (), ("q",))]

    def test_opaque_rejects_body(self) -> None:
        """An opaque declaration ends with a semicolon."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("opaque g a { }")
        assert exc_info.value.found == "{"
        assert exc_info.value.expected == ("';'",)


# =============================================================================
# Gate Application Tests
# =============================================================================


class TestGateApplications:
    """Tests for gate invocations."""

    def test_builtin_cx(self) -> None:
        """CX is an ordinary gate application."""
        assert _parse("CX q[0], q[1];") == [
            GateApplication("CX", (IndexedRegister("q", 0), IndexedRegister("q", 1)))
        ]

    def test_builtin_u(self) -> None:
        """U takes three parameters."""
        (call,) = _parse("U(0.3, 0.2, 0.1) q[0];")
        assert call.params == ("0.3", "0.2", "0.1")

    def test_whole_register_broadcast(self) -> None:
        """Bare names refer to whole registers."""
        (call,) = _parse("h q;")
        assert call.qargs == (WholeRegister("q"),)

    def test_empty_parentheses(self) -> None:
        """``g() q;`` has no parameters."""
        assert _parse("g() q;") == [GateApplication("g", (WholeRegister("q"),), ())]

    def test_expression_text_preserved_verbatim(self) -> None:
        """Internal spacing is kept exactly as written."""
        (call,) = _parse("rz(pi / 2) q;")
        assert call.params == ("pi / 2",)

    def test_expression_text_trimmed(self) -> None:
        """Surrounding whitespace is not part of the expression."""
        (call,) = _parse("u2(  0 ,   pi  ) q;")
        assert call.params == ("0", "pi")

    def test_nested_parentheses_do_not_split(self) -> None:
        """Commas and parentheses inside an expression are balanced."""
        (call,) = _parse("u3(-theta/2, 0, -(phi+lambda)/2) t;")
        assert call.params == ("-theta/2", "0", "-(phi+lambda)/2")

    def test_commas_inside_nested_parentheses_do_not_split(self) -> None:
        """A comma within inner parentheses belongs to the expression."""
        (call,) = _parse("u1(f(a,b)) q;")
        assert call.params == ("f(a,b)",)

    def test_mixed_nested_commas_and_parameters(self) -> None:
        """Only top-level commas separate parameters."""
        (call,) = _parse("u3(g(x, (y,z)), pi, h(1,2)/2) q;")
        assert call.params == ("g(x, (y,z))", "pi", "h(1,2)/2")

    def test_tab_inside_expression_preserved(self) -> None:
        """Tabs between expression tokens are kept literally."""
        (call,) = _parse("rz(pi\t/2) q;")
        assert call.params == ("pi\t/2",)

    def test_function_calls_in_expression(self) -> None:
        """Functions are captured, not evaluated."""
        (call,) = _parse("rx(sin(pi/4)^2) q[0];")
        assert call.params == ("sin(pi/4)^2",)

    def test_expression_across_lines(self) -> None:
        """A line break inside an expression becomes a single space."""
        (call,) = _parse("rz(pi\n/2) q;")
        assert call.params == ("pi /2",)

    def test_unbalanced_expression(self) -> None:
        """A missing closing parenthesis is reported at the opening one."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("rz((pi/2 q;")
        err = exc_info.value
        assert err.code == "E203"
        assert (err.line, err.col) == (1, 3)

    def test_empty_expression(self) -> None:
        """A dangling comma leaves an empty expression."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("u2(0,) q;")
        assert exc_info.value.code == "E205"

    def test_gate_application_requires_target(self) -> None:
        """At least one qubit argument is needed."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("h;")
        assert exc_info.value.found == ";"

    def test_undeclared_gate_not_checked(self) -> None:
        """Unknown gate names are accepted."""
        assert _parse("frobnicate q[7];")[0].name == "frobnicate"


# =============================================================================
# Measure / Reset / Barrier Tests
# =============================================================================


class TestQuantumOperations:
    """Tests for measure, reset and barrier."""

    def test_measure_indexed(self) -> None:
        """Measure a single qubit into a single bit."""
        assert _parse("measure q[1] -> c[1];") == [Measure(IndexedRegister("q", 1), IndexedRegister("c", 1))]

    def test_measure_mixed_forms(self) -> None:
        """Each side is independently whole or indexed."""
        (node,) = _parse("measure q -> c[0];")
        assert node.source == WholeRegister("q")
        assert node.dest == IndexedRegister("c", 0)

    def test_measure_requires_arrow(self) -> None:
        """The arrow separates source and destination."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("measure q c;")
        assert exc_info.value.expected == ("'->'",)

    def test_reset(self) -> None:
        """Reset a qubit."""
        assert _parse("reset q[0];") == [Reset(IndexedRegister("q", 0))]

    def test_barrier(self) -> None:
        """A barrier takes a list of references."""
        assert _parse("barrier q, r[1];") == [Barrier((WholeRegister("q"), IndexedRegister("r", 1)))]


# =============================================================================
# Conditional Tests
# =============================================================================


class TestConditionals:
    """Tests for ``if`` statements."""

    def test_conditional_gate(self) -> None:
        """Wrap a gate application."""
        (node,) = _parse("if(c==1) x q[2];")
        assert node == Conditional("c", 1, GateApplication("x", (IndexedRegister("q", 2),)))

    @pytest.mark.parametrize(
        "source, expected_type",
        [
            ("if (c == 0) measure q -> c;", Measure),
            ("if (c == 0) reset q;", Reset),
            ("if (c == 0) barrier q;", Barrier),
        ],
    )
    def test_conditional_operations(self, source: str, expected_type: type) -> None:
        """Measure, reset and barrier may be conditioned."""
        (node,) = _parse(source)
        assert isinstance(node.operation, expected_type)

    def test_whitespace_insensitive(self) -> None:
        """Spacing around the condition does not matter; expression text is literal."""
        (compact,) = _parse("if(c==1) rz(pi/2) q[1];")
        (spaced,) = _parse("if (c == 1) rz(pi / 2) q[1];")
        assert compact.register == spaced.register == "c"
        assert compact.value == spaced.value == 1
        assert compact.operation.name == spaced.operation.name == "rz"
        assert compact.operation.qargs == spaced.operation.qargs == (IndexedRegister("q", 1),)
        assert compact.operation.params == ("pi/2",)
        assert spaced.operation.params == ("pi / 2",)

    def test_identical_sources_give_equal_nodes(self) -> None:
        """Layout differences that leave the expression alone give equal nodes."""
        (compact,) = _parse("if(c==1) rz(pi/2) q[1];")
        (spaced,) = _parse("if ( c == 1 )\n    rz(pi/2) q[1];")
        assert compact == spaced

    def test_nested_conditional_rejected(self) -> None:
        """The conditioned statement cannot be another conditional."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("if(c==1) if(c==0) x q;")
        assert exc_info.value.found == "if"

    def test_declaration_in_conditional_rejected(self) -> None:
        """Declarations cannot be conditioned."""
        with pytest.raises(QasmSyntaxError):
            _parse("if(c==1) qreg q[1];")

    def test_single_equals_rejected(self) -> None:
        """Comparison uses ``==``."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("if(c=1) x q;")
        assert exc_info.value.expected == ("'=='",)


# =============================================================================
# Position Tests
# =============================================================================


class TestPositions:
    """Tests for line/column metadata on nodes."""

    def test_statement_positions(self) -> None:
        """Nodes record where they start."""
        statements = _parse("OPENQASM 2.0;\nqreg q[2];\n  h q[0];")
        assert (statements[0].line, statements[0].col) == (2, 1)
        assert (statements[1].line, statements[1].col) == (3, 3)

    def test_reference_positions(self) -> None:
        """References record the register name position."""
        (call,) = _parse("CX q[0], r[1];")
        assert call.qargs[1].col == 10


# =============================================================================
# Error Tests
# =============================================================================


class TestErrors:
    """Tests for fail-fast syntax errors."""

    def test_missing_semicolon_reports_following_token(self) -> None:
        """The error points at the token after the malformed statement."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("OPENQASM 2.0;\nqreg q[2]\ncreg c[1];")
        err = exc_info.value
        assert err.code == "E201"
        assert err.found == "creg"
        assert err.expected == ("';'",)
        assert (err.line, err.col) == (3, 1)

    def test_unexpected_end_of_input(self) -> None:
        """Running out of tokens is reported distinctly."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("measure q[0] -> c[0]")
        assert exc_info.value.code == "E202"
        assert exc_info.value.found is None

    def test_unbalanced_brace(self) -> None:
        """A gate body without a closing brace fails at end of input."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("gate g a { x a;")
        assert exc_info.value.code == "E202"

    def test_stray_token(self) -> None:
        """A statement cannot start with a symbol."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("; h q;")
        assert exc_info.value.found == ";"
        assert "identifier" in exc_info.value.expected

    def test_include_must_be_preprocessed(self) -> None:
        """An include reaching the parser is a syntax error."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse('include "qelib1.inc";')
        assert exc_info.value.found == "include"

    def test_diagnostic_format(self) -> None:
        """str() renders a one-line diagnostic with location."""
        with pytest.raises(QasmSyntaxError) as exc_info:
            _parse("qreg q[2]")
        assert str(exc_info.value) == "E202 (line 1, col 10): Unexpected end of input; expected ';'."

    def test_tokens_without_eof_marker(self) -> None:
        """A token list lacking EOF is still parsed to completion."""
        tokens = tokenize("qreg q[1];")[:-1]
        assert QasmParser(tokens).parse_program().statements == (QuantumRegisterDecl("q", 1),)
