from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Optional, Tuple, Union

__all__ = [
    "WholeRegister",
    "IndexedRegister",
    "Reference",
    "QuantumRegisterDecl",
    "ClassicalRegisterDecl",
    "GateApplication",
    "GateDefinition",
    "OpaqueDeclaration",
    "Measure",
    "Reset",
    "Barrier",
    "Conditional",
    "QuantumOperation",
    "Statement",
    "Program",
    "to_dict",
]


def _location() -> Any:
    # Source positions are informative only; two nodes that differ only in
    # where they were written compare equal.
    return field(default=1, compare=False, repr=False)


@dataclass(frozen=True)
class WholeRegister:
    """Reference to an entire quantum or classical register.

    Parameters
    ----------
    name : str
        Name of the register.
    line : int
        Source line number where this reference appears.
    col : int
        Source column number where this reference appears.
    """

    name: str
    line: int = _location()
    col: int = _location()


@dataclass(frozen=True)
class IndexedRegister:
    """Reference to a single qubit or bit of a register.

    Parameters
    ----------
    name : str
        Name of the register.
    index : int
        Non-negative index within the register.
    line : int
        Source line number where this reference appears.
    col : int
        Source column number where this reference appears.
    """

    name: str
    index: int
    line: int = _location()
    col: int = _location()


Reference = Union[WholeRegister, IndexedRegister]


@dataclass(frozen=True)
class QuantumRegisterDecl:
    """AST node representing ``qreg name[size];``."""

    name: str
    size: int
    line: int = _location()
    col: int = _location()


@dataclass(frozen=True)
class ClassicalRegisterDecl:
    """AST node representing ``creg name[size];``."""

    name: str
    size: int
    line: int = _location()
    col: int = _location()


@dataclass(frozen=True)
class GateApplication:
    """AST node representing a gate invocation.

    Parameters
    ----------
    name : str
        Name of the gate being invoked, builtins ``U`` and ``CX`` included.
    qargs : Tuple[Reference, ...]
        Quantum arguments passed to the gate.
    params : Tuple[str, ...]
        Parameter expressions exactly as written in the source. They are not
        evaluated.
    """

    name: str
    qargs: Tuple[Reference, ...] = ()
    params: Tuple[str, ...] = ()
    line: int = _location()
    col: int = _location()


@dataclass(frozen=True)
class GateDefinition:
    """AST node representing a user-defined gate declaration.

    Parameters
    ----------
    name : str
        Name of the user-defined gate.
    params : Tuple[str, ...]
        Formal parameter names.
    qargs : Tuple[str, ...]
        Formal quantum argument names.
    body : Tuple[GateApplication, ...]
        Gate applications forming the body of the definition.
    """

    name: str
    params: Tuple[str, ...] = ()
    qargs: Tuple[str, ...] = ()
    body: Tuple[GateApplication, ...] = ()
    line: int = _location()
    col: int = _location()


@dataclass(frozen=True)
class OpaqueDeclaration:
    """AST node representing an ``opaque`` gate declaration (no body)."""

    name: str
    params: Tuple[str, ...] = ()
    qargs: Tuple[str, ...] = ()
    line: int = _location()
    col: int = _location()


@dataclass(frozen=True)
class Measure:
    """AST node representing ``measure source -> dest;``.

    Parameters
    ----------
    source : Reference
        Quantum operand being measured.
    dest : Reference
        Classical operand receiving the measurement result.
    """

    source: Reference
    dest: Reference
    line: int = _location()
    col: int = _location()


@dataclass(frozen=True)
class Reset:
    """AST node representing ``reset target;``."""

    target: Reference
    line: int = _location()
    col: int = _location()


@dataclass(frozen=True)
class Barrier:
    """AST node representing ``barrier target, ...;``."""

    targets: Tuple[Reference, ...] = ()
    line: int = _location()
    col: int = _location()


QuantumOperation = Union[GateApplication, Measure, Reset, Barrier]


@dataclass(frozen=True)
class Conditional:
    """AST node representing ``if (register == value) operation``.

    Parameters
    ----------
    register : str
        Name of the classical register being compared.
    value : int
        Integer the register is compared against.
    operation : QuantumOperation
        The single statement applied when the comparison holds.
    """

    register: str
    value: int
    operation: QuantumOperation
    line: int = _location()
    col: int = _location()


Statement = Union[
    QuantumRegisterDecl,
    ClassicalRegisterDecl,
    GateDefinition,
    OpaqueDeclaration,
    GateApplication,
    Measure,
    Reset,
    Barrier,
    Conditional,
]


@dataclass(frozen=True)
class Program:
    """A parsed OpenQASM 2 program.

    Parameters
    ----------
    version : Optional[str]
        Version string from the ``OPENQASM`` header, ``None`` if absent.
    statements : Tuple[Statement, ...]
        Top-level statements in program order.
    """

    version: Optional[str] = None
    statements: Tuple[Statement, ...] = ()


_KINDS: dict[type, str] = {
    WholeRegister: "register",
    IndexedRegister: "indexed",
    QuantumRegisterDecl: "qreg",
    ClassicalRegisterDecl: "creg",
    GateApplication: "gate_call",
    GateDefinition: "gate_def",
    OpaqueDeclaration: "opaque",
    Measure: "measure",
    Reset: "reset",
    Barrier: "barrier",
    Conditional: "if",
    Program: "program",
}


def to_dict(node: Any) -> Any:
    """Create a JSON-serializable representation of an AST node.

    Parameters
    ----------
    node : Any
        AST node, :class:`Program`, or a tuple of either.

    Returns
    -------
    Any
        Dictionaries tagged with a ``"kind"`` key, lists, and plain scalars.
    """
    if isinstance(node, tuple):
        return [to_dict(item) for item in node]
    if not is_dataclass(node) or isinstance(node, type):
        return node
    kind = _KINDS.get(type(node))
    if kind is None:
        raise TypeError(f"Unsupported node type: {type(node)!r}")
    data: dict[str, Any] = {"kind": kind}
    for item in fields(node):
        data[item.name] = to_dict(getattr(node, item.name))
    return data
