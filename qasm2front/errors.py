"""Error model for the OpenQASM 2 front end.

Every stage of the pipeline reports failures through the structured errors
defined here so that callers can render a one-line diagnostic with a source
location. Error codes are grouped by category (for example, lexical issues in
the ``E10x`` family, include handling in the ``E60x`` family).
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import ClassVar, Optional, Tuple

__all__ = [
    "QasmError",
    "QasmLexicalError",
    "QasmSyntaxError",
    "QasmPreprocessError",
    "QasmIncludeError",
    "QasmCyclicIncludeError",
]

_CODE_PATTERN = re.compile(r"^E\d{3}$")


@dataclass(slots=True)
class QasmError(Exception):
    """Base class for all structured OpenQASM 2 errors.

    Parameters
    ----------
    code : str
        Error identifier (for example, ``E201``).
    message : str
        Human-readable explanation of the problem.
    line : int
        One-based line index pointing at the source location.
    col : int
        One-based column index pointing at the source location.
    """

    code: str
    message: str
    line: int
    col: int

    def __post_init__(self) -> None:
        """Validate the common error attributes."""
        if not _CODE_PATTERN.match(self.code):
            raise ValueError("Error codes must follow the `E###` pattern.")
        if self.line < 1 or self.col < 1:
            raise ValueError("Source locations are one-based; line and column must be positive integers.")

    def __str__(self) -> str:
        """Return a concise diagnostic string."""
        return f"{self.code} (line {self.line}, col {self.col}): {self.message}"


class _CategorisedQasmError(QasmError):
    """Utility mixin enforcing category-specific validation."""

    CATEGORY_PREFIX: ClassVar[str]
    CATEGORY_LABEL: ClassVar[str]

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.code.startswith(self.CATEGORY_PREFIX):
            raise ValueError(f"{self.CATEGORY_LABEL} must use an error code starting with '{self.CATEGORY_PREFIX}'.")


class QasmLexicalError(_CategorisedQasmError):
    """Lexical analysis failures (``E10x`` family)."""

    CATEGORY_PREFIX: ClassVar[str] = "E10"
    CATEGORY_LABEL: ClassVar[str] = "Lexical errors"


@dataclass
class QasmSyntaxError(_CategorisedQasmError):
    """Grammar and syntax violations (``E20x`` family).

    Parameters
    ----------
    expected : Tuple[str, ...]
        Descriptions of the tokens that would have been accepted.
    found : Optional[str]
        Lexeme of the offending token, ``None`` at end of input.
    """

    CATEGORY_PREFIX: ClassVar[str] = "E20"
    CATEGORY_LABEL: ClassVar[str] = "Syntax errors"

    expected: Tuple[str, ...] = ()
    found: Optional[str] = None


class QasmPreprocessError(_CategorisedQasmError):
    """Comment stripping and include expansion failures (``E60x`` family)."""

    CATEGORY_PREFIX: ClassVar[str] = "E60"
    CATEGORY_LABEL: ClassVar[str] = "Preprocessing errors"


@dataclass
class QasmIncludeError(QasmPreprocessError):
    """An included file could not be opened or read.

    Parameters
    ----------
    path : str
        Resolved path of the file that failed to load.
    """

    path: str = ""


@dataclass
class QasmCyclicIncludeError(QasmPreprocessError):
    """An include chain re-entered a file that is still being expanded.

    Parameters
    ----------
    cycle : Tuple[str, ...]
        Chain of resolved paths forming the cycle; the first and last entries
        name the same file.
    """

    cycle: Tuple[str, ...] = ()
