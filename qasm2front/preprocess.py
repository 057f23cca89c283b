"""Comment stripping and include expansion for OpenQASM 2 sources."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Union

from qasm2front.errors import QasmCyclicIncludeError, QasmIncludeError

__all__ = ["expand", "expand_file", "strip_comments"]

_LOG = logging.getLogger(__name__)

# String literals are matched first so that "//" inside quotes survives.
_COMMENT_PATTERN = re.compile(r'(?P<string>"[^"\n]*")|(?P<comment>//[^\n]*)')
_INCLUDE_PATTERN = re.compile(r'(?P<include>\binclude\s*"(?P<path>[^"\n]*)"\s*;)|(?P<string>"[^"\n]*")')


def strip_comments(text: str) -> str:
    """Remove ``//`` line comments that are not inside string literals.

    The newline ending each comment is kept, so line numbers are unchanged.
    """

    def _replace(match: re.Match[str]) -> str:
        return "" if match.group("comment") is not None else match.group(0)

    return _COMMENT_PATTERN.sub(_replace, text)


def _segments(text: str) -> Iterator[Union[str, re.Match[str]]]:
    position = 0
    for match in _INCLUDE_PATTERN.finditer(text):
        if match.group("include") is None:
            continue
        yield text[position : match.start()]
        yield match
        position = match.end()
    yield text[position:]


def _location(text: str, offset: int) -> tuple[int, int]:
    line = text.count("\n", 0, offset) + 1
    col = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, col


@dataclass
class _Frame:
    """A file whose expansion is in progress."""

    path: Optional[Path]
    text: str
    output: List[str] = field(default_factory=list)
    segments: Iterator[Union[str, re.Match[str]]] = field(init=False)

    def __post_init__(self) -> None:
        self.segments = _segments(self.text)


def expand(source: str, base_dir: Union[str, Path], *, origin: Union[str, Path, None] = None) -> str:
    """Strip comments and inline every ``include`` directive.

    Parameters
    ----------
    source : str
        OpenQASM 2 source text.
    base_dir : str | Path
        Directory against which include paths (including nested ones) are
        resolved.
    origin : str | Path | None
        File that ``source`` was read from, if any. It takes part in cycle
        detection so that a file including itself is rejected immediately.

    Returns
    -------
    str
        Source with comments removed and includes replaced by the expanded
        contents of the referenced files.

    Raises
    ------
    QasmIncludeError
        If an included file cannot be opened or decoded.
    QasmCyclicIncludeError
        If an include chain re-enters a file that is still being expanded.
    """
    base = Path(base_dir)
    root = Path(origin).resolve() if origin is not None else None
    stack: List[_Frame] = [_Frame(root, strip_comments(source))]

    while True:
        frame = stack[-1]
        segment = next(frame.segments, None)
        if segment is None:
            stack.pop()
            expanded = "".join(frame.output)
            if not stack:
                return expanded
            stack[-1].output.append(expanded)
            continue
        if isinstance(segment, str):
            frame.output.append(segment)
            continue

        requested = segment.group("path")
        line, col = _location(frame.text, segment.start())
        including = str(frame.path) if frame.path is not None else "<source>"
        target = (base / requested).resolve()
        chain = [item.path for item in stack if item.path is not None]
        if target in chain:
            cycle = tuple(str(path) for path in chain[chain.index(target) :]) + (str(target),)
            raise QasmCyclicIncludeError(
                "E602",
                f"Cyclic include of '{requested}' in {including}: {' -> '.join(cycle)}.",
                line,
                col,
                cycle=cycle,
            )
        try:
            text = target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise QasmIncludeError(
                "E601",
                f"Cannot read include file '{target}' (included from {including}): {exc}",
                line,
                col,
                path=str(target),
            ) from exc
        _LOG.debug("Expanding include '%s' from %s", requested, target)
        stack.append(_Frame(target, strip_comments(text)))


def expand_file(file_path: Union[str, Path]) -> str:
    """Read a file and expand it relative to its own directory.

    Parameters
    ----------
    file_path : str | Path
        Path to the OpenQASM 2 source file.

    Returns
    -------
    str
        Expanded source, as returned by :func:`expand`.
    """
    source_path = Path(file_path)
    text = source_path.read_text(encoding="utf-8")
    return expand(text, source_path.parent, origin=source_path)
