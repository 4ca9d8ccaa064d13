from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, List, Optional, Tuple

from .spans import Span


class Severity(Enum):
    ERROR = auto()
    WARNING = auto()


@dataclass(frozen=True, slots=True)
class Related:
    message: str
    span: Optional[Span]


@dataclass(frozen=True, slots=True)
class Diagnostic:
    code: str
    message: str
    severity: Severity = Severity.ERROR
    span: Optional[Span] = None
    related: Tuple[Related, ...] = ()

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def with_related(self, *rels: Related) -> "Diagnostic":
        return Diagnostic(
            code=self.code,
            message=self.message,
            severity=self.severity,
            span=self.span,
            related=self.related + rels,
        )


def errors(diags: Iterable[Diagnostic]) -> List[Diagnostic]:
    return [d for d in diags if d.is_error]


def format_diagnostic(d: Diagnostic, source: Optional[str] = None) -> str:
    """Render a diagnostic on one line per note.

    When the source text is given, locations are shown as ``file:line:col``
    and the offending line is quoted with a caret under the span. `source` is
    the text of the primary span's file; notes pointing into any other file
    keep their raw ``file:start-end`` form.
    """
    origin = d.span.file if d.span is not None else None
    lines = [f"{d.severity.name.lower()}[{d.code}]{_location(d.span, source, origin)}: {d.message}"]
    if d.span is not None and source is not None:
        lines.extend(_excerpt(d.span, source))
    for r in d.related:
        lines.append(f"  note{_location(r.span, source, origin)}: {r.message}")
    return "\n".join(lines)


def _location(span: Optional[Span], source: Optional[str], origin: Optional[str]) -> str:
    if span is None:
        return ""
    if source is None or span.file != origin:
        return f" at {span}"
    line, column = span.locate(source)
    return f" at {span.file or '<unknown>'}:{line}:{column}"


def _excerpt(span: Span, source: str) -> List[str]:
    line_no, column = span.locate(source)
    source_lines = source.splitlines()
    text = source_lines[line_no - 1] if line_no <= len(source_lines) else ""
    width = max(1, min(span.end - span.start, len(text) - column + 1))
    return [f"  | {text}", f"  | {' ' * (column - 1)}{'^' * width}"]
