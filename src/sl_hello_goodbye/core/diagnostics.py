"""Human-readable rendering of grammar failures.

Example output::

    error: could not parse chat log line: unexpected 'x' while parsing timestamp, expected digit
     --> chat.txt:1:8
      |
    1 | [2024/0x/01 10:00]  Jane Doe: hi
      |        ^ unexpected 'x'
"""

from __future__ import annotations

from collections.abc import Iterable

from .grammar.base import END_OF_INPUT, ChatLogParseError, FailureReason, ParseFailure


class DiagnosticRenderError(RuntimeError):
    """The renderer produced text that is not valid UTF-8 (a defect, not a parse failure)."""


def _line_col(source: str, offset: int) -> tuple[int, int]:
    """0-based line index and column for a character offset."""
    offset = min(max(offset, 0), len(source))
    line = source.count("\n", 0, offset)
    line_start = source.rfind("\n", 0, offset) + 1
    return line, offset - line_start


def _describe_found(found: str | None) -> str:
    return END_OF_INPUT if found is None else repr(found)


def _expected_list(failure: ParseFailure) -> str:
    if not failure.expected:
        return END_OF_INPUT
    items = sorted(failure.expected)
    if len(items) == 1:
        return items[0]
    return "one of " + ", ".join(items)


def _summary(failure: ParseFailure, description: str) -> str:
    context = f" while parsing {failure.label}" if failure.label else ""
    if failure.reason is FailureReason.CUSTOM:
        return f"{description}: {failure.message}{context}"
    if failure.found is None:
        problem = "unexpected end of input"
    else:
        problem = f"unexpected {failure.found!r}"
    if failure.reason is FailureReason.UNCLOSED_DELIMITER:
        problem = f"unclosed delimiter {failure.delimiter!r}, {problem}"
    return f"{description}: {problem}{context}, expected {_expected_list(failure)}"


def _excerpt(source: str, span: tuple[int, int], marker: str, note: str, gutter: int) -> list[str]:
    lines = source.split("\n")
    line_no, col = _line_col(source, span[0])
    text = lines[line_no] if line_no < len(lines) else ""
    width = max(1, min(span[1], span[0] + len(text) - col) - span[0])
    pad = " " * gutter
    return [
        f"{str(line_no + 1).rjust(gutter)} | {text}",
        f"{pad} | {' ' * col}{marker * width} {note}",
    ]


def render_failure(
    failure: ParseFailure,
    source: str,
    description: str,
    *,
    source_name: str = "<entry>",
) -> str:
    """Render a single failure with a source excerpt."""
    line_no, col = _line_col(source, failure.span[0])
    gutter = len(str(source.count("\n") + 1))
    pad = " " * gutter

    out = [
        f"error: {_summary(failure, description)}",
        f"{pad}--> {source_name}:{line_no + 1}:{col + 1}",
        f"{pad} |",
    ]
    if failure.reason is FailureReason.CUSTOM:
        label = "invalid value"
    else:
        label = f"unexpected {_describe_found(failure.found)}"
    out.extend(_excerpt(source, failure.span, "^", label, gutter))

    if failure.reason is FailureReason.UNCLOSED_DELIMITER and failure.delimiter_span is not None:
        out.extend(
            _excerpt(
                source,
                failure.delimiter_span,
                "-",
                f"unclosed delimiter {failure.delimiter!r} opened here",
                gutter,
            )
        )
    if failure.reason is FailureReason.CUSTOM and failure.message:
        out.append(f"{pad} = note: {failure.message}")
    return "\n".join(out)


def render_failures(
    failures: ChatLogParseError | Iterable[ParseFailure],
    source: str,
    description: str,
    *,
    source_name: str = "<entry>",
) -> str:
    """Render every failure of a parse error into one UTF-8 safe report."""
    if isinstance(failures, ChatLogParseError):
        failures = failures.failures
    report = "\n\n".join(
        render_failure(f, source, description, source_name=source_name) for f in failures
    )
    try:
        report.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise DiagnosticRenderError(f"diagnostic for {source_name} is not valid UTF-8") from exc
    return report
