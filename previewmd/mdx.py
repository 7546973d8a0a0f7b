"""MDX preprocessing: show JSX and ES module lines as code instead of prose."""

from __future__ import annotations

import re

_JSX_START_RE = re.compile(r"^<[A-Z]")
_JSX_TAG_RE = re.compile(r"^<([A-Z][a-zA-Z0-9]*)")
_JSX_CLOSE_RE = re.compile(r"</[A-Z][a-zA-Z0-9]*>")

FENCE_OPEN = "```jsx"
FENCE_CLOSE = "```"


def _is_module_line(stripped: str) -> bool:
    return stripped.startswith("import ") or stripped.startswith("export ")


def _brace_delta(line: str) -> int:
    return line.count("{") - line.count("}")


def _fenced(lines: list[str]) -> list[str]:
    return [FENCE_OPEN, *lines, FENCE_CLOSE]


def _closes_on_same_line(stripped: str) -> bool:
    if stripped.endswith("/>"):
        return True
    match = _JSX_TAG_RE.match(stripped)
    return bool(match and stripped.endswith(">") and f"</{match.group(1)}>" in stripped)


def preprocess_mdx(source: str) -> str:
    """Wrap import/export runs and capitalized JSX blocks in ``jsx`` fences.

    Blank lines between consecutive import/export lines are folded into
    the same fence. A JSX block ends at a line with a closing component tag
    once its ``{``/``}`` nesting is balanced; an unterminated block is
    fenced at end of input.
    """
    lines = source.split("\n")
    out: list[str] = []
    jsx_buffer: list[str] = []
    brace_depth = 0
    index = 0

    while index < len(lines):
        line = lines[index]
        stripped = line.strip()
        index += 1

        if jsx_buffer:
            jsx_buffer.append(line)
            brace_depth += _brace_delta(line)
            if _JSX_CLOSE_RE.search(stripped) and brace_depth <= 0:
                out.extend(_fenced(jsx_buffer))
                jsx_buffer = []
            continue

        if _is_module_line(stripped):
            module_lines = [line]
            while index < len(lines):
                following = lines[index].strip()
                if not (_is_module_line(following) or following == ""):
                    break
                if following:
                    module_lines.append(lines[index])
                index += 1
            out.extend(_fenced(module_lines))
            out.append("")
            continue

        if _JSX_START_RE.match(stripped):
            if _closes_on_same_line(stripped):
                out.extend(_fenced([line]))
            else:
                jsx_buffer = [line]
                brace_depth = _brace_delta(line)
            continue

        out.append(line)

    if jsx_buffer:
        out.extend(_fenced(jsx_buffer))
    return "\n".join(out)
