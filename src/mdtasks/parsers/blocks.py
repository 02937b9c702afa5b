"""
Line-based Markdown block scanner.

Builds a small block tree (headings, paragraphs, lists, block quotes, code
blocks) from a sequence of numbered lines. Only the block structure needed to
locate checklist items is recovered; inline content is kept as source text.

Main API:
    scan_blocks(numbered_lines) -> List[Block]
    inline_text(source) -> str
    interrupts_paragraph(line) -> bool

Every block records the inclusive 1-based line range it covers in the
document text, so the editor can splice text without re-serialising it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

NumberedLine = Tuple[int, str]

TAB_WIDTH = 4

_ATX_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*))?$")
_ATX_CLOSE_RE = re.compile(r"(?:^|[ \t]+)#+[ \t]*$")
_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")
_THEMATIC_RE = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
_SETEXT_RE = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")
_QUOTE_RE = re.compile(r"^ {0,3}> ?(.*)$")
_LIST_RE = re.compile(r"^( {0,3})([-+*]|\d{1,9}[.)])(?=[ \t]|$)([ \t]*)(.*)$")
_CHECKBOX_RE = re.compile(r"^\[([ xX])\](?:[ \t]+|$)")

_CODE_SPAN_RE = re.compile(r"(`+)(.+?)\1")
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_STAR_EMPHASIS_RE = re.compile(r"(\*\*|\*|~~)(?=\S)(.+?)(?<=\S)\1")
_UNDERSCORE_EMPHASIS_RE = re.compile(r"(?<!\w)(__|_)(?=\S)(.+?)(?<=\S)\1(?!\w)")
_ESCAPE_RE = re.compile(r"\\([!-/:-@\[-`{-~])")


# ---------------------------------------------------------------------------
# Block types
# ---------------------------------------------------------------------------

@dataclass
class Block:
    start_line: int
    end_line: int


@dataclass
class Heading(Block):
    level: int = 1
    text: str = ""


@dataclass
class Paragraph(Block):
    source: str = ""


@dataclass
class CodeBlock(Block):
    fenced: bool = False


@dataclass
class BlockQuote(Block):
    children: List[Block] = field(default_factory=list)


@dataclass
class ListItem(Block):
    checked: Optional[bool] = None
    children: List[Block] = field(default_factory=list)


@dataclass
class ListBlock(Block):
    ordered: bool = False
    items: List[ListItem] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Line helpers
# ---------------------------------------------------------------------------

def _normalize(line: str) -> str:
    """Drop a trailing CR and expand tabs in the leading whitespace."""
    line = line.rstrip("\r")
    stripped = line.lstrip(" \t")
    lead = line[: len(line) - len(stripped)]
    return lead.expandtabs(TAB_WIDTH) + stripped


def _is_blank(text: str) -> bool:
    return not text.strip()


def _indent(text: str) -> int:
    return len(text) - len(text.lstrip(" "))


def _list_kind(match: re.Match) -> str:
    """Bullet char, or the delimiter for ordered markers; items of one list share it."""
    marker = match.group(2)
    return marker if not marker[0].isdigit() else marker[-1]


def _starts_block(text: str) -> bool:
    """True if the line opens a block that can interrupt a paragraph."""
    if _indent(text) >= 4:
        return False
    if _ATX_RE.match(text) or _FENCE_RE.match(text) or _QUOTE_RE.match(text):
        return True
    if _THEMATIC_RE.match(text):
        return True
    m = _LIST_RE.match(text)
    return bool(m and m.group(4).strip())


def _closes_fence(text: str, fence: str) -> bool:
    stripped = text.strip()
    return (
        _indent(text) < 4
        and len(stripped) >= len(fence)
        and set(stripped) == {fence[0]}
    )


# ---------------------------------------------------------------------------
# Block parsers
# ---------------------------------------------------------------------------

def _parse_fence(lines: Sequence[NumberedLine], i: int, blocks: List[Block]) -> Optional[int]:
    m = _FENCE_RE.match(lines[i][1])
    fence, info = m.group(1), m.group(2)
    if fence[0] == "`" and "`" in info:
        return None
    end = len(lines) - 1  # unterminated fence runs to the end of its container
    for j in range(i + 1, len(lines)):
        if _closes_fence(lines[j][1], fence):
            end = j
            break
    blocks.append(CodeBlock(lines[i][0], lines[end][0], fenced=True))
    return end + 1


def _parse_indented_code(lines: Sequence[NumberedLine], i: int, blocks: List[Block]) -> int:
    last = i
    j = i + 1
    while j < len(lines):
        text = lines[j][1]
        if not _is_blank(text):
            if _indent(text) < 4:
                break
            last = j
        j += 1
    blocks.append(CodeBlock(lines[i][0], lines[last][0], fenced=False))
    return last + 1


def _parse_paragraph(lines: Sequence[NumberedLine], i: int, blocks: List[Block]) -> int:
    j = i + 1
    while j < len(lines):
        text = lines[j][1]
        if _is_blank(text):
            break
        setext = _SETEXT_RE.match(text)
        if setext:
            level = 1 if setext.group(1)[0] == "=" else 2
            heading_text = " ".join(t.strip() for _, t in lines[i:j])
            blocks.append(Heading(lines[i][0], lines[j][0], level=level, text=inline_text(heading_text)))
            return j + 1
        if _starts_block(text):
            break
        j += 1
    source = "\n".join(t.strip() for _, t in lines[i:j])
    blocks.append(Paragraph(lines[i][0], lines[j - 1][0], source=source))
    return j


def _parse_quote(lines: Sequence[NumberedLine], i: int, blocks: List[Block]) -> int:
    inner: List[NumberedLine] = []
    j = i
    while j < len(lines):
        num, text = lines[j]
        m = _QUOTE_RE.match(text)
        if m:
            inner.append((num, m.group(1)))
        elif not _is_blank(text) and inner and not _is_blank(inner[-1][1]) and not _starts_block(text):
            # lazy continuation of a quoted paragraph
            inner.append((num, text))
        else:
            break
        j += 1
    blocks.append(BlockQuote(lines[i][0], lines[j - 1][0], children=_parse(inner)))
    return j


def _parse_item(lines: Sequence[NumberedLine], i: int, m: re.Match) -> Tuple[ListItem, int]:
    num, text = lines[i]
    indent, marker, spacing, rest = m.groups()
    marker_end = len(indent) + len(marker)
    if not rest.strip() or len(spacing) > 4:
        width = marker_end + 1
    else:
        width = marker_end + len(spacing)

    content: List[NumberedLine] = [(num, text[width:] if len(text) > width else "")]
    last = i
    j = i + 1

    # An item may open with at most one blank line
    if not rest.strip() and j < len(lines) and _is_blank(lines[j][1]):
        return ListItem(num, num), j

    while j < len(lines):
        line_num, line = lines[j]
        if _is_blank(line):
            content.append((line_num, ""))
        elif _indent(line) >= width:
            content.append((line_num, line[width:]))
            last = j
        elif j == last + 1 and _lazy_allowed(content) and not _starts_block(line):
            content.append((line_num, line))
            last = j
        else:
            break
        j += 1

    # Trailing blank lines belong to whatever follows, not to this item
    content = content[: last - i + 1]
    children = _parse(content)
    item = ListItem(num, lines[last][0], checked=_checkbox_state(children), children=children)
    return item, last + 1


def _lazy_allowed(content: List[NumberedLine]) -> bool:
    """Lazy continuation only extends an open paragraph."""
    prev = content[-1][1]
    if _is_blank(prev) or _indent(prev) >= 4:
        return False
    inner = prev.lstrip()
    while True:
        m = _LIST_RE.match(inner) or _QUOTE_RE.match(inner)
        if not m:
            break
        inner = m.group(m.lastindex).lstrip()
    return bool(inner) and not (
        _ATX_RE.match(inner) or _FENCE_RE.match(inner) or _THEMATIC_RE.match(inner)
    )


def _checkbox_state(children: List[Block]) -> Optional[bool]:
    if not children or not isinstance(children[0], Paragraph):
        return None
    m = _CHECKBOX_RE.match(children[0].source)
    if not m:
        return None
    return m.group(1) in ("x", "X")


def _parse_list(lines: Sequence[NumberedLine], i: int, blocks: List[Block]) -> int:
    first = _LIST_RE.match(lines[i][1])
    kind = _list_kind(first)
    items: List[ListItem] = []

    while i < len(lines):
        text = lines[i][1]
        m = _LIST_RE.match(text)
        if not m or _THEMATIC_RE.match(text) or _list_kind(m) != kind:
            break
        item, i = _parse_item(lines, i, m)
        items.append(item)

        k = i
        while k < len(lines) and _is_blank(lines[k][1]):
            k += 1
        nxt = _LIST_RE.match(lines[k][1]) if k < len(lines) else None
        if not nxt or _THEMATIC_RE.match(lines[k][1]) or _list_kind(nxt) != kind:
            break
        i = k

    blocks.append(
        ListBlock(items[0].start_line, items[-1].end_line, ordered=kind in ".)", items=items)
    )
    return i


def _parse(lines: Sequence[NumberedLine]) -> List[Block]:
    blocks: List[Block] = []
    i = 0
    while i < len(lines):
        num, text = lines[i]
        if _is_blank(text):
            i += 1
            continue

        if _indent(text) >= 4:
            i = _parse_indented_code(lines, i, blocks)
            continue

        if _FENCE_RE.match(text):
            nxt = _parse_fence(lines, i, blocks)
            if nxt is not None:
                i = nxt
                continue

        heading = _ATX_RE.match(text)
        if heading:
            raw = _ATX_CLOSE_RE.sub("", heading.group(2) or "")
            blocks.append(Heading(num, num, level=len(heading.group(1)), text=inline_text(raw.strip())))
            i += 1
            continue

        if _THEMATIC_RE.match(text):
            i += 1
            continue

        if _QUOTE_RE.match(text):
            i = _parse_quote(lines, i, blocks)
            continue

        if _LIST_RE.match(text):
            i = _parse_list(lines, i, blocks)
            continue

        i = _parse_paragraph(lines, i, blocks)
    return blocks


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def scan_blocks(numbered_lines: Sequence[NumberedLine]) -> List[Block]:
    """
    Scan numbered lines into a block tree.

    Args:
        numbered_lines: (line_number, text) pairs; line numbers are carried
            through unchanged so callers can offset them (e.g. past front-matter)

    Returns:
        Top-level blocks in document order
    """
    return _parse([(num, _normalize(text)) for num, text in numbered_lines])


def interrupts_paragraph(line: str) -> bool:
    """True if the line, placed right after paragraph text, would not be read as part of it."""
    text = _normalize(line)
    return _is_blank(text) or _starts_block(text)


def inline_text(source: str) -> str:
    """
    Reduce inline Markdown to its text: emphasis markers, link and image
    syntax and backslash escapes are dropped; code spans keep their backticks.
    """
    parts: List[str] = []
    pos = 0
    for m in _CODE_SPAN_RE.finditer(source):
        parts.append(_strip_inline(source[pos : m.start()]))
        parts.append(f"`{m.group(2).strip()}`")
        pos = m.end()
    parts.append(_strip_inline(source[pos:]))
    return "".join(parts)


def _strip_inline(text: str) -> str:
    text = _IMAGE_RE.sub(r"\1", text)
    text = _LINK_RE.sub(r"\1", text)
    previous = None
    while previous != text:
        previous = text
        text = _STAR_EMPHASIS_RE.sub(r"\2", text)
        text = _UNDERSCORE_EMPHASIS_RE.sub(r"\2", text)
    return _ESCAPE_RE.sub(r"\1", text)
