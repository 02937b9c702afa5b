"""
Task parser.

Turns a Markdown document into the tasks, heading paths, warnings and
front-matter config it contains.

Main API:
    parse_content(text) -> ParseResult

A task is a checklist item ("- [ ] Title" / "- [x] Title") found in a list
reachable from the top level of the document. The headings above it form its
path. An immediately nested list of "key: value" items is its metadata, with
the "status" key pulled out as the task's status.

Block quotes and code blocks are skipped entirely, so checklist lines and
headings inside them never count.
"""

from collections import OrderedDict
import re
from typing import Dict, List, Optional, Tuple

from mdtasks.models.path import TaskPath
from mdtasks.models.status import Status
from mdtasks.models.task import (
    FrontmatterConfig,
    ParsedHeading,
    ParsedTask,
    ParseResult,
    TaskMetadata,
)
from mdtasks.parsers.blocks import (
    Block,
    BlockQuote,
    CodeBlock,
    Heading,
    ListBlock,
    ListItem,
    Paragraph,
    inline_text,
    scan_blocks,
)
from mdtasks.parsers.frontmatter import parse_frontmatter
from mdtasks.utils.ids import generate_task_id

DEFAULT_STATUS = "todo"
DEFAULT_DONE_STATUS = "done"
STATUS_KEY = "status"

_CHECKBOX_PREFIX_RE = re.compile(r"^\[[ xX]\]\s*")


class _Walker:
    """Walks top-level blocks, tracking the heading stack."""

    def __init__(self, default_status: str, default_done_status: str):
        self.default_status = default_status
        self.default_done_status = default_done_status
        self.stack: List[Tuple[int, str]] = []
        self.tasks: List[ParsedTask] = []
        self.headings: List[TaskPath] = []
        self.heading_lines: List[ParsedHeading] = []

    def current_path(self) -> TaskPath:
        return TaskPath.create(text for _, text in self.stack)

    def walk(self, blocks: List[Block]) -> None:
        for block in blocks:
            if isinstance(block, (BlockQuote, CodeBlock)):
                continue
            if isinstance(block, Heading):
                self._enter_heading(block)
            elif isinstance(block, ListBlock):
                self._walk_list(block)

    def _enter_heading(self, heading: Heading) -> None:
        while self.stack and self.stack[-1][0] >= heading.level:
            self.stack.pop()
        self.stack.append((heading.level, heading.text))
        path = self.current_path()
        self.headings.append(path)
        self.heading_lines.append(ParsedHeading(path=path, level=heading.level, line=heading.start_line))

    def _walk_list(self, list_block: ListBlock) -> None:
        for item in list_block.items:
            if item.checked is None:
                # Plain bullets may group checklist items underneath
                for child in item.children:
                    if isinstance(child, ListBlock):
                        self._walk_list(child)
                continue
            task = self._extract_task(item)
            if task is not None:
                self.tasks.append(task)

    def _extract_task(self, item: ListItem) -> Optional[ParsedTask]:
        paragraph = next((c for c in item.children if isinstance(c, Paragraph)), None)
        if paragraph is None:
            return None
        title = _CHECKBOX_PREFIX_RE.sub("", paragraph.source, count=1).strip()
        if not title:
            return None

        metadata: TaskMetadata = {}
        end_line = item.end_line
        if len(item.children) > 1 and isinstance(item.children[1], ListBlock):
            meta_list = item.children[1]
            metadata = extract_metadata(meta_list)
            end_line = max(end_line, meta_list.end_line)

        is_checked = bool(item.checked)
        explicit = metadata.pop(STATUS_KEY, None)
        if explicit:
            status = Status.create(explicit)
        elif is_checked:
            status = Status.create(self.default_done_status)
        else:
            status = Status.create(self.default_status)

        path = self.current_path()
        return ParsedTask(
            id=generate_task_id(path, title),
            title=title,
            status=status,
            path=path,
            is_checked=is_checked,
            metadata=metadata,
            start_line=item.start_line,
            end_line=end_line,
        )


def extract_metadata(list_block: ListBlock) -> TaskMetadata:
    """
    Collect "key: value" pairs from a list's items.

    Only the first line of each item counts. The key is everything before
    the first colon, trimmed; the value is the remainder, trimmed. Items
    without a colon, or with an empty key or value, are ignored. Later
    duplicates overwrite earlier ones.
    """
    metadata: TaskMetadata = {}
    for item in list_block.items:
        for child in item.children:
            if not isinstance(child, Paragraph):
                continue
            first_line = child.source.split("\n", 1)[0]
            text = inline_text(_CHECKBOX_PREFIX_RE.sub("", first_line, count=1)).strip()
            key, sep, value = text.partition(":")
            key, value = key.strip(), value.strip()
            if sep and key and value:
                metadata[key] = value
    return metadata


def find_duplicates(tasks: List[ParsedTask]) -> List[str]:
    """One warning per ID shared by more than one task."""
    groups: Dict[str, List[ParsedTask]] = OrderedDict()
    for task in tasks:
        groups.setdefault(task.id, []).append(task)

    warnings = []
    for group in groups.values():
        if len(group) < 2:
            continue
        first = group[0]
        lines = ", ".join(str(t.start_line) for t in group)
        warnings.append(
            f'Duplicate task "{first.title}" in {first.path} at lines {lines}; '
            f"only the first is addressable"
        )
    return warnings


def _pick(value: Optional[str], fallback: str) -> str:
    if value is not None and value.strip():
        return value
    return fallback


def parse_content(
    text: str,
    default_status: str = DEFAULT_STATUS,
    default_done_status: str = DEFAULT_DONE_STATUS,
) -> ParseResult:
    """
    Parse a document.

    Args:
        text: Full document text, front-matter included
        default_status: Status for unchecked tasks without one, unless the
            front-matter sets defaultStatus
        default_done_status: Status for checked tasks without one, unless
            the front-matter sets defaultDoneStatus

    Returns:
        ParseResult with line numbers relative to the full document

    Raises:
        MarkdownParseError: if the front-matter is not valid YAML
    """
    lines = text.split("\n")
    config, offset = parse_frontmatter(lines)
    fm = config or FrontmatterConfig()

    walker = _Walker(
        default_status=_pick(fm.default_status, default_status),
        default_done_status=_pick(fm.default_done_status, default_done_status),
    )
    body = [(offset + i + 1, line) for i, line in enumerate(lines[offset:])]
    walker.walk(scan_blocks(body))

    return ParseResult(
        tasks=walker.tasks,
        headings=walker.headings,
        warnings=find_duplicates(walker.tasks),
        config=config,
        heading_lines=walker.heading_lines,
    )
