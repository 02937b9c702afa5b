"""
Front-matter extraction.

A document may open with a YAML block delimited by "---" lines. Only its
``kanban:`` section matters here; everything else in the block is left alone
and the block itself is never rewritten by the editor.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import yaml

from mdtasks.models.task import FrontmatterConfig

log = logging.getLogger(__name__)

DELIMITER = "---"
KANBAN_KEY = "kanban"


class MarkdownParseError(Exception):
    """The document could not be parsed into a structure at all."""


def split_frontmatter(lines: List[str]) -> Tuple[List[str], int]:
    """
    Split front-matter off the start of the document.

    Returns:
        (frontmatter_lines, body_start_index)
        frontmatter_lines includes the --- delimiters verbatim, so
        body_start_index is also the number of lines the block occupies.
        If there is no (terminated) front-matter, returns ([], 0).
    """
    if not lines or lines[0].rstrip() != DELIMITER:
        return [], 0

    for i in range(1, len(lines)):
        if lines[i].rstrip() == DELIMITER:
            return lines[: i + 1], i + 1

    # Never closed; treat as no frontmatter
    return [], 0


def load_frontmatter(frontmatter_lines: List[str]) -> Dict[str, Any]:
    """
    Load the YAML between the delimiters.

    Raises:
        MarkdownParseError: if the block is not valid YAML
    """
    if not frontmatter_lines:
        return {}
    source = "\n".join(frontmatter_lines[1:-1])
    try:
        data = yaml.safe_load(source)
    except yaml.YAMLError as e:
        raise MarkdownParseError(f"Invalid front-matter: {e}") from e
    if not isinstance(data, dict):
        return {}
    return data


def _string_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [str(v) for v in value if v is not None]


def _string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def extract_config(data: Dict[str, Any]) -> Optional[FrontmatterConfig]:
    """
    Read the ``kanban:`` section into a FrontmatterConfig.

    Keys are camelCase as they appear in documents. A value of the wrong
    type is treated as absent. Returns None when there is no kanban mapping.
    """
    kanban = data.get(KANBAN_KEY)
    if not isinstance(kanban, dict):
        return None

    sync = kanban.get("syncCheckboxWithDone")
    return FrontmatterConfig(
        statuses=_string_list(kanban.get("statuses")),
        done_statuses=_string_list(kanban.get("doneStatuses")),
        default_status=_string(kanban.get("defaultStatus")),
        default_done_status=_string(kanban.get("defaultDoneStatus")),
        sort_by=_string(kanban.get("sortBy")),
        sync_checkbox_with_done=sync if isinstance(sync, bool) else None,
    )


def parse_frontmatter(lines: List[str]) -> Tuple[Optional[FrontmatterConfig], int]:
    """
    Split and interpret front-matter in one step.

    Returns:
        (config, line_offset) where line_offset is the number of lines the
        block occupies; body line N is document line N + line_offset.
    """
    frontmatter_lines, body_start = split_frontmatter(lines)
    data = load_frontmatter(frontmatter_lines)
    config = extract_config(data)
    if frontmatter_lines and config is None:
        log.debug("Front-matter present without a kanban section")
    return config, body_start
