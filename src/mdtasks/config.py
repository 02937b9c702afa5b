"""
Board configuration.

A document's front-matter may override any kanban setting; whatever it
leaves out comes from the fallback configuration (environment variables),
and whatever that leaves out comes from the hard defaults below.

Fallback environment variables:
    MDTASKS_STATUSES             comma-separated column order
    MDTASKS_DONE_STATUSES        comma-separated statuses that count as done
    MDTASKS_DEFAULT_STATUS       status for new / unchecked tasks
    MDTASKS_DEFAULT_DONE_STATUS  status for checked tasks without one
    MDTASKS_SORT_BY              markdown | priority | due | alphabetical
    MDTASKS_SYNC_CHECKBOX        true/false, keep [x] in step with done statuses
"""

import logging
import os
from typing import List, Literal, Mapping, Optional, get_args

from pydantic import BaseModel, Field

from mdtasks.models.task import FrontmatterConfig

log = logging.getLogger(__name__)

SortBy = Literal["markdown", "priority", "due", "alphabetical"]
SORT_KEYS = get_args(SortBy)

DEFAULT_STATUSES = ["todo", "in-progress", "done"]
DEFAULT_DONE_STATUSES = ["done"]


class KanbanConfig(BaseModel):
    """Fully resolved board configuration."""

    statuses: List[str] = Field(default_factory=lambda: list(DEFAULT_STATUSES))
    done_statuses: List[str] = Field(default_factory=lambda: list(DEFAULT_DONE_STATUSES))
    default_status: str = "todo"
    default_done_status: str = "done"
    sort_by: SortBy = "markdown"
    sync_checkbox_with_done: bool = True


DEFAULT_CONFIG = KanbanConfig()


def _env_list(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def _env_bool(raw: str) -> bool:
    return raw.strip().lower() in ("true", "1", "yes")


def load_fallback_config(env: Optional[Mapping[str, str]] = None) -> KanbanConfig:
    """
    Build the fallback configuration from environment variables.

    Unset or empty variables keep the hard default. An unknown sort key is
    logged and ignored.
    """
    env = os.environ if env is None else env
    values = {}

    statuses = _env_list(env.get("MDTASKS_STATUSES", ""))
    if statuses:
        values["statuses"] = statuses
    done = _env_list(env.get("MDTASKS_DONE_STATUSES", ""))
    if done:
        values["done_statuses"] = done

    default_status = env.get("MDTASKS_DEFAULT_STATUS", "").strip()
    if default_status:
        values["default_status"] = default_status
    default_done = env.get("MDTASKS_DEFAULT_DONE_STATUS", "").strip()
    if default_done:
        values["default_done_status"] = default_done

    sort_by = env.get("MDTASKS_SORT_BY", "").strip()
    if sort_by in SORT_KEYS:
        values["sort_by"] = sort_by
    elif sort_by:
        log.warning("Ignoring unknown MDTASKS_SORT_BY value: %s", sort_by)

    sync = env.get("MDTASKS_SYNC_CHECKBOX", "")
    if sync.strip():
        values["sync_checkbox_with_done"] = _env_bool(sync)

    return KanbanConfig(**values)


def resolve_config(
    frontmatter: Optional[FrontmatterConfig],
    fallback: Optional[KanbanConfig] = None,
) -> KanbanConfig:
    """
    Merge front-matter settings over the fallback, field by field.

    A front-matter value wins only if present and non-empty: lists must have
    at least one entry, strings must be non-blank and the sort key must be a
    known one.
    """
    fallback = fallback or DEFAULT_CONFIG
    if frontmatter is None:
        return fallback.model_copy(deep=True)

    fm = frontmatter
    return KanbanConfig(
        statuses=fm.statuses or list(fallback.statuses),
        done_statuses=fm.done_statuses or list(fallback.done_statuses),
        default_status=(
            fm.default_status if fm.default_status and fm.default_status.strip()
            else fallback.default_status
        ),
        default_done_status=(
            fm.default_done_status if fm.default_done_status and fm.default_done_status.strip()
            else fallback.default_done_status
        ),
        sort_by=fm.sort_by if fm.sort_by in SORT_KEYS else fallback.sort_by,
        sync_checkbox_with_done=(
            fm.sync_checkbox_with_done
            if fm.sync_checkbox_with_done is not None
            else fallback.sync_checkbox_with_done
        ),
    )
