"""
Tests for config.py: defaults, environment fallback, per-field resolution.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from pydantic import ValidationError

from mdtasks.config import KanbanConfig, load_fallback_config, resolve_config
from mdtasks.models import FrontmatterConfig


class TestKanbanConfig:
    def test_hard_defaults(self):
        config = KanbanConfig()
        assert config.statuses == ["todo", "in-progress", "done"]
        assert config.done_statuses == ["done"]
        assert config.default_status == "todo"
        assert config.default_done_status == "done"
        assert config.sort_by == "markdown"
        assert config.sync_checkbox_with_done is True

    def test_unknown_sort_key_rejected(self):
        with pytest.raises(ValidationError):
            KanbanConfig(sort_by="random")

    def test_defaults_not_shared(self):
        a = KanbanConfig()
        a.statuses.append("extra")
        assert KanbanConfig().statuses == ["todo", "in-progress", "done"]


class TestLoadFallbackConfig:
    def test_empty_env_gives_defaults(self):
        assert load_fallback_config({}) == KanbanConfig()

    def test_reads_all_variables(self):
        config = load_fallback_config({
            "MDTASKS_STATUSES": "backlog, doing ,done,",
            "MDTASKS_DONE_STATUSES": "done,archived",
            "MDTASKS_DEFAULT_STATUS": "backlog",
            "MDTASKS_DEFAULT_DONE_STATUS": "archived",
            "MDTASKS_SORT_BY": "due",
            "MDTASKS_SYNC_CHECKBOX": "false",
        })
        assert config.statuses == ["backlog", "doing", "done"]
        assert config.done_statuses == ["done", "archived"]
        assert config.default_status == "backlog"
        assert config.default_done_status == "archived"
        assert config.sort_by == "due"
        assert config.sync_checkbox_with_done is False

    def test_unknown_sort_key_ignored(self):
        assert load_fallback_config({"MDTASKS_SORT_BY": "random"}).sort_by == "markdown"

    def test_blank_values_ignored(self):
        config = load_fallback_config({"MDTASKS_STATUSES": " , ", "MDTASKS_DEFAULT_STATUS": "  "})
        assert config.statuses == ["todo", "in-progress", "done"]
        assert config.default_status == "todo"


class TestResolveConfig:
    def test_no_frontmatter_returns_fallback(self):
        fallback = KanbanConfig(sort_by="priority")
        resolved = resolve_config(None, fallback)
        assert resolved == fallback
        assert resolved is not fallback

    def test_no_fallback_uses_defaults(self):
        assert resolve_config(None) == KanbanConfig()

    def test_frontmatter_wins_per_field(self):
        fm = FrontmatterConfig(statuses=["a", "b"], sort_by="alphabetical")
        fallback = KanbanConfig(done_statuses=["b"], default_status="a")
        resolved = resolve_config(fm, fallback)
        assert resolved.statuses == ["a", "b"]
        assert resolved.sort_by == "alphabetical"
        assert resolved.done_statuses == ["b"]
        assert resolved.default_status == "a"

    def test_empty_values_fall_through(self):
        fm = FrontmatterConfig(
            statuses=[],
            done_statuses=[],
            default_status="  ",
            default_done_status="",
            sort_by="bogus",
        )
        assert resolve_config(fm) == KanbanConfig()

    def test_false_sync_flag_wins(self):
        resolved = resolve_config(FrontmatterConfig(sync_checkbox_with_done=False))
        assert resolved.sync_checkbox_with_done is False
