# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for grounding providers."""

import pytest

from taskpilot.agents.types import RunContext
from taskpilot.context import StaticGroundingProvider, WorkspaceGroundingProvider


class TestStaticGroundingProvider:
    """Tests for StaticGroundingProvider."""

    @pytest.mark.asyncio
    async def test_returns_text(self):
        assert await StaticGroundingProvider("world").get_context(RunContext()) == "world"


class TestWorkspaceGroundingProvider:
    """Tests for WorkspaceGroundingProvider."""

    @pytest.mark.asyncio
    async def test_tree_skips_ignored_and_hidden(self, tmp_path):
        (tmp_path / "pkg").mkdir()
        (tmp_path / "pkg" / "mod.py").write_text("")
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "node_modules" / "x.js").write_text("")
        (tmp_path / ".env").write_text("SECRET=1")
        (tmp_path / "setup.cfg").write_text("")

        text = await WorkspaceGroundingProvider().get_context(RunContext(workspace=tmp_path))

        assert "## Environment" in text
        assert "## Project Tree" in text
        assert "pkg/\n  mod.py\nsetup.cfg" in text
        assert "node_modules" not in text
        assert ".env" not in text

    def test_truncation_marker_appended_once(self, tmp_path):
        for i in range(10):
            (tmp_path / f"dir{i}").mkdir()
            (tmp_path / f"dir{i}" / "file.txt").write_text("")
        lines = WorkspaceGroundingProvider(max_entries=5).build_tree(tmp_path)
        assert lines[-1] == "... (truncated)"
        assert lines.count("... (truncated)") == 1
        assert len(lines) == 6

    def test_max_depth(self, tmp_path):
        deep = tmp_path / "a" / "b" / "c"
        deep.mkdir(parents=True)
        (deep / "leaf.txt").write_text("")
        lines = WorkspaceGroundingProvider(max_depth=1).build_tree(tmp_path)
        assert lines == ["a/", "  b/"]

    @pytest.mark.asyncio
    async def test_without_workspace(self):
        text = await WorkspaceGroundingProvider().get_context(RunContext())
        assert "Workspace: (none)" in text
        assert "## Project Tree" not in text
