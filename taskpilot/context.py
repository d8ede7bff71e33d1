# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Grounding context for fresh plan generation.

A grounding provider renders a snapshot of the environment and project so a
fresh plan refers to real, current facts. Hosts with richer context (open
editors, selected files, skills) supply their own provider; the default one
describes the platform and the workspace file tree.
"""

from __future__ import annotations

import platform
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from taskpilot.agents.types import RunContext

DEFAULT_IGNORED = (
    ".git", ".hg", ".svn", "__pycache__", "node_modules", ".venv", "venv",
    ".mypy_cache", ".pytest_cache", ".tox", "dist", "build", ".idea", ".vscode",
)


class GroundingProvider(ABC):
    """Source of the grounding block included in fresh-generation prompts."""

    @abstractmethod
    async def get_context(self, context: RunContext) -> str:
        """Render the current environment/project state as prompt text."""


class StaticGroundingProvider(GroundingProvider):
    """Grounding provider returning fixed text (handy for hosts and tests)."""

    def __init__(self, text: str) -> None:
        self.text = text

    async def get_context(self, context: RunContext) -> str:
        return self.text


class WorkspaceGroundingProvider(GroundingProvider):
    """
    Describes the platform and the workspace file tree.

    Attributes:
        max_depth: Deepest directory level listed
        max_entries: Cap on listed paths
        ignored: Directory names skipped entirely
    """

    def __init__(
        self,
        max_depth: int = 3,
        max_entries: int = 300,
        ignored: Sequence[str] = DEFAULT_IGNORED,
    ) -> None:
        self.max_depth = max_depth
        self.max_entries = max_entries
        self.ignored = set(ignored)

    def _environment_lines(self, workspace: Optional[Path]) -> List[str]:
        return [
            "## Environment",
            f"- OS: {platform.system()} {platform.release()}",
            f"- Python: {platform.python_version()}",
            f"- Workspace: {workspace if workspace else '(none)'}",
        ]

    def build_tree(self, root: Path) -> List[str]:
        """List workspace paths, directories first, up to the configured limits."""
        lines: List[str] = []

        def walk(directory: Path, depth: int) -> None:
            if depth > self.max_depth:
                return
            try:
                entries = sorted(
                    directory.iterdir(),
                    key=lambda p: (not p.is_dir(), p.name.lower()),
                )
            except OSError:
                return
            for entry in entries:
                if len(lines) >= self.max_entries:
                    return
                if entry.name in self.ignored or entry.name.startswith("."):
                    continue
                if entry.is_dir():
                    lines.append("  " * depth + f"{entry.name}/")
                    walk(entry, depth + 1)
                else:
                    lines.append("  " * depth + entry.name)

        walk(root, 0)
        if len(lines) >= self.max_entries:
            lines.append("... (truncated)")
        return lines

    async def get_context(self, context: RunContext) -> str:
        workspace = context.workspace
        lines = self._environment_lines(workspace)
        if workspace is not None and workspace.is_dir():
            lines.append("")
            lines.append("## Project Tree")
            lines.extend(self.build_tree(workspace))
        return "\n".join(lines)
