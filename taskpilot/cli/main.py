#!/usr/bin/env python3
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
TaskPilot CLI.

Usage:
    taskpilot run "OBJECTIVE" [OPTIONS]   # Plan and execute an objective
    taskpilot tools [--json]              # List available tools
    taskpilot version [--json]            # Show version information

Examples:
    # Run against a local OpenAI-compatible server
    taskpilot run "Summarize README.md" --endpoint http://localhost:9600

    # Restrict the planner to a subset of tools
    taskpilot run "List the project files" --tools list_files,submit_response
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import platform
import signal as os_signal
import sys
from pathlib import Path
from typing import List, Optional

from taskpilot.agents.events import EventEmitter, PlanEvent, PlanEventKind
from taskpilot.agents.executor import ExecutionResult, RunStatus, TaskExecutor
from taskpilot.agents.planner import PlanGenerator
from taskpilot.agents.types import RunContext
from taskpilot.config import AgentConfig, LLMConfig
from taskpilot.context import WorkspaceGroundingProvider
from taskpilot.exceptions import TaskPilotError
from taskpilot.llm.http import OpenAICompatibleService
from taskpilot.tools.builtins import create_builtin_tools
from taskpilot.tools.registry import ToolRegistry
from taskpilot.utils.logger import LogFormat, configure_logging, logger

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130


def get_version() -> str:
    """Get the TaskPilot version."""
    import taskpilot
    return getattr(taskpilot, "__version__", "unknown")


def build_registry() -> ToolRegistry:
    return ToolRegistry(create_builtin_tools())


def cmd_version(args: argparse.Namespace) -> int:
    """Show version information."""
    version = get_version()

    if args.json:
        info = {
            "taskpilot": version,
            "python": platform.python_version(),
            "platform": platform.system(),
        }
        print(json.dumps(info, indent=2))
    else:
        print(f"TaskPilot {version}")

    return EXIT_OK


def cmd_tools(args: argparse.Namespace) -> int:
    """List registered tools and whether they are enabled."""
    registry = build_registry()
    enabled = registry.enabled

    if args.json:
        print(json.dumps(
            [dict(d.to_dict(), enabled=d.name in enabled) for d in registry.get_all_tools()],
            indent=2,
        ))
        return EXIT_OK

    for definition in registry.get_all_tools():
        marker = "*" if definition.name in enabled else " "
        print(f" {marker} {definition.name:<18} {definition.description}")
    print("\n(* = enabled by default)")
    return EXIT_OK


def _print_event(event: PlanEvent) -> None:
    task = event.task
    if event.kind == PlanEventKind.PLAN_CREATED and event.plan:
        print(f"Plan ({len(event.plan.tasks)} tasks): {event.plan.objective}", file=sys.stderr)
        for t in event.plan.tasks:
            print(f"  {t.id}. {t.action}: {t.description}", file=sys.stderr)
    elif event.kind == PlanEventKind.TASK_STARTED and task:
        print(f"> [{task.id}] {task.action}", file=sys.stderr)
    elif event.kind == PlanEventKind.TASK_FAILED and task:
        print(f"x [{task.id}] {(task.result or '')[:200]}", file=sys.stderr)
    elif event.kind == PlanEventKind.PLAN_REVISED:
        print(f"~ Plan revised: {event.message}", file=sys.stderr)


def _install_interrupt_handler(context: RunContext) -> None:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(os_signal.SIGINT, context.signal.cancel, "Interrupted by user")
    except NotImplementedError:
        logger.debug("Signal handlers are not supported on this platform")


async def _run(args: argparse.Namespace) -> ExecutionResult:
    llm_config = LLMConfig.from_env(
        endpoint=args.endpoint,
        model=args.model,
        api_key=args.api_key,
    )
    agent_config = AgentConfig.from_env(
        agent_max_retries=args.max_retries,
        no_think_mode=True if args.no_think else None,
        replan_on_failure=False if args.no_replan else None,
    )

    registry = build_registry()
    context = RunContext(
        workspace=Path(args.workspace).resolve(),
        allowed_tools=args.tools.split(",") if args.tools else None,
        model_override=args.model,
    )
    _install_interrupt_handler(context)

    events = EventEmitter()
    if not args.json:
        events.subscribe(_print_event)

    async with OpenAICompatibleService(llm_config) as service:
        planner = PlanGenerator(service, registry, agent_config, WorkspaceGroundingProvider())
        executor = TaskExecutor(planner, registry, agent_config, events)
        return await executor.run(args.objective, context)


def cmd_run(args: argparse.Namespace) -> int:
    """Plan and execute an objective."""
    try:
        result = asyncio.run(_run(args))
    except TaskPilotError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED

    if args.json:
        print(json.dumps({
            "status": result.status.value,
            "message": result.message,
            "final_response": result.final_response,
            "replans": result.replans,
            "plan": result.plan.to_dict() if result.plan else None,
        }, indent=2))
    else:
        if result.final_response:
            print(result.final_response)
        else:
            print(result.message)

    if result.status == RunStatus.CANCELLED:
        return EXIT_CANCELLED
    return EXIT_OK if result.success else EXIT_FAILED


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="taskpilot",
        description="TaskPilot - plan and execute objectives with an LLM and tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=os.environ.get("TASKPILOT_LOG_LEVEL", "WARNING"),
        help="Set logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-format",
        choices=[f.value for f in LogFormat],
        default=os.environ.get("TASKPILOT_LOG_FORMAT", LogFormat.HUMAN.value),
        help="Log output format (default: human)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run command
    run_parser = subparsers.add_parser("run", help="Plan and execute an objective")
    run_parser.add_argument("objective", help="Natural-language objective")
    run_parser.add_argument(
        "--endpoint", "-e",
        help="Chat completions server URL (default: $TASKPILOT_LLM_ENDPOINT)",
    )
    run_parser.add_argument(
        "--model", "-m",
        help="Model name (default: $TASKPILOT_LLM_MODEL)",
    )
    run_parser.add_argument(
        "--api-key",
        help="API key (uses $TASKPILOT_LLM_API_KEY if not provided)",
    )
    run_parser.add_argument(
        "--workspace", "-w",
        default=".",
        help="Project root for grounding and file tools (default: current directory)",
    )
    run_parser.add_argument(
        "--tools",
        help="Comma-separated list of tools the planner may use",
    )
    run_parser.add_argument(
        "--max-retries",
        type=int,
        help="Self-correction attempts per task",
    )
    run_parser.add_argument(
        "--no-replan",
        action="store_true",
        help="Re-attempt failed tasks instead of replanning",
    )
    run_parser.add_argument(
        "--no-think",
        action="store_true",
        help="Ask reasoning models to skip their thinking phase",
    )
    run_parser.add_argument(
        "--json", "-j",
        action="store_true",
        help="Output the result in JSON format",
    )
    run_parser.set_defaults(func=cmd_run)

    # tools command
    tools_parser = subparsers.add_parser("tools", help="List available tools")
    tools_parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")
    tools_parser.set_defaults(func=cmd_tools)

    # version command
    version_parser = subparsers.add_parser("version", help="Show version information")
    version_parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")
    version_parser.set_defaults(func=cmd_version)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level, fmt=LogFormat(args.log_format), stream=sys.stderr)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_OK
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
