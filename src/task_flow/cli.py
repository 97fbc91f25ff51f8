"""CLI commands for Task Flow."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Awaitable, Callable

from task_flow.categories import normalize_key, with_counts
from task_flow.config import BACKENDS, Config, load_config
from task_flow.errors import TaskFlowError
from task_flow.models import Priority, Task
from task_flow.query import DueBucket, QuerySpec, query
from task_flow.stats import aggregate, archive_summary
from task_flow.store import Stores, open_stores
from task_flow.utils import parse_quick_add

logger = logging.getLogger(__name__)

PRIORITY_CHOICES = [p.value for p in Priority]

Handler = Callable[[Stores, argparse.Namespace, Config], Awaitable[int]]


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="task-flow",
        description="Task Flow - a task dashboard for the terminal",
    )
    parser.add_argument("--config", type=Path, help="Path to the config file")
    parser.add_argument("--backend", choices=BACKENDS, help="Storage backend to use")
    parser.add_argument("--database", type=Path, help="SQLite database path")
    subparsers = parser.add_subparsers(dest="command")

    # ls command
    ls_parser = subparsers.add_parser("ls", help="List tasks")
    ls_parser.add_argument("--search", type=str, help="Match text in title or description")
    ls_parser.add_argument("--category", type=str, help="Only tasks in this category")
    ls_parser.add_argument("--priority", choices=PRIORITY_CHOICES, help="Only this priority")
    status_group = ls_parser.add_mutually_exclusive_group()
    status_group.add_argument("--pending", action="store_true", help="Only pending tasks")
    status_group.add_argument("--completed", action="store_true", help="Only completed tasks")
    ls_parser.add_argument("--today", action="store_true", help="Only tasks due today")
    ls_parser.add_argument("--archived", action="store_true", help="List archived tasks instead")
    ls_parser.add_argument(
        "--json", action="store_true", dest="json_output", help="Output as JSON"
    )

    # add command
    add_parser = subparsers.add_parser("add", help="Add a task")
    add_parser.add_argument("title", type=str, help="Title; accepts #category and !priority")
    add_parser.add_argument("--description", type=str, default="", help="Description")
    add_parser.add_argument("--category", type=str, help="Category key")
    add_parser.add_argument("--priority", choices=PRIORITY_CHOICES, help="Priority")
    add_parser.add_argument("--due", type=str, help="Due date, e.g. 2025-06-30")

    # edit command
    edit_parser = subparsers.add_parser("edit", help="Edit a task")
    edit_parser.add_argument(
        "--id", type=int, required=True, dest="task_id", help="Task ID to edit"
    )
    edit_parser.add_argument("--name", type=str, help="New title for the task")
    edit_parser.add_argument("--description", type=str, help="New description")
    edit_parser.add_argument("--category", type=str, help="New category")
    edit_parser.add_argument("--priority", choices=PRIORITY_CHOICES, help="New priority")
    edit_parser.add_argument("--due", type=str, help="New due date, or '' to clear it")

    # mark command
    mark_parser = subparsers.add_parser("mark", help="Mark a task complete/incomplete")
    mark_parser.add_argument(
        "--id", type=int, required=True, dest="task_id", help="Task ID to mark"
    )
    mark_group = mark_parser.add_mutually_exclusive_group(required=True)
    mark_group.add_argument(
        "--complete", action="store_true", help="Mark task as completed"
    )
    mark_group.add_argument(
        "--incomplete", action="store_true", help="Mark task as pending"
    )

    for name, help_text in (
        ("archive", "Archive a task"),
        ("unarchive", "Restore an archived task"),
        ("rm", "Delete a task permanently"),
    ):
        id_parser = subparsers.add_parser(name, help=help_text)
        id_parser.add_argument("--id", type=int, required=True, dest="task_id", help="Task ID")

    stats_parser = subparsers.add_parser("stats", help="Show task statistics")
    stats_parser.add_argument(
        "--json", action="store_true", dest="json_output", help="Output as JSON"
    )

    categories_parser = subparsers.add_parser("categories", help="List categories")
    categories_parser.add_argument(
        "--json", action="store_true", dest="json_output", help="Output as JSON"
    )

    return parser


def build_config(args: argparse.Namespace) -> Config:
    """Load the config file and apply command-line overrides."""
    config = load_config(args.config)
    if args.backend:
        config.backend = args.backend
    if args.database:
        config.database = args.database
    return config


def format_row(task: Task, date_format: str) -> str:
    status = "done" if task.completed else "pending"
    category = task.category_id
    # Truncate category if too long
    if len(category) > 10:
        category = category[:9] + "…"
    due = task.due_date.strftime("%Y-%m-%d") if task.due_date else "-"
    done = task.completed_at.strftime(date_format) if task.completed_at else "-"
    return (
        f"{task.id:<4} {status:<8} {task.priority.value:<7} {category:<11} "
        f"{due:<11} {done:<9} {task.title}"
    )


async def cmd_ls(stores: Stores, args: argparse.Namespace, config: Config) -> int:
    """List tasks matching the given filters."""
    spec = QuerySpec(
        include_archived=args.archived,
        category_equals=args.category,
        due_bucket=DueBucket.TODAY if args.today else None,
        priority_equals=args.priority,
        completed_equals=True if args.completed else (False if args.pending else None),
        search_text=args.search,
    )
    tasks = query(await stores.tasks.list(), spec)
    if args.archived:
        tasks = [t for t in tasks if t.archived]

    if args.json_output:
        print(json.dumps([t.to_record() for t in tasks], indent=2))
    else:
        # Table output
        print(
            f"{'ID':<4} {'STATUS':<8} {'PRI':<7} {'CATEGORY':<11} {'DUE':<11} "
            f"{'DONE':<9} TITLE"
        )
        for task in tasks:
            print(format_row(task, config.completed_date_format))

    return 0


async def cmd_add(stores: Stores, args: argparse.Namespace, config: Config) -> int:
    """Add a task. Explicit options win over #category and !priority in the title."""
    title, category, priority = parse_quick_add(args.title)
    fields = {"title": title, "description": args.description}
    if args.category or category:
        fields["category_id"] = args.category or category
    if args.priority or priority:
        fields["priority"] = args.priority or priority
    if args.due:
        fields["due_date"] = args.due

    task = await stores.tasks.create(fields)
    print(f"Added task {task.id}.")
    return 0


async def cmd_edit(stores: Stores, args: argparse.Namespace, config: Config) -> int:
    """Edit a task's title, description, category, priority or due date."""
    changes: dict[str, object] = {}
    if args.name is not None:
        changes["title"] = args.name
    if args.description is not None:
        changes["description"] = args.description
    if args.category is not None:
        changes["category_id"] = normalize_key(args.category)
    if args.priority is not None:
        changes["priority"] = args.priority
    if args.due is not None:
        changes["due_date"] = args.due or None

    # Check that at least one field is provided
    if not changes:
        print(
            "Error: At least one of --name, --description, --category, --priority "
            "or --due is required.",
            file=sys.stderr,
        )
        return 1

    await stores.tasks.update(args.task_id, changes)
    print(f"Updated task {args.task_id}.")
    return 0


async def cmd_mark(stores: Stores, args: argparse.Namespace, config: Config) -> int:
    """Mark a task as complete or incomplete."""
    await stores.tasks.update(args.task_id, {"completed": args.complete})
    status_word = "completed" if args.complete else "pending"
    print(f"Marked task {args.task_id} as {status_word}.")
    return 0


async def cmd_archive(stores: Stores, args: argparse.Namespace, config: Config) -> int:
    await stores.tasks.archive(args.task_id)
    print(f"Archived task {args.task_id}.")
    return 0


async def cmd_unarchive(stores: Stores, args: argparse.Namespace, config: Config) -> int:
    await stores.tasks.unarchive(args.task_id)
    print(f"Restored task {args.task_id}.")
    return 0


async def cmd_rm(stores: Stores, args: argparse.Namespace, config: Config) -> int:
    task = await stores.tasks.delete(args.task_id)
    print(f"Deleted task {task.id}: {task.title}")
    return 0


async def cmd_stats(stores: Stores, args: argparse.Namespace, config: Config) -> int:
    """Print dashboard statistics."""
    tasks = await stores.tasks.list()
    stats = aggregate(tasks)
    archived = archive_summary(tasks)

    if args.json_output:
        print(json.dumps({**stats.as_dict(), "archived": archived.total}, indent=2))
    else:
        print(f"Total:           {stats.total}")
        print(f"Completed:       {stats.completed}")
        print(f"Pending:         {stats.pending}")
        print(f"Completion rate: {stats.completion_rate}%")
        print(f"Completed today: {stats.today_completed}")
        print(f"Archived:        {archived.total}")
    return 0


async def cmd_categories(stores: Stores, args: argparse.Namespace, config: Config) -> int:
    """List categories with their active task counts."""
    categories = with_counts(await stores.tasks.list(), await stores.categories.list())

    if args.json_output:
        output = [{**c.to_record(), "task_count": c.task_count} for c in categories]
        print(json.dumps(output, indent=2))
    else:
        print(f"{'ID':<4} {'KEY':<12} {'TASKS':<6} NAME")
        for category in categories:
            print(f"{category.id:<4} {category.key:<12} {category.task_count:<6} {category.name}")
    return 0


COMMANDS: dict[str, Handler] = {
    "ls": cmd_ls,
    "add": cmd_add,
    "edit": cmd_edit,
    "mark": cmd_mark,
    "archive": cmd_archive,
    "unarchive": cmd_unarchive,
    "rm": cmd_rm,
    "stats": cmd_stats,
    "categories": cmd_categories,
}


async def _run_command(handler: Handler, args: argparse.Namespace, config: Config) -> int:
    stores = open_stores(config)
    try:
        return await handler(stores, args, config)
    finally:
        await stores.close()


def dispatch(args: argparse.Namespace, config: Config) -> int:
    """Run the handler for ``args.command`` and return its exit code."""
    if config.backend == "sqlite" and not config.database.exists():
        print(
            f"Error: No database found at {config.database}.\n"
            "Run 'task-flow' to create a database first.",
            file=sys.stderr,
        )
        return 1

    try:
        return asyncio.run(_run_command(COMMANDS[args.command], args, config))
    except TaskFlowError as e:
        logger.warning("%s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def run_cli(argv: list[str] | None = None, config: Config | None = None) -> int | None:
    """Parse arguments and dispatch to command handlers.

    Returns:
        Exit code (0 for success, non-zero for error) if a command was handled,
        None if no command was specified (should launch TUI).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        return None

    return dispatch(args, config or build_config(args))
