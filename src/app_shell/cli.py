import argparse
import asyncio
import logging
import sys

from src.app_shell.config import Settings, check_ops_rules, validate_ops_rules
from src.components.projects import (
    DeleteProjectInput,
    ListProjectsInput,
    ProjectStatsInput,
    run_delete,
    run_list,
    run_stats,
)
from src.rules.loader import load_rules
from src.rules.models import Rules
from src.ui.context import ServiceContext

logger = logging.getLogger("cli")


def get_rules(settings: Settings) -> Rules:
    if not settings.rules_path.exists():
        logger.error("Rules file %s not found.", settings.rules_path)
        sys.exit(1)
    return load_rules(settings.rules_path)


async def handle_list(ctx: ServiceContext, args: argparse.Namespace) -> int:
    result = await run_list(ListProjectsInput(), ctx.service)
    if not result.success:
        for err in result.errors:
            logger.error("%s: %s", err.code, err.message)
        return 1

    for project in result.items:
        count = len(project.image_urls())
        print(f"{project.id}  {project.created_at:%Y-%m-%d}  {project.title}  ({count} images)")
    print(f"{result.total} projects.")
    return 0


async def handle_stats(ctx: ServiceContext, args: argparse.Namespace) -> int:
    result = await run_stats(ProjectStatsInput(), ctx.service)
    if not result.success:
        for err in result.errors:
            logger.error("%s: %s", err.code, err.message)
        return 1

    print(f"Projects: {result.total_projects}")
    print(f"Images:   {result.total_images}")
    return 0


async def handle_delete(ctx: ServiceContext, args: argparse.Namespace) -> int:
    result = await run_delete(DeleteProjectInput(project_id=args.project_id), ctx.service)
    for warning in result.warnings:
        logger.warning("%s: %s", warning.code, warning.message)
    if not result.success:
        for err in result.errors:
            logger.error("%s: %s", err.code, err.message)
        return 1

    if result.already_absent:
        print(f"Project {args.project_id} was already deleted.")
    else:
        print(f"Deleted project {args.project_id} ({len(result.removed_keys)} objects removed).")
    return 0


def handle_check_config(settings: Settings, rules: Rules) -> int:
    problems = check_ops_rules(rules, settings.backend, settings.environ)
    for problem in problems:
        logger.error(problem)
    if problems:
        return 1
    print(f"Configuration OK (backend={settings.backend}, bucket={rules.storage.bucket}).")
    return 0


async def run_command(settings: Settings, rules: Rules, args: argparse.Namespace) -> int:
    ctx = await ServiceContext.create(settings, rules)
    if args.command == "list":
        return await handle_list(ctx, args)
    elif args.command == "stats":
        return await handle_stats(ctx, args)
    elif args.command == "delete":
        return await handle_delete(ctx, args)
    raise ValueError(f"Unknown command: {args.command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Project images admin CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List projects, newest first")
    subparsers.add_parser("stats", help="Show project and image counts")

    delete_parser = subparsers.add_parser("delete", help="Delete a project and its images")
    delete_parser.add_argument("project_id", help="Project ID")

    subparsers.add_parser("check-config", help="Validate rules and environment")
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)

    settings = Settings()
    rules = get_rules(settings)

    if args.command == "check-config":
        return handle_check_config(settings, rules)

    validate_ops_rules(rules, settings.backend, settings.environ)
    return asyncio.run(run_command(settings, rules, args))


if __name__ == "__main__":
    sys.exit(main())
