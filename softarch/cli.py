"""softarch command line.

Examples::

    softarch create "REST API for a blog with comments" -o ./blog-api
    softarch preview "Booking system for a hair salon"
    softarch webhook stripe -o ./blog-api
    softarch regenerate blog-api -o ./blog-api-v2
    softarch list
    softarch saved list
    softarch saved generate blog-api -o ./blog-api
    softarch process "add a GitHub webhook" -o ./blog-api
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from rich.table import Table

from softarch import __version__
from softarch.architecture.models import Architecture
from softarch.config import Config, GenerationOptions
from softarch.errors import GenerationPaused, SoftArchError
from softarch.pipeline import GenerationPipeline
from softarch.utils import console, print_error, print_success, print_summary_table


def _options_from_args(args: argparse.Namespace) -> GenerationOptions:
    return GenerationOptions(
        name=args.name or "",
        database=args.database,
        framework=args.framework,
        auth=args.auth,
        include_graph_ql=args.graphql,
        include_websockets=args.websockets,
        include_global_query=args.global_query,
        use_templates=not args.no_templates,
        generate_zip=args.zip,
        continue_on_error=args.continue_on_error,
        allow_preview_edit=args.review,
    )


def _add_option_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--name", default=None, help="Project name (default: output folder name)")
    parser.add_argument("--database", default="MongoDB", help="Database (default: MongoDB)")
    parser.add_argument("--framework", default="Express", help="Framework (default: Express)")
    parser.add_argument("--auth", default="JWT", help="Authentication: JWT, OAuth, Session or None")
    parser.add_argument("--graphql", action="store_true", help="Add a GraphQL API")
    parser.add_argument("--websockets", action="store_true", help="Add socket.io to the manifest")
    parser.add_argument("--global-query", action="store_true", help="Add the cross-model search router")
    parser.add_argument("--no-templates", action="store_true", help="Let the LLM write every file")
    parser.add_argument("--zip", action="store_true", help="Also write <name>.zip next to the output")
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Skip files that fail instead of pausing the run",
    )
    parser.add_argument(
        "--review",
        action="store_true",
        help="Pause for confirmation before the diagram and archive phases",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="softarch",
        description="softarch -- generate backend API projects from a description",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("Examples::", 1)[1] if __doc__ else None,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", aliases=["generate"], help="Generate a project")
    create.add_argument("description", help="What the API should do")
    create.add_argument("--output", "-o", required=True, help="Project directory")
    create.add_argument("--webhook", default=None, help="Also add a webhook router for this service")
    create.add_argument("--save-as", default=None, help="Also store the design as a saved configuration")
    _add_option_arguments(create)

    preview = sub.add_parser("preview", help="Show the architecture and stack recommendation")
    preview.add_argument("description", help="What the API should do")
    preview.add_argument("--prompt", default="", help="Extra guidance for the recommendation")
    preview.add_argument("--save-as", default=None, help="Store the previewed design under this name")
    _add_option_arguments(preview)

    webhook = sub.add_parser("webhook", help="Add an incoming-webhook router to a project")
    webhook.add_argument("service", help="Service name, e.g. stripe or github")
    webhook.add_argument("--output", "-o", required=True, help="Project directory")

    regenerate = sub.add_parser("regenerate", help="Regenerate a stored project")
    regenerate.add_argument("name", help="Stored project name")
    regenerate.add_argument("--output", "-o", default=None, help="Project directory")

    listing = sub.add_parser("list", help="List recently generated projects")
    listing.add_argument("--limit", type=int, default=10, help="How many to show (default: 10)")

    saved = sub.add_parser("saved", help="Saved configurations")
    saved_sub = saved.add_subparsers(dest="saved_command", required=True)
    saved_sub.add_parser("list", help="List saved configurations")
    saved_generate = saved_sub.add_parser("generate", help="Generate a saved configuration")
    saved_generate.add_argument("name", help="Saved configuration name")
    saved_generate.add_argument("--output", "-o", default=None, help="Project directory")

    process = sub.add_parser("process", help="Handle a natural-language request")
    process.add_argument("request", help="e.g. 'add a Stripe webhook'")
    process.add_argument("--output", "-o", required=True, help="Project directory")
    _add_option_arguments(process)

    return parser


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _print_architecture(architecture: Architecture) -> None:
    table = Table(title="Architecture", show_header=True, header_style="bold cyan")
    table.add_column("Path")
    table.add_column("Template", no_wrap=True)
    table.add_column("Description", style="dim")
    for spec in architecture.files:
        table.add_row(spec.path, spec.template_type or "-", spec.description)
    console.print(table)


async def _run_command(pipeline: GenerationPipeline, args: argparse.Namespace) -> dict[str, Any] | None:
    command = args.command

    if command in ("create", "generate"):
        options = _options_from_args(args)
        result = await pipeline.run(args.description, args.output, options, webhook_service=args.webhook)
        if args.save_as:
            path = await pipeline.save_configuration(
                args.save_as,
                args.description,
                options,
                Architecture.model_validate(result["architecture"]),
            )
            console.print(f"Saved configuration: {path}")
        return result

    if command == "preview":
        preview = await pipeline.generate_preview(args.description, _options_from_args(args), args.prompt)
        _print_architecture(preview["architecture"])
        recommendation = preview["recommendation"]
        print_summary_table(
            {
                "Database": recommendation.database,
                "Framework": recommendation.framework,
                "Auth": recommendation.auth,
                "GraphQL": recommendation.include_graph_ql,
                "Global query": recommendation.include_global_query,
                "Note": recommendation.note or "-",
            },
            title="Recommendation",
        )
        if args.save_as:
            path = await pipeline.save_configuration(
                args.save_as, args.description, preview["options"], preview["architecture"]
            )
            console.print(f"Saved configuration: {path}")
        return None

    if command == "webhook":
        result = await pipeline.generate_webhook(args.service, args.output)
        print_summary_table({"Service": result["service_name"], "File": result["webhook_path"]}, title="Webhook")
        return None

    if command == "regenerate":
        return await pipeline.regenerate_from_diagram(args.name, args.output)

    if command == "list":
        records = await pipeline.list_recent_projects(args.limit)
        table = Table(title="Recent projects", show_header=True, header_style="bold cyan")
        table.add_column("Name")
        table.add_column("Created", no_wrap=True)
        table.add_column("Files", justify="right")
        table.add_column("Output", style="dim")
        for record in records:
            table.add_row(record.name, record.created_at, str(len(record.architecture.files)), record.output_path)
        console.print(table)
        return None

    if command == "saved":
        if args.saved_command == "list":
            table = Table(title="Saved configurations", show_header=True, header_style="bold cyan")
            table.add_column("Name")
            table.add_column("Created", no_wrap=True)
            table.add_column("Description", style="dim")
            for item in pipeline.list_saved_configurations():
                table.add_row(item.name, item.created_at, item.description)
            console.print(table)
            return None
        return await pipeline.generate_from_saved(args.name, args.output)

    if command == "process":
        return await pipeline.process_request(args.request, args.output, _options_from_args(args))

    raise SoftArchError(f"Unknown command: {command}")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``softarch`` console script."""
    parser = build_parser()
    args = parser.parse_args(argv)

    load_dotenv()
    config = Config.from_env()
    try:
        config.validate_runtime()
    except SoftArchError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)

    pipeline = GenerationPipeline(config)
    try:
        result = asyncio.run(_run_command(pipeline, args))
    except GenerationPaused as exc:
        print_error(f"Generation paused: {exc}")
        sys.exit(2)
    except (SoftArchError, OSError) as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)

    if result is not None and not result.get("success", True):
        print_error("Command failed.")
        sys.exit(1)
    if result is not None and "output_path" in result:
        print_success(f"Done: {Path(result['output_path'])}")


if __name__ == "__main__":
    main()
