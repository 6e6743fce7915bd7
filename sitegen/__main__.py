"""CLI entry point for sitegen.

Usage: python -m sitegen {command} [args]
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from sitegen.catalog import get_catalog
from sitegen.color import PaletteColor, normalize_hex, vibrant
from sitegen.config import (
    EnvVar,
    get_environment,
    get_environment_info,
    list_environment_variables,
    load_settings,
)
from sitegen.core import get_logger, setup_logging
from sitegen.llm.backend import LLMError
from sitegen.orchestrator import DeadlineExceeded, Orchestrator
from sitegen.schema import ImageSlot

# Load environment variables from .env file
load_dotenv()

logger = get_logger("cli")

_SECRET_VARS = {
    EnvVar.GEMINI_API_KEY,
    EnvVar.OPENAI_API_KEY,
    EnvVar.ANTHROPIC_API_KEY,
    EnvVar.HUGGING_FACE_TOKEN,
    EnvVar.UNSPLASH_ACCESS_KEY,
}


# =============================================================================
# Generate Command
# =============================================================================


def _build_orchestrator(settings) -> Orchestrator:
    return Orchestrator(settings)


async def _generate(settings, args: argparse.Namespace):
    async with _build_orchestrator(settings) as orchestrator:
        return await orchestrator.generate(args.name, args.type, args.requirements)


def cmd_generate(args: argparse.Namespace) -> int:
    """Handle the generate command."""
    try:
        settings = load_settings(
            request_deadline=args.deadline,
            spec_failure_policy=args.policy,
            llm_model=args.model,
        )
    except ValueError as e:
        logger.error(f"Invalid settings: {e}")
        return 2

    try:
        package = asyncio.run(_generate(settings, args))
    except (LLMError, DeadlineExceeded, ValueError) as e:
        logger.error(f"Generation failed: {e}")
        return 1

    for slot in ImageSlot:
        logger.info(f"  {slot.value:<9} <- {package.report.tier_for(slot)}")

    result_text = json.dumps(package.to_dict(), indent=2)
    if args.output:
        args.output.write_text(result_text)
        logger.info(f"Design package saved to {args.output}")
    else:
        print(result_text)
    return 0


# =============================================================================
# Catalog Command
# =============================================================================


def cmd_catalog(args: argparse.Namespace) -> int:
    """Handle the catalog command."""
    catalog = get_catalog()
    if args.list:
        for entry in catalog.entries:
            aliases = f" (also: {', '.join(entry.aliases)})" if entry.aliases else ""
            print(f"{entry.keyword}{aliases}")
        return 0

    entry = catalog.match(args.type)
    print(f"{args.type or '(empty)'} -> {entry.keyword}")
    for slot in ImageSlot:
        print(f"  {slot.value:<9} {catalog.image_for(args.type, slot)}")
    return 0


# =============================================================================
# Palette Command
# =============================================================================


def cmd_palette(args: argparse.Namespace) -> int:
    """Handle the palette command."""
    status = 0
    for value in args.colors:
        try:
            boosted = vibrant(value)
        except ValueError as e:
            logger.error(str(e))
            status = 1
            continue
        color = PaletteColor.for_background(boosted)
        note = " (boosted)" if boosted != normalize_hex(value) else ""
        print(
            f"{value:<8} -> {color.background}{note}  "
            f"luminance={color.luminance:.3f}  text={color.text}  "
            f"contrast={color.contrast:.2f}:1"
        )
    return status


# =============================================================================
# Env Command
# =============================================================================


def cmd_env(args: argparse.Namespace) -> int:
    """Handle the env command."""
    variables = list_environment_variables(args.category)
    if not variables:
        logger.error(f"Unknown category: {args.category}")
        return 1

    for var in variables:
        info = get_environment_info(var)
        value = get_environment(var)
        if var in _SECRET_VARS:
            shown = "set" if value else "not set"
        else:
            shown = str(value)
        print(f"{info.name:<22} [{info.category}] {shown:<12} {info.description}")
    return 0


# =============================================================================
# Argument Parsing
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m sitegen",
        description="Generate marketing-site design packages",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    generate_parser = subparsers.add_parser(
        "generate", help="Generate a design package for a business"
    )
    generate_parser.add_argument("name", type=str, help="Business name")
    generate_parser.add_argument(
        "--type", "-t", type=str, default="", help="Business type (e.g. bakery)"
    )
    generate_parser.add_argument(
        "--requirements", "-r", type=str, default="", help="Free-text requirements"
    )
    generate_parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Overall deadline in seconds (default: REQUEST_DEADLINE)",
    )
    generate_parser.add_argument(
        "--policy",
        choices=["abort", "default"],
        default=None,
        help="On design spec failure: abort, or use the default spec",
    )
    generate_parser.add_argument(
        "--model", "-m", type=str, default=None, help="LLM model name"
    )
    generate_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Output file path (prints to stdout if not specified)",
    )
    generate_parser.set_defaults(func=cmd_generate)

    catalog_parser = subparsers.add_parser(
        "catalog", help="Show the curated images a business type resolves to"
    )
    catalog_parser.add_argument("type", type=str, nargs="?", default="")
    catalog_parser.add_argument(
        "--list", "-l", action="store_true", help="List catalog keywords"
    )
    catalog_parser.set_defaults(func=cmd_catalog)

    palette_parser = subparsers.add_parser(
        "palette", help="Show vibrancy and contrast for colours"
    )
    palette_parser.add_argument("colors", nargs="+", help="Hex colours (#RRGGBB)")
    palette_parser.set_defaults(func=cmd_palette)

    env_parser = subparsers.add_parser("env", help="List configuration variables")
    env_parser.add_argument(
        "--category",
        "-c",
        choices=["llm", "image", "pipeline"],
        default=None,
        help="Only show one category",
    )
    env_parser.set_defaults(func=cmd_env)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
