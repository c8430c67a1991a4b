"""Main entry point for dirsweep."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from rich.console import Console
from rich.filesize import decimal
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import ConfigurationError, SweepConfig, normalize_extensions
from .rules import CleanupRule, IndicatorKind
from .sweeper import ProjectSweeper

# Logs and errors; stdout may be carrying streamed blocks
err_console = Console(stderr=True)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments.

    """
    parser = argparse.ArgumentParser(
        prog="dirsweep",
        description="Clean up project dependency folders and combine code into one file",
    )
    parser.add_argument("--version", action="version", version=f"dirsweep {__version__}")
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to configuration file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    clean_parser = subparsers.add_parser(
        "clean", help="Scan and clean up dependency folders (node_modules, target, vendor, ...)"
    )
    clean_parser.add_argument(
        "--path",
        "-p",
        type=Path,
        default=Path("."),
        help="Root path to start scanning from",
    )
    clean_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Actually delete the folders (default is a dry run)",
    )

    combine_parser = subparsers.add_parser("combine", help="Combine code files into a single Markdown file")
    combine_parser.add_argument(
        "--path",
        "-p",
        type=Path,
        default=Path("."),
        help="Root path to scan",
    )
    combine_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Output file path (default: stdout)",
    )
    combine_parser.add_argument(
        "--include",
        "-i",
        default=None,
        help="Comma-separated list of file extensions to include (e.g. rs,py,js)",
    )
    combine_parser.add_argument(
        "--exclude",
        "-e",
        default=None,
        help="Comma-separated list of file extensions to exclude",
    )

    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_parser.add_argument(
        "--init",
        action="store_true",
        help="Create default configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        help="Show current configuration",
    )

    return parser.parse_args(argv)


def setup_logging(config: SweepConfig) -> logging.Logger:
    """Set up the package logger.

    Returns:
        Configured logger instance.

    """
    logger = logging.getLogger("dirsweep")
    logger.setLevel(logging.DEBUG)

    # Clear existing handlers to avoid duplicates if main() runs twice
    if logger.handlers:
        logger.handlers.clear()

    console_handler = RichHandler(
        console=err_console,
        show_time=False,
        show_path=False,
    )
    console_handler.setLevel(getattr(logging, config.log_level))
    logger.addHandler(console_handler)

    if config.log_file is not None:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


def _format_size(size: int | None) -> str:
    return decimal(size) if size is not None else "n/a"


def _describe_rule(rule: CleanupRule) -> str:
    if rule.indicator.kind is IndicatorKind.ALWAYS:
        return rule.description
    return f"{rule.description}, next to {rule.indicator}"


def cmd_clean(config: SweepConfig, args: argparse.Namespace) -> int:
    """Execute clean command.

    Args:
        config: Sweep configuration.
        args: Parsed arguments.

    Returns:
        Exit code.

    """
    console = Console()
    sweeper = ProjectSweeper(config, force=args.force)
    candidates = sweeper.sweep(args.path)

    console.print(f"Scanning path: {escape(str(args.path))}")
    if args.force:
        console.print("[bold red]DELETING MODE: folders will be permanently removed.[/bold red]\n")
    else:
        console.print("[yellow]DRY RUN: no folders will be deleted. Use --force to delete.[/yellow]\n")

    for candidate in candidates:
        path = escape(str(candidate.path))
        size = _format_size(candidate.size_bytes)
        if not args.force:
            console.print(
                f"[bold yellow]MATCH[/bold yellow] {candidate.rule.folder_name:<12} at {path} "
                f"({escape(_describe_rule(candidate.rule))}) - size: {size}"
            )
        elif candidate.deleted:
            console.print(f"[green]Deleted[/green] {path} ({escape(candidate.rule.description)}) - freed {size}")
        else:
            console.print(f"[red]FAILED to delete {path}: {escape(candidate.error or 'unknown error')}[/red]")

    stats = sweeper.stats
    if stats.matched == 0:
        console.print("[green]Everything looks clean![/green]")
    elif args.force:
        console.print(f"\n[green]Process complete. Removed {stats.removed} folder(s).[/green]")
        if stats.failed:
            console.print(f"[red]{stats.failed} folder(s) could not be removed.[/red]")
        console.print(f"Reclaimed space: {decimal(stats.bytes_freed)}")
    else:
        console.print(f"\nFound {stats.matched} folder(s). Potential space to reclaim: {decimal(stats.bytes_found)}")

    return 0


def cmd_combine(config: SweepConfig, args: argparse.Namespace) -> int:
    """Execute combine command.

    Args:
        config: Sweep configuration.
        args: Parsed arguments.

    Returns:
        Exit code.

    """
    from .combiner import combine_code

    include = normalize_extensions(args.include) if args.include is not None else None
    exclude = normalize_extensions(args.exclude) if args.exclude is not None else None

    stats = combine_code(args.path, args.output, include=include, exclude=exclude, config=config)

    if stats.reports_summary:
        table = Table(title=f"Combined code from {escape(str(args.path))} into {escape(str(stats.output_path))}")
        table.add_column("Stat", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Files", str(stats.files))
        table.add_row("Total size", decimal(stats.total_bytes))
        table.add_row("Est. tokens", f"{stats.estimated_tokens} (chars / 4)")
        Console().print(table)

    return 0


def cmd_config(config: SweepConfig, args: argparse.Namespace) -> int:
    """Execute config command.

    Args:
        config: Sweep configuration.
        args: Parsed arguments.

    Returns:
        Exit code.

    """
    console = Console()

    if args.init:
        config_path = args.config or SweepConfig.get_config_path()
        if config_path.exists():
            console.print(f"[yellow]Config already exists: {escape(str(config_path))}[/yellow]")
            return 1
        config.save(config_path)
        console.print(f"[green]Created config: {escape(str(config_path))}[/green]")
        return 0

    if args.show:
        table = Table(title="Current Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Measure sizes", str(config.measure_sizes))
        table.add_row("Include extensions", ", ".join(config.include_extensions) or "-")
        table.add_row("Exclude extensions", ", ".join(config.exclude_extensions) or "-")
        table.add_row("Known text files", ", ".join(config.known_text_files))
        table.add_row("Known text match", config.known_text_match)
        table.add_row("Log file", str(config.log_file) if config.log_file else "-")
        table.add_row("Log level", config.log_level)

        console.print(table)
        return 0

    console.print("[yellow]Use --init or --show[/yellow]")
    return 1


def _discard_stdout() -> None:
    # Reader went away; later flushes of stdout land in devnull
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, sys.stdout.fileno())


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code.

    """
    args = parse_args(argv)

    try:
        config = SweepConfig.load(args.config)
        setup_logging(config)

        if args.command == "clean":
            return cmd_clean(config, args)
        elif args.command == "combine":
            return cmd_combine(config, args)
        elif args.command == "config":
            return cmd_config(config, args)
    except ConfigurationError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1
    except BrokenPipeError:
        _discard_stdout()
        return 1

    err_console.print("[yellow]Use one of: clean, combine, config (see --help)[/yellow]")
    return 1


if __name__ == "__main__":
    sys.exit(main())
