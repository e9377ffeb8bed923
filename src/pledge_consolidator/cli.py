"""Command-line interface for the pledge consolidator."""

import argparse
import sys
from datetime import date, datetime
from pathlib import Path

import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table as RichTable

from pledge_consolidator import __version__
from pledge_consolidator.config import Config, ConfigError, load_config
from pledge_consolidator.models.household import MergePolicy
from pledge_consolidator.models.results import ImportResult
from pledge_consolidator.utils.decimal_utils import format_currency, sum_amounts
from pledge_consolidator.utils.logging_config import get_logger, setup_logging

# Load environment variables from .env file (if it exists)
load_dotenv()

console = Console()
logger = get_logger(__name__)

# Errors listed in the console summary before truncating
MAX_ERRORS_SHOWN = 10


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="pledge-consolidator",
        description=(
            "Consolidate pledge transaction exports into a year-over-year "
            "household comparison"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s exports/fy24.xlsx exports/fy25.xlsx
  %(prog)s ./exports -o comparison.csv --errors-output errors.csv
  %(prog)s fy25.csv --category-keyword "Annual Pledge" --merge-policy last_wins
  %(prog)s ./exports --detect-only
        """,
    )

    # Version
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "inputs",
        nargs="*",
        type=Path,
        metavar="FILE",
        help="Transaction export files or directories containing them",
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Comparison CSV path (default: analysis/YYYYMMDD_HHMMSS/comparison.csv)",
    )

    parser.add_argument(
        "--errors-output",
        type=Path,
        default=None,
        help="Also write row and account errors to this CSV",
    )

    # Configuration
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to settings.yaml (default: config/settings.yaml)",
    )

    parser.add_argument(
        "--config-dir",
        type=Path,
        default=Path("config"),
        help="Base config directory (default: ./config)",
    )

    # Import overrides
    parser.add_argument(
        "--category-keyword",
        default=None,
        help="Type labels containing this text are imported (default: from config)",
    )

    parser.add_argument(
        "--merge-policy",
        choices=[p.value for p in MergePolicy],
        default=None,
        help="Which file supplies age and zip for accounts in several files",
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Parse this many files in parallel (default: from config)",
    )

    parser.add_argument(
        "--reference-date",
        type=lambda s: date.fromisoformat(s),
        default=None,
        help="Date ages are computed at (YYYY-MM-DD, default: today)",
    )

    # Verbosity
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (-v, -vv)",
    )

    # Modes
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse files but do not write output",
    )

    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Validate configuration files only",
    )

    parser.add_argument(
        "--detect-only",
        action="store_true",
        help="Report header format detection for each file and exit",
    )

    return parser


def get_log_level(verbosity: int) -> str:
    """Convert verbosity count to log level.

    Args:
        verbosity: Number of -v flags.

    Returns:
        Log level string.
    """
    if verbosity >= 2:
        return "DEBUG"
    elif verbosity >= 1:
        return "INFO"
    else:
        return "WARNING"


def generate_default_output_path() -> Path:
    """Generate default output path with timestamp.

    Returns:
        Path with format analysis/YYYYMMDD_HHMMSS/comparison.csv
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Path(f"analysis/{timestamp}/comparison.csv")


def validate_output_path(path: Path, base_dir: Path | None = None) -> Path:
    """Validate that output path is within allowed directory.

    Args:
        path: The path to validate.
        base_dir: Base directory to constrain paths within (default: cwd).

    Returns:
        The resolved, validated path.

    Raises:
        ValueError: If the path escapes the allowed directory.
    """
    if base_dir is None:
        base_dir = Path.cwd()

    resolved_base = base_dir.resolve()
    resolved_path = (base_dir / path).resolve()

    try:
        resolved_path.relative_to(resolved_base)
    except ValueError:
        raise ValueError(
            f"Invalid path: '{path}' escapes the allowed directory. "
            f"Paths must be within '{resolved_base}'"
        ) from None

    return resolved_path


def validate_config(args: argparse.Namespace) -> int:
    """Validate configuration files.

    Args:
        args: Parsed command-line arguments.

    Returns:
        0 if valid, 1 if errors found.
    """
    console.print("[bold]Validating configuration files...[/bold]\n")

    settings_path = args.config or (args.config_dir / "settings.yaml")
    if settings_path.exists():
        console.print(f"[green]✓[/green] Settings: {settings_path}")
    else:
        console.print(f"[yellow]Settings file not found: {settings_path} (defaults apply)[/yellow]")

    try:
        config = load_config(settings_path=args.config, config_dir=args.config_dir)
    except (ConfigError, yaml.YAMLError) as e:
        console.print(f"\n[red]Errors:[/red]\n  - Failed to load configuration: {e}")
        return 1

    importing = config.importing
    console.print("\n[green]✓[/green] Configuration loaded successfully")
    console.print(f"  - Category keyword: {importing.category_keyword}")
    console.print(f"  - Required columns: {', '.join(importing.required_columns)}")
    console.print(f"  - Merge policy: {importing.merge_policy.value}")
    console.print("\n[green]Configuration is valid.[/green]")
    return 0


def apply_overrides(config: Config, args: argparse.Namespace) -> None:
    """Apply command-line overrides to the loaded configuration."""
    if args.category_keyword:
        config.importing.category_keyword = args.category_keyword
    if args.merge_policy:
        config.importing.merge_policy = MergePolicy(args.merge_policy)
    if args.workers:
        config.importing.max_workers = args.workers


def detect_only(files: list[Path], config: Config) -> int:
    """Print the header format detection result for each file."""
    from pledge_consolidator.parsers import FileDetector, ParseError, FormatSignature, detect_format

    detector = FileDetector()
    signature = FormatSignature.from_config(config.importing)

    table = RichTable(title="Format detection")
    table.add_column("File")
    table.add_column("Confidence")
    table.add_column("Missing required columns")

    for file_path in files:
        try:
            headers = detector.read_file(file_path).headers
        except ParseError as e:
            table.add_row(file_path.name, "[red]unreadable[/red]", str(e))
            continue
        result = detect_format(headers, signature)
        style = "green" if result.is_match else "yellow"
        table.add_row(
            file_path.name,
            f"[{style}]{result.confidence.value}[/{style}]",
            ", ".join(result.missing) or "-",
        )

    console.print(table)
    return 0


def display_summary(result: ImportResult, total_files: int, decimal_places: int) -> None:
    """Display import summary.

    Args:
        result: Import result.
        total_files: Files supplied on the command line.
        decimal_places: Decimal places for amount totals.
    """
    rows_read = sum(r.rows_read for r in result.file_results)
    rows_accepted = sum(r.rows_accepted for r in result.file_results)
    rows_rejected = sum(r.rows_rejected for r in result.file_results)

    console.print("\n[bold]Import Summary[/bold]")
    console.print(f"  Files found: {total_files}")
    console.print(f"  Files imported: {len(result.file_results)}")
    console.print(f"  Rows read: {rows_read}")
    console.print(f"  Rows imported: {rows_accepted}")
    console.print(f"  Rows rejected: {rows_rejected}")
    console.print(f"  Households: {result.total_accounts}")
    console.print(f"  Comparison rows: {len(result.rows)}")
    if result.current_year is not None:
        current_total = sum_amounts([r.pledge_current for r in result.rows])
        prior_total = sum_amounts([r.pledge_prior for r in result.rows])
        console.print(
            f"  FY{result.current_year}: {format_currency(current_total, decimal_places)}  "
            f"FY{result.prior_year}: {format_currency(prior_total, decimal_places)}"
        )
    if result.has_negative_values:
        console.print("  [yellow]Negative charges (refunds or corrections) were found[/yellow]")

    if result.file_errors:
        console.print(f"\n[yellow]Skipped files ({len(result.file_errors)}):[/yellow]")
        for f in result.file_errors[:MAX_ERRORS_SHOWN]:
            console.print(f"  - {f}")
        if len(result.file_errors) > MAX_ERRORS_SHOWN:
            console.print(f"  ... and {len(result.file_errors) - MAX_ERRORS_SHOWN} more")

    if result.errors:
        console.print(f"\n[red]Errors ({len(result.errors)}):[/red]")
        for e in result.errors[:MAX_ERRORS_SHOWN]:
            console.print(f"  - {e}")
        if len(result.errors) > MAX_ERRORS_SHOWN:
            console.print(f"  ... and {len(result.errors) - MAX_ERRORS_SHOWN} more")


def create_progress() -> Progress:
    """Create a progress display.

    Returns:
        Rich Progress instance.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        console=console,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments (default: sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Set up logging
    log_level = get_log_level(args.verbose)
    setup_logging(level=log_level, console_output=args.verbose > 0)

    # Validate only mode
    if args.validate_only:
        return validate_config(args)

    if not args.inputs:
        console.print("[red]Error: at least one FILE is required[/red]")
        parser.print_usage()
        return 1

    if args.workers is not None and args.workers < 1:
        console.print("[red]Error: --workers must be at least 1[/red]")
        return 1

    for path in args.inputs:
        if not path.exists():
            console.print(f"[red]Error: Input not found: {path}[/red]")
            return 1

    # Load configuration
    try:
        config = load_config(settings_path=args.config, config_dir=args.config_dir)
    except (ConfigError, yaml.YAMLError) as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print("Run with --validate-only to check configuration files.")
        return 1

    # Log file and level from settings once the config is known
    setup_logging(
        level=log_level if args.verbose else config.logging.level,
        log_file=config.logging.file,
        console_output=args.verbose > 0,
    )
    apply_overrides(config, args)

    from pledge_consolidator.output import CSVExporter
    from pledge_consolidator.parsers import FileDetector
    from pledge_consolidator.processing import PledgeImporter

    with console.status("[bold green]Discovering files..."):
        files = FileDetector().expand_inputs(args.inputs)

    if not files:
        console.print("[yellow]No supported files found.[/yellow]")
        return 0

    if args.detect_only:
        return detect_only(files, config)

    try:
        output_path = validate_output_path(args.output or generate_default_output_path())
        errors_path = validate_output_path(args.errors_output) if args.errors_output else None
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    console.print(f"[bold]Pledge Consolidator v{__version__}[/bold]\n")
    console.print(f"Files: {len(files)}")
    console.print(f"Category keyword: {config.importing.category_keyword}")
    if not args.dry_run:
        console.print(f"Output file: {output_path}")

    importer = PledgeImporter(config.importing, reference_date=args.reference_date)

    with create_progress() as progress:
        task = progress.add_task("Parsing files...", total=len(files))
        outcomes = []
        if config.importing.max_workers > 1:
            outcomes = importer.parse_files(files, config.importing.max_workers)
            progress.update(task, advance=len(files))
        else:
            for file_path in files:
                progress.console.print(f"  Parsing {file_path.name}")
                outcomes.append(importer.parse_file(file_path))
                progress.update(task, advance=1)

    with console.status("[bold green]Combining files..."):
        result = importer.assemble(outcomes)

    display_summary(result, len(files), config.output.decimal_places)

    if result.fatal_error:
        console.print(f"\n[red]Error: {result.fatal_error}[/red]")
        return 1

    if args.dry_run:
        console.print("\n[yellow]Dry run - no output generated[/yellow]")
        return 0

    exporter = CSVExporter(config.output)
    exporter.export_rows(output_path, result.rows)
    console.print(f"\n[green]Comparison written to {output_path}[/green]")

    if errors_path is not None:
        exporter.export_errors(errors_path, result.errors)
        console.print(f"[green]Errors written to {errors_path}[/green]")

    return 0


if __name__ == "__main__":
    sys.exit(main())
