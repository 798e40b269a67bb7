"""Main CLI interface for CPEShield."""

import time
from pathlib import Path
from typing import Optional
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..core.cpe import SoftwareIdentifier
from ..core.scanner import VulnerabilityScanner
from ..core.version import Version
from ..output.formatters import ConsoleFormatter, JSONFormatter
from ..store.offline import OfflineVulnerabilityStore, StoreConfig
from ..utils.logging import setup_logging, get_logger

DATABASE_ENV_VAR = "CPESHIELD_DATABASE"

app = typer.Typer(
    name="cpeshield",
    help="Check CPE-identified software versions against a local vulnerability database",
    add_completion=False
)

console = Console()
logger = get_logger("CLI")

DatabaseOption = typer.Option(
    ...,
    "--database",
    "-d",
    envvar=DATABASE_ENV_VAR,
    help="JSON file or directory of JSON files with vulnerability data"
)


def _open_store(database_path: Path, show_progress: bool = True) -> OfflineVulnerabilityStore:
    """Load the offline store, raising ValueError if the path is missing."""
    store = OfflineVulnerabilityStore(StoreConfig(database_path))
    store.load(show_progress=show_progress)
    return store


@app.command()
def check(
    cpe: str = typer.Argument(..., help="CPE 2.2 or 2.3 name, e.g. cpe:/a:apache:struts:2.3.1"),
    database_path: Path = DatabaseOption,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file for JSON results"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
    performance: bool = typer.Option(
        False,
        "--performance",
        help="Show performance summary"
    ),
    sort_input: bool = typer.Option(
        False,
        "--sort-input",
        help="Sort the software records by vulnerability id before grouping"
    ),
    fail_on_match: bool = typer.Option(
        False,
        "--fail-on-match",
        help="Exit with status 2 when any vulnerability matches"
    )
) -> None:
    """List the vulnerabilities affecting a CPE-identified software version."""
    setup_logging(verbose=verbose)

    identifier = SoftwareIdentifier.parse(cpe)
    if not identifier.is_valid:
        console.print(f"[red]Error: Not a CPE name with vendor and product: {escape(cpe)}[/red]")
        raise typer.Exit(1)

    try:
        store = _open_store(database_path)
        scanner = VulnerabilityScanner(store, presorted=not sort_input)

        start_time = time.perf_counter()
        vulnerabilities = scanner.get_vulnerabilities(cpe)
        scan_time = time.perf_counter() - start_time

        ConsoleFormatter(console).format_scan_results(cpe, vulnerabilities, scan_time)

        if output:
            json_formatter = JSONFormatter(output)
            results = json_formatter.format_scan_results(
                cpe,
                vulnerabilities,
                scan_time,
                metadata={"database": str(database_path), "version": __version__}
            )
            json_formatter.save_results(results)

        if performance:
            scanner.performance_monitor.print_summary(console)
    except (ValueError, OSError) as e:
        logger.error(f"Check failed: {e}")
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if fail_on_match and vulnerabilities:
        raise typer.Exit(2)


@app.command()
def compare(
    left: str = typer.Argument(..., help="First version"),
    right: str = typer.Argument(..., help="Second version")
) -> None:
    """Show how two versions are tokenized and ordered."""
    ConsoleFormatter(console).format_version_comparison(Version.parse(left), Version.parse(right))


@app.command()
def products(
    database_path: Path = DatabaseOption,
    vendor: Optional[str] = typer.Option(
        None,
        "--vendor",
        help="Only list products of this vendor"
    )
) -> None:
    """List the vendor/product pairs present in the database."""
    try:
        store = _open_store(database_path, show_progress=False)
    except (ValueError, OSError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    pairs = sorted(store.get_vendor_product_list())
    if vendor:
        pairs = [pair for pair in pairs if pair[0] == vendor.lower()]

    if not pairs:
        console.print("[yellow]No products found[/yellow]")
        return

    table = Table(title="Products")
    table.add_column("Vendor", style="cyan")
    table.add_column("Product", style="green")
    table.add_column("CPEs", justify="right")
    for pair_vendor, pair_product in pairs:
        table.add_row(
            escape(pair_vendor),
            escape(pair_product),
            str(len(store.get_cpes(pair_vendor, pair_product))),
        )
    console.print(table)


@app.command()
def stats(database_path: Path = DatabaseOption) -> None:
    """Load the database and show its statistics."""
    try:
        store = _open_store(database_path, show_progress=False)
    except (ValueError, OSError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if not store.data_exists():
        console.print("[yellow]Database contains no vulnerable software entries[/yellow]")
        raise typer.Exit(1)

    database_stats = store.get_database_stats()
    console.print("Database loaded successfully")
    console.print(f"   {database_stats['total_vulnerabilities']} vulnerabilities")
    console.print(f"   {database_stats['total_products']} products")
    console.print(f"   {database_stats['total_software_entries']} software entries")


@app.command()
def info() -> None:
    """Show CPEShield information."""
    console.print(Panel.fit(
        f"[bold blue]CPEShield[/bold blue] {__version__}\n"
        "Checks CPE-identified software versions against\n"
        "vulnerable-software ranges from a local database",
        title="Information"
    ))


def main() -> None:
    """Main entry point for CPEShield CLI."""
    app()


if __name__ == "__main__":
    main()
