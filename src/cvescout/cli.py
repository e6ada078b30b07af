"""cvescout CLI - Command Line Interface.

A Typer CLI for looking up the CVEs affecting installed software.
"""

import asyncio
import html
import json
import sys
from collections.abc import Coroutine
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer
from loguru import logger
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from cvescout import __version__
from cvescout.config import get_settings
from cvescout.models.cpe import (
    CpePart,
    form_cpe23_string,
    format_product_name,
    format_vendor_name,
)
from cvescout.models.cve import (
    CveRecord,
    InventoryItem,
    cvss_background_color,
    format_cve_results,
    sort_by_published,
)
from cvescout.services import CveSearchService, InventoryService
from cvescout.utils.http_client import CveSearchAPIError

T = TypeVar("T")

# Terminal equivalents of the severity background colours
SEVERITY_STYLES = {
    "transparent": "bold",
    "lightblue": "bold black on light_sky_blue1",
    "yellow": "bold black on yellow",
    "orange": "bold black on orange1",
    "red": "bold black on red",
}

app = typer.Typer(
    name="cvescout",
    help="cvescout - CVE lookups for software inventories",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]cvescout[/] version [green]{__version__}[/]")
        raise typer.Exit()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity."""
    logger.remove()
    level = "DEBUG" if verbose else get_settings().log_level
    log_format = (
        "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
    )
    logger.add(sys.stderr, level=level, format=log_format)


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
) -> None:
    """cvescout - Match installed software against CVE-Search."""
    setup_logging(verbose)


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, turning server faults into a CLI error."""
    try:
        return asyncio.run(coro)
    except CveSearchAPIError as e:
        console.print(f"[red]✗[/] {e}")
        raise typer.Exit(1) from e


def _require_configured(service: CveSearchService) -> None:
    if not service.is_configured:
        console.print("[yellow]CVE-Search URL is not configured (set CVE_SEARCH_BASE_URL)[/]")


def _plain(text: str) -> str:
    """Undo the HTML escaping of summaries for terminal output."""
    return escape(html.unescape(text))


def render_cve_table(records: list[CveRecord], title: str) -> None:
    """Print CVE records as a table, colouring the CVSS column by severity."""
    if not records:
        console.print("[yellow]No CVE data found[/]")
        return

    table = Table(title=title, border_style="blue")
    table.add_column("CVE ID", style="cyan", no_wrap=True)
    table.add_column("Date Published")
    table.add_column("Date Modified")
    table.add_column("Publisher")
    table.add_column("Product")
    table.add_column("Summary", max_width=60)
    table.add_column("CVSS", justify="center")

    for record in records:
        style = SEVERITY_STYLES[cvss_background_color(record.cvss)]
        table.add_row(
            record.id,
            record.date_published or "",
            record.date_modified or "",
            escape(record.vendor or ""),
            escape(record.product or ""),
            _plain(record.summary),
            f"[{style}]{record.cvss:.1f}[/]",
        )

    console.print(table)


@app.command()
def cpe(
    vendor: Annotated[str, typer.Argument(help="Vendor name as recorded in the inventory")],
    product: Annotated[str, typer.Argument(help="Product name as recorded in the inventory")],
    version: Annotated[
        str,
        typer.Option("--version", "-r", help="Product version"),
    ] = "*",
    part: Annotated[
        CpePart,
        typer.Option("--part", "-p", help="CPE part: a, o or h"),
    ] = CpePart.APPLICATION,
) -> None:
    """Print the CPE 2.3 identifier of a product."""
    console.print(
        form_cpe23_string(
            part,
            format_vendor_name(vendor),
            format_product_name(product),
            version,
        ),
        markup=False,
    )


@app.command()
def software(
    vendor: Annotated[str, typer.Argument(help="Vendor name as recorded in the inventory")],
    product: Annotated[str, typer.Argument(help="Product name as recorded in the inventory")],
    version: Annotated[
        str | None,
        typer.Option("--version", "-r", help="Installed version (all versions when omitted)"),
    ] = None,
) -> None:
    """Show the CVEs affecting a product or one of its versions."""
    settings = get_settings()
    service = InventoryService(settings)
    _require_configured(service.client)

    records = _run(service.cves_for_version(vendor, product, version))
    render_cve_table(records, f"CVEs for {vendor} {product} {version or ''}".strip())


@app.command()
def scan(
    inventory: Annotated[
        Path,
        typer.Argument(
            help="JSON file listing {vendor, product, version} objects",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ],
) -> None:
    """Show the CVEs affecting every product of an inventory file."""
    try:
        items = TypeAdapter(list[InventoryItem]).validate_python(
            json.loads(inventory.read_text(encoding="utf-8"))
        )
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(
            f"[red]✗[/] Invalid inventory file {escape(str(inventory))}: {escape(str(e))}"
        )
        raise typer.Exit(1) from e

    settings = get_settings()
    service = InventoryService(settings)
    _require_configured(service.client)

    records = _run(service.cves_for_inventory(items))
    render_cve_table(records, f"CVEs for {len(items)} inventory items")


@app.command()
def cve(
    cve_id: Annotated[str, typer.Argument(help="CVE identifier, e.g. CVE-2021-44228")],
) -> None:
    """Show a single CVE."""
    settings = get_settings()
    service = CveSearchService(settings)
    _require_configured(service)

    entry = _run(service.get_cve(cve_id.upper()))
    records = (
        format_cve_results(
            [entry],
            strict=settings.cve_search.strict_cpe_parsing,
            abort_on_malformed=settings.cve_search.abort_on_malformed_batch,
        )
        if entry
        else []
    )
    # Error bodies such as {"message": "Not found"} carry no CVE ID
    if not records or not records[0].id:
        console.print(f"[yellow]No CVE data found for {escape(cve_id)}[/]")
        raise typer.Exit(0)

    record = records[0]
    style = SEVERITY_STYLES[cvss_background_color(record.cvss)]
    body = [
        _plain(record.summary),
        "",
        f"[bold]CVSS:[/] [{style}]{record.cvss:.1f}[/] {escape(record.cvss_vector or '')}",
        f"[bold]CWE:[/] {escape(record.cwe or 'N/A')}",
        f"[bold]Published:[/] {record.date_published or 'N/A'}",
        f"[bold]Modified:[/] {record.date_modified or 'N/A'}",
    ]
    if record.vulnerable_configs:
        products = sorted({f"{c.vendor}:{c.product}" for c in record.vulnerable_configs})
        body.append(f"[bold]Products:[/] {escape(', '.join(products))}")
    body.extend(f"  • {escape(ref)}" for ref in record.references)

    console.print(Panel("\n".join(body), title=f"[bold cyan]{record.id}[/]", border_style="blue"))


@app.command()
def recent(
    limit: Annotated[
        int,
        typer.Option("--limit", "-l", help="Number of CVEs to show"),
    ] = 10,
) -> None:
    """Show the latest published CVEs."""
    settings = get_settings()
    service = InventoryService(settings)
    _require_configured(service.client)

    feed = _run(service.recent_feed(limit))
    if not feed:
        console.print("[yellow]No CVE data found[/]")
        raise typer.Exit(0)

    table = Table(title="Latest CVEs", border_style="blue")
    table.add_column("CVE ID", style="cyan", no_wrap=True)
    table.add_column("Published")
    table.add_column("Summary", max_width=80)
    for item in feed:
        table.add_row(item.id, item.published_date or "", escape(item.summary))

    console.print(table)


@app.command()
def query(
    filters: Annotated[
        list[str] | None,
        typer.Option(
            "--filter",
            "-f",
            help="Filter as key=value, e.g. -f cvss_score=9 -f cvss_modifier=above",
        ),
    ] = None,
) -> None:
    """Search CVEs by CVSS score, time range and status."""
    criteria: dict[str, str] = {}
    for item in filters or []:
        key, sep, value = item.partition("=")
        if not sep:
            console.print(f"[red]✗[/] Invalid filter {escape(item)!r}, expected key=value")
            raise typer.Exit(1)
        criteria[key.strip()] = value.strip()

    settings = get_settings()
    service = CveSearchService(settings)
    _require_configured(service)

    entries = _run(service.query(criteria))
    records = format_cve_results(
        entries,
        strict=settings.cve_search.strict_cpe_parsing,
        abort_on_malformed=settings.cve_search.abort_on_malformed_batch,
    )
    render_cve_table(sort_by_published(records), "Query Results")


@app.command()
def vendors() -> None:
    """List the vendors known to CVE-Search."""
    settings = get_settings()
    service = CveSearchService(settings)
    _require_configured(service)

    for vendor in _run(service.get_vendors()):
        console.print(vendor, markup=False)


@app.command()
def products(
    vendor: Annotated[str, typer.Argument(help="Vendor name")],
) -> None:
    """List the products CVE-Search knows for a vendor."""
    settings = get_settings()
    service = CveSearchService(settings)
    _require_configured(service)

    for product in _run(service.get_products_by_vendor(vendor)):
        console.print(product, markup=False)


@app.command()
def config() -> None:
    """Show current configuration."""
    settings = get_settings()
    cve_search = settings.cve_search

    table = Table(title="cvescout Configuration", border_style="blue")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Log Level", settings.log_level)
    table.add_row("", "")
    table.add_row("[bold]CVE-Search[/]", "")
    table.add_row("  URL", escape(cve_search.base_url or "Not set"))
    table.add_row("  Verify TLS", "No" if cve_search.skip_tls_verify else "Yes")
    table.add_row("  Timeout", f"{cve_search.timeout}s")
    table.add_row("  Default Limit", str(cve_search.default_limit))
    table.add_row("  Max Concurrency", str(cve_search.max_concurrency))
    table.add_row("  Strict CPE Parsing", "Yes" if cve_search.strict_cpe_parsing else "No")
    table.add_row(
        "  Abort Malformed Batch",
        "Yes" if cve_search.abort_on_malformed_batch else "No",
    )

    console.print(table)


if __name__ == "__main__":
    app()
