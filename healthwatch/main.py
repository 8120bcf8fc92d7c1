"""Entry point for healthwatch."""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from healthwatch.config import settings
from healthwatch.health.models import AggregateHealth, Status
from healthwatch.health.service import build_service, summarize

console = Console()

_STYLE = {
    Status.HEALTHY: "green",
    Status.WARNING: "yellow",
    Status.ERROR: "bold red",
    Status.SKIPPED: "dim",
}


def render(health: AggregateHealth) -> Table:
    table = Table(title=f"Overall: {health.status.value.upper()}", title_style=_STYLE[health.status])
    table.add_column("Resource")
    table.add_column("Status")
    table.add_column("Time", justify="right")
    table.add_column("Message")
    for r in health.results:
        table.add_row(
            r.resource_name,
            f"[{_STYLE[r.status]}]{r.status.value}[/]",
            f"{r.duration_ms:.0f}ms",
            r.message,
        )
    return table


def run_panel(resources: str | None) -> int:
    """Show every resource and its current health."""
    service = build_service(resources_path=resources)
    with console.status("[bold green]Checking resources..."):
        health = service.check_all()
    console.print(render(health))
    s = summarize(health)
    console.print(
        f"[dim]{s['total']} resources | {s['healthy']} healthy, {s['warning']} warning, "
        f"{s['error']} error, {s['skipped']} skipped[/dim]"
    )
    return 0 if health.status != Status.ERROR else 1


def run_check(resources: str | None) -> int:
    """Check silently and send notifications; the exit code reflects health."""
    service = build_service(resources_path=resources)
    health = service.check_silently()
    return 0 if health.status != Status.ERROR else 1


def run_server() -> None:
    """Start the FastAPI server."""
    console.print(Panel("Starting healthwatch API Server", style="bold green"))
    uvicorn.run(
        "healthwatch.api.server:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    parser = argparse.ArgumentParser(description="healthwatch — resource health checks")
    parser.add_argument("--resources", help="Path to resources.yaml (overrides settings)")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("panel", help="Show all resources and their current health states")
    sub.add_parser("check", help="Check resources health and send issue notifications")
    sub.add_parser("serve", help="Start the API server")

    args = parser.parse_args(argv)

    if args.command == "panel":
        sys.exit(run_panel(args.resources))
    elif args.command == "check":
        sys.exit(run_check(args.resources))
    elif args.command == "serve":
        run_server()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
