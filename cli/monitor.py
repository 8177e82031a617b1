"""Genzex Monitor CLI: live connection tables, log filters, settings and ad hoc analysis."""

from __future__ import annotations

import argparse
import csv
import json
import os
import signal
import sys
import time

from rich.console import Console
from rich.table import Table

from monitor_engine.backend import BackendError, resolve_backend
from monitor_engine.config_loader import DEFAULT_SHARED_SETTINGS, load_settings
from monitor_engine.models import LOG_FILTERS, MALICIOUS, SAFE, SUSPICIOUS

console = Console()
status_console = Console(stderr=True)

THREAT_STYLES = {SAFE: "green", SUSPICIOUS: "yellow", MALICIOUS: "bold red"}
VIEWS = ("connections", "logs", "stats", "model")


def resolve_url(cli_url, settings):
    return cli_url or os.environ.get("GENZEX_API_URL") or settings.get("api_url")


def parse_setting(value):
    """Parse ``KEY=true|false`` from ``--set``."""
    key, sep, raw = value.partition("=")
    if not sep or raw.lower() not in ("true", "false", "1", "0", "on", "off"):
        raise argparse.ArgumentTypeError(f"Expected KEY=true|false, got '{value}'")
    return key.strip(), raw.lower() in ("true", "1", "on")


def connection_rows(connections):
    return [conn.to_dict() for conn in connections]


def export_results(rows, export_type, filename):
    if not filename:
        filename = f"genzex_export.{export_type}"

    filepath = os.path.join(os.getcwd(), filename)

    if export_type == "json":
        with open(filepath, "w") as f:
            json.dump(rows, f, indent=2)
    elif export_type == "csv":
        keys = rows[0].keys() if rows else []
        with open(filepath, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=keys)
            writer.writeheader()
            writer.writerows(rows)
    console.print(f"[green]✔ {export_type.upper()} export saved to {filepath}[/green]")
    return filepath


def print_connections(connections, title):
    table = Table(title=title)
    table.add_column("Time", justify="left")
    table.add_column("App", justify="left")
    table.add_column("Remote", justify="left")
    table.add_column("Proto", justify="left")
    table.add_column("Threat", justify="left")
    table.add_column("Confidence", justify="right")
    table.add_column("Blocked", justify="center")

    for conn in connections:
        style = THREAT_STYLES.get(conn.threat_level, "white")
        table.add_row(
            conn.timestamp,
            conn.app_name,
            f"{conn.ip_address}:{conn.port}",
            conn.protocol,
            f"[{style}]{conn.threat_level}[/{style}]",
            f"{conn.confidence:.0%}" if conn.confidence else "-",
            "🚫" if conn.blocked else "",
        )

    console.print(table)


def print_stats(stats, settings):
    table = Table(title="Dashboard")
    table.add_column("Metric", justify="left")
    table.add_column("Value", justify="right")
    table.add_row("Active connections", str(stats.total))
    table.add_row("[green]Safe[/green]", str(stats.safe))
    table.add_row("[yellow]Suspicious[/yellow]", str(stats.suspicious))
    table.add_row("[red]Malicious[/red]", str(stats.malicious))
    table.add_row("Blocked (total)", str(stats.blocked))
    table.add_row("Model active", "yes" if stats.model_active else "no")
    table.add_row("Avg confidence", f"{stats.avg_confidence:.2f}")
    for key, value in settings.to_dict().items():
        table.add_row(key, "on" if value else "off")
    console.print(table)


def print_model(status):
    table = Table(title=f"{status.name} {status.version}")
    table.add_column("Field", justify="left")
    table.add_column("Value", justify="right")
    table.add_row("Loaded", "yes" if status.loaded else "no (prefix fallback)")
    table.add_row("Size", f"{status.size} bytes")
    table.add_row("Inferences", str(status.total_inferences))
    table.add_row("Avg latency", f"{status.avg_latency} ms")
    table.add_row("Accuracy", f"{status.accuracy}%")
    table.add_row("Last inference", status.last_inference or "-")
    console.print(table)


def render(backend, args):
    """Print one view; returns the rows that view would export."""
    if args.view == "stats":
        stats = backend.get_stats()
        if args.output == "json":
            print(json.dumps(stats.to_dict(), indent=2))
        else:
            print_stats(stats, backend.get_settings())
        return [stats.to_dict()]

    if args.view == "model":
        status = backend.get_model_status()
        if args.output == "json":
            print(json.dumps(status.to_dict(), indent=2))
        else:
            print_model(status)
        return [status.to_dict()]

    if args.view == "logs":
        connections = backend.get_logs(args.filter)
        title = f"Logs ({args.filter})"
    else:
        connections = backend.get_connections()
        title = "Active Connections"

    rows = connection_rows(connections)
    if args.output == "json":
        print(json.dumps(rows, indent=2))
    else:
        print_connections(connections, title)
    return rows


def clear_screen():
    os.system("clear" if os.name == "posix" else "cls")


def handle_sigint(sig, frame):
    console.print("\n[bold red]⏹ Watch mode terminated by user[/bold red]")
    sys.exit(0)


def build_parser():
    parser = argparse.ArgumentParser(description="Genzex network monitor")
    parser.add_argument("--url", default=None, help="API server URL (env GENZEX_API_URL, then settings api_url)")
    parser.add_argument("--local", action="store_true", help="Skip the API server and simulate in-process")
    parser.add_argument("--view", choices=VIEWS, default="connections", help="What to display")
    parser.add_argument("--filter", choices=LOG_FILTERS, default="ALL", help="Log filter for --view logs")
    parser.add_argument("--output", choices=["table", "json"], default="table", help="Display output")
    parser.add_argument("--export", choices=["json", "csv"], help="Save the displayed rows to a file")
    parser.add_argument("--filename", help="Filename to export to")
    parser.add_argument("--watch", action="store_true", help="Refresh continuously")
    parser.add_argument("--interval", type=int, default=3, help="Refresh interval in seconds")
    parser.add_argument(
        "--set",
        dest="updates",
        action="append",
        type=parse_setting,
        default=[],
        metavar="KEY=BOOL",
        help="Update a setting, e.g. --set firewallMode=true (repeatable)",
    )
    parser.add_argument("--analyze", metavar="IP", help="Classify a single IP and exit")
    parser.add_argument("--port", type=int, default=443, help="Port for --analyze")
    parser.add_argument("--protocol", default="TCP", help="Protocol for --analyze")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    settings = load_settings(defaults=DEFAULT_SHARED_SETTINGS)
    url = None if args.local else resolve_url(args.url, settings)

    backend, driver = resolve_backend(url, settings=settings)
    if backend.is_local:
        status_console.print("[cyan]🧪 Running on-device simulation (no API server)[/cyan]")

    try:
        if args.updates:
            updated = backend.update_settings(**dict(args.updates))
            status_console.print(f"[green]✔ Settings: {updated.to_dict()}[/green]")

        if args.analyze:
            result = backend.analyze(args.analyze, port=args.port, protocol=args.protocol)
            style = THREAT_STYLES.get(result.threat_level, "white")
            console.print(
                f"🤖 {args.analyze}:{args.port}/{args.protocol} -> "
                f"[{style}]{result.threat_level}[/{style}] "
                f"confidence={result.confidence:.2f} latency={result.latency_ms}ms"
            )
            return 0

        if args.watch:
            signal.signal(signal.SIGINT, handle_sigint)
            if driver is not None:
                driver.interval = args.interval
                driver.start()

        while True:
            if args.watch:
                clear_screen()
            rows = render(backend, args)

            if args.export:
                export_results(rows, args.export, args.filename)

            if not args.watch:
                break

            time.sleep(args.interval)
    except BackendError as exc:
        status_console.print(f"[red]❌ {exc}[/red]")
        return 1
    except ValueError as exc:
        status_console.print(f"[red]❌ {exc}[/red]")
        return 2
    finally:
        if driver is not None and driver.running:
            driver.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
