"""
main.py
CLI entry point for the SoF Event Extractor.

Usage:
  python main.py extract --file /path/to/sof.pdf [--json]
  python main.py demo
  python main.py api
"""
import argparse
import json
import sys
from pathlib import Path

# Ensure project root is on sys.path when running directly
sys.path.insert(0, str(Path(__file__).parent))

# ── Reference port call used by demo mode ─────────────────────────────────────
DEMO_EVENTS = [
    ("Vessel arrived at anchorage",            "Anchorage",        "2024-05-01 06:00", "2024-05-01 06:00"),
    ("NOR tendered",                           "Arrival",          "2024-05-01 06:30", "2024-05-01 06:30"),
    ("Pilot attended on board",                "Arrival",          "2024-05-02 08:00", "2024-05-02 08:00"),
    ("Vessel shifting to berth",               "Arrival",          "2024-05-02 08:00", "2024-05-02 10:15"),
    ("All fast alongside berth No. 4",         "Arrival",          "2024-05-02 10:15", "2024-05-02 10:15"),
    ("Commenced discharging hold No. 1",       "Cargo Operations", "2024-05-02 12:00", "2024-05-03 20:00"),
    ("Rain - discharging suspended",           "Stoppages",        "2024-05-03 02:00", "2024-05-03 05:30"),
    ("Commenced discharging hold No. 2",       "Cargo Operations", "2024-05-03 14:00", "2024-05-05 09:00"),
    ("Bunkering by barge",                     "Bunkering",        "2024-05-05 13:00", "2024-05-05 17:30"),
    ("Completed discharging, draft survey",    "Cargo Operations", "2024-05-05 18:00", "2024-05-05 19:00"),
    ("Pilot on board, unmoored",               "Departure",        "2024-05-05 21:00", "2024-05-05 21:40"),
]


def run_demo() -> None:
    from rich import box
    from rich.console import Console
    from rich.table import Table

    from laytime.calculator import LaytimeCalculator
    from timeline.builder import build_timeline_blocks
    from timeline.models import PortEvent
    from timeline.timeutils import format_hours

    console = Console()
    console.print("\n[bold blue]═══ SOF EVENT EXTRACTOR — DEMO ═══[/bold blue]\n")

    events = [PortEvent.parse(text, cat, start, end) for text, cat, start, end in DEMO_EVENTS]
    blocks = build_timeline_blocks(events)

    table = Table(title="Timeline Blocks", box=box.ROUNDED, show_lines=True)
    table.add_column("Block",    style="cyan", width=36)
    table.add_column("Category", width=18)
    table.add_column("Start",    width=17)
    table.add_column("End",      width=17)
    table.add_column("Duration", justify="right", style="green", width=10)
    table.add_column("Events",   justify="right", width=6)
    for b in blocks:
        table.add_row(
            b.name, b.category.label,
            f"{b.start_time:%Y-%m-%d %H:%M}", f"{b.end_time:%Y-%m-%d %H:%M}",
            b.duration, str(len(b.sub_events)),
        )
    console.print(table)

    result = LaytimeCalculator().calculate(events)
    console.print("\n  [bold]Laytime:[/bold]")
    for line in result.calculation_log:
        console.print(f"    • {line}")
    status = "[red]ON DEMURRAGE[/red]" if result.on_demurrage else "[green]WITHIN LAYTIME[/green]"
    console.print(f"\n  [bold]Status:[/bold] {status}")
    console.print(f"  [bold]Time saved:[/bold]     {format_hours(result.time_saved_hours)}")
    console.print(f"  [bold]Demurrage:[/bold]      {format_hours(result.demurrage_hours)}")
    console.print(f"  [bold]Demurrage cost:[/bold] {result.currency}{result.demurrage_cost:,.2f}\n")


# ── Extract mode ──────────────────────────────────────────────────────────────

def run_extract(path: str, as_json: bool = False) -> int:
    from extraction.extractor import ExtractionError
    from extraction.pipeline import SofPipeline
    from ingestion.document_reader import SofDocumentReader

    try:
        document = SofDocumentReader().read(path)
        processed = SofPipeline().process(document.full_text)
    except ExtractionError as exc:
        print(f"Extraction failed: {exc}", file=sys.stderr)
        return 2
    except FileNotFoundError as exc:
        print(f"Cannot read SoF: {exc}", file=sys.stderr)
        return 2
    except ValueError as exc:
        print(f"Invalid SoF: {exc}", file=sys.stderr)
        return 2

    payload = {
        "result": processed.extraction.model_dump(by_alias=True, mode="json"),
        "guardrailReport": processed.guardrail_report,
    }
    if as_json:
        print(json.dumps(payload, indent=2))
        return 0 if processed.passed else 1

    from rich.console import Console
    from rich.markup import escape
    console = Console()
    ex = processed.extraction
    console.print(f"\n  [bold]Vessel:[/bold] {ex.vessel_name}")
    console.print(f"  [bold]Port:[/bold]   {ex.port_of_call or '—'}")
    console.print(f"  [bold]Events:[/bold] {len(ex.events)}")
    for w in processed.guardrail_report.get("warnings", []):
        console.print(f"  [yellow]⚠  {w}[/yellow]")
    for issue in processed.guardrail_report.get("issues", []):
        console.print(f"  [red]✖  {issue}[/red]")
    for block in ex.timeline_blocks or []:
        console.print(f"  {block.category.label:<17} {block.start_time} → {block.end_time}  {escape(block.name)} ({block.duration})")
    if ex.laytime_calculation:
        lc = ex.laytime_calculation
        console.print(f"\n  [bold]Laytime ({lc.source}):[/bold] used {lc.total_laytime}, allowed {lc.allowed_laytime}")
        console.print(f"  [bold]Demurrage:[/bold] {lc.demurrage or '—'}  cost {lc.demurrage_cost or '—'}")
    if ex.events_summary:
        console.print(f"\n{ex.events_summary}\n")
    return 0 if processed.passed else 1


# ── API mode ──────────────────────────────────────────────────────────────────

def run_api() -> None:
    import uvicorn
    from config.settings import settings
    from monitoring import start_metrics_server
    start_metrics_server(settings.metrics_port)
    uvicorn.run(
        "api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Maritime Statement of Fact event extractor")
    sub = parser.add_subparsers(dest="command", required=True)

    p_extract = sub.add_parser("extract", help="Extract events from an SoF file (.pdf or .txt)")
    p_extract.add_argument("--file", required=True, help="Path to the SoF document")
    p_extract.add_argument("--json", action="store_true", help="Print the raw JSON result")

    sub.add_parser("demo", help="Build timeline blocks and laytime for a sample port call (no LLM)")
    sub.add_parser("api", help="Serve the REST API")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "extract":
        return run_extract(args.file, as_json=args.json)
    if args.command == "demo":
        run_demo()
    elif args.command == "api":
        run_api()
    return 0


if __name__ == "__main__":
    sys.exit(main())
