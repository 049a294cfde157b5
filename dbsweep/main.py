"""dbsweep CLI - Find unused database tables and views in a codebase."""
from pathlib import Path
from typing import List, Optional
import time
import typer
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape

from dbsweep.config import __version__, get_config
from dbsweep.utils.logger import AnalysisLogger, setup_logging
from dbsweep.utils.safe_console import SafeConsole
from dbsweep.analyzer.context import AnalysisContext
from dbsweep.analyzer.database_analyzer import DatabaseAnalyzer
from dbsweep.analyzer.file_scanner import scan_files
from dbsweep.analyzer.graph_builder import build_database_graph, write_graphml
from dbsweep.analyzer.models import AnalysisError, DatabaseAnalysis, TableEntity
from dbsweep.analyzer.report import build_recommendations, load_usage_operations, write_json_report

app = typer.Typer(
    name="dbsweep",
    help="Find unused database tables and views in a codebase",
    add_completion=False
)
# Use SafeConsole for Windows Unicode compatibility
console = SafeConsole()


def _entity_rows(entities: List[TableEntity]):
    for entity in sorted(entities, key=lambda e: (e.live_code_score, e.name)):
        status = "[green]live[/green]" if entity.live_code_score > 0 else "[red]dead[/red]"
        location = entity.file_path
        if entity.line is not None:
            location = f"{location}:{entity.line}"
        yield (
            escape(entity.name),
            entity.type,
            str(len(entity.operations)),
            escape(location),
            status,
        )


def _print_summary(analysis: DatabaseAnalysis, elapsed: float):
    entities = analysis.tables + analysis.views
    if entities:
        table = Table(title="Database Entities", show_header=True, header_style="bold magenta")
        table.add_column("Name", style="cyan")
        table.add_column("Type", style="yellow")
        table.add_column("Operations", justify="right")
        table.add_column("Defined At", style="magenta", no_wrap=False)
        table.add_column("Status")
        for row in _entity_rows(entities):
            table.add_row(*row)
        console.print(table)
    else:
        console.print("[bold yellow]No database tables or views found.[/bold yellow]\n")

    unused = len(analysis.unused_tables) + len(analysis.unused_views)
    console.print(Panel(
        f"Tables: {len(analysis.tables)}  Views: {len(analysis.views)}  "
        f"Operations: {analysis.total_operations}  Queries: {len(analysis.queries)}\n"
        f"Unused entities: {unused}  Dead code: {analysis.dead_code_percentage:.2f}%\n"
        f"Completed in {elapsed:.2f}s",
        title="📊 Summary",
        border_style="blue",
    ))

    for recommendation in build_recommendations(analysis):
        console.print(f"  • {escape(recommendation)}")


@app.command()
def analyze(
    project_path: str = typer.Argument(".", help="Project root path to analyze"),
    usage: Optional[Path] = typer.Option(None, "--usage", "-u", help="JSON file with observed usage operations"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the JSON report to this file"),
    graphml: Optional[Path] = typer.Option(None, "--graphml", help="Write the dependency graph as GraphML"),
    log_file: bool = typer.Option(True, "--log-file/--no-log-file", help="Write a per-repository analysis log"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging on stderr"),
):
    """Scan a project and report live and dead database tables and views."""
    config = get_config()
    setup_logging("DEBUG" if verbose else config.log_level)

    project_path = Path(project_path).resolve()
    if not project_path.exists():
        console.print(f"[bold red]Error:[/bold red] Project path does not exist: {escape(str(project_path))}")
        raise typer.Exit(1)

    usage_operations = None
    if usage is not None:
        try:
            usage_operations = load_usage_operations(usage)
        except (OSError, ValueError) as e:
            console.print(f"[bold red]Error:[/bold red] Could not load usage file: {escape(str(e))}")
            raise typer.Exit(1)

    console.print(f"[bold blue]Analyzing project:[/bold blue] {escape(str(project_path))}\n")
    start_time = time.time()

    analysis_logger = AnalysisLogger(str(project_path), log_dir=config.log_dir, write_file=log_file)
    with analysis_logger:
        analysis_logger.log_analysis_start(str(project_path), str(project_path))
        context = AnalysisContext.from_config(config, logger=analysis_logger)
        analyzer = DatabaseAnalyzer(context)

        files = scan_files(project_path, max_file_size=config.max_file_size)
        try:
            analysis = analyzer.analyze_database_operations(files)
            # Without external evidence the code's own operations count as usage
            if usage_operations is None:
                usage_operations = analysis.operations
            analysis = analyzer.identify_used_unused_entities(analysis, usage_operations)
            nodes = analyzer.map_database_entities_to_nodes(analysis)
        except AnalysisError as e:
            console.print(f"[bold red]Analysis failed:[/bold red] {escape(e.message)}")
            raise typer.Exit(1)

        analysis_logger.log_analysis_complete({
            'filesScanned': len(files),
            'totalTables': len(analysis.tables),
            'totalViews': len(analysis.views),
            'deadCodePercentage': analysis.dead_code_percentage,
        })

    _print_summary(analysis, time.time() - start_time)

    if output is not None:
        report_path = write_json_report(output, analysis, nodes)
        console.print(f"\n[green]✓[/green] Report written to {escape(str(report_path))}")

    if graphml is not None:
        graph = build_database_graph(analysis, nodes)
        write_graphml(graph, graphml)
        console.print(f"[green]✓[/green] Graph written to {escape(str(graphml))}")

    if log_file:
        console.print(f"[dim]Log: {escape(analysis_logger.get_log_path())}[/dim]")


@app.command()
def version():
    """Print the dbsweep version."""
    console.print(f"dbsweep {__version__}")


if __name__ == "__main__":
    app()
