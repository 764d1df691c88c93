"""
Command Line Interface for netcontrol.

This module provides the CLI entry point: submitting runs, running the
scheduler worker, inspecting and stopping runs, and managing configuration.
It uses Typer for commands and Rich for output.
"""

import asyncio
import json
import signal
import time
from typing import Optional, Dict, Any

import typer
import yaml
from rich.panel import Panel
from rich.table import Table
from rich import print as rich_print

from netcontrol.config import load_config, get_config, save_config, expand_path
from netcontrol.evolution.engine import GeneticEngine
from netcontrol.network.graph import Graph, parse_edge_lines, parse_node_lines
from netcontrol.runs.models import Run, RunStatus
from netcontrol.runs.scheduler import RunScheduler
from netcontrol.runs.submission import submit_run
from netcontrol.storage.run_store import RunStore, get_run_store
from netcontrol.utils.errors import NetControlError
from netcontrol.utils.logging import logger, console, configure_logging
from netcontrol.version import get_version_info

# Create main typer app
app = typer.Typer(
    name="netcontrol",
    help="Genetic search for target control configurations of directed networks",
    add_completion=False,
)

# Create subcommands
runs_app = typer.Typer(help="Run management commands")
config_app = typer.Typer(help="Configuration commands")

app.add_typer(runs_app, name="runs")
app.add_typer(config_app, name="config")


def _fail(message: str) -> None:
    rich_print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(code=1)


def _store(ctx: typer.Context) -> RunStore:
    database = (ctx.obj or {}).get("database")
    try:
        return get_run_store(expand_path(database) if database else None)
    except NetControlError as e:
        _fail(str(e))


def _format_time(timestamp: Optional[float]) -> str:
    if timestamp is None:
        return "-"
    return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(timestamp))


def _format_fitness(fitness: Optional[float]) -> str:
    return "-" if fitness is None else f"{fitness:.6f}"


def _read_lines(path: str):
    with open(expand_path(path), "r", encoding="utf-8") as f:
        return f.read().splitlines()


@app.callback()
def callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config file"),
    database: Optional[str] = typer.Option(None, "--database", "-d", help="Run database file"),
    log_file: Optional[str] = typer.Option(None, "--log-file", "-l", help="Log to specified file"),
) -> None:
    """
    Genetic search for target control configurations of directed networks.
    """
    try:
        config = load_config(config_file)
    except (NetControlError, FileNotFoundError) as e:
        _fail(f"Failed to load configuration: {e}")

    level = "DEBUG" if verbose else config.logging.level.upper()
    configure_logging(level, log_file or config.logging.log_file)

    ctx.obj = {"database": database}


@app.command()
def version() -> None:
    """
    Display version information.
    """
    info = get_version_info()

    version_panel = Panel(
        (
            f"[bold]netcontrol Version:[/bold] {info['version']}\n"
            f"[bold]Storage Format:[/bold] {info['storage_format_version']}\n"
            f"[bold]Python Version:[/bold] {info['python_version']}"
        ),
        title="netcontrol Version Information",
        border_style="blue",
    )

    console.print(version_panel)


@app.command()
def submit(
    ctx: typer.Context,
    edges_file: str = typer.Argument(..., help="Edges, one 'source;target' pair per line"),
    targets_file: str = typer.Argument(..., help="Target nodes, one per line"),
    preferred_file: Optional[str] = typer.Option(None, "--preferred", "-p", help="Preferred nodes, one per line"),
    parameters_file: Optional[str] = typer.Option(
        None, "--parameters", "-P", help="JSON file with algorithm parameters"
    ),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Run name"),
    seed: Optional[int] = typer.Option(None, "--seed", "-s", help="Random seed"),
) -> None:
    """
    Submit a new run to the queue.
    """
    try:
        edges = parse_edge_lines(_read_lines(edges_file))
        targets = parse_node_lines(_read_lines(targets_file))
        preferred = parse_node_lines(_read_lines(preferred_file)) if preferred_file else []

        overrides: Dict[str, Any] = {}
        if parameters_file:
            with open(expand_path(parameters_file), "r", encoding="utf-8") as f:
                overrides = json.load(f)
        if seed is not None:
            overrides["random_seed"] = seed
        parameters = get_config().default_parameters.with_overrides(overrides)

        graph = Graph.from_edges(edges, targets, preferred)
        run = submit_run(_store(ctx), name or f"Run {time.strftime('%Y-%m-%d %H:%M:%S')}", graph, parameters)
    except (OSError, json.JSONDecodeError) as e:
        _fail(str(e))
    except NetControlError as e:
        _fail(e.message)

    rich_print(f"[bold green]Submitted run[/bold green] {run.id}")
    rich_print(
        f"  {len(graph.nodes)} nodes, {len(graph.edges)} edges, "
        f"{len(graph.target_nodes)} targets, {len(graph.preferred_nodes)} preferred"
    )


@app.command()
def worker(
    ctx: typer.Context,
    once: bool = typer.Option(False, "--once", help="Process at most one run and exit"),
    idle_delay: Optional[float] = typer.Option(None, "--idle-delay", help="Seconds to wait when the queue is empty"),
) -> None:
    """
    Run the scheduler until interrupted.
    """
    scheduler_config = get_config().scheduler
    if idle_delay is not None:
        scheduler_config = scheduler_config.model_copy(update={"idle_delay": idle_delay})
    scheduler = RunScheduler(_store(ctx), scheduler_config)

    async def _run() -> None:
        if once:
            await scheduler.recover()
            processed = await scheduler.run_once()
            if not processed:
                rich_print("No scheduled run")
            return

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, scheduler.stop_event.set)
            except (NotImplementedError, RuntimeError):
                pass

        logger.startup(get_version_info()["version"], component="scheduler")
        started = time.time()
        await scheduler.run_forever()
        logger.shutdown(component="scheduler", duration=time.time() - started)

    try:
        asyncio.run(_run())
    except NetControlError as e:
        _fail(e.message)


@runs_app.command("list")
def runs_list(
    ctx: typer.Context,
    status: Optional[str] = typer.Option(None, "--status", help="Only runs with this status"),
    format: str = typer.Option("table", "--format", "-f", help="Output format (table, json)"),
) -> None:
    """
    List runs, oldest first.
    """
    runs = _store(ctx).list_runs()
    if status:
        runs = [run for run in runs if run["status"].lower() == status.lower()]

    if format.lower() == "json":
        typer.echo(json.dumps(runs, indent=2))
        return

    if not runs:
        rich_print("No runs")
        return

    table = Table(title="Runs")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Status", style="bold")
    table.add_column("Iteration", justify="right")
    table.add_column("Best fitness", justify="right", style="green")
    table.add_column("Created")

    for run in runs:
        table.add_row(
            run["id"],
            run["name"],
            run["status"],
            str(run["current_iteration"]),
            _format_fitness(run["best_fitness"]),
            _format_time(run["created_at"]),
        )

    console.print(table)


def _run_details(run: Run, solutions_limit: int) -> Dict[str, Any]:
    details = run.summary()
    details["current_iteration_without_improvement"] = run.current_iteration_without_improvement
    details["parameters"] = run.parameters.to_dict()
    details["execution_windows"] = [window.to_dict() for window in run.execution_windows]
    details["solutions"] = []
    if run.population is not None and solutions_limit > 0:
        engine = GeneticEngine(run.graph, run.parameters)
        details["solutions"] = [
            solution.to_dict() for solution in engine.solutions(run.population, limit=solutions_limit)
        ]
    return details


@runs_app.command("show")
def runs_show(
    ctx: typer.Context,
    run_id: str = typer.Argument(..., help="Run ID"),
    solutions: int = typer.Option(3, "--solutions", help="Number of control configurations to show"),
    format: str = typer.Option("table", "--format", "-f", help="Output format (table, json)"),
) -> None:
    """
    Show a run with its best control configurations.
    """
    try:
        run = _store(ctx).reload_run(run_id)
        details = _run_details(run, solutions)
    except NetControlError as e:
        _fail(e.message)

    if format.lower() == "json":
        typer.echo(json.dumps(details, indent=2))
        return

    console.print(Panel(
        (
            f"[bold]Name:[/bold] {run.name}\n"
            f"[bold]Status:[/bold] {run.status.value}\n"
            f"[bold]Iteration:[/bold] {run.current_iteration} / {run.parameters.maximum_iterations}\n"
            f"[bold]Without improvement:[/bold] {run.current_iteration_without_improvement} / "
            f"{run.parameters.maximum_iterations_without_improvement}\n"
            f"[bold]Best fitness:[/bold] {_format_fitness(run.best_fitness)}\n"
            f"[bold]Targets:[/bold] {len(run.graph.target_nodes)}\n"
            f"[bold]Created:[/bold] {_format_time(run.created_at)}\n"
            f"[bold]Updated:[/bold] {_format_time(run.updated_at)}"
        ),
        title=f"Run {run.id}",
        border_style="blue",
    ))

    for position, solution in enumerate(details["solutions"], start=1):
        table = Table(
            title=f"Configuration {position}: {len(solution['drivers'])} driver(s), "
                  f"fitness {solution['fitness']:.6f}"
        )
        table.add_column("Target", style="cyan")
        table.add_column("Driver", style="green")
        table.add_column("Path")
        for target, driver in solution["controls"].items():
            path = solution["paths"].get(target)
            table.add_row(target, driver, " -> ".join(path) if path else "-")
        console.print(table)


@runs_app.command("stop")
def runs_stop(
    ctx: typer.Context,
    run_id: str = typer.Argument(..., help="Run ID"),
) -> None:
    """
    Stop a run (immediately if it has not started, after its current generation otherwise).
    """
    try:
        run = _store(ctx).request_stop(run_id)
    except NetControlError as e:
        _fail(e.message)

    rich_print(f"Run {run.id} is now [bold]{run.status.value}[/bold]")


@runs_app.command("delete")
def runs_delete(
    ctx: typer.Context,
    run_id: str = typer.Argument(..., help="Run ID"),
    force: bool = typer.Option(False, "--force", help="Delete even if the run is being processed"),
) -> None:
    """
    Delete a run.
    """
    store = _store(ctx)
    try:
        run = store.reload_run(run_id)
    except NetControlError as e:
        _fail(e.message)

    if not force and not (run.status.is_final or run.status == RunStatus.SCHEDULED):
        _fail(f"Run {run_id} is {run.status.value}; stop it first or use --force")

    store.delete_run(run_id)
    rich_print(f"[bold green]Deleted run[/bold green] {run_id}")


@config_app.command("show")
def config_show(
    section: Optional[str] = typer.Argument(None, help="Config section to display"),
    format: str = typer.Option("table", "--format", "-f", help="Output format (table, json, yaml)"),
) -> None:
    """
    Show current configuration.
    """
    config_dict = get_config().model_dump()

    if section:
        if section not in config_dict:
            _fail(f"Section '{section}' not found in configuration")
        config_data = config_dict[section]
        title = f"Configuration - {section.upper()}"
    else:
        config_data = config_dict
        title = "Full Configuration"

    if format.lower() == "json":
        typer.echo(json.dumps(config_data, indent=2))
    elif format.lower() == "yaml":
        typer.echo(yaml.safe_dump(config_data, default_flow_style=False))
    else:
        _display_config_as_table(config_data, title)


def _display_config_as_table(config_data: Dict[str, Any], title: str) -> None:
    """
    Display configuration data as Rich tables, one per section.

    Args:
        config_data: Configuration data dictionary
        title: Table title
    """
    if isinstance(config_data, dict) and config_data and all(isinstance(v, dict) for v in config_data.values()):
        for section, section_data in config_data.items():
            _display_config_as_table(section_data, f"{title} - {section.upper()}")
        return

    table = Table(title=title)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key, value in sorted(config_data.items()):
        if isinstance(value, dict):
            value_str = "<nested configuration>"
        elif value is None:
            value_str = "None"
        else:
            value_str = str(value)
        table.add_row(key, value_str)

    console.print(table)
    console.print()


@config_app.command("save")
def config_save(
    path: str = typer.Argument(..., help="Path to save configuration file (.yaml, .yml or .json)"),
) -> None:
    """
    Save current configuration to a file.
    """
    try:
        save_config(path)
    except NetControlError as e:
        _fail(e.message)

    rich_print(f"[bold green]Configuration saved to {path}[/bold green]")


def main() -> None:
    """
    Main entry point for the CLI.
    """
    app()


if __name__ == "__main__":
    main()
