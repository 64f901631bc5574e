"""Command-line interface for onchange."""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import typer
from rich import print
from rich.console import Console
from rich.markup import escape

from . import __version__
from .config import ConfigError, Settings, load_rules, parse_duration
from .debouncer import Debouncer
from .dispatcher import Dispatcher
from .models import WatchTarget
from .monitor import ChangeMonitor, WatchError
from .pipeline import ChangePipeline
from .rules import ExtensionRuleTable
from .template import Template

app = typer.Typer(
    name="onchange",
    help="Run a command whenever watched files change.",
    rich_markup_mode="rich",
    add_completion=False,
)
console = Console()


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        print(f"[cyan]onchange[/cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


def split_command(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Split argv at the first ``--`` into options/paths and the command."""
    argv = list(argv)
    if "--" not in argv:
        return argv, []
    index = argv.index("--")
    return argv[:index], argv[index + 1:]


def _duration(value: str, option: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint=option)


def _error(message: str):
    print(f"\n[bold red]Error[/bold red]: {escape(message)}")


@app.command(help="Watch paths and run a command on change. Put the command after [bold]--[/bold].")
def watch(
    ctx: typer.Context,
    paths: List[Path] = typer.Argument(
        ...,
        metavar="WATCH...",
        help="Paths to watch, any number of files or directories",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file, ignored if a command is given directly",
    ),
    duration: Optional[str] = typer.Option(
        None,
        "--duration",
        "-D",
        help="Debounce window, events within it are treated as one (default: 500ms)",
    ),
    delay: Optional[str] = typer.Option(
        None,
        "--delay",
        "-d",
        help="Delay before running the command (default: 50us)",
    ),
    recursive: bool = typer.Option(
        False,
        "--recursive",
        "-r",
        help="Watch directories recursively",
    ),
    render_only: bool = typer.Option(
        False,
        "--render-only",
        "-R",
        help="Render the command but do not run it",
    ),
    run_async: bool = typer.Option(
        False,
        "--async",
        "-a",
        help="Run commands without waiting for them to finish",
    ),
    ignore: Optional[List[str]] = typer.Option(
        None,
        "--ignore",
        "-i",
        help="Ignore pattern, unix shell style glob (repeatable)",
    ),
    variables_command: Optional[str] = typer.Option(
        None,
        "--variables-command",
        "-v",
        help="Command printing 'key: value' lines to use as extra template variables",
    ),
    template: Optional[str] = typer.Option(
        None,
        "--template",
        "-t",
        help="Template shown on change detection (default: {path})",
    ),
    trial_run: bool = typer.Option(
        False,
        "--trial-run",
        "-T",
        help="Handle every watched path once and exit",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging",
    ),
    version: bool = typer.Option(
        None,
        "--version",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
):
    """Watch paths and run a command on change."""
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        )
    logger = logging.getLogger(__name__)

    if trial_run and recursive:
        raise typer.BadParameter("cannot be used with --recursive", param_hint="--trial-run")

    settings = Settings()
    quiet_window = _duration(duration if duration is not None else settings.duration, "--duration")
    pre_delay = _duration(delay if delay is not None else settings.delay, "--delay")
    message = template if template is not None else settings.template
    command = " ".join(ctx.obj or [])

    if command:
        rules = ExtensionRuleTable()
    else:
        try:
            rules = ExtensionRuleTable.from_config(load_rules(config))
        except ConfigError as e:
            _error(str(e))
            raise typer.Exit(1)
        for line in rules.describe():
            console.print(f"[bold blue]Rule[/bold blue]: {escape(line)}")

    dispatcher = Dispatcher(
        delay=pre_delay,
        run_async=run_async,
        render_only=render_only,
        console=console,
    )
    pipeline = ChangePipeline(
        pwd=Path.cwd(),
        rules=rules,
        dispatcher=dispatcher,
        message_template=Template(message) if message else None,
        command_template=Template(command) if command else None,
        variables_command=Template(variables_command) if variables_command else None,
        ignore_patterns=list(ignore or []),
        console=console,
    )

    if trial_run:
        logger.debug(f"Trial run over {len(paths)} path(s)")
        pipeline.trial_run(paths)
        return

    monitor = ChangeMonitor(
        targets=[WatchTarget(path=p) for p in paths],
        pipeline=pipeline,
        debouncer=Debouncer(quiet_window),
        recursive=recursive,
        console=console,
    )
    try:
        watched = monitor.start()
    except WatchError as e:
        _error(str(e))
        raise typer.Exit(1)

    console.print(
        "[bold yellow]Watching[/bold yellow]: "
        + " ".join(escape(str(p)) for p in watched)
    )
    monitor.watch()


def main():
    """Console script entry point."""
    args, command = split_command(sys.argv[1:])
    return app(args=args, obj=command, prog_name="onchange")


if __name__ == "__main__":
    main()
