"""Per-event processing: variables, rendering, filtering and dispatch."""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from rich.console import Console
from rich.markup import escape

from .dispatcher import Dispatcher
from .filters import should_ignore
from .render import render
from .rules import ExtensionRuleTable
from .template import Template
from .variables import resolve_variables

logger = logging.getLogger(__name__)

TRIAL_RUN_EVENT = "trial run"


class ChangePipeline:
    """Turn a changed path into a message and a command, then dispatch it."""

    def __init__(
        self,
        pwd: Path,
        rules: ExtensionRuleTable,
        dispatcher: Dispatcher,
        message_template: Optional[Template] = None,
        command_template: Optional[Template] = None,
        variables_command: Optional[Template] = None,
        ignore_patterns: Optional[List[str]] = None,
        console: Optional[Console] = None,
    ):
        self.pwd = pwd
        self.rules = rules
        self.dispatcher = dispatcher
        self.message_template = message_template
        self.command_template = command_template
        self.variables_command = variables_command
        self.ignore_patterns = ignore_patterns or []
        self.console = console or dispatcher.console

    def handle(self, path: str, description: str) -> bool:
        """Process one change event.

        Errors raised while resolving variables, rendering or dispatching are
        printed and the event is dropped, so the caller can go on with the
        next event. Errors of a detached command are reported by the
        dispatcher on its own thread. Returns True if the event was
        dispatched.
        """
        try:
            variables = resolve_variables(path, self.pwd, self.variables_command, self.rules)
            variables["event"] = description
            message, command = render(self.message_template, self.command_template, self.rules, variables)
        except Exception as e:
            logger.debug(f"Failed to process {path}: {e}", exc_info=True)
            self.console.print(f"[bold red]Error[/bold red]: {escape(str(e))}")
            return False

        if should_ignore(path, self.ignore_patterns):
            return False

        if message is not None:
            self.console.print(f"[bold green]Changed[/bold green]: {escape(message)}")

        try:
            self.dispatcher.dispatch(command)
        except Exception as e:
            logger.debug(f"Failed to dispatch {command!r}: {e}", exc_info=True)
            self.console.print(f"[bold red]Error[/bold red]: {escape(str(e))}")
            return False
        return True

    def trial_run(self, paths: Iterable[Path]) -> int:
        """Handle each path once as if it had just changed."""
        handled = 0
        for path in paths:
            path = Path(path)
            if not path.is_absolute():
                path = Path(os.path.normpath(self.pwd / path))
            if self.handle(str(path), TRIAL_RUN_EVENT):
                handled += 1
        return handled
