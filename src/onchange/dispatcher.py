"""Execution of rendered commands."""

import logging
import subprocess
import threading
import time
from typing import Optional

from rich.console import Console
from rich.markup import escape

from .models import DispatchDecision

logger = logging.getLogger(__name__)


class Dispatcher:
    """Run rendered commands either inline or on their own thread."""

    def __init__(
        self,
        delay: float = 0.0,
        run_async: bool = False,
        render_only: bool = False,
        console: Optional[Console] = None,
    ):
        self.delay = delay
        self.run_async = run_async
        self.render_only = render_only
        self.console = console or Console()

    def decide(self, command: str) -> DispatchDecision:
        return DispatchDecision(
            run=bool(command) and not self.render_only,
            command=command,
            delay=self.delay,
            run_async=self.run_async,
        )

    def dispatch(self, command: str) -> DispatchDecision:
        """Run *command* according to the configured mode.

        An empty command is a no-op. In render-only mode the command is shown
        but never spawned.
        """
        decision = self.decide(command)
        if not command:
            return decision

        self.console.print(f"[bold red]Run[/bold red]: {escape(command)}")
        if not decision.run:
            return decision

        if decision.run_async:
            # Fire and forget: the thread owns its own copy of the inputs
            thread = threading.Thread(
                target=self.run_shell,
                args=(decision.command, decision.delay),
                name="onchange-command",
            )
            thread.start()
        else:
            self.run_shell(decision.command, decision.delay)
        return decision

    def run_shell(self, command: str, delay: float) -> bool:
        """Wait *delay* seconds, then run *command* through the shell.

        The exit status is not inspected. A command that cannot be spawned
        is reported and False is returned.
        """
        if delay > 0:
            time.sleep(delay)
        logger.debug(f"Spawning: {command}")
        try:
            subprocess.run(command, shell=True)
        except Exception as e:
            logger.debug(f"Failed to spawn {command!r}: {e}", exc_info=True)
            self.console.print(f"[bold red]Error[/bold red]: {escape(str(e))}")
            return False
        return True
