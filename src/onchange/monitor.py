"""File system monitoring for onchange."""

import logging
import os
import platform
import queue
import signal
import time
from pathlib import Path
from typing import List, Optional, Sequence, Union

from rich.console import Console
from rich.markup import escape
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .debouncer import Debouncer
from .models import LogicalChangeEvent, RawNotification, WatchTarget
from .pipeline import ChangePipeline

logger = logging.getLogger(__name__)

SIGNIFICANT_EVENTS = {"created", "modified", "moved", "deleted"}

ChannelItem = Optional[Union[RawNotification, Exception]]


class WatchError(Exception):
    """Raised when a path cannot be watched."""


class ChangeHandler(FileSystemEventHandler):
    """Forward significant watchdog events onto a channel."""

    def __init__(self, channel: "queue.Queue[ChannelItem]"):
        self.channel = channel

    def to_notification(self, event: FileSystemEvent) -> Optional[RawNotification]:
        """Convert a watchdog event, or return None if it is not significant."""
        if event.is_directory or event.event_type not in SIGNIFICANT_EVENTS:
            return None
        path = event.dest_path if event.event_type == "moved" else event.src_path
        if isinstance(path, bytes):
            path = os.fsdecode(path)
        return RawNotification(path=path, kind=event.event_type, timestamp=time.monotonic())

    def on_any_event(self, event: FileSystemEvent):
        """Handle any file system event."""
        try:
            notification = self.to_notification(event)
        except Exception as e:
            self.channel.put(e)
            return
        if notification is None:
            logger.debug(f"Ignoring event type: {event.event_type} for {event.src_path}")
            return
        self.channel.put(notification)


class ChangeMonitor:
    """Watch targets and feed debounced changes through the pipeline."""

    def __init__(
        self,
        targets: Sequence[WatchTarget],
        pipeline: ChangePipeline,
        debouncer: Debouncer,
        recursive: bool = False,
        console: Optional[Console] = None,
    ):
        self.targets = list(targets)
        self.pipeline = pipeline
        self.debouncer = debouncer
        self.recursive = recursive
        self.console = console or pipeline.console
        self.channel: "queue.Queue[ChannelItem]" = queue.Queue()
        self.handler = ChangeHandler(self.channel)
        self.observer: Optional[Observer] = None

    def start(self) -> List[Path]:
        """Register every target and start the observer.

        Raises:
            WatchError: a target is missing or could not be registered.
        """
        observer = Observer()
        watched = []
        for target in self.targets:
            path = Path(os.path.abspath(target.path))
            if not path.exists():
                raise WatchError(f"No such file or directory: {target.path}")
            try:
                observer.schedule(self.handler, str(path), recursive=self.recursive)
            except Exception as e:
                raise WatchError(f"Failed to watch {target.path}: {e}") from e
            logger.debug(f"Scheduled observer for {path} (recursive={self.recursive})")
            watched.append(path)

        try:
            observer.start()
        except Exception as e:
            raise WatchError(f"Failed to start observer: {e}") from e
        self.observer = observer
        return watched

    def process(self, item: Union[RawNotification, Exception]) -> bool:
        """Handle one item from the channel. Returns True if it was dispatched."""
        if isinstance(item, Exception):
            logger.debug(f"Event source error: {item!r}")
            self.console.print(f"[bold red]Error[/bold red]: {escape(repr(item))}")
            return False

        if not self.debouncer.accept(item.path, item.timestamp):
            return False
        event = LogicalChangeEvent(path=item.path, description=repr(item))
        return self.pipeline.handle(event.path, event.description)

    def run(self):
        """Consume the channel in arrival order until it is closed."""
        while True:
            item = self.channel.get()
            if item is None:
                logger.debug("Channel closed, leaving event loop")
                break
            try:
                self.process(item)
            except Exception as e:
                self.console.print(f"[bold red]Error[/bold red]: {escape(str(e))}")
                logger.debug(f"Exception details: {e}", exc_info=True)

    def watch(self):
        """Run until the channel closes or the process is signalled."""
        def signal_handler(signum, frame):
            logger.debug(f"Received signal {signum}, shutting down")
            self.stop()

        signal.signal(signal.SIGINT, signal_handler)
        if platform.system() != "Windows":
            signal.signal(signal.SIGTERM, signal_handler)

        try:
            self.run()
        finally:
            self.stop()

    def close(self):
        """Close the channel; run() returns after draining earlier items."""
        self.channel.put(None)

    def stop(self):
        """Stop watching and close the channel."""
        if self.observer:
            try:
                self.observer.stop()
                self.observer.join(timeout=5)
            except Exception as e:
                logger.debug(f"Error stopping observer: {e}")
            finally:
                self.observer = None
        self.close()
