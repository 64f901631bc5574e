"""Ignore patterns for change events."""

import fnmatch
import logging
from pathlib import PurePath
from typing import Iterable, Union

logger = logging.getLogger(__name__)


def should_ignore(path: Union[str, PurePath], patterns: Iterable[str]) -> bool:
    """Check if *path* matches any shell-style glob in *patterns*.

    Patterns are matched case-sensitively against the full path as reported
    and against the bare file name; ``*`` also matches path separators.
    """
    path_str = str(path)
    name = PurePath(path_str).name
    for pattern in patterns:
        if not pattern:
            continue
        if fnmatch.fnmatchcase(path_str, pattern) or fnmatch.fnmatchcase(name, pattern):
            logger.debug(f"Ignoring {path_str} (matches {pattern!r})")
            return True
    return False
