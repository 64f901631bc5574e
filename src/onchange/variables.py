"""Template variables describing a changed file."""

import logging
import os
import subprocess
from pathlib import PurePath
from typing import Dict, Optional, Tuple, Union

from .rules import ExtensionRuleTable
from .template import Template

logger = logging.getLogger(__name__)


class VariablesCommandError(OSError):
    """The auxiliary variables command could not be run or read."""


def builtin_variables(path: Union[str, PurePath], pwd: Union[str, PurePath]) -> Dict[str, str]:
    """Variables derived from path arithmetic alone.

    Both *path* and *pwd* are expected to be absolute. Relative variables are
    computed lexically, the filesystem is never consulted.
    """
    path = PurePath(path)
    pwd = PurePath(pwd)
    parent = path.parent if path.parent != path else PurePath(os.sep)

    variables = {
        "name": path.stem,
        "ext": path.suffix[1:],
        "name.ext": path.name,
        "pwd": str(pwd),
        "path": str(path),
        "rpath": os.path.relpath(path, pwd),
        "dir": str(parent),
        "rdir": os.path.relpath(parent, pwd),
    }
    variables["rname"] = f"{variables['rdir']}{os.sep}{variables['name.ext']}"
    return variables


def parse_variable_line(line: str) -> Optional[Tuple[str, str]]:
    """Split a ``key: value`` line on its first colon."""
    key, sep, value = line.partition(":")
    if not sep:
        return None
    return key.strip(), value.strip()


def run_variables_command(command: str) -> Dict[str, str]:
    """Run *command* through the shell and collect the variables it prints."""
    logger.debug(f"Running variables command: {command}")
    try:
        process = subprocess.Popen(command, shell=True, stdout=subprocess.PIPE)
    except OSError as e:
        raise VariablesCommandError(f"Failed to run variables command {command!r}: {e}") from e

    parsed: Dict[str, str] = {}
    with process:
        for raw in process.stdout:
            try:
                line = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise VariablesCommandError(f"Variables command {command!r} printed invalid UTF-8: {e}") from e
            pair = parse_variable_line(line)
            if pair is not None:
                parsed[pair[0]] = pair[1]
    return parsed


def resolve_variables(
    path: Union[str, PurePath],
    pwd: Union[str, PurePath],
    variables_command: Optional[Template],
    rules: ExtensionRuleTable,
) -> Dict[str, str]:
    """Build the variable mapping for a changed *path*.

    A variables command given on the command line takes precedence over the
    one configured for the file extension. Keys it prints overwrite the
    built-in ones.
    """
    variables = builtin_variables(path, pwd)

    template = variables_command if variables_command else rules.variables_for(variables["ext"])
    if template:
        variables.update(run_variables_command(template.render(variables)))

    return variables
