"""Rendering of change messages and commands."""

from typing import Mapping, Optional, Tuple

from .rules import ExtensionRuleTable
from .template import Template


def render_command(
    command_template: Optional[Template],
    rules: ExtensionRuleTable,
    variables: Mapping[str, str],
) -> str:
    """Render the command to run, or an empty string when there is none."""
    if command_template:
        return command_template.render(variables)
    rule_command = rules.command_for(variables.get("ext", ""))
    if rule_command is not None:
        return rule_command.render(variables)
    return ""


def render(
    message_template: Optional[Template],
    command_template: Optional[Template],
    rules: ExtensionRuleTable,
    variables: Mapping[str, str],
) -> Tuple[Optional[str], str]:
    """Render the change message and the command for one event."""
    message = message_template.render(variables) if message_template else None
    return message, render_command(command_template, rules, variables)
