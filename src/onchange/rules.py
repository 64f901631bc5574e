"""Per-extension command rules."""

import logging
from typing import Dict, Iterator, Mapping, Optional

from .config import RuleConfig
from .models import ExtensionRule
from .template import Template

logger = logging.getLogger(__name__)


class ExtensionRuleTable:
    """Flat mapping from file extension to the rule that handles it.

    When two rules claim the same extension, the one loaded last wins and the
    earlier one is silently replaced for that extension.
    """

    def __init__(self, rules: Optional[Dict[str, ExtensionRule]] = None):
        self.rules: Dict[str, ExtensionRule] = {}
        self.by_extension: Dict[str, ExtensionRule] = {}
        for rule in (rules or {}).values():
            self.add(rule)

    @classmethod
    def from_config(cls, config: Mapping[str, RuleConfig]) -> "ExtensionRuleTable":
        """Build the table from validated configuration."""
        table = cls()
        for name, rule_config in config.items():
            table.add(ExtensionRule(
                name=name,
                extensions=frozenset(rule_config.extensions.split()),
                command=Template(rule_config.command) if rule_config.command is not None else None,
                variables=Template(rule_config.extra_variables) if rule_config.extra_variables is not None else None,
            ))
        return table

    def add(self, rule: ExtensionRule):
        """Register *rule* for each of its extensions."""
        self.rules[rule.name] = rule
        for ext in sorted(rule.extensions):
            previous = self.by_extension.get(ext)
            if previous is not None and previous.name != rule.name:
                logger.debug(f"Rule '{rule.name}' replaces '{previous.name}' for .{ext}")
            self.by_extension[ext] = rule

    def lookup(self, ext: str) -> Optional[ExtensionRule]:
        """Return the rule for *ext* (without the leading dot), if any."""
        return self.by_extension.get(ext)

    def command_for(self, ext: str) -> Optional[Template]:
        rule = self.lookup(ext)
        return rule.command if rule else None

    def variables_for(self, ext: str) -> Optional[Template]:
        rule = self.lookup(ext)
        return rule.variables if rule else None

    def describe(self) -> Iterator[str]:
        """One human readable line per configured rule."""
        for name, rule in self.rules.items():
            line = f"{name} ({' '.join(sorted(rule.extensions))})"
            if rule.command is not None:
                line += f" ⇒ {rule.command.source}"
            yield line

    def __len__(self) -> int:
        return len(self.by_extension)

    def __contains__(self, ext: str) -> bool:
        return ext in self.by_extension
