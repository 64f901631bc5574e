"""Placeholder templates used for messages and commands."""

import re
from typing import List, Mapping

PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


class Template:
    """A string with ``{key}`` placeholders.

    Keys may contain dots, e.g. ``{name.ext}``. Rendering never fails: a
    placeholder whose key is missing from the mapping is kept as written.
    """

    def __init__(self, source: str):
        self.source = source

    @property
    def placeholders(self) -> List[str]:
        """Keys referenced by the template, in order of appearance."""
        return PLACEHOLDER.findall(self.source)

    def render(self, variables: Mapping[str, str]) -> str:
        """Substitute every known placeholder."""
        def substitute(match: re.Match) -> str:
            key = match.group(1)
            if key in variables:
                return variables[key]
            return match.group(0)

        return PLACEHOLDER.sub(substitute, self.source)

    def __bool__(self) -> bool:
        return bool(self.source)

    def __eq__(self, other) -> bool:
        return isinstance(other, Template) and other.source == self.source

    def __hash__(self) -> int:
        return hash(self.source)

    def __repr__(self) -> str:
        return f"Template({self.source!r})"
