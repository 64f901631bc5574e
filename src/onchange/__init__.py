"""
Onchange - run commands when files change.

Watches paths, debounces change notifications and runs a templated shell
command for every changed file.
"""

__version__ = "0.1.0"

from .debouncer import Debouncer
from .monitor import ChangeMonitor
from .pipeline import ChangePipeline
from .rules import ExtensionRuleTable
from .template import Template

__all__ = [
    "ChangeMonitor",
    "ChangePipeline",
    "Debouncer",
    "ExtensionRuleTable",
    "Template",
    "__version__",
]
