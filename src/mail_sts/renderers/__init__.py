"""Renderers for domain reports.

Each renderer receives DomainReport objects one at a time and writes a
summary once all domains are processed.
"""

from .base import BaseRenderer
from .cli_renderer import CLIRenderer
from .json_renderer import JSONRenderer

__all__ = ["BaseRenderer", "CLIRenderer", "JSONRenderer"]
