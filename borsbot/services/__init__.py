# Services module - command parsing, event processing and external API integrations
from .parser import parse_commands

__all__ = ["parse_commands"]
