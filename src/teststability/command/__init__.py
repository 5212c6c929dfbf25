"""CLI command modules for teststability."""

from teststability.command.record import RecordCommand
from teststability.command.show import ShowCommand

__all__ = ["RecordCommand", "ShowCommand"]
