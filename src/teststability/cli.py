#!/usr/bin/env python3
"""teststability CLI - record and show per-test pass/fail histories."""

import contextlib
import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from teststability.command.record import RecordCommand
from teststability.command.show import ShowCommand
from teststability.core.config import State


class CliState(State):
    """Keep a bounded pass/fail history for each test case.

    Every test case gets a fixed number of slots; once they are all
    used, recording a new build drops the oldest one.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.history.capacity 50)
    2. teststability.yaml in the current directory, user config,
       package defaults
    3. .env file
    4. Environment variables
       (TESTSTABILITY_CONFIG__HISTORY__CAPACITY=50)
    """

    record: CliSubCommand[RecordCommand]
    show: CliSubCommand[ShowCommand]

    def cli_cmd(self):
        """Dispatch to the active subcommand, or show help if none."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            # --help exits on its own; the missing subcommand is an error.
            with contextlib.suppress(SystemExit):
                CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        with self.config:
            exit_code = subcommand.run(self)
        raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
