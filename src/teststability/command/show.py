"""Show command - prints a test case's stored history."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from teststability.core.log import logger
from teststability.history.errors import HistoryError
from teststability.history.result import Result
from teststability.history.store import HistoryStore

if TYPE_CHECKING:
    from teststability.core.config import State


def format_result(result: Result) -> str:
    status = "PASS" if result.passed else "FAIL"
    return f"#{result.build_number} {status}"


class ShowCommand(BaseModel):
    """Print the recorded outcomes of a test case, oldest first."""

    model_config = ConfigDict(populate_by_name=True)

    test_id: str = Field(
        alias="test-id",
        description="Stable identifier of the test case",
    )

    def run(self, state: State) -> int:
        """Print the history.

        Returns:
            Exit code (0=success, 1=unknown test case or unreadable
            store)
        """
        history_config = state.config.history
        store = HistoryStore.from_config(history_config)

        try:
            data = store.load(capacity=history_config.capacity)
        except HistoryError as e:
            logger.error(
                "Cannot read history store", file=str(store.path), error=str(e)
            )
            return 1

        history = data.history_for(self.test_id)
        if history is None:
            logger.warn("No history recorded", test_id=self.test_id)
            return 1

        for result in history.snapshot():
            print(format_result(result))
        return 0
