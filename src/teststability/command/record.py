"""Record command - appends one test outcome to its history."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from teststability.core.log import logger
from teststability.history.errors import HistoryError
from teststability.history.store import HistoryStore

if TYPE_CHECKING:
    from teststability.core.config import State


class RecordCommand(BaseModel):
    """Record whether a test case passed in a build.

    Loads the history store, appends the outcome to the test case's
    history (creating it with the configured capacity on first use),
    and writes the store back. Once a history is full, each new
    outcome evicts the oldest one.
    """

    model_config = ConfigDict(populate_by_name=True)

    test_id: str = Field(
        alias="test-id",
        description="Stable identifier of the test case",
    )
    build: int = Field(description="Build number the outcome belongs to")
    passed: bool = Field(
        default=True,
        description="Whether the test passed (--no-passed for a failure)",
    )

    def run(self, state: State) -> int:
        """Record the outcome.

        Returns:
            Exit code (0=success, 1=store could not be read)
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

        history = data.record(self.test_id, self.build, self.passed)
        store.save(data)

        logger.info(
            "Recorded outcome",
            test_id=self.test_id,
            build=self.build,
            passed=self.passed,
            stored=history.size,
            capacity=history.capacity,
        )
        return 0
