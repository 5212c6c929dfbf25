"""Value object for a single recorded test outcome."""

from pydantic import BaseModel, ConfigDict


class Result(BaseModel):
    """Outcome of one test case execution in one build."""

    model_config = ConfigDict(frozen=True)

    build_number: int
    passed: bool
