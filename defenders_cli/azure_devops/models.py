"""Typed views of the JSON documents returned by az DevOps commands."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RunStatus(str, Enum):
    """Lifecycle status of a pipeline run."""

    UNKNOWN = "unknown"
    NOT_STARTED = "notStarted"
    IN_PROGRESS = "inProgress"
    CANCELLING = "cancelling"
    POSTPONED = "postponed"
    COMPLETED = "completed"

    @classmethod
    def _missing_(cls, value: object) -> "RunStatus":
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        return cls.UNKNOWN


class RunResult(str, Enum):
    """Final result of a completed pipeline run."""

    NONE = "none"
    SUCCEEDED = "succeeded"
    PARTIALLY_SUCCEEDED = "partiallySucceeded"
    FAILED = "failed"
    CANCELED = "canceled"

    @classmethod
    def _missing_(cls, value: object) -> "RunResult | None":
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        return None


class _AzModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class PipelineRun(_AzModel):
    """Result of ``az pipelines runs show`` and ``az pipelines run``."""

    id: int
    status: RunStatus = RunStatus.UNKNOWN
    result: RunResult = RunResult.NONE
    build_number: str | None = Field(default=None, alias="buildNumber")

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        if value is None:
            return RunStatus.UNKNOWN
        if not isinstance(value, str):
            raise ValueError("status must be a string")
        return RunStatus(value)

    @field_validator("result", mode="before")
    @classmethod
    def _normalize_result(cls, value: Any) -> Any:
        if value is None or value == "":
            return RunResult.NONE
        if not isinstance(value, str):
            raise ValueError("result must be a string")
        return RunResult(value)

    @property
    def is_completed(self) -> bool:
        return self.status is RunStatus.COMPLETED

    @property
    def succeeded(self) -> bool:
        return self.result is RunResult.SUCCEEDED


class RepositoryRef(_AzModel):
    name: str


class CreatedPullRequest(_AzModel):
    """Result of ``az repos pr create``."""

    pull_request_id: int = Field(alias="pullRequestId")
    repository: RepositoryRef
    title: str | None = None
