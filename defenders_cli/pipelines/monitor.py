"""Wait for one pipeline run to finish, then trigger another pipeline."""

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from tenacity import RetryCallState, Retrying, retry_if_exception_type, wait_fixed

from defenders_cli.azure_devops.client import AzureCliClient
from defenders_cli.azure_devops.models import PipelineRun, RunResult
from defenders_cli.azure_devops.urls import build_results_url, parse_pipeline_url
from defenders_cli.core.exceptions import (
    InvocationError,
    MonitorCancelled,
    ParseError,
    ValidationError,
)
from defenders_cli.pipelines.retry import RetryPolicy
from defenders_cli.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 30
MAX_RECORDED_ERRORS = 20


class MonitorResult(Enum):
    """Terminal state of a monitor run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class MonitorRequest:
    """What to wait for, what to trigger afterwards, and how often to poll."""

    wait_build_id: str
    wait_org: str
    wait_project: str
    trigger_definition_id: str
    trigger_org: str
    trigger_project: str
    interval_seconds: int = DEFAULT_INTERVAL_SECONDS

    def __post_init__(self) -> None:
        if self.interval_seconds <= 0:
            raise ValidationError("interval must be a positive number of seconds")
        if not self.wait_build_id:
            raise ValidationError("Could not extract buildId from wait URL")
        if not self.trigger_definition_id:
            raise ValidationError("Could not extract definitionId from trigger URL")

    @classmethod
    def from_urls(
        cls,
        wait_url: str,
        trigger_url: str,
        interval_seconds: int = DEFAULT_INTERVAL_SECONDS,
    ) -> "MonitorRequest":
        """
        Build a request from a build results URL and a pipeline definition URL.

        Raises:
            ValidationError: If either URL is malformed or lacks its ID parameter
        """
        try:
            wait = parse_pipeline_url(wait_url)
        except ValidationError as e:
            raise ValidationError(f"Error parsing wait URL: {e.message}") from e
        try:
            trigger = parse_pipeline_url(trigger_url)
        except ValidationError as e:
            raise ValidationError(f"Error parsing trigger URL: {e.message}") from e

        try:
            build_id = wait.build_id
        except ValidationError:
            raise ValidationError("Could not extract buildId from wait URL") from None
        try:
            definition_id = trigger.definition_id
        except ValidationError:
            raise ValidationError("Could not extract definitionId from trigger URL") from None

        return cls(
            wait_build_id=build_id,
            wait_org=wait.org_url,
            wait_project=wait.project,
            trigger_definition_id=definition_id,
            trigger_org=trigger.org_url,
            trigger_project=trigger.project,
            interval_seconds=interval_seconds,
        )


@dataclass
class MonitorOutcome:
    """Final result of a monitor run."""

    result: MonitorResult
    build_result: RunResult = RunResult.NONE
    new_build_id: str | None = None
    new_build_url: str | None = None
    polls: int = 0
    failed_polls: int = 0
    # Most recent failures only, capped at MAX_RECORDED_ERRORS
    errors: list[str] = field(default_factory=list)

    @property
    def triggered(self) -> bool:
        return self.new_build_id is not None


class PipelineMonitor:
    """
    Polls a pipeline run until it completes and triggers a second pipeline
    when the first one succeeded.

    Polling -> (Completed) -> Resolved -> Triggering -> Done
                                       \\-> Failed

    Only one status query is in flight at a time, and the trigger is never
    issued before a ``completed`` status has been observed. Failed queries
    (non-zero exit or unparsable output) are retried at the poll interval
    under the configured RetryPolicy; once the policy is exhausted the last
    error is re-raised.
    """

    def __init__(
        self,
        client: AzureCliClient,
        request: MonitorRequest,
        retry_policy: RetryPolicy | None = None,
        cancel_event: threading.Event | None = None,
        sleep: Callable[[float], object] | None = None,
        report: Callable[[str], object] | None = None,
    ):
        """
        Initialize monitor.

        Args:
            client: az client used for status queries and the trigger
            request: Monitor parameters
            retry_policy: Bounds for retrying failed status queries
            cancel_event: When set, the current wait is aborted and the
                monitor finishes with a cancelled outcome
            sleep: Wait function (defaults to waiting on cancel_event, or time.sleep)
            report: Receives one progress line per poll and per retry; these
                lines are shown regardless of the log level (defaults to logger.info)
        """
        self.client = client
        self.request = request
        self.retry_policy = retry_policy or RetryPolicy()
        self.cancel_event = cancel_event
        self._report = report or logger.info

        if sleep is not None:
            self._sleep = sleep
        elif cancel_event is not None:
            self._sleep = cancel_event.wait
        else:
            self._sleep = time.sleep

        self._polls = 0
        self._failed_polls = 0
        self._errors: deque[str] = deque(maxlen=MAX_RECORDED_ERRORS)

    @property
    def polls(self) -> int:
        """Number of status queries issued so far, failed ones included."""
        return self._polls

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise MonitorCancelled("Pipeline monitor cancelled")

    def _wait(self, seconds: float) -> None:
        self._sleep(seconds)
        self._check_cancelled()

    def _query(self) -> PipelineRun:
        self._check_cancelled()
        self._polls += 1
        return self.client.show_run(
            self.request.wait_org,
            self.request.wait_project,
            self.request.wait_build_id,
        )

    def _log_query_failure(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        self._failed_polls += 1
        self._errors.append(str(error))
        logger.warning(f"{error}")
        self._report(f"Status check failed. Retrying in {self.request.interval_seconds} seconds...")

    def _query_with_retry(self) -> PipelineRun:
        retrying = Retrying(
            stop=self.retry_policy.stop_condition(),
            wait=wait_fixed(self.request.interval_seconds),
            retry=retry_if_exception_type((InvocationError, ParseError)),
            before_sleep=self._log_query_failure,
            sleep=self._wait,
            reraise=True,
        )
        return retrying(self._query)

    def _outcome(self, result: MonitorResult, **kwargs) -> MonitorOutcome:
        return MonitorOutcome(
            result=result,
            polls=self._polls,
            failed_polls=self._failed_polls,
            errors=list(self._errors),
            **kwargs,
        )

    def poll_until_complete(self) -> PipelineRun:
        """
        Block until the watched run reports ``completed``.

        Raises:
            MonitorCancelled: If the cancel event is set
            InvocationError, ParseError: If the retry policy is exhausted
        """
        build_id = self.request.wait_build_id

        while True:
            run = self._query_with_retry()

            status_line = f"Pipeline {build_id} status: {run.status.value}"
            if run.result is not RunResult.NONE:
                status_line += f" (result: {run.result.value})"
            self._report(status_line)

            if run.is_completed:
                return run

            self._report(
                f"Pipeline still running. Checking again in {self.request.interval_seconds} seconds..."
            )
            self._wait(self.request.interval_seconds)

    def trigger(self) -> PipelineRun:
        """Queue the follow-up pipeline."""
        self._report("Triggering second pipeline...")
        return self.client.run_pipeline(
            self.request.trigger_org,
            self.request.trigger_project,
            self.request.trigger_definition_id,
        )

    def run(self) -> MonitorOutcome:
        """
        Run the monitor to a terminal state.

        Returns:
            MonitorOutcome describing how the monitor finished

        Raises:
            InvocationError: If triggering the second pipeline fails, or
                status queries fail beyond the retry policy
            ParseError: If status responses stay unparsable beyond the retry policy
        """
        logger.info(
            f"Monitoring build {self.request.wait_build_id} in {self.request.wait_project} "
            f"(interval: {self.request.interval_seconds}s)"
        )

        try:
            run = self.poll_until_complete()
        except MonitorCancelled:
            logger.warning("Pipeline monitor cancelled before the build completed")
            return self._outcome(MonitorResult.CANCELLED)

        logger.info(f"Pipeline {self.request.wait_build_id} completed with result: {run.result.value}")

        if not run.succeeded:
            return self._outcome(MonitorResult.FAILED, build_result=run.result)

        new_run = self.trigger()
        new_build_id = str(new_run.id)

        return self._outcome(
            MonitorResult.SUCCEEDED,
            build_result=run.result,
            new_build_id=new_build_id,
            new_build_url=build_results_url(
                self.request.trigger_org, self.request.trigger_project, new_build_id
            ),
        )
