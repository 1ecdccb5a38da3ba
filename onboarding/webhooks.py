from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

import structlog

from config import PROVIDER_ENDPOINTS
from .client import ProviderClient
from .errors import MalformedUpstreamResponse, TransportError
from .payloads import (
    ApprovalArtifact,
    EventKind,
    VerificationEvent,
    decode_upstream,
    is_passing,
)

log = structlog.get_logger(__name__)


class EventState(str, Enum):
    RECEIVED = "RECEIVED"
    SCORING = "SCORING"
    SCORED = "SCORED"
    PASSED = "PASSED"
    FAILED = "FAILED"
    SCORE_UNAVAILABLE = "SCORE_UNAVAILABLE"
    IGNORED = "IGNORED"


def timestamp() -> str:
    """Acknowledgment timestamp, e.g. 2024-01-04 00:38:28 (UTC)"""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def acknowledgment(data: Any) -> Dict[str, Any]:
    return {"timestamp": timestamp(), "success": True, "data": data}


def failure(error: str) -> Dict[str, Any]:
    return {"timestamp": timestamp(), "success": False, "error": error}


class WebhookHandler:
    """
    Reacts to onboarding status events pushed by the provider.

    Events walk RECEIVED -> SCORING -> SCORED -> PASSED | FAILED, or end in
    SCORE_UNAVAILABLE when the score cannot be fetched, or IGNORED for any
    status other than ONBOARDING_FINISHED.
    """

    def __init__(self, client: ProviderClient):
        self.client = client

    def process(self, event: VerificationEvent) -> EventState:
        """Score a finished onboarding. Runs after the sender was acknowledged."""
        state = self._score(event)
        if state is EventState.PASSED:
            # Passing sessions would be persisted by the business layer
            log.info("onboarding_passed", interview_id=event.interview_id)
        elif state is EventState.FAILED:
            log.info("onboarding_not_passed", interview_id=event.interview_id)
        return state

    def approve(self, event: VerificationEvent, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Score a finished onboarding and create the identity when it passed.

        Always returns a response body: business failures are reported with
        success=False so the sender still receives a normal delivery.
        """
        state = self._score(event)

        if state is EventState.IGNORED:
            return acknowledgment(payload)
        if state is EventState.SCORE_UNAVAILABLE:
            return failure("Score unavailable, identity was not created")
        if state is EventState.FAILED:
            return failure("Session didn't PASS, identity was not created")

        try:
            identity = self.client.post(
                PROVIDER_ENDPOINTS["approve"],
                {},
                self.client.admin_headers(),
                params={"interviewId": event.interview_id},
            )
            artifact = decode_upstream(ApprovalArtifact, identity, "approval")
        except (TransportError, MalformedUpstreamResponse) as e:
            log.error("approval_failed", interview_id=event.interview_id, error=e.message)
            return failure(f"Approval failed: {e.message}")

        log.info(
            "identity_created",
            interview_id=event.interview_id,
            uuid=artifact.uuid,
            existing_customer=artifact.existing_customer,
        )
        return acknowledgment(identity)

    def _score(self, event: VerificationEvent) -> EventState:
        self._transition(event, EventState.RECEIVED)
        if event.kind is not EventKind.FINISHED:
            self._transition(event, EventState.IGNORED)
            return EventState.IGNORED

        log.info("onboarding_finished", interview_id=event.interview_id)
        self._transition(event, EventState.SCORING)
        try:
            score = self.client.get(
                PROVIDER_ENDPOINTS["score"],
                {"id": event.interview_id},
                self.client.admin_headers(),
            )
        except TransportError as e:
            log.error("score_unavailable", interview_id=event.interview_id, error=e.message)
            self._transition(event, EventState.SCORE_UNAVAILABLE)
            return EventState.SCORE_UNAVAILABLE

        self._transition(event, EventState.SCORED)
        state = EventState.PASSED if is_passing(score) else EventState.FAILED
        self._transition(event, state)
        return state

    def _transition(self, event: VerificationEvent, state: EventState) -> None:
        log.debug(
            "webhook_event_state",
            state=state.value,
            status=event.onboarding_status,
            interview_id=event.interview_id,
        )
