"""
Typed views over provider and webhook payloads.

Raw JSON is classified here once, up front. Anything that does not match the
expected shape becomes a MalformedUpstreamResponse (provider data) or a
ValidationError (caller data) instead of being probed field by field later.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as SchemaError

from config import ONBOARDING_FINISHED, SCORE_PASS, SCORE_FAIL
from .errors import MalformedUpstreamResponse, ValidationError


class SessionRecord(BaseModel):
    """Locally persisted session; only local_id ever leaves the service"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    local_id: str = Field(alias="localId")
    provider_token: str = Field(alias="token")
    provider_interview_id: str = Field(alias="interviewId")


class StartedSession(BaseModel):
    token: str
    interview_id: str = Field(alias="interviewId")


class OnboardingUrl(BaseModel):
    url: str


class EventKind(str, Enum):
    FINISHED = "finished"
    OTHER = "other"


class VerificationEvent(BaseModel):
    """Webhook payload; unknown fields are kept so the event can be echoed"""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    # Untyped here; only a finished event needs a usable interviewId
    onboarding_status: Optional[Any] = Field(default=None, alias="onboardingStatus")
    interview_id: Optional[Any] = Field(default=None, alias="interviewId")

    @property
    def kind(self) -> EventKind:
        if self.onboarding_status == ONBOARDING_FINISHED:
            return EventKind.FINISHED
        return EventKind.OTHER


class ApprovalArtifact(BaseModel):
    """Identity created by the provider after a passing score"""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    uuid: str
    token: str
    total_score: Optional[str] = Field(default=None, alias="totalScore")
    existing_customer: bool = Field(default=False, alias="existingCustomer")


class ContractInformation(BaseModel):
    contract_id: str = Field(alias="contractId")


class ContractUpload(BaseModel):
    model_config = ConfigDict(extra="allow")

    additional_information: ContractInformation = Field(alias="additionalInformation")


def decode_upstream(model, payload: Any, what: str):
    """Validate a provider response against model or raise MalformedUpstreamResponse"""
    try:
        return model.model_validate(payload)
    except SchemaError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise MalformedUpstreamResponse(
            f"Malformed {what} response: missing or invalid {fields or 'payload'}"
        ) from e


def decode_event(payload: Any) -> VerificationEvent:
    """
    Classify an inbound webhook payload.

    A finished event must name the interview it refers to; every other
    status is accepted as-is and later ignored.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Webhook payload must be a JSON object")
    try:
        event = VerificationEvent.model_validate(payload)
    except SchemaError as e:
        raise ValidationError(f"Invalid webhook payload: {e.errors()[0]['msg']}") from e
    if event.kind is EventKind.FINISHED and not (
            isinstance(event.interview_id, str) and event.interview_id):
        raise ValidationError("Missing required field interviewId")
    return event


def interpret_score(score: Any) -> str:
    """Return 'OK' only when overall.status is exactly 'OK', otherwise 'FAIL'"""
    if not isinstance(score, dict):
        return SCORE_FAIL
    overall = score.get("overall")
    if isinstance(overall, dict) and overall.get("status") == SCORE_PASS:
        return SCORE_PASS
    return SCORE_FAIL


def is_passing(score: Any) -> bool:
    return interpret_score(score) == SCORE_PASS


def record_to_dict(record: SessionRecord) -> Dict[str, str]:
    return record.model_dump(by_alias=True)


class AuthenticationAttempt(BaseModel):
    """Face authentication attempt reported by the browser widget"""

    model_config = ConfigDict(populate_by_name=True)

    transaction_id: str = Field(alias="transactionId")
    token: str
    interview_token: str = Field(alias="interviewToken")


class SignContractRequest(BaseModel):
    """Session to sign for: either its token, or the local id it was stored under"""

    model_config = ConfigDict(populate_by_name=True)

    interview_id: Optional[str] = Field(default=None, alias="interviewId")
    token: Optional[str] = None
    local_id: Optional[str] = Field(default=None, alias="localId")
