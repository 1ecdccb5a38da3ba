import uuid
from typing import Any, Dict, Optional

import structlog

from config import Settings, PROVIDER_ENDPOINTS
from .client import ProviderClient
from .errors import ValidationError
from .payloads import (
    OnboardingUrl,
    SessionRecord,
    StartedSession,
    decode_upstream,
    interpret_score,
)
from .store import SessionStore

log = structlog.get_logger(__name__)


class SessionOrchestrator:
    """
    Creates and resumes provider sessions.

    The provider interview id is kept in the local record only; callers get
    the session token and the locally generated id.
    """

    def __init__(self, settings: Settings, client: ProviderClient, store: SessionStore):
        self.client = client
        self.store = store
        self.start_params = {
            "configurationId": settings.FLOW_ID,
            "countryCode": settings.COUNTRY_CODE,
            "language": settings.LANGUAGE,
        }

    def start_or_resume(self, local_id: Optional[str] = None) -> Dict[str, str]:
        """
        Resume the session stored under local_id, or start a new one.

        Resumption is strict: an unknown or unreadable id fails instead of
        silently starting a fresh session.
        """
        if local_id:
            record = self.store.read(local_id)
            log.info("session_resumed", local_id=local_id)
            return {"token": record.provider_token, "localId": local_id}

        local_id = str(uuid.uuid4())
        started = self._start_session()
        self.store.write(local_id, SessionRecord(
            local_id=local_id,
            provider_token=started.token,
            provider_interview_id=started.interview_id,
        ))
        log.info("session_started", local_id=local_id)
        return {"token": started.token, "localId": local_id}

    def get_onboarding_url(self) -> Dict[str, str]:
        """Start a session and fetch its hosted onboarding url. Nothing is stored."""
        started = self._start_session()
        data = self.client.get(
            PROVIDER_ENDPOINTS["onboarding_url"],
            {},
            self.client.session_headers(started.token),
        )
        onboarding = decode_upstream(OnboardingUrl, data, "onboarding url")
        return {
            "token": started.token,
            "interviewId": started.interview_id,
            "url": onboarding.url,
        }

    def get_status(self, interview_id: Optional[str]) -> Any:
        if not interview_id:
            raise ValidationError("Missing required parameter interviewId")
        response = self.client.get(
            PROVIDER_ENDPOINTS["onboarding_status"],
            {"id": interview_id},
            self.client.admin_headers(),
        )
        if not isinstance(response, dict):
            return None
        return response.get("onboardingStatus")

    def fetch_score(self, interview_id: Optional[str], token: Optional[str]) -> str:
        """Fetch the score with the caller's session token and reduce it to OK/FAIL"""
        if not interview_id:
            raise ValidationError("Missing required parameter interviewId")
        if not token:
            raise ValidationError("Missing required header X-Token")

        score = self.client.get(
            PROVIDER_ENDPOINTS["score"],
            {"id": interview_id},
            self.client.session_headers(token),
        )
        verdict = interpret_score(score)
        log.info("score_fetched", score=verdict)
        return verdict

    def verify_authentication(self,
                              transaction_id: str,
                              token: str,
                              interview_token: str) -> Any:
        """Check a face authentication attempt was genuine and not tampered with"""
        params = {
            "transactionId": transaction_id,
            "token": token,
            "interviewToken": interview_token,
        }
        result = self.client.post(
            PROVIDER_ENDPOINTS["authentication_verify"],
            params,
            self.client.admin_headers(),
        )
        log.info("authentication_verified", transaction_id=transaction_id, result=result)
        return result

    def _start_session(self) -> StartedSession:
        data = self.client.post(
            PROVIDER_ENDPOINTS["start"],
            self.start_params,
            self.client.default_headers(),
        )
        return decode_upstream(StartedSession, data, "session start")
