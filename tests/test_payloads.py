"""Tests for payload classification and score interpretation."""

import pytest

from onboarding.errors import MalformedUpstreamResponse, ValidationError
from onboarding.payloads import (
    ApprovalArtifact,
    ContractUpload,
    EventKind,
    decode_event,
    decode_upstream,
    interpret_score,
    is_passing,
)


class TestScoreInterpretation:

    def test_ok_status_passes(self):
        assert interpret_score({"overall": {"status": "OK", "value": "92.1"}}) == "OK"
        assert is_passing({"overall": {"status": "OK"}})

    @pytest.mark.parametrize("score", [
        {"overall": {"status": "FAIL"}},
        {"overall": {"status": "WARN"}},
        {"overall": {"status": "ok"}},
        {"overall": {}},
        {"overall": None},
        {"overall": "OK"},
        {"liveness": {"status": "OK"}},
        {},
        None,
        [],
        "OK",
    ])
    def test_anything_else_fails_without_raising(self, score):
        assert interpret_score(score) == "FAIL"
        assert not is_passing(score)


class TestEventDecoding:

    def test_finished_event(self):
        event = decode_event({"onboardingStatus": "ONBOARDING_FINISHED", "interviewId": "abc"})

        assert event.kind is EventKind.FINISHED
        assert event.interview_id == "abc"

    def test_other_status_is_classified_as_other(self):
        event = decode_event({"onboardingStatus": "ID_VALIDATION_FINISHED", "interviewId": "abc"})

        assert event.kind is EventKind.OTHER

    def test_missing_status_is_other(self):
        assert decode_event({"interviewId": "abc"}).kind is EventKind.OTHER

    def test_extra_fields_are_preserved(self):
        payload = {"onboardingStatus": "OTHER", "interviewId": "x", "clientId": "demo"}

        event = decode_event(payload)

        assert event.model_extra == {"clientId": "demo"}

    def test_other_status_accepts_any_interview_id(self):
        event = decode_event({"onboardingStatus": "OTHER", "interviewId": 12345})

        assert event.kind is EventKind.OTHER
        assert event.interview_id == 12345

    @pytest.mark.parametrize("interview_id", [12345, "", None, ["a"]])
    def test_finished_requires_string_interview_id(self, interview_id):
        with pytest.raises(ValidationError, match="interviewId"):
            decode_event({"onboardingStatus": "ONBOARDING_FINISHED", "interviewId": interview_id})

    def test_finished_without_interview_id_is_rejected(self):
        with pytest.raises(ValidationError, match="interviewId"):
            decode_event({"onboardingStatus": "ONBOARDING_FINISHED"})

    @pytest.mark.parametrize("payload", [[], "text", 3, None])
    def test_non_object_payload_is_rejected(self, payload):
        with pytest.raises(ValidationError):
            decode_event(payload)


class TestUpstreamDecoding:

    def test_contract_id_is_extracted(self):
        upload = decode_upstream(
            ContractUpload,
            {"success": True, "additionalInformation": {"contractId": "c-1#Contract1"}},
            "contract upload",
        )

        assert upload.additional_information.contract_id == "c-1#Contract1"

    @pytest.mark.parametrize("payload", [
        {"success": True},
        {"additionalInformation": {}},
        {"additionalInformation": None},
        None,
    ])
    def test_missing_contract_id_is_malformed(self, payload):
        with pytest.raises(MalformedUpstreamResponse):
            decode_upstream(ContractUpload, payload, "contract upload")

    def test_approval_artifact(self):
        artifact = decode_upstream(ApprovalArtifact, {
            "success": True,
            "uuid": "6595c84ce69d469f69ad39fb",
            "token": "long-lived",
            "totalScore": "OK",
            "existingCustomer": True,
        }, "approval")

        assert artifact.uuid == "6595c84ce69d469f69ad39fb"
        assert artifact.total_score == "OK"
        assert artifact.existing_customer is True
