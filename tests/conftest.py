"""
Shared fixtures.

Provider calls are answered by FakeProvider, a ProviderClient whose get/post
return scripted payloads and record every call made.
"""

from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import Settings
from onboarding.client import ProviderClient
from onboarding.store import SessionStore


class FakeProvider(ProviderClient):
    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.calls: List[Dict[str, Any]] = []
        self.responses: Dict[Tuple[str, str], Any] = {}

    def script(self, method: str, path: str, *responses: Any) -> None:
        """Queue responses for a call; an exception instance is raised instead"""
        self.responses[(method, path)] = list(responses)

    def paths(self) -> List[str]:
        return [call["path"] for call in self.calls]

    def post(self, path, body, headers, params: Optional[Dict[str, Any]] = None):
        return self._answer("POST", path, headers, body=body, params=params)

    def get(self, path, params, headers):
        return self._answer("GET", path, headers, params=params)

    def _answer(self, method, path, headers, body=None, params=None):
        self.calls.append({
            "method": method,
            "path": path,
            "headers": headers,
            "body": body,
            "params": params,
        })
        queued = self.responses.get((method, path))
        if not queued:
            raise AssertionError(f"Unexpected provider call {method} {path}")
        response = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def contract_file(tmp_path):
    path = tmp_path / "contract.pdf"
    path.write_bytes(b"%PDF-1.4 test contract")
    return path


@pytest.fixture
def settings(tmp_path, contract_file) -> Settings:
    return Settings(
        _env_file=None,
        API_URL="https://provider.test",
        API_KEY="test-api-key",
        FLOW_ID="flow-123",
        ADMIN_TOKEN="admin-token",
        SESSIONS_DIR=str(tmp_path / "sessions"),
        CONTRACT_PATH=str(contract_file),
        LOG_FORMAT="console",
    )


@pytest.fixture
def provider(settings) -> FakeProvider:
    return FakeProvider(settings)


@pytest.fixture
def store(settings) -> SessionStore:
    return SessionStore(settings.SESSIONS_DIR)


@pytest.fixture
def client(settings, provider) -> TestClient:
    return TestClient(create_app(settings, client=provider))
