from typing import Any, Dict, Optional

import requests
import structlog

from config import Settings, HARDWARE_ID_HEADER
from .errors import TransportError

log = structlog.get_logger(__name__)


class ProviderClient:
    """
    Thin JSON client for the identity-verification provider.

    Every failure (network, non-2xx status, unreadable body) surfaces as a
    TransportError. No retries are performed here.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.base_url = settings.API_URL.rstrip("/")
        self.api_key = settings.API_KEY
        self.api_version = settings.API_VERSION
        self.admin_token = settings.ADMIN_TOKEN
        self.timeout = settings.REQUEST_TIMEOUT
        self.session = session or requests.Session()

    def default_headers(self) -> Dict[str, str]:
        """Headers sent on every provider call"""
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "api-version": self.api_version,
        }

    def session_headers(self, token: str) -> Dict[str, str]:
        """Headers for calls made on behalf of a session"""
        headers = self.default_headers()
        headers[HARDWARE_ID_HEADER] = token
        return headers

    def admin_headers(self) -> Dict[str, str]:
        """Headers for privileged calls (status, scores, approval)"""
        return self.session_headers(self.admin_token)

    def post(self,
             path: str,
             body: Dict[str, Any],
             headers: Dict[str, str],
             params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("POST", path, headers, params=params, body=body)

    def get(self,
            path: str,
            params: Optional[Dict[str, Any]],
            headers: Dict[str, str]) -> Any:
        return self._request("GET", path, headers, params=params)

    def _request(self,
                 method: str,
                 path: str,
                 headers: Dict[str, str],
                 params: Optional[Dict[str, Any]] = None,
                 body: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        prefix = f"HTTP {method.capitalize()} Error"

        try:
            response = self.session.request(
                method,
                url,
                params=params or None,
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            log.warning("provider_unreachable", method=method, path=path, error=str(e))
            raise TransportError(f"{prefix}: {e}") from e

        if not response.ok:
            error_body = _safe_json(response)
            log.warning(
                "provider_error_status",
                method=method,
                path=path,
                status=response.status_code,
                body=error_body,
            )
            raise TransportError(
                f"{prefix}: Request failed with code {response.status_code}",
                upstream_status=response.status_code,
                body=error_body,
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"{prefix}: Invalid JSON in response",
                upstream_status=response.status_code,
            ) from e


def _safe_json(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None
