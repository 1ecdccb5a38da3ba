from pydantic_settings import BaseSettings
from typing import Dict, Any, List, Optional

class Settings(BaseSettings):
    # Provider Configuration
    API_URL: str = "https://demo-api.incodesmile.com"
    API_KEY: str = ""
    API_VERSION: str = "1.0"
    # Flow (configuration) used for every new session
    FLOW_ID: str = ""
    # Admin token, sent as the hardware id on privileged calls
    ADMIN_TOKEN: str = ""

    # Session defaults
    LANGUAGE: str = "en-US"
    COUNTRY_CODE: str = "ALL"

    # Local storage
    SESSIONS_DIR: str = "sessions"
    CONTRACT_PATH: str = "contract.pdf"

    # Outbound calls wait indefinitely unless a timeout (seconds) is set
    REQUEST_TIMEOUT: Optional[float] = None

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    CORS_ORIGINS: List[str] = ["*"]

    class Config:
        env_file = ".env"


# Header carrying the session token or the admin token
HARDWARE_ID_HEADER = "X-Incode-Hardware-Id"

# Provider endpoints
PROVIDER_ENDPOINTS = {
    "start": "/omni/start",
    "onboarding_url": "/0/omni/onboarding-url",
    "onboarding_status": "/omni/get/onboarding/status",
    "score": "/omni/get/score",
    "approve": "/omni/process/approve",
    "authentication_verify": "/omni/authentication/verify",
    "add_document": "/omni/add/document/v2",
    "attach_signature": "/omni/attach-signature-to-pdf/v2",
}

# Terminal onboarding status reported by the webhook
ONBOARDING_FINISHED = "ONBOARDING_FINISHED"

# Score sentinel for a passing session
SCORE_PASS = "OK"
SCORE_FAIL = "FAIL"

# Where the signature is stamped on the uploaded contract
SIGNATURE_PLACEMENTS: List[Dict[str, Any]] = [
    {
        "x": 100,
        "y": 100,
        "height": 200,
        "pageNumber": 1,
        "orientation": "ORIENTATION_NORMAL"
    }
]

# Which artifacts the provider returns after signing
SIGNATURE_RESPONSE_OPTIONS = {
    "includeSignedDocumentInResponse": True,
    "includeNom151SignatureInResponse": True,
    "includeSignedDocumentWithNom151InResponse": False
}
