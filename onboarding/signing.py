import base64
from pathlib import Path
from typing import Any, Dict

import structlog

from config import (
    Settings,
    PROVIDER_ENDPOINTS,
    SIGNATURE_PLACEMENTS,
    SIGNATURE_RESPONSE_OPTIONS,
)
from .client import ProviderClient
from .errors import ContractSourceError
from .payloads import ContractUpload, decode_upstream

log = structlog.get_logger(__name__)


class ContractSigner:
    """
    Uploads the contract to a session and stamps the user's signature on it

    The provider returns the signed PDF (base64) and a detached NOM151
    signature over it. Neither is stored here.
    """

    def __init__(self, settings: Settings, client: ProviderClient):
        self.client = client
        self.contract_path = Path(settings.CONTRACT_PATH)

    def load_contract(self) -> str:
        """Read the contract source and encode it as base64"""
        try:
            raw = self.contract_path.read_bytes()
        except OSError as e:
            raise ContractSourceError(f"Contract not readable: {self.contract_path}") from e
        return base64.b64encode(raw).decode("utf-8")

    def sign_contract(self, token: str) -> Dict[str, Any]:
        headers = self.client.session_headers(token)
        base64_contract = self.load_contract()

        # Step 1: upload the contract to the session
        contract_data = self.client.post(
            PROVIDER_ENDPOINTS["add_document"],
            {"base64Image": base64_contract},
            headers,
            params={"type": "contract"},
        )
        upload = decode_upstream(ContractUpload, contract_data, "contract upload")
        contract_id = upload.additional_information.contract_id

        # Step 2: attach the session signature to the uploaded contract
        sign_params = {
            "signaturePositionsOnContracts": {
                contract_id: [dict(p) for p in SIGNATURE_PLACEMENTS]
            },
            **SIGNATURE_RESPONSE_OPTIONS,
        }
        signature_data = self.client.post(
            PROVIDER_ENDPOINTS["attach_signature"],
            sign_params,
            headers,
        )

        log.info("contract_signed", contract_id=contract_id)
        return {"contractData": contract_data, "signatureData": signature_data}
