"""
API response wrappers.

ApiResponse wraps a raw curl_cffi response; DomainResponse is the parsed
body of the custom-domain endpoints.
"""

import json as json_module
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from clonup_editor.models import DnsInstructions

if TYPE_CHECKING:
    from curl_cffi.requests import Response as CurlResponse


class ApiResponse:
    """HTTP response wrapper.

    Wraps raw HTTP responses (from curl_cffi) and provides convenient
    access to status, text and JSON body.
    """

    def __init__(self, raw_response: "CurlResponse") -> None:
        self._response = raw_response
        self._json_data: Optional[Any] = None

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def ok(self) -> bool:
        """Check if the response was successful (2xx status)."""
        return 200 <= self.status_code < 300

    @property
    def url(self) -> str:
        return str(self._response.url)

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._response.headers)

    @property
    def text(self) -> str:
        return self._response.text

    def json(self, **kwargs: Any) -> Any:
        """Parse the response body as JSON.

        Raises:
            json.JSONDecodeError: If the response is not valid JSON.
        """
        if self._json_data is None:
            self._json_data = json_module.loads(self.text, **kwargs)
        return self._json_data

    def message(self, default: str = "") -> str:
        """Best-effort ``message`` or ``error`` field of a JSON body."""
        try:
            data = self.json()
        except ValueError:
            return default
        if isinstance(data, dict):
            return str(data.get("message") or data.get("error") or default)
        return default

    def __repr__(self) -> str:
        return f"<ApiResponse [{self.status_code}]>"


class Verification(BaseModel):
    verified: bool = False


class DomainResponse(BaseModel):
    """Body of the add-domain and verify-domain endpoints."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool = False
    domain: Optional[str] = None
    verification: Verification = Field(default_factory=Verification)
    dns_instructions: Optional[DnsInstructions] = Field(default=None, alias="dnsInstructions")
    message: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def lift_verified(cls, data: Any) -> Any:
        """Accept a top-level ``verified`` flag."""
        if isinstance(data, dict) and "verified" in data and "verification" not in data:
            data = dict(data)
            data["verification"] = {"verified": bool(data.pop("verified"))}
        return data

    @property
    def verified(self) -> bool:
        return self.verification.verified
