"""
HTTP client for the clone persistence and hosting APIs.

Uses curl_cffi for requests. Transport failures and unexpected statuses
are raised as TransportError; callers decide how to surface them.
"""

import logging
import random
import time
from typing import Any, Optional
from urllib.parse import quote

from curl_cffi import CurlError
from curl_cffi.requests import AsyncSession as CurlAsyncSession
from pydantic import BaseModel, ValidationError

from clonup_editor.config.defaults import NO_CACHE_HEADERS
from clonup_editor.config.options import ApiOptions
from clonup_editor.exceptions import TransportError
from clonup_editor.models import DnsInstructions

from .response import ApiResponse, DomainResponse

logger = logging.getLogger(__name__)


class ClonupClient:
    """Async client for document fetch, save, custom domains and counters.

    Example:
        async with ClonupClient(ApiOptions(token="...")) as client:
            html = await client.fetch_document("my-site")
            await client.save(html, "my-site")
    """

    def __init__(
        self,
        options: Optional[ApiOptions] = None,
        session: Optional[CurlAsyncSession] = None,
    ) -> None:
        """Initialize the client.

        Args:
            options: API options; defaults are used when omitted.
            session: Pre-built curl_cffi session. The client does not close
                a session it did not create.
        """
        self.options = options or ApiOptions()
        self._client = session
        self._owns_client = session is None

    async def _ensure_client(self) -> CurlAsyncSession:
        if self._client is None:
            self._client = CurlAsyncSession(
                impersonate=self.options.impersonate,
                timeout=self.options.timeout,
                verify=self.options.verify_ssl,
            )
        return self._client

    def _api_url(self, path: str, subdomain: str = "") -> str:
        return self.options.base_url + path.format(subdomain=quote(subdomain, safe=""))

    def _auth_headers(self) -> dict[str, str]:
        if not self.options.token:
            return {}
        return {"Authorization": f"Bearer {self.options.token}"}

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> ApiResponse:
        """Perform an HTTP request.

        Raises:
            TransportError: If the request could not be completed.
        """
        client = await self._ensure_client()
        try:
            raw_response = await client.request(
                method=method,
                url=url,
                params=params,
                json=json,
                headers=headers or {},
                timeout=self.options.timeout,
            )
        except CurlError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        response = ApiResponse(raw_response)
        logger.debug(f"{method} {url} -> {response.status_code}")
        return response

    @staticmethod
    def _expect_ok(response: ApiResponse, action: str) -> ApiResponse:
        if not response.ok:
            detail = response.message(f"HTTP {response.status_code}")
            raise TransportError(f"{action} failed: {detail}", response.status_code)
        return response

    @staticmethod
    def _json(response: ApiResponse, action: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"{action} returned invalid JSON", response.status_code) from e

    @classmethod
    def _parse(cls, response: ApiResponse, model: type[BaseModel], action: str, data: Any = None) -> Any:
        """Validate a JSON body into ``model``; a payload of the wrong shape is a TransportError."""
        if data is None:
            data = cls._json(response, action)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise TransportError(f"{action} returned an unexpected payload", response.status_code) from e

    async def fetch_document(self, subdomain: str) -> str:
        """Fetch the hosted HTML of a clone, bypassing edge caches."""
        url = self.options.hosting_url + self.options.site_path.format(
            subdomain=quote(subdomain, safe="")
        )
        params = {
            "_t": int(time.time() * 1000),
            "nocache": f"{random.random():.12f}"[2:],
        }
        response = await self.request("GET", url, params=params, headers=dict(NO_CACHE_HEADERS))
        return self._expect_ok(response, "Document fetch").text

    async def save(self, html: str, subdomain: str) -> ApiResponse:
        """Persist a serialized clone. Only HTTP 200 counts as saved.

        Raises:
            TransportError: On transport failure or any other status.
        """
        response = await self.request(
            "POST",
            self._api_url(self.options.save_path),
            json={"html": html, "subdomain": subdomain},
            headers=self._auth_headers(),
        )
        if response.status_code != 200:
            detail = response.message(f"HTTP {response.status_code}")
            raise TransportError(f"Save failed: {detail}", response.status_code)
        return response

    async def add_domain(self, subdomain: str, domain: str) -> DomainResponse:
        response = await self.request(
            "POST",
            self._api_url(self.options.add_domain_path, subdomain),
            json={"domain": domain},
            headers=self._auth_headers(),
        )
        self._expect_ok(response, "Add domain")
        return self._parse(response, DomainResponse, "Add domain")

    async def verify_domain(self, subdomain: str, domain: str) -> DomainResponse:
        response = await self.request(
            "GET",
            self._api_url(self.options.verify_domain_path, subdomain),
            params={"domain": domain},
            headers=self._auth_headers(),
        )
        self._expect_ok(response, "Verify domain")
        return self._parse(response, DomainResponse, "Verify domain")

    async def dns_instructions(self, subdomain: str, domain: str) -> DnsInstructions:
        response = await self.request(
            "GET",
            self._api_url(self.options.dns_instructions_path, subdomain),
            params={"domain": domain},
            headers=self._auth_headers(),
        )
        self._expect_ok(response, "DNS instructions")
        data = self._json(response, "DNS instructions")
        if isinstance(data, dict):
            data = data.get("dnsInstructions", data.get("dns_instructions", data))
        return self._parse(response, DnsInstructions, "DNS instructions", data)

    async def clone_count(self) -> int:
        """Number of clones of the account; 0 when it cannot be fetched."""
        try:
            response = await self.request(
                "GET",
                self._api_url(self.options.clone_count_path),
                headers=self._auth_headers(),
            )
            self._expect_ok(response, "Clone count")
            data = self._json(response, "Clone count")
            return int(data["count"] if isinstance(data, dict) else data)
        except (TransportError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Clone count unavailable: {e}")
            return 0

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.close()
        self._client = None

    async def __aenter__(self) -> "ClonupClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
