"""
Custom-domain workflow.

``unconfigured -> pending -> verified``. Adding a domain needs an active
subscription; while pending, DNS verification is polled on a fixed
interval until it succeeds or the workflow is closed.
"""

import asyncio
import logging
import re
from typing import Optional

from clonup_editor.api.client import ClonupClient
from clonup_editor.config.defaults import DEFAULT_POLL_INTERVAL
from clonup_editor.events.bus import AsyncEventEmitter, Event, EventType
from clonup_editor.exceptions import (
    InputValidationError,
    SubscriptionRequiredError,
    TransportError,
)
from clonup_editor.models import DnsInstructions, DomainConfig, DomainState, SubscriptionStatus

logger = logging.getLogger(__name__)

_HOSTNAME_RE = re.compile(
    r"^(?=.{1,253}$)(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,63}$"
)


def normalize_domain(domain: str) -> str:
    """Lowercase a hostname, dropping any scheme, path and trailing dot.

    Raises:
        InputValidationError: If what remains is not a hostname.
    """
    value = (domain or "").strip().lower()
    value = re.sub(r"^https?://", "", value)
    value = value.split("/", 1)[0].rstrip(".")
    if not _HOSTNAME_RE.match(value):
        raise InputValidationError("domain", f"not a valid hostname: {domain!r}")
    return value


class DomainWorkflow:
    """Attach a custom domain to a clone and wait for DNS verification.

    Args:
        client: API client.
        subdomain: Subdomain of the clone.
        subscription: Billing status of the account.
        poll_interval: Seconds between verification checks.
        emitter: Optional emitter notified of state changes.
    """

    def __init__(
        self,
        client: ClonupClient,
        subdomain: str,
        subscription: SubscriptionStatus,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        emitter: Optional[AsyncEventEmitter] = None,
    ) -> None:
        self.client = client
        self.subdomain = subdomain
        self.subscription = subscription
        self.poll_interval = poll_interval
        self.emitter = emitter
        self.config = DomainConfig()
        self.busy = False
        self._poll_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> DomainState:
        return self.config.state

    @property
    def polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    async def _emit(self, event_type: EventType) -> None:
        if self.emitter is not None:
            await self.emitter.emit(
                Event(type=event_type, data=self.config.model_dump(), source="domains")
            )

    async def add_domain(self, domain: str) -> DomainConfig:
        """Submit a custom domain and start polling for verification.

        Calls made while a request is in flight are ignored.

        Raises:
            SubscriptionRequiredError: If the subscription is not active.
            InputValidationError: If the domain is not a valid hostname.
        """
        if self.busy:
            logger.debug("Add domain ignored: request in flight")
            return self.config
        if not self.subscription.is_active:
            raise SubscriptionRequiredError(
                f"Custom domains need an active subscription (status: {self.subscription.value})"
            )
        domain = normalize_domain(domain)

        self.busy = True
        try:
            response = await self.client.add_domain(self.subdomain, domain)
        except TransportError as e:
            logger.warning(f"Add domain {domain} failed: {e}")
            self.config = self.config.model_copy(update={"message": str(e)})
            return self.config
        finally:
            self.busy = False

        if not response.success:
            self.config = self.config.model_copy(
                update={"message": response.message or "Domain could not be added"}
            )
            return self.config

        self.config = DomainConfig(
            domain=response.domain or domain,
            dns_instructions=response.dns_instructions,
            state=DomainState.PENDING,
            message=response.message,
        )
        logger.info(f"Domain {self.config.domain} pending verification")

        if response.verified:
            await self._mark_verified()
            return self.config

        if self.config.dns_instructions is None:
            try:
                await self.fetch_dns_instructions()
            except TransportError as e:
                logger.warning(f"DNS instructions unavailable: {e}")

        await self._emit(EventType.DOMAIN_PENDING)
        self.start_polling()
        return self.config

    async def fetch_dns_instructions(self) -> Optional[DnsInstructions]:
        if not self.config.domain:
            return None
        instructions = await self.client.dns_instructions(self.subdomain, self.config.domain)
        self.config.dns_instructions = instructions
        return instructions

    async def verify_once(self) -> bool:
        """Check verification once.

        Raises:
            TransportError: If the verify call fails.
        """
        if not self.config.domain:
            return False
        if self.config.verified:
            return True

        response = await self.client.verify_domain(self.subdomain, self.config.domain)
        if response.dns_instructions is not None:
            self.config.dns_instructions = response.dns_instructions
        if response.verified:
            await self._mark_verified()
            return True
        return False

    async def _mark_verified(self) -> None:
        self.config.verified = True
        self.config.state = DomainState.VERIFIED
        logger.info(f"Domain {self.config.domain} verified")
        await self._emit(EventType.DOMAIN_VERIFIED)

    def start_polling(self) -> None:
        if self.polling or self.state is not DomainState.PENDING:
            return
        self._poll_task = asyncio.create_task(self._poll())

    async def _poll(self) -> None:
        while self.state is DomainState.PENDING:
            await asyncio.sleep(self.poll_interval)
            try:
                if await self.verify_once():
                    return
            except TransportError as e:
                logger.warning(f"Domain verification check failed, retrying: {e}")
            except Exception as e:
                logger.exception(f"Unexpected error checking domain verification: {e}")

    async def close(self) -> None:
        """Stop polling."""
        task, self._poll_task = self._poll_task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug(f"Stopped verification polling for {self.config.domain}")
        await self._emit(EventType.DOMAIN_CLOSED)
