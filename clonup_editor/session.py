"""
Edit session.

Wires one rendering surface, its controller, script manager and
serialization pipeline to the API client, and runs the open and save
flows.
"""

import logging
from typing import Any, Optional

from clonup_editor.api.client import ClonupClient
from clonup_editor.config.options import EditorConfig
from clonup_editor.dom.addressing import ElementAddressing
from clonup_editor.dom.document import EditableDocument
from clonup_editor.dom.surface import RenderingSurface
from clonup_editor.domains.workflow import DomainWorkflow
from clonup_editor.editor.controller import SelectionController
from clonup_editor.events.bus import AsyncEventEmitter, Event, EventType
from clonup_editor.events.channel import EventChannel
from clonup_editor.exceptions import EditorError, TransportError
from clonup_editor.models import SaveResult, SubscriptionStatus
from clonup_editor.scripts.manager import ScriptManager
from clonup_editor.scripts.rules import ScriptRules
from clonup_editor.serialize.pipeline import SerializationPipeline
from clonup_editor.serialize.urls import ManagedDomainSet

logger = logging.getLogger(__name__)

SAVE_OK_MESSAGE = "Site saved successfully!"
SAVE_FAILED_MESSAGE = "Error saving the site."


class EditSession:
    """One editing session over one open clone at a time.

    Example:
        async with EditSession(config) as session:
            await session.open_clone("my-site")
            img = session.surface.query("img#hero")[0]
            session.surface.click(img)
            await session.dispatch_events()
            session.controller.set_value(CommandKind.SRC, "https://cdn.example/new.jpg")
            result = await session.save()
    """

    def __init__(
        self,
        config: Optional[EditorConfig] = None,
        client: Optional[ClonupClient] = None,
    ) -> None:
        self.config = config or EditorConfig()
        self.client = client or ClonupClient(self.config.api)
        self.emitter = AsyncEventEmitter()
        self.channel = EventChannel(self.emitter)
        self.addressing = ElementAddressing()

        roots = self.config.domains.managed_root_domains
        self.surface = RenderingSurface(
            channel=self.channel,
            addressing=self.addressing,
            options=self.config.editor,
            root_domain=roots[0] if roots else "clonup.site",
        )
        self.controller = SelectionController(self.surface, self.emitter)
        self.scripts = ScriptManager(self.surface, ScriptRules.from_options(self.config.scripts))
        self.pipeline: Optional[SerializationPipeline] = None
        self.saving = False
        self.loading = False
        self.workflows: list[DomainWorkflow] = []

    @property
    def document(self) -> Optional[EditableDocument]:
        return self.surface.document

    @property
    def subdomain(self) -> str:
        return self.document.subdomain if self.document else ""

    def open(self, document: EditableDocument) -> None:
        """Open a document, replacing the current one."""
        self.controller.clear_selection()
        self.surface.load(document)
        self.pipeline = SerializationPipeline(
            ManagedDomainSet.for_subdomain(
                document.subdomain,
                self.config.domains.managed_root_domains,
                self.config.api.hosting_url,
            ),
            self.addressing,
        )

    async def open_clone(self, subdomain: str) -> Optional[EditableDocument]:
        """Fetch a hosted clone and open it.

        Returns:
            The opened document, or None if a load is already in flight.

        Raises:
            TransportError: If the document could not be fetched.
        """
        if self.loading:
            logger.debug("Open ignored: load in flight")
            return None
        self.loading = True
        try:
            html = await self.client.fetch_document(subdomain)
        finally:
            self.loading = False

        document = EditableDocument(html=html, subdomain=subdomain)
        self.open(document)
        await self.emitter.emit(
            Event(type=EventType.DOCUMENT_LOADED, data={"subdomain": subdomain}, source="session")
        )
        return document

    async def dispatch_events(self) -> int:
        """Deliver queued surface messages to the controller."""
        return await self.channel.drain()

    def serialize(self, snapshot: Optional[str] = None) -> str:
        if self.pipeline is None:
            raise EditorError("No document loaded")
        return self.pipeline.serialize(self.surface, snapshot)

    async def save(self) -> SaveResult:
        """Serialize and persist the open document.

        Failures come back as an unsuccessful SaveResult; the live
        document is never modified, so a retry is safe.
        """
        if self.saving:
            return SaveResult(ok=False, message="A save is already in progress")
        if self.pipeline is None:
            return SaveResult(ok=False, message="No document loaded")

        self.saving = True
        try:
            html = self.serialize()
            await self.client.save(html, self.subdomain)
        except TransportError as e:
            logger.warning(f"Save of {self.subdomain} failed: {e}")
            result = SaveResult(ok=False, message=SAVE_FAILED_MESSAGE, status_code=e.status_code)
            await self.emitter.emit(
                Event(type=EventType.SAVE_FAILED, data={"error": str(e)}, source="session")
            )
            return result
        finally:
            self.saving = False

        logger.info(f"Saved {self.subdomain} ({len(html)} chars)")
        await self.emitter.emit(
            Event(type=EventType.DOCUMENT_SAVED, data={"subdomain": self.subdomain}, source="session")
        )
        return SaveResult(ok=True, message=SAVE_OK_MESSAGE, status_code=200, html=html)

    def domain_workflow(self, subscription: SubscriptionStatus) -> DomainWorkflow:
        """Domain workflow for the open clone, stopped when the session closes."""
        workflow = DomainWorkflow(
            self.client,
            self.subdomain,
            subscription,
            poll_interval=self.config.domains.poll_interval,
            emitter=self.emitter,
        )
        self.workflows.append(workflow)
        return workflow

    async def clone_count(self) -> int:
        return await self.client.clone_count()

    async def close(self) -> None:
        """Stop domain polling, then close the client."""
        workflows, self.workflows = self.workflows, []
        for workflow in workflows:
            await workflow.close()
        await self.client.close()

    async def __aenter__(self) -> "EditSession":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
