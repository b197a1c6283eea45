"""
Core data models for clonup-editor.

This module defines the data structures shared by the editing engine:
selection state and its field cache, script entries, custom-domain
configuration and save outcomes.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator


class ScriptLocation(str, Enum):
    """Container a script block lives in."""

    HEAD = "head"
    BODY = "body"


class SubscriptionStatus(str, Enum):
    """Billing status of the account that owns the clone."""

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    NONE = "none"

    @property
    def is_active(self) -> bool:
        return self in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING)


class DomainState(str, Enum):
    """Custom-domain workflow states.

    - UNCONFIGURED: no domain submitted yet
    - PENDING: domain accepted, DNS instructions shown, polling verification
    - VERIFIED: DNS verified, polling stopped
    """

    UNCONFIGURED = "unconfigured"
    PENDING = "pending"
    VERIFIED = "verified"


class ElementFields(BaseModel):
    """Cached editable values of the selected element.

    Refreshed on every selection change and kept in step with each edit.
    """

    text: str = ""
    id: str = ""
    class_name: str = ""
    href: str = ""
    src: str = ""
    alt: str = ""
    bg_color: str = ""
    color: str = ""
    radius: str = ""
    padding: str = ""
    margin: str = ""
    text_align: str = ""
    width: str = ""
    height: str = ""
    font_size: str = ""
    font_family: str = ""
    font_weight: str = ""
    font_style: str = ""
    stylable: bool = True
    typography: bool = False


class SelectionState(BaseModel):
    """Currently selected element, by tag and opaque id."""

    selected_tag: Optional[str] = None
    selected_id: Optional[str] = None
    selector: Optional[str] = None
    fields: ElementFields = Field(default_factory=ElementFields)

    @property
    def is_empty(self) -> bool:
        return self.selected_id is None


class ScriptEntry(BaseModel):
    """One editable script or no-script block.

    ``identity`` is ``src:<origin+path>`` for external scripts,
    ``inline:<hash>`` for inline scripts and ``noscript:<hash>`` for
    no-script blocks.
    """

    location: ScriptLocation
    identity: str
    raw_markup: str
    adjacent_comment: Optional[str] = None
    trailing_comment: Optional[str] = None

    def to_block(self) -> str:
        """Render the entry as one block of script manager text."""
        parts = []
        if self.adjacent_comment:
            parts.append(f"<!--{self.adjacent_comment}-->")
        parts.append(self.raw_markup)
        if self.trailing_comment:
            parts.append(f"<!--{self.trailing_comment}-->")
        return "\n".join(parts)


class DnsRecord(BaseModel):
    """A DNS record the user must create for a custom domain."""

    type: str = "CNAME"
    name: str = ""
    value: str = ""
    ttl: Optional[int] = None


class DnsInstructions(BaseModel):
    """DNS setup instructions returned by the domain endpoints."""

    records: list[DnsRecord] = Field(default_factory=list)
    note: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def accept_record_list(cls, data: Any) -> Any:
        """Allow a bare list of records or a single record mapping."""
        if isinstance(data, list):
            return {"records": data}
        if isinstance(data, dict) and "records" not in data and "value" in data:
            return {"records": [data]}
        return data


class DomainConfig(BaseModel):
    """Custom-domain configuration for the current clone."""

    domain: str = ""
    verified: bool = False
    dns_instructions: Optional[DnsInstructions] = None
    state: DomainState = DomainState.UNCONFIGURED
    message: Optional[str] = None


class SaveResult(BaseModel):
    """Outcome of a save, with a user-visible message."""

    ok: bool
    message: str
    status_code: Optional[int] = None
    html: Optional[str] = Field(default=None, repr=False)
