"""
Capability Registry

Static declarations of the argument shapes the engine cares about: which
capabilities are communication-class (always confirmation-gated), which
fields they require, which side-effecting capabilities are fingerprinted for
deduplication, and which ones consume carried context during extraction.

Capabilities missing from the registry are treated as plain invocations
with no required fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CapabilitySpec:
    """
    Declared properties of a named capability.

    Attributes:
        name: Capability name as used by planner and invoker.
        communication: True for capabilities that contact another person.
        required_fields: Arguments that must be present before confirming.
        fingerprint_fields: Arguments identifying a side effect for dedup.
            Empty means the capability is never deduplicated.
        action_label: Verb phrase used in confirmation summaries.
        accepts_context: Whether extraction receives the carried context.
        missing_details: Per-field user-facing text for missing arguments.
    """

    name: str
    communication: bool = False
    required_fields: tuple[str, ...] = ()
    fingerprint_fields: tuple[str, ...] = ()
    action_label: str = "execute action"
    accepts_context: bool = False
    missing_details: tuple[tuple[str, str], ...] = ()

    def missing_fields(self, args: dict[str, Any] | None) -> list[str]:
        """Return required fields that are absent, None or empty strings."""
        args = args or {}
        return [name for name in self.required_fields if is_blank(args.get(name))]

    def missing_detail(self, field_name: str) -> str | None:
        return dict(self.missing_details).get(field_name)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


CALL_LLM = "call_llm"
CALENDAR_CREATE_EVENT = "calendar_create_event"
GMAIL_SEND_EMAIL = "gmail_send_email"
SEND_IMESSAGE = "send_imessage"
START_FACETIME_CALL = "start_facetime_call"

_SPECS: tuple[CapabilitySpec, ...] = (
    CapabilitySpec(
        name=GMAIL_SEND_EMAIL,
        communication=True,
        required_fields=("to", "subject", "body"),
        action_label="send email",
        missing_details=(
            ("to", "Missing email recipient (to field)"),
            ("subject", "Missing email subject"),
            ("body", "Missing email body/content"),
        ),
    ),
    CapabilitySpec(
        name=SEND_IMESSAGE,
        communication=True,
        required_fields=("contact_name", "message"),
        action_label="send message",
        missing_details=(
            ("contact_name", "Missing contact name for message"),
            ("message", "Missing message content"),
        ),
    ),
    CapabilitySpec(
        name=START_FACETIME_CALL,
        communication=True,
        required_fields=("contact_name",),
        action_label="make call",
        missing_details=(("contact_name", "Missing contact name for the call"),),
    ),
    CapabilitySpec(
        name=CALENDAR_CREATE_EVENT,
        required_fields=("summary", "start"),
        fingerprint_fields=("summary", "start", "end"),
        action_label="create calendar event",
        missing_details=(
            ("summary", "Missing calendar event title/summary"),
            ("start", "Missing event start time"),
        ),
    ),
    CapabilitySpec(
        name=CALL_LLM,
        required_fields=("prompt",),
        action_label="query the model",
        accepts_context=True,
    ),
    CapabilitySpec(
        name="open_browser_tab",
        required_fields=("url",),
        missing_details=(("url", "Missing website URL to open"),),
    ),
    CapabilitySpec(
        name="search_web",
        required_fields=("query",),
        missing_details=(("query", "Missing search query"),),
    ),
    CapabilitySpec(
        name="search_youtube",
        required_fields=("query",),
        missing_details=(("query", "Missing search query"),),
    ),
    CapabilitySpec(
        name="open_app",
        required_fields=("app_name",),
        missing_details=(("app_name", "Missing app name to open"),),
    ),
    CapabilitySpec(name="find_contact", required_fields=("name",)),
)

CAPABILITIES: dict[str, CapabilitySpec] = {spec.name: spec for spec in _SPECS}

COMMUNICATION_CAPABILITIES: frozenset[str] = frozenset(
    spec.name for spec in _SPECS if spec.communication
)

# Capabilities whose not-found errors refer to a person rather than a resource.
CONTACT_CAPABILITIES: frozenset[str] = frozenset(
    {"find_contact", SEND_IMESSAGE, START_FACETIME_CALL}
)


def get_spec(capability_name: str) -> CapabilitySpec:
    """Return the declared spec, or a permissive default for unknown names."""
    return CAPABILITIES.get(capability_name) or CapabilitySpec(name=capability_name)


def is_communication(capability_name: str) -> bool:
    return capability_name in COMMUNICATION_CAPABILITIES
