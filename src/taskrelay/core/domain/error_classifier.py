"""
Error Classifier

Maps raw capability failures onto the stable error taxonomy. The first
matching pattern decides the category; capability-specific refinement then
replaces the generic detail with something the user can act on.
"""

from __future__ import annotations

from typing import Any

from taskrelay.core.domain.capabilities import (
    CALENDAR_CREATE_EVENT,
    CONTACT_CAPABILITIES,
    GMAIL_SEND_EMAIL,
    get_spec,
)
from taskrelay.core.domain.enums import ErrorCategory
from taskrelay.core.domain.models import ErrorRecord

# Ordered: the first rule whose keyword occurs in the lowercased message wins.
_CATEGORY_RULES: tuple[tuple[ErrorCategory, tuple[str, ...]], ...] = (
    (ErrorCategory.NETWORK_ERROR, ("econnrefused", "connection refused", "network")),
    (ErrorCategory.AUTHENTICATION_ERROR, ("401", "unauthorized", "authentication")),
    (ErrorCategory.PERMISSION_ERROR, ("403", "forbidden", "permission")),
    (ErrorCategory.MISSING_PARAMETER, ("missing", "required")),
    (ErrorCategory.INVALID_FORMAT, ("invalid", "malformed")),
    (ErrorCategory.NOT_FOUND, ("not found", "404")),
    (ErrorCategory.SERVICE_UNAVAILABLE, ("503", "unavailable", "timeout", "timed out")),
)

_GENERIC_DETAILS: dict[ErrorCategory, str] = {
    ErrorCategory.NETWORK_ERROR: "Network connection failed - check your internet connection",
    ErrorCategory.AUTHENTICATION_ERROR: (
        "Authentication failed - you may need to reconnect your account"
    ),
    ErrorCategory.PERMISSION_ERROR: (
        "Permission denied - check account permissions for this service"
    ),
    ErrorCategory.SERVICE_UNAVAILABLE: (
        "Service is temporarily unavailable - please try again later"
    ),
}


def _error_text(raw_error: Any) -> str:
    if isinstance(raw_error, BaseException):
        return str(raw_error) or type(raw_error).__name__
    if raw_error is None:
        return "Unknown error"
    return str(raw_error)


class ErrorClassifier:
    """Turn raw failures into structured ``ErrorRecord`` values."""

    def classify(
        self,
        capability_name: str,
        raw_error: Any,
        extracted_args: dict[str, Any] | None = None,
        *,
        retryable: bool | None = None,
    ) -> ErrorRecord:
        """
        Classify a raw failure for a capability.

        Args:
            capability_name: Capability that failed.
            raw_error: Exception or error message from the invoker.
            extracted_args: Arguments the capability was called with.
            retryable: Explicit override; defaults to True.

        Returns:
            ErrorRecord with category, detail and missing fields.
        """
        message = _error_text(raw_error)
        category = self._categorize(message)
        args = extracted_args or {}
        missing: list[str] = []

        if category is ErrorCategory.MISSING_PARAMETER:
            detail, missing = self._missing_parameter_detail(capability_name, args)
        elif category is ErrorCategory.INVALID_FORMAT:
            detail = self._invalid_format_detail(capability_name, message.lower())
        elif category is ErrorCategory.NOT_FOUND:
            detail = self._not_found_detail(capability_name)
        elif category is ErrorCategory.EXECUTION_ERROR:
            detail = f"{capability_name} could not be completed - please try again"
        else:
            detail = _GENERIC_DETAILS[category]

        return ErrorRecord(
            category=category,
            raw_message=message,
            user_facing_detail=detail,
            missing_fields=missing,
            retryable=True if retryable is None else retryable,
        )

    def missing_fields_error(self, capability_name: str, missing: list[str]) -> ErrorRecord:
        """Build the error returned when required arguments were not extracted."""
        fields = ", ".join(missing)
        return ErrorRecord(
            category=ErrorCategory.MISSING_PARAMETER,
            raw_message=f"missing required fields for {capability_name}: {fields}",
            user_facing_detail=(
                f"Missing required fields: {fields}. Please provide all required information."
            ),
            missing_fields=list(missing),
        )

    @staticmethod
    def _categorize(message: str) -> ErrorCategory:
        lowered = message.lower()
        for category, keywords in _CATEGORY_RULES:
            if any(keyword in lowered for keyword in keywords):
                return category
        return ErrorCategory.EXECUTION_ERROR

    @staticmethod
    def _missing_parameter_detail(
        capability_name: str, args: dict[str, Any]
    ) -> tuple[str, list[str]]:
        spec = get_spec(capability_name)
        missing = spec.missing_fields(args)
        for field_name in missing:
            specific = spec.missing_detail(field_name)
            if specific:
                return specific, missing
        return f"Missing required parameter for {capability_name}", missing

    @staticmethod
    def _invalid_format_detail(capability_name: str, lowered: str) -> str:
        if capability_name == GMAIL_SEND_EMAIL and "email" in lowered:
            return "Invalid email address format"
        if capability_name == CALENDAR_CREATE_EVENT and "date" in lowered:
            return "Invalid date/time format"
        if capability_name == "open_browser_tab":
            return "Invalid URL format"
        return f"Invalid format for {capability_name} parameters"

    @staticmethod
    def _not_found_detail(capability_name: str) -> str:
        if capability_name in CONTACT_CAPABILITIES:
            return "Contact not found in your contacts or call history"
        if capability_name == "open_app":
            return "Application not found or not installed on your system"
        return f"Requested resource not found for {capability_name}"
