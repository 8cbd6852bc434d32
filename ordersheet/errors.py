"""Custom exception types for the order sheet scraper."""

from __future__ import annotations

from typing import Optional


class OrderSheetError(Exception):
    """Base class for every failure raised by the pipeline."""

    default_message = "Order sheet run failed."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        url: Optional[str] = None,
        stage: Optional[str] = None,
    ) -> None:
        self.message = message or self.default_message
        self.url = url
        self.stage = stage
        super().__init__(self.message)

    def __str__(self) -> str:
        context_parts: list[str] = []
        if self.stage:
            context_parts.append(f"stage={self.stage}")
        if self.url:
            context_parts.append(f"url={self.url}")
        context = ", ".join(context_parts)
        return f"{self.message} ({context})" if context else self.message


class ConfigError(OrderSheetError):
    """Raised when store or delivery credentials are missing or unparseable."""

    default_message = "Invalid configuration."


class ResolutionError(OrderSheetError):
    """Raised when no recipient could be resolved from the record store."""

    default_message = "No recipient with a destination id was found."


class PageReadinessError(OrderSheetError):
    """Raised when the target page never reached a required readiness signal."""

    default_message = "Target page did not become ready."


class NavigationTimeout(PageReadinessError):
    default_message = "Timed out waiting for network quiescence."


class StateTimeout(PageReadinessError):
    default_message = "Timed out waiting for the simulation state."


class ModalTimeout(PageReadinessError):
    default_message = "Timed out waiting for the order sheet overlay."


class ExtractionError(OrderSheetError):
    """Raised when the mandatory order sheet body could not be read."""

    default_message = "Unable to read the order sheet body."


class ExtractionDegraded(OrderSheetError):
    """Raised when the optional summary values are unavailable."""

    default_message = "Supplementary simulation values unavailable."


class DeliveryError(OrderSheetError):
    """Raised when the chat transport rejects or fails a send."""

    default_message = "Message delivery failed."
