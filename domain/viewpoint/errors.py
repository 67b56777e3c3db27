"""Viewpoint Bounded Context - Error Hierarchy."""

from __future__ import annotations


class ViewpointError(Exception):
    """Base error for viewpoint operations."""


class ResolutionError(ViewpointError):
    """A visibility resolution could not produce a result.

    Recoverable: the state machine returns to exploring.
    """


class NoCandidatesError(ResolutionError):
    """The landmark set is empty."""

    def __init__(self) -> None:
        super().__init__("No landmarks to resolve against")


class TerrainUnavailableError(ResolutionError):
    """The terrain primitive failed (service, network or coverage failure)."""


class MissingCapabilityError(ViewpointError):
    """A required collaborator was not supplied at construction time.

    Attributes:
        capability: Name of the missing collaborator
    """

    def __init__(self, capability: str) -> None:
        self.capability = capability
        super().__init__(f"Missing required capability: {capability}")
