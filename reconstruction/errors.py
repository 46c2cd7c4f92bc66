"""Exceptions raised by the reconstruction pipeline."""
from __future__ import annotations


class ReconstructionError(Exception):
    """Base class for all reconstruction failures."""


class ReportFormatError(ReconstructionError, ValueError):
    """Scanner report text could not be parsed."""

    def __init__(self, message: str, line_number: int | None = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class ConfigurationError(ReconstructionError, ValueError):
    """A run option names something that does not exist."""


class DisconnectedFleetError(ReconstructionError):
    """Some scanners could not be reached from the anchor."""

    def __init__(self, unposed: list[int], components: int = 0):
        ids = ", ".join(str(s) for s in unposed)
        message = f"{len(unposed)} scanner(s) share no overlap path with the anchor: {ids}"
        if components > 1:
            message += f" ({components} disconnected groups)"
        super().__init__(message)
        self.unposed = list(unposed)
        self.components = components


class AmbiguousMatchError(ReconstructionError):
    """More than one alignment cleared the evidence threshold for a pair."""

    def __init__(self, pair: tuple[int, int], candidates: list):
        super().__init__(
            f"scanners {pair[0]} and {pair[1]} align under "
            f"{len(candidates)} different transforms"
        )
        self.pair = pair
        self.candidates = list(candidates)


class PoseAlreadyResolvedError(ReconstructionError):
    """A scanner pose was written a second time."""


class UnresolvedPoseError(ReconstructionError):
    """A scanner pose was read before it was resolved."""
