"""
Track errors - Failures raised by graph editing operations.
"""

from typing import List, Sequence


class TrackError(Exception):
    """Base class for track graph errors."""


class TrackLockedError(TrackError):
    """Raised when an edit targets nodes of a locked coaster.

    Carries every node that could not be changed, so best-effort
    operations can report one aggregate failure.
    """

    def __init__(self, nodes: Sequence[object] = ()):
        self.nodes: List[object] = list(nodes)
        count = len(self.nodes)
        if count:
            message = f"{count} node(s) belong to a locked coaster"
        else:
            message = "coaster is locked"
        super().__init__(message)


class TrackNodeRemovedError(TrackError):
    """Raised when operating on a node that was removed from its coaster."""


class ConnectionNotFoundError(TrackError, ValueError):
    """Raised when a connection is not attached to the node it is used with."""
