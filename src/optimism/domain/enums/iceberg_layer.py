"""
Iceberg Layer Enumeration

The four conversation depths of the iceberg model. A conversation
starts at the surface and moves toward the core belief; it never
moves back up within a session.
"""

from enum import StrEnum


class IcebergLayer(StrEnum):
    """
    Conversation depth, shallowest first.

    Declaration order is the depth order. Compare layers with
    ``depth`` rather than ``<``, which would compare the string values.
    """

    SURFACE = "surface"
    """The event or thought that first caught the user's attention."""

    TRIGGER = "trigger"
    """What set the reaction off."""

    EMOTION = "emotion"
    """The feeling underneath the thought."""

    CORE_BELIEF = "coreBelief"
    """
    The belief about self or world driving the pattern.

    Terminal layer. Recording an insight here completes the session.
    """

    @property
    def depth(self) -> int:
        """Zero-based position in the depth order."""
        return list(IcebergLayer).index(self)

    @classmethod
    def deepest(cls, *layers: "IcebergLayer") -> "IcebergLayer":
        """Return the deepest of the given layers."""
        return max(layers, key=lambda layer: layer.depth)
