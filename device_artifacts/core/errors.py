class ArtifactsRuntimeError(RuntimeError):
    """Base error raised by the artifacts core."""


class PreconditionError(ArtifactsRuntimeError):
    """Artifacts API was used before the run context it needs was available."""
