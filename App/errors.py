"""Error types raised by the encoder pipeline.

AIDEV-NOTE: Stage functions raise these; ThresholdPipeline turns them into
PipelineResult values so callers never see a half-updated artifact set.
"""


class PipelineError(Exception):
    """Base class for all encoder failures."""

    prefix = "Processing failed"

    @property
    def user_message(self) -> str:
        """Message suitable for a dismissible notice."""
        return f"{self.prefix}: {self}"


class DecodeError(PipelineError):
    """Image stream unreadable, header unparsable or pixel decode failure."""

    prefix = "Failed to load image"


class InvalidParameter(PipelineError, ValueError):
    """Parameter outside its legal range (threshold, sizes, crop)."""

    prefix = "Invalid parameter"


class OutOfResources(PipelineError, MemoryError):
    """Allocation failure while decoding or processing a large image."""

    prefix = "Out of memory"
