"""Threshold pipeline orchestrator.

Holds the decoded original and the current threshold, re-runs
binarize -> pack -> format whenever either changes, and publishes the
result as a single ArtifactSet.

AIDEV-NOTE: Concurrency policy is *serialize*. Overlapping calls wait on
_run_lock and then run in arrival order, so every accepted request is
processed. Readers only ever see a complete ArtifactSet because publishing
is a single reference swap under _publish_lock.
"""

import threading
from typing import Callable, List, Optional

from errors import InvalidParameter, OutOfResources, PipelineError
from image_processing import ImageProcessor, validate_threshold
from image_processing.decoder import ImageSource
from models import (
    DEFAULT_THRESHOLD,
    ArtifactSet,
    CropRect,
    PipelineResult,
    PipelineState,
    PixelBuffer,
)

Listener = Callable[[PipelineResult], None]


class ThresholdPipeline:
    """Owns the artifact set for one source image at a time."""

    def __init__(
        self,
        processor: Optional[ImageProcessor] = None,
        threshold: int = DEFAULT_THRESHOLD,
    ):
        self.processor = processor or ImageProcessor()
        self._threshold = validate_threshold(threshold)

        self._run_lock = threading.RLock()
        self._publish_lock = threading.Lock()
        self._artifacts: Optional[ArtifactSet] = None
        self._listeners: List[Listener] = []

        self._busy = False
        self.last_error: Optional[str] = None

    # -------------------------------------------------------------
    # State
    # -------------------------------------------------------------

    @property
    def state(self) -> PipelineState:
        if self._artifacts is None:
            return PipelineState.EMPTY
        return PipelineState.READY

    @property
    def artifacts(self) -> Optional[ArtifactSet]:
        """Latest completed artifact set, None before the first image."""
        with self._publish_lock:
            return self._artifacts

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def is_busy(self) -> bool:
        return self._busy

    def clear_error(self):
        """Dismiss the current error message."""
        self.last_error = None

    # -------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------

    def add_listener(self, callback: Listener) -> Callable[[], None]:
        """Register callback for every PipelineResult; returns a remover."""
        self._listeners.append(callback)

        def remove():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    # -------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------

    def load_image(
        self, pixels: PixelBuffer, processor: Optional[ImageProcessor] = None
    ) -> PipelineResult:
        """Replace the original image and recompute with the current threshold."""
        processor = processor or self.processor
        with self._run_lock:
            return self._run(lambda: processor.process(pixels, self._threshold))

    def load_source(
        self,
        source: ImageSource,
        max_dimension: Optional[int] = None,
        crop: Optional[CropRect] = None,
        processor: Optional[ImageProcessor] = None,
    ) -> PipelineResult:
        """Decode an encoded image, prepare it and load it.

        A decode failure leaves the previous artifacts in place.
        """
        processor = processor or self.processor

        def decode_and_process() -> ArtifactSet:
            pixels = processor.decode(source, max_dimension)
            pixels = processor.prepare(pixels, crop)
            return processor.process(pixels, self._threshold)

        with self._run_lock:
            return self._run(decode_and_process)

    def set_threshold(
        self, threshold: int, processor: Optional[ImageProcessor] = None
    ) -> PipelineResult:
        """Store a new threshold and re-run against the retained original.

        Out-of-range values are rejected before anything changes. Without an
        image only the value is stored.
        """
        processor = processor or self.processor
        try:
            threshold = validate_threshold(threshold)
        except InvalidParameter as e:
            return self._report(PipelineResult(error=e))

        with self._run_lock:
            self._threshold = threshold
            current = self.artifacts
            if current is None:
                return PipelineResult()
            return self._run(lambda: processor.process(current.original, threshold))

    # -------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------

    def _run(self, compute: Callable[[], ArtifactSet]) -> PipelineResult:
        """Compute a new artifact set and publish it all-or-nothing."""
        self._busy = True
        self.last_error = None
        try:
            artifacts = compute()
        except PipelineError as e:
            result = PipelineResult(error=e)
        except MemoryError as e:
            error = OutOfResources(f"Image too large to process: {e}")
            error.__cause__ = e
            result = PipelineResult(error=error)
        except Exception as e:
            error = PipelineError(f"Unexpected error: {e}")
            error.__cause__ = e
            result = PipelineResult(error=error)
        else:
            with self._publish_lock:
                self._artifacts = artifacts
            result = PipelineResult(artifacts=artifacts)
        finally:
            self._busy = False
        return self._report(result)

    def _report(self, result: PipelineResult) -> PipelineResult:
        if not result.ok:
            self.last_error = result.message
            print(f"Warning: {result.message}")
        for listener in list(self._listeners):
            listener(result)
        return result
