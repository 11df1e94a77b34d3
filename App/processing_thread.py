"""Background worker running the threshold pipeline off the UI thread."""

from collections import deque
from typing import Callable, Optional

from PyQt6.QtCore import QMutex, QMutexLocker, QThread, pyqtSignal

from image_processing.decoder import ImageSource
from models import CropRect, PipelineResult, PixelBuffer
from pipeline import ThresholdPipeline

Request = Callable[[], PipelineResult]


class ProcessingThread(QThread):
    """Serializes pipeline requests on a background thread.

    AIDEV-NOTE: Requests run strictly in the order they were queued (no
    superseding). Results are delivered through signals; the UI reads the
    artifact set from the signal payload or from pipeline.artifacts.
    """

    artifacts_ready = pyqtSignal(object)  # ArtifactSet
    error_occurred = pyqtSignal(str)  # User-facing message
    busy_changed = pyqtSignal(bool)

    def __init__(self, pipeline: Optional[ThresholdPipeline] = None):
        super().__init__()
        self.pipeline = pipeline or ThresholdPipeline()
        self.running = True

        self.request_queue = deque()
        self.queue_lock = QMutex()

    # -------------------------------------------------------------

    def run(self):
        while self.running:
            if not self.process_pending():
                self.msleep(20)

    def process_pending(self) -> int:
        """Run every queued request in order; returns how many ran."""
        count = 0
        try:
            while True:
                with QMutexLocker(self.queue_lock):
                    if not self.request_queue:
                        break
                    request = self.request_queue.popleft()

                if count == 0:
                    self.busy_changed.emit(True)
                count += 1
                self._execute(request)
        finally:
            if count:
                self.busy_changed.emit(False)
        return count

    def _execute(self, request: Request):
        try:
            result = request()
        except Exception as e:
            # Listener failures surface here; the loop keeps draining
            self.error_occurred.emit(f"Processing failed: {e}")
            return
        if not result.ok:
            self.error_occurred.emit(result.message)
        elif result.artifacts is not None:
            self.artifacts_ready.emit(result.artifacts)

    # -------------------------------------------------------------
    # API methods
    # -------------------------------------------------------------

    def load_image(self, pixels: PixelBuffer):
        """Thread-safe enqueue of an already decoded image."""
        self._enqueue(lambda: self.pipeline.load_image(pixels))

    def load_source(
        self,
        source: ImageSource,
        max_dimension: Optional[int] = None,
        crop: Optional[CropRect] = None,
    ):
        """Thread-safe enqueue of an encoded image."""
        self._enqueue(lambda: self.pipeline.load_source(source, max_dimension, crop))

    def set_threshold(self, threshold: int):
        self._enqueue(lambda: self.pipeline.set_threshold(threshold))

    def pending_count(self) -> int:
        with QMutexLocker(self.queue_lock):
            return len(self.request_queue)

    def clear_queue(self):
        with QMutexLocker(self.queue_lock):
            self.request_queue.clear()

    def stop(self):
        self.running = False

    def _enqueue(self, request: Request):
        with QMutexLocker(self.queue_lock):
            self.request_queue.append(request)
