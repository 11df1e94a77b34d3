import time

import pytest
from PIL import Image

from conftest import encode_image
from image_processing import ImageProcessor
from models import EncoderConfig
from pipeline import ThresholdPipeline
from processing_thread import ProcessingThread


@pytest.fixture
def worker(qapp):
    thread = ProcessingThread(ThresholdPipeline(threshold=128))
    yield thread
    if thread.isRunning():
        thread.stop()
        thread.wait(5000)


def _record(worker):
    events = []
    worker.artifacts_ready.connect(lambda artifacts: events.append(("artifacts", artifacts)))
    worker.error_occurred.connect(lambda message: events.append(("error", message)))
    worker.busy_changed.connect(lambda busy: events.append(("busy", busy)))
    return events


def test_requests_run_in_queue_order(worker, checkerboard):
    events = _record(worker)

    worker.set_threshold(64)
    worker.load_image(checkerboard)
    worker.set_threshold(500)
    worker.set_threshold(255)
    assert worker.pending_count() == 4

    assert worker.process_pending() == 4

    kinds = [kind for kind, _ in events]
    assert kinds == ["busy", "artifacts", "error", "artifacts", "busy"]
    assert events[1][1].threshold == 64
    assert events[2][1].startswith("Invalid parameter")
    assert events[3][1].bitmap.data == b"\xC0\xC0"
    assert [value for kind, value in events if kind == "busy"] == [True, False]


def test_nothing_pending_emits_nothing(worker):
    events = _record(worker)

    assert worker.process_pending() == 0
    assert events == []


def test_decode_error_is_reported(worker):
    events = _record(worker)

    worker.load_source(b"not an image")
    worker.process_pending()

    assert events[1][0] == "error"
    assert events[1][1].startswith("Failed to load image")
    assert worker.pipeline.artifacts is None


def test_clear_queue_drops_requests(worker, checkerboard):
    worker.load_image(checkerboard)
    worker.clear_queue()

    assert worker.process_pending() == 0
    assert worker.pipeline.artifacts is None


def test_background_thread_processes_requests(worker):
    worker.pipeline.processor = ImageProcessor(EncoderConfig(fit_to_display=False))
    worker.load_source(encode_image(Image.new("RGB", (16, 2), (0, 0, 0))), 250)
    worker.start()

    deadline = time.monotonic() + 5.0
    while worker.pipeline.artifacts is None and time.monotonic() < deadline:
        time.sleep(0.01)

    worker.stop()
    assert worker.wait(5000)
    assert worker.pipeline.artifacts.bitmap.data == b"\xFF\xFF\xFF\xFF"


def test_listener_failure_does_not_stop_the_queue(worker, checkerboard):
    events = _record(worker)

    def failing_listener(result):
        raise RuntimeError("listener exploded")

    worker.pipeline.add_listener(failing_listener)
    worker.load_image(checkerboard)
    worker.set_threshold(64)

    assert worker.process_pending() == 2

    errors = [value for kind, value in events if kind == "error"]
    assert errors == ["Processing failed: listener exploded"] * 2
    assert events[0] == ("busy", True)
    assert events[-1] == ("busy", False)
    assert worker.pending_count() == 0
    assert worker.pipeline.artifacts.threshold == 64
