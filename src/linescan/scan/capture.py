"""OpenCV video capture feeding the line-scan pipeline.

Reads frames from a camera index, video file or stream URL and queues them
as ArrayFrames. A failed read queues ``None`` so the downstream tick is
skipped rather than stalled.
"""

import logging
import queue
import threading
from datetime import datetime, timezone

import cv2

from linescan.core.errors import SourceUnavailable
from linescan.scan.frame import ArrayFrame

__all__ = ['CaptureThread', 'DROP_WARNING_INTERVAL']

logger = logging.getLogger(__name__)

DROP_WARNING_INTERVAL = 100  # warn on the first drop, then every Nth


class CaptureThread(threading.Thread):
    """Grabs frames from ``cv2.VideoCapture`` and pushes them to a queue.

    **Queue Communication:** Each read puts one dict on ``frame_queue``::

        {"frame": ArrayFrame | None, "frame_index": int, "timestamp": datetime}

    When the queue is full the newest frame is dropped; the processor always
    sees frames in capture order.

    **Failures:** A read that returns no image queues ``frame=None``. After
    ``max_consecutive_failures`` failed reads in a row the thread stops (end
    of a video file, unplugged camera).

    Example usage (typically called by orchestrator)::

        capture = CaptureThread(
            config={"source": 0, "width": 640, "height": 480, "fps": 30.0},
            frame_queue=frame_queue,
        )
        capture.start()
        ...
        capture.stop()
        capture.join(timeout=5)
    """

    def __init__(self, config: dict, frame_queue: queue.Queue, capture=None, clock=None):
        """Initialize capture thread.

        Parameters
        ----------
        config : dict
            Capture settings:

            - `source` : int or str, device index, file path or URL (default 0)
            - `width`, `height` : int, requested frame size
            - `fps` : float, requested frame rate
            - `channel_order` : "BGR" or "RGB" (OpenCV delivers BGR)
            - `max_consecutive_failures` : int (default 30)

        frame_queue : queue.Queue
            Queue consumed by the TraceProcessor.

        capture : cv2.VideoCapture, optional
            Already opened capture object. Allows injection for testing.

        clock : callable, optional
            Function returning the current datetime. Defaults to
            ``datetime.now(timezone.utc)``.
        """
        super().__init__(daemon=True)

        self.config = config
        self.source = config.get("source", 0)
        self.width = config.get("width")
        self.height = config.get("height")
        self.fps = config.get("fps")
        self.channel_order = config.get("channel_order", "BGR")
        self.max_consecutive_failures = config.get("max_consecutive_failures", 30)

        self.frame_queue = frame_queue
        self._capture = capture
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._stop_event = threading.Event()
        self._frame_index = 0
        self._frames_read = 0
        self._dropped = 0
        self._failures = 0

        self.name = f"Capture-{self.source}"

    def stop(self):
        """Signal the capture loop to exit after the current read."""
        self._stop_event.set()

    def stopped(self) -> bool:
        return self._stop_event.is_set()

    @property
    def frames_read(self) -> int:
        return self._frames_read

    @property
    def frames_dropped(self) -> int:
        return self._dropped

    def open(self):
        """Open the configured source and apply requested size and fps.

        Raises
        ------
        SourceUnavailable
            If OpenCV cannot open the source.
        """
        if self._capture is None:
            self._capture = cv2.VideoCapture(self.source)

        if not self._capture.isOpened():
            raise SourceUnavailable(f"Cannot open video source {self.source!r}")

        if self.width:
            self._capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        if self.height:
            self._capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        if self.fps:
            self._capture.set(cv2.CAP_PROP_FPS, self.fps)

        logger.info("Opened video source %r (%sx%s @ %s fps requested)",
                    self.source, self.width, self.height, self.fps)
        return self._capture

    def release(self):
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    def read_frame(self):
        """Read one frame; returns an ArrayFrame or None on failure."""
        ok, image = self._capture.read()
        if not ok or image is None:
            return None
        try:
            return ArrayFrame(image, channel_order=self.channel_order, timestamp=self._clock())
        except SourceUnavailable as e:
            logger.debug("Discarding unreadable frame: %s", e)
            return None

    def run(self):
        logger.info("Starting %s", self.name)

        try:
            self.open()
        except SourceUnavailable as e:
            logger.error("%s", e)
            self.release()
            return

        try:
            while not self.stopped():
                frame = self.read_frame()

                if frame is None:
                    self._failures += 1
                    if self._failures >= self.max_consecutive_failures:
                        logger.warning("%d consecutive failed reads from %r; stopping capture",
                                       self._failures, self.source)
                        break
                else:
                    self._failures = 0
                    self._frames_read += 1

                self._enqueue(frame)
        finally:
            self.release()

        logger.info("Stopped %s (%d frames read, %d dropped)",
                    self.name, self._frames_read, self._dropped)

    def _enqueue(self, frame):
        item = {
            "frame": frame,
            "frame_index": self._frame_index,
            "timestamp": frame.timestamp if frame is not None else self._clock(),
        }
        self._frame_index += 1
        try:
            self.frame_queue.put_nowait(item)
        except queue.Full:
            self._dropped += 1
            if self._dropped == 1 or self._dropped % DROP_WARNING_INTERVAL == 0:
                logger.warning("Frame queue full, dropped %d frames so far (latest %d); processing is slower than capture",
                               self._dropped, item["frame_index"])
            else:
                logger.debug("Frame queue full, dropping frame %d", item["frame_index"])
