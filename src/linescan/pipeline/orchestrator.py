"""Multi-threaded pipeline orchestration.

Coordinates capture, processor, and plotter threads with queue-based
inter-thread communication. Manages logging, settings restore/save,
monitoring, and graceful shutdown.
"""

import queue
import time
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from linescan.persistence import load_settings, save_settings
from linescan.pipeline.coordinator import PipelineCoordinator
from linescan.pipeline.processor import TraceProcessor
from linescan.scan.capture import CaptureThread
from linescan.schemas.internal import InternalConfig
from linescan.setup_directories import (
    get_log_path,
    get_settings_path,
    setup_output_directories,
)
from linescan.visualization.plotter import PlotterThread

__all__ = ['PipelineOrchestrator']

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """Manages the multi-threaded line-scan pipeline.

    This is the main entry point for running ``linescan``. It coordinates
    three worker threads using queues:

    1. **Capture Thread**: Reads frames from the video source (OpenCV).

    2. **Processor Thread**: Runs one coordinator tick per frame: transform
       the line, sample it, and emit live SampleSets or accumulated traces.
       Writes accumulated traces to NetCDF and keeps the run summary.

    3. **Plotter Thread**: Renders emitted traces to image files (optional,
       ``visualization.enabled``).

    **Settings:** The saved settings snapshot (line, accumulation target,
    calibration) is restored before capture starts and written back on stop.

    **Queue Management:** The frame queue is small on purpose; when the
    processor falls behind, new frames are dropped at capture rather than
    piling up stale ones.

    **Logging:** All output goes to both console and
    ``logs/linescan_<source>.log`` at ``config.logging.level``.

    Example usage::

        config = resolve_config(ParamConfig(), user_cfg, cli_cfg)
        orch = PipelineOrchestrator(config)
        orch.start(max_runtime=10)  # Run for 10 minutes then stop
    """

    def __init__(self, config: InternalConfig, output_dirs: Optional[Dict[str, Path]] = None,
                 capture=None, status_interval: float = 30.0):
        """Initialize orchestrator.

        Parameters
        ----------
        config : InternalConfig
            Resolved runtime configuration.
        output_dirs : dict, optional
            Output directory paths. Created under ``config.base_dir`` if not given.
        capture : cv2.VideoCapture, optional
            Pre-opened capture object passed to the CaptureThread (testing).
        status_interval : float, optional
            Seconds between status log lines (default 30).
        """
        self.config = config
        self.output_dirs = output_dirs or setup_output_directories(config.base_dir)
        self.status_interval = status_interval
        self._capture_source = capture

        self.frame_queue = queue.Queue(maxsize=config.processor.frame_queue_size)
        self.plotter_queue = queue.Queue(maxsize=config.processor.output_queue_size)

        self.coordinator = PipelineCoordinator(config)
        self.settings_path = get_settings_path(self.output_dirs, config.settings_file)

        # Threads (created in start())
        self.capture = None
        self.processor = None
        self.plotter = None

        # Lifecycle state
        self._stopped = False
        self._start_time = None
        self._started_at = None
        self._max_duration = None

    def _setup_logging(self):
        """Configure the root logger with file and console handlers."""
        log_level = getattr(logging, self.config.logging.level.upper(), logging.INFO)
        log_path = get_log_path(self.output_dirs, self.config.capture.source)

        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Clear existing handlers and add new ones
        root = logging.getLogger()
        root.setLevel(log_level)
        for handler in root.handlers[:]:
            root.removeHandler(handler)

        fh = logging.FileHandler(log_path)
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

        ch = logging.StreamHandler()
        ch.setLevel(log_level)
        ch.setFormatter(formatter)
        root.addHandler(ch)

        logger.info("Logging: level=%s, file=%s", self.config.logging.level, log_path)

    def restore_settings(self) -> list:
        """Apply the saved settings snapshot, if there is one."""
        try:
            payload = load_settings(self.settings_path)
        except ValueError as e:
            logger.warning("Ignoring settings file: %s", e)
            return []

        if payload is None:
            logger.info("No saved settings at %s; using configuration", self.settings_path)
            return []

        return self.coordinator.restore(payload)

    def save_settings(self) -> Optional[Path]:
        try:
            return save_settings(self.coordinator.snapshot(), self.settings_path)
        except OSError as e:
            logger.error("Could not save settings to %s: %s", self.settings_path, e)
            return None

    def start(self, max_runtime: Optional[float] = None):
        """Start the pipeline and run until the source ends, timeout, or Ctrl+C.

        Parameters
        ----------
        max_runtime : float, optional
            Maximum runtime in minutes. If None, runs until the video source
            is exhausted or KeyboardInterrupt (Ctrl+C).

        Notes
        -----
        stop() is called automatically on exit to stop threads, export the
        summary and save settings.
        """
        self._setup_logging()

        logger.info("=" * 60)
        logger.info("Starting Line-Scan Pipeline")
        logger.info("=" * 60)

        self._start_time = time.time()
        self._started_at = datetime.now(timezone.utc)
        self._max_duration = max_runtime * 60 if max_runtime else None

        if self._max_duration:
            logger.info("Max runtime: %.1f minutes", max_runtime)
        else:
            logger.info("Max runtime: Until interrupted or source ends")

        self.restore_settings()
        if not self.coordinator.has_line:
            logger.warning("No sample line defined; frames will be skipped until one is set")

        logger.info("Starting Processor...")
        self.processor = TraceProcessor(
            input_queue=self.frame_queue,
            config=self.config,
            output_dirs=self.output_dirs,
            coordinator=self.coordinator,
            output_queue=self.plotter_queue if self.config.visualization.enabled else None,
        )
        self.processor.start()

        if self.config.visualization.enabled:
            logger.info("Starting Plotter...")
            self.plotter = PlotterThread(
                input_queue=self.plotter_queue,
                output_dirs=self.output_dirs,
                config=self.config,
            )
            self.plotter.start()

        logger.info("Starting Capture...")
        self.capture = CaptureThread(
            config=self.config.capture.model_dump(),
            frame_queue=self.frame_queue,
            capture=self._capture_source,
        )
        self.capture.start()

        logger.info("Pipeline running in %s mode. Press Ctrl+C to stop.", self.config.mode.upper())

        try:
            self._main_loop()
        except KeyboardInterrupt:
            logger.info("Shutdown signal received (Ctrl+C)")
        finally:
            self.stop()

    def _main_loop(self):
        """Monitoring loop; returns when the run should end."""
        last_status = time.time()
        while True:
            if self._max_duration and time.time() - self._start_time > self._max_duration:
                logger.info("Max duration reached")
                break

            if not self.capture.is_alive() and self.frame_queue.empty():
                logger.info("Video source finished")
                break

            if self.processor and not self.processor.is_alive():
                logger.error("Processor stopped unexpectedly")
                break

            time.sleep(0.2)
            if time.time() - last_status >= self.status_interval:
                self._log_status()
                last_status = time.time()

    def _drain_queue(self, q: queue.Queue, name: str, timeout: float = 10.0):
        """Wait for queue to drain with timeout."""
        deadline = time.time() + timeout
        while q.qsize() > 0:
            if time.time() > deadline:
                logger.warning("%s queue drain timeout (%d items left)", name, q.qsize())
                break
            time.sleep(0.1)

    def stop(self):
        """Stop the pipeline gracefully and finalize all results.

        Safe to call multiple times.

        **Operations:**

        1. Stops capture, lets the processor finish queued frames
        2. Stops processor and plotter
        3. Exports the run summary to Parquet
        4. Saves the settings snapshot
        5. Logs runtime and tick statistics
        """
        if self._stopped:
            return

        self._stopped = True
        logger.info("Stopping pipeline...")

        if self.capture and self.capture.is_alive():
            logger.info("Stopping Capture...")
            self.capture.stop()
            self.capture.join(timeout=5)
            if self.capture.is_alive():
                logger.warning("Capture did not stop cleanly")

        if self.processor and self.processor.is_alive():
            self._drain_queue(self.frame_queue, "processor")

        for name, thread in [("Processor", self.processor), ("Plotter", self.plotter)]:
            if thread and thread.is_alive():
                logger.info("Stopping %s...", name)
                thread.stop()
                thread.join(timeout=5)
                if thread.is_alive():
                    logger.warning("%s did not stop cleanly", name)

        if self.processor:
            logger.info("Saving results...")
            self.processor.save_results(started_at=self._started_at)
            df = self.processor.get_results()
            logger.info("Final results: %d traces", len(df))

        self.save_settings()

        elapsed = time.time() - self._start_time if self._start_time else 0
        logger.info("=" * 60)
        logger.info("Pipeline stopped. Runtime: %.1f seconds", elapsed)
        if self.processor:
            counts = self.processor.counts
            logger.info("Ticks: live=%d accumulated=%d collecting=%d skipped=%d",
                        counts["live"], counts["accumulated"], counts["collecting"], counts["skipped"])
        if self.capture:
            logger.info("Frames: read=%d dropped=%d", self.capture.frames_read, self.capture.frames_dropped)
        logger.info("=" * 60)

    def _log_status(self):
        """Log current pipeline status."""
        logger.info(
            "Status: C=%s P=%s L=%s FQ=%d PQ=%d progress=%s dropped=%d",
            "✓" if self.capture and self.capture.is_alive() else "✗",
            "✓" if self.processor and self.processor.is_alive() else "✗",
            "✓" if self.plotter and self.plotter.is_alive() else "✗",
            self.frame_queue.qsize(),
            self.plotter_queue.qsize(),
            self.coordinator.progress,
            self.capture.frames_dropped if self.capture else 0,
        )
