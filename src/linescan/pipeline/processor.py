"""Line-scan trace processor thread.

Pulls frames from the capture queue, runs one coordinator tick per frame,
and forwards emitted traces to the plotter. Accumulated traces are written
to NetCDF; every emitted trace adds one row to the run summary.
"""

import logging
from pathlib import Path
from typing import Optional, Dict, List, TYPE_CHECKING
import threading
import queue

import numpy as np
import pandas as pd

from linescan.contracts import ContractViolation
from linescan.core.types import AccumulatedTrace, TickKind, TickResult
from linescan.pipeline.coordinator import PipelineCoordinator
from linescan.scan.calibration import position_to_wavelength
from linescan.scan.trace_io import save_trace_netcdf
from linescan.setup_directories import get_summary_path, get_trace_path

if TYPE_CHECKING:
    from linescan.schemas import InternalConfig

__all__ = ['TraceProcessor']

logger = logging.getLogger(__name__)


class TraceProcessor(threading.Thread):
    """Runs the coordinator tick for every captured frame.

    **Processing:**

    For each queue item the processor:

    1. Calls ``coordinator.tick(frame)``. A missing frame (``None``) or an
       unreadable one comes back as SKIPPED and leaves accumulation intact.
    2. For an emitted trace (live SampleSet or AccumulatedTrace), records a
       summary row: time, kind, frame count, sample count, peak position,
       peak wavelength (when calibrated) and peak intensity.
    3. Writes accumulated traces to NetCDF when ``output.save_traces`` is on.
    4. Pushes the result to ``output_queue`` for the plotter (non-blocking;
       a full queue drops the plot, not the trace).

    **Failures:** Per-frame exceptions are logged and the loop continues.
    A ContractViolation is a pipeline bug: it is logged as critical and the
    processor stops.

    Example usage (typically called by orchestrator)::

        processor = TraceProcessor(
            input_queue=frame_queue,
            config=config,
            output_dirs=output_dirs,
            output_queue=plot_queue,
        )
        processor.start()
        ...
        processor.stop()
        df = processor.get_results()
    """

    def __init__(self, input_queue: queue.Queue, config: "InternalConfig",
                 output_dirs: Dict[str, Path],
                 coordinator: Optional[PipelineCoordinator] = None,
                 output_queue: queue.Queue = None,
                 name: str = "TraceProcessor"):
        """Initialize processor with validated configuration.

        Parameters
        ----------
        input_queue : queue.Queue
            Items from CaptureThread: ``{"frame": ArrayFrame | None, ...}``.
            A bare frame object is accepted as well.

        config : InternalConfig
            Fully validated runtime configuration.

        output_dirs : dict
            Output directory paths (from setup_output_directories).

        coordinator : PipelineCoordinator, optional
            Shared coordinator. Created from ``config`` if not given; the
            orchestrator passes its own so controls and settings reach it.

        output_queue : queue.Queue, optional
            Queue read by the PlotterThread. If None, nothing is plotted.

        name : str, optional
            Thread name for logging (default: "TraceProcessor").
        """
        super().__init__(daemon=True, name=name)

        self.input_queue = input_queue
        self.config = config
        self.output_dirs = output_dirs
        self.output_queue = output_queue
        self.coordinator = coordinator or PipelineCoordinator(config)
        self._stop_event = threading.Event()

        self.output_lock = threading.Lock()
        self._rows: List[dict] = []
        self._counts = {kind: 0 for kind in TickKind}

    def stop(self):
        """Signal processor to stop gracefully."""
        self._stop_event.set()

    def stopped(self):
        """Check if processor should stop."""
        return self._stop_event.is_set()

    @property
    def counts(self) -> Dict[str, int]:
        """Ticks seen so far, per TickKind value."""
        with self.output_lock:
            return {kind.value: n for kind, n in self._counts.items()}

    def process_frame(self, item) -> Optional[TickResult]:
        """Run one tick for a queue item; returns the TickResult (None on error)."""
        frame = item.get("frame") if isinstance(item, dict) else item

        try:
            result = self.coordinator.tick(frame)
        except ContractViolation as e:
            logger.critical("💥 CRITICAL: Pipeline contract violated: %s", e)
            logger.critical("This indicates a bug in pipeline logic. Stopping pipeline.")
            self.stop()
            return None
        except Exception:
            logger.exception("Error processing frame %s", item.get("frame_index") if isinstance(item, dict) else "")
            return None

        with self.output_lock:
            self._counts[TickKind(result.kind)] += 1

        if not result.emitted:
            return result

        calibration = self.coordinator.calibration
        trace_path = None
        if isinstance(result.trace, AccumulatedTrace) and self.config.output.save_traces:
            trace_path = self._save_trace(result)

        self._record_summary(result, calibration, trace_path)

        if self.output_queue is not None:
            try:
                self.output_queue.put_nowait({
                    "result": result,
                    "calibration": calibration,
                    "timestamp": result.trace.timestamp,
                    "trace_nc": trace_path,
                })
            except queue.Full:
                logger.debug("Plotter queue full, skipping plot")

        return result

    def _save_trace(self, result: TickResult) -> Optional[str]:
        try:
            path = get_trace_path(self.output_dirs, self.config.capture.source,
                                  timestamp=result.trace.timestamp, kind="accumulated")
            save_trace_netcdf(result.trace, path, self.coordinator.calibration)
            return str(path)
        except Exception as e:
            logger.warning("Could not save trace NetCDF: %s", e)
            return None

    def _record_summary(self, result: TickResult, calibration, trace_path: Optional[str]):
        trace = result.trace
        intensity = trace.intensity
        peak = int(np.argmax(intensity))
        peak_position = float(trace.positions[peak])
        frame_count = trace.frame_count if isinstance(trace, AccumulatedTrace) else 1

        row = {
            "time": pd.Timestamp(trace.timestamp),
            "kind": TickKind(result.kind).value,
            "frame_count": frame_count,
            "samples": len(trace),
            "line_length": trace.line_length,
            "peak_index": peak,
            "peak_position": peak_position,
            "peak_wavelength": (position_to_wavelength(peak_position, calibration)
                                if calibration.enabled else np.nan),
            "peak_intensity": float(intensity[peak]),
            "peak_intensity_per_frame": float(intensity[peak]) / frame_count,
            "mean_intensity_per_frame": float(np.mean(intensity)) / frame_count,
            "trace_nc": trace_path,
        }
        with self.output_lock:
            self._rows.append(row)

        if result.kind == TickKind.ACCUMULATED:
            logger.info("Trace: %d frames, peak %.1f at position %.3f%s",
                        frame_count, row["peak_intensity_per_frame"], peak_position,
                        f" ({row['peak_wavelength']:.1f} nm)" if calibration.enabled else "")

    def run(self):
        """Main processor loop (runs in thread).

        Reads frames from input_queue until stop() is called; a None item
        from the queue is a shutdown sentinel, not a missing frame.
        """
        logger.info("Processor started, waiting for frames...")
        timeout = self.config.processor.queue_timeout

        while not self.stopped():
            try:
                try:
                    item = self.input_queue.get(timeout=timeout)
                except queue.Empty:
                    continue

                try:
                    if item is None:
                        break
                    self.process_frame(item)
                finally:
                    self.input_queue.task_done()

            except Exception:
                logger.exception("Processor error")

        logger.info("Processor stopped")

    def get_results(self) -> pd.DataFrame:
        """Summary rows for all emitted traces as a DataFrame.

        Safe to call while the processor is running. Empty DataFrame if
        nothing has been emitted yet.
        """
        with self.output_lock:
            if not self._rows:
                return pd.DataFrame()
            return pd.DataFrame(list(self._rows))

    def save_results(self, filepath: str = None, started_at=None) -> Optional[Path]:
        """Export the run summary to Parquet.

        Parameters
        ----------
        filepath : str, optional
            Output Parquet filepath. If None, uses
            ``summary/<source>_summary_<started_at>.parquet``.
        started_at : datetime, optional
            Run start, used in the default filename.

        Returns
        -------
        Path or None
            Written file, or None if there was nothing to export.
        """
        if filepath is None:
            filepath = get_summary_path(self.output_dirs, self.config.capture.source, started_at)

        df = self.get_results()
        if df.empty:
            logger.warning("No results to export")
            return None

        compression = self.config.output.compression
        try:
            filepath = Path(filepath)
            filepath.parent.mkdir(parents=True, exist_ok=True)
            df.to_parquet(filepath, engine='pyarrow',
                          compression=None if compression == "none" else compression,
                          index=False)
            logger.info("Exported %d rows to: %s", len(df), filepath)
            return filepath
        except Exception:
            logger.exception("Failed to export results")
            return None
