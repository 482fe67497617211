"""Line-scan trace visualization.

Renders live and accumulated traces to image files. Supports threaded
queue-based processing for pipeline integration.
"""

import threading
import queue
import logging
from pathlib import Path
from typing import Optional, Dict, TYPE_CHECKING

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from linescan.core.types import AccumulatedTrace, AccumulationProgress, CalibrationSet, SampleSet
from linescan.scan.calibration import display_positions, flip_position, positions_to_wavelengths
from linescan.setup_directories import get_plot_path

if TYPE_CHECKING:
    from linescan.schemas import InternalConfig

__all__ = ['TracePlotter', 'PlotterThread', 'CHANNEL_COLORS']

logger = logging.getLogger(__name__)

CHANNEL_COLORS = {
    "red": "#d62728",
    "green": "#2ca02c",
    "blue": "#1f77b4",
    "intensity": "#333333",
}


class TracePlotter:
    """Plots a SampleSet or AccumulatedTrace against position or wavelength.

    **Scaling:** Each enabled channel is divided by its own maximum (floored
    at 1), so all channels share a 0-1 y axis and a dark trace is not
    blown up to full scale.

    **X axis:** Display positions (``1 - position`` when the calibration set
    flips the axis). With calibration enabled the ticks are labelled in nm
    and every calibration point is marked with a dashed line. Stored
    positions are never changed.

    Example usage::

        plotter = TracePlotter(config)
        plot_path = plotter.plot_trace(trace, calibration, "plots/trace.png")
    """

    def __init__(self, config: "InternalConfig"):
        viz = config.visualization
        self.dpi = viz.dpi
        self.figsize = tuple(viz.figsize)
        self.output_format = viz.output_format
        self.channels = list(viz.channels)

        logger.info("TracePlotter initialized (format=%s, dpi=%d, channels=%s)",
                    self.output_format, self.dpi, ",".join(self.channels))

    def _plot_channels(self, ax: plt.Axes, trace: SampleSet, x: np.ndarray) -> None:
        for name in self.channels:
            values = np.asarray(trace.channel(name), dtype=np.float64)
            scale = max(float(values.max()) if values.size else 0.0, 1.0)
            ax.plot(x, values / scale, color=CHANNEL_COLORS[name], linewidth=1.2, label=name)

    def _format_wavelength_axis(self, ax: plt.Axes, calibration: CalibrationSet) -> None:
        ticks = np.linspace(0.0, 1.0, 11)
        data_positions = flip_position(ticks) if calibration.flip_x_axis else ticks
        wavelengths = positions_to_wavelengths(data_positions, calibration)
        ax.set_xticks(ticks)
        ax.set_xticklabels([f"{w:.0f}" for w in wavelengths])
        ax.set_xlabel("Wavelength (nm)", fontsize=11)

        for point in calibration.points:
            x = flip_position(point.position) if calibration.flip_x_axis else point.position
            ax.axvline(x, color="#ff7f0e", linestyle="--", linewidth=0.8, alpha=0.8)
            ax.annotate(f"{point.wavelength:g}nm", xy=(x, 1.02), xycoords=("data", "axes fraction"),
                        ha="center", fontsize=8, color="#ff7f0e")

    def _title(self, trace: SampleSet, progress: Optional[AccumulationProgress]) -> str:
        time_str = trace.timestamp.strftime('%Y-%m-%d %H:%M:%S UTC')
        if isinstance(trace, AccumulatedTrace):
            status = f"Accumulated ({trace.frame_count} frames)"
        elif progress is not None and progress.buffered:
            status = f"Live (accumulating {progress})"
        else:
            status = "Live"
        return f"{status}, line {trace.line_length:.1f} px\n{time_str}"

    def _save_figure(self, fig: plt.Figure, output_path: Path) -> str:
        """Save figure in configured format."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_file = output_path.with_suffix(f'.{self.output_format}')

        fig.savefig(output_file, dpi=self.dpi, bbox_inches='tight', format=self.output_format)
        plt.close(fig)
        logger.debug("Plot saved: %s", output_file)

        return str(output_file)

    def plot_trace(
        self,
        trace: SampleSet,
        calibration: CalibrationSet,
        output_path,
        progress: Optional[AccumulationProgress] = None,
    ) -> str:
        """Render one trace to ``output_path``.

        Parameters
        ----------
        trace : SampleSet or AccumulatedTrace
            Trace to draw.
        calibration : CalibrationSet
            Axis labelling and flip flag.
        output_path : str or Path
            Target file; the suffix is replaced by the configured format.
        progress : AccumulationProgress, optional
            Shown in the title for live traces.

        Returns
        -------
        str
            Path of the written image.
        """
        fig, ax = plt.subplots(figsize=self.figsize)
        try:
            x = display_positions(trace.positions, calibration.flip_x_axis)
            self._plot_channels(ax, trace, x)

            ax.set_xlim(0.0, 1.0)
            ax.set_ylim(0.0, 1.05)
            ax.set_ylabel("Relative value", fontsize=11)
            ax.grid(True, alpha=0.2, linestyle=':', linewidth=0.5)

            if calibration.enabled:
                self._format_wavelength_axis(ax, calibration)
            else:
                ax.set_xlabel("Position along line" + (" (flipped)" if calibration.flip_x_axis else ""),
                              fontsize=11)

            ax.set_title(self._title(trace, progress), fontsize=12, fontweight='bold', pad=14)
            ax.legend(loc='upper right', fontsize=9, framealpha=0.9)
        except Exception:
            plt.close(fig)
            raise

        return self._save_figure(fig, Path(output_path))


class PlotterThread(threading.Thread):
    """Worker thread that plots emitted traces from the processor.

    **Input Queue Format:**

    Each item is a dict from TraceProcessor:
    - `result`: TickResult with the emitted trace
    - `calibration`: CalibrationSet in effect when the trace was emitted
    - `timestamp`: trace datetime

    Only every ``visualization.plot_every``-th item is drawn. ``None`` is
    the shutdown signal.

    Example usage (typically called by orchestrator)::

        plotter = PlotterThread(
            input_queue=processor_output_queue,
            output_dirs=output_dirs,
            config=config,
        )
        plotter.start()
        ...
        plotter.stop()
        plotter.join(timeout=5)
    """

    def __init__(
        self,
        input_queue: queue.Queue,
        output_dirs: Dict,
        config: "InternalConfig",
        name: str = 'TracePlotter',
    ):
        super().__init__(name=name, daemon=True)

        self.input_queue = input_queue
        self.output_dirs = output_dirs
        self.config = config
        self.plot_every = config.visualization.plot_every

        self.plotter = TracePlotter(config)
        self.running = True
        self._seen = 0
        self.plots_written = 0

    def run(self):
        """Plot items from the queue until the shutdown signal."""
        logger.info("%s started", self.name)

        while self.running:
            try:
                item = self.input_queue.get(timeout=1.0)

                if item is None:
                    logger.info("%s received shutdown signal", self.name)
                    break

                self._process_item(item)

            except queue.Empty:
                continue
            except Exception as e:
                logger.error("Error in %s: %s", self.name, e, exc_info=True)

        logger.info("%s stopped (%d plots)", self.name, self.plots_written)

    def _process_item(self, item: Dict) -> Optional[str]:
        self._seen += 1
        if (self._seen - 1) % self.plot_every:
            return None

        result = item["result"]
        trace = result.trace
        kind = "accumulated" if isinstance(trace, AccumulatedTrace) else "live"

        try:
            output_path = get_plot_path(
                self.output_dirs,
                self.config.capture.source,
                timestamp=item.get("timestamp", trace.timestamp),
                kind=kind,
                output_format=self.plotter.output_format,
            )
            plot_file = self.plotter.plot_trace(trace, item["calibration"], output_path,
                                                progress=result.progress)
        except Exception as e:
            logger.exception("Error plotting trace: %s", e)
            return None

        self.plots_written += 1
        return plot_file

    def stop(self):
        """Signal thread to stop."""
        self.running = False
        try:
            self.input_queue.put_nowait(None)
        except queue.Full:
            pass
