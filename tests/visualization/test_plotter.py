import queue
from datetime import datetime, timezone

import numpy as np
import pytest

from linescan.core.types import AccumulatedTrace, AccumulationProgress, CalibrationSet, TickKind, TickResult
from linescan.visualization.plotter import PlotterThread, TracePlotter

pytestmark = pytest.mark.unit

TS = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_trace():
    n = 21
    ramp = np.linspace(0, 300, n)
    return AccumulatedTrace(timestamp=TS, positions=np.linspace(0, 1, n), red=ramp,
                            green=ramp[::-1], blue=np.zeros(n), intensity=ramp / 3,
                            line_length=20.0, frame_count=3)


@pytest.mark.parametrize("calibration", [
    CalibrationSet(),
    CalibrationSet(enabled=True),
    CalibrationSet(enabled=True, flip_x_axis=True),
])
def test_plot_trace_writes_png(internal_config, tmp_path, calibration):
    plotter = TracePlotter(internal_config)
    out = plotter.plot_trace(make_trace(), calibration, tmp_path / "trace.png")

    assert out.endswith(".png")
    assert (tmp_path / "trace.png").stat().st_size > 0


def test_plot_suffix_follows_format(make_config, tmp_path):
    config = make_config(visualization={"output_format": "pdf"})
    out = TracePlotter(config).plot_trace(make_trace(), CalibrationSet(), tmp_path / "trace.png")
    assert out.endswith("trace.pdf")


def test_plotter_thread_plots_every_nth(make_config, output_dirs):
    config = make_config(PLOT_EVERY=2)
    q = queue.Queue()
    thread = PlotterThread(q, output_dirs, config)

    result = TickResult(TickKind.ACCUMULATED, AccumulationProgress(3, 3), trace=make_trace())
    for i in range(3):
        q.put({"result": result, "calibration": CalibrationSet(), "timestamp": TS.replace(microsecond=i)})
    q.put(None)

    thread.start()
    thread.join(timeout=30)

    assert not thread.is_alive()
    assert thread.plots_written == 2
    assert len(list(output_dirs["plots"].rglob("*.png"))) == 2
