"""Line-scan numeric engine.

- geometry: Offset/rotation transform of the sample line
- frame: Pixel buffer protocol and numpy-backed frame
- sampler: Sample RGB/intensity along a line
- accumulator: Sum N consecutive samples into one trace
- calibration: Position to wavelength mapping and display helpers
- capture: OpenCV frame source thread
- trace_io: xarray/NetCDF export
"""

from linescan.scan.geometry import transform_line
from linescan.scan.frame import ArrayFrame, PixelBuffer
from linescan.scan.sampler import LineSampler
from linescan.scan.accumulator import FrameAccumulator
from linescan.scan.calibration import (
    position_to_wavelength,
    positions_to_wavelengths,
    flip_position,
    display_positions,
)

__all__ = [
    "transform_line",
    "ArrayFrame",
    "PixelBuffer",
    "LineSampler",
    "FrameAccumulator",
    "position_to_wavelength",
    "positions_to_wavelengths",
    "flip_position",
    "display_positions",
]
