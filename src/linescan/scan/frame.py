"""Frame buffer interface and the numpy-backed implementation.

Any object with ``width``, ``height`` and ``read_pixel(x, y) -> (r, g, b)``
can be sampled. ArrayFrame wraps an ``(H, W, 3)`` image array such as the
ones OpenCV returns, and adds a vectorized ``read_pixels`` that the sampler
uses when present.
"""

from datetime import datetime, timezone
from typing import Literal, Optional, Protocol, Tuple, runtime_checkable

import numpy as np

from linescan.core.errors import SourceUnavailable

__all__ = ['PixelBuffer', 'ArrayFrame']


@runtime_checkable
class PixelBuffer(Protocol):
    """Read-only frame supplied once per tick by the frame source."""

    width: int
    height: int

    def read_pixel(self, x: int, y: int) -> Tuple[float, float, float]:
        ...


class ArrayFrame:
    """Pixel buffer over an ``(H, W, 3)`` or ``(H, W, 4)`` numpy image.

    Parameters
    ----------
    pixels : np.ndarray
        Image array. Extra channels beyond the first three (alpha) are ignored.
    channel_order : {"RGB", "BGR"}
        Order of the color channels in ``pixels``. OpenCV frames are BGR.
    timestamp : datetime, optional
        Capture time. Defaults to now (UTC).

    Raises
    ------
    SourceUnavailable
        If ``pixels`` is None or is not a non-empty color image.
    """

    def __init__(self, pixels: np.ndarray, channel_order: Literal["RGB", "BGR"] = "RGB",
                 timestamp: Optional[datetime] = None):
        if pixels is None:
            raise SourceUnavailable("No frame data")

        pixels = np.asarray(pixels)
        if pixels.ndim != 3 or pixels.shape[2] < 3 or pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise SourceUnavailable(f"Unreadable frame with shape {pixels.shape}")

        if channel_order == "BGR":
            self._rgb_index = (2, 1, 0)
        elif channel_order == "RGB":
            self._rgb_index = (0, 1, 2)
        else:
            raise ValueError(f"Unknown channel order: {channel_order}")

        self.pixels = pixels
        self.channel_order = channel_order
        self.height = int(pixels.shape[0])
        self.width = int(pixels.shape[1])
        self.timestamp = timestamp or datetime.now(timezone.utc)

    def read_pixel(self, x: int, y: int) -> Tuple[float, float, float]:
        """Return ``(r, g, b)`` at integer pixel ``(x, y)``."""
        px = self.pixels[y, x]
        r, g, b = self._rgb_index
        return float(px[r]), float(px[g]), float(px[b])

    def read_pixels(self, xs: np.ndarray, ys: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Vectorized read of many pixels; returns float64 ``(r, g, b)`` arrays."""
        picked = self.pixels[ys, xs]
        r, g, b = self._rgb_index
        return (
            picked[:, r].astype(np.float64),
            picked[:, g].astype(np.float64),
            picked[:, b].astype(np.float64),
        )

    def __repr__(self) -> str:
        return f"ArrayFrame({self.width}x{self.height}, {self.channel_order})"
