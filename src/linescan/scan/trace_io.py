"""Trace export: xarray Dataset conversion and NetCDF save/load.

A trace becomes a Dataset over one ``position`` dimension holding the four
channel variables. When calibration is enabled a ``wavelength`` coordinate is
attached alongside the raw positions; the positions themselves are never
replaced or flipped.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import numpy as np
import xarray as xr

from linescan.core.types import CHANNELS, AccumulatedTrace, CalibrationSet, SampleSet
from linescan.scan.calibration import positions_to_wavelengths

__all__ = ['trace_to_dataset', 'dataset_to_trace', 'save_trace_netcdf', 'load_trace_netcdf']

logger = logging.getLogger(__name__)


def trace_to_dataset(trace: SampleSet, calibration: Optional[CalibrationSet] = None) -> xr.Dataset:
    """Convert a SampleSet or AccumulatedTrace to an xarray Dataset.

    Parameters
    ----------
    trace : SampleSet or AccumulatedTrace
        Live sample or accumulated sum.
    calibration : CalibrationSet, optional
        Adds a ``wavelength`` coordinate when given and enabled.

    Returns
    -------
    xr.Dataset
        Variables ``red``, ``green``, ``blue``, ``intensity`` on the
        ``position`` dimension. Attributes: ``kind`` ("live" or
        "accumulated"), ``frame_count``, ``line_length``, ``timestamp``
        (ISO 8601).
    """
    accumulated = isinstance(trace, AccumulatedTrace)
    positions = np.array(trace.positions)

    ds = xr.Dataset(
        data_vars={name: (("position",), np.array(trace.channel(name))) for name in CHANNELS},
        coords={"position": positions},
    )
    ds["position"].attrs.update({"long_name": "normalized position along line", "units": "1"})

    for name in CHANNELS:
        ds[name].attrs["long_name"] = f"{name} channel {'sum' if accumulated else 'value'}"

    if calibration is not None and calibration.enabled:
        ds = ds.assign_coords(wavelength=("position", positions_to_wavelengths(positions, calibration)))
        ds["wavelength"].attrs.update({"long_name": "calibrated wavelength", "units": "nm"})

    ds.attrs.update({
        "kind": "accumulated" if accumulated else "live",
        "frame_count": int(trace.frame_count) if accumulated else 1,
        "line_length": float(trace.line_length),
        "timestamp": trace.timestamp.isoformat(),
        "description": "Line-scan spectral trace",
    })
    return ds


def dataset_to_trace(ds: xr.Dataset) -> SampleSet:
    """Rebuild a SampleSet (or AccumulatedTrace) from :func:`trace_to_dataset` output."""
    common = dict(
        timestamp=datetime.fromisoformat(str(ds.attrs["timestamp"])),
        positions=ds["position"].values,
        red=ds["red"].values,
        green=ds["green"].values,
        blue=ds["blue"].values,
        intensity=ds["intensity"].values,
        line_length=float(ds.attrs["line_length"]),
    )
    if ds.attrs.get("kind") == "accumulated":
        return AccumulatedTrace(frame_count=int(ds.attrs["frame_count"]), **common)
    return SampleSet(**common)


def save_trace_netcdf(trace: SampleSet, path: Union[str, Path],
                      calibration: Optional[CalibrationSet] = None) -> Path:
    """Write a trace to NetCDF4. Parent directories are created."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    ds = trace_to_dataset(trace, calibration)
    ds.to_netcdf(path, mode='w', engine='netcdf4', format='NETCDF4')
    ds.close()

    logger.debug("Trace saved: %s [%d samples]", path.name, len(trace))
    return path


def load_trace_netcdf(path: Union[str, Path]) -> SampleSet:
    """Read a trace written by :func:`save_trace_netcdf`."""
    with xr.open_dataset(path, engine='netcdf4') as ds:
        ds.load()
        return dataset_to_trace(ds)
