"""`linescan` - line-scan spectral trace extraction from live video.

Subpackages:
- core: Data model (lines, sample sets, traces, calibration) and error kinds
- scan: Geometry, sampling, accumulation, calibration, capture
- pipeline: Coordinator, processor thread, orchestrator
- visualization: Trace plotting
"""

__version__ = "0.1.0"
