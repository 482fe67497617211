"""Pipeline modules.

- coordinator: Per-frame tick, controls and settings snapshot
- processor: Trace processor thread
- orchestrator: Main pipeline controller
"""

from linescan.pipeline.coordinator import PipelineCoordinator
from linescan.pipeline.processor import TraceProcessor
from linescan.pipeline.orchestrator import PipelineOrchestrator

__all__ = [
    "PipelineCoordinator",
    "TraceProcessor",
    "PipelineOrchestrator",
]
