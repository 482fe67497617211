"""Command-line interface modules for linescan pipeline execution.

This package contains core execution logic, making scripts/ optional and deletable.
"""

from linescan.cli.run_capture import run_linescan_pipeline

__all__ = ['run_linescan_pipeline']
