"""Terminal rendering of plans and run summaries."""

from cpython_dist.monitor.renderer import RunRenderer

__all__ = ["RunRenderer"]
