"""
Pipeline module: the frame-paced loop driving the counting session.
"""

from .engine import PipelineEngine, PipelineConfig, PipelineStats

__all__ = ["PipelineEngine", "PipelineConfig", "PipelineStats"]
