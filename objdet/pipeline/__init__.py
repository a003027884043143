"""
Main Pipeline Module.

Orchestrates the per-frame detection identity cycle.
"""

from .orchestrator import FrameCycleOrchestrator, PipelineConfig
