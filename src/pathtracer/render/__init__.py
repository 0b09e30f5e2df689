"""Render module: row-parallel orchestration and the framebuffer.

Components:
    framebuffer: Single-owner pixel grid and the indexed pixel message
    orchestrator: Row producers, bounded channel and the aggregator

Note: orchestrator is NOT imported here. It imports the integrator, which
declares Taichi fields, so it must only be imported after ti.init(). Use:
    from pathtracer.render.orchestrator import RenderOrchestrator
"""

from .framebuffer import Framebuffer, PixelMessage

__all__ = ["Framebuffer", "PixelMessage"]
