"""
Application Layer - Use cases and orchestration.

This layer contains:
- agent/: Extraction, resolution, validation, batch and single-issue flows
"""

from .agent import (
    AgentPipeline,
    BatchOptions,
    BatchOrchestrator,
    BatchResult,
    ExtractionClient,
    PipelineOutcome,
    RecordResolver,
    RecordValidator,
)


__all__ = [
    "AgentPipeline",
    "BatchOptions",
    "BatchOrchestrator",
    "BatchResult",
    "ExtractionClient",
    "PipelineOutcome",
    "RecordResolver",
    "RecordValidator",
]
