"""
Agent - Natural language to Linear issue pipeline.

Extraction turns text into records, the resolver maps names onto workspace
ids, the validator checks the result, and the pipeline and batch
orchestrator drive the whole sequence.
"""

from .batch import (
    BatchItemResult,
    BatchOptions,
    BatchOrchestrator,
    BatchResult,
    parse_batch_input,
)
from .extraction import ExtractionClient, parse_issue_response, parse_update_response
from .labels import LabelColorPicker, LabelResolution, resolve_or_create_labels
from .pipeline import (
    AgentPipeline,
    CreateOptions,
    OutcomeStatus,
    PipelineOutcome,
    UpdateOptions,
)
from .prompts import build_context_prompt, build_user_prompt, sanitize_input
from .resolver import RecordResolver, ResolutionResult, infer_issue_type
from .templates import AgentTemplate, TemplateApplication, TemplateManager
from .validator import RecordValidator, ValidationResult


__all__ = [
    "AgentPipeline",
    "AgentTemplate",
    "BatchItemResult",
    "BatchOptions",
    "BatchOrchestrator",
    "BatchResult",
    "CreateOptions",
    "ExtractionClient",
    "LabelColorPicker",
    "LabelResolution",
    "OutcomeStatus",
    "PipelineOutcome",
    "RecordResolver",
    "RecordValidator",
    "ResolutionResult",
    "TemplateApplication",
    "TemplateManager",
    "UpdateOptions",
    "ValidationResult",
    "build_context_prompt",
    "build_user_prompt",
    "infer_issue_type",
    "parse_batch_input",
    "parse_issue_response",
    "parse_update_response",
    "resolve_or_create_labels",
    "sanitize_input",
]
