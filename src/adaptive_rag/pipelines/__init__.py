"""Pipelines package - retrieval decision, augmentation and generation."""

from adaptive_rag.pipelines.augment import AugmentationPipeline
from adaptive_rag.pipelines.confidence import ConfidenceAssessor
from adaptive_rag.pipelines.decision import RetrievalDecisionEngine
from adaptive_rag.pipelines.generate import ResponseGenerator
from adaptive_rag.pipelines.hooks import PipelineHookManager

__all__ = [
    "AugmentationPipeline",
    "ConfidenceAssessor",
    "PipelineHookManager",
    "ResponseGenerator",
    "RetrievalDecisionEngine",
]
