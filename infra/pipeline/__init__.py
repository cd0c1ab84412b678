"""Structured JSONL logging shared by the scan pipeline, queue and LLM layer."""

from infra.pipeline.logger import PipelineLogger, create_logger

__all__ = [
    "PipelineLogger",
    "create_logger",
]
