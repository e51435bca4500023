"""
Static candidate tables, one priority-ordered list per task type.

The tables are built once at import time and never mutated; callers get
fresh sorted lists.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from completion_gateway.models import ModelCandidate, ModelCapability, TaskType

MODEL_CONFIGS: Mapping[TaskType, tuple[ModelCandidate, ...]] = {
    TaskType.TEXT_GENERATION: (
        ModelCandidate(
            id="@cf/meta/llama-3-8b-instruct",
            name="Llama 3 8B",
            rate_limit=300,
            priority=1,
            max_tokens=2048,
            capabilities=[ModelCapability.CHAT, ModelCapability.COMPLETION],
        ),
        ModelCandidate(
            id="@cf/microsoft/phi-2",
            name="Phi-2",
            rate_limit=720,
            priority=2,
            max_tokens=1024,
            capabilities=[ModelCapability.CHAT, ModelCapability.COMPLETION],
        ),
        ModelCandidate(
            id="@cf/qwen/qwen1.5-0.5b-chat",
            name="Qwen 1.5 0.5B",
            rate_limit=1500,
            priority=3,
            max_tokens=512,
            capabilities=[ModelCapability.CHAT],
        ),
        ModelCandidate(
            id="@cf/tinyllama/tinyllama-1.1b-chat-v1.0",
            name="TinyLlama",
            rate_limit=720,
            priority=4,
            max_tokens=512,
            capabilities=[ModelCapability.CHAT],
        ),
    ),
    TaskType.EMBEDDINGS: (
        ModelCandidate(
            id="@cf/baai/bge-large-en-v1.5",
            name="BGE Large EN",
            rate_limit=1500,
            priority=1,
            capabilities=[ModelCapability.EMBEDDING],
        ),
    ),
}


def ranked_candidates(
    task_type: TaskType | str,
    configs: Mapping[TaskType, Sequence[ModelCandidate]] = MODEL_CONFIGS,
) -> list[ModelCandidate]:
    """
    Candidates for `task_type`, ascending by priority.

    `sorted` is stable, so equal priorities keep declaration order. Unknown
    task types yield an empty list.
    """
    try:
        key = TaskType(task_type)
    except ValueError:
        return []
    return sorted(configs.get(key, ()), key=lambda candidate: candidate.priority)


__all__ = ["MODEL_CONFIGS", "ranked_candidates"]
