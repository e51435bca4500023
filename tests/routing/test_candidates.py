from completion_gateway.models import ModelCandidate, TaskType
from completion_gateway.routing import MODEL_CONFIGS, ranked_candidates


def test_text_generation_candidates_in_priority_order():
    ids = [c.id for c in ranked_candidates(TaskType.TEXT_GENERATION)]

    assert ids == [
        "@cf/meta/llama-3-8b-instruct",
        "@cf/microsoft/phi-2",
        "@cf/qwen/qwen1.5-0.5b-chat",
        "@cf/tinyllama/tinyllama-1.1b-chat-v1.0",
    ]


def test_task_type_may_be_given_as_string():
    ids = [c.id for c in ranked_candidates("embeddings")]
    assert ids == ["@cf/baai/bge-large-en-v1.5"]


def test_unknown_task_type_yields_empty_list():
    assert ranked_candidates("image_generation") == []


def test_ranking_sorts_custom_table(candidate_table):
    ids = [c.id for c in ranked_candidates(TaskType.TEXT_GENERATION, candidate_table)]
    assert ids == ["model-a", "model-b", "model-c"]


def test_equal_priorities_keep_declaration_order():
    table = {
        TaskType.TEXT_GENERATION: (
            ModelCandidate(id="first", name="First", rate_limit=1, priority=1),
            ModelCandidate(id="second", name="Second", rate_limit=1, priority=1),
        )
    }
    ids = [c.id for c in ranked_candidates(TaskType.TEXT_GENERATION, table)]
    assert ids == ["first", "second"]


def test_ranking_does_not_mutate_table():
    before = tuple(MODEL_CONFIGS[TaskType.TEXT_GENERATION])

    ranked = ranked_candidates(TaskType.TEXT_GENERATION)
    ranked.reverse()

    assert tuple(MODEL_CONFIGS[TaskType.TEXT_GENERATION]) == before
