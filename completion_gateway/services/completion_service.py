"""
Completion orchestration.

`CompletionService` ties the conversation store, the failure tracker and the
candidate tables together:

- the user turn (and a one-time system prompt) is recorded before any model
  is chosen;
- candidates are ranked by priority and skip-listed models are filtered out
  up front;
- the fallback chain walks the remaining candidates until one answers.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Dict, List, Optional

from completion_gateway.logging_config import logger
from completion_gateway.models import (
    CompletionOptions,
    CompletionResult,
    ConversationStats,
    Message,
    ModelCandidate,
    ModelStatus,
    SingleCompletionResult,
    TaskType,
)
from completion_gateway.routing import (
    MODEL_CONFIGS,
    FailureTracker,
    ranked_candidates,
    select_available,
    try_candidates,
)
from completion_gateway.services.conversation_service import ConversationStore
from completion_gateway.upstream import ChatCompletionClient, UpstreamCompletion

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 500
SINGLE_DEFAULT_MAX_TOKENS = 150


class CompletionService:
    def __init__(
        self,
        *,
        store: ConversationStore,
        tracker: FailureTracker,
        client: ChatCompletionClient,
        configs: Mapping[TaskType, Sequence[ModelCandidate]] = MODEL_CONFIGS,
        default_temperature: float = DEFAULT_TEMPERATURE,
        default_max_tokens: int = DEFAULT_MAX_TOKENS,
        single_default_max_tokens: int = SINGLE_DEFAULT_MAX_TOKENS,
    ) -> None:
        self.store = store
        self.tracker = tracker
        self.client = client
        self.configs = configs
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens
        self.single_default_max_tokens = single_default_max_tokens

    def _available_candidates(self, task_type: TaskType) -> list[ModelCandidate]:
        candidates = ranked_candidates(task_type, self.configs)
        return select_available(candidates, self.tracker, task_type=str(task_type.value))

    async def _complete(
        self,
        *,
        messages: List[Dict[str, str]],
        task_type: TaskType,
        temperature: float,
        max_tokens: int,
        context: str,
    ) -> tuple[ModelCandidate, UpstreamCompletion]:
        available = self._available_candidates(task_type)

        async def call(candidate: ModelCandidate) -> UpstreamCompletion:
            return await self.client.create_chat_completion(
                model=candidate.id,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )

        return await try_candidates(
            candidates=available,
            call=call,
            tracker=self.tracker,
            task_type=str(task_type.value),
            context=context,
        )

    async def generate_response(
        self,
        session_id: str,
        user_message: str,
        options: Optional[CompletionOptions] = None,
    ) -> CompletionResult:
        """
        Run one conversational turn for `session_id`.

        The session lock is held from the system-prompt check until the
        assistant reply is stored, so turns of one session never interleave.
        Raises `NoModelAvailable` when every candidate is skip-listed or
        rate limited; any other upstream error propagates unchanged.
        """
        options = options or CompletionOptions()
        temperature = (
            options.temperature if options.temperature is not None else self.default_temperature
        )
        max_tokens = options.max_tokens if options.max_tokens is not None else self.default_max_tokens

        async with self.store.lock(session_id):
            if options.system_prompt and not self.store.get(session_id).messages:
                self.store.append_message(session_id, "system", options.system_prompt)
            self.store.append_message(session_id, "user", user_message)

            history = self.store.formatted_history(session_id)
            candidate, completion = await self._complete(
                messages=history,
                task_type=options.task_type,
                temperature=temperature,
                max_tokens=max_tokens,
                context=f" (session={session_id})",
            )

            self.store.append_message(
                session_id,
                "assistant",
                completion.content,
                model=candidate.id,
                usage=completion.usage,
            )
            logger.info(
                "Successfully generated response using %s for session %s",
                candidate.id,
                session_id,
            )
            return CompletionResult(
                response=completion.content,
                model_used=candidate.id,
                usage=completion.usage,
                conversation_stats=self.store.stats(session_id),
                message_count=len(history),
            )

    async def get_single_response(
        self,
        message: str,
        options: Optional[CompletionOptions] = None,
    ) -> SingleCompletionResult:
        """
        Stateless completion: the prompt is the single user message and no
        session is read or written.
        """
        options = options or CompletionOptions()
        temperature = (
            options.temperature if options.temperature is not None else self.default_temperature
        )
        max_tokens = (
            options.max_tokens if options.max_tokens is not None else self.single_default_max_tokens
        )

        candidate, completion = await self._complete(
            messages=[{"role": "user", "content": message}],
            task_type=options.task_type,
            temperature=temperature,
            max_tokens=max_tokens,
            context=" (single)",
        )
        return SingleCompletionResult(
            response=completion.content,
            model_used=candidate.id,
            usage=completion.usage,
        )

    def get_model_status(self) -> list[ModelStatus]:
        return [
            ModelStatus(
                model=candidate.id,
                name=candidate.name,
                rate_limit=f"{candidate.rate_limit} req/min",
                status="rate_limited" if self.tracker.should_skip(candidate.id) else "available",
            )
            for candidate in ranked_candidates(TaskType.TEXT_GENERATION, self.configs)
        ]

    def get_conversation_stats(self, session_id: str) -> Optional[ConversationStats]:
        return self.store.stats(session_id)

    def get_conversation_messages(self, session_id: str) -> list[Message]:
        return self.store.messages(session_id)

    async def clear_conversation(self, session_id: str) -> None:
        # Waits for an in-flight turn so its reply cannot resurrect the session.
        async with self.store.lock(session_id):
            self.store.clear(session_id)

    def cleanup_expired_sessions(self) -> int:
        return self.store.reap_expired()


__all__ = [
    "CompletionService",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TEMPERATURE",
    "SINGLE_DEFAULT_MAX_TOKENS",
]
