"""Answer generation backed by a chat-completion model."""

import logging
from typing import Any, Protocol

from llama_index.core.llms import LLM, ChatMessage, MessageRole
from llama_index.llms.litellm import LiteLLM
from rag_indexer.config import GenerationModelConfig

logger = logging.getLogger(__name__)


class AnswerGenerator(Protocol):
    """Protocol for generation providers."""

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Produce an answer for a system/user prompt pair."""
        ...


class LLMAnswerGenerator:
    """Generates answers with any LlamaIndex chat LLM."""

    def __init__(self, llm: LLM):
        self.llm = llm

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        messages = [
            ChatMessage(role=MessageRole.SYSTEM, content=system_prompt),
            ChatMessage(role=MessageRole.USER, content=user_prompt),
        ]
        response = await self.llm.achat(messages)
        return str(response.message.content or "")


def create_answer_generator(config: GenerationModelConfig) -> LLMAnswerGenerator:
    """Build the production generator from configuration."""
    llm_parameters: dict[str, Any] = dict(config.parameters)
    llm = LiteLLM(model=config.model_name, **llm_parameters)
    logger.info(f"Initialized LiteLLM generation model: {config.model_name}")
    return LLMAnswerGenerator(llm)
