"""Answer generation component."""

from .generation_factory import (
    AnswerGenerator,
    LLMAnswerGenerator,
    create_answer_generator,
)

__all__ = ["AnswerGenerator", "LLMAnswerGenerator", "create_answer_generator"]
