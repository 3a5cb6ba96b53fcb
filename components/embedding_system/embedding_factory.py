import logging
from typing import Any, List, Protocol, cast

from llama_index.core.embeddings import BaseEmbedding
from pydantic import Field
from rag_indexer.config import EmbeddingModelConfig

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    """Protocol for anything that turns text into a fixed-length vector."""

    def get_text_embedding(self, text: str) -> List[float]:
        """Embed a document chunk."""
        ...

    def get_query_embedding(self, query: str) -> List[float]:
        """Embed a search query."""
        ...


class SentenceTransformersEmbedding(BaseEmbedding):
    """Wrapper for SentenceTransformers embedding models."""

    model_config = {"arbitrary_types_allowed": True}

    def __init__(self, model_name: str, **kwargs: Any):
        """Initialize SentenceTransformers model.

        Args:
            model_name: Name of the SentenceTransformers model
            **kwargs: Additional arguments for BaseEmbedding
        """
        try:
            from sentence_transformers import SentenceTransformer

            _model = SentenceTransformer(model_name)
            logger.info(f"Loaded SentenceTransformers model: {model_name}")
        except ImportError as e:
            raise ImportError(
                "sentence-transformers is required for this provider. "
                "Install with: pip install sentence-transformers"
            ) from e

        super().__init__(model_name=model_name, **kwargs)
        # Private attribute, kept out of Pydantic validation
        object.__setattr__(self, "_sentence_model", _model)
        self._sentence_model: Any = _model

    def _get_query_embedding(self, query: str) -> List[float]:
        return cast(List[float], self._sentence_model.encode([query]).tolist()[0])

    def _get_text_embedding(self, text: str) -> List[float]:
        return cast(List[float], self._sentence_model.encode([text]).tolist()[0])

    def _get_text_embeddings(self, texts: List[str]) -> List[List[float]]:
        return cast(List[List[float]], self._sentence_model.encode(texts).tolist())

    async def _aget_query_embedding(self, query: str) -> List[float]:
        return self._get_query_embedding(query)


class OpenAIEndpointEmbedding(BaseEmbedding):
    """Wrapper for OpenAI-compatible embedding endpoints.

    Errors from the endpoint propagate to the caller; a failed embedding must
    fail the indexing or search request that asked for it.
    """

    model_config = {"arbitrary_types_allowed": True}

    client: Any = Field(default=None, exclude=True)
    api_model_name: str = Field(default="", exclude=True)

    def __init__(self, model_name: str, endpoint_url: str, api_key: str, **kwargs: Any):
        """Initialize OpenAI-compatible embedding client.

        Args:
            model_name: Name of the embedding model
            endpoint_url: API endpoint URL
            api_key: API key for authentication
            **kwargs: Additional arguments for BaseEmbedding
        """
        try:
            from openai import OpenAI

            client = OpenAI(api_key=api_key, base_url=endpoint_url)
            logger.info(
                f"Initialized OpenAI-compatible client for {model_name} "
                f"at {endpoint_url}"
            )
        except ImportError as e:
            raise ImportError(
                "openai is required for this provider. Install with: pip install openai"
            ) from e

        super().__init__(model_name=model_name, **kwargs)
        object.__setattr__(self, "client", client)
        object.__setattr__(self, "api_model_name", model_name)

    def _create(self, texts: List[str]) -> List[List[float]]:
        response = self.client.embeddings.create(model=self.api_model_name, input=texts)
        return [item.embedding for item in response.data]

    def _get_query_embedding(self, query: str) -> List[float]:
        return self._create([query])[0]

    def _get_text_embedding(self, text: str) -> List[float]:
        return self._create([text])[0]

    def _get_text_embeddings(self, texts: List[str]) -> List[List[float]]:
        return self._create(texts)

    async def _aget_query_embedding(self, query: str) -> List[float]:
        return self._get_query_embedding(query)


def create_embedding_model(config: EmbeddingModelConfig) -> BaseEmbedding:
    """Factory function to create embedding models based on configuration."""
    provider = config.provider.lower()

    if provider == "sentence_transformers":
        return SentenceTransformersEmbedding(config.model_name)

    elif provider == "openai_endpoint":
        if not config.endpoint_url or not config.api_key:
            raise ValueError(
                "endpoint_url and api_key are required for openai_endpoint provider"
            )
        return OpenAIEndpointEmbedding(
            config.model_name, config.endpoint_url, config.api_key
        )

    else:
        raise ValueError(
            f"Unsupported embedding provider: {provider}. "
            f"Supported providers: sentence_transformers, openai_endpoint"
        )
