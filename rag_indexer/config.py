"""Configuration management for the RAG indexing server."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import toml
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)


class StorageConfig(BaseModel):
    """Configuration for the vector storage engine."""

    backend: str = Field(
        default="chroma", description="Storage backend: chroma or memory"
    )
    mode: str = Field(
        default="persistent",
        description="Chroma client mode: persistent (local directory) or http",
    )
    database_dir: str = Field(
        default="./chroma_db",
        description="Directory to store the ChromaDB data in persistent mode",
    )
    host: Optional[str] = Field(
        default=None, description="Chroma server host for http mode"
    )
    port: int = Field(default=8000, description="Chroma server port for http mode")
    collection_name: str = Field(
        default="documents", description="Collection holding document chunks"
    )
    failures_collection_name: str = Field(
        default="failed_test_results",
        description="Collection holding failed test results",
    )
    bootstrap_attempts: int = Field(
        default=30, description="Attempts made to create collections at startup"
    )
    bootstrap_delay_seconds: float = Field(
        default=1.0, description="Fixed delay between bootstrap attempts"
    )

    @model_validator(mode="after")
    def _check_http_host(self) -> "StorageConfig":
        if self.mode == "http" and not self.host:
            raise ValueError("storage.host is required when storage.mode is 'http'")
        return self


class ChunkingConfig(BaseModel):
    """Configuration for character-based text chunking.

    Roughly four characters per token for English text, so the defaults stay
    well below the input limit of common embedding models.
    """

    max_chunk_size: int = Field(
        default=2000, ge=1, description="Maximum number of characters per chunk"
    )
    overlap: int = Field(
        default=200,
        ge=0,
        description="Characters repeated between consecutive chunks",
    )


class EmbeddingModelConfig(BaseModel):
    """Configuration for embedding models."""

    provider: str = Field(
        default="sentence_transformers",
        description="Embedding provider: sentence_transformers or openai_endpoint",
    )
    model_name: str = Field(
        default="all-MiniLM-L6-v2", description="Model name or identifier"
    )
    endpoint_url: Optional[str] = Field(
        default=None, description="API endpoint URL for openai_endpoint provider"
    )
    api_key: Optional[str] = Field(
        default=None, description="API key for openai_endpoint provider"
    )
    dimension: int = Field(
        default=384,
        ge=1,
        description="Vector size shared by every record in a collection",
    )


class GenerationModelConfig(BaseModel):
    """Configuration for text generation models."""

    model_name: str = Field(
        default="ollama/llama3", description="LiteLLM model identifier"
    )
    parameters: Dict[str, Any] = Field(
        default_factory=lambda: {"temperature": 0.2, "max_tokens": 1024},
        description="Parameters passed to the LiteLLM client",
    )


class SearchConfig(BaseModel):
    """Defaults for the retrieval endpoints."""

    default_k: int = Field(default=5, description="Top-K result count")
    default_score_threshold: float = Field(
        default=0.4, description="Minimum cosine similarity for threshold search"
    )
    default_threshold_limit: int = Field(
        default=100, description="Safety cap for threshold search"
    )
    default_metadata_limit: int = Field(
        default=25, description="Page size for metadata-only search"
    )
    failure_score_threshold: float = Field(
        default=0.42, description="Minimum similarity for failure search"
    )


class ServerConfig(BaseModel):
    """Configuration for the server."""

    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8080, description="Server port")


class Config(BaseModel):
    """Main configuration model."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    embedding_model: EmbeddingModelConfig = Field(default_factory=EmbeddingModelConfig)
    generation_model: GenerationModelConfig = Field(
        default_factory=GenerationModelConfig
    )
    search: SearchConfig = Field(default_factory=SearchConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    prompts: Dict[str, Any] = Field(
        default_factory=dict, description="Loaded prompts from prompts.toml"
    )

    def get_prompt(self, section: str, name: str = "system_prompt") -> Optional[str]:
        """Return a prompt from prompts.toml, or None when it is not configured."""
        value = self.prompts.get(section, {}).get(name)
        return str(value) if value else None


def load_config(
    config_dir: Optional[str] = None,
    app_config_path: Optional[str] = None,
    prompts_config_path: Optional[str] = None,
) -> Config:
    """Load all configurations, handling CLI overrides."""
    base_dir = Path(config_dir) if config_dir else Path("config")

    app_path = Path(app_config_path) if app_config_path else base_dir / "app.toml"
    prompts_path = (
        Path(prompts_config_path) if prompts_config_path else base_dir / "prompts.toml"
    )

    try:
        logger.info(f"Loading app config from: {app_path}")
        with open(app_path, "r") as f:
            app_data = toml.load(f)
    except FileNotFoundError:
        logger.error(f"Application config file not found at {app_path}. Aborting.")
        raise

    try:
        logger.info(f"Loading prompts from: {prompts_path}")
        with open(prompts_path, "r") as f:
            prompts_data = toml.load(f)
    except FileNotFoundError:
        logger.warning(
            f"Prompts config file not found at {prompts_path}. Using built-in prompts."
        )
        prompts_data = {}

    config = Config(**app_data)
    config.prompts = prompts_data

    return config
