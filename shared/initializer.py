"""
Centralized application initializer.

This component is responsible for parsing command-line arguments, loading
configurations, and initializing all the core backend services (vector stores,
embedding and generation models, indexing and retrieval services).
It provides a single, reliable entry point for building the application's core,
which the HTTP app is then built on top of.
"""

import argparse
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from components.embedding_system import EmbeddingProvider, create_embedding_model
from components.failure_indexing import FailureIndexer, FailureSearchService
from components.generation import AnswerGenerator, create_answer_generator
from components.indexing_service import DocumentIndexer
from components.retrieval_service import RetrievalService
from components.text_chunking import TextChunker
from components.vector_store import (
    VectorStoreBackend,
    create_vector_store,
    ensure_collections,
)
from rag_indexer.config import Config, load_config

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    """Fully wired services consumed by the HTTP app."""

    config: Config
    document_store: VectorStoreBackend
    failure_store: VectorStoreBackend
    indexer: DocumentIndexer
    retrieval: RetrievalService
    failure_indexer: FailureIndexer
    failure_search: FailureSearchService


def create_arg_parser() -> argparse.ArgumentParser:
    """
    Creates and returns the command-line argument parser.

    Returns:
        An ArgumentParser instance with all common arguments defined.
    """
    parser = argparse.ArgumentParser(description="RAG Indexing Server.")
    parser.add_argument(
        "--database-dir",
        help="Override the storage directory for the vector database.",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="Path to the config folder to use for all config files.",
    )
    parser.add_argument(
        "-a",
        "--app-config",
        help="Path to the app.toml file to use.",
    )
    parser.add_argument(
        "-p",
        "--prompts-config",
        help="Path to the prompts.toml file to use.",
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Port to run the server on.",
    )
    parser.add_argument(
        "--host",
        type=str,
        help="Host to run the server on.",
    )
    return parser


def load_config_from_args(args: argparse.Namespace) -> Config:
    """Load configuration files and apply command-line overrides."""
    config = load_config(
        config_dir=args.config,
        app_config_path=args.app_config,
        prompts_config_path=args.prompts_config,
    )

    if args.database_dir:
        logger.info(f"Overriding database directory with: {args.database_dir}")
        config.storage.database_dir = args.database_dir
    if args.host:
        logger.info(f"Overriding server host with: {args.host}")
        config.server.host = args.host
    if args.port:
        logger.info(f"Overriding server port with: {args.port}")
        config.server.port = args.port

    return config


async def build_services(
    config: Config,
    embedding_model: Optional[EmbeddingProvider] = None,
    generator: Optional[AnswerGenerator] = None,
) -> AppServices:
    """
    Builds every core service from a loaded configuration.

    This function orchestrates the backend setup process:
    1. Creates the document and failure vector stores.
    2. Bootstraps their collections, retrying while the storage engine starts.
    3. Initializes the embedding and generation models.
    4. Wires the indexing, retrieval and failure services.

    Args:
        config: The application's configuration object.
        embedding_model: Overrides the configured embedding model.
        generator: Overrides the configured generation model.

    Returns:
        The fully initialized services.
    """
    dimension = config.embedding_model.dimension

    # 1. Vector stores
    logger.info(f"Initializing '{config.storage.backend}' vector stores...")
    document_store = create_vector_store(
        config.storage, config.storage.collection_name, dimension
    )
    failure_store = create_vector_store(
        config.storage, config.storage.failures_collection_name, dimension
    )

    # 2. Collections must exist before any request is served
    await ensure_collections(
        [document_store, failure_store],
        attempts=config.storage.bootstrap_attempts,
        delay_seconds=config.storage.bootstrap_delay_seconds,
    )

    # 3. Models
    if embedding_model is None:
        logger.info("Initializing embedding model...")
        embedding_model = create_embedding_model(config.embedding_model)
    if generator is None:
        logger.info("Initializing generation model...")
        generator = create_answer_generator(config.generation_model)

    # 4. Services
    indexer = DocumentIndexer(
        vector_store=document_store,
        embedding_model=embedding_model,
        chunker=TextChunker(config.chunking),
    )
    retrieval = RetrievalService(
        vector_store=document_store,
        embedding_model=embedding_model,
        generator=generator,
        search_config=config.search,
        system_prompt=config.get_prompt("chat"),
    )
    failure_indexer = FailureIndexer(
        vector_store=failure_store, embedding_model=embedding_model
    )
    failure_search = FailureSearchService(
        vector_store=failure_store,
        embedding_model=embedding_model,
        search_config=config.search,
    )

    logger.info("Core services initialized successfully.")
    return AppServices(
        config=config,
        document_store=document_store,
        failure_store=failure_store,
        indexer=indexer,
        retrieval=retrieval,
        failure_indexer=failure_indexer,
        failure_search=failure_search,
    )


async def initialize_services_from_args(
    args: argparse.Namespace,
) -> Tuple[Config, AppServices]:
    """
    Loads configuration and initializes all core components based on command-line
    arguments.

    Args:
        args: Parsed command-line arguments from an ArgumentParser.

    Returns:
        A tuple containing the loaded Config object and the initialized services.
    """
    logger.info("Initializing application core services...")
    config = load_config_from_args(args)
    services = await build_services(config)
    return config, services
