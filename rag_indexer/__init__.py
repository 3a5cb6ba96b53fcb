"""Chunking, deterministic-id and filtered retrieval server for RAG workloads."""

__version__ = "0.1.0"
