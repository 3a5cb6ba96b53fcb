"""Chroma-backed vector storage for document and failure embeddings."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union, cast

import chromadb
import chromadb.errors
from chromadb.config import Settings
from rag_indexer.config import StorageConfig

from components.filtering import PayloadFilter

from .models import SearchHit, StorageRecord

logger = logging.getLogger(__name__)

MetadataValue = Union[str, int, float, bool]


class ChromaVectorStore:
    """Stores records in a cosine-space ChromaDB collection."""

    def __init__(
        self,
        storage_config: StorageConfig,
        collection_name: str,
        dimension: int,
    ):
        """Initialize the vector store.

        No connection is opened here; the client and collection are created by
        :meth:`ensure_collection`, which may be retried while the server starts.

        Args:
            storage_config: Storage engine settings
            collection_name: Name of the ChromaDB collection
            dimension: Vector size every record in the collection must have
        """
        self.storage_config = storage_config
        self.collection_name = collection_name
        self.dimension = dimension
        self._client: Optional[Any] = None
        self._collection: Optional[Any] = None

    def _create_client(self) -> Any:
        settings = Settings(anonymized_telemetry=False, allow_reset=True)
        if self.storage_config.mode == "http":
            logger.info(
                f"Connecting to Chroma server at "
                f"{self.storage_config.host}:{self.storage_config.port}"
            )
            return chromadb.HttpClient(
                host=self.storage_config.host,
                port=self.storage_config.port,
                settings=settings,
            )

        persist_directory = Path(self.storage_config.database_dir)
        persist_directory.mkdir(parents=True, exist_ok=True)
        return chromadb.PersistentClient(path=str(persist_directory), settings=settings)

    def ensure_collection(self) -> None:
        """Load the collection, creating it with cosine distance if missing."""
        if self._client is None:
            self._client = self._create_client()

        try:
            collection = self._client.get_collection(name=self.collection_name)
            logger.info(f"Loaded existing collection: {self.collection_name}")
        except chromadb.errors.NotFoundError:
            try:
                collection = self._client.create_collection(
                    name=self.collection_name,
                    metadata={"hnsw:space": "cosine", "dimension": self.dimension},
                )
                logger.info(f"Created new collection: {self.collection_name}")
            except chromadb.errors.UniqueConstraintError:
                # Created concurrently by another process
                collection = self._client.get_collection(name=self.collection_name)

        existing_dimension = (collection.metadata or {}).get("dimension")
        if existing_dimension is not None and int(existing_dimension) != self.dimension:
            raise ValueError(
                f"Collection '{self.collection_name}' stores vectors of size "
                f"{existing_dimension}, but the embedding model produces "
                f"{self.dimension}"
            )

        self._collection = collection

    @property
    def collection(self) -> Any:
        if self._collection is None:
            self.ensure_collection()
        return self._collection

    def upsert(self, records: List[StorageRecord], wait: bool = True) -> None:
        """Write records, replacing any existing point with the same id.

        Chroma merges metadata on upsert, so keys stored on an existing point
        but absent from the new payload are sent as ``None``, which removes
        them. The write itself is a single upsert call, so a failed write
        leaves the previous points untouched. Writes are applied before
        returning, so ``wait`` is always honoured.
        """
        if not records:
            return

        for record in records:
            if len(record.vector) != self.dimension:
                raise ValueError(
                    f"Vector for point {record.id} has size {len(record.vector)}, "
                    f"expected {self.dimension}"
                )

        ids = [record.id for record in records]
        existing = self.collection.get(ids=ids, include=["metadatas"])
        stored_keys = {
            str(point_id): set(metadata or {})
            for point_id, metadata in zip(
                existing.get("ids") or [], existing.get("metadatas") or [], strict=False
            )
        }

        metadatas: List[Mapping[str, Optional[MetadataValue]]] = []
        for record in records:
            metadata: Dict[str, Optional[MetadataValue]] = dict(
                _to_metadata(record.payload)
            )
            for stale_key in stored_keys.get(record.id, set()) - metadata.keys():
                metadata[stale_key] = None
            metadatas.append(metadata)

        self.collection.upsert(
            ids=ids,
            embeddings=[record.vector for record in records],  # type: ignore[arg-type]
            metadatas=metadatas,  # type: ignore[arg-type]
        )
        logger.debug(f"Upserted {len(records)} points into '{self.collection_name}'")

    def query(
        self,
        vector: List[float],
        limit: int,
        payload_filter: Optional[PayloadFilter] = None,
        score_threshold: Optional[float] = None,
    ) -> List[SearchHit]:
        """Search for the nearest records by cosine similarity."""
        if limit < 1:
            return []

        where = payload_filter.to_where() if payload_filter else None
        results = self.collection.query(
            query_embeddings=[vector],  # type: ignore[arg-type]
            n_results=limit,
            where=where,
            include=["metadatas", "distances"],
        )

        ids = (results.get("ids") or [[]])[0]
        metadatas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        hits = []
        for point_id, metadata, distance in zip(ids, metadatas, distances, strict=False):
            # Cosine distance in Chroma is 1 - cosine similarity
            score = 1.0 - float(distance)
            if score_threshold is not None and score < score_threshold:
                continue
            hits.append(
                SearchHit(id=str(point_id), score=score, payload=dict(metadata or {}))
            )

        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits

    def scroll(
        self, payload_filter: Optional[PayloadFilter] = None, limit: int = 25
    ) -> List[SearchHit]:
        """Browse records matching a filter without any vector comparison."""
        where = payload_filter.to_where() if payload_filter else None
        results = self.collection.get(where=where, limit=limit, include=["metadatas"])

        ids = results.get("ids") or []
        metadatas = results.get("metadatas") or []
        return [
            SearchHit(id=str(point_id), score=0.0, payload=dict(metadata or {}))
            for point_id, metadata in zip(ids, metadatas, strict=False)
        ]

    def count(self) -> int:
        return cast(int, self.collection.count())


def _to_metadata(payload: Dict[str, Any]) -> Dict[str, MetadataValue]:
    """Chroma metadata only holds flat scalars; drop empty values."""
    metadata: Dict[str, MetadataValue] = {}
    for key, value in payload.items():
        if value is None:
            continue
        if not isinstance(value, (str, int, float, bool)):
            raise TypeError(
                f"Payload field '{key}' has unsupported type {type(value).__name__}"
            )
        metadata[key] = value
    return metadata
