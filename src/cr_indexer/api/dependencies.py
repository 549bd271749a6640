from functools import lru_cache

from ..config import settings
from ..content.dimensions import DimensionPresetSource
from ..content.node_types import NodeTypeRegistry
from ..content.repository import ContentRepository
from ..index import SqlIndexClient, create_index_engine, create_session_factory
from ..index.base import IndexClient
from ..indexing.extraction import PropertyExtractor
from ..indexing.indexer import NodeIndexer


@lru_cache
def get_preset_source() -> DimensionPresetSource:
    if settings.dimensions_path:
        return DimensionPresetSource.from_file(settings.dimensions_path)
    return DimensionPresetSource()


@lru_cache
def get_node_type_registry() -> NodeTypeRegistry:
    if settings.node_types_path:
        return NodeTypeRegistry.from_file(settings.node_types_path)
    return NodeTypeRegistry()


@lru_cache
def get_content_repository() -> ContentRepository:
    return ContentRepository(preset_source=get_preset_source())


@lru_cache
def get_index_client() -> IndexClient:
    engine = create_index_engine(settings.database_url)
    return SqlIndexClient(create_session_factory(engine))


@lru_cache
def get_indexer() -> NodeIndexer:
    # Fulltext root types are computed once here and fixed for the process.
    registry = get_node_type_registry()
    return NodeIndexer(
        index_client=get_index_client(),
        contexts=get_content_repository(),
        fulltext_root_types=registry.fulltext_root_types(),
        extractor=PropertyExtractor(registry),
        preset_source=get_preset_source(),
    )
