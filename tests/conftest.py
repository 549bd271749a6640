import pytest

from cr_indexer.content.dimensions import DimensionPresetSource
from cr_indexer.content.node_types import NodeTypeRegistry
from cr_indexer.content.repository import ContentRepository
from cr_indexer.index.memory import InMemoryIndexClient
from cr_indexer.indexing.extraction import PropertyExtractor
from cr_indexer.indexing.indexer import NodeIndexer


NODE_TYPES = [
    {
        "name": "Acme:Page",
        "search": {"fulltext": {"is_root": True}},
        "properties": {
            "title": {"search": {"fulltext_bucket": "h1"}},
        },
    },
    {
        "name": "Acme:Section",
        "properties": {
            "internalNote": {"search": {"indexing": False}},
        },
    },
    {
        "name": "Acme:Text",
        "properties": {
            "text": {"search": {"fulltext_bucket": "text"}},
        },
    },
]

LANGUAGE_DIMENSION = {
    "language": {
        "default_preset": "de",
        "presets": {
            "de": {"values": ["de"]},
            "en": {"values": ["en"]},
            "fr": {"values": ["fr"]},
        },
    },
}


@pytest.fixture
def registry():
    return NodeTypeRegistry.from_list(NODE_TYPES)


@pytest.fixture
def repository():
    repo = ContentRepository()
    repo.add_workspace("user-a")
    repo.add_workspace("user-b")
    return repo


@pytest.fixture
def index_client():
    return InMemoryIndexClient()


@pytest.fixture
def make_indexer(registry, index_client):
    def _make(repository, preset_source=None, **kwargs):
        return NodeIndexer(
            index_client=index_client,
            contexts=repository,
            fulltext_root_types=registry.fulltext_root_types(),
            extractor=PropertyExtractor(registry),
            preset_source=preset_source,
            **kwargs,
        )
    return _make


@pytest.fixture
def indexer(make_indexer, repository):
    return make_indexer(repository)


@pytest.fixture
def page_tree(repository):
    """
    Home (Acme:Page, fulltext root) -> Section -> Paragraph ("hello world")
    """
    return {
        "home": repository.add_node("home", "Acme:Page", properties={"title": "Home"}),
        "section": repository.add_node(
            "section",
            "Acme:Section",
            parent_identity="home",
            properties={"internalNote": "draft"},
        ),
        "paragraph": repository.add_node(
            "paragraph",
            "Acme:Text",
            parent_identity="section",
            properties={"text": "<p>hello <b>world</b></p>"},
        ),
    }


@pytest.fixture
def language_presets():
    return DimensionPresetSource.from_dict(LANGUAGE_DIMENSION)
