"""
SQL Index Backend Tests

Runs the SQLAlchemy backend against in-memory SQLite, plus one end-to-end
indexing scenario to check both backends behave alike.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from cr_indexer.core.errors import IndexBackendError
from cr_indexer.index import SqlIndexClient, create_index_engine, create_session_factory
from cr_indexer.indexing.extraction import PropertyExtractor
from cr_indexer.indexing.indexer import NodeIndexer


@pytest.fixture
def sql_client():
    engine = create_index_engine("sqlite://")
    yield SqlIndexClient(create_session_factory(engine))
    engine.dispose()


class TestSqlIndexClient:

    def test_upsert_and_find(self, sql_client):
        sql_client.upsert("v1", {"title": "Home"}, membership="#live#", node_identity="n1")
        sql_client.upsert("v2", {}, membership="#user-a#", node_identity="n1")

        entry = sql_client.find_one_by_variant_identity("v1")

        assert entry.properties == {"title": "Home"}
        assert entry.membership == "#live#"
        assert [e.variant_identity for e in sql_client.find_by_node_identity("n1")] == ["v1", "v2"]
        assert sql_client.find_one_by_variant_identity("missing") is None

    def test_upsert_replaces_properties_and_keeps_node_identity(self, sql_client):
        sql_client.upsert("v1", {"a": 1}, membership="#live#", node_identity="n1")
        sql_client.upsert("v1", {"b": 2}, membership="#live#,#user-a#")

        entry = sql_client.find_one_by_variant_identity("v1")

        assert entry.node_identity == "n1"
        assert entry.properties == {"b": 2}
        assert entry.membership == "#live#,#user-a#"
        assert sql_client.count() == 1

    def test_sourced_fulltext_is_replaced(self, sql_client):
        sql_client.upsert("root", {}, membership="#live#", node_identity="r")
        sql_client.append_fulltext({"text": "first"}, "root", source="child")
        sql_client.append_fulltext({"text": "second"}, "root", source="child")
        sql_client.append_fulltext({"text": "sibling"}, "root", source="other")

        assert sql_client.find_one_by_variant_identity("root").fulltext == {"text": "second sibling"}

    def test_anonymous_fulltext_accumulates(self, sql_client):
        sql_client.upsert("root", {}, membership="#live#", node_identity="r")
        sql_client.append_fulltext({"text": "hello"}, "root")
        sql_client.append_fulltext({"text": "world", "h1": ""}, "root")

        assert sql_client.find_one_by_variant_identity("root").fulltext == {"text": "hello world"}

    def test_delete_drops_entry_and_contributions(self, sql_client):
        sql_client.upsert("root", {}, membership="#live#", node_identity="r")
        sql_client.upsert("child", {}, membership="#live#", node_identity="c")
        sql_client.append_fulltext({"text": "child text"}, "root", source="child")

        assert sql_client.delete("child") is True
        assert sql_client.delete("child") is False
        assert sql_client.find_one_by_variant_identity("root").fulltext == {}

    def test_drop_contributions_clears_every_target(self, sql_client):
        sql_client.upsert("root", {}, membership="#live#", node_identity="r")
        sql_client.upsert("other", {}, membership="#live#", node_identity="o")
        sql_client.append_fulltext({"text": "child text"}, "root", source="child")
        sql_client.append_fulltext({"text": "child text"}, "other", source="child")
        sql_client.append_fulltext({"h1": "Other"}, "other", source="other")

        sql_client.drop_contributions("child")

        assert sql_client.find_one_by_variant_identity("root").fulltext == {}
        assert sql_client.find_one_by_variant_identity("other").fulltext == {"h1": "Other"}

    def test_backend_failure_is_wrapped(self):
        session_factory = MagicMock()
        session_factory.begin.side_effect = OperationalError("SELECT 1", {}, Exception("down"))

        client = SqlIndexClient(session_factory)

        with pytest.raises(IndexBackendError):
            client.find_by_node_identity("n1")


def test_indexing_on_sql_backend(sql_client, registry, repository, page_tree):
    indexer = NodeIndexer(
        index_client=sql_client,
        contexts=repository,
        fulltext_root_types=registry.fulltext_root_types(),
        extractor=PropertyExtractor(registry),
    )
    view = repository.resolve_context("live")

    indexer.index_node(view.by_identifier("home"))
    indexer.index_node(view.by_identifier("paragraph"))
    indexer.index_node(view.by_identifier("home"), "user-a")

    root = sql_client.find_one_by_variant_identity(page_tree["home"].persistence_id)
    assert root.membership == "#live#,#user-a#"
    assert root.fulltext == {"h1": "Home", "text": "hello world"}


def test_moved_text_leaves_old_root_on_sql_backend(sql_client, registry, repository, page_tree):
    other = repository.add_node("other", "Acme:Page", properties={"title": "Other"})
    indexer = NodeIndexer(
        index_client=sql_client,
        contexts=repository,
        fulltext_root_types=registry.fulltext_root_types(),
        extractor=PropertyExtractor(registry),
    )
    for identity in ("home", "other", "paragraph"):
        indexer.index_node(repository.resolve_context("live").by_identifier(identity))

    repository.save(page_tree["paragraph"].model_copy(update={"parent_identity": "other"}))
    indexer.index_node(repository.resolve_context("live").by_identifier("paragraph"))

    assert sql_client.find_one_by_variant_identity(page_tree["home"].persistence_id).fulltext == {"h1": "Home"}
    assert sql_client.find_one_by_variant_identity(other.persistence_id).fulltext == {
        "h1": "Other",
        "text": "hello world",
    }
