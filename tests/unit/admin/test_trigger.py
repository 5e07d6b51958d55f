"""
Unit tests for the manual indexing trigger.
"""

from unittest.mock import Mock

import pytest

from index_queue.admin import IndexingRunTrigger, MessageLog, Severity
from index_queue.core.exceptions import QueueStorageError
from index_queue.runner import IndexService


@pytest.fixture
def index_service():
    return Mock(spec=IndexService)


@pytest.fixture
def trigger(index_service):
    return IndexingRunTrigger(Mock(return_value=index_service))


class TestIndexingRunTrigger:
    """Tests for IndexingRunTrigger."""

    def test_successful_run(self, trigger, index_service, site_factory):
        index_service.index_items.return_value = True
        messages = MessageLog()

        assert trigger.run_incremental_indexing(site_factory([("pages", "default")]), 5, messages) is True

        index_service.index_items.assert_called_once_with(5)
        index_service.close.assert_called_once()
        assert [m.severity for m in messages] == [Severity.OK]

    def test_run_with_item_errors(self, trigger, index_service, site_factory):
        index_service.index_items.return_value = False
        messages = MessageLog()

        assert trigger.run_incremental_indexing(site_factory([("pages", "default")]), messages=messages) is False

        assert [m.severity for m in messages] == [Severity.ERROR]

    def test_aborted_run_is_reported_as_failure(self, trigger, index_service, site_factory):
        index_service.index_items.side_effect = QueueStorageError("db down")
        messages = MessageLog()

        assert trigger.run_incremental_indexing(site_factory([("pages", "default")]), messages=messages) is False

        index_service.close.assert_called_once()
        assert [m.severity for m in messages] == [Severity.ERROR]

    def test_default_batch_size(self, trigger, index_service, site_factory):
        index_service.index_items.return_value = True

        trigger.run_incremental_indexing(site_factory([("pages", "default")]))

        index_service.index_items.assert_called_once_with(1)

    def test_failure_building_the_service_is_reported(self, site_factory):
        factory = Mock(side_effect=QueueStorageError("sql server unreachable"))
        trigger = IndexingRunTrigger(factory)
        messages = MessageLog()

        assert trigger.run_incremental_indexing(site_factory([("pages", "default")]), messages=messages) is False

        assert [m.severity for m in messages] == [Severity.ERROR]
        assert list(messages)[0].text == "Indexing run finished with errors."
