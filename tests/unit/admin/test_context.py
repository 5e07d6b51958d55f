"""
Unit tests for the per-request admin context.
"""

from unittest.mock import Mock

import pytest

from index_queue.admin import AdminRequestContext, MessageLog, QueueRegistry


@pytest.fixture
def factory(fake_queue_class):
    return Mock(side_effect=lambda: fake_queue_class("default"))


@pytest.fixture
def registry(factory):
    return QueueRegistry({"default": factory})


class TestAdminRequestContext:
    """Tests for AdminRequestContext."""

    def test_queues_resolved_lazily(self, registry, factory, site_factory):
        context = AdminRequestContext(site_factory([("pages", "default")]), registry)

        assert context.is_resolved is False
        factory.assert_not_called()

        queues = context.queues

        assert context.is_resolved is True
        assert list(queues) == ["default"]

    def test_queues_resolved_once_per_request(self, registry, factory, site_factory):
        context = AdminRequestContext(site_factory([("pages", "default")]), registry)

        first = context.queues["default"]
        second = context.default_queue

        assert first is second
        assert factory.call_count == 1

    def test_no_site(self, registry, factory):
        context = AdminRequestContext(None, registry)

        assert context.site_id is None
        assert context.queues == {}
        assert context.default_queue is None
        factory.assert_not_called()

    def test_request_id_generated(self, registry):
        assert AdminRequestContext(None, registry).request_id
        assert AdminRequestContext(None, registry, request_id="req-1").request_id == "req-1"

    def test_shared_message_log(self, registry):
        messages = MessageLog()
        context = AdminRequestContext(None, registry, messages=messages)

        assert context.messages is messages

    def test_close_closes_resolved_queues(self, registry, site_factory):
        with AdminRequestContext(site_factory([("pages", "default")]), registry) as context:
            queue = context.default_queue

        assert queue.closed is True
        assert context.is_resolved is False

    def test_close_without_resolution(self, registry, factory, site_factory):
        context = AdminRequestContext(site_factory([("pages", "default")]), registry)

        context.close()

        factory.assert_not_called()
