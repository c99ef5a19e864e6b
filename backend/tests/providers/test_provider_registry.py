"""Contract tests for the provider registry."""

from threadchat.providers.registry import clear_providers, find_provider, register_provider
from tests.fixtures import FakeProvider


class TestProviderRegistry:
    def setup_method(self):
        clear_providers()

    def teardown_method(self):
        clear_providers()

    def test_register_and_find(self):
        provider = FakeProvider()
        register_provider(provider)
        assert find_provider("fake") is provider

    def test_find_unregistered_returns_none(self):
        assert find_provider("nonexistent") is None

    def test_register_replaces_same_name(self):
        register_provider(FakeProvider("one"))
        second = FakeProvider("two")
        register_provider(second)
        assert find_provider("fake") is second

    def test_clear_empties_registry(self):
        register_provider(FakeProvider())
        clear_providers()
        assert find_provider("fake") is None
