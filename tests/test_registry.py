"""Tests for web.registry module."""

import pytest

from web.registry import Registry


class TestRegistry:
    """Tests for the capped session registry."""

    def test_add_and_get(self):
        registry = Registry(3)
        registry.add("a", 1)
        assert registry.get("a") == 1
        assert "a" in registry
        assert registry.get("missing") is None

    def test_discard(self):
        registry = Registry(3)
        registry.add("a", 1)
        registry.discard("a")
        registry.discard("a")
        assert len(registry) == 0

    def test_evicts_least_recently_used(self):
        registry = Registry(2)
        registry.add("a", 1)
        registry.add("b", 2)
        registry.get("a")
        registry.add("c", 3)
        assert "b" not in registry
        assert "a" in registry
        assert "c" in registry

    def test_size_must_be_positive(self):
        with pytest.raises(ValueError):
            Registry(0)
