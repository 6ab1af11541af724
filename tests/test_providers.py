"""
Tests for resource providers and the registry.

These tests verify:
- The check cache -> fetch -> project -> cache -> respond contract
- "Not modified" answers without touching the store
- Failures produce error results and leave the cache untouched
- Collection invalidation marks only dependent resources dirty
- The version manifest
"""

import json
import logging
from unittest.mock import AsyncMock, patch

import pytest

from dulce.cache.config import CacheConfig
from dulce.cache.headers import generate_etag
from dulce.errors import ErrorCode, ValidationError
from dulce.models.enums import ResourceId
from dulce.resources.base import NOT_MODIFIED_TEXT, ResultStatus
from dulce.resources.registry import ResourceRegistry

from tests.conftest import URI_PREFIX


# =============================================================================
# READ CONTRACT TESTS
# =============================================================================

class TestReadContract:
    """Test cache-aware reads."""

    @pytest.mark.asyncio
    async def test_first_read_computes_and_caches(self, registry, store):
        result = await registry.read(ResourceId.PRODUCTS_INDEX)

        assert result.status is ResultStatus.OK
        assert result.cache_hit is False
        assert result.data_version == 1
        assert result.etag == generate_etag(result.data)
        assert [row["id"] for row in result.data] == ["p1", "p2", "p3"]
        assert store.calls["query:products"] == 1

    @pytest.mark.asyncio
    async def test_second_read_is_a_hit(self, registry, store):
        first = await registry.read(ResourceId.PRODUCTS_INDEX)
        second = await registry.read(ResourceId.PRODUCTS_INDEX)

        assert second.cache_hit is True
        assert second.etag == first.etag
        assert second.data_version == first.data_version
        assert store.calls["query:products"] == 1

    @pytest.mark.asyncio
    async def test_matching_etag_is_not_modified_without_store_access(self, registry, store):
        first = await registry.read(ResourceId.PRODUCTS_INDEX)
        calls_before = sum(store.calls.values())

        result = await registry.read(ResourceId.PRODUCTS_INDEX, if_none_match=first.etag)

        assert result.status is ResultStatus.NOT_MODIFIED
        assert result.data is None
        assert result.etag == first.etag
        assert result.data_version == first.data_version
        assert sum(store.calls.values()) == calls_before

    @pytest.mark.asyncio
    async def test_weak_validator_in_list_matches(self, registry):
        first = await registry.read(ResourceId.PRODUCTS_INDEX)
        result = await registry.read(
            ResourceId.PRODUCTS_INDEX, if_none_match=f'"stale", W/{first.etag}',
        )
        assert result.not_modified

    @pytest.mark.asyncio
    async def test_stale_etag_gets_full_payload(self, registry):
        first = await registry.read(ResourceId.PRODUCTS_INDEX)
        result = await registry.read(ResourceId.PRODUCTS_INDEX, if_none_match='"stale"')

        assert result.status is ResultStatus.OK
        assert result.data == first.data

    @pytest.mark.asyncio
    async def test_if_modified_since_is_ignored(self, registry):
        await registry.read(ResourceId.PRODUCTS_INDEX)
        result = await registry.read(
            ResourceId.PRODUCTS_INDEX,
            if_modified_since="Sat, 01 Jan 2100 00:00:00 GMT",
        )
        assert result.status is ResultStatus.OK

    @pytest.mark.asyncio
    async def test_miss_with_matching_etag_returns_full_payload(self, registry):
        """After expiry the resource is recomputed and returned in full."""
        first = await registry.read(ResourceId.PRODUCTS_INDEX)
        registry.cache.mark_dirty(ResourceId.PRODUCTS_INDEX)

        result = await registry.read(ResourceId.PRODUCTS_INDEX, if_none_match=first.etag)

        assert result.status is ResultStatus.OK
        assert result.etag == first.etag
        assert result.data_version == 2

    @pytest.mark.asyncio
    async def test_ttl_expiry_recomputes(self, registry, store, clock):
        await registry.read(ResourceId.PRODUCTS_INDEX)
        clock.advance(61)
        result = await registry.read(ResourceId.PRODUCTS_INDEX)

        assert result.cache_hit is False
        assert result.data_version == 2
        assert store.calls["query:products"] == 2

    @pytest.mark.asyncio
    async def test_store_change_after_invalidation_changes_etag(self, registry, store):
        first = await registry.read(ResourceId.PRODUCTS_INDEX)

        store.put("products", "p4", {"name": "Cocoa", "quantity": 1})
        registry.invalidate_collection("products")
        second = await registry.read(ResourceId.PRODUCTS_INDEX, if_none_match=first.etag)

        assert second.status is ResultStatus.OK
        assert second.etag != first.etag
        assert second.data_version == 2
        assert "p4" in [row["id"] for row in second.data]

    @pytest.mark.asyncio
    async def test_read_by_full_uri(self, registry):
        result = await registry.read(f"{URI_PREFIX}categories#index")
        assert result.ok
        assert result.uri == f"{URI_PREFIX}categories#index"


# =============================================================================
# FAILURE TESTS
# =============================================================================

class TestFailures:
    """Test that failed computations never mutate the cache."""

    @pytest.mark.asyncio
    async def test_store_failure_returns_internal_error(self, registry, store):
        with patch.object(store, "query", AsyncMock(side_effect=RuntimeError("store down"))):
            result = await registry.read(ResourceId.PRODUCTS_INDEX)

        assert result.status is ResultStatus.ERROR
        assert result.error_code is ErrorCode.INTERNAL
        assert result.error["error"]["message"] == "Internal server error"
        assert registry.cache.get_stats()["entryCount"] == 0
        assert registry.cache.current_version(ResourceId.PRODUCTS_INDEX) == 0

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_entry(self, registry, store, clock):
        first = await registry.read(ResourceId.PRODUCTS_INDEX)
        registry.cache.mark_dirty(ResourceId.PRODUCTS_INDEX)

        with patch.object(store, "query", AsyncMock(side_effect=RuntimeError("store down"))):
            failed = await registry.read(ResourceId.PRODUCTS_INDEX)

        assert failed.status is ResultStatus.ERROR
        manifest = registry.cache.get_version_manifest()
        assert manifest["products#index"]["etag"] == first.etag
        assert manifest["products#index"]["dataVersion"] == 1

    @pytest.mark.asyncio
    async def test_domain_error_keeps_its_code(self, registry):
        provider = registry.providers[ResourceId.RECIPES_INDEX]
        with patch.object(provider, "compute", AsyncMock(side_effect=ValidationError("bad filter"))):
            result = await registry.read(ResourceId.RECIPES_INDEX)

        assert result.error_code is ErrorCode.VALIDATION
        assert result.error["error"]["message"] == "bad filter"

    @pytest.mark.asyncio
    async def test_unknown_resource_is_not_found(self, registry):
        result = await registry.read("orders#index")

        assert result.status is ResultStatus.ERROR
        assert result.resource_id is None
        assert result.error_code is ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_error_payload_text(self, registry):
        result = await registry.read("orders#index")
        payload = result.to_payload()
        assert json.loads(payload["contents"][0]["text"])["error"]["code"] == "NOT_FOUND"
        assert "etag" not in payload


# =============================================================================
# OBSERVABILITY TESTS
# =============================================================================

class TestObservability:
    """Test soft limits: logged, never enforced."""

    @pytest.mark.asyncio
    async def test_oversized_payload_is_served_with_warning(self, store, clock, caplog):
        config = CacheConfig(enabled=True, payload_size_warning_bytes=10, entry_size_warning_bytes=10)
        registry = ResourceRegistry(store, config=config, now=clock.now)

        with caplog.at_level(logging.WARNING):
            result = await registry.read(ResourceId.PRODUCTS_INDEX)

        assert result.ok
        assert any("exceeds size limit" in r.message for r in caplog.records)

    @pytest.mark.asyncio
    async def test_slow_computation_warns(self, store, clock, caplog):
        config = CacheConfig(enabled=True, slow_computation_ms=0)
        registry = ResourceRegistry(store, config=config, now=clock.now)

        with caplog.at_level(logging.WARNING, logger="dulce.resources.base"):
            await registry.read(ResourceId.MEASURES_INDEX)

        assert any("Slow resource computation" in r.message for r in caplog.records)


# =============================================================================
# PROVIDER-SPECIFIC TESTS
# =============================================================================

class TestProviders:
    """Test each provider's query scope and output."""

    @pytest.mark.asyncio
    async def test_persons_index_redacted(self, registry):
        result = await registry.read(ResourceId.PERSONS_INDEX)
        assert "1155550000" not in result.text()
        assert all(set(row) == {"id", "displayName", "tags"} for row in result.data)

    @pytest.mark.asyncio
    async def test_movements_last_30d(self, registry):
        result = await registry.read(ResourceId.MOVEMENTS_LAST_30D)

        assert result.data[0] == {"date": "2026-10-14", "type": "PURCHASE", "qty": 3, "total": 300.0}
        assert "2026-08-01" not in [row["date"] for row in result.data]

    @pytest.mark.asyncio
    async def test_clients_recent_fetches_persons(self, registry, store, caplog):
        with caplog.at_level(logging.WARNING, logger="dulce.resources.providers"):
            result = await registry.read(ResourceId.CLIENTS_RECENT)

        assert [row["id"] for row in result.data] == ["per1", "per3"]
        assert result.data[0]["totalSpent"] == 150.5
        # per1, per3 and the missing "ghost"
        assert store.calls["get:persons"] == 3
        assert any("not found in persons" in r.message for r in caplog.records)

    @pytest.mark.asyncio
    async def test_categories_and_measures(self, registry):
        categories = await registry.read(ResourceId.CATEGORIES_INDEX)
        measures = await registry.read(ResourceId.MEASURES_INDEX)

        assert [row["id"] for row in categories.data] == ["c2", "c1"]
        assert [row["unit"] for row in measures.data] == ["g", "kg"]

    @pytest.mark.asyncio
    async def test_index_limit(self, store, registry):
        store.load("products", {f"p{i:03d}": {"name": f"P{i}"} for i in range(150)})
        result = await registry.read(ResourceId.PRODUCTS_INDEX)
        assert len(result.data) == 100

    @pytest.mark.asyncio
    async def test_recompute_of_unchanged_data_keeps_etag(self, registry):
        first = await registry.read(ResourceId.RECIPES_INDEX)
        registry.invalidate(ResourceId.RECIPES_INDEX)
        second = await registry.read(ResourceId.RECIPES_INDEX)

        assert second.etag == first.etag
        assert second.data_version == first.data_version + 1


# =============================================================================
# INVALIDATION TESTS
# =============================================================================

class TestRegistryInvalidation:
    """Test narrow invalidation."""

    @pytest.mark.asyncio
    async def test_movements_change_marks_dependents_dirty(self, registry, store):
        for resource in (ResourceId.MOVEMENTS_LAST_30D, ResourceId.CLIENTS_RECENT, ResourceId.PRODUCTS_INDEX):
            await registry.read(resource)

        dirty = registry.invalidate_collection("movements")

        assert set(dirty) == {ResourceId.MOVEMENTS_LAST_30D, ResourceId.CLIENTS_RECENT}
        assert registry.cache.get(ResourceId.PRODUCTS_INDEX) is not None
        assert registry.cache.get(ResourceId.MOVEMENTS_LAST_30D) is None
        assert registry.cache.get(ResourceId.CLIENTS_RECENT) is None

    def test_unknown_collection_marks_nothing(self, registry):
        assert registry.invalidate_collection("orders") == []

    @pytest.mark.asyncio
    async def test_manifest_cannot_be_invalidated(self, registry):
        await registry.read(ResourceId.PRODUCTS_INDEX)
        before = await registry.read(ResourceId.VERSION_MANIFEST)

        with pytest.raises(ValidationError):
            registry.invalidate(ResourceId.VERSION_MANIFEST)
        with pytest.raises(ValidationError):
            registry.invalidate("version-manifest")

        stats = registry.stats()
        assert stats["dirtyCount"] == 0
        assert ResourceId.VERSION_MANIFEST not in registry.cache

        after = await registry.read(ResourceId.VERSION_MANIFEST, if_none_match=before.etag)
        assert after.not_modified

    @pytest.mark.asyncio
    async def test_clear_then_read_gets_higher_version(self, registry):
        first = await registry.read(ResourceId.PRODUCTS_INDEX)
        registry.clear()
        second = await registry.read(ResourceId.PRODUCTS_INDEX)

        assert second.data_version > first.data_version


# =============================================================================
# VERSION MANIFEST TESTS
# =============================================================================

class TestVersionManifest:
    """Test the manifest resource."""

    @pytest.mark.asyncio
    async def test_manifest_lists_cached_resources(self, registry):
        products = await registry.read(ResourceId.PRODUCTS_INDEX)
        await registry.read(ResourceId.MEASURES_INDEX)

        result = await registry.read(ResourceId.VERSION_MANIFEST)

        assert result.ok
        assert set(result.data["manifest"]) == {"products#index", "measures#index"}
        assert result.data["manifest"]["products#index"]["etag"] == products.etag
        assert result.data["stats"]["entryCount"] == 2
        assert result.data["generatedAt"] == "2026-10-15T12:00:00+00:00"
        assert result.data_version is None

    @pytest.mark.asyncio
    async def test_manifest_is_not_cached(self, registry):
        await registry.read(ResourceId.VERSION_MANIFEST)
        assert ResourceId.VERSION_MANIFEST not in registry.cache

    @pytest.mark.asyncio
    async def test_unchanged_manifest_is_not_modified(self, registry, clock):
        await registry.read(ResourceId.PRODUCTS_INDEX)
        first = await registry.read(ResourceId.VERSION_MANIFEST)
        clock.advance(5)

        second = await registry.read(ResourceId.VERSION_MANIFEST, if_none_match=first.etag)
        assert second.not_modified
        assert second.to_payload()["contents"][0]["text"] == NOT_MODIFIED_TEXT

    @pytest.mark.asyncio
    async def test_manifest_etag_changes_with_cache(self, registry):
        first = await registry.read(ResourceId.VERSION_MANIFEST)
        await registry.read(ResourceId.PRODUCTS_INDEX)
        second = await registry.read(ResourceId.VERSION_MANIFEST, if_none_match=first.etag)

        assert second.ok
        assert second.etag != first.etag
