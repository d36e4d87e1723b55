"""Tests for the discovery record cache."""
import pytest

from iscsi_plist import ConfigCache, DiscoveryRecord, MemoryVault, Portal, YamlPropertyStore


@pytest.fixture
def cache(tmp_path):
    store = YamlPropertyStore(base_dir=tmp_path, host="testhost")
    return ConfigCache(store=store, vault=MemoryVault())


def make_record(*entries) -> DiscoveryRecord:
    record = DiscoveryRecord()
    for iqn, tag, address in entries:
        record.add_portal(iqn, tag, Portal(address=address))
    return record


class TestDiscoveryCache:
    """Tests for adding, copying and clearing discovery records."""

    def test_copy_never_populated(self, cache):
        """An unpopulated discovery cache reads back as None."""
        assert cache.copy_discovery_record() is None

    def test_add_and_copy(self, cache):
        """An added record reads back equal."""
        record = make_record(("iqn.t1", 1, "10.0.0.5"), ("iqn.t1", 1, "10.0.0.6"))

        cache.add_discovery_record(record)

        assert cache.copy_discovery_record() == record
        assert cache.dirty["discovery"] is True

    def test_merge_right_bias(self, cache):
        """Later records replace shared keys and keep all others."""
        first = make_record(("iqn.shared", 1, "10.0.0.1"), ("iqn.only-first", 1, "10.0.0.2"))
        second = make_record(("iqn.shared", 2, "10.0.0.9"), ("iqn.only-second", 1, "10.0.0.3"))

        cache.add_discovery_record(first)
        cache.add_discovery_record(second)
        merged = cache.copy_discovery_record()

        assert sorted(merged.target_iqns()) == ["iqn.only-first", "iqn.only-second", "iqn.shared"]
        assert merged.portal_group_tags("iqn.shared") == ["2"]
        assert merged.portals("iqn.shared", 2) == [Portal(address="10.0.0.9")]
        assert merged.portals("iqn.only-first", 1) == [Portal(address="10.0.0.2")]

    def test_empty_record_is_noop(self, cache):
        """Adding an empty or missing record changes nothing."""
        cache.add_discovery_record(DiscoveryRecord())
        cache.add_discovery_record(None)

        assert cache.copy_discovery_record() is None
        assert cache.dirty["discovery"] is False

    def test_clear(self, cache):
        """Clearing drops the record and marks the tree dirty."""
        cache.add_discovery_record(make_record(("iqn.t1", 1, "10.0.0.5")))
        cache.synchronize()

        cache.clear_discovery_record()

        assert cache.copy_discovery_record() is None
        assert cache.dirty["discovery"] is True

    def test_clear_removes_persisted_record(self, cache, tmp_path):
        """A synchronized clear removes the record from the store."""
        cache.add_discovery_record(make_record(("iqn.t1", 1, "10.0.0.5")))
        cache.synchronize()

        cache.clear_discovery_record()
        cache.synchronize()

        fresh = ConfigCache(
            store=YamlPropertyStore(base_dir=tmp_path, host="testhost"), vault=MemoryVault()
        ).open()
        assert fresh.copy_discovery_record() is None

    def test_copy_is_independent(self, cache):
        """Mutating a copied record does not change the cache."""
        cache.add_discovery_record(make_record(("iqn.t1", 1, "10.0.0.5")))

        copied = cache.copy_discovery_record()
        copied.add_portal("iqn.t1", 1, Portal(address="10.0.0.99"))

        assert len(cache.copy_discovery_record().portals("iqn.t1", 1)) == 1
