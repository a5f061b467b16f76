"""Tests for the snapshot store."""

import pytest

from portfolio_analytics.core.exceptions import InvalidWalletId
from portfolio_analytics.services.snapshot_store import SnapshotStore, normalize_wallet_id


class TestNormalizeWalletId:
    def test_strips_and_lowercases(self):
        assert normalize_wallet_id("  0xABCdef ") == "0xabcdef"

    @pytest.mark.parametrize("bad", ["", "   ", "0x ab", "0x\tab", "0x\x00ab", None, 42])
    def test_rejects_malformed(self, bad):
        with pytest.raises(InvalidWalletId):
            normalize_wallet_id(bad)

    def test_rejects_overlong(self):
        with pytest.raises(InvalidWalletId):
            normalize_wallet_id("a" * 257)


class TestSnapshotStore:
    def test_append_prepends(self, store, make_snapshot):
        store.append(make_snapshot("s1"))
        store.append(make_snapshot("s2"))
        assert [s.id for s in store.history("0xabc")] == ["s2", "s1"]
        assert store.latest("0xabc").id == "s2"

    def test_wallet_lookup_is_case_insensitive(self, store, make_snapshot):
        store.append(make_snapshot("s1", wallet_id="0xABC"))
        assert store.count("0xabc") == 1
        assert store.count(" 0XABC ") == 1

    def test_cap_keeps_newest(self, make_snapshot):
        store = SnapshotStore(max_snapshots=3)
        for i in range(1, 6):
            store.append(make_snapshot(f"s{i}"))
        assert [s.id for s in store.history("0xabc")] == ["s5", "s4", "s3"]

    def test_invalid_cap(self):
        with pytest.raises(ValueError):
            SnapshotStore(max_snapshots=0)

    def test_readers_are_not_aliased(self, store, make_snapshot):
        store.append(make_snapshot("s1"))
        view = store.history("0xabc")
        store.append(make_snapshot("s2"))
        assert len(view) == 1
        assert view[0].id == "s1"

    def test_get_snapshots_limit(self, store, make_snapshot):
        for i in range(5):
            store.append(make_snapshot(f"s{i}"))
        assert [s.id for s in store.get_snapshots("0xabc", limit=2)] == ["s4", "s3"]
        assert store.get_snapshots("0xabc", limit=0) == ()
        with pytest.raises(ValueError):
            store.get_snapshots("0xabc", limit=-1)

    def test_unknown_wallet(self, store):
        assert store.history("0xnone") == ()
        assert store.latest("0xnone") is None

    def test_wallets_are_isolated(self, store, make_snapshot):
        store.append(make_snapshot("a1", wallet_id="0xa"))
        store.append(make_snapshot("b1", wallet_id="0xb"))
        store.clear("0xa")
        assert store.count("0xa") == 0
        assert store.count("0xb") == 1
        assert store.wallets() == ["0xb"]
        store.clear()
        assert store.wallets() == []
