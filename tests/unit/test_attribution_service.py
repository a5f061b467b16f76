"""Tests for performance attribution."""

import pytest

from portfolio_analytics.core.exceptions import NoSnapshotAvailable
from portfolio_analytics.services.attribution_service import (
    AttributionService,
    sector_contributions,
    timing_effect,
)


@pytest.fixture
def attribution(store):
    return AttributionService(store)


class TestSingleSnapshot:
    def test_no_history_raises(self, attribution):
        with pytest.raises(NoSnapshotAvailable):
            attribution.compute_attribution("0xabc")

    def test_weight_times_daily_change(self, attribution, seed_history, record, holdings):
        seed_history(
            holdings(record("ETH", 600.0, change_24h=10.0), record("BTC", 400.0, change_24h=-5.0))
        )

        result = attribution.compute_attribution("0xABC")

        eth, btc = result.asset_contributions
        assert eth.contribution == pytest.approx(6.0)
        assert btc.contribution == pytest.approx(-2.0)
        assert result.total_return == pytest.approx(4.0)
        assert result.total_attribution == pytest.approx(4.0)
        assert eth.contribution_percent == pytest.approx(150.0)
        assert btc.contribution_percent == pytest.approx(-50.0)
        assert result.unexplained_return == 0.0

    def test_zero_daily_return_guards_percent(self, attribution, seed_history, record, holdings):
        seed_history(holdings(record("ETH", 500.0, change_24h=0.0), record("BTC", 500.0)))
        result = attribution.compute_attribution("0xabc")
        assert all(c.contribution_percent == 0.0 for c in result.asset_contributions)
        assert result.unexplained_return == 0.0

    def test_chain_contributions(self, attribution, seed_history, record, holdings):
        seed_history(
            holdings(
                record("ETH", 500.0, change_24h=4.0),
                record("MATIC", 500.0, chain_id=137, chain_name="Polygon", change_24h=-2.0),
            )
        )
        result = attribution.compute_attribution("0xabc")
        ethereum, polygon = result.chain_contributions
        assert ethereum.chain_name == "Ethereum"
        assert ethereum.contribution == pytest.approx(2.0)
        assert polygon.contribution == pytest.approx(-1.0)


class TestTwoSnapshots:
    def test_residual_is_surfaced(self, attribution, seed_history, record, holdings):
        seed_history(
            holdings(record("ETH", 100.0), record("BTC", 100.0)),
            holdings(record("ETH", 150.0), record("BTC", 50.0)),
        )

        result = attribution.compute_attribution("0xabc")

        eth, btc = result.asset_contributions
        assert result.total_return == pytest.approx(0.0)
        assert eth.return_pct == pytest.approx(50.0)
        assert eth.contribution == pytest.approx(37.5)
        assert btc.contribution == pytest.approx(-12.5)
        assert result.total_attribution == pytest.approx(25.0)
        assert result.unexplained_return == pytest.approx(-25.0)
        assert eth.contribution_percent == 0.0

    def test_new_position_has_zero_return(self, attribution, seed_history, record, holdings):
        seed_history(
            holdings(record("ETH", 100.0)),
            holdings(record("ETH", 110.0), record("USDC", 10.0)),
        )

        result = attribution.compute_attribution("0xabc")

        eth, usdc = result.asset_contributions
        assert result.total_return == pytest.approx(20.0)
        assert usdc.return_pct == 0.0
        assert usdc.contribution == 0.0
        assert eth.contribution == pytest.approx(110 / 120 * 100 / 100 * 10.0)
        assert result.unexplained_return == pytest.approx(
            result.total_return - result.total_attribution
        )

    def test_matches_symbol_and_chain_first(self, attribution, seed_history, record, holdings):
        seed_history(
            holdings(
                record("ETH", 100.0),
                record("ETH", 50.0, chain_id=137, chain_name="Polygon"),
            ),
            holdings(record("ETH", 100.0, chain_id=137, chain_name="Polygon")),
        )
        result = attribution.compute_attribution("0xabc")
        (eth,) = result.asset_contributions
        assert eth.chain_id == 137
        assert eth.return_pct == pytest.approx(100.0)

    def test_falls_back_to_symbol_match(self, attribution, seed_history, record, holdings):
        seed_history(
            holdings(record("ETH", 100.0)),
            holdings(record("ETH", 120.0, chain_id=10, chain_name="Optimism")),
        )
        result = attribution.compute_attribution("0xabc")
        assert result.asset_contributions[0].return_pct == pytest.approx(20.0)
        # chain 10 did not exist before
        assert result.chain_contributions[0].return_pct == 0.0

    def test_zero_prior_value(self, attribution, seed_history, record, holdings):
        seed_history(
            holdings(record("ETH", 0.0), record("BTC", 100.0)),
            holdings(record("ETH", 50.0), record("BTC", 100.0)),
        )
        result = attribution.compute_attribution("0xabc")
        assert result.asset_contributions[0].return_pct == 0.0

    def test_only_latest_two_snapshots_are_compared(
        self, attribution, seed_history, record, holdings
    ):
        seed_history(
            holdings(record("ETH", 10.0)),
            holdings(record("ETH", 100.0)),
            holdings(record("ETH", 110.0)),
        )
        assert attribution.compute_attribution("0xabc").total_return == pytest.approx(10.0)


    def test_prior_lookup_ignores_symbol_case(self, attribution, make_position, make_snapshot):
        previous = make_snapshot(
            "snapshot_1", total_value=100.0, positions=[make_position("eth", usd_value=100.0)]
        )
        latest = make_snapshot(
            "snapshot_2", total_value=150.0, positions=[make_position("ETH", usd_value=150.0)]
        )
        result = attribution.two_snapshot_attribution(latest, previous)
        assert result.asset_contributions[0].return_pct == pytest.approx(50.0)


class TestBreakdown:
    def test_single_snapshot_effects(self, attribution, seed_history, record, holdings):
        seed_history(
            holdings(record("ETH", 600.0, change_24h=10.0), record("BTC", 400.0, change_24h=-5.0))
        )

        breakdown = attribution.compute_attribution("0xabc").breakdown

        assert breakdown.allocation_effect == pytest.approx((0.35 + 0.15) * 1.5)
        assert breakdown.selection_effect == pytest.approx(0.6 * 8.5 + 0.4 * -6.5)
        # One Ethereum chain contributing 4%
        assert breakdown.currency_effect == pytest.approx(4.0 * 0.05)
        assert breakdown.interaction_effect == 0.0
        assert breakdown.timing_effect == 0.0

    def test_currency_factor_depends_on_chain(self, attribution, seed_history, record, holdings):
        polygon = {"chain_id": 137, "chain_name": "Polygon"}
        seed_history(
            holdings(record("ETH", 100.0), record("MATIC", 100.0, **polygon)),
            holdings(record("ETH", 110.0), record("MATIC", 90.0, **polygon)),
        )

        breakdown = attribution.compute_attribution("0xabc").breakdown

        assert breakdown.currency_effect == pytest.approx(0.55 * 10 * 0.05 + 0.45 * -10 * -0.02)
        assert breakdown.interaction_effect == pytest.approx(0.1)
        # Two snapshots are not enough to measure timing
        assert breakdown.timing_effect == 0.0

    def test_timing_skips_oldest_pair(self, attribution, seed_history, record, holdings):
        seed_history(
            holdings(record("ETH", 100.0)),
            holdings(record("ETH", 200.0)),
            holdings(record("ETH", 220.0)),
        )

        breakdown = attribution.compute_attribution("0xabc").breakdown

        assert breakdown.timing_effect == pytest.approx(0.1 * 0.1)
        assert breakdown.allocation_effect == pytest.approx(0.75 * 1.5)
        assert breakdown.selection_effect == pytest.approx(10.0 - 1.5)

    def test_timing_with_zero_prior_value(self, make_snapshot):
        history = [make_snapshot(f"snapshot_{v}", total_value=v) for v in (120.0, 100.0, 0.0, 50.0)]
        # Moves: +20% then a zero basis counted as no move
        assert timing_effect(history) == pytest.approx((0.2 * 0.1 + 0.0) / 2)
        assert timing_effect(history[:2]) == 0.0


class TestSectors:
    def test_grouping(self, make_position):
        sectors = sector_contributions(
            [
                make_position("ETH", 40.0, change_24h=10.0, volatility=0.6),
                make_position("ADA", 10.0, change_24h=-10.0, volatility=0.7),
                make_position("PEPE", 50.0, change_24h=2.0, volatility=1.0),
            ]
        )
        by_name = {s.sector_name: s for s in sectors}
        assert set(by_name) == {"Smart Contract Platforms", "Other"}
        platforms = by_name["Smart Contract Platforms"]
        assert platforms.weight == pytest.approx(50.0)
        assert platforms.return_pct == pytest.approx(0.8 * 10.0 + 0.2 * -10.0)
        assert platforms.contribution == pytest.approx(0.5 * 6.0)
        assert platforms.risk_contribution == pytest.approx(0.4 * 0.6 + 0.1 * 0.7)

    def test_zero_weight_sector(self, make_position):
        (sector,) = sector_contributions([make_position("USDC", 0.0, change_24h=1.0)])
        assert sector.sector_name == "Stablecoins"
        assert sector.return_pct == 0.0
