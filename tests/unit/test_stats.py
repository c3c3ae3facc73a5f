"""Unit tests for composite statistics."""

import pytest

from manga_deployments.contracts import ContractClient
from manga_deployments.exceptions import QueryError, ValidationError
from manga_deployments.stats import StatsAggregator, current_period, ratio, retention_rate
from manga_deployments.types import NOT_APPLICABLE, Unavailable

HUB = "0x00000000000000000000000000000000000000A1"
CREATOR = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
INVESTOR = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"


@pytest.fixture
def hub(fake_chain, hub_descriptor):
    return ContractClient(fake_chain, hub_descriptor, HUB)


@pytest.fixture
def aggregator(hub):
    return StatsAggregator(hub)


class TestPeriodAndRatios:
    """Test the period key and ratio helpers."""

    def test_current_period_is_thirty_day_bucket(self):
        assert current_period(0) == 0
        assert current_period(2_591_999) == 0
        assert current_period(2_592_000) == 1
        assert current_period(1_753_619_893) == 676

    def test_current_period_defaults_to_now(self):
        assert current_period() > 676

    def test_ratio(self):
        assert ratio(7, 2) == 3.5
        assert ratio(1, 0) is NOT_APPLICABLE

    def test_retention_rate_is_a_percentage(self):
        assert retention_rate(5, 10) == 50.0
        assert retention_rate(0, 0) is NOT_APPLICABLE


class TestCreatorStats:
    """Test the creator_stats method."""

    def test_all_metrics_available(self, fake_chain, aggregator):
        fake_chain.query_results.update(
            getCreatorStats=(3, 7, 7),
            isCreator=True,
            getAllCreators=[CREATOR.lower(), INVESTOR],
        )
        stats = aggregator.creator_stats(CREATOR)

        assert stats.subject == CREATOR
        assert stats.total_published == 3
        assert stats.total_acquired == 7
        assert stats.current_held == 7
        assert stats.average_acquired_per_chapter == pytest.approx(7 / 3)
        assert stats.retention_rate == 100.0
        assert stats.is_registered is True
        assert stats.roster_size == 2
        assert stats.in_roster is True

    def test_failed_secondary_query_is_unavailable(self, fake_chain, aggregator):
        """Test a throwing registration check leaves the other fields intact."""
        fake_chain.query_results.update(
            getCreatorStats=(3, 7, 7),
            isCreator=QueryError("execution reverted"),
            getAllCreators=[],
        )
        stats = aggregator.creator_stats(CREATOR)

        assert stats.total_published == 3
        assert stats.average_acquired_per_chapter == pytest.approx(2.333, rel=1e-3)
        assert isinstance(stats.is_registered, Unavailable)
        assert "execution reverted" in stats.is_registered.reason
        assert stats.roster_size == 0
        assert stats.in_roster is False

    def test_failed_roster_marks_both_roster_fields(self, fake_chain, aggregator):
        fake_chain.query_results.update(
            getCreatorStats=(1, 1, 1),
            isCreator=True,
            getAllCreators=QueryError("rpc down"),
        )
        stats = aggregator.creator_stats(CREATOR)

        assert isinstance(stats.roster_size, Unavailable)
        assert isinstance(stats.in_roster, Unavailable)
        assert stats.is_registered is True

    def test_unexpected_secondary_exception_is_unavailable(self, fake_chain, aggregator):
        fake_chain.query_results.update(
            getCreatorStats=(3, 7, 7),
            isCreator=True,
            getAllCreators=ConnectionError("socket closed"),
        )
        stats = aggregator.creator_stats(CREATOR)

        assert stats.total_published == 3
        assert stats.is_registered is True
        assert isinstance(stats.in_roster, Unavailable)
        assert stats.in_roster.reason == "socket closed"

    def test_zero_published_is_not_applicable(self, fake_chain, aggregator):
        fake_chain.query_results.update(getCreatorStats=(0, 0, 0), isCreator=False, getAllCreators=[])
        stats = aggregator.creator_stats(CREATOR)

        assert stats.average_acquired_per_chapter is NOT_APPLICABLE
        assert stats.retention_rate is NOT_APPLICABLE

    def test_primary_failure_propagates(self, fake_chain, aggregator):
        fake_chain.query_results["getCreatorStats"] = QueryError("execution reverted")

        with pytest.raises(QueryError):
            aggregator.creator_stats(CREATOR)

    def test_invalid_address_queries_nothing(self, fake_chain, aggregator):
        with pytest.raises(ValidationError):
            aggregator.creator_stats("0x1234")
        assert fake_chain.queries == []


class TestInvestorStats:
    """Test the investor_stats method."""

    def test_all_metrics_available(self, fake_chain, aggregator):
        seen_periods = []

        def monthly(investor, period):
            seen_periods.append(period)
            return 4

        fake_chain.query_results.update(
            getInvestorStats=(10, 5),
            isInvestor=True,
            getAllInvestors=[INVESTOR],
            getCurrentHeldNFTCountByInvestorExternal=5,
            getInvestorMonthlyStats=monthly,
        )
        stats = aggregator.investor_stats(INVESTOR, timestamp=1_753_619_893)

        assert stats.total_acquired == 10
        assert stats.current_held == 5
        assert stats.retention_rate == 50.0
        assert stats.is_registered is True
        assert stats.roster_size == 1
        assert stats.in_roster is True
        assert stats.current_held_count == 5
        assert stats.period == 676
        assert stats.period_acquired == 4
        assert seen_periods == [676]

    def test_zero_acquired_retention_not_applicable(self, fake_chain, aggregator):
        fake_chain.query_results.update(
            getInvestorStats=(0, 0),
            isInvestor=False,
            getAllInvestors=[],
            getCurrentHeldNFTCountByInvestorExternal=0,
            getInvestorMonthlyStats=0,
        )
        stats = aggregator.investor_stats(INVESTOR, timestamp=0)

        assert stats.retention_rate is NOT_APPLICABLE
        assert stats.in_roster is False

    def test_secondary_failures_are_isolated(self, fake_chain, aggregator):
        fake_chain.query_results.update(
            getInvestorStats=(10, 5),
            isInvestor=True,
            getAllInvestors=[INVESTOR],
            getCurrentHeldNFTCountByInvestorExternal=QueryError("timeout"),
            getInvestorMonthlyStats=QueryError("timeout"),
        )
        stats = aggregator.investor_stats(INVESTOR, timestamp=0)

        assert isinstance(stats.current_held_count, Unavailable)
        assert isinstance(stats.period_acquired, Unavailable)
        assert stats.is_registered is True
        assert stats.retention_rate == 50.0

    def test_primary_failure_propagates(self, fake_chain, aggregator):
        fake_chain.query_results["getInvestorStats"] = QueryError("execution reverted")

        with pytest.raises(QueryError):
            aggregator.investor_stats(INVESTOR)
