"""Composite statistics queries for manga-deployments library."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Union

from .constants import PERIOD_SECONDS
from .contracts import ContractClient
from .exceptions import PartialQueryError
from .types import NOT_APPLICABLE, CreatorStats, InvestorStats, Ratio, Unavailable
from .validation import validate_address

logger = logging.getLogger(__name__)


def current_period(timestamp: Optional[float] = None) -> int:
    """
    Period key for period-scoped metrics.

    A period is a fixed 30-day bucket counted from the Unix epoch, not a
    calendar month; the contracts key their monthly counters the same way.

    Args:
        timestamp: Unix seconds (defaults to now)

    Returns:
        floor(timestamp / 2,592,000)
    """
    if timestamp is None:
        timestamp = time.time()
    return int(timestamp // PERIOD_SECONDS)


def ratio(numerator: int, denominator: int, scale: float = 1.0) -> Ratio:
    """numerator / denominator * scale, or NOT_APPLICABLE for a zero denominator."""
    if denominator == 0:
        return NOT_APPLICABLE
    return numerator / denominator * scale


def retention_rate(held: int, acquired: int) -> Ratio:
    """Share of acquired tokens still held, in percent."""
    return ratio(held, acquired, 100.0)


class StatsAggregator:
    """
    Combines several read-only queries into one statistics record.

    Primary metrics are required and their failures propagate. Secondary
    metrics are queried concurrently; each failure becomes an Unavailable
    marker for that field only.
    """

    def __init__(self, hub: ContractClient, max_workers: int = 4):
        """
        Args:
            hub: Client of the contract holding creator/investor statistics
            max_workers: Upper bound on concurrent secondary queries
        """
        self._hub = hub
        self._max_workers = max_workers

    def _secondary(self, queries: Dict[str, Callable[[], Any]]) -> Dict[str, Any]:
        def guarded(metric: str, query: Callable[[], Any]) -> Any:
            try:
                return query()
            except Exception as e:
                failure = PartialQueryError(metric, e)
                logger.warning("%s", failure)
                return Unavailable(reason=str(e))

        workers = max(1, min(self._max_workers, len(queries)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {
                metric: pool.submit(guarded, metric, query) for metric, query in queries.items()
            }
            return {metric: future.result() for metric, future in futures.items()}

    @staticmethod
    def _roster(members: Union[List[str], Unavailable], subject: str) -> tuple[Any, Any]:
        if isinstance(members, Unavailable):
            return members, members
        lowered = subject.lower()
        return len(members), any(m.lower() == lowered for m in members)

    def creator_stats(self, creator: str) -> CreatorStats:
        """
        Statistics of a creator.

        Raises:
            ValidationError: If the address is malformed
            QueryError: If the primary getCreatorStats query fails
        """
        creator = validate_address(creator, "creator address")
        published, acquired, held = self._hub.query("getCreatorStats", [creator])

        secondary = self._secondary(
            {
                "isCreator": lambda: self._hub.query("isCreator", [creator]),
                "getAllCreators": lambda: self._hub.query("getAllCreators"),
            }
        )
        roster_size, in_roster = self._roster(secondary["getAllCreators"], creator)

        return CreatorStats(
            subject=creator,
            total_published=published,
            total_acquired=acquired,
            current_held=held,
            average_acquired_per_chapter=ratio(acquired, published),
            retention_rate=retention_rate(held, acquired),
            is_registered=secondary["isCreator"],
            roster_size=roster_size,
            in_roster=in_roster,
        )

    def investor_stats(self, investor: str, timestamp: Optional[float] = None) -> InvestorStats:
        """
        Statistics of an investor.

        Args:
            investor: Investor address
            timestamp: Unix seconds selecting the period (defaults to now)

        Raises:
            ValidationError: If the address is malformed
            QueryError: If the primary getInvestorStats query fails
        """
        investor = validate_address(investor, "investor address")
        acquired, held = self._hub.query("getInvestorStats", [investor])
        period = current_period(timestamp)

        secondary = self._secondary(
            {
                "isInvestor": lambda: self._hub.query("isInvestor", [investor]),
                "getAllInvestors": lambda: self._hub.query("getAllInvestors"),
                "getCurrentHeldNFTCountByInvestorExternal": lambda: self._hub.query(
                    "getCurrentHeldNFTCountByInvestorExternal", [investor]
                ),
                "getInvestorMonthlyStats": lambda: self._hub.query(
                    "getInvestorMonthlyStats", [investor, period]
                ),
            }
        )
        roster_size, in_roster = self._roster(secondary["getAllInvestors"], investor)

        return InvestorStats(
            subject=investor,
            total_acquired=acquired,
            current_held=held,
            retention_rate=retention_rate(held, acquired),
            is_registered=secondary["isInvestor"],
            roster_size=roster_size,
            in_roster=in_roster,
            current_held_count=secondary["getCurrentHeldNFTCountByInvestorExternal"],
            period=period,
            period_acquired=secondary["getInvestorMonthlyStats"],
        )
