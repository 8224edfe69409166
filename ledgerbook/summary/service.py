"""
Summary Service

Loads the rows a summary needs and computes it. The five category
fetches for a screen run concurrently and are joined before anything is
computed; a failed fetch fails the whole load and no partial summary is
produced.

Overlapping loads (the user flips from January to February while
January is still in flight) are resolved by generation: only the most
recently started load may publish its result.
"""

import asyncio
from typing import Optional

from ledgerbook.activity import ActivityLogger
from ledgerbook.models.categories import CATEGORIES
from ledgerbook.models.records import Period, RecordCategory, RecordSet
from ledgerbook.models.summary import CashMode, Summary
from ledgerbook.services.storage import RecordStorageInterface
from ledgerbook.summary.engine import compute_summary


class StaleResultError(Exception):
    """A newer load started before this one finished; its result was dropped."""

    def __init__(self, period: Period, generation: int):
        self.period = period
        self.generation = generation
        super().__init__(f"Summary for {period.label} was superseded")


class SummaryService:
    """Fetches rows from storage and publishes the latest summary."""

    def __init__(
        self,
        storage: RecordStorageInterface,
        cash_mode: CashMode = CashMode.NET,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._storage = storage
        self._cash_mode = CashMode(cash_mode)
        self._activity = activity_logger or ActivityLogger()
        self._generation = 0
        self.latest: Optional[Summary] = None

    async def _fetch(self, category: RecordCategory, period: Period) -> list:
        descriptor = CATEGORIES[category]
        if descriptor.period_bounded:
            bounds = period.date_range()
            return await self._storage.list_records(
                descriptor.table,
                date_field=descriptor.date_field,
                date_from=bounds[0] if bounds else None,
                date_to=bounds[1] if bounds else None,
            )
        return await self._storage.list_records(
            descriptor.table,
            status=descriptor.open_status,
        )

    async def fetch_records(self, period: Period) -> RecordSet:
        """
        Fetch all five categories concurrently.

        Raises:
            PersistenceError: If any fetch fails
        """
        categories = list(RecordCategory)
        results = await asyncio.gather(
            *(self._fetch(category, period) for category in categories)
        )
        return RecordSet.from_categories(dict(zip(categories, results)))

    async def load(self, period: Period) -> Summary:
        """
        Fetch and compute the summary for a period.

        Raises:
            PersistenceError: If any fetch fails; `latest` is left unchanged
            StaleResultError: If a newer load started meanwhile
        """
        self._generation += 1
        generation = self._generation

        records = await self.fetch_records(period)
        summary = compute_summary(records, period, self._cash_mode)

        if generation != self._generation:
            self._activity.log_stale_summary_discarded(period.label, generation)
            raise StaleResultError(period, generation)

        self.latest = summary
        self._activity.log_summary_computed(period.label, str(summary.net_position))
        return summary
