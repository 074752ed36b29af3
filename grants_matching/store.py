"""Persistence facade: changes, reads and the background jobs"""
import logging
import time
from typing import Any, Dict, List, Optional

from grants_matching.config import Settings, settings as default_settings
from grants_matching.db import Database
from grants_matching.models.changeset import DataChange, InsertManyDonations
from grants_matching.scheduler import Clock, Scheduler
from grants_matching.services.changeset import ChangesetApplier
from grants_matching.services.donation_queue import DonationBatchQueue
from grants_matching.services.stats import StatsRecalculator
from grants_matching.services.storage import StorageService

logger = logging.getLogger(__name__)

FLUSH_DONATIONS_TASK = "flush-donations"
UPDATE_STATS_TASK = "update-stats"

class Store:
    """
    Single entry point to the persisted round state. Reads go through
    store.storage.

    Donations enqueued through InsertDonation are only durable once flushed;
    call shutdown() before the process exits to write what is still queued.
    """

    def __init__(self, database: Database, config: Optional[Settings] = None, clock: Clock = time.monotonic):
        config = config or default_settings
        self.database = database
        self.donation_queue = DonationBatchQueue(self._write_donation_chunk, config.DONATION_BATCH_CHUNK_SIZE)
        self.applier = ChangesetApplier(database, self.donation_queue)
        self.stats = StatsRecalculator(database)
        self.storage = StorageService(database, config.ROUND_TOKEN_CACHE_SIZE)

        self.scheduler = Scheduler(clock)
        self.scheduler.add(FLUSH_DONATIONS_TASK, config.FLUSH_DONATION_BATCH_EVERY_SECONDS, self.flush_donations)
        self.scheduler.add(UPDATE_STATS_TASK, config.UPDATE_STATS_EVERY_SECONDS, self.update_stats)

    def _write_donation_chunk(self, chunk: List[Dict[str, Any]]) -> None:
        self.applier.apply_change(InsertManyDonations(donations=chunk))

    def apply_change(self, change: DataChange) -> None:
        self.applier.apply_change(change)

    def flush_donations(self) -> int:
        return self.donation_queue.flush()

    def update_stats(self) -> None:
        self.stats.recalculate()

    def start(self) -> None:
        """Start the donation flush and stats recompute jobs"""
        self.scheduler.start()

    def shutdown(self, drain: bool = True) -> None:
        """Stop the background jobs and write any queued donations"""
        self.scheduler.shutdown()
        if drain:
            flushed = self.flush_donations()
            logger.info(f"Flushed {flushed} queued donations on shutdown")
        elif len(self.donation_queue):
            logger.warning(f"Shutting down with {len(self.donation_queue)} unflushed donations")
