from __future__ import annotations

from typing import Iterator

import pytest

from grants_matching.config import Settings
from grants_matching.db import Database
from grants_matching.models.changeset import InsertApplication, InsertRound
from grants_matching.services.changeset import ChangesetApplier
from grants_matching.services.donation_queue import DonationBatchQueue

CHAIN_ID = 1
ROUND_ID = "0xround"
NATIVE_TOKEN = "0x0000000000000000000000000000000000000000"


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def database() -> Iterator[Database]:
    db = Database()
    db.init("sqlite:///:memory:")
    db.create_schema_if_not_exists()
    try:
        yield db
    finally:
        db.dispose()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def config() -> Settings:
    return Settings(
        FLUSH_DONATION_BATCH_EVERY_SECONDS=5,
        UPDATE_STATS_EVERY_SECONDS=60,
        DONATION_BATCH_CHUNK_SIZE=2,
        ROUND_TOKEN_CACHE_SIZE=2,
    )


@pytest.fixture()
def applier(database: Database) -> ChangesetApplier:
    queue = DonationBatchQueue(lambda chunk: None)
    return ChangesetApplier(database, queue)


def round_row(round_id: str = ROUND_ID, chain_id: int = CHAIN_ID, token: str = NATIVE_TOKEN) -> dict:
    return {
        "id": round_id,
        "chain_id": chain_id,
        "match_amount": 10 ** 20,
        "match_token_address": token,
        "match_amount_in_usd": 200_000.0,
        "round_metadata": {"name": "Climate Round"},
        "created_by_address": "0xcreator",
        "created_at_block": 100,
        "updated_at_block": 100,
    }


def application_row(application_id: str, round_id: str = ROUND_ID, chain_id: int = CHAIN_ID) -> dict:
    return {
        "id": application_id,
        "chain_id": chain_id,
        "round_id": round_id,
        "project_id": f"project-{application_id}",
        "status": "APPROVED",
        "created_by_address": "0xapplicant",
        "created_at_block": 120,
        "status_updated_at_block": 130,
    }


def donation_row(donation_id: str, donor: str, application_id: str, amount_in_usd: float,
                 round_id: str = ROUND_ID, chain_id: int = CHAIN_ID) -> dict:
    return {
        "id": donation_id,
        "chain_id": chain_id,
        "round_id": round_id,
        "application_id": application_id,
        "donor_address": donor,
        "recipient_address": "0xrecipient",
        "project_id": f"project-{application_id}",
        "transaction_hash": f"0xtx{donation_id}",
        "block_number": 150,
        "token_address": NATIVE_TOKEN,
        "amount": 10 ** 18,
        "amount_in_usd": amount_in_usd,
        "amount_in_round_match_token": 10 ** 18,
    }


@pytest.fixture()
def seeded_round(applier: ChangesetApplier) -> None:
    applier.apply_change(InsertRound(round=round_row()))
    applier.apply_change(InsertApplication(application=application_row("app-1")))
    applier.apply_change(InsertApplication(application=application_row("app-2")))
