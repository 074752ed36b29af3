from __future__ import annotations

import pytest

from grants_matching.models.changeset import (
    IncrementApplicationDonationStats, IncrementRoundDonationStats, InsertManyDonations, UpdateRound,
)
from grants_matching.services.changeset import ChangesetApplier
from grants_matching.services.stats import StatsRecalculator
from grants_matching.services.storage import StorageService

from conftest import CHAIN_ID, ROUND_ID, donation_row

DONATIONS = [
    ("d1", "0xa", "app-1", 10.0),
    ("d2", "0xa", "app-1", 5.0),
    ("d3", "0xb", "app-1", 1.5),
    ("d4", "0xb", "app-2", 3.5),
]


def record_donations(applier: ChangesetApplier) -> None:
    applier.apply_change(InsertManyDonations(donations=[donation_row(*d) for d in DONATIONS]))
    for _, _, application_id, amount in DONATIONS:
        applier.apply_change(IncrementRoundDonationStats(chain_id=CHAIN_ID, round_id=ROUND_ID, amount_in_usd=amount))
        applier.apply_change(IncrementApplicationDonationStats(
            chain_id=CHAIN_ID, round_id=ROUND_ID, application_id=application_id, amount_in_usd=amount,
        ))


def test_recompute_matches_increments(database, applier, seeded_round):
    storage = StorageService(database)
    record_donations(applier)
    before = storage.get_round_by_id(CHAIN_ID, ROUND_ID)

    assert StatsRecalculator(database).recalculate() == (1, 2)

    after = storage.get_round_by_id(CHAIN_ID, ROUND_ID)
    assert after.total_amount_donated_in_usd == pytest.approx(before.total_amount_donated_in_usd)
    assert after.total_donations_count == before.total_donations_count == 4
    assert after.unique_donors_count == 2

    app_1 = storage.get_application_by_id(CHAIN_ID, ROUND_ID, "app-1")
    app_2 = storage.get_application_by_id(CHAIN_ID, ROUND_ID, "app-2")
    assert app_1.total_amount_donated_in_usd == pytest.approx(16.5)
    assert app_1.total_donations_count == 3
    assert app_1.unique_donors_count == 2
    assert app_2.total_amount_donated_in_usd == pytest.approx(3.5)
    assert app_2.unique_donors_count == 1


def test_recompute_heals_drift(database, applier, seeded_round):
    storage = StorageService(database)
    record_donations(applier)
    applier.apply_change(UpdateRound(chain_id=CHAIN_ID, round_id=ROUND_ID, round={
        "total_amount_donated_in_usd": 999.0, "total_donations_count": 1,
    }))

    StatsRecalculator(database).recalculate()

    round_ = storage.get_round_by_id(CHAIN_ID, ROUND_ID)
    assert round_.total_amount_donated_in_usd == pytest.approx(20.0)
    assert round_.total_donations_count == 4


def test_rounds_without_donations_are_untouched(database, seeded_round):
    assert StatsRecalculator(database).recalculate() == (0, 0)

    round_ = StorageService(database).get_round_by_id(CHAIN_ID, ROUND_ID)
    assert round_.total_donations_count == 0
