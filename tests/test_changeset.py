from __future__ import annotations

from datetime import datetime

import pytest

from grants_matching.db import Database
from grants_matching.errors import UnknownChangeKindError
from grants_matching.models.changeset import (
    DeleteAllProjectRolesByRole, DeletePendingProjectRoles, IncrementApplicationDonationStats,
    IncrementRoundDonationStats, InsertApplication, InsertDonation, InsertManyDonations,
    InsertManyPrices, InsertPendingProjectRole, InsertProject, InsertProjectRole, InsertRound,
    UpdateApplication, UpdateProject, UpdateRound,
)
from grants_matching.models.db import Application, Donation, PendingProjectRole, ProjectRole, Round
from grants_matching.services.changeset import ChangesetApplier
from grants_matching.services.donation_queue import DonationBatchQueue
from grants_matching.services.storage import StorageService

from conftest import CHAIN_ID, NATIVE_TOKEN, ROUND_ID, application_row, donation_row, round_row


@pytest.fixture()
def storage(database: Database) -> StorageService:
    return StorageService(database)


def project_row(project_id: str = "project-1") -> dict:
    return {
        "id": project_id,
        "chain_id": CHAIN_ID,
        "name": "Solar Commons",
        "registry_address": "0xregistry",
        "project_metadata": {"title": "Solar Commons"},
        "created_by_address": "0xowner",
        "created_at_block": 90,
        "updated_at_block": 90,
        "tags": ["allo-v1"],
    }


class TestProjects:

    def test_insert_and_update(self, applier: ChangesetApplier, storage: StorageService):
        applier.apply_change(InsertProject(project=project_row()))
        applier.apply_change(UpdateProject(
            chain_id=CHAIN_ID, project_id="project-1",
            project={"name": "Solar Commons DAO", "updated_at_block": 95},
        ))

        project = storage.get_project_by_id("project-1")
        assert project.name == "Solar Commons DAO"
        assert project.updated_at_block == 95
        assert project.project_metadata == {"title": "Solar Commons"}
        assert [p.id for p in storage.get_all_chain_projects(CHAIN_ID)] == ["project-1"]

    def test_missing_project_is_none(self, storage: StorageService):
        assert storage.get_project_by_id("nope") is None


class TestRoles:

    def test_pending_roles(self, applier: ChangesetApplier, storage: StorageService):
        for address in ("0xa", "0xb"):
            applier.apply_change(InsertPendingProjectRole(pending_project_role={
                "chain_id": CHAIN_ID, "role": "0xrole", "address": address, "created_at_block": 1,
            }))

        pending = storage.get_pending_project_roles_by_role(CHAIN_ID, "0xrole")
        assert sorted(p.address for p in pending) == ["0xa", "0xb"]

        applier.apply_change(DeletePendingProjectRoles(ids=[pending[0].id]))

        assert len(storage.get_pending_project_roles_by_role(CHAIN_ID, "0xrole")) == 1

    def _roles(self, database: Database) -> list[tuple[str, str]]:
        with database.session() as session:
            return sorted((r.address, r.role) for r in session.query(ProjectRole).all())

    def test_delete_roles_by_role(self, applier: ChangesetApplier, database: Database):
        for address, role in (("0xa", "owner"), ("0xb", "owner"), ("0xa", "member")):
            applier.apply_change(InsertProjectRole(project_role={
                "chain_id": CHAIN_ID, "project_id": "project-1", "address": address, "role": role,
            }))

        applier.apply_change(DeleteAllProjectRolesByRole(chain_id=CHAIN_ID, project_id="project-1", role="owner"))

        assert self._roles(database) == [("0xa", "member")]

    def test_delete_roles_by_role_and_address(self, applier: ChangesetApplier, database: Database):
        for address in ("0xa", "0xb"):
            applier.apply_change(InsertProjectRole(project_role={
                "chain_id": CHAIN_ID, "project_id": "project-1", "address": address, "role": "member",
            }))

        applier.apply_change(DeleteAllProjectRolesByRole(
            chain_id=CHAIN_ID, project_id="project-1", role="member", address="0xa",
        ))

        assert self._roles(database) == [("0xb", "member")]


class TestRoundsAndApplications:

    def test_insert_and_update_round(self, applier: ChangesetApplier, storage: StorageService):
        applier.apply_change(InsertRound(round=round_row()))
        applier.apply_change(UpdateRound(chain_id=CHAIN_ID, round_id=ROUND_ID, round={"match_amount_in_usd": 1.5}))

        round_ = storage.get_round_by_id(CHAIN_ID, ROUND_ID)
        assert round_.match_amount == 10 ** 20
        assert round_.match_amount_in_usd == 1.5
        assert round_.total_donations_count == 0
        assert storage.get_round_by_id(CHAIN_ID, "0xmissing") is None
        assert len(storage.get_all_chain_rounds(CHAIN_ID)) == 1

    def test_status_snapshots_keep_big_integers(self, applier: ChangesetApplier, storage: StorageService):
        block = 2 ** 70
        snapshots = [{"status": "PENDING", "updatedAtBlock": block, "updatedAt": datetime(2024, 1, 2, 3, 4, 5)}]
        applier.apply_change(InsertApplication(application={**application_row("app-1"), "status_snapshots": snapshots}))

        application = storage.get_application_by_id(CHAIN_ID, ROUND_ID, "app-1")
        assert application.snapshots == [{"status": "PENDING", "updatedAtBlock": block, "updatedAt": "2024-01-02T03:04:05"}]

    def test_application_without_snapshots(self, applier: ChangesetApplier, storage: StorageService):
        applier.apply_change(InsertApplication(application=application_row("app-1")))

        assert storage.get_application_by_id(CHAIN_ID, ROUND_ID, "app-1").snapshots == []

    def test_update_application(self, applier: ChangesetApplier, storage: StorageService):
        applier.apply_change(InsertApplication(application=application_row("app-1")))
        applier.apply_change(UpdateApplication(
            chain_id=CHAIN_ID, round_id=ROUND_ID, application_id="app-1",
            application={"status": "REJECTED", "status_snapshots": [{"status": "REJECTED", "updatedAtBlock": 7}]},
        ))

        application = storage.get_application_by_id(CHAIN_ID, ROUND_ID, "app-1")
        assert application.status == "REJECTED"
        assert application.snapshots == [{"status": "REJECTED", "updatedAtBlock": 7}]
        assert [a.id for a in storage.get_all_round_applications(CHAIN_ID, ROUND_ID)] == ["app-1"]

    def test_increment_stats(self, applier: ChangesetApplier, storage: StorageService, seeded_round):
        for amount in (10.0, 2.5):
            applier.apply_change(IncrementRoundDonationStats(chain_id=CHAIN_ID, round_id=ROUND_ID, amount_in_usd=amount))
            applier.apply_change(IncrementApplicationDonationStats(
                chain_id=CHAIN_ID, round_id=ROUND_ID, application_id="app-1", amount_in_usd=amount,
            ))

        round_ = storage.get_round_by_id(CHAIN_ID, ROUND_ID)
        application = storage.get_application_by_id(CHAIN_ID, ROUND_ID, "app-1")
        assert round_.total_amount_donated_in_usd == pytest.approx(12.5)
        assert round_.total_donations_count == 2
        assert application.total_amount_donated_in_usd == pytest.approx(12.5)
        assert application.total_donations_count == 2


class TestDonationsAndPrices:

    def test_insert_donation_is_queued(self, database: Database, storage: StorageService):
        written = []
        queue = DonationBatchQueue(written.append)
        applier = ChangesetApplier(database, queue)

        applier.apply_change(InsertDonation(donation=donation_row("d1", "0xa", "app-1", 1.0)))

        assert len(queue) == 1
        assert storage.get_all_round_donations(CHAIN_ID, ROUND_ID) == []

    def test_insert_many_donations(self, applier: ChangesetApplier, storage: StorageService):
        applier.apply_change(InsertManyDonations(donations=[
            donation_row("d1", "0xa", "app-1", 1.0),
            donation_row("d2", "0xb", "app-1", 2.0),
        ]))
        applier.apply_change(InsertManyDonations(donations=[]))

        donations = storage.get_all_round_donations(CHAIN_ID, ROUND_ID)
        assert sorted(d.id for d in donations) == ["d1", "d2"]
        assert donations[0].amount == 10 ** 18

    def test_insert_many_prices(self, applier: ChangesetApplier, storage: StorageService):
        applier.apply_change(InsertManyPrices(prices=[
            {"chain_id": CHAIN_ID, "token_address": NATIVE_TOKEN, "price_in_usd": 1800.0,
             "timestamp": datetime(2024, 1, 1), "block_number": 100},
            {"chain_id": CHAIN_ID, "token_address": NATIVE_TOKEN, "price_in_usd": 1900.0,
             "timestamp": datetime(2024, 1, 2), "block_number": 200},
        ]))

        prices = storage.get_all_chain_prices(CHAIN_ID)
        assert [p.block_number for p in prices] == [100, 200]
        assert storage.get_latest_price_timestamp_for_chain(CHAIN_ID) == datetime(2024, 1, 2)
        assert storage.get_latest_price_timestamp_for_chain(10) is None
        assert storage.get_token_price_by_block_number(CHAIN_ID, NATIVE_TOKEN, 150).price_in_usd == 1800.0
        assert storage.get_token_price_by_block_number(CHAIN_ID, NATIVE_TOKEN).price_in_usd == 1900.0
        assert storage.get_token_price_by_block_number(CHAIN_ID, NATIVE_TOKEN, 99) is None


class TestFailures:

    def test_unknown_change_kind(self, applier: ChangesetApplier):
        with pytest.raises(UnknownChangeKindError, match="dict"):
            applier.apply_change({"type": "InsertRound"})

    def test_failed_change_is_rolled_back(self, applier: ChangesetApplier, database: Database):
        applier.apply_change(InsertManyDonations(donations=[donation_row("d1", "0xa", "app-1", 1.0)]))

        with pytest.raises(Exception):
            applier.apply_change(InsertManyDonations(donations=[
                donation_row("d2", "0xa", "app-1", 1.0),
                donation_row("d1", "0xa", "app-1", 1.0),
            ]))

        with database.session() as session:
            assert [d.id for d in session.query(Donation).all()] == ["d1"]

    def test_round_insert_twice_fails(self, applier: ChangesetApplier, database: Database):
        applier.apply_change(InsertRound(round=round_row()))

        with pytest.raises(Exception):
            applier.apply_change(InsertRound(round=round_row()))

        with database.session() as session:
            assert session.query(Round).count() == 1
            assert session.query(Application).count() == 0
            assert session.query(PendingProjectRole).count() == 0
