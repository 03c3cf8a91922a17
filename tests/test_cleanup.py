"""
Tests for CleanupCoordinator.
"""

import pytest

from lb_upgrade.exceptions import ProviderOperationError
from lb_upgrade.migration.cleanup import CleanupCoordinator
from lb_upgrade.migration.frontend_migrator import FrontendMigrator
from lb_upgrade.migration.steps import StepRecorder
from lb_upgrade.services.migration_journal import JournalStatus, MigrationJournal
from lb_upgrade.services.snapshot_reader import SnapshotReader


@pytest.fixture
def migrated(fake_client, migration_context, tmp_path):
    snapshot = SnapshotReader(fake_client).read("rg1", "lb1")
    fake_client.add_destination("rg1", "lb2")
    recorder = StepRecorder(MigrationJournal(tmp_path / "j.jsonl"), migration_context)
    FrontendMigrator(fake_client).migrate(snapshot, migration_context, recorder)
    fake_client.calls.clear()
    return snapshot, recorder


class TestCleanupCoordinator:
    """Test cases for removing default resources from the new load balancer."""

    def test_removes_default_resources(self, fake_client, migration_context, migrated):
        snapshot, recorder = migrated

        removed = CleanupCoordinator(fake_client).run(snapshot, migration_context, recorder)

        assert removed == ["LoadBalancerFrontEnd", "PublicIPlb2", "lb2bepool"]
        assert ("rg1", "PublicIPlb2") not in fake_client.public_ips
        assert fake_client.names("rg1", "lb2", "frontend_ip_configurations") == ["fe1"]
        assert fake_client.names("rg1", "lb2", "backend_address_pools") == []
        assert recorder.warnings == []

    def test_frontend_removed_before_placeholder_ip(self, fake_client, migration_context, migrated):
        snapshot, recorder = migrated

        CleanupCoordinator(fake_client).run(snapshot, migration_context, recorder)

        assert fake_client.operations() == [
            "delete_frontend",
            "delete_public_ip",
            "delete_backend_pool",
        ]

    def test_failures_become_warnings(self, fake_client, migration_context, migrated):
        snapshot, recorder = migrated
        fake_client.fail("delete_backend_pool", ProviderOperationError("busy", status_code=409))

        removed = CleanupCoordinator(fake_client).run(snapshot, migration_context, recorder)

        assert removed == ["LoadBalancerFrontEnd", "PublicIPlb2"]
        assert len(recorder.warnings) == 1
        assert "lb2bepool" in recorder.warnings[0]
        assert recorder.journal.entries(status=JournalStatus.WARNING)[0].step == "delete_default_pool"

    def test_placeholder_ip_still_in_use_is_a_warning(
        self, fake_client, migration_context, migrated
    ):
        snapshot, recorder = migrated
        fake_client.fail("delete_frontend", ProviderOperationError("locked", status_code=409))

        removed = CleanupCoordinator(fake_client).run(snapshot, migration_context, recorder)

        assert removed == ["lb2bepool"]
        assert len(recorder.warnings) == 2
        assert ("rg1", "PublicIPlb2") in fake_client.public_ips

    def test_colliding_pool_name_is_kept(
        self, fake_client, lb_payload, migration_context, tmp_path
    ):
        """A source pool called <dst>bepool is a migrated pool, not the default one."""
        context = migration_context
        lb_payload["backend_address_pools"][0]["name"] = "lb2bepool"
        fake_client.add_load_balancer("rg1", lb_payload)
        snapshot = SnapshotReader(fake_client).read("rg1", "lb1")
        fake_client.add_destination("rg1", "lb2")
        recorder = StepRecorder(MigrationJournal(tmp_path / "j.jsonl"), context)
        FrontendMigrator(fake_client).migrate(snapshot, context, recorder)

        removed = CleanupCoordinator(fake_client).run(snapshot, context, recorder)

        assert "lb2bepool" not in removed
        assert "delete_backend_pool" not in fake_client.operations()

