"""
Tests for SnapshotReader.
"""

import pytest

from lb_upgrade.exceptions import MalformedResponseError, NotFoundError
from lb_upgrade.services.snapshot_reader import SnapshotReader


class TestSnapshotReader:
    """Test cases for reading the source load balancer."""

    def test_reads_snapshot_with_public_ips(self, fake_client):
        snapshot = SnapshotReader(fake_client).read("rg1", "lb1")

        frontend = snapshot.frontends[0]
        assert frontend.public_ip is not None
        assert frontend.public_ip.name == "pip1"
        assert frontend.public_ip.ip_address == "20.1.2.3"
        assert frontend.public_ip.is_static
        assert frontend.public_ip.resource_group == "rg1"

    def test_read_is_side_effect_free(self, fake_client):
        SnapshotReader(fake_client).read("rg1", "lb1")
        assert fake_client.mutations() == []

    def test_public_ip_read_from_its_own_resource_group(self, fake_client, lb_payload, ids):
        lb_payload["frontend_ip_configurations"][0]["public_ip_address"]["id"] = ids.public_ip(
            "rg-ips", "shared-ip"
        )
        fake_client.add_load_balancer("rg1", lb_payload)
        fake_client.add_public_ip("rg-ips", "shared-ip", ip_address="20.9.9.9")

        snapshot = SnapshotReader(fake_client).read("rg1", "lb1")

        assert ("read_public_ip", "rg-ips", "shared-ip") in fake_client.calls
        assert snapshot.frontends[0].public_ip.resource_group == "rg-ips"

    def test_frontend_without_public_ip_is_kept(self, fake_client, lb_payload):
        del lb_payload["frontend_ip_configurations"][0]["public_ip_address"]
        fake_client.add_load_balancer("rg1", lb_payload)

        snapshot = SnapshotReader(fake_client).read("rg1", "lb1")

        assert snapshot.frontends[0].public_ip is None
        assert "read_public_ip" not in fake_client.operations()

    def test_missing_load_balancer(self, empty_client):
        with pytest.raises(NotFoundError):
            SnapshotReader(empty_client).read("rg1", "nope")

    def test_missing_public_ip(self, fake_client):
        del fake_client.public_ips[("rg1", "pip1")]
        with pytest.raises(NotFoundError):
            SnapshotReader(fake_client).read("rg1", "lb1")

    def test_public_ip_name_mismatch_is_malformed(self, fake_client):
        fake_client.public_ips[("rg1", "pip1")]["name"] = "other"
        with pytest.raises(MalformedResponseError, match="returned other"):
            SnapshotReader(fake_client).read("rg1", "lb1")
