"""
Configuration Snapshot Reader

Reads the source load balancer and the public IP behind each of its frontends
into the immutable data model. Pure read; nothing is modified.
"""

import logging
from typing import Any

from ..exceptions import MalformedResponseError
from ..models.load_balancer import Frontend, LoadBalancer, PublicIp

logger = logging.getLogger(__name__)


class SnapshotReader:
    """Builds a LoadBalancer snapshot from the provider client."""

    def __init__(self, client: Any) -> None:
        self.client = client

    def read(self, resource_group: str, lb_name: str) -> LoadBalancer:
        """
        Read the full configuration graph of a load balancer.

        Args:
            resource_group: Resource group of the load balancer
            lb_name: Load balancer name

        Returns:
            LoadBalancer snapshot with each frontend's PublicIp attached

        Raises:
            NotFoundError: If the load balancer or a frontend IP does not exist
            AccessDeniedError: If the credential may not read it
            MalformedResponseError: If a payload cannot be parsed
        """
        logger.info(f"🔍 Reading load balancer {resource_group}/{lb_name}")
        snapshot = LoadBalancer.from_dict(
            self.client.read_load_balancer(resource_group, lb_name), resource_group
        )

        frontends = [self._attach_public_ip(fe) for fe in snapshot.frontends]
        snapshot = snapshot.with_frontends(frontends)

        logger.info(
            f"Snapshot of {lb_name} ({snapshot.sku}, {snapshot.location}): "
            + ", ".join(f"{k}={v}" for k, v in snapshot.summary().items())
        )
        return snapshot

    def _attach_public_ip(self, frontend: Frontend) -> Frontend:
        # Frontends without a public IP are rejected by the validator
        if not frontend.public_ip_id:
            return frontend

        ip_group = frontend.public_ip_resource_group
        ip_name = frontend.public_ip_name
        payload = self.client.read_public_ip(ip_group, ip_name)
        public_ip = PublicIp.from_dict(payload, ip_group)
        if public_ip.name.lower() != ip_name.lower():
            raise MalformedResponseError(
                f"Public IP lookup for {ip_name} returned {public_ip.name}",
                operation="read_public_ip",
            )
        logger.debug(
            f"Frontend {frontend.name} -> {ip_name} "
            f"({public_ip.allocation_method}, {public_ip.sku}, {public_ip.ip_address})"
        )
        return frontend.with_public_ip(public_ip)
