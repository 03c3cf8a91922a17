"""
Prerequisite validation.

Runs before any resource is created and stops at the first violation.
"""

import logging
from typing import Any

from ..exceptions import DestinationExistsError, PreconditionFailedError
from ..models.load_balancer import LoadBalancer, Sku
from ..models.migration import MigrationContext

logger = logging.getLogger(__name__)


class PrerequisiteValidator:
    """Rejects snapshots that cannot be migrated without losing an address."""

    def __init__(self, client: Any) -> None:
        self.client = client

    def validate(self, snapshot: LoadBalancer, context: MigrationContext) -> None:
        """
        Validate the snapshot and destination.

        Raises:
            PreconditionFailedError: On the first frontend that has no public IP or
                whose IP is not static, or when the source is not a Basic load balancer
            DestinationExistsError: If the destination load balancer already exists
        """
        logger.info("Checking prerequisites...")

        if snapshot.sku.lower() != Sku.BASIC.lower():
            raise PreconditionFailedError(
                f"Load balancer {snapshot.name} is {snapshot.sku}; only {Sku.BASIC} "
                f"load balancers can be upgraded",
                resource_name=snapshot.name,
            )

        for frontend in snapshot.frontends:
            if not frontend.public_ip_id or frontend.public_ip is None:
                raise PreconditionFailedError(
                    f"Frontend {frontend.name} has no public IP address",
                    resource_name=frontend.name,
                    recovery_suggestion="Only public load balancers can be upgraded",
                )
            if not frontend.public_ip.is_static:
                raise PreconditionFailedError(
                    f"Please update IP address {frontend.public_ip.name} to be static",
                    resource_name=frontend.public_ip.name,
                    recovery_suggestion=(
                        f"az network public-ip update -g {frontend.public_ip.resource_group} "
                        f"-n {frontend.public_ip.name} --allocation-method Static"
                    ),
                )

        if self.client.load_balancer_exists(
            context.target_resource_group, context.destination_lb_name
        ):
            raise DestinationExistsError(
                f"Load balancer {context.destination_lb_name} already exists in "
                f"{context.target_resource_group}",
                resource_name=context.destination_lb_name,
            )

        logger.info("✅ Prerequisites satisfied")
