"""
Frontend / public IP migration.

Moves each static public address from the source load balancer to the
destination without ever deallocating it:

1. upgrade the IP's SKU to Standard in place (address is kept)
2. create a Basic static placeholder IP ``<ip>-basic``
3. point the source frontend at the placeholder, which detaches the original IP
4. point the destination frontend (same name) at the original IP

The source keeps serving on the placeholder address until it is
decommissioned. The sequence is not transactional and is never retried.
"""

import logging
from typing import Any, List

from ..models.load_balancer import AllocationMethod, Frontend, LoadBalancer, Sku
from ..models.migration import MigratedFrontend, MigrationContext, MigrationStep
from .steps import StepRecorder

logger = logging.getLogger(__name__)


class FrontendMigrator:
    def __init__(self, client: Any) -> None:
        self.client = client

    def migrate(
        self,
        snapshot: LoadBalancer,
        context: MigrationContext,
        recorder: StepRecorder,
    ) -> List[MigratedFrontend]:
        logger.info("Moving frontend IP addresses between load balancers...")
        return [
            self._migrate_frontend(frontend, snapshot, context, recorder)
            for frontend in snapshot.frontends
        ]

    def _migrate_frontend(
        self,
        frontend: Frontend,
        snapshot: LoadBalancer,
        context: MigrationContext,
        recorder: StepRecorder,
    ) -> MigratedFrontend:
        public_ip = frontend.public_ip
        placeholder = context.basic_placeholder_name(public_ip.name)

        recorder.run(
            MigrationStep.UPGRADE_PUBLIC_IP,
            public_ip.name,
            lambda: self.client.update_public_ip_sku(
                public_ip.resource_group, public_ip.name, Sku.STANDARD
            ),
            resource_group=public_ip.resource_group,
            ip_address=public_ip.ip_address,
        )

        recorder.run(
            MigrationStep.CREATE_BASIC_PLACEHOLDER_IP,
            placeholder,
            lambda: self.client.create_public_ip(
                context.source_resource_group,
                placeholder,
                Sku.BASIC,
                AllocationMethod.STATIC,
                snapshot.location,
            ),
            resource_group=context.source_resource_group,
        )

        recorder.run(
            MigrationStep.REASSIGN_SOURCE_FRONTEND,
            f"{context.source_lb_name}/{frontend.name}",
            lambda: self.client.update_frontend_ip(
                context.source_resource_group,
                context.source_lb_name,
                frontend.name,
                placeholder,
                context.source_resource_group,
            ),
            public_ip=placeholder,
        )

        recorder.run(
            MigrationStep.ASSIGN_DESTINATION_FRONTEND,
            f"{context.destination_lb_name}/{frontend.name}",
            lambda: self.client.update_frontend_ip(
                context.target_resource_group,
                context.destination_lb_name,
                frontend.name,
                public_ip.name,
                public_ip.resource_group,
            ),
            public_ip=public_ip.name,
        )

        logger.info(
            f"✅ Frontend {frontend.name}: {public_ip.name} ({public_ip.ip_address}) "
            f"moved to {context.destination_lb_name}, {context.source_lb_name} now uses {placeholder}"
        )
        return MigratedFrontend(
            frontend_name=frontend.name,
            public_ip_name=public_ip.name,
            placeholder_ip_name=placeholder,
            ip_address=public_ip.ip_address,
        )
