"""
Cleanup of resources created alongside the destination load balancer.

Creating a Standard load balancer also creates a placeholder public IP
(``PublicIP<name>``) bound to a default frontend and a default backend pool
(``<name>bepool``). Failures here never fail the migration; they are logged
and returned as warnings.
"""

import logging
from typing import Any, List

from ..models.load_balancer import LoadBalancer
from ..models.migration import MigrationContext, MigrationStep
from .steps import StepRecorder

logger = logging.getLogger(__name__)


class CleanupCoordinator:
    def __init__(self, client: Any) -> None:
        self.client = client

    def run(
        self,
        snapshot: LoadBalancer,
        context: MigrationContext,
        recorder: StepRecorder,
    ) -> List[str]:
        """
        Remove the default frontend, placeholder IP and default pool.

        Resources whose names collide with migrated ones are left alone.

        Returns:
            Names of the resources that were removed
        """
        logger.info("Cleaning up resources...")
        removed: List[str] = []
        rg = context.target_resource_group
        lb_name = context.destination_lb_name

        frontend_names = {fe.name.lower() for fe in snapshot.frontends}
        ip_names = {fe.public_ip.name.lower() for fe in snapshot.frontends if fe.public_ip}
        pool_names = {pool.name.lower() for pool in snapshot.backend_pools}

        # The placeholder IP cannot be deleted while a frontend still references it
        if context.default_frontend_name.lower() not in frontend_names:
            warning = recorder.attempt(
                MigrationStep.DELETE_DEFAULT_FRONTEND,
                context.default_frontend_name,
                lambda: self.client.delete_frontend(
                    rg, lb_name, context.default_frontend_name
                ),
            )
            if warning is None:
                removed.append(context.default_frontend_name)

        if context.placeholder_public_ip_name.lower() in ip_names:
            logger.info(
                f"Skipping {context.placeholder_public_ip_name}: it is a migrated frontend IP"
            )
        else:
            warning = recorder.attempt(
                MigrationStep.DELETE_PLACEHOLDER_IP,
                context.placeholder_public_ip_name,
                lambda: self.client.delete_public_ip(rg, context.placeholder_public_ip_name),
            )
            if warning is None:
                removed.append(context.placeholder_public_ip_name)

        if context.default_backend_pool_name.lower() in pool_names:
            logger.info(
                f"Skipping {context.default_backend_pool_name}: it is a migrated backend pool"
            )
        else:
            warning = recorder.attempt(
                MigrationStep.DELETE_DEFAULT_POOL,
                context.default_backend_pool_name,
                lambda: self.client.delete_backend_pool(
                    rg, lb_name, context.default_backend_pool_name
                ),
            )
            if warning is None:
                removed.append(context.default_backend_pool_name)

        for warning in recorder.warnings:
            logger.warning(f"⚠️ Cleanup: {warning}")
        return removed
