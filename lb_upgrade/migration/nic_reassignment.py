"""
NIC reassignment between backend pools.

For each source pool the destination pool is created first and its assigned
ID captured. All member IP configurations are then removed from the source
pool, and only after every removal has completed are they added to the new
pool. Between the two batches a NIC belongs to no pool; health-probe routing
skips it during that window.
"""

import logging
from typing import Any, Dict, List, Tuple

from ..exceptions import MalformedResponseError
from ..models.load_balancer import BackendPool, LoadBalancer
from ..models.migration import MigrationContext, MigrationStep
from ..utils.resource_id import NicIpConfigurationId
from .steps import StepRecorder

logger = logging.getLogger(__name__)


class NicReassignmentEngine:
    def __init__(self, client: Any) -> None:
        self.client = client

    def migrate_pools(
        self,
        snapshot: LoadBalancer,
        context: MigrationContext,
        recorder: StepRecorder,
    ) -> Tuple[Dict[str, str], List[str]]:
        """
        Create every backend pool on the destination and move its members.

        Returns:
            (mapping of pool name to new pool ID, list of moved IP configurations)
        """
        logger.info("Creating backend pools...")
        pool_ids: Dict[str, str] = {}
        moved: List[str] = []
        for pool in snapshot.backend_pools:
            new_pool_id = recorder.run(
                MigrationStep.CREATE_BACKEND_POOL,
                pool.name,
                lambda: self._create_pool(context, pool),
            )
            pool_ids[pool.name] = new_pool_id
            moved.extend(self._move_members(pool, new_pool_id, recorder))
        return pool_ids, moved

    def _create_pool(self, context: MigrationContext, pool: BackendPool) -> str:
        payload = self.client.create_backend_pool(
            context.target_resource_group, context.destination_lb_name, pool.name
        )
        pool_id = (payload or {}).get("id")
        if not pool_id:
            raise MalformedResponseError(
                f"Backend pool {pool.name} was created without an ID",
                operation="create_backend_pool",
            )
        return pool_id

    def _move_members(
        self, pool: BackendPool, new_pool_id: str, recorder: StepRecorder
    ) -> List[str]:
        members: List[NicIpConfigurationId] = list(pool.backend_ip_configurations)
        if not members:
            return []

        for member in members:
            recorder.run(
                MigrationStep.REMOVE_NIC_FROM_POOL,
                member.describe(),
                lambda: self.client.remove_nic_from_pool(
                    member.resource_group, pool.id, member.nic_name, member.ip_config_name
                ),
                pool=pool.name,
                ip_configuration_id=member.id,
            )

        for member in members:
            recorder.run(
                MigrationStep.ADD_NIC_TO_POOL,
                member.describe(),
                lambda: self.client.add_nic_to_pool(
                    member.resource_group, new_pool_id, member.nic_name, member.ip_config_name
                ),
                pool=pool.name,
                pool_id=new_pool_id,
            )

        logger.info(f"✅ Moved {len(members)} IP configuration(s) to pool {pool.name}")
        return [member.describe() for member in members]
