"""
Replays inbound NAT rules, health probes and load-balancing rules on the
destination load balancer.

NAT rules and LB rules reference frontends, probes and pools by name, so they
must be created after those exist; the orchestrator enforces that order.
"""

import logging
from typing import Any, Dict, List, Optional

from ..models.load_balancer import LoadBalancer
from ..models.migration import MigrationContext, MigrationStep
from .steps import StepRecorder

logger = logging.getLogger(__name__)


class RuleBuilder:
    def __init__(self, client: Any) -> None:
        self.client = client

    def create_nat_rules(
        self, snapshot: LoadBalancer, context: MigrationContext, recorder: StepRecorder
    ) -> List[str]:
        """Recreate NAT rules with protocol, ports, flags and idle timeout unchanged."""
        logger.info("Creating NAT rules...")
        created = []
        for rule in snapshot.nat_rules:
            recorder.run(
                MigrationStep.CREATE_NAT_RULE,
                rule.name,
                lambda: self.client.create_nat_rule(
                    context.target_resource_group, context.destination_lb_name, rule
                ),
                frontend=rule.frontend_name,
                frontend_port=rule.frontend_port,
                backend_port=rule.backend_port,
            )
            created.append(rule.name)
        return created

    def create_probes(
        self, snapshot: LoadBalancer, context: MigrationContext, recorder: StepRecorder
    ) -> List[str]:
        """Recreate health probes. Only HTTP probes carry a request path."""
        logger.info("Creating health probes...")
        created = []
        for probe in snapshot.probes:
            recorder.run(
                MigrationStep.CREATE_PROBE,
                probe.name,
                lambda: self.client.create_probe(
                    context.target_resource_group, context.destination_lb_name, probe
                ),
                protocol=probe.protocol,
                port=probe.port,
                request_path=probe.request_path,
            )
            created.append(probe.name)
        return created

    def create_lb_rules(
        self,
        snapshot: LoadBalancer,
        context: MigrationContext,
        recorder: StepRecorder,
        pool_ids: Optional[Dict[str, str]] = None,
    ) -> List[str]:
        """
        Recreate load-balancing rules.

        ``pool_ids`` maps pool names to the IDs captured when the destination
        pools were created; rules reference their pool by that ID.
        """
        logger.info("Creating load balancing rules...")
        pool_ids = pool_ids or {}
        created = []
        for rule in snapshot.rules:
            pool_id = pool_ids.get(rule.backend_pool_name or "")
            recorder.run(
                MigrationStep.CREATE_LB_RULE,
                rule.name,
                lambda: self.client.create_lb_rule(
                    context.target_resource_group,
                    context.destination_lb_name,
                    rule,
                    backend_pool_id=pool_id,
                ),
                backend_pool=rule.backend_pool_name,
                backend_pool_id=pool_id,
                probe=rule.probe_name,
                frontend=rule.frontend_name,
            )
            created.append(rule.name)
        return created
