"""
Migration orchestration.

Single entry point for upgrading a Basic public load balancer to a new
Standard one. Phases run strictly forward, one provider call at a time:

    read snapshot -> validate -> create destination -> frontends/IPs
    -> NAT rules -> probes -> backend pools + NIC moves -> LB rules -> cleanup

Reading and validation have no side effects. Any failure after the first
mutation surfaces as PartialMigrationError; nothing is rolled back and the
journal lists every step that completed.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional

from ..models.load_balancer import AllocationMethod, LoadBalancer, Sku
from ..models.migration import MigrationContext, MigrationResult, MigrationStep
from ..services.migration_journal import JournalStatus, MigrationJournal
from ..services.snapshot_reader import SnapshotReader
from ..validation.prerequisites import PrerequisiteValidator
from .cleanup import CleanupCoordinator
from .frontend_migrator import FrontendMigrator
from .nic_reassignment import NicReassignmentEngine
from .rule_builder import RuleBuilder
from .steps import StepRecorder

logger = logging.getLogger(__name__)


class MigrationOrchestrator:
    """
    Sequences the migration phases.

    Phase components can be injected for testing; by default they are built
    from the provider client.
    """

    def __init__(
        self,
        client: Any,
        journal_dir: Path,
        reader: Optional[SnapshotReader] = None,
        validator: Optional[PrerequisiteValidator] = None,
        frontend_migrator: Optional[FrontendMigrator] = None,
        rule_builder: Optional[RuleBuilder] = None,
        nic_engine: Optional[NicReassignmentEngine] = None,
        cleanup: Optional[CleanupCoordinator] = None,
    ) -> None:
        self.client = client
        self.journal_dir = Path(journal_dir)
        self.reader = reader or SnapshotReader(client)
        self.validator = validator or PrerequisiteValidator(client)
        self.frontend_migrator = frontend_migrator or FrontendMigrator(client)
        self.rule_builder = rule_builder or RuleBuilder(client)
        self.nic_engine = nic_engine or NicReassignmentEngine(client)
        self.cleanup = cleanup or CleanupCoordinator(client)

    def journal_for(self, context: MigrationContext) -> MigrationJournal:
        return MigrationJournal(self.journal_dir / f"{context.journal_name}.jsonl")

    def _read_and_validate(
        self, context: MigrationContext, recorder: Optional[StepRecorder] = None
    ) -> LoadBalancer:
        if recorder is None:
            snapshot = self.reader.read(
                context.source_resource_group, context.source_lb_name
            )
            self.validator.validate(snapshot, context)
            return snapshot

        snapshot = recorder.run(
            MigrationStep.READ_SNAPSHOT,
            context.source_lb_name,
            lambda: self.reader.read(
                context.source_resource_group, context.source_lb_name
            ),
            mutating=False,
        )
        recorder.run(
            MigrationStep.VALIDATE,
            context.source_lb_name,
            lambda: self.validator.validate(snapshot, context),
            mutating=False,
        )
        return snapshot

    def _create_destination(
        self, snapshot: LoadBalancer, context: MigrationContext, recorder: StepRecorder
    ) -> None:
        """Create the default public IP, then the load balancer whose default frontend uses it."""
        logger.info("Creating new standard load balancer...")
        rg = context.target_resource_group
        default_ip = recorder.run(
            MigrationStep.CREATE_DEFAULT_PUBLIC_IP,
            context.placeholder_public_ip_name,
            lambda: self.client.create_public_ip(
                rg,
                context.placeholder_public_ip_name,
                Sku.STANDARD,
                AllocationMethod.STATIC,
                snapshot.location,
            ),
            location=snapshot.location,
        )
        recorder.run(
            MigrationStep.CREATE_LOAD_BALANCER,
            context.destination_lb_name,
            lambda: self.client.create_load_balancer(
                rg,
                context.destination_lb_name,
                Sku.STANDARD,
                snapshot.location,
                default_ip["id"],
            ),
            location=snapshot.location,
        )

    def plan(self, context: MigrationContext) -> List[str]:
        """
        Describe what a migration would do, without changing anything.

        Raises:
            The same read and precondition errors as run()
        """
        snapshot = self._read_and_validate(context)
        src = context.source_lb_name
        dst = context.destination_lb_name
        rg = context.target_resource_group

        actions = [
            f"Create {Sku.STANDARD} public IP {context.placeholder_public_ip_name}",
            f"Create {Sku.STANDARD} load balancer {rg}/{dst} in {snapshot.location}",
        ]
        for fe in snapshot.frontends:
            ip = fe.public_ip
            placeholder = context.basic_placeholder_name(ip.name)
            actions.extend(
                [
                    f"Upgrade public IP {ip.name} ({ip.ip_address}) to {Sku.STANDARD}",
                    f"Create {Sku.BASIC} placeholder IP {placeholder}",
                    f"Point {src}/{fe.name} at {placeholder}",
                    f"Point {dst}/{fe.name} at {ip.name}",
                ]
            )
        actions.extend(f"Create NAT rule {r.name}" for r in snapshot.nat_rules)
        actions.extend(
            f"Create probe {p.name} ({p.protocol}:{p.port}"
            + (f"{p.request_path})" if p.request_path else ")")
            for p in snapshot.probes
        )
        for pool in snapshot.backend_pools:
            actions.append(f"Create backend pool {pool.name}")
            actions.extend(
                f"Move {m.describe()} from {src}/{pool.name} to {dst}/{pool.name}"
                for m in pool.backend_ip_configurations
            )
        actions.extend(f"Create load-balancing rule {r.name}" for r in snapshot.rules)
        if context.cleanup:
            actions.append(
                f"Remove {context.placeholder_public_ip_name} and "
                f"{context.default_backend_pool_name} from {dst}"
            )
        return actions

    def run(self, context: MigrationContext) -> MigrationResult:
        """
        Run the migration end to end.

        Returns:
            MigrationResult describing everything created and moved

        Raises:
            NotFoundError, AccessDeniedError, MalformedResponseError: Reading the source failed
            PreconditionFailedError: Validation failed; nothing was changed
            PartialMigrationError: A step failed after earlier steps changed resources
        """
        cleanup_enabled = context.cleanup
        journal = self.journal_for(context)
        recorder = StepRecorder(journal, context)
        result = MigrationResult(context=context, journal_path=str(journal.path))

        journal.record(
            MigrationStep.MIGRATION.value, JournalStatus.STARTED, context.to_dict()
        )
        logger.info(
            f"🚀 Migrating {context.source_resource_group}/{context.source_lb_name} "
            f"to {context.target_resource_group}/{context.destination_lb_name}"
        )

        try:
            snapshot = self._read_and_validate(context, recorder)

            self._create_destination(snapshot, context, recorder)

            result.frontends = self.frontend_migrator.migrate(snapshot, context, recorder)
            result.nat_rules = self.rule_builder.create_nat_rules(snapshot, context, recorder)
            result.probes = self.rule_builder.create_probes(snapshot, context, recorder)
            result.backend_pools, result.moved_ip_configurations = (
                self.nic_engine.migrate_pools(snapshot, context, recorder)
            )
            result.rules = self.rule_builder.create_lb_rules(
                snapshot, context, recorder, result.backend_pools
            )
        except Exception as e:
            journal.record(
                MigrationStep.MIGRATION.value,
                JournalStatus.FAILED,
                {"error": str(e), "completed_steps": len(recorder.completed)},
            )
            raise

        if cleanup_enabled:
            result.cleaned_up = self.cleanup.run(snapshot, context, recorder)
        else:
            logger.info("Cleanup disabled; leaving default resources on the new load balancer")
        result.warnings = list(recorder.warnings)

        journal.record(
            MigrationStep.MIGRATION.value,
            JournalStatus.COMPLETED,
            {
                "frontends": len(result.frontends),
                "nat_rules": len(result.nat_rules),
                "probes": len(result.probes),
                "backend_pools": len(result.backend_pools),
                "moved_ip_configurations": len(result.moved_ip_configurations),
                "rules": len(result.rules),
                "warnings": result.warnings,
            },
        )
        logger.info("🎉 Completed!")
        return result
