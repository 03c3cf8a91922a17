"""
Step execution and journaling shared by all migration phases.

Every provider call made during a migration goes through a StepRecorder, which
writes started/completed/failed entries to the journal and turns failures that
happen after the first successful mutation into PartialMigrationError.
"""

from typing import Any, Callable, List, Optional

from ..exceptions import LoadBalancerUpgradeError, PartialMigrationError
from ..logging_config import get_step_logger
from ..models.migration import MigrationContext, MigrationStep
from ..services.migration_journal import JournalStatus, MigrationJournal


class StepRecorder:
    """Runs migration steps in order and keeps track of what completed."""

    def __init__(self, journal: MigrationJournal, context: MigrationContext) -> None:
        self.journal = journal
        self.context = context
        self.completed: List[str] = []
        self.warnings: List[str] = []
        self.mutated = False
        self._log = get_step_logger(__name__, migration=context.journal_name)

    @property
    def journal_path(self) -> str:
        return str(self.journal.path)

    def run(
        self,
        step: MigrationStep,
        resource: str,
        fn: Callable[[], Any],
        mutating: bool = True,
        **details: Any,
    ) -> Any:
        """
        Run one step.

        Args:
            step: Step being executed
            resource: Name of the resource the step acts on
            fn: Callable doing the work
            mutating: Whether the step changes provider state
            **details: Extra fields for the journal entry

        Returns:
            Whatever ``fn`` returns

        Raises:
            PartialMigrationError: If the step fails after an earlier mutation succeeded
            LoadBalancerUpgradeError: If the step fails before anything was mutated
        """
        entry = {"resource": resource, **details}
        self.journal.record(step.value, JournalStatus.STARTED, entry)
        self._log.debug("step_started", step=step.value, **entry)

        try:
            result = fn()
        except LoadBalancerUpgradeError as e:
            self.journal.record(
                step.value, JournalStatus.FAILED, {**entry, "error": e.to_dict()}
            )
            self._log.error("step_failed", step=step.value, error=e.message, **entry)
            if self.mutated:
                raise PartialMigrationError(
                    f"Migration failed at {step.value} ({resource}) after "
                    f"{len(self.completed)} completed steps; nothing was rolled back",
                    step=step.value,
                    completed_steps=self.completed,
                    journal_path=self.journal_path,
                    cause=e,
                ) from e
            raise

        self.journal.record(step.value, JournalStatus.COMPLETED, entry)
        self._log.info("step_completed", step=step.value, **entry)
        self.completed.append(f"{step.value}:{resource}")
        if mutating:
            self.mutated = True
        return result

    def attempt(
        self,
        step: MigrationStep,
        resource: str,
        fn: Callable[[], Any],
        **details: Any,
    ) -> Optional[str]:
        """
        Run a best-effort step. Failures become warnings instead of errors.

        Returns:
            The warning message if the step failed, otherwise None
        """
        entry = {"resource": resource, **details}
        self.journal.record(step.value, JournalStatus.STARTED, entry)
        try:
            fn()
        except LoadBalancerUpgradeError as e:
            message = f"{step.value} {resource} failed: {e.message}"
            self.journal.record(
                step.value, JournalStatus.WARNING, {**entry, "error": e.to_dict()}
            )
            self._log.warning("step_warning", step=step.value, error=e.message, **entry)
            self.warnings.append(message)
            return message

        self.journal.record(step.value, JournalStatus.COMPLETED, entry)
        self._log.info("step_completed", step=step.value, **entry)
        self.completed.append(f"{step.value}:{resource}")
        return None
