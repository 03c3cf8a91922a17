from .cleanup import CleanupCoordinator
from .frontend_migrator import FrontendMigrator
from .nic_reassignment import NicReassignmentEngine
from .orchestrator import MigrationOrchestrator
from .rule_builder import RuleBuilder
from .steps import StepRecorder

__all__ = [
    "CleanupCoordinator",
    "FrontendMigrator",
    "MigrationOrchestrator",
    "NicReassignmentEngine",
    "RuleBuilder",
    "StepRecorder",
]
