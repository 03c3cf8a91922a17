"""Migration context, steps and result records."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

DEFAULT_FRONTEND_NAME = "LoadBalancerFrontEnd"
PLACEHOLDER_IP_PREFIX = "PublicIP"
DEFAULT_POOL_SUFFIX = "bepool"
BASIC_PLACEHOLDER_SUFFIX = "-basic"


class MigrationStep(Enum):
    """Steps recorded in the migration journal."""

    READ_SNAPSHOT = "read_snapshot"
    VALIDATE = "validate"
    CREATE_DEFAULT_PUBLIC_IP = "create_default_public_ip"
    CREATE_LOAD_BALANCER = "create_load_balancer"
    UPGRADE_PUBLIC_IP = "upgrade_public_ip"
    CREATE_BASIC_PLACEHOLDER_IP = "create_basic_placeholder_ip"
    REASSIGN_SOURCE_FRONTEND = "reassign_source_frontend"
    ASSIGN_DESTINATION_FRONTEND = "assign_destination_frontend"
    CREATE_PROBE = "create_probe"
    CREATE_BACKEND_POOL = "create_backend_pool"
    REMOVE_NIC_FROM_POOL = "remove_nic_from_pool"
    ADD_NIC_TO_POOL = "add_nic_to_pool"
    CREATE_NAT_RULE = "create_nat_rule"
    CREATE_LB_RULE = "create_lb_rule"
    DELETE_DEFAULT_FRONTEND = "delete_default_frontend"
    DELETE_PLACEHOLDER_IP = "delete_placeholder_ip"
    DELETE_DEFAULT_POOL = "delete_default_pool"
    MIGRATION = "migration"


@dataclass(frozen=True)
class MigrationContext:
    """
    Everything a migration run needs to know about its inputs.

    Threaded through every phase explicitly; phases never read ambient state.
    """

    subscription_id: str
    source_resource_group: str
    source_lb_name: str
    destination_lb_name: str
    destination_resource_group: Optional[str] = None
    cleanup: bool = True

    @property
    def target_resource_group(self) -> str:
        return self.destination_resource_group or self.source_resource_group

    @property
    def placeholder_public_ip_name(self) -> str:
        return f"{PLACEHOLDER_IP_PREFIX}{self.destination_lb_name}"

    @property
    def default_backend_pool_name(self) -> str:
        return f"{self.destination_lb_name}{DEFAULT_POOL_SUFFIX}"

    @property
    def default_frontend_name(self) -> str:
        return DEFAULT_FRONTEND_NAME

    @property
    def journal_name(self) -> str:
        return (
            f"{self.source_resource_group}-{self.source_lb_name}"
            f"-to-{self.destination_lb_name}"
        )

    @staticmethod
    def basic_placeholder_name(public_ip_name: str) -> str:
        return f"{public_ip_name}{BASIC_PLACEHOLDER_SUFFIX}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subscription_id": self.subscription_id,
            "source_resource_group": self.source_resource_group,
            "source_lb_name": self.source_lb_name,
            "destination_resource_group": self.target_resource_group,
            "destination_lb_name": self.destination_lb_name,
            "cleanup": self.cleanup,
        }


@dataclass
class MigratedFrontend:
    frontend_name: str
    public_ip_name: str
    placeholder_ip_name: str
    ip_address: Optional[str] = None


@dataclass
class MigrationResult:
    """What a completed migration created, moved and left behind."""

    context: MigrationContext
    frontends: List[MigratedFrontend] = field(default_factory=list)
    nat_rules: List[str] = field(default_factory=list)
    probes: List[str] = field(default_factory=list)
    backend_pools: Dict[str, str] = field(default_factory=dict)
    moved_ip_configurations: List[str] = field(default_factory=list)
    rules: List[str] = field(default_factory=list)
    cleaned_up: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    journal_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "context": self.context.to_dict(),
            "frontends": [vars(f) for f in self.frontends],
            "nat_rules": self.nat_rules,
            "probes": self.probes,
            "backend_pools": self.backend_pools,
            "moved_ip_configurations": self.moved_ip_configurations,
            "rules": self.rules,
            "cleaned_up": self.cleaned_up,
            "warnings": self.warnings,
            "journal_path": self.journal_path,
        }
