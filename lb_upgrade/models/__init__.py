from .load_balancer import (
    AllocationMethod,
    BackendPool,
    Frontend,
    LbRule,
    LoadBalancer,
    NatRule,
    Probe,
    PublicIp,
    Sku,
)
from .migration import (
    MigratedFrontend,
    MigrationContext,
    MigrationResult,
    MigrationStep,
)

__all__ = [
    "AllocationMethod",
    "BackendPool",
    "Frontend",
    "LbRule",
    "LoadBalancer",
    "MigratedFrontend",
    "MigrationContext",
    "MigrationResult",
    "MigrationStep",
    "NatRule",
    "Probe",
    "PublicIp",
    "Sku",
]
