"""
Shared fixtures: an in-memory network provider and a Basic load balancer scenario.

Scenario ``rg1/lb1``:
    frontend fe1 -> static Basic public IP pip1 (20.1.2.3)
    NAT rule ssh (Tcp 50001 -> 22)
    probes http-probe (Http 80 /healthz) and tcp-probe (Tcp 443)
    backend pool pool1 with nic1/ipconfig1 and nic2/ipconfig1
    rules http (80 -> 80, http-probe) and https (443 -> 443, tcp-probe)
"""

import copy
from typing import Any, Dict, List, Optional, Tuple

import pytest

from lb_upgrade.exceptions import NotFoundError, ProviderOperationError
from lb_upgrade.models.migration import (
    DEFAULT_FRONTEND_NAME,
    DEFAULT_POOL_SUFFIX,
    PLACEHOLDER_IP_PREFIX,
    MigrationContext,
)
from lb_upgrade.utils.resource_id import build_child_id, build_resource_id

SUBSCRIPTION_ID = "11111111-2222-3333-4444-555555555555"

READ_OPERATIONS = {"read_load_balancer", "load_balancer_exists", "read_public_ip"}


def lb_id(rg: str, name: str) -> str:
    return build_resource_id(SUBSCRIPTION_ID, rg, "loadBalancers", name)


def pip_id(rg: str, name: str) -> str:
    return build_resource_id(SUBSCRIPTION_ID, rg, "publicIPAddresses", name)


def nic_ip_config_id(rg: str, nic: str, ip_config: str) -> str:
    return build_child_id(
        build_resource_id(SUBSCRIPTION_ID, rg, "networkInterfaces", nic),
        "ipConfigurations",
        ip_config,
    )


def _child(lb: Dict[str, Any], child_type: str, name: str) -> Dict[str, str]:
    return {"id": build_child_id(lb["id"], child_type, name)}


def basic_lb_payload() -> Dict[str, Any]:
    """as_dict()-shaped payload of the Basic load balancer rg1/lb1."""
    lb: Dict[str, Any] = {"id": lb_id("rg1", "lb1")}
    lb.update(
        {
            "name": "lb1",
            "location": "eastus",
            "sku": {"name": "Basic"},
            "frontend_ip_configurations": [
                {
                    "name": "fe1",
                    "id": _child(lb, "frontendIPConfigurations", "fe1")["id"],
                    "public_ip_address": {"id": pip_id("rg1", "pip1")},
                }
            ],
            "inbound_nat_rules": [
                {
                    "name": "ssh",
                    "protocol": "Tcp",
                    "frontend_port": 50001,
                    "backend_port": 22,
                    "idle_timeout_in_minutes": 4,
                    "enable_floating_ip": False,
                    "enable_tcp_reset": False,
                    "frontend_ip_configuration": _child(lb, "frontendIPConfigurations", "fe1"),
                }
            ],
            "probes": [
                {
                    "name": "http-probe",
                    "protocol": "Http",
                    "port": 80,
                    "request_path": "/healthz",
                    "interval_in_seconds": 15,
                    "number_of_probes": 2,
                },
                {
                    "name": "tcp-probe",
                    "protocol": "Tcp",
                    "port": 443,
                    "request_path": "/ignored",
                    "interval_in_seconds": 5,
                    "number_of_probes": 2,
                },
            ],
            "backend_address_pools": [
                {
                    "name": "pool1",
                    "id": _child(lb, "backendAddressPools", "pool1")["id"],
                    "backend_ip_configurations": [
                        {"id": nic_ip_config_id("rg1", "nic1", "ipconfig1")},
                        {"id": nic_ip_config_id("rg1", "nic2", "ipconfig1")},
                    ],
                }
            ],
            "load_balancing_rules": [
                {
                    "name": "http",
                    "protocol": "Tcp",
                    "frontend_port": 80,
                    "backend_port": 80,
                    "load_distribution": "Default",
                    "idle_timeout_in_minutes": 4,
                    "enable_floating_ip": False,
                    "frontend_ip_configuration": _child(lb, "frontendIPConfigurations", "fe1"),
                    "backend_address_pool": _child(lb, "backendAddressPools", "pool1"),
                    "probe": _child(lb, "probes", "http-probe"),
                },
                {
                    "name": "https",
                    "protocol": "Tcp",
                    "frontend_port": 443,
                    "backend_port": 443,
                    "frontend_ip_configuration": _child(lb, "frontendIPConfigurations", "fe1"),
                    "backend_address_pool": _child(lb, "backendAddressPools", "pool1"),
                    "probe": _child(lb, "probes", "tcp-probe"),
                },
            ],
        }
    )
    return lb


class FakeNetworkClient:
    """
    In-memory stand-in for AzureNetworkClient.

    Keeps load balancers and public IPs as as_dict()-shaped payloads and NIC
    pool membership per IP configuration. Every call is recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.load_balancers: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.public_ips: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.nic_pools: Dict[Tuple[str, str, str], List[str]] = {}
        self.calls: List[Tuple[Any, ...]] = []
        self._failures: Dict[str, List[Any]] = {}
        self._next_ip = 100

    # Test helpers

    def fail(self, operation: str, exc: Exception, skip: int = 0) -> None:
        """Make ``operation`` raise ``exc`` after ``skip`` successful calls."""
        self._failures[operation] = [exc, skip]

    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]

    def mutations(self) -> List[Tuple[Any, ...]]:
        return [call for call in self.calls if call[0] not in READ_OPERATIONS]

    def add_public_ip(
        self,
        rg: str,
        name: str,
        allocation: str = "Static",
        sku: str = "Basic",
        ip_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        pip = {
            "id": pip_id(rg, name),
            "name": name,
            "location": "eastus",
            "sku": {"name": sku},
            "public_ip_allocation_method": allocation,
            "ip_address": ip_address,
        }
        self.public_ips[(rg, name)] = pip
        return pip

    def add_load_balancer(self, rg: str, payload: Dict[str, Any]) -> None:
        self.load_balancers[(rg, payload["name"])] = copy.deepcopy(payload)

    def add_nic(self, rg: str, nic: str, ip_config: str, pool_ids: List[str]) -> None:
        self.nic_pools[(rg, nic, ip_config)] = list(pool_ids)
        self._sync_pool_members()

    def add_destination(self, rg: str, name: str, location: str = "eastus") -> None:
        """Create a Standard load balancer with its default frontend, IP and pool."""
        default_ip = self._create_ip(rg, f"{PLACEHOLDER_IP_PREFIX}{name}", "Standard", "Static", location)
        self._create_lb(rg, name, "Standard", location, default_ip["id"])

    def lb(self, rg: str, name: str) -> Dict[str, Any]:
        return self.load_balancers[(rg, name)]

    def names(self, rg: str, lb_name: str, collection: str) -> List[str]:
        return [item["name"] for item in self.lb(rg, lb_name).get(collection) or []]

    def frontend_ip_name(self, rg: str, lb_name: str, frontend: str) -> str:
        for fe in self.lb(rg, lb_name)["frontend_ip_configurations"]:
            if fe["name"] == frontend:
                return fe["public_ip_address"]["id"].rsplit("/", 1)[-1]
        raise KeyError(frontend)

    def pool_members(self, pool_id: str) -> List[str]:
        return sorted(
            f"{rg}/{nic}/{cfg}"
            for (rg, nic, cfg), pools in self.nic_pools.items()
            if pool_id in pools
        )

    # Internals

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation,) + args)
        failure = self._failures.get(operation)
        if failure is None:
            return
        exc, skip = failure
        if skip <= 0:
            raise exc
        failure[1] = skip - 1

    def _get_lb(self, rg: str, name: str, operation: str) -> Dict[str, Any]:
        try:
            return self.load_balancers[(rg, name)]
        except KeyError:
            raise NotFoundError(
                f"Load balancer {rg}/{name} not found", operation=operation
            ) from None

    def _sync_pool_members(self) -> None:
        for lb in self.load_balancers.values():
            for pool in lb.get("backend_address_pools") or []:
                pool["backend_ip_configurations"] = [
                    {"id": nic_ip_config_id(rg, nic, cfg)}
                    for (rg, nic, cfg), pools in sorted(self.nic_pools.items())
                    if pool.get("id") in pools
                ]

    @staticmethod
    def _find(items: List[Dict[str, Any]], name: str) -> Optional[Dict[str, Any]]:
        for item in items:
            if item["name"].lower() == name.lower():
                return item
        return None

    def _require_child(
        self, lb: Dict[str, Any], collection: str, name: str, operation: str
    ) -> None:
        if self._find(lb.get(collection) or [], name) is None:
            raise ProviderOperationError(
                f"{collection} {name} does not exist on {lb['name']}",
                operation=operation,
                status_code=400,
            )

    # Provider operations

    def read_load_balancer(self, rg: str, name: str) -> Dict[str, Any]:
        self._record("read_load_balancer", rg, name)
        return copy.deepcopy(self._get_lb(rg, name, "read_load_balancer"))

    def load_balancer_exists(self, rg: str, name: str) -> bool:
        self._record("load_balancer_exists", rg, name)
        return (rg, name) in self.load_balancers

    def read_public_ip(self, rg: str, name: str) -> Dict[str, Any]:
        self._record("read_public_ip", rg, name)
        try:
            return copy.deepcopy(self.public_ips[(rg, name)])
        except KeyError:
            raise NotFoundError(
                f"Public IP {rg}/{name} not found", operation="read_public_ip"
            ) from None

    def create_load_balancer(
        self, rg: str, name: str, sku: str, location: str, frontend_public_ip_id: str
    ) -> Dict[str, Any]:
        self._record("create_load_balancer", rg, name, sku, location)
        return copy.deepcopy(self._create_lb(rg, name, sku, location, frontend_public_ip_id))

    def _create_lb(
        self, rg: str, name: str, sku: str, location: str, frontend_public_ip_id: str
    ) -> Dict[str, Any]:
        lb: Dict[str, Any] = {"id": lb_id(rg, name), "name": name}
        lb.update(
            {
                "location": location,
                "sku": {"name": sku},
                "frontend_ip_configurations": [
                    {
                        "name": DEFAULT_FRONTEND_NAME,
                        "id": _child(lb, "frontendIPConfigurations", DEFAULT_FRONTEND_NAME)["id"],
                        "public_ip_address": {"id": frontend_public_ip_id},
                    }
                ],
                "backend_address_pools": [
                    {
                        "name": f"{name}{DEFAULT_POOL_SUFFIX}",
                        "id": _child(lb, "backendAddressPools", f"{name}{DEFAULT_POOL_SUFFIX}")["id"],
                        "backend_ip_configurations": [],
                    }
                ],
                "inbound_nat_rules": [],
                "probes": [],
                "load_balancing_rules": [],
            }
        )
        self.load_balancers[(rg, name)] = lb
        return lb

    def _create_ip(
        self, rg: str, name: str, sku: str, allocation: str, location: str
    ) -> Dict[str, Any]:
        self._next_ip += 1
        pip = self.add_public_ip(rg, name, allocation, sku, f"52.0.0.{self._next_ip}")
        pip["location"] = location
        return pip

    def create_public_ip(
        self, rg: str, name: str, sku: str, allocation: str, location: str
    ) -> Dict[str, Any]:
        self._record("create_public_ip", rg, name, sku, allocation, location)
        return copy.deepcopy(self._create_ip(rg, name, sku, allocation, location))

    def update_public_ip_sku(self, rg: str, name: str, sku: str) -> Dict[str, Any]:
        self._record("update_public_ip_sku", rg, name, sku)
        if (rg, name) not in self.public_ips:
            raise NotFoundError(f"Public IP {rg}/{name} not found", operation="update_public_ip_sku")
        self.public_ips[(rg, name)]["sku"] = {"name": sku}
        return copy.deepcopy(self.public_ips[(rg, name)])

    def update_frontend_ip(
        self,
        rg: str,
        lb_name: str,
        frontend: str,
        public_ip_name: str,
        public_ip_rg: Optional[str] = None,
    ) -> None:
        self._record("update_frontend_ip", rg, lb_name, frontend, public_ip_name)
        lb = self._get_lb(rg, lb_name, "update_frontend_ip")
        ref = {"id": pip_id(public_ip_rg or rg, public_ip_name)}
        existing = self._find(lb["frontend_ip_configurations"], frontend)
        if existing is None:
            lb["frontend_ip_configurations"].append(
                {
                    "name": frontend,
                    "id": _child(lb, "frontendIPConfigurations", frontend)["id"],
                    "public_ip_address": ref,
                }
            )
        else:
            existing["public_ip_address"] = ref

    def delete_frontend(self, rg: str, lb_name: str, frontend: str) -> None:
        self._record("delete_frontend", rg, lb_name, frontend)
        lb = self._get_lb(rg, lb_name, "delete_frontend")
        self._require_child(lb, "frontend_ip_configurations", frontend, "delete_frontend")
        lb["frontend_ip_configurations"] = [
            fe for fe in lb["frontend_ip_configurations"] if fe["name"] != frontend
        ]

    def delete_public_ip(self, rg: str, name: str) -> None:
        self._record("delete_public_ip", rg, name)
        target = pip_id(rg, name)
        for lb in self.load_balancers.values():
            for fe in lb["frontend_ip_configurations"]:
                if fe["public_ip_address"]["id"] == target:
                    raise ProviderOperationError(
                        f"Public IP {name} is in use by {lb['name']}/{fe['name']}",
                        operation="delete_public_ip",
                        status_code=400,
                    )
        self.public_ips.pop((rg, name), None)

    def create_nat_rule(self, rg: str, lb_name: str, rule: Any) -> None:
        self._record("create_nat_rule", rg, lb_name, rule.name)
        lb = self._get_lb(rg, lb_name, "create_nat_rule")
        self._require_child(lb, "frontend_ip_configurations", rule.frontend_name, "create_nat_rule")
        lb["inbound_nat_rules"].append(
            {
                "name": rule.name,
                "protocol": rule.protocol,
                "frontend_port": rule.frontend_port,
                "backend_port": rule.backend_port,
                "enable_floating_ip": rule.enable_floating_ip,
                "enable_tcp_reset": rule.enable_tcp_reset,
                "idle_timeout_in_minutes": rule.idle_timeout_in_minutes,
                "frontend_ip_configuration": _child(lb, "frontendIPConfigurations", rule.frontend_name),
            }
        )

    def create_probe(self, rg: str, lb_name: str, probe: Any) -> None:
        self._record("create_probe", rg, lb_name, probe.name)
        lb = self._get_lb(rg, lb_name, "create_probe")
        payload = {
            "name": probe.name,
            "protocol": probe.protocol,
            "port": probe.port,
            "interval_in_seconds": probe.interval_in_seconds,
            "number_of_probes": probe.number_of_probes,
        }
        if probe.is_http:
            payload["request_path"] = probe.request_path
        lb["probes"].append(payload)

    def create_backend_pool(self, rg: str, lb_name: str, name: str) -> Dict[str, Any]:
        self._record("create_backend_pool", rg, lb_name, name)
        lb = self._get_lb(rg, lb_name, "create_backend_pool")
        pool = {
            "name": name,
            "id": _child(lb, "backendAddressPools", name)["id"],
            "backend_ip_configurations": [],
        }
        lb["backend_address_pools"].append(pool)
        return copy.deepcopy(pool)

    def delete_backend_pool(self, rg: str, lb_name: str, name: str) -> None:
        self._record("delete_backend_pool", rg, lb_name, name)
        lb = self._get_lb(rg, lb_name, "delete_backend_pool")
        self._require_child(lb, "backend_address_pools", name, "delete_backend_pool")
        lb["backend_address_pools"] = [
            p for p in lb["backend_address_pools"] if p["name"] != name
        ]

    def create_lb_rule(
        self, rg: str, lb_name: str, rule: Any, backend_pool_id: Optional[str] = None
    ) -> None:
        self._record("create_lb_rule", rg, lb_name, rule.name, backend_pool_id)
        lb = self._get_lb(rg, lb_name, "create_lb_rule")
        payload = {
            "name": rule.name,
            "protocol": rule.protocol,
            "frontend_port": rule.frontend_port,
            "backend_port": rule.backend_port,
            "load_distribution": rule.load_distribution,
            "idle_timeout_in_minutes": rule.idle_timeout_in_minutes,
            "enable_floating_ip": rule.enable_floating_ip,
        }
        if rule.frontend_name:
            self._require_child(lb, "frontend_ip_configurations", rule.frontend_name, "create_lb_rule")
            payload["frontend_ip_configuration"] = _child(
                lb, "frontendIPConfigurations", rule.frontend_name
            )
        if backend_pool_id:
            if not any(p["id"] == backend_pool_id for p in lb["backend_address_pools"]):
                raise ProviderOperationError(
                    f"backend_address_pools {backend_pool_id} does not exist on {lb['name']}",
                    operation="create_lb_rule",
                    status_code=400,
                )
            payload["backend_address_pool"] = {"id": backend_pool_id}
        elif rule.backend_pool_name:
            self._require_child(lb, "backend_address_pools", rule.backend_pool_name, "create_lb_rule")
            payload["backend_address_pool"] = _child(lb, "backendAddressPools", rule.backend_pool_name)
        if rule.probe_name:
            self._require_child(lb, "probes", rule.probe_name, "create_lb_rule")
            payload["probe"] = _child(lb, "probes", rule.probe_name)
        lb["load_balancing_rules"].append(payload)

    def remove_nic_from_pool(self, rg: str, pool_id: str, nic: str, ip_config: str) -> None:
        self._record("remove_nic_from_pool", rg, pool_id, nic, ip_config)
        pools = self.nic_pools.setdefault((rg, nic, ip_config), [])
        if pool_id in pools:
            pools.remove(pool_id)
        self._sync_pool_members()

    def add_nic_to_pool(self, rg: str, pool_id: str, nic: str, ip_config: str) -> None:
        self._record("add_nic_to_pool", rg, pool_id, nic, ip_config)
        pools = self.nic_pools.setdefault((rg, nic, ip_config), [])
        if pool_id not in pools:
            pools.append(pool_id)
        self._sync_pool_members()


def seed_basic_scenario(client: FakeNetworkClient) -> FakeNetworkClient:
    payload = basic_lb_payload()
    client.add_load_balancer("rg1", payload)
    client.add_public_ip("rg1", "pip1", ip_address="20.1.2.3")
    pool_id = payload["backend_address_pools"][0]["id"]
    client.add_nic("rg1", "nic1", "ipconfig1", [pool_id])
    client.add_nic("rg1", "nic2", "ipconfig1", [pool_id])
    return client


@pytest.fixture
def lb_payload():
    """Fresh payload of the Basic load balancer rg1/lb1."""
    return basic_lb_payload()


@pytest.fixture
def fake_client():
    """In-memory provider seeded with the rg1/lb1 scenario."""
    return seed_basic_scenario(FakeNetworkClient())


@pytest.fixture
def empty_client():
    """In-memory provider with no resources."""
    return FakeNetworkClient()


@pytest.fixture
def migration_context():
    return MigrationContext(
        subscription_id=SUBSCRIPTION_ID,
        source_resource_group="rg1",
        source_lb_name="lb1",
        destination_lb_name="lb2",
    )


@pytest.fixture
def journal_dir(tmp_path):
    return tmp_path / "journals"


@pytest.fixture
def ids():
    """Resource ID builders for the test subscription."""

    class _Ids:
        subscription_id = SUBSCRIPTION_ID
        lb = staticmethod(lb_id)
        public_ip = staticmethod(pip_id)
        nic_ip_config = staticmethod(nic_ip_config_id)

        @staticmethod
        def pool(rg: str, lb_name: str, name: str) -> str:
            return build_child_id(lb_id(rg, lb_name), "backendAddressPools", name)

    return _Ids
