"""
Load balancer configuration model.

The snapshot of the source load balancer is read once and kept immutable.
Every type parses the dictionary shape produced by the Azure SDK's
``Model.as_dict()`` (snake_case attribute names); references between child
resources are resolved by the trailing name of their resource ID.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..exceptions import MalformedResponseError, ResourceIdError
from ..utils.resource_id import (
    NicIpConfigurationId,
    parse_nic_ip_configuration_id,
    parse_resource_id,
    resource_name,
)


class Sku:
    BASIC = "Basic"
    STANDARD = "Standard"


class AllocationMethod:
    STATIC = "Static"
    DYNAMIC = "Dynamic"


HTTP_PROTOCOL = "Http"


def _require(data: Mapping[str, Any], key: str, owner: str) -> Any:
    value = data.get(key)
    if value is None:
        raise MalformedResponseError(
            f"{owner} is missing required field '{key}'",
            context={"resource": owner},
        )
    return value


def _int(data: Mapping[str, Any], key: str, owner: str, required: bool = True) -> Optional[int]:
    value = data.get(key)
    if value is None:
        if required:
            _require(data, key, owner)
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise MalformedResponseError(
            f"{owner} field '{key}' is not an integer: {value!r}",
            context={"resource": owner},
        )
    try:
        return int(value)
    except ValueError as e:
        raise MalformedResponseError(
            f"{owner} field '{key}' is not an integer: {value!r}",
            context={"resource": owner},
            cause=e,
        ) from e


def _ref_name(data: Mapping[str, Any], key: str, owner: str, required: bool = True) -> Optional[str]:
    """Resolve a ``{"id": ...}`` sub-resource reference to its trailing name."""
    ref = data.get(key)
    if not ref:
        if required:
            _require(data, key, owner)
        return None
    if not isinstance(ref, Mapping) or not ref.get("id"):
        raise MalformedResponseError(
            f"{owner} reference '{key}' has no resource ID",
            context={"resource": owner},
        )
    return resource_name(ref["id"])


def _sku_name(data: Mapping[str, Any]) -> Optional[str]:
    sku = data.get("sku")
    if isinstance(sku, Mapping):
        return sku.get("name")
    return None


def _list(data: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise MalformedResponseError(f"Field '{key}' is not a list")
    return value


@dataclass(frozen=True)
class PublicIp:
    """A public IP address resource, owned by its resource group."""

    name: str
    resource_group: str
    allocation_method: str
    sku: str
    ip_address: Optional[str] = None
    id: Optional[str] = None

    @property
    def is_static(self) -> bool:
        return (self.allocation_method or "").lower() == AllocationMethod.STATIC.lower()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], resource_group: str) -> "PublicIp":
        name = _require(data, "name", "public IP")
        return cls(
            name=name,
            resource_group=resource_group,
            allocation_method=_require(
                data, "public_ip_allocation_method", f"public IP {name}"
            ),
            sku=_sku_name(data) or Sku.BASIC,
            ip_address=data.get("ip_address"),
            id=data.get("id"),
        )


@dataclass(frozen=True)
class Frontend:
    """A frontend IP configuration and the public IP it references."""

    name: str
    public_ip_id: Optional[str]
    public_ip: Optional[PublicIp] = None

    @property
    def public_ip_name(self) -> str:
        return resource_name(self.public_ip_id)

    @property
    def public_ip_resource_group(self) -> str:
        return parse_resource_id(self.public_ip_id).resource_group

    def with_public_ip(self, public_ip: PublicIp) -> "Frontend":
        return replace(self, public_ip=public_ip)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Frontend":
        name = _require(data, "name", "frontend IP configuration")
        public_ip_ref = data.get("public_ip_address")
        public_ip_id = public_ip_ref.get("id") if isinstance(public_ip_ref, Mapping) else None
        return cls(name=name, public_ip_id=public_ip_id)


@dataclass(frozen=True)
class NatRule:
    """An inbound NAT rule."""

    name: str
    protocol: str
    frontend_port: int
    backend_port: int
    frontend_name: str
    enable_floating_ip: bool = False
    enable_tcp_reset: bool = False
    idle_timeout_in_minutes: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NatRule":
        name = _require(data, "name", "inbound NAT rule")
        owner = f"inbound NAT rule {name}"
        return cls(
            name=name,
            protocol=_require(data, "protocol", owner),
            frontend_port=_int(data, "frontend_port", owner),
            backend_port=_int(data, "backend_port", owner),
            frontend_name=_ref_name(data, "frontend_ip_configuration", owner),
            enable_floating_ip=bool(data.get("enable_floating_ip")),
            enable_tcp_reset=bool(data.get("enable_tcp_reset")),
            idle_timeout_in_minutes=_int(
                data, "idle_timeout_in_minutes", owner, required=False
            ),
        )


@dataclass(frozen=True)
class Probe:
    """A health probe. Only HTTP probes carry a request path."""

    name: str
    protocol: str
    port: int
    interval_in_seconds: Optional[int] = None
    number_of_probes: Optional[int] = None
    request_path: Optional[str] = None

    @property
    def is_http(self) -> bool:
        return self.protocol.lower() == HTTP_PROTOCOL.lower()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Probe":
        name = _require(data, "name", "probe")
        owner = f"probe {name}"
        protocol = _require(data, "protocol", owner)
        is_http = protocol.lower() == HTTP_PROTOCOL.lower()
        return cls(
            name=name,
            protocol=protocol,
            port=_int(data, "port", owner),
            interval_in_seconds=_int(data, "interval_in_seconds", owner, required=False),
            number_of_probes=_int(data, "number_of_probes", owner, required=False),
            request_path=data.get("request_path") if is_http else None,
        )


@dataclass(frozen=True)
class BackendPool:
    """A backend address pool and the NIC IP configurations in it."""

    name: str
    id: Optional[str] = None
    backend_ip_configurations: Tuple[NicIpConfigurationId, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BackendPool":
        name = _require(data, "name", "backend address pool")
        members = []
        for ref in _list(data, "backend_ip_configurations"):
            try:
                members.append(parse_nic_ip_configuration_id(ref.get("id")))
            except ResourceIdError as e:
                e.context["backend_pool"] = name
                raise
        if members and not data.get("id"):
            raise MalformedResponseError(
                f"Backend pool {name} has members but no resource ID",
                context={"resource": name},
            )
        return cls(name=name, id=data.get("id"), backend_ip_configurations=tuple(members))


@dataclass(frozen=True)
class LbRule:
    """A load-balancing rule."""

    name: str
    protocol: str
    frontend_port: int
    backend_port: int
    backend_pool_name: Optional[str]
    probe_name: Optional[str]
    frontend_name: Optional[str] = None
    load_distribution: Optional[str] = None
    idle_timeout_in_minutes: Optional[int] = None
    enable_floating_ip: bool = False
    enable_tcp_reset: Optional[bool] = None
    disable_outbound_snat: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LbRule":
        name = _require(data, "name", "load-balancing rule")
        owner = f"load-balancing rule {name}"
        return cls(
            name=name,
            protocol=_require(data, "protocol", owner),
            frontend_port=_int(data, "frontend_port", owner),
            backend_port=_int(data, "backend_port", owner),
            backend_pool_name=_ref_name(data, "backend_address_pool", owner, required=False),
            probe_name=_ref_name(data, "probe", owner, required=False),
            frontend_name=_ref_name(data, "frontend_ip_configuration", owner, required=False),
            load_distribution=data.get("load_distribution"),
            idle_timeout_in_minutes=_int(data, "idle_timeout_in_minutes", owner, required=False),
            enable_floating_ip=bool(data.get("enable_floating_ip")),
            enable_tcp_reset=data.get("enable_tcp_reset"),
            disable_outbound_snat=data.get("disable_outbound_snat"),
        )


@dataclass(frozen=True)
class LoadBalancer:
    """Snapshot of a load balancer and all of its child resources."""

    name: str
    resource_group: str
    location: str
    sku: str
    frontends: Tuple[Frontend, ...] = ()
    nat_rules: Tuple[NatRule, ...] = ()
    probes: Tuple[Probe, ...] = ()
    backend_pools: Tuple[BackendPool, ...] = ()
    rules: Tuple[LbRule, ...] = ()
    id: Optional[str] = None

    def with_frontends(self, frontends: Iterable[Frontend]) -> "LoadBalancer":
        return replace(self, frontends=tuple(frontends))

    def summary(self) -> Dict[str, int]:
        return {
            "frontends": len(self.frontends),
            "nat_rules": len(self.nat_rules),
            "probes": len(self.probes),
            "backend_pools": len(self.backend_pools),
            "rules": len(self.rules),
            "backend_ip_configurations": sum(
                len(p.backend_ip_configurations) for p in self.backend_pools
            ),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], resource_group: str) -> "LoadBalancer":
        """
        Build a snapshot from an SDK ``as_dict()`` payload.

        Raises:
            MalformedResponseError: If a required field is missing or has the wrong type
        """
        if not isinstance(data, Mapping):
            raise MalformedResponseError("Load balancer payload is not an object")

        name = _require(data, "name", "load balancer")
        try:
            return cls(
                name=name,
                resource_group=resource_group,
                location=_require(data, "location", f"load balancer {name}"),
                sku=_sku_name(data) or Sku.BASIC,
                frontends=tuple(
                    Frontend.from_dict(fe) for fe in _list(data, "frontend_ip_configurations")
                ),
                nat_rules=tuple(
                    NatRule.from_dict(r) for r in _list(data, "inbound_nat_rules")
                ),
                probes=tuple(Probe.from_dict(p) for p in _list(data, "probes")),
                backend_pools=tuple(
                    BackendPool.from_dict(p) for p in _list(data, "backend_address_pools")
                ),
                rules=tuple(
                    LbRule.from_dict(r) for r in _list(data, "load_balancing_rules")
                ),
                id=data.get("id"),
            )
        except (AttributeError, TypeError) as e:
            raise MalformedResponseError(
                f"Load balancer {name} could not be parsed: {e}",
                context={"resource": name},
                cause=e,
            ) from e
