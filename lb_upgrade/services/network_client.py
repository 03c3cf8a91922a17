"""
Azure Network Provider Client

Thin wrapper over ``azure.mgmt.network.NetworkManagementClient`` exposing
exactly the operations the migration needs. Every call returns plain
``as_dict()`` payloads and every Azure SDK error is translated into the
project's exception hierarchy.

Reads and PUT-style creates are retried with exponential backoff on transient
errors. Frontend reassignment, NIC pool membership changes and deletes are
never retried: repeating them against a half-applied change is not safe.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from azure.core.exceptions import (
    AzureError,
    HttpResponseError,
    ServiceRequestError,
    ServiceResponseError,
)
from azure.identity import ClientSecretCredential, DefaultAzureCredential
from azure.mgmt.network import NetworkManagementClient
from azure.mgmt.network.models import (
    BackendAddressPool,
    FrontendIPConfiguration,
    InboundNatRule,
    LoadBalancer,
    LoadBalancerSku,
    LoadBalancingRule,
    Probe,
    PublicIPAddress,
    PublicIPAddressSku,
    SubResource,
)

from ..config_manager import LoadBalancerUpgradeConfig
from ..exceptions import NotFoundError, ProviderOperationError, wrap_azure_exception
from ..models.load_balancer import LbRule, NatRule
from ..models.load_balancer import Probe as ProbeModel
from ..models.migration import DEFAULT_FRONTEND_NAME, DEFAULT_POOL_SUFFIX
from ..utils.resource_id import build_child_id, build_resource_id

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = {408, 429, 500, 502, 503, 504}


def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, (ServiceRequestError, ServiceResponseError)):
        return True
    if isinstance(exc, HttpResponseError):
        return getattr(exc, "status_code", None) in TRANSIENT_STATUS_CODES
    return False


def _same_id(left: Optional[str], right: Optional[str]) -> bool:
    # Azure resource IDs are case-insensitive
    return bool(left and right and left.lower() == right.lower())


def build_credential(config: LoadBalancerUpgradeConfig) -> Any:
    """Use explicit service principal credentials when configured."""
    if config.azure.has_service_principal():
        logger.debug("Using ClientSecretCredential")
        return ClientSecretCredential(
            tenant_id=config.azure.tenant_id,
            client_id=config.azure.client_id,
            client_secret=config.azure.client_secret,
        )
    logger.debug("Using DefaultAzureCredential")
    return DefaultAzureCredential()


class AzureNetworkClient:
    """
    Provider client for load balancers, public IPs and NIC pool membership.

    All methods are synchronous: each long-running operation is awaited via
    ``poller.result()`` before returning.
    """

    def __init__(
        self,
        subscription_id: str,
        credential: Optional[Any] = None,
        network_client_factory: Optional[Callable[[Any, str], Any]] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the client.

        Args:
            subscription_id: Azure subscription that holds the load balancers
            credential: Azure credential (defaults to DefaultAzureCredential)
            network_client_factory: Optional factory for NetworkManagementClient (for testing)
            max_retries: Attempts for retryable operations
            retry_delay: Base delay in seconds for exponential backoff
            sleep: Sleep function (for testing)
        """
        self.subscription_id = subscription_id
        self.credential = credential or DefaultAzureCredential()
        self.network_client_factory = network_client_factory or NetworkManagementClient
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._network: Optional[Any] = None

    @classmethod
    def from_config(cls, config: LoadBalancerUpgradeConfig) -> "AzureNetworkClient":
        return cls(
            subscription_id=config.azure.subscription_id,
            credential=build_credential(config),
            max_retries=config.retry.max_retries,
            retry_delay=config.retry.retry_delay,
        )

    @property
    def network(self) -> Any:
        """Get or create the NetworkManagementClient."""
        if self._network is None:
            self._network = self.network_client_factory(
                self.credential, self.subscription_id
            )
        return self._network

    def _call(
        self,
        operation: str,
        fn: Callable[[], Any],
        retry: bool = False,
        context: Optional[Dict[str, Any]] = None,
    ) -> Any:
        attempts = self.max_retries if retry else 1
        for attempt in range(attempts):
            try:
                return fn()
            except AzureError as e:
                if _is_transient(e) and attempt < attempts - 1:
                    delay = self.retry_delay * (2**attempt)
                    logger.warning(
                        f"Transient error in {operation} "
                        f"(attempt {attempt + 1}/{attempts}), retrying in {delay}s: {e}"
                    )
                    self._sleep(delay)
                    continue
                raise wrap_azure_exception(e, operation=operation, context=context) from e
        # Unreachable: the last attempt either returns or raises
        raise ProviderOperationError(f"{operation} did not complete", operation=operation)

    def _public_ip_id(self, resource_group: str, name: str) -> str:
        return build_resource_id(
            self.subscription_id, resource_group, "publicIPAddresses", name
        )

    def _get_lb_model(self, resource_group: str, lb_name: str, operation: str) -> Any:
        return self._call(
            operation,
            lambda: self.network.load_balancers.get(resource_group, lb_name),
            retry=True,
            context={"resource_group": resource_group, "load_balancer": lb_name},
        )

    def _put_lb_model(self, resource_group: str, lb: Any, operation: str) -> Any:
        return self._call(
            operation,
            lambda: self.network.load_balancers.begin_create_or_update(
                resource_group, lb.name, lb
            ).result(),
            context={"resource_group": resource_group, "load_balancer": lb.name},
        )

    @staticmethod
    def _find_frontend(lb: Any, frontend_name: str) -> Optional[Any]:
        for fe in lb.frontend_ip_configurations or []:
            if fe.name.lower() == frontend_name.lower():
                return fe
        return None

    # Reads

    def read_load_balancer(self, resource_group: str, lb_name: str) -> Dict[str, Any]:
        """Read a load balancer. Raises NotFoundError / AccessDeniedError."""
        lb = self._get_lb_model(resource_group, lb_name, "read_load_balancer")
        return lb.as_dict()

    def load_balancer_exists(self, resource_group: str, lb_name: str) -> bool:
        try:
            self._get_lb_model(resource_group, lb_name, "load_balancer_exists")
        except NotFoundError:
            return False
        return True

    def read_public_ip(self, resource_group: str, name: str) -> Dict[str, Any]:
        pip = self._call(
            "read_public_ip",
            lambda: self.network.public_ip_addresses.get(resource_group, name),
            retry=True,
            context={"resource_group": resource_group, "public_ip": name},
        )
        return pip.as_dict()

    # Load balancer and public IPs

    def create_load_balancer(
        self,
        resource_group: str,
        lb_name: str,
        sku: str,
        location: str,
        frontend_public_ip_id: str,
    ) -> Dict[str, Any]:
        """
        Create a load balancer the way ``az network lb create`` does.

        The load balancer gets a default frontend bound to
        ``frontend_public_ip_id`` (the ``PublicIP<name>`` address, created
        beforehand by the caller) and a default backend pool
        (``<name>bepool``). The cleanup phase removes them.
        """
        parameters = LoadBalancer(
            location=location,
            sku=LoadBalancerSku(name=sku),
            frontend_ip_configurations=[
                FrontendIPConfiguration(
                    name=DEFAULT_FRONTEND_NAME,
                    public_ip_address=PublicIPAddress(id=frontend_public_ip_id),
                )
            ],
            backend_address_pools=[
                BackendAddressPool(name=f"{lb_name}{DEFAULT_POOL_SUFFIX}")
            ],
        )
        lb = self._call(
            "create_load_balancer",
            lambda: self.network.load_balancers.begin_create_or_update(
                resource_group, lb_name, parameters
            ).result(),
            retry=True,
            context={"resource_group": resource_group, "load_balancer": lb_name},
        )
        return lb.as_dict()

    def update_public_ip_sku(
        self, resource_group: str, name: str, sku: str
    ) -> Dict[str, Any]:
        """Change a public IP's SKU in place. Its address is preserved."""
        pip = self._call(
            "update_public_ip_sku",
            lambda: self.network.public_ip_addresses.get(resource_group, name),
            retry=True,
            context={"resource_group": resource_group, "public_ip": name},
        )
        pip.sku = PublicIPAddressSku(name=sku)
        updated = self._call(
            "update_public_ip_sku",
            lambda: self.network.public_ip_addresses.begin_create_or_update(
                resource_group, name, pip
            ).result(),
            context={"resource_group": resource_group, "public_ip": name},
        )
        return updated.as_dict()

    def create_public_ip(
        self,
        resource_group: str,
        name: str,
        sku: str,
        allocation_method: str,
        location: str,
    ) -> Dict[str, Any]:
        parameters = PublicIPAddress(
            location=location,
            sku=PublicIPAddressSku(name=sku),
            public_ip_allocation_method=allocation_method,
        )
        pip = self._call(
            "create_public_ip",
            lambda: self.network.public_ip_addresses.begin_create_or_update(
                resource_group, name, parameters
            ).result(),
            retry=True,
            context={"resource_group": resource_group, "public_ip": name},
        )
        return pip.as_dict()

    def update_frontend_ip(
        self,
        resource_group: str,
        lb_name: str,
        frontend_name: str,
        public_ip_name: str,
        public_ip_resource_group: Optional[str] = None,
    ) -> None:
        """
        Point a frontend at a public IP, adding the frontend if it is missing.

        Never retried.
        """
        operation = "update_frontend_ip"
        lb = self._get_lb_model(resource_group, lb_name, operation)
        public_ip = PublicIPAddress(
            id=self._public_ip_id(public_ip_resource_group or resource_group, public_ip_name)
        )
        frontend = self._find_frontend(lb, frontend_name)
        if frontend is None:
            lb.frontend_ip_configurations = list(lb.frontend_ip_configurations or [])
            lb.frontend_ip_configurations.append(
                FrontendIPConfiguration(name=frontend_name, public_ip_address=public_ip)
            )
        else:
            frontend.public_ip_address = public_ip
        self._put_lb_model(resource_group, lb, operation)

    def delete_frontend(self, resource_group: str, lb_name: str, frontend_name: str) -> None:
        operation = "delete_frontend"
        lb = self._get_lb_model(resource_group, lb_name, operation)
        if self._find_frontend(lb, frontend_name) is None:
            raise NotFoundError(
                f"Frontend {frontend_name} not found on {lb_name}", operation=operation
            )
        lb.frontend_ip_configurations = [
            fe
            for fe in lb.frontend_ip_configurations
            if fe.name.lower() != frontend_name.lower()
        ]
        self._put_lb_model(resource_group, lb, operation)

    def delete_public_ip(self, resource_group: str, name: str) -> None:
        self._call(
            "delete_public_ip",
            lambda: self.network.public_ip_addresses.begin_delete(
                resource_group, name
            ).result(),
            context={"resource_group": resource_group, "public_ip": name},
        )

    # Child resources

    def create_nat_rule(self, resource_group: str, lb_name: str, rule: NatRule) -> None:
        lb = self._get_lb_model(resource_group, lb_name, "create_nat_rule")
        parameters = InboundNatRule(
            frontend_ip_configuration=SubResource(
                id=build_child_id(lb.id, "frontendIPConfigurations", rule.frontend_name)
            ),
            protocol=rule.protocol,
            frontend_port=rule.frontend_port,
            backend_port=rule.backend_port,
            idle_timeout_in_minutes=rule.idle_timeout_in_minutes,
            enable_floating_ip=rule.enable_floating_ip,
            enable_tcp_reset=rule.enable_tcp_reset,
        )
        self._call(
            "create_nat_rule",
            lambda: self.network.inbound_nat_rules.begin_create_or_update(
                resource_group, lb_name, rule.name, parameters
            ).result(),
            retry=True,
            context={"load_balancer": lb_name, "nat_rule": rule.name},
        )

    def create_probe(self, resource_group: str, lb_name: str, probe: ProbeModel) -> None:
        operation = "create_probe"
        lb = self._get_lb_model(resource_group, lb_name, operation)
        parameters = Probe(
            name=probe.name,
            protocol=probe.protocol,
            port=probe.port,
            interval_in_seconds=probe.interval_in_seconds,
            number_of_probes=probe.number_of_probes,
        )
        if probe.is_http:
            parameters.request_path = probe.request_path
        lb.probes = [p for p in (lb.probes or []) if p.name != probe.name]
        lb.probes.append(parameters)
        self._put_lb_model(resource_group, lb, operation)

    def create_backend_pool(
        self, resource_group: str, lb_name: str, name: str
    ) -> Dict[str, Any]:
        """Create a backend pool; the returned payload carries its assigned ID."""
        pool = self._call(
            "create_backend_pool",
            lambda: self.network.load_balancer_backend_address_pools.begin_create_or_update(
                resource_group, lb_name, name, BackendAddressPool(name=name)
            ).result(),
            retry=True,
            context={"load_balancer": lb_name, "backend_pool": name},
        )
        return pool.as_dict()

    def delete_backend_pool(self, resource_group: str, lb_name: str, name: str) -> None:
        self._call(
            "delete_backend_pool",
            lambda: self.network.load_balancer_backend_address_pools.begin_delete(
                resource_group, lb_name, name
            ).result(),
            context={"load_balancer": lb_name, "backend_pool": name},
        )

    def create_lb_rule(
        self,
        resource_group: str,
        lb_name: str,
        rule: LbRule,
        backend_pool_id: Optional[str] = None,
    ) -> None:
        """
        Add a load-balancing rule to an existing load balancer.

        ``backend_pool_id`` is the ID returned when the pool was created; without
        it the pool is referenced by name on this load balancer.
        """
        operation = "create_lb_rule"
        lb = self._get_lb_model(resource_group, lb_name, operation)
        frontend_id = self._resolve_rule_frontend(lb, rule)
        parameters = LoadBalancingRule(
            name=rule.name,
            frontend_ip_configuration=SubResource(id=frontend_id),
            protocol=rule.protocol,
            frontend_port=rule.frontend_port,
            backend_port=rule.backend_port,
            load_distribution=rule.load_distribution,
            idle_timeout_in_minutes=rule.idle_timeout_in_minutes,
            enable_floating_ip=rule.enable_floating_ip,
        )
        if rule.backend_pool_name:
            parameters.backend_address_pool = SubResource(
                id=backend_pool_id
                or build_child_id(lb.id, "backendAddressPools", rule.backend_pool_name)
            )
        if rule.probe_name:
            parameters.probe = SubResource(
                id=build_child_id(lb.id, "probes", rule.probe_name)
            )
        if rule.enable_tcp_reset is not None:
            parameters.enable_tcp_reset = rule.enable_tcp_reset
        if rule.disable_outbound_snat is not None:
            parameters.disable_outbound_snat = rule.disable_outbound_snat
        lb.load_balancing_rules = [
            r for r in (lb.load_balancing_rules or []) if r.name != rule.name
        ]
        lb.load_balancing_rules.append(parameters)
        self._put_lb_model(resource_group, lb, operation)

    def _resolve_rule_frontend(self, lb: Any, rule: LbRule) -> str:
        if rule.frontend_name:
            frontend = self._find_frontend(lb, rule.frontend_name)
            if frontend is None:
                raise ProviderOperationError(
                    f"Frontend {rule.frontend_name} for rule {rule.name} does not exist on {lb.name}",
                    operation="create_lb_rule",
                )
            return frontend.id
        frontends: List[Any] = list(lb.frontend_ip_configurations or [])
        if len(frontends) != 1:
            raise ProviderOperationError(
                f"Rule {rule.name} has no frontend and {lb.name} has {len(frontends)} frontends",
                operation="create_lb_rule",
            )
        return frontends[0].id

    # NIC pool membership (never retried)

    def _get_nic_ip_configuration(
        self, resource_group: str, nic_name: str, ip_config_name: str, operation: str
    ) -> Any:
        nic = self._call(
            operation,
            lambda: self.network.network_interfaces.get(resource_group, nic_name),
            retry=True,
            context={"resource_group": resource_group, "nic": nic_name},
        )
        for ip_config in nic.ip_configurations or []:
            if ip_config.name.lower() == ip_config_name.lower():
                return nic, ip_config
        raise NotFoundError(
            f"IP configuration {ip_config_name} not found on NIC {nic_name}",
            operation=operation,
        )

    def _put_nic(self, resource_group: str, nic: Any, operation: str) -> None:
        self._call(
            operation,
            lambda: self.network.network_interfaces.begin_create_or_update(
                resource_group, nic.name, nic
            ).result(),
            context={"resource_group": resource_group, "nic": nic.name},
        )

    def remove_nic_from_pool(
        self, resource_group: str, pool_id: str, nic_name: str, ip_config_name: str
    ) -> None:
        operation = "remove_nic_from_pool"
        nic, ip_config = self._get_nic_ip_configuration(
            resource_group, nic_name, ip_config_name, operation
        )
        pools = list(ip_config.load_balancer_backend_address_pools or [])
        remaining = [p for p in pools if not _same_id(p.id, pool_id)]
        if len(remaining) == len(pools):
            logger.warning(
                f"{nic_name}/{ip_config_name} is not a member of {pool_id}; nothing to remove"
            )
            return
        ip_config.load_balancer_backend_address_pools = remaining
        self._put_nic(resource_group, nic, operation)

    def add_nic_to_pool(
        self, resource_group: str, pool_id: str, nic_name: str, ip_config_name: str
    ) -> None:
        operation = "add_nic_to_pool"
        nic, ip_config = self._get_nic_ip_configuration(
            resource_group, nic_name, ip_config_name, operation
        )
        pools = list(ip_config.load_balancer_backend_address_pools or [])
        if any(_same_id(p.id, pool_id) for p in pools):
            logger.info(f"{nic_name}/{ip_config_name} is already a member of {pool_id}")
            return
        pools.append(BackendAddressPool(id=pool_id))
        ip_config.load_balancer_backend_address_pools = pools
        self._put_nic(resource_group, nic, operation)
