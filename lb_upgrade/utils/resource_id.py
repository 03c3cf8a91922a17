"""
Azure resource ID parsing.

Resource IDs are parsed into named fields and their shape is validated, so a
change in the identifier layout fails loudly instead of silently picking the
wrong segment.

    /subscriptions/{sub}/resourceGroups/{rg}/providers/{namespace}/{type}/{name}[/{child_type}/{child_name}]*
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from ..exceptions import ResourceIdError

RESOURCE_ID_PATTERN = re.compile(
    r"^/subscriptions/([^/]+)/resourceGroups/([^/]+)/providers/([^/]+)/([^/]+)/([^/]+)((?:/[^/]+/[^/]+)*)/?$",
    re.IGNORECASE,
)

NETWORK_NAMESPACE = "Microsoft.Network"


@dataclass(frozen=True)
class ResourceId:
    """A parsed Azure resource ID."""

    subscription_id: str
    resource_group: str
    namespace: str
    resource_type: str
    name: str
    children: Tuple[Tuple[str, str], ...] = ()
    raw: str = ""

    @property
    def leaf_name(self) -> str:
        """Name of the deepest resource in the ID."""
        return self.children[-1][1] if self.children else self.name

    @property
    def leaf_type(self) -> str:
        return self.children[-1][0] if self.children else self.resource_type


@dataclass(frozen=True)
class NicIpConfigurationId:
    """A backend IP configuration: one IP configuration of one NIC."""

    subscription_id: str
    resource_group: str
    nic_name: str
    ip_config_name: str
    id: str

    def describe(self) -> str:
        return f"{self.resource_group}/{self.nic_name}/{self.ip_config_name}"


def parse_resource_id(resource_id: Optional[str]) -> ResourceId:
    """
    Parse an Azure resource ID into its components.

    Args:
        resource_id: Full Azure resource ID

    Returns:
        ResourceId with named fields

    Raises:
        ResourceIdError: If the ID is empty or does not match the expected shape
    """
    if not resource_id or not isinstance(resource_id, str):
        raise ResourceIdError("Resource ID is empty", resource_id=str(resource_id))

    match = RESOURCE_ID_PATTERN.match(resource_id.strip())
    if not match:
        raise ResourceIdError(
            "Resource ID does not match the expected Azure layout",
            resource_id=resource_id,
        )

    subscription_id, resource_group, namespace, resource_type, name, tail = (
        match.groups()
    )
    tail_segments = [s for s in tail.split("/") if s]
    children = tuple(
        (tail_segments[i], tail_segments[i + 1])
        for i in range(0, len(tail_segments), 2)
    )

    return ResourceId(
        subscription_id=subscription_id,
        resource_group=resource_group,
        namespace=namespace,
        resource_type=resource_type,
        name=name,
        children=children,
        raw=resource_id,
    )


def resource_name(resource_id: Optional[str]) -> str:
    """
    Return the trailing name of a resource or child-resource ID.

    Raises:
        ResourceIdError: If the ID cannot be parsed
    """
    return parse_resource_id(resource_id).leaf_name


def parse_nic_ip_configuration_id(resource_id: Optional[str]) -> NicIpConfigurationId:
    """
    Parse the ID of a NIC IP configuration that is a backend pool member.

    Only standalone NICs are supported. IP configurations that belong to a
    virtual machine scale set have a different layout and are rejected.

    Raises:
        ResourceIdError: If the ID is not a Microsoft.Network NIC IP configuration
    """
    parsed = parse_resource_id(resource_id)

    if (
        parsed.namespace.lower() != NETWORK_NAMESPACE.lower()
        or parsed.resource_type.lower() != "networkinterfaces"
        or len(parsed.children) != 1
        or parsed.children[0][0].lower() != "ipconfigurations"
    ):
        raise ResourceIdError(
            "Backend IP configuration is not a network interface IP configuration",
            resource_id=resource_id,
        )

    return NicIpConfigurationId(
        subscription_id=parsed.subscription_id,
        resource_group=parsed.resource_group,
        nic_name=parsed.name,
        ip_config_name=parsed.children[0][1],
        id=parsed.raw,
    )


def build_resource_id(
    subscription_id: str,
    resource_group: str,
    resource_type: str,
    name: str,
    namespace: str = NETWORK_NAMESPACE,
) -> str:
    """Build a top-level resource ID."""
    return (
        f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
        f"/providers/{namespace}/{resource_type}/{name}"
    )


def build_child_id(parent_id: str, child_type: str, name: str) -> str:
    """Append a child segment (e.g. ``frontendIPConfigurations/fe1``) to an ID."""
    return f"{parent_id.rstrip('/')}/{child_type}/{name}"
