"""Base command infrastructure and shared utilities.

- CommandContext for shared command execution context
- Helpers that turn command options into a validated MigrationContext
"""

import sys
from typing import Any, Optional

import click

from ..config_manager import LoadBalancerUpgradeConfig, create_config_from_env, setup_logging
from ..exceptions import InvalidConfigurationError, MissingConfigurationError
from ..logging_config import configure_structlog
from ..models.migration import MigrationContext


class CommandContext:
    """Shared context for command execution."""

    def __init__(
        self,
        ctx: click.Context,
        debug: bool = False,
        log_level: str = "INFO",
    ):
        self.click_ctx = ctx
        self.debug = debug
        self.log_level = log_level

    def get_config(self, **kwargs: Any) -> LoadBalancerUpgradeConfig:
        """Get validated configuration from environment and set up logging."""
        config = create_config_from_env(log_level=self.log_level, **kwargs)
        setup_logging(config.logging)
        configure_structlog(json_output=config.logging.json_events)
        if self.debug:
            config.log_configuration_summary()
        return config


def command_context(ctx: click.Context) -> CommandContext:
    """Create CommandContext from click context."""
    obj = ctx.obj or {}
    return CommandContext(
        ctx=ctx,
        debug=obj.get("debug", False),
        log_level=obj.get("log_level", "INFO"),
    )


def exit_with_error(message: str, code: int = 1) -> None:
    """Exit with error message."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)


def require_names(**names: Optional[str]) -> None:
    """
    Check that every named option has a value.

    Raises:
        MissingConfigurationError: Listing every missing option
    """
    missing = [f"--{key.replace('_', '-')}" for key, value in names.items() if not value]
    if missing:
        raise MissingConfigurationError(
            f"{', '.join(missing)} parameter value is missing", missing_keys=missing
        )


def build_migration_context(
    subscription_id: str,
    old_rg_name: Optional[str],
    old_lb_name: Optional[str],
    new_lb_name: Optional[str],
    new_rg_name: Optional[str] = None,
    cleanup: bool = True,
) -> MigrationContext:
    """
    Build the MigrationContext from command options.

    Raises:
        MissingConfigurationError: If a required name is missing
        InvalidConfigurationError: If source and destination are the same load balancer
    """
    require_names(old_rg_name=old_rg_name, old_lb_name=old_lb_name, new_lb_name=new_lb_name)

    context = MigrationContext(
        subscription_id=subscription_id,
        source_resource_group=old_rg_name,
        source_lb_name=old_lb_name,
        destination_lb_name=new_lb_name,
        destination_resource_group=new_rg_name or None,
        cleanup=cleanup,
    )
    if (
        context.source_lb_name.lower() == context.destination_lb_name.lower()
        and context.source_resource_group.lower() == context.target_resource_group.lower()
    ):
        raise InvalidConfigurationError(
            "The new load balancer name must differ from the old one",
            config_section="migration",
        )
    return context
