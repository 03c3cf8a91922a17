"""
Exception Hierarchy for the Load Balancer Upgrade Tool

All errors raised by the migration carry structured context (resource names,
the failing step) plus an optional recovery suggestion, so the CLI can print
a useful message and the journal can record what went wrong.
"""

from typing import Any, Dict, List, Optional

from azure.core.exceptions import ClientAuthenticationError, ResourceNotFoundError


class LoadBalancerUpgradeError(Exception):
    """
    Base exception class for all load balancer upgrade errors.

    Provides structured error information including context, error codes,
    and optional recovery suggestions.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recovery_suggestion: Optional[str] = None,
    ) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            context: Optional dictionary with error context
            cause: Optional underlying exception that caused this error
            recovery_suggestion: Optional suggestion for error recovery
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
        self.recovery_suggestion = recovery_suggestion

    def __str__(self) -> str:
        """Return a formatted error message with context."""
        result = self.message
        if self.error_code:
            result = f"[{self.error_code}] {result}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            result += f" (context: {context_str})"
        if self.cause:
            result += f" (caused by: {self.cause})"
        if self.recovery_suggestion:
            result += f" (suggestion: {self.recovery_suggestion})"
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
            "recovery_suggestion": self.recovery_suggestion,
        }


# Configuration-related exceptions
class ConfigurationError(LoadBalancerUpgradeError):
    """Base class for configuration-related errors."""

    pass


class InvalidConfigurationError(ConfigurationError):
    """Raised when configuration validation fails."""

    def __init__(
        self, message: str, config_section: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = dict(kwargs.get("context") or {})
        if config_section:
            context["config_section"] = config_section
        kwargs["context"] = context
        kwargs.setdefault("error_code", "INVALID_CONFIG")
        kwargs.setdefault(
            "recovery_suggestion", "Check command options and environment variables"
        )
        super().__init__(message, **kwargs)


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration is missing."""

    def __init__(
        self, message: str, missing_keys: Optional[List[str]] = None, **kwargs: Any
    ) -> None:
        context = dict(kwargs.get("context") or {})
        if missing_keys:
            context["missing_keys"] = missing_keys
        kwargs["context"] = context
        kwargs.setdefault("error_code", "MISSING_CONFIG")
        kwargs.setdefault(
            "recovery_suggestion",
            f"Set required configuration: {', '.join(missing_keys)}"
            if missing_keys
            else "Set required configuration",
        )
        super().__init__(message, **kwargs)


# Precondition exceptions (raised before anything is mutated)
class PreconditionFailedError(LoadBalancerUpgradeError):
    """Raised when the source load balancer cannot be migrated safely."""

    def __init__(
        self, message: str, resource_name: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = dict(kwargs.get("context") or {})
        if resource_name:
            context["resource_name"] = resource_name
        kwargs["context"] = context
        kwargs.setdefault("error_code", "PRECONDITION_FAILED")
        super().__init__(message, **kwargs)
        self.resource_name = resource_name


class DestinationExistsError(PreconditionFailedError):
    """Raised when the destination load balancer already exists."""

    def __init__(self, message: str, resource_name: Optional[str] = None, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "DESTINATION_EXISTS")
        kwargs.setdefault(
            "recovery_suggestion",
            "Choose a new destination name, or inspect the migration journal "
            "and finish the previous run manually",
        )
        super().__init__(message, resource_name=resource_name, **kwargs)


# Azure provider exceptions
class AzureProviderError(LoadBalancerUpgradeError):
    """Base class for errors reported by the Azure network provider."""

    def __init__(
        self, message: str, operation: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = dict(kwargs.get("context") or {})
        if operation:
            context["operation"] = operation
        kwargs["context"] = context
        super().__init__(message, **kwargs)
        self.operation = operation


class NotFoundError(AzureProviderError):
    """Raised when a resource the migration depends on does not exist."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "RESOURCE_NOT_FOUND")
        kwargs.setdefault(
            "recovery_suggestion",
            "Check the resource group and resource names, and the active subscription",
        )
        super().__init__(message, **kwargs)


class AccessDeniedError(AzureProviderError):
    """Raised when the credential is not authorized for an operation."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "ACCESS_DENIED")
        kwargs.setdefault(
            "recovery_suggestion",
            "Try running 'az login' or grant Network Contributor on the resource group",
        )
        super().__init__(message, **kwargs)


class MalformedResponseError(AzureProviderError):
    """Raised when a provider payload cannot be parsed into the data model."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "MALFORMED_RESPONSE")
        super().__init__(message, **kwargs)


class ResourceIdError(MalformedResponseError):
    """Raised when an Azure resource ID does not have the expected shape."""

    def __init__(
        self, message: str, resource_id: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = dict(kwargs.get("context") or {})
        if resource_id:
            context["resource_id"] = resource_id
        kwargs["context"] = context
        kwargs.setdefault("error_code", "INVALID_RESOURCE_ID")
        super().__init__(message, **kwargs)


class ProviderOperationError(AzureProviderError):
    """Raised when a create/update/delete call is rejected by the provider."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        context = dict(kwargs.get("context") or {})
        if status_code:
            context["status_code"] = status_code
        kwargs["context"] = context
        kwargs.setdefault("error_code", "PROVIDER_OPERATION_FAILED")
        super().__init__(message, **kwargs)
        self.status_code = status_code


# Migration exceptions
class PartialMigrationError(LoadBalancerUpgradeError):
    """
    Raised when a step fails after at least one mutating step succeeded.

    Nothing is rolled back. Both load balancers are left as they are and the
    journal lists every step that completed before the failure.
    """

    def __init__(
        self,
        message: str,
        step: Optional[str] = None,
        completed_steps: Optional[List[str]] = None,
        journal_path: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = dict(kwargs.get("context") or {})
        if step:
            context["failed_step"] = step
        if completed_steps:
            context["completed_steps"] = len(completed_steps)
        if journal_path:
            context["journal"] = journal_path
        kwargs["context"] = context
        kwargs.setdefault("error_code", "PARTIAL_MIGRATION")
        kwargs.setdefault(
            "recovery_suggestion",
            "Review the migration journal and remediate both load balancers manually",
        )
        super().__init__(message, **kwargs)
        self.step = step
        self.completed_steps = list(completed_steps or [])
        self.journal_path = journal_path


def _status_code(exc: Exception) -> Optional[int]:
    status = getattr(exc, "status_code", None)
    if status is None:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def wrap_azure_exception(
    exc: Exception,
    operation: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
) -> AzureProviderError:
    """
    Wrap an Azure SDK exception in our exception hierarchy.

    Args:
        exc: The original exception
        operation: Name of the provider operation that failed
        context: Optional context information

    Returns:
        AzureProviderError: Wrapped exception with enhanced context
    """
    error_message = str(exc)
    status = _status_code(exc)

    if isinstance(exc, ResourceNotFoundError) or status == 404:
        return NotFoundError(
            f"Resource not found: {error_message}",
            operation=operation,
            context=context,
            cause=exc,
        )
    if isinstance(exc, ClientAuthenticationError) or status in (401, 403):
        return AccessDeniedError(
            f"Access denied: {error_message}",
            operation=operation,
            context=context,
            cause=exc,
        )
    return ProviderOperationError(
        f"Azure operation failed: {error_message}",
        operation=operation,
        status_code=status,
        context=context,
        cause=exc,
    )
