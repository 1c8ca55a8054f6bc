"""
Custom exceptions for affinity-reconcile with helpful error messages.
"""


class AffinityReconcileError(Exception):
    """Base exception for affinity-reconcile errors."""

    def __init__(self, message: str, suggestion: str = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.message)

    def __str__(self):
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class WorkspaceError(AffinityReconcileError):
    """Errors related to workspace management."""

    pass


class WorkspaceNotFoundError(WorkspaceError):
    """Workspace not found or not initialized."""

    def __init__(self, path: str = None):
        message = "Not in an affinity-reconcile workspace."
        if path:
            message = f"No affinity-reconcile workspace found at: {path}"

        suggestion = (
            "Initialize a new workspace with:\n"
            "  affinity-reconcile init <workspace-dir>\n\n"
            "Or navigate to an existing workspace directory."
        )
        super().__init__(message, suggestion)


class ConfigurationError(AffinityReconcileError):
    """Configuration file errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Configuration file is invalid."""

    def __init__(self, error_details: str):
        message = f"Invalid configuration file: {error_details}"

        suggestion = (
            "Fix the affinity-reconcile.yaml file.\n"
            "You can regenerate the default configuration:\n"
            "  mv affinity-reconcile.yaml affinity-reconcile.yaml.backup\n"
            "  affinity-reconcile init .\n\n"
            "Then merge your settings back from the backup."
        )
        super().__init__(message, suggestion)


class PlatformError(AffinityReconcileError):
    """Errors raised while talking to the virtualization platform."""

    pass


class PlatformNotAvailableError(PlatformError):
    """Platform client cannot be used (missing credentials, etc.)."""

    def __init__(self, provider_name: str, password_env: str = None):
        message = f"Platform provider '{provider_name}' is not available."

        if password_env:
            suggestion = (
                f"Set the password environment variable:\n"
                f"  export {password_env}=<password>\n\n"
                f"Or work offline against an inventory file:\n"
                f"  Edit affinity-reconcile.yaml and set:\n"
                f"    platform:\n"
                f"      provider: inventory\n"
                f"      inventory_file: inventory.yaml"
            )
        else:
            suggestion = (
                "Check the platform section of affinity-reconcile.yaml.\n"
                "Ensure the provider is correctly configured."
            )
        super().__init__(message, suggestion)


class LookupFailure(PlatformError):
    """A named resource (store, pool, group, host, workload, cluster) does not exist."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        message = f"{kind.capitalize()} not found: {name}"
        super().__init__(message)


class ResolutionFailure(AffinityReconcileError):
    """Placement recommendation was rejected, empty, or could not be requested."""

    def __init__(self, workload: str, target: str, reason: str):
        self.workload = workload
        self.target = target
        self.reason = reason
        message = f"Cannot resolve placement for '{workload}' on '{target}': {reason}"
        suggestion = (
            "Check that the destination store or storage pool exists and has capacity.\n"
            "No relocation was submitted for this workload."
        )
        super().__init__(message, suggestion)


class DivisionUndefined(AffinityReconcileError):
    """A balance target cannot be computed."""

    def __init__(self, reason: str, domain: str = None):
        self.reason = reason
        self.domain = domain
        message = f"Balance target undefined: {reason}"
        if domain:
            message = f"Balance target undefined for domain '{domain}': {reason}"
        super().__init__(message)


class InvalidPlanShape(AffinityReconcileError):
    """Per-disk destination count does not match the workload's disk count."""

    def __init__(self, workload: str, expected: int, actual: int):
        self.workload = workload
        self.expected = expected
        self.actual = actual
        message = (
            f"Relocation plan for '{workload}' has {actual} disk destination(s), "
            f"workload has {expected} disk(s)"
        )
        super().__init__(message)


class Unclassifiable(AffinityReconcileError):
    """A rogue workload's storage domain cannot be inferred."""

    def __init__(self, workload: str, inspected: list[str]):
        self.workload = workload
        self.inspected = list(inspected)
        locations = ", ".join(self.inspected) or "no storage"
        message = f"Cannot infer a domain for '{workload}' (inspected: {locations})"
        super().__init__(message)


class RelocationInFlightError(AffinityReconcileError):
    """A relocation for this workload was already submitted by this executor."""

    def __init__(self, workload: str, task_id: str):
        self.workload = workload
        self.task_id = task_id
        message = f"Relocation already in flight for '{workload}' (task {task_id})"
        super().__init__(message)


class RetryableError(AffinityReconcileError):
    """Error that should be retried."""

    def __init__(self, original_error: Exception, attempt: int, max_attempts: int):
        self.original_error = original_error
        self.attempt = attempt
        self.max_attempts = max_attempts

        message = f"Operation failed (attempt {attempt}/{max_attempts}): " f"{str(original_error)}"
        super().__init__(message)


def format_error_for_cli(error: Exception) -> str:
    """
    Format an exception for CLI display with helpful information.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, AffinityReconcileError):
        output = f"[red]Error:[/red] {error.message}"
        if error.suggestion:
            output += f"\n\n[yellow]{error.suggestion}[/yellow]"
        return output
    else:
        return f"[red]Error:[/red] {str(error)}"
