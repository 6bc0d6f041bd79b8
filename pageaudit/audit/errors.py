"""Exceptions raised by the audit engine."""


class PageAuditError(Exception):
    """Base class for audit engine errors."""
    pass


class ConfigurationError(PageAuditError):
    """Settings or budget files could not be loaded or validated."""
    pass


class MissingArtifactError(PageAuditError):
    """An audit needs an artifact that was not gathered."""

    def __init__(self, artifact: str, pass_name: str = None):
        self.artifact = artifact
        self.pass_name = pass_name
        if pass_name:
            message = f"Required {artifact} artifact missing for pass '{pass_name}'"
        else:
            message = f"Required {artifact} artifact missing"
        super().__init__(message)


class NoNavigationStartError(PageAuditError):
    """The trace has no navigation start, so no timing can be derived."""

    def __init__(self):
        super().__init__("No navigationStart event found in trace")


class UnknownMetricError(PageAuditError):
    """A metric id has no registered computation strategy."""

    def __init__(self, metric, throttling_method=None):
        self.metric = metric
        self.throttling_method = throttling_method
        name = getattr(metric, 'value', metric)
        if throttling_method is not None:
            method = getattr(throttling_method, 'value', throttling_method)
            message = f"No strategy registered for metric '{name}' with throttling method '{method}'"
        else:
            message = f"Unknown metric '{name}'"
        super().__init__(message)


class ComputationAbortedError(PageAuditError):
    """A pending computed artifact was aborted before it resolved."""

    def __init__(self, key, reason: str = "run aborted"):
        self.key = key
        self.reason = reason
        super().__init__(f"Computation of {key!r} aborted: {reason}")
