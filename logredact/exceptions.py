"""Errors raised while setting up logging or delivering records to a sink."""


class LogSetupError(Exception):
    """Logging could not be configured."""


class EmptyAppNameError(LogSetupError):
    """setup_logs() was called without an application name."""


class InvalidLogOutputConfig(LogSetupError):
    """Neither stdout, a log file nor a remote sink is configured."""


class SinkError(Exception):
    """A sink failed to deliver a record."""
