class RipError(Exception):
    """Base class for errors that stop a rip before or after the page loop."""


class ConfigError(RipError):
    """The session config file is missing or unreadable."""


class AuthError(RipError):
    """The session could not be exchanged for CloudFront cookies."""


class EmptyBookError(RipError):
    """Every page was skipped, so there is nothing to save."""
