"""brewhttpd errors."""


class Error(Exception):
    """Generic brewhttpd error."""


class SubprocessError(Error):
    """Subprocess handling error."""


class UnsupportedPlatformError(Error):
    """brewhttpd was started on something other than macOS."""


class ConfigurationError(Error):
    """Configuration sanity error."""


class HomebrewError(Error):
    """Homebrew could not be installed or failed to install a package."""


# Apache errors
class ApacheError(Error):
    """Generic Apache configuration error."""


class NoInstallationError(ApacheError):
    """A file the Apache setup depends on is not installed."""


class MisconfigurationError(ApacheError):
    """Apache rejected the configuration or could not be restarted."""


class RollbackError(ApacheError):
    """Backups could not be restored."""


class KeychainError(Error):
    """The certificate could not be added to the keychain."""


class VerificationError(Error):
    """The running server did not answer the smoke test."""


class StateError(Error):
    """The saved state file is missing or unreadable."""
