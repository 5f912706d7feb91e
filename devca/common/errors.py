# devca/common/errors.py
"""
Error kinds raised by devca.
Every error derives from DevCAError so the CLI can report any of them
as a single message plus a non-zero exit status.
"""


class DevCAError(Exception):
    """Base class for all devca errors."""


class CryptoError(DevCAError):
    """Key generation or signing failed."""


class ParseError(DevCAError):
    """Malformed PEM/DER, SAN entry, config value or identity record."""


class IoError(DevCAError):
    """Filesystem read, write or delete failed."""


class TrustStoreError(DevCAError):
    """The platform trust-store command failed."""

    def __init__(self, message: str, diagnostic: str = ""):
        super().__init__(message if not diagnostic else f"{message}\n{diagnostic}")
        self.diagnostic = diagnostic


class NotFoundError(DevCAError):
    """CA key material is missing on disk."""


class NotInstalledError(DevCAError):
    """No CA thumbprint is recorded, so there is nothing to uninstall."""


class AlreadyInstalledError(DevCAError):
    """A CA thumbprint is already recorded; uninstall it first."""
