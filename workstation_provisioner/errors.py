from __future__ import annotations

from typing import Optional, Sequence


class ProvisionError(RuntimeError):
    pass


class PreconditionProbeError(ProvisionError):
    pass


class ConfigError(ProvisionError):
    pass


class UnsupportedOSFamily(ProvisionError):
    def __init__(self, os_family: str) -> None:
        super().__init__(f"Unsupported OS family: {os_family or 'unknown'}")
        self.os_family = os_family


class UnsupportedArchitecture(ProvisionError):
    def __init__(self, machine: str, vendor: Optional[str] = None) -> None:
        if vendor:
            msg = f"Unsupported architecture for {vendor}: {machine}"
        else:
            msg = f"Unsupported architecture: {machine}"
        super().__init__(msg)
        self.machine = machine
        self.vendor = vendor


class ExternalCommandFailure(ProvisionError):
    def __init__(
        self,
        message: str,
        *,
        argv: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.argv = list(argv or [])
        self.returncode = returncode
        self.stderr = stderr


class NetworkFetchFailure(ExternalCommandFailure):
    """Metadata or script fetch failed after all retry attempts."""

    def __init__(self, url: str, attempts: int, reason: str) -> None:
        super().__init__(f"Fetch failed after {attempts} attempt(s): {url}: {reason}")
        self.url = url
        self.attempts = attempts
