"""Exceptions raised inside dpe_core."""


class DpeHubError(Exception):
    """Base exception for DPE Hub errors."""


class UpstreamPayloadError(DpeHubError):
    """Raised when the ADEME API answers with a body we cannot use."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"Unexpected payload from {url}: {message}")
