"""Shared error types for the scanner layer."""


class ScanError(Exception):
    """Base error for all scan failures (engine missing, crashed, timed out)."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail or "scan failed")


class ScanTimeoutError(ScanError):
    """The scanner did not finish within the configured timeout."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"scanner timed out after {timeout}s")


class ImageLoadError(ScanError):
    """A container image reference could not be resolved or loaded."""

    def __init__(self, image_ref: str, detail: str = "") -> None:
        self.image_ref = image_ref
        super().__init__(f"loading image {image_ref!r}" + (f": {detail}" if detail else ""))


class SBOMExportError(ScanError):
    """The scanner could not export the inventory as an SBOM document."""
