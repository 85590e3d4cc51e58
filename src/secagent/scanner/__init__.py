"""Scanner subsystem — SCALIBR scans of filesystems and container images."""

from secagent.scanner.engine import ScalibrEngine, ScanEngine, plugin_names, plugin_names_for_mode
from secagent.scanner.errors import ImageLoadError, SBOMExportError, ScanError, ScanTimeoutError
from secagent.scanner.image import ContainerImage, ImageSource, classify_image_ref
from secagent.scanner.models import (
    GenericFinding,
    ImageScanOptions,
    ImageScanResult,
    Package,
    PackageVuln,
    ScanMode,
    ScanOptions,
    ScanResult,
    Secret,
)

__all__ = [
    "ContainerImage",
    "GenericFinding",
    "ImageLoadError",
    "ImageScanOptions",
    "ImageScanResult",
    "ImageSource",
    "Package",
    "PackageVuln",
    "SBOMExportError",
    "ScalibrEngine",
    "ScanEngine",
    "ScanError",
    "ScanMode",
    "ScanOptions",
    "ScanResult",
    "ScanTimeoutError",
    "Secret",
    "classify_image_ref",
    "plugin_names",
    "plugin_names_for_mode",
]
