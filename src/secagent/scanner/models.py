"""Scanner data models — the inventory a SCALIBR scan produces.

Field names follow the scanner's JSON result (camelCase on the wire,
snake_case in Python).  Only the fields the reports and tools consume are
modelled; everything else is ignored on load.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from secagent.scanner.image import ContainerImage


class _ScanModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ScanMode(str, Enum):
    """Which plugin set a scan loads."""

    SCA = "sca"
    SECRETS = "secrets"
    FULL = "full"
    HARDEN = "harden"


class Severity(str, Enum):
    """Severity of a generic (detector) finding."""

    UNSPECIFIED = "UNSPECIFIED"
    MINIMAL = "MINIMAL"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


# ---------------------------------------------------------------------------
# Packages and vulnerabilities
# ---------------------------------------------------------------------------


class LayerMetadata(_ScanModel):
    """Which image layer introduced a package."""

    index: int = -1
    command: str = ""
    diff_id: str = ""


class Package(_ScanModel):
    """A software package discovered by an extractor."""

    name: str
    version: str = ""
    ecosystem: str = ""
    locations: list[str] = []
    layer_metadata: LayerMetadata | None = None

    @property
    def location(self) -> str:
        return self.locations[0] if self.locations else ""


class OSVSeverity(_ScanModel):
    type: str = ""
    score: str = ""


class OSVEvent(_ScanModel):
    introduced: str = ""
    fixed: str = ""


class OSVRange(_ScanModel):
    type: str = ""
    events: list[OSVEvent] = []


class OSVAffected(_ScanModel):
    ranges: list[OSVRange] = []


class Vulnerability(_ScanModel):
    """The subset of an OSV record used in reports."""

    id: str = ""
    summary: str = ""
    severity: list[OSVSeverity] = []
    affected: list[OSVAffected] = []

    @property
    def severity_score(self) -> str:
        return self.severity[0].score if self.severity else ""

    @property
    def fixed_version(self) -> str:
        """The last ``fixed`` event across all affected ranges."""
        fixed = ""
        for aff in self.affected:
            for rng in aff.ranges:
                for event in rng.events:
                    if event.fixed:
                        fixed = event.fixed
        return fixed


class PackageVuln(_ScanModel):
    """A vulnerability matched against a discovered package."""

    vulnerability: Vulnerability | None = None
    package: Package | None = None


# ---------------------------------------------------------------------------
# Secrets and generic findings
# ---------------------------------------------------------------------------


class SecretValidation(_ScanModel):
    status: str = ""
    at: str | None = None


class Secret(_ScanModel):
    """A credential or API key found at a location."""

    location: str = ""
    kind: str = ""
    validation: SecretValidation = Field(default_factory=SecretValidation)

    @property
    def validated(self) -> bool:
        return bool(self.validation.at)


class AdvisoryId(_ScanModel):
    publisher: str = ""
    reference: str = ""


class Advisory(_ScanModel):
    id: AdvisoryId | None = None
    title: str = ""
    sev: Severity = Severity.UNSPECIFIED
    description: str = ""
    recommendation: str = ""

    @field_validator("sev", mode="before")
    @classmethod
    def _strip_enum_prefix(cls, value: Any) -> Any:
        if isinstance(value, str) and value.startswith("SEVERITY_"):
            return value.removeprefix("SEVERITY_")
        return value


class GenericFinding(_ScanModel):
    """A detector result (misconfiguration, weak credential, EOL software...)."""

    adv: Advisory | None = None
    target: dict[str, Any] = {}


# ---------------------------------------------------------------------------
# Scan results
# ---------------------------------------------------------------------------


class Inventory(_ScanModel):
    packages: list[Package] = []
    package_vulns: list[PackageVuln] = []
    secrets: list[Secret] = []
    generic_findings: list[GenericFinding] = []


class ScanStatus(_ScanModel):
    status: str = "SUCCEEDED"
    failure_reason: str = ""


class ScanResult(_ScanModel):
    """A complete scan result with convenience accessors."""

    version: str = ""
    status: ScanStatus = Field(default_factory=ScanStatus)
    inventory: Inventory = Field(default_factory=Inventory)

    @property
    def packages(self) -> list[Package]:
        return self.inventory.packages

    @property
    def vulns(self) -> list[PackageVuln]:
        return self.inventory.package_vulns

    @property
    def secrets(self) -> list[Secret]:
        return self.inventory.secrets

    @property
    def findings(self) -> list[GenericFinding]:
        return self.inventory.generic_findings

    @property
    def has_vulns(self) -> bool:
        return len(self.vulns) > 0

    @property
    def has_secrets(self) -> bool:
        return len(self.secrets) > 0

    @property
    def has_findings(self) -> bool:
        return len(self.findings) > 0


class ImageScanResult(ScanResult):
    """A scan result that still holds the loaded image.

    Owned by a single tool call; :meth:`ScanEngine.scan_image` releases the
    image when its context exits.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    image: ContainerImage | None = Field(default=None, exclude=True)


# ---------------------------------------------------------------------------
# Scan options
# ---------------------------------------------------------------------------


class ScanOptions(BaseModel):
    """Configures a filesystem scan."""

    target: str = "."
    mode: ScanMode = ScanMode.SCA
    extra_plugins: list[str] = []
    with_osv_match: bool = False
    with_reachability: bool = False
    with_secret_validation: bool = False
    with_license_enrichment: bool = False
    max_file_size: int = 0
    dirs_to_skip: list[str] = []
    skip_dir_regex: str = ""
    use_gitignore: bool = False


class ImageScanOptions(BaseModel):
    """Configures a container image scan."""

    image_ref: str
    extra_plugins: list[str] = []
    with_osv_match: bool = True
