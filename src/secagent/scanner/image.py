"""Container image staging for image scans.

A :class:`ContainerImage` owns a scratch directory that the scanner unpacks
layers into.  It must be released with :meth:`ContainerImage.cleanup` once
the scan result has been rendered.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class ImageSource(str, Enum):
    """Where an image reference is loaded from."""

    TARBALL = "tarball"
    REMOTE = "remote"
    LOCAL = "local"


def classify_image_ref(ref: str) -> ImageSource:
    """Decide how to load *ref*.

    Tarball paths end in ``.tar``/``.tar.gz``; anything with a ``/`` or ``.``
    looks like a registry reference (``alpine:3.19``, ``gcr.io/p/img``);
    bare names are tried against the local docker daemon first.
    """
    if ref.endswith((".tar", ".tar.gz")):
        return ImageSource.TARBALL
    if "/" in ref or "." in ref:
        return ImageSource.REMOTE
    return ImageSource.LOCAL


_SOURCE_FLAGS = {
    ImageSource.TARBALL: "--image-tarball",
    ImageSource.REMOTE: "--remote-image",
    ImageSource.LOCAL: "--image-local-docker",
}


class ContainerImage:
    """A container image staged for scanning in a private scratch directory."""

    def __init__(self, ref: str, source: ImageSource, workdir: Path) -> None:
        self.ref = ref
        self.source = source
        self.workdir = workdir
        self._cleaned = False

    @classmethod
    def stage(cls, ref: str, source: ImageSource | None = None) -> ContainerImage:
        """Allocate a scratch directory for *ref*."""
        workdir = Path(tempfile.mkdtemp(prefix="secagent-image-"))
        return cls(ref, source or classify_image_ref(ref), workdir)

    @property
    def cleaned(self) -> bool:
        return self._cleaned

    def scanner_args(self) -> list[str]:
        """Scanner flags selecting this image as the scan target."""
        return [_SOURCE_FLAGS[self.source], self.ref]

    def cleanup(self) -> None:
        """Remove the scratch directory.  Safe to call more than once."""
        if self._cleaned:
            return
        shutil.rmtree(self.workdir, ignore_errors=True)
        self._cleaned = True
        logger.debug("Released image %s (%s)", self.ref, self.workdir)

    def __repr__(self) -> str:
        return f"ContainerImage(ref={self.ref!r}, source={self.source.value!r})"
