"""Argument models for the scan tools.

Each model is the decoded form of one tool's ``arguments`` object.  Types
are strict (``"true"`` is not a boolean), unknown keys are ignored, and a
JSON ``null`` means "use the default".
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr, field_validator, model_validator


class ToolArgs(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class PathArgs(ToolArgs):
    """Arguments of tools that scan a filesystem path."""

    path: StrictStr = "."

    @field_validator("path")
    @classmethod
    def _default_empty_path(cls, value: str) -> str:
        return value or "."


class ScanPathArgs(PathArgs):
    osv_match: StrictBool = True


class ImageArgs(ToolArgs):
    """``image_ref`` is required, but its absence is reported by the tool itself."""

    image_ref: StrictStr = ""


class SBOMArgs(PathArgs):
    format: Literal["spdx", "cdx"] = "spdx"

    @field_validator("format", mode="before")
    @classmethod
    def _default_empty_format(cls, value: Any) -> Any:
        return "spdx" if value == "" else value
