from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field


class HelmRepository(BaseModel):
    name: str = Field(..., description="Local alias registered with `helm repo add`")
    url: str

    @staticmethod
    def from_helm_entry(entry: dict[str, Any]) -> "HelmRepository":
        return HelmRepository(name=str(entry.get("name", "")), url=str(entry.get("url", "")))


class ReleaseSpec(BaseModel):
    """Arguments for one `helm upgrade --install` call."""

    name: str
    chart: str
    namespace: str
    values_files: list[Path] = Field(default_factory=list)
    set_values: dict[str, str] = Field(default_factory=dict)
    set_string_values: dict[str, str] = Field(default_factory=dict)
    create_namespace: bool = False
    wait: bool = True
    timeout: Optional[str] = None
