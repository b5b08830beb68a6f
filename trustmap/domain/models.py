"""
Domain models for trustmap.

Records are immutable and built fresh from a single directory result, so a
value from one search result can never leak into the next. Canonicalisation
(NetBIOS names upper case, DNS names lower case, empty strings absent) lives
in the validators so every producer gets it for free.
"""
from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

# Characters outside the XML 1.0 Char production cannot appear in the report.
_XML_INVALID = re.compile(r"[^\x09\x0A\x0D\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")

_FROZEN = {
    "frozen": True,
    "populate_by_name": True,
    "arbitrary_types_allowed": False,
}


def _first(value: Any) -> Any:
    """Directory attributes may come back as single-valued lists."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _clean(value: Any) -> Optional[str]:
    value = _first(value)
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    value = str(value).strip()
    if _XML_INVALID.search(value):
        raise ValueError(f"contains characters not allowed in XML: {value!r}")
    return value or None


def describe_invalid(exc: ValidationError) -> str:
    """One-line summary of a record that failed validation."""
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )


class DomainRecord(BaseModel):
    """
    One domain of the forest, read from its crossRef object.
    """

    name: str = Field(..., min_length=1, description="NetBIOS name, upper case.")
    dns_name: Optional[str] = Field(None, description="DNS root, lower case.")
    created: Optional[datetime] = Field(None, description="whenCreated of the crossRef.")
    changed: Optional[datetime] = Field(None, description="whenChanged of the crossRef.")
    naming_context: Optional[str] = Field(
        None, description="nCName of the domain partition; trust search base."
    )

    model_config = _FROZEN

    @field_validator("name", mode="before")
    @classmethod
    def _upper_name(cls, value: Any) -> Any:
        cleaned = _clean(value)
        return cleaned.upper() if cleaned else cleaned

    @field_validator("dns_name", mode="before")
    @classmethod
    def _lower_dns(cls, value: Any) -> Optional[str]:
        cleaned = _clean(value)
        return cleaned.lower() if cleaned else None

    @field_validator("naming_context", mode="before")
    @classmethod
    def _strip_nc(cls, value: Any) -> Optional[str]:
        return _clean(value)

    def target(self, prefer_dns: bool = True) -> str:
        """Connection target for this domain's directory."""
        if prefer_dns and self.dns_name:
            return self.dns_name
        return self.name


class TrustRecord(BaseModel):
    """
    A trustedDomain object found inside one domain. Both fields may be absent.
    """

    name: Optional[str] = Field(None, description="flatName of the trusted domain, upper case.")
    dns_name: Optional[str] = Field(None, description="DNS name of the trusted domain, lower case.")

    model_config = _FROZEN

    @field_validator("name", mode="before")
    @classmethod
    def _upper_name(cls, value: Any) -> Optional[str]:
        cleaned = _clean(value)
        return cleaned.upper() if cleaned else None

    @field_validator("dns_name", mode="before")
    @classmethod
    def _lower_dns(cls, value: Any) -> Optional[str]:
        cleaned = _clean(value)
        return cleaned.lower() if cleaned else None


class DomainFailure(BaseModel):
    """A domain whose trust enumeration failed; the run carries on without it."""

    domain: str
    target: str
    reason: str

    model_config = _FROZEN


class RunSummary(BaseModel):
    """
    Outcome of one enumeration run. Counts only; the records themselves are
    streamed to the report and not kept.
    """

    output: Path
    started: datetime
    finished: datetime
    domains: int = 0
    trusts: int = 0
    failures: List[DomainFailure] = Field(default_factory=list)

    model_config = _FROZEN


__all__ = ["DomainFailure", "DomainRecord", "RunSummary", "TrustRecord", "describe_invalid"]
