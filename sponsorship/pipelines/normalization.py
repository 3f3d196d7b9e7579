"""Text cleanup and strict normalization of extraction-service output.

The extraction service returns loosely typed JSON. Everything it returns is
coerced here into a frozen ``ExtractedResult``; values that do not coerce
cleanly become ``None`` / ``""`` / ``()`` instead of being trusted.
"""
from __future__ import annotations

import logging
import math
import re
import unicodedata
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from sponsorship.errors import MalformedResponse, NoPackagesExtracted

logger = logging.getLogger(__name__)

PLACEMENT_MAX_CHARS = 100
_AMOUNT_STRIP = re.compile(r"[$,\s]")
_DIGIT_GROUPS = re.compile(r"\d+")


def normalize_whitespace(text: str) -> str:
    """Normalize whitespace: collapse multiple spaces, remove leading/trailing."""
    text = re.sub(r'\s+', ' ', text)
    return text.strip()


def normalize_unicode(text: str) -> str:
    """Compose characters (NFC) so equal labels compare equal."""
    return unicodedata.normalize('NFC', text)


def clean_text(text: str) -> str:
    """Cleanup applied to text pulled out of a document."""
    if not text or not text.strip():
        return ""
    return normalize_whitespace(normalize_unicode(text))


def coerce_amount(value: Any) -> float | None:
    """Coerce a money amount to a non-negative float.

    Strings are stripped of ``$``, commas and whitespace first
    (``"$25,000"`` → ``25000.0``). Anything else yields ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = _AMOUNT_STRIP.sub("", value)
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def coerce_count(value: Any) -> int | None:
    """Coerce a head count to a non-negative integer or ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if not math.isfinite(value) or value < 0 or not value.is_integer():
            return None
        return int(value)
    if isinstance(value, str):
        groups = _DIGIT_GROUPS.findall(value.replace(",", ""))
        # "12-14 players" is a range, not a count
        if len(groups) != 1:
            return None
        return int(groups[0])
    return None


def coerce_text(value: Any) -> str:
    """Trimmed string; non-strings become ``""``."""
    if isinstance(value, str):
        return value.strip()
    return ""


def coerce_placements(value: Any) -> tuple[str, ...]:
    """Trimmed, non-empty placement labels capped at ``PLACEMENT_MAX_CHARS``."""
    if not isinstance(value, (list, tuple)):
        return ()
    labels: list[str] = []
    for item in value:
        if not isinstance(item, str):
            continue
        label = item.strip()
        if not label:
            continue
        if len(label) > PLACEMENT_MAX_CHARS:
            # The service sometimes echoes a full sentence instead of a label
            label = label[:PLACEMENT_MAX_CHARS] + "..."
        labels.append(label)
    return tuple(labels)


def _package_name(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class ExtractedPackage(BaseModel):
    """One sponsorship tier as extracted from the document."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    cost: float | None = None
    raw_placements: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("raw_placements", "placements", "rawPlacements"),
    )

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v: Any) -> str:
        return _package_name(v)

    @field_validator("cost", mode="before")
    @classmethod
    def _cost(cls, v: Any) -> float | None:
        return coerce_amount(v)

    @field_validator("raw_placements", mode="before")
    @classmethod
    def _placements(cls, v: Any) -> tuple[str, ...]:
        return coerce_placements(v)


class ExtractedResult(BaseModel):
    """Normalized commercial terms of one sponsorship document."""
    model_config = ConfigDict(frozen=True)

    funding_goal: float | None = Field(
        default=None,
        validation_alias=AliasChoices("funding_goal", "fundingGoal"),
    )
    term: str = Field(default="", validation_alias=AliasChoices("term", "sponsorship_term"))
    impact: str = Field(default="", validation_alias=AliasChoices("impact", "sponsorship_impact"))
    total_supported: int | None = Field(
        default=None,
        validation_alias=AliasChoices("total_supported", "total_players_supported", "totalSupported"),
    )
    packages: tuple[ExtractedPackage, ...] = ()

    @field_validator("funding_goal", mode="before")
    @classmethod
    def _funding_goal(cls, v: Any) -> float | None:
        return coerce_amount(v)

    @field_validator("term", "impact", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return coerce_text(v)

    @field_validator("total_supported", mode="before")
    @classmethod
    def _total_supported(cls, v: Any) -> int | None:
        return coerce_count(v)

    @field_validator("packages", mode="before")
    @classmethod
    def _packages(cls, v: Any) -> list[Any]:
        if not isinstance(v, (list, tuple)):
            return []
        kept = []
        for pkg in v:
            if isinstance(pkg, ExtractedPackage):
                kept.append(pkg)
            elif isinstance(pkg, dict) and _package_name(pkg.get("name")):
                kept.append(pkg)
        dropped = len(v) - len(kept)
        if dropped:
            logger.info(f"Dropped {dropped} package(s) without a usable name")
        return kept

    def costs(self) -> list[float]:
        return [p.cost for p in self.packages if p.cost is not None]


def normalize_extraction(data: Any) -> ExtractedResult:
    """Validate and coerce a parsed response body into an ``ExtractedResult``.

    Accepts the wire keys of the extraction task (``sponsorship_term``,
    ``placements``...) as well as the model's own field names, so
    normalizing an already normalized result returns an equal result.

    Raises:
        MalformedResponse: If the body is not a JSON object
        NoPackagesExtracted: If no package survives normalization
    """
    if isinstance(data, ExtractedResult):
        data = data.model_dump()
    if not isinstance(data, dict):
        raise MalformedResponse(f"Expected a JSON object, got {type(data).__name__}")

    try:
        result = ExtractedResult.model_validate(data)
    except ValidationError as e:
        raise MalformedResponse(f"Response does not match the extraction contract: {e}") from e

    logger.info(
        "Normalized extraction result",
        extra={
            "funding_goal": result.funding_goal,
            "term": result.term,
            "total_supported": result.total_supported,
            "packages_count": len(result.packages),
        },
    )

    if not result.packages:
        raise NoPackagesExtracted(
            "Analysis did not extract any sponsorship packages. The document may not contain "
            "clearly labeled package tiers."
        )
    return result
