"""Data models for transform steps and transform profiles.

A transform step is a tagged union keyed on ``type``. Each variant owns a typed
parameter model, so malformed parameters are caught when a step is loaded
instead of when it is applied.
"""

from __future__ import annotations

import re
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

Severity = Literal["cosmetic", "minor", "significant", "critical"]
ProfileScope = Literal["canonical", "model_output"]

SEVERITY_LEVELS: tuple[Severity, ...] = ("cosmetic", "minor", "significant", "critical")
PROFILE_SCOPES: tuple[ProfileScope, ...] = ("canonical", "model_output")


class _StepModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


def _string_items(value: object) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str) and item]


class StripMarkupTagsParams(_StepModel):
    tag_names: list[str] = Field(default_factory=list)

    @field_validator("tag_names", mode="before")
    @classmethod
    def _keep_strings(cls, value: object) -> list[str]:
        return _string_items(value)


class StripParagraphMarkersParams(_StepModel):
    markers: list[str] = Field(default_factory=list)

    @field_validator("markers", mode="before")
    @classmethod
    def _keep_strings(cls, value: object) -> list[str]:
        return _string_items(value)


class PatternListParams(_StepModel):
    """Regex patterns removed globally, in list order."""

    patterns: list[str] = Field(default_factory=list)

    @field_validator("patterns", mode="before")
    @classmethod
    def _compile_patterns(cls, value: object, info: ValidationInfo) -> list[str]:
        context = info.context if isinstance(info.context, dict) else {}
        lenient = bool(context.get("lenient"))
        kept: list[str] = []
        for pattern in _string_items(value):
            try:
                re.compile(pattern)
            except re.error as exc:
                if not lenient:
                    raise ValueError(f"invalid regex pattern {pattern!r}: {exc}") from exc
                dropped = context.get("dropped_patterns")
                if isinstance(dropped, list):
                    dropped.append(pattern)
                continue
            kept.append(pattern)
        return kept


class RegexReplaceParams(_StepModel):
    pattern: str | None = None
    replacement: str = ""

    @field_validator("pattern", mode="before")
    @classmethod
    def _pattern_or_none(cls, value: object) -> str | None:
        return value if isinstance(value, str) and value else None

    @field_validator("replacement", mode="before")
    @classmethod
    def _replacement_or_empty(cls, value: object) -> str:
        return value if isinstance(value, str) else ""

    @model_validator(mode="after")
    def _check_regex(self) -> RegexReplaceParams:
        if self.pattern is None:
            return self
        try:
            # Template errors (bad group references) surface on compile, even with no match.
            re.compile(self.pattern).sub(self.replacement, "")
        except re.error as exc:
            raise ValueError(f"invalid regex replacement {self.pattern!r}: {exc}") from exc
        return self


class ReplaceMapParams(_StepModel):
    """Literal substring replacements applied in insertion order."""

    replacements: dict[str, str] = Field(default_factory=dict, alias="map")

    @field_validator("replacements", mode="before")
    @classmethod
    def _require_mapping(cls, value: object) -> dict[str, str]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("map must be an object of literal replacements")
        return {
            key: replacement
            for key, replacement in value.items()
            if isinstance(key, str) and key and isinstance(replacement, str)
        }


class NoParams(_StepModel):
    pass


class _StepBase(_StepModel):
    order: int
    enabled: bool = True
    severity: Severity | None = None
    description: str | None = None

    @field_validator("severity", mode="before")
    @classmethod
    def _known_severity(cls, value: object) -> object:
        # Severity only drives UI grouping; an unknown label must not disable the step.
        return value if value in SEVERITY_LEVELS else None


class StripMarkupTagsStep(_StepBase):
    type: Literal["stripMarkupTags"] = "stripMarkupTags"
    params: StripMarkupTagsParams = Field(default_factory=StripMarkupTagsParams)


class StripParagraphMarkersStep(_StepBase):
    type: Literal["stripParagraphMarkers"] = "stripParagraphMarkers"
    params: StripParagraphMarkersParams = Field(default_factory=StripParagraphMarkersParams)


class StripVerseNumbersStep(_StepBase):
    type: Literal["stripVerseNumbers"] = "stripVerseNumbers"
    params: PatternListParams = Field(default_factory=PatternListParams)


class StripHeadingsStep(_StepBase):
    type: Literal["stripHeadings"] = "stripHeadings"
    params: PatternListParams = Field(default_factory=PatternListParams)


class RegexReplaceStep(_StepBase):
    type: Literal["regexReplace"] = "regexReplace"
    params: RegexReplaceParams = Field(default_factory=RegexReplaceParams)


class ReplaceMapStep(_StepBase):
    type: Literal["replaceMap"] = "replaceMap"
    params: ReplaceMapParams = Field(default_factory=ReplaceMapParams)


class CollapseWhitespaceStep(_StepBase):
    type: Literal["collapseWhitespace"] = "collapseWhitespace"
    params: NoParams = Field(default_factory=NoParams)


class TrimStep(_StepBase):
    type: Literal["trim"] = "trim"
    params: NoParams = Field(default_factory=NoParams)


TransformStep = Annotated[
    Union[
        StripMarkupTagsStep,
        StripParagraphMarkersStep,
        StripVerseNumbersStep,
        StripHeadingsStep,
        RegexReplaceStep,
        ReplaceMapStep,
        CollapseWhitespaceStep,
        TrimStep,
    ],
    Field(discriminator="type"),
]

STEP_TYPES: tuple[str, ...] = (
    "stripMarkupTags",
    "stripParagraphMarkers",
    "stripVerseNumbers",
    "stripHeadings",
    "regexReplace",
    "replaceMap",
    "collapseWhitespace",
    "trim",
)

TRANSFORM_STEP_ADAPTER: TypeAdapter[Any] = TypeAdapter(TransformStep)


def is_transform_step(value: object) -> bool:
    return isinstance(value, _StepBase)


class TransformProfile(_StepModel):
    """Named, ordered collection of steps scoped to canonical or model output text.

    Rules:
    - step ``order`` values are unique within one profile
    - steps apply in ascending ``order`` regardless of list position
    """

    profile_id: int | None = None
    name: str
    scope: ProfileScope
    version: int = 1
    bible_id: int | None = None
    is_default: bool = False
    description: str | None = None
    is_active: bool = True
    steps: list[TransformStep] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_orders(self) -> TransformProfile:
        seen: set[int] = set()
        for step in self.steps:
            if step.order in seen:
                raise ValueError(f"duplicate step order {step.order} in profile {self.name!r}")
            seen.add(step.order)
        return self

    def ordered_steps(self) -> list[Any]:
        return sorted(self.steps, key=lambda step: step.order)
