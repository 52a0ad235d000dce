"""Per-request scoring options."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..exceptions import ConfigurationError


class RequestOptions(BaseModel):
    """Immutable configuration snapshot for one scoring invocation.

    ``overrides`` maps a score card name to adjustment values that take
    precedence over that card's construction-time defaults.
    """

    disabled_cards: frozenset[str] = frozenset()
    timeout_seconds: float | None = Field(default=None, gt=0)
    max_workers: int | None = Field(default=None, ge=1)
    overrides: Mapping[str, Mapping[str, Any]] = Field(default_factory=dict, validate_default=True)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("overrides", mode="after")
    @classmethod
    def _freeze_overrides(
        cls, value: Mapping[str, Mapping[str, Any]]
    ) -> Mapping[str, Mapping[str, Any]]:
        return MappingProxyType(
            {name: MappingProxyType(dict(values)) for name, values in value.items()}
        )

    @classmethod
    def default(cls) -> "RequestOptions":
        return _DEFAULT_OPTIONS

    @classmethod
    def from_mapping(cls, raw: Any) -> "RequestOptions":
        """Validate ``raw`` into options, rejecting malformed input up front."""
        if raw is None:
            return _DEFAULT_OPTIONS
        if isinstance(raw, RequestOptions):
            return raw
        if not isinstance(raw, Mapping):
            raise ConfigurationError(
                f"Request options must be a mapping, got {type(raw).__name__}"
            )
        try:
            return cls.model_validate(dict(raw))
        except ValidationError as exc:
            errors = [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            ]
            raise ConfigurationError("Invalid request options", errors) from exc

    def is_enabled(self, card_name: str) -> bool:
        return card_name not in self.disabled_cards

    def overrides_for(self, card_name: str) -> Mapping[str, Any]:
        return self.overrides.get(card_name, _EMPTY)

    def with_overrides(self, card_name: str, **values: Any) -> "RequestOptions":
        merged = {name: dict(existing) for name, existing in self.overrides.items()}
        merged.setdefault(card_name, {}).update(values)
        return RequestOptions(
            disabled_cards=self.disabled_cards,
            timeout_seconds=self.timeout_seconds,
            max_workers=self.max_workers,
            overrides=merged,
        )

    def __hash__(self) -> int:
        # Override values must be hashable scalars; the mappings are read-only proxies.
        return hash(
            (
                self.disabled_cards,
                self.timeout_seconds,
                self.max_workers,
                frozenset(
                    (name, frozenset(values.items())) for name, values in self.overrides.items()
                ),
            )
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "disabled_cards": sorted(self.disabled_cards),
            "timeout_seconds": self.timeout_seconds,
            "max_workers": self.max_workers,
            "overrides": {name: dict(values) for name, values in self.overrides.items()},
        }


_EMPTY: Mapping[str, Any] = MappingProxyType({})
_DEFAULT_OPTIONS = RequestOptions()


__all__ = ["RequestOptions"]
