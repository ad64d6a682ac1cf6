"""
Typed token definitions and the semantic reference syntax.

A BrandingDefinition groups typed tokens. Layers carry only raw values, so
:func:`layer_from_definition` flattens a definition into a layer's token map,
encoding each semantic token as a ``{reference}`` string.

Token kinds:
- PrimitiveToken: raw design values (colors, spacing, ...)
- SemanticToken: points at another token key
- BrandToken: identity assets (logo, name, ...)
- BehavioralToken: string, number or boolean switches
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import ClassVar, Union

from brandkit.types import TOKEN_VALUE_TYPES, BrandingLayer, HierarchyLevel, TokenValue

REFERENCE_OPEN = "{"
REFERENCE_CLOSE = "}"


def make_reference(key: str) -> str:
    """Return the raw value that points at *key*, e.g. ``"{color.blue.500}"``."""
    return f"{REFERENCE_OPEN}{key}{REFERENCE_CLOSE}"


def parse_reference(value: object) -> str | None:
    """
    Return the referenced key if *value* is a semantic reference, else ``None``.

    Only strings of the exact form ``{key}`` are references.

    Example:
        >>> parse_reference("{color.brand}")
        'color.brand'
        >>> parse_reference("#3B82F6") is None
        True
    """
    if (
        isinstance(value, str)
        and len(value) >= 2
        and value.startswith(REFERENCE_OPEN)
        and value.endswith(REFERENCE_CLOSE)
    ):
        return value[1:-1]
    return None


class TokenType(str, Enum):
    PRIMITIVE = "primitive"
    SEMANTIC = "semantic"
    BRAND = "brand"
    BEHAVIORAL = "behavioral"


PRIMITIVE_CATEGORIES = frozenset(
    {"color", "spacing", "typography", "border", "shadow", "opacity", "duration"}
)
SEMANTIC_CATEGORIES = frozenset({"surface", "text", "accent", "feedback", "interactive"})
BRAND_CATEGORIES = frozenset({"logo", "name", "tagline", "identity"})
BEHAVIORAL_CATEGORIES = frozenset(
    {"animation", "interaction", "accessibility", "locale", "feature"}
)


def _check_token(key: str, category: str, allowed: frozenset[str], kind: TokenType) -> None:
    if not isinstance(key, str) or not key:
        raise ValueError(f"{kind.value} token key must be a non-empty string")
    if category not in allowed:
        raise ValueError(
            f"Unknown {kind.value} token category {category!r} for {key!r}. "
            f"Expected one of: {', '.join(sorted(allowed))}"
        )


@dataclass(frozen=True)
class PrimitiveToken:
    key: str
    value: str
    category: str

    type: ClassVar[TokenType] = TokenType.PRIMITIVE

    def __post_init__(self) -> None:
        _check_token(self.key, self.category, PRIMITIVE_CATEGORIES, self.type)

    def layer_value(self) -> TokenValue:
        return self.value


@dataclass(frozen=True)
class SemanticToken:
    """A token whose value is another token's value, looked up at resolution time."""

    key: str
    reference: str
    category: str

    type: ClassVar[TokenType] = TokenType.SEMANTIC

    def __post_init__(self) -> None:
        _check_token(self.key, self.category, SEMANTIC_CATEGORIES, self.type)
        if not self.reference:
            raise ValueError(f"Semantic token {self.key!r} needs a reference")

    def layer_value(self) -> TokenValue:
        return make_reference(self.reference)


@dataclass(frozen=True)
class BrandToken:
    key: str
    value: str
    category: str

    type: ClassVar[TokenType] = TokenType.BRAND

    def __post_init__(self) -> None:
        _check_token(self.key, self.category, BRAND_CATEGORIES, self.type)

    def layer_value(self) -> TokenValue:
        return self.value


@dataclass(frozen=True)
class BehavioralToken:
    key: str
    value: TokenValue
    category: str

    type: ClassVar[TokenType] = TokenType.BEHAVIORAL

    def __post_init__(self) -> None:
        _check_token(self.key, self.category, BEHAVIORAL_CATEGORIES, self.type)
        if not isinstance(self.value, TOKEN_VALUE_TYPES):
            raise TypeError(
                f"Behavioral token {self.key!r} must be a string, number or boolean"
            )

    def layer_value(self) -> TokenValue:
        return self.value


Token = Union[PrimitiveToken, SemanticToken, BrandToken, BehavioralToken]


@dataclass(frozen=True)
class BrandingDefinition:
    """
    A named set of typed tokens that layers are built from.

    Attributes:
        id: Definition identifier
        name: Human-readable name
        tokens: The typed tokens; keys must be unique
        description: Optional free text
        created_at: Creation timestamp (ISO-8601)
        updated_at: Last update timestamp (ISO-8601)
    """

    id: str
    name: str
    tokens: tuple[Token, ...] = ()
    description: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("BrandingDefinition.name must not be empty")
        object.__setattr__(self, "tokens", tuple(self.tokens))
        seen: set[str] = set()
        for token in self.tokens:
            if token.key in seen:
                raise ValueError(f"Duplicate token key {token.key!r} in definition {self.id!r}")
            seen.add(token.key)

    def token_map(self) -> dict[str, TokenValue]:
        """Flatten to raw layer values, in declaration order."""
        return {token.key: token.layer_value() for token in self.tokens}


def layer_from_definition(
    definition: BrandingDefinition,
    *,
    layer_id: str,
    level: HierarchyLevel | str,
    priority: int = 0,
    enabled: bool = True,
    valid_from: str | datetime | None = None,
    valid_until: str | datetime | None = None,
    tenant_id: str | None = None,
    partner_id: str | None = None,
    suite_id: str | None = None,
    component_id: str | None = None,
) -> BrandingLayer:
    """
    Build a BrandingLayer carrying every token of *definition*.

    Example:
        >>> definition = BrandingDefinition(
        ...     id="def-1",
        ...     name="Base",
        ...     tokens=(
        ...         PrimitiveToken("color.blue.500", "#3B82F6", "color"),
        ...         SemanticToken("color.primary", "color.blue.500", "accent"),
        ...     ),
        ... )
        >>> layer = layer_from_definition(definition, layer_id="l-1", level="system")
        >>> layer.tokens["color.primary"]
        '{color.blue.500}'
    """
    return BrandingLayer(
        id=layer_id,
        definition_id=definition.id,
        level=HierarchyLevel(level),
        priority=priority,
        tokens=definition.token_map(),
        enabled=enabled,
        valid_from=valid_from,
        valid_until=valid_until,
        tenant_id=tenant_id,
        partner_id=partner_id,
        suite_id=suite_id,
        component_id=component_id,
    )


# ---------------------------------------------------------------------------
# Quick brand configuration
# ---------------------------------------------------------------------------

DEFAULT_PRIMARY_COLOR = "#000000"
DEFAULT_SECONDARY_COLOR = "#ffffff"


@dataclass(frozen=True)
class BrandConfig:
    name: str
    primary_color: str | None = None
    secondary_color: str | None = None
    logo_url: str | None = None


def create_brand_config(config: BrandConfig) -> BrandConfig:
    """Return a copy of *config* with default primary/secondary colors filled in."""
    return BrandConfig(
        name=config.name,
        primary_color=config.primary_color or DEFAULT_PRIMARY_COLOR,
        secondary_color=config.secondary_color or DEFAULT_SECONDARY_COLOR,
        logo_url=config.logo_url,
    )
