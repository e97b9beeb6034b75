"""Wire models exchanged with WebDriver implementations."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

W3C_ELEMENT_KEY = "element-6066-11e4-a52e-4f735fc52c9a"
LEGACY_ELEMENT_KEY = "ELEMENT"


class By(BaseModel):
    """Locator strategy and expression used to search for elements."""

    model_config = ConfigDict(frozen=True)

    using: str
    value: str

    @classmethod
    def css(cls, expr: str) -> "By":
        return cls(using="css selector", value=expr)

    @classmethod
    def link_text(cls, text: str) -> "By":
        return cls(using="link text", value=text)

    @classmethod
    def partial_link_text(cls, text: str) -> "By":
        return cls(using="partial link text", value=text)

    @classmethod
    def tag_name(cls, name: str) -> "By":
        return cls(using="tag name", value=name)

    @classmethod
    def xpath(cls, expr: str) -> "By":
        return cls(using="xpath", value=expr)


class Element(BaseModel):
    """Reference to a remote DOM node.

    Drivers identify elements either under the W3C key or under the legacy
    ``ELEMENT`` key. Both decode to the same value; encoding always uses the
    W3C key.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        validation_alias=AliasChoices(W3C_ELEMENT_KEY, LEGACY_ELEMENT_KEY, "id"),
        serialization_alias=W3C_ELEMENT_KEY,
    )

    def to_json(self) -> dict[str, str]:
        return {W3C_ELEMENT_KEY: self.id}


class Timeouts(BaseModel):
    """Session timeouts in milliseconds."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    implicit: int = 0
    page_load: int = Field(default=300_000, alias="pageLoad")
    script: Optional[int] = Field(
        default=30_000,
        description="Script timeout; ``None`` disables it.",
    )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class Capabilities(BaseModel):
    """Browser configuration requested when a session is created."""

    model_config = ConfigDict(frozen=True)

    always_match: dict[str, Any] = Field(default_factory=dict)

    def to_request(self) -> dict[str, Any]:
        return {"capabilities": {"alwaysMatch": self.always_match}}


class ErrorValue(BaseModel):
    """Error payload found under ``value`` in W3C responses."""

    error: str
    message: str = ""
    stacktrace: Optional[str] = None


class LegacyErrorValue(BaseModel):
    """Error payload used by drivers that still report a numeric ``status``."""

    message: str = ""
