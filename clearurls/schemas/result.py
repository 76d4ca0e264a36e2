"""Value records returned by the cleaning engine."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator


class CleanResult(BaseModel):
    """Outcome of cleaning one URL."""

    model_config = ConfigDict(frozen=True)

    url: str
    was_modified: bool = False
    was_blocked: bool = False
    was_redirected: bool = False

    @model_validator(mode="after")
    def _single_terminal_flag(self) -> "CleanResult":
        if self.was_blocked and self.was_redirected:
            raise ValueError("A URL cannot be both blocked and redirected")
        return self

    @classmethod
    def unchanged(cls, url: str) -> "CleanResult":
        return cls(url=url)

    def had_any_action(self) -> bool:
        return self.was_modified or self.was_blocked or self.was_redirected


OutcomeKind = Literal["continue", "redirect", "blocked", "abort"]


class ProviderOutcome(BaseModel):
    """What applying a single provider did to the URL being cleaned.

    ``continue`` carries the (possibly rewritten) URL on to the next provider,
    ``redirect`` carries the embedded target, ``blocked`` the URL as it stood,
    and ``abort`` means the provider's raw rules left an unparsable URL.
    """

    model_config = ConfigDict(frozen=True)

    kind: OutcomeKind
    url: str
    raw_modified: bool = False
