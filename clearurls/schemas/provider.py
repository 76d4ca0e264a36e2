"""Provider records compiled from a ClearURLs rule document."""

from __future__ import annotations

from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, PrivateAttr
from pydantic import field_validator, model_validator
from pydantic.alias_generators import to_camel

from clearurls.utils.patterns import (
    Pattern,
    compile_pattern,
    find_capture,
    matches,
    remove_all,
)


def _compile_all(field: str, sources: tuple[str, ...], *, anchored: bool) -> tuple[Pattern, ...]:
    compiled: list[Pattern] = []
    for i, source in enumerate(sources):
        try:
            compiled.append(compile_pattern(source, anchored=anchored))
        except ValueError as e:
            raise ValueError(f"{field}[{i}]: {e}") from e
    return tuple(compiled)


class ProviderRule(BaseModel):
    """How to recognise and clean the URLs of one site or rule category.

    Field names accept both snake_case and the camelCase keys used by rule
    documents (``urlPattern``, ``rawRules`` ...). Patterns are compiled once
    at construction; a malformed pattern fails validation instead of being
    dropped.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    name: str
    url_pattern: str
    complete_provider: bool = False
    rules: tuple[str, ...] = ()
    raw_rules: tuple[str, ...] = ()
    referral_marketing: tuple[str, ...] = ()
    exceptions: tuple[str, ...] = ()
    redirections: tuple[str, ...] = ()
    # Reserved: accepted from rule documents, not read by the cleaner.
    force_redirection: bool = False

    _url_re: Pattern = PrivateAttr()
    _rule_res: tuple[Pattern, ...] = PrivateAttr(default=())
    _raw_rule_res: tuple[Pattern, ...] = PrivateAttr(default=())
    _referral_res: tuple[Pattern, ...] = PrivateAttr(default=())
    _exception_res: tuple[Pattern, ...] = PrivateAttr(default=())
    _redirection_res: tuple[Pattern, ...] = PrivateAttr(default=())

    @field_validator(
        "rules", "raw_rules", "referral_marketing", "exceptions", "redirections",
        mode="before",
    )
    @classmethod
    def _none_as_empty(cls, value):
        return () if value is None else value

    @field_validator("url_pattern")
    @classmethod
    def _non_empty_url_pattern(cls, value: str) -> str:
        if not (value or "").strip():
            raise ValueError("urlPattern must be non-empty")
        return value

    @model_validator(mode="after")
    def _compile_patterns(self) -> "ProviderRule":
        self._url_re = compile_pattern(self.url_pattern)
        self._rule_res = _compile_all("rules", self.rules, anchored=True)
        self._raw_rule_res = _compile_all("rawRules", self.raw_rules, anchored=False)
        self._referral_res = _compile_all(
            "referralMarketing", self.referral_marketing, anchored=True
        )
        self._exception_res = _compile_all("exceptions", self.exceptions, anchored=False)
        self._redirection_res = _compile_all(
            "redirections", self.redirections, anchored=False
        )
        return self

    def matches_url(self, url: str) -> bool:
        """True when the URL pattern matches and no exception does."""
        if not matches(self._url_re, url):
            return False
        for exception in self._exception_res:
            if matches(exception, url):
                return False
        return True

    def get_redirection(self, url: str) -> str | None:
        """Return the percent-decoded target embedded in a redirector URL.

        Patterns are tried in order. A pattern that matches but whose capture
        group is empty or did not take part falls through to the next one.
        """
        for redirection in self._redirection_res:
            target = find_capture(redirection, url)
            # An empty capture tries the next pattern instead of stopping here.
            if target:
                return unquote(target)
        return None

    def effective_rules(self, include_referral: bool = False) -> tuple[Pattern, ...]:
        if include_referral:
            return self._rule_res + self._referral_res
        return self._rule_res

    def apply_raw_rules(self, url: str) -> str:
        for raw_rule in self._raw_rule_res:
            url = remove_all(raw_rule, url)
        return url
