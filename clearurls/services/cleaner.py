"""The URL cleaning engine."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from clearurls.errors import UrlDecompositionError
from clearurls.schemas.provider import ProviderRule
from clearurls.schemas.result import CleanResult, ProviderOutcome
from clearurls.services.rules import load_default_rules, load_rules
from clearurls.utils.params import remove_matching_fields
from clearurls.utils.urls import decompose_url, is_cleanable_url, parse_fields, recompose_url

logger = logging.getLogger(__name__)


class UrlCleaner:
    """Applies every matching provider of a ruleset to a URL.

    Providers run in ruleset order and all of them get a chance: a
    site-specific provider and a catch-all provider can both strip fields
    from the same URL. A redirection or a complete (blocking) provider ends
    the call early.

    The provider tuple never changes after construction, so one instance can
    be shared freely. The referral-marketing flag is read once per call;
    pass ``allow_referral_marketing`` to ``clean()`` to decide it per call
    instead of relying on the instance default.
    """

    def __init__(
        self,
        providers: Iterable[ProviderRule] = (),
        allow_referral_marketing: bool = False,
    ) -> None:
        self._providers = tuple(providers)
        self.allow_referral_marketing = bool(allow_referral_marketing)

    @classmethod
    def from_default(cls, allow_referral_marketing: bool = False) -> "UrlCleaner":
        """Build a cleaner from the ruleset bundled with the package."""
        return cls(load_default_rules(), allow_referral_marketing)

    @classmethod
    def from_file(
        cls, path: str | Path, allow_referral_marketing: bool = False
    ) -> "UrlCleaner":
        return cls(load_rules(path), allow_referral_marketing)

    @property
    def providers(self) -> tuple[ProviderRule, ...]:
        return self._providers

    def set_allow_referral_marketing(self, allow: bool) -> None:
        self.allow_referral_marketing = bool(allow)

    def _resolve_referral(self, override: bool | None) -> bool:
        return self.allow_referral_marketing if override is None else bool(override)

    def clean(
        self, url: str, *, allow_referral_marketing: bool | None = None
    ) -> CleanResult:
        """Clean one URL.

        Inputs that are not absolute URLs with a host (and ``data:`` /
        ``javascript:`` URLs) come back unchanged with every flag false.
        """
        if not is_cleanable_url(url):
            return CleanResult.unchanged(url)
        allow_referral = self._resolve_referral(allow_referral_marketing)
        return self._clean(url, strip_referral=not allow_referral)

    def clean_many(
        self, urls: Iterable[str], *, allow_referral_marketing: bool | None = None
    ) -> list[CleanResult]:
        """Clean several URLs with a single read of the referral flag."""
        strip_referral = not self._resolve_referral(allow_referral_marketing)
        results: list[CleanResult] = []
        for url in urls:
            if not is_cleanable_url(url):
                results.append(CleanResult.unchanged(url))
            else:
                results.append(self._clean(url, strip_referral=strip_referral))
        return results

    def _clean(self, original_url: str, *, strip_referral: bool) -> CleanResult:
        current_url = original_url
        modified = False

        for provider in self._providers:
            outcome = self._apply_provider(
                provider, current_url, strip_referral=strip_referral
            )
            if outcome.kind == "redirect":
                logger.debug("Provider %s redirected to %s", provider.name, outcome.url)
                return CleanResult(url=outcome.url, was_modified=True, was_redirected=True)
            if outcome.kind == "blocked":
                logger.debug("Provider %s blocked %s", provider.name, outcome.url)
                return CleanResult(url=outcome.url, was_blocked=True)
            if outcome.kind == "abort":
                return CleanResult.unchanged(original_url)

            if outcome.raw_modified or outcome.url != original_url:
                modified = True
            current_url = outcome.url

        return CleanResult(url=current_url, was_modified=modified)

    @staticmethod
    def _apply_provider(
        provider: ProviderRule, url: str, *, strip_referral: bool
    ) -> ProviderOutcome:
        if not provider.matches_url(url):
            return ProviderOutcome(kind="continue", url=url)

        target = provider.get_redirection(url)
        if target is not None:
            return ProviderOutcome(kind="redirect", url=target)

        if provider.complete_provider:
            return ProviderOutcome(kind="blocked", url=url)

        stripped = provider.apply_raw_rules(url)
        try:
            parts = decompose_url(stripped)
        except UrlDecompositionError as e:
            logger.debug(
                "Raw rules of provider %s left an unparsable URL (%s); keeping the original",
                provider.name,
                e,
            )
            return ProviderOutcome(kind="abort", url=stripped)

        rules = provider.effective_rules(strip_referral)
        query_fields = remove_matching_fields(parse_fields(parts.query), rules)
        fragment_fields: dict[str, str] = {}
        if parts.fragment_is_query_like():
            fragment_fields = remove_matching_fields(parse_fields(parts.fragment), rules)

        return ProviderOutcome(
            kind="continue",
            url=recompose_url(parts, query_fields, fragment_fields),
            raw_modified=stripped != url,
        )
