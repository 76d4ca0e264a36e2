"""Shared fixtures for the test suite."""

from __future__ import annotations

import pytest

from clearurls.schemas.provider import ProviderRule
from clearurls.services.cleaner import UrlCleaner


@pytest.fixture
def google_provider():
    return ProviderRule(
        name="google",
        url_pattern=r"^https?://(?:[a-z0-9-]+\.)*?google(?:\.[a-z]{2,}){1,}",
        rules=["ved", "ei", "usg", "source", "gs_[a-z]*", "gfe_[a-z]*"],
        referral_marketing=["referrer"],
        exceptions=[
            r"^https?://mail\.google\.com/mail/u/",
            r"^https?://accounts\.google\.com/o/oauth2/",
        ],
        redirections=[
            r"^https?://(?:[a-z0-9-]+\.)*?google(?:\.[a-z]{2,}){1,}/url\?.*?(?:url|q)=(https?[^&]+)",
        ],
    )


@pytest.fixture
def amazon_provider():
    return ProviderRule(
        name="amazon",
        url_pattern=r"^https?://(?:[a-z0-9-]+\.)*?amazon(?:\.[a-z]{2,}){1,}",
        rules=["ref_?", "pf_rd_[a-z]*", "qid", "sr"],
        raw_rules=[r"/ref=[^/?]*"],
        referral_marketing=["tag"],
    )


@pytest.fixture
def facebook_provider():
    return ProviderRule(
        name="facebook",
        url_pattern=r"^https?://(?:[a-z0-9-]+\.)*?facebook\.com",
        rules=["__tn__", "eid", r"hc_[a-z_%\[\]0-9]*"],
        exceptions=[r"^https?://(?:[a-z0-9-]+\.)*?facebook\.com/(?:login_alerts|ajax)/"],
        redirections=[r"^https?://l[a-z]?\.facebook\.com/l\.php\?.*?u=(https?%3A%2F%2F[^&]*)"],
    )


@pytest.fixture
def global_provider():
    return ProviderRule(
        name="globalRules",
        url_pattern=".*",
        rules=[
            "(?:%3F)?utm(?:_[a-z_]*)?",
            "(?:%3F)?fbclid",
            "(?:%3F)?gclid",
            "(?:%3F)?_ga",
        ],
    )


@pytest.fixture
def providers(google_provider, amazon_provider, facebook_provider, global_provider):
    """Site providers first, the catch-all provider last."""
    return [google_provider, amazon_provider, facebook_provider, global_provider]


@pytest.fixture
def cleaner(providers):
    return UrlCleaner(providers)


@pytest.fixture(scope="session")
def bundled_cleaner():
    return UrlCleaner.from_default()
