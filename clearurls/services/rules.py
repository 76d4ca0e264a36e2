"""Compile ClearURLs rule documents into provider records.

A rule document looks like::

    {"providers": {"google": {"urlPattern": "...", "rules": ["ved", ...], ...}}}

Provider order follows document order. Any provider that cannot be built
fails the whole load; nothing is skipped.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from clearurls.errors import RulesetError
from clearurls.schemas.provider import ProviderRule

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).resolve().parent.parent / "data" / "rules.json"


def _describe(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


def compile_provider(name: str, data: Mapping[str, Any]) -> ProviderRule:
    if not isinstance(data, Mapping):
        raise RulesetError(
            f"Provider '{name}': expected an object, got {type(data).__name__}"
        )
    url_pattern = data.get("urlPattern")
    if not isinstance(url_pattern, str) or not url_pattern.strip():
        raise RulesetError(f"Provider '{name}': missing urlPattern")
    try:
        return ProviderRule.model_validate({**data, "name": name})
    except ValidationError as e:
        raise RulesetError(f"Provider '{name}': {_describe(e)}") from e


def compile_rules(document: Mapping[str, Any]) -> list[ProviderRule]:
    providers = document.get("providers") if isinstance(document, Mapping) else None
    if not isinstance(providers, Mapping):
        raise RulesetError("Invalid rules format - missing 'providers' object")

    compiled = [compile_provider(str(name), data) for name, data in providers.items()]
    total_rules = sum(len(p.rules) + len(p.raw_rules) for p in compiled)
    logger.info("Compiled %d providers with %d rules", len(compiled), total_rules)
    return compiled


def parse_rules(text: str) -> list[ProviderRule]:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise RulesetError(f"Failed to parse rules JSON: {e}") from e
    return compile_rules(document)


def load_rules(path: str | Path) -> list[ProviderRule]:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RulesetError(f"Cannot read rules file {path}: {e}") from e
    return parse_rules(text)


def load_default_rules() -> list[ProviderRule]:
    return load_rules(DEFAULT_RULES_PATH)
