"""Build-time download of the upstream rule document.

The cleaning engine never touches the network; this module refreshes the
rule file it is built from. A failed download falls back to the copy already
on disk, and a downloaded document only replaces that copy after it compiles.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

import httpx
from pydantic import BaseModel

from clearurls.errors import RulesetError
from clearurls.services.rules import parse_rules

logger = logging.getLogger(__name__)

USER_AGENT = "clearurls-rules-updater/0.1"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class RulesUpdate(BaseModel):
    source: Literal["remote", "local"]
    hash: str
    changed: bool
    provider_count: int
    path: str


class RulesFetcher:
    """Keeps a local rule file (plus a metadata sidecar) in sync with a URL."""

    def __init__(
        self,
        rules_url: str,
        rules_path: str | Path,
        *,
        meta_path: str | Path | None = None,
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not rules_url:
            raise ValueError("rules_url is required")
        self.rules_url = rules_url
        self.rules_path = Path(rules_path)
        self.meta_path = (
            Path(meta_path) if meta_path else self.rules_path.with_suffix(".meta.json")
        )
        self.timeout_seconds = max(1.0, float(timeout_seconds))
        self.client = client or httpx.Client(
            headers={"User-Agent": USER_AGENT},
            timeout=self.timeout_seconds,
            follow_redirects=True,
        )

    def close(self) -> None:
        self.client.close()

    def fetch_remote(self) -> str:
        t0 = time.monotonic()
        try:
            response = self.client.get(self.rules_url)
            response.raise_for_status()
            return response.text
        finally:
            logger.debug("Rules download finished in %.0fms", (time.monotonic() - t0) * 1000)

    def read_local(self) -> str:
        try:
            return self.rules_path.read_text(encoding="utf-8")
        except OSError as e:
            raise RulesetError(f"Local rules file not found at {self.rules_path}") from e

    def read_meta(self) -> dict[str, Any]:
        if not self.meta_path.exists():
            return {}
        try:
            meta = json.loads(self.meta_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable metadata file %s: %s", self.meta_path, e)
            return {}
        return meta if isinstance(meta, dict) else {}

    def _from_local(self) -> RulesUpdate:
        text = self.read_local()
        providers = parse_rules(text)
        return RulesUpdate(
            source="local",
            hash=sha256_text(text),
            changed=False,
            provider_count=len(providers),
            path=str(self.rules_path),
        )

    def update(self, *, local_only: bool = False) -> RulesUpdate:
        """Refresh the local rule file.

        With ``local_only`` (or when the download fails) the existing file is
        only validated. Raises RulesetError when no usable document exists.
        """
        if local_only:
            logger.info("Loading rules from local cache %s", self.rules_path)
            return self._from_local()

        logger.info("Fetching rules from %s", self.rules_url)
        try:
            text = self.fetch_remote()
        except httpx.HTTPError as e:
            logger.warning("Failed to fetch rules (%s); falling back to %s", e, self.rules_path)
            return self._from_local()

        providers = parse_rules(text)
        new_hash = sha256_text(text)
        meta = self.read_meta()
        changed = meta.get("hash") != new_hash

        self.rules_path.parent.mkdir(parents=True, exist_ok=True)
        self.rules_path.write_text(text, encoding="utf-8")
        self.meta_path.write_text(
            json.dumps(
                {
                    "updatedAt": utc_now_iso() if changed else meta.get("updatedAt") or utc_now_iso(),
                    "fetchedFrom": self.rules_url,
                    "hash": new_hash,
                },
                indent=2,
            ),
            encoding="utf-8",
        )
        logger.info(
            "Rules %s (hash %s..., %d providers)",
            "updated" if changed else "unchanged",
            new_hash[:16],
            len(providers),
        )
        return RulesUpdate(
            source="remote",
            hash=new_hash,
            changed=changed,
            provider_count=len(providers),
            path=str(self.rules_path),
        )
