from __future__ import annotations

from pydantic import BaseModel, Field

from clearurls.schemas.result import CleanResult

MAX_BATCH_URLS = 500


class CleanRequest(BaseModel):
    url: str
    # None falls back to the configured default.
    allow_referral_marketing: bool | None = None


class CleanBatchRequest(BaseModel):
    urls: list[str] = Field(min_length=1, max_length=MAX_BATCH_URLS)
    allow_referral_marketing: bool | None = None


class CleanResponse(BaseModel):
    url: str
    wasModified: bool
    wasBlocked: bool
    wasRedirected: bool
    hadAnyAction: bool

    @classmethod
    def from_result(cls, result: CleanResult) -> "CleanResponse":
        return cls(
            url=result.url,
            wasModified=result.was_modified,
            wasBlocked=result.was_blocked,
            wasRedirected=result.was_redirected,
            hadAnyAction=result.had_any_action(),
        )


class CleanBatchResponse(BaseModel):
    results: list[CleanResponse]


class ProvidersResponse(BaseModel):
    count: int
    providers: list[str]
