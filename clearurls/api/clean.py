from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from clearurls.schemas.api import (
    CleanBatchRequest,
    CleanBatchResponse,
    CleanRequest,
    CleanResponse,
    ProvidersResponse,
)
from clearurls.services.cleaner import UrlCleaner

router = APIRouter(prefix="/api")


def _get_cleaner(request: Request) -> UrlCleaner:
    deps = getattr(request.app.state, "deps", None)
    cleaner = getattr(deps, "cleaner", None) if deps else None
    if not cleaner:
        raise HTTPException(status_code=500, detail="Cleaner is not configured")
    return cleaner


def _default_referral(request: Request) -> bool:
    settings = request.app.state.deps.settings
    return bool(getattr(settings, "allow_referral_marketing", False))


@router.post("/clean", response_model=CleanResponse)
def clean_url(req: CleanRequest, request: Request) -> CleanResponse:
    cleaner = _get_cleaner(request)
    allow = req.allow_referral_marketing
    if allow is None:
        allow = _default_referral(request)
    result = cleaner.clean(req.url, allow_referral_marketing=allow)
    return CleanResponse.from_result(result)


@router.post("/clean/batch", response_model=CleanBatchResponse)
def clean_batch(req: CleanBatchRequest, request: Request) -> CleanBatchResponse:
    cleaner = _get_cleaner(request)
    allow = req.allow_referral_marketing
    if allow is None:
        allow = _default_referral(request)
    results = cleaner.clean_many(req.urls, allow_referral_marketing=allow)
    return CleanBatchResponse(results=[CleanResponse.from_result(r) for r in results])


@router.get("/providers", response_model=ProvidersResponse)
def list_providers(request: Request) -> ProvidersResponse:
    cleaner = _get_cleaner(request)
    names = [p.name for p in cleaner.providers]
    return ProvidersResponse(count=len(names), providers=names)
