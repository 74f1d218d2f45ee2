from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from transcript_harvester.dependencies import (
    get_batch_orchestrator,
    get_credentials,
    get_search_resolver,
)
from transcript_harvester.models.transcript_contracts import (
    ApiKeyUpdateRequest,
    CredentialStatusResponse,
    TranscriptBatchRequest,
    TranscriptBatchResponse,
    VideoSearchRequest,
    VideoSearchResponse,
)
from transcript_harvester.services.batch_download import BatchDownloadOrchestrator
from transcript_harvester.services.credentials import ApiKeyConfig
from transcript_harvester.services.errors import EmptyInputError, MissingCredentialError
from transcript_harvester.services.search_resolver import SearchResolver

router = APIRouter()


@router.get(
    "/credentials/youtube-api-key",
    response_model=CredentialStatusResponse,
    tags=["credentials"],
    operation_id="youtube_api_key_status",
)
def youtube_api_key_status(
    credentials: Annotated[ApiKeyConfig, Depends(get_credentials)],
) -> CredentialStatusResponse:
    return CredentialStatusResponse(configured=credentials.has_api_key())


@router.put(
    "/credentials/youtube-api-key",
    response_model=CredentialStatusResponse,
    tags=["credentials"],
    operation_id="youtube_api_key_set",
)
def youtube_api_key_set(
    request: ApiKeyUpdateRequest,
    credentials: Annotated[ApiKeyConfig, Depends(get_credentials)],
) -> CredentialStatusResponse:
    try:
        credentials.set_api_key(request.api_key)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return CredentialStatusResponse(configured=True)


@router.delete(
    "/credentials/youtube-api-key",
    response_model=CredentialStatusResponse,
    tags=["credentials"],
    operation_id="youtube_api_key_clear",
)
def youtube_api_key_clear(
    credentials: Annotated[ApiKeyConfig, Depends(get_credentials)],
) -> CredentialStatusResponse:
    credentials.clear_api_key()
    return CredentialStatusResponse(configured=False)


@router.post(
    "/videos/search",
    response_model=VideoSearchResponse,
    tags=["videos"],
    operation_id="videos_search",
)
def videos_search(
    request: VideoSearchRequest,
    resolver: Annotated[SearchResolver, Depends(get_search_resolver)],
) -> VideoSearchResponse:
    result = resolver.search(request.query, request.to_filters())
    return VideoSearchResponse.from_result(result)


@router.post(
    "/transcripts/batch",
    response_model=TranscriptBatchResponse,
    tags=["transcripts"],
    operation_id="transcripts_batch_download",
)
async def transcripts_batch_download(
    request: TranscriptBatchRequest,
    orchestrator: Annotated[BatchDownloadOrchestrator, Depends(get_batch_orchestrator)],
) -> TranscriptBatchResponse:
    try:
        result = await orchestrator.download_all(request.video_ids, request.query)
    except MissingCredentialError as exc:
        raise HTTPException(status_code=412, detail=str(exc)) from exc
    except EmptyInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return TranscriptBatchResponse.from_result(result)
