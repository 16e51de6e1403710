"""
HTTP routes over the AtomicStore.

Endpoints:
    POST   /bots/{bot_id}             initialize a bot with its first design
    GET    /bots/{bot_id}/draft       current draft (document included)
    PATCH  /bots/{bot_id}/draft       apply a JSON Patch atomically
    GET    /bots/{bot_id}/versions    version history with effective status
    POST   /bots/{bot_id}/promote     point production at a version
    GET    /bots/{bot_id}/production  production record
    GET    /bots/{bot_id}/plan        compile a stored version for a channel
    POST   /compile                   compile a document without storing it

Error mapping:
    400 patch, decode and compile errors
    404 missing bot, version, promotion target or adapter
    409 concurrency conflict, bot already exists
    422 validation failed (body carries the blocking issues)
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from ..design.types import DesignDoc
from ..errors import (
    AdapterNotFoundError,
    BotExistsError,
    CompileError,
    ConcurrencyConflictError,
    DecodeError,
    DraftNotFoundError,
    FlowkitError,
    PatchError,
    PromotionNotFoundError,
    ValidationFailedError,
    VersionNotFoundError,
)
from ..store.atomic import AtomicStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Flows"])


# =============================================================================
# Request/Response Models
# =============================================================================


class InitializeRequest(BaseModel):
    """Create a bot from its first design document."""
    document: dict[str, Any] = Field(..., description="Design document")
    channel: str | None = Field(None, description="Target channel (defaults from the design)")


class ApplyPatchRequest(BaseModel):
    """Apply an RFC 6902 patch to the draft."""
    patch: list[dict[str, Any]] = Field(..., description="JSON Patch operations")
    channel: str | None = Field(None, description="Target channel (defaults from the design)")
    expected_version_id: str | None = Field(None, description="Draft version the patch is based on")


class PromoteRequest(BaseModel):
    version_id: str = Field(..., description="Version to promote to production")


class CompileRequest(BaseModel):
    """Compile a document without storing it."""
    document: dict[str, Any] = Field(..., description="Design document")
    channel: str | None = Field(None, description="Target channel (defaults from the design)")


class ApplyResponse(BaseModel):
    version_id: str
    checksum: str
    plan: dict[str, Any]
    issues: list[dict[str, Any]] = Field(default_factory=list)


class RecordResponse(BaseModel):
    version_id: str
    status: str
    checksum: str
    created_at: int
    document: dict[str, Any] | None = None


class CompileResponse(BaseModel):
    checksum: str
    plan: dict[str, Any]
    issues: list[dict[str, Any]] = Field(default_factory=list)
    valid: bool


# =============================================================================
# Helpers
# =============================================================================


def get_store(request: Request) -> AtomicStore:
    """Get the AtomicStore from app state."""
    return request.app.state.store


def _http_error(e: FlowkitError) -> HTTPException:
    detail: dict[str, Any] = {"code": e.code, "message": e.message, "details": e.details}
    if isinstance(e, ValidationFailedError):
        detail["issues"] = [i.to_dict() for i in e.issues]
        detail["all_issues"] = [i.to_dict() for i in e.all_issues]
        return HTTPException(status_code=422, detail=detail)
    if isinstance(e, (ConcurrencyConflictError, BotExistsError)):
        return HTTPException(status_code=409, detail=detail)
    if isinstance(e, (DraftNotFoundError, VersionNotFoundError, PromotionNotFoundError, AdapterNotFoundError)):
        return HTTPException(status_code=404, detail=detail)
    if isinstance(e, (PatchError, DecodeError, CompileError)):
        return HTTPException(status_code=400, detail=detail)
    return HTTPException(status_code=500, detail=detail)


# =============================================================================
# Routes
# =============================================================================


@router.post("/bots/{bot_id}", response_model=ApplyResponse, status_code=201)
async def initialize_bot(bot_id: str, request: InitializeRequest, store: AtomicStore = Depends(get_store)):
    """Create a bot; the document must compile without blocking issues."""
    try:
        result = await store.initialize(bot_id, request.document, channel=request.channel)
    except FlowkitError as e:
        logger.info(f"Initialize {bot_id} failed: {e.code}")
        raise _http_error(e)
    return ApplyResponse(**result.to_dict())


@router.get("/bots/{bot_id}/draft", response_model=RecordResponse)
async def get_draft(bot_id: str, store: AtomicStore = Depends(get_store)):
    try:
        record = await store.get_draft(bot_id)
    except FlowkitError as e:
        raise _http_error(e)
    return RecordResponse(**record.to_dict(include_document=True))


@router.patch("/bots/{bot_id}/draft", response_model=ApplyResponse)
async def apply_patch(bot_id: str, request: ApplyPatchRequest, store: AtomicStore = Depends(get_store)):
    """Apply a patch atomically.

    Nothing is stored unless the patched design compiles without
    error-severity issues.
    """
    try:
        result = await store.apply_atomic(
            bot_id,
            request.patch,
            channel=request.channel,
            expected_version_id=request.expected_version_id,
        )
    except FlowkitError as e:
        logger.info(f"Apply to {bot_id} failed: {e.code}")
        raise _http_error(e)
    return ApplyResponse(**result.to_dict())


@router.get("/bots/{bot_id}/versions")
async def list_versions(bot_id: str, store: AtomicStore = Depends(get_store)):
    versions = await store.list_versions(bot_id)
    return {"bot_id": bot_id, "versions": [v.to_dict() for v in versions]}


@router.post("/bots/{bot_id}/promote")
async def promote(bot_id: str, request: PromoteRequest, store: AtomicStore = Depends(get_store)):
    try:
        await store.promote(bot_id, request.version_id)
    except FlowkitError as e:
        raise _http_error(e)
    return {"bot_id": bot_id, "production_version_id": request.version_id}


@router.get("/bots/{bot_id}/production", response_model=RecordResponse)
async def get_production(bot_id: str, store: AtomicStore = Depends(get_store)):
    record = await store.get_production(bot_id)
    if record is None:
        raise HTTPException(status_code=404, detail={"code": "NO_PRODUCTION", "message": f"bot '{bot_id}' has no production version"})
    return RecordResponse(**record.to_dict(include_document=True))


@router.get("/bots/{bot_id}/plan")
async def get_plan(
    bot_id: str,
    channel: str | None = None,
    version_id: str | None = None,
    store: AtomicStore = Depends(get_store),
):
    try:
        plan = await store.compile_version(bot_id, version_id=version_id, channel=channel)
    except FlowkitError as e:
        raise _http_error(e)
    return plan.to_dict()


@router.post("/compile", response_model=CompileResponse)
async def compile_document(request: CompileRequest, store: AtomicStore = Depends(get_store)):
    """Compile a document and report issues without storing anything."""
    try:
        design = DesignDoc.from_dict(request.document)
        adapter = store.select_adapter(design, request.channel)
        result = store.compiler.compile(request.document, store.registry, adapter)
    except FlowkitError as e:
        raise _http_error(e)
    return CompileResponse(
        checksum=result.checksum,
        plan=result.plan.to_dict(),
        issues=[i.to_dict() for i in result.issues],
        valid=not result.has_errors,
    )
