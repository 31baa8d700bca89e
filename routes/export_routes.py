"""
Stored export endpoints.

POST /api/v1/exports               — render a report and store it for download
GET  /api/v1/exports/stats         — export store counts (admin)
POST /api/v1/exports/sweep         — drop expired artifacts (admin)
GET  /api/v1/exports/{export_id}   — download a stored artifact (owner or admin)
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from dependencies import (
    get_caller,
    get_export_service,
    get_report_composer,
    get_scope_resolver,
    require_admin,
)
from schemas.dto.requests.stats import CreateExportRequest
from schemas.dto.responses.common import ERROR_RESPONSES
from schemas.dto.responses.stats import (
    ExportCreatedResponse,
    ExportStatsResponse,
    SweepResponse,
)
from services.export_formatter import (
    ExportEncoding,
    ExportMetadata,
    build_export_filename,
    format_report,
)
from services.exports import ExportService
from services.report_composer import ReportComposer
from services.scope import CallerContext, ScopeResolver
from shared.datetime_utils import utcnow

router = APIRouter(prefix="/api/v1/exports", tags=["exports"])


@router.post(
    "",
    status_code=201,
    response_model=ExportCreatedResponse,
    responses=ERROR_RESPONSES,
)
async def create_export(
    request: Request,
    body: Optional[CreateExportRequest] = None,
    caller: CallerContext = Depends(get_caller),
    resolver: ScopeResolver = Depends(get_scope_resolver),
    composer: ReportComposer = Depends(get_report_composer),
    exports: ExportService = Depends(get_export_service),
) -> ExportCreatedResponse:
    body = body or CreateExportRequest()
    encoding = ExportEncoding.parse(body.format)
    date_range = body.date_range()
    scope = await resolver.resolve(caller, body.link_id)
    report = await composer.compose(scope, date_range)

    now = utcnow()
    metadata = ExportMetadata.for_scope(scope, date_range, now)
    artifact = await exports.create(
        owner_id=caller.caller_id,
        filename=build_export_filename(metadata, encoding),
        media_type=encoding.media_type,
        payload=format_report(report, encoding, metadata),
        now=now,
    )
    return ExportCreatedResponse(
        export_id=artifact.export_id,
        filename=artifact.filename,
        download_url=request.app.url_path_for(
            "download_export", export_id=artifact.export_id
        ),
        expires_at=artifact.expires_at.isoformat(),
        total_clicks=report.total_clicks,
    )


@router.get("/stats", response_model=ExportStatsResponse, responses=ERROR_RESPONSES)
async def export_store_stats(
    _admin: CallerContext = Depends(require_admin),
    exports: ExportService = Depends(get_export_service),
) -> ExportStatsResponse:
    stats = await exports.stats()
    return ExportStatsResponse(
        total=stats.total, expired=stats.expired, active=stats.active
    )


@router.post("/sweep", response_model=SweepResponse, responses=ERROR_RESPONSES)
async def sweep_exports(
    _admin: CallerContext = Depends(require_admin),
    exports: ExportService = Depends(get_export_service),
) -> SweepResponse:
    return SweepResponse(removed=await exports.sweep())


@router.get(
    "/{export_id}",
    name="download_export",
    responses={**ERROR_RESPONSES, 410: ERROR_RESPONSES[404]},
)
async def download_export(
    export_id: str,
    caller: CallerContext = Depends(get_caller),
    exports: ExportService = Depends(get_export_service),
) -> Response:
    artifact = await exports.fetch(export_id, caller)
    return Response(
        content=artifact.payload,
        media_type=artifact.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{artifact.filename}"',
            "Cache-Control": "no-cache, no-store, must-revalidate",
        },
    )
