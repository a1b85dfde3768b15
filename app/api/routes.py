"""
API Routes - FastAPI endpoints for projects, generation, quotas and stats.

NO DICTIONARIES - All requests/responses use Pydantic models.
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user, get_generation_service, get_session_context
from app.db.session import get_read_db, get_write_db, ping_database
from app.exceptions import (
    ProfileNotFoundError,
    ProjectNotFoundError,
    QuotaExceededError,
    TemplateNotFoundError,
    TemplateRenderError,
    WriteVerificationError,
)
from app.models.api import (
    ActionType,
    ActivityBucketItem,
    AudioGenerationItem,
    AudioGenerationListResponse,
    AudioGenerationResponse,
    CreateProjectRequest,
    CreateTemplateRequest,
    DashboardStatsResponse,
    GenerateAudioRequest,
    GenerateTextRequest,
    HealthResponse,
    ProfileResponse,
    ProjectListResponse,
    ProjectResponse,
    ProjectSort,
    ProjectStatusFilter,
    QuotaStatusResponse,
    RecentActivityItem,
    RenderTemplateRequest,
    RenderTemplateResponse,
    SignOutResponse,
    TemplateItem,
    TemplateListResponse,
    TextGenerationResponse,
    ToolItem,
    ToolUsageItem,
    UpdateProfileRequest,
    UpdateProjectRequest,
    UsageSummaryResponse,
    UsageTotalsResponse,
    VoiceGroup,
    VoiceItem,
)
from app.models.domain import (
    AudioGenerationData,
    ProfileData,
    ProfileUpdate,
    ProjectData,
    ProjectUpdate,
    SessionContext,
    TemplateData,
    UsageTotals,
    UserIdentity,
)
from app.services.audio import AudioGenerationService
from app.services.catalog import VOICES, WRITING_TOOLS, voices_by_language
from app.services.generation import GenerationService
from app.services.profiles import ProfileService
from app.services.projects import ProjectService
from app.services.quota import QuotaService
from app.services.stats import DashboardService
from app.services.templates import TemplateService, template_categories
from app.services.token_revocation import token_revocation_service
from app.services.usage_ledger import UsageLedger

router = APIRouter()


def _utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


def _quota_exceeded(exc: QuotaExceededError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc))


def _project_not_found(exc: ProjectNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Project not found: {exc.project_id}",
    )


def _write_failed() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Database integrity error",
    )


# =============================================================================
# Health
# =============================================================================


@router.get("/health", response_model=HealthResponse)
async def health_check(db: AsyncSession = Depends(get_read_db)) -> HealthResponse:
    """
    Health check for load balancer.

    Verifies database connectivity.
    """
    try:
        await ping_database(db)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "status": "unhealthy",
                "database": "disconnected",
                "error": str(exc),
                "timestamp": _utc_now().isoformat(),
            },
        ) from exc

    return HealthResponse(
        status="healthy",
        database="connected",
        timestamp=_utc_now().isoformat(),
    )


# =============================================================================
# Profile & Session
# =============================================================================


def _profile_response(profile: ProfileData) -> ProfileResponse:
    return ProfileResponse(
        id=profile.user_id,
        email=profile.email,
        full_name=profile.full_name,
        company=profile.company,
        job_title=profile.job_title,
        bio=profile.bio,
        avatar_url=profile.avatar_url,
        plan_type=profile.plan_type,
        subscription_status=profile.subscription_status,
        subscription_end_date=(
            profile.subscription_end_date.isoformat() if profile.subscription_end_date else None
        ),
        api_usage_count=profile.api_usage_count,
        monthly_usage_limit=profile.monthly_usage_limit,
        created_at=profile.created_at.isoformat(),
        updated_at=profile.updated_at.isoformat(),
    )


@router.get("/v1/profile", response_model=ProfileResponse)
async def get_profile(context: SessionContext = Depends(get_session_context)) -> ProfileResponse:
    """Caller's profile (created on first access)."""
    return _profile_response(context.profile)


@router.patch("/v1/profile", response_model=ProfileResponse)
async def update_profile(
    request: UpdateProfileRequest,
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_write_db),
) -> ProfileResponse:
    """Update personal details. Plan and usage fields are not writable."""
    try:
        profile = await ProfileService(db).update(
            context.user_id,
            ProfileUpdate(
                full_name=request.full_name,
                company=request.company,
                job_title=request.job_title,
                bio=request.bio,
                avatar_url=request.avatar_url,
            ),
        )
    except ProfileNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found"
        ) from exc
    return _profile_response(profile)


@router.post("/v1/auth/sign-out", response_model=SignOutResponse)
async def sign_out(
    user: UserIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_write_db),
) -> SignOutResponse:
    """Invalidate the bearer token used for this request."""
    await token_revocation_service.revoke(user, reason="sign_out", db=db)
    return SignOutResponse(signed_out=True)


@router.get("/v1/quota", response_model=QuotaStatusResponse)
async def get_quota(
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_read_db),
) -> QuotaStatusResponse:
    """Word and audio allowance for the current month."""
    quota = await QuotaService(db).status(context.profile, _utc_now())
    return QuotaStatusResponse(
        plan_type=quota.plan_type,
        enforced=quota.enforced,
        words_used=quota.words_used,
        words_limit=quota.words_limit,
        words_remaining=quota.words_remaining,
        usage_percentage=quota.usage_percentage,
        audio_used=quota.audio_used,
        audio_limit=quota.audio_limit,
        audio_remaining=quota.audio_remaining,
    )


# =============================================================================
# Projects
# =============================================================================


def _project_response(project: ProjectData) -> ProjectResponse:
    return ProjectResponse(
        id=project.project_id,
        title=project.title,
        content=project.content,
        tool_type=project.tool_type,
        prompt=project.prompt,
        status=project.status,
        language=project.language,
        word_count=project.word_count,
        character_count=project.character_count,
        created_at=project.created_at.isoformat(),
        updated_at=project.updated_at.isoformat(),
    )


@router.post(
    "/v1/projects", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED
)
async def create_project(
    request: CreateProjectRequest,
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_write_db),
) -> ProjectResponse:
    """Create an empty draft project for a tool."""
    try:
        project = await ProjectService(db).create(
            context.user_id, request.title, request.tool_type
        )
    except WriteVerificationError as exc:
        raise _write_failed() from exc
    return _project_response(project)


@router.get("/v1/projects", response_model=ProjectListResponse)
async def list_projects(
    sort: ProjectSort = Query(ProjectSort.DATE),
    status_filter: ProjectStatusFilter = Query(ProjectStatusFilter.ALL, alias="status"),
    search: str | None = Query(None, max_length=200),
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_read_db),
) -> ProjectListResponse:
    """Caller's projects with search, status filter and sort."""
    projects = await ProjectService(db).list_by_owner(
        context.user_id, sort=sort, status_filter=status_filter, search=search
    )
    return ProjectListResponse(
        projects=[_project_response(p) for p in projects],
        total=len(projects),
    )


@router.get("/v1/projects/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: UUID,
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_read_db),
) -> ProjectResponse:
    try:
        project = await ProjectService(db).get(context.user_id, project_id)
    except ProjectNotFoundError as exc:
        raise _project_not_found(exc) from exc
    return _project_response(project)


@router.patch("/v1/projects/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: UUID,
    request: UpdateProjectRequest,
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_write_db),
) -> ProjectResponse:
    """Partial update; counts are recomputed when content changes."""
    try:
        project = await ProjectService(db).update(
            context.user_id,
            project_id,
            ProjectUpdate(
                title=request.title,
                content=request.content,
                tool_type=request.tool_type.value if request.tool_type else None,
                prompt=request.prompt,
                status=request.status,
                language=request.language,
            ),
        )
    except ProjectNotFoundError as exc:
        raise _project_not_found(exc) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except WriteVerificationError as exc:
        raise _write_failed() from exc
    return _project_response(project)


@router.delete("/v1/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: UUID,
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_write_db),
) -> Response:
    try:
        await ProjectService(db).delete(context.user_id, project_id)
    except ProjectNotFoundError as exc:
        raise _project_not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Generation
# =============================================================================


@router.post("/v1/generate/text", response_model=TextGenerationResponse)
async def generate_text(
    request: GenerateTextRequest,
    response: Response,
    context: SessionContext = Depends(get_session_context),
    service: GenerationService = Depends(get_generation_service),
) -> TextGenerationResponse:
    """
    Generate text with the tool's persona.

    429 when the free monthly word limit is reached; 502 with success=false
    when the provider fails.
    """
    try:
        outcome = await service.generate_text(
            context,
            prompt=request.prompt,
            tool_type=request.tool_type,
            language=request.language,
            max_tokens=request.max_tokens,
            project_id=request.project_id,
        )
    except QuotaExceededError as exc:
        raise _quota_exceeded(exc) from exc
    except ProjectNotFoundError as exc:
        raise _project_not_found(exc) from exc
    except WriteVerificationError as exc:
        raise _write_failed() from exc

    if not outcome.success:
        response.status_code = status.HTTP_502_BAD_GATEWAY

    return TextGenerationResponse(
        success=outcome.success,
        content=outcome.content,
        word_count=outcome.word_count,
        character_count=outcome.character_count,
        error=outcome.error,
    )


@router.post("/v1/generate/audio", response_model=AudioGenerationResponse)
async def generate_audio(
    request: GenerateAudioRequest,
    response: Response,
    context: SessionContext = Depends(get_session_context),
    service: GenerationService = Depends(get_generation_service),
) -> AudioGenerationResponse:
    """
    Synthesize speech and store it.

    429 when the free monthly audio limit is reached; 502 with success=false
    when synthesis or upload fails.
    """
    try:
        outcome = await service.generate_audio(
            context,
            text=request.text,
            voice_id=request.voice_id,
            voice_name=request.voice_name,
            voice_settings=request.settings,
            project_id=request.project_id,
        )
    except QuotaExceededError as exc:
        raise _quota_exceeded(exc) from exc
    except ProjectNotFoundError as exc:
        raise _project_not_found(exc) from exc
    except WriteVerificationError as exc:
        raise _write_failed() from exc

    if not outcome.success:
        response.status_code = status.HTTP_502_BAD_GATEWAY

    return AudioGenerationResponse(
        success=outcome.success,
        audio_url=outcome.audio_url,
        duration_seconds=outcome.duration_seconds,
        file_size_bytes=outcome.file_size_bytes,
        generation_id=outcome.generation_id,
        error=outcome.error,
    )


def _audio_item(generation: AudioGenerationData) -> AudioGenerationItem:
    return AudioGenerationItem(
        id=generation.generation_id,
        project_id=generation.project_id,
        text_content=generation.text_content,
        voice_id=generation.voice_id,
        voice_name=generation.voice_name,
        voice_settings=generation.voice_settings,
        audio_url=generation.audio_url,
        duration_seconds=generation.duration_seconds,
        file_size_bytes=generation.file_size_bytes,
        status=generation.status,
        created_at=generation.created_at.isoformat(),
    )


@router.get("/v1/audio", response_model=AudioGenerationListResponse)
async def list_audio_generations(
    limit: int = Query(50, ge=1, le=500),
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_read_db),
) -> AudioGenerationListResponse:
    """Caller's audio generations, newest first."""
    generations = await AudioGenerationService(db).list_by_owner(context.user_id, limit=limit)
    return AudioGenerationListResponse(
        generations=[_audio_item(g) for g in generations],
        total=len(generations),
    )


# =============================================================================
# Dashboard & Usage
# =============================================================================


def _totals_response(totals: UsageTotals) -> UsageTotalsResponse:
    return UsageTotalsResponse(
        count=totals.count,
        words=totals.words,
        characters=totals.characters,
        audio_seconds=totals.audio_seconds,
    )


@router.get("/v1/dashboard/stats", response_model=DashboardStatsResponse)
async def dashboard_stats(
    top_tools: int | None = Query(None, ge=1, le=20),
    recent: int | None = Query(None, ge=1, le=50),
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_read_db),
) -> DashboardStatsResponse:
    """Dashboard metrics computed fresh from projects and the ledger."""
    stats = await DashboardService(db).load(
        context.user_id, _utc_now(), top_tools_limit=top_tools, recent_limit=recent
    )
    return DashboardStatsResponse(
        total_projects=stats.total_projects,
        total_words=stats.total_words,
        completed_projects=stats.completed_projects,
        draft_projects=stats.draft_projects,
        audio_generations=stats.audio_generations,
        weekly_projects=stats.weekly_projects,
        monthly_words=stats.monthly_words,
        average_words_per_project=stats.average_words_per_project,
        productivity_score=stats.productivity_score,
        top_tools=[
            ToolUsageItem(
                tool_type=t.tool_type, name=t.name, count=t.count, percentage=t.percentage
            )
            for t in stats.top_tools
        ],
        recent_activity=[
            RecentActivityItem(
                id=a.project_id, type=a.tool_type, title=a.title, time=a.time, status=a.status
            )
            for a in stats.recent_activity
        ],
        weekly_activity=[
            ActivityBucketItem(day=b.day, date=b.date, projects=b.projects, words=b.words)
            for b in stats.weekly_activity
        ],
        usage_last_30_days=_totals_response(stats.usage_last_30_days),
        generated_at=stats.generated_at.isoformat(),
    )


@router.get("/v1/usage/summary", response_model=UsageSummaryResponse)
async def usage_summary(
    days: int = Query(30, ge=1, le=365),
    action_type: ActionType | None = Query(None),
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_read_db),
) -> UsageSummaryResponse:
    """Ledger totals over the last `days` days."""
    since = _utc_now() - timedelta(days=days)
    totals = await UsageLedger(db).sum_in_window(context.user_id, since, action_type)
    return UsageSummaryResponse(
        since=since.isoformat(),
        action_type=action_type,
        totals=_totals_response(totals),
    )


# =============================================================================
# Catalog & Templates
# =============================================================================


@router.get("/v1/tools", response_model=list[ToolItem])
async def list_tools(
    user: UserIdentity = Depends(get_current_user),
) -> list[ToolItem]:
    """Writing tool catalog."""
    return [
        ToolItem(id=t.tool_type, name=t.name, category=t.category, description=t.description)
        for t in WRITING_TOOLS
    ]


@router.get("/v1/voices", response_model=list[VoiceGroup])
async def list_voices(
    user: UserIdentity = Depends(get_current_user),
) -> list[VoiceGroup]:
    """Voice catalog grouped by language."""
    return [
        VoiceGroup(
            language=language,
            voices=[
                VoiceItem(
                    id=v.voice_id,
                    name=v.name,
                    language=v.language,
                    gender=v.gender,
                    category=v.category,
                )
                for v in voices
            ],
        )
        for language, voices in voices_by_language()
    ]


def _template_item(template: TemplateData) -> TemplateItem:
    return TemplateItem(
        id=template.template_id,
        name=template.name,
        description=template.description,
        category=template.category,
        content=template.content,
        variables=list(template.variables),
        is_public=template.is_public,
        usage_count=template.usage_count,
        built_in=template.built_in,
    )


@router.get("/v1/templates", response_model=TemplateListResponse)
async def list_templates(
    search: str | None = Query(None, max_length=200),
    category: str | None = Query(None, max_length=100),
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_read_db),
) -> TemplateListResponse:
    """Built-in, own, and public templates."""
    service = TemplateService(db)
    templates = await service.list_visible(context.user_id, search=search, category=category)
    every_template = await service.list_visible(context.user_id)
    return TemplateListResponse(
        templates=[_template_item(t) for t in templates],
        categories=template_categories(every_template),
    )


@router.post(
    "/v1/templates", response_model=TemplateItem, status_code=status.HTTP_201_CREATED
)
async def create_template(
    request: CreateTemplateRequest,
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_write_db),
) -> TemplateItem:
    try:
        template = await TemplateService(db).create(
            context.user_id,
            name=request.name,
            category=request.category,
            content=request.content,
            description=request.description,
            is_public=request.is_public,
        )
    except WriteVerificationError as exc:
        raise _write_failed() from exc
    return _template_item(template)


@router.post("/v1/templates/render", response_model=RenderTemplateResponse)
async def render_template(
    request: RenderTemplateRequest,
    context: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_write_db),
) -> RenderTemplateResponse:
    """Fill a template's placeholders."""
    try:
        content = await TemplateService(db).render(
            context.user_id, request.template_id, request.values
        )
    except TemplateNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Template not found: {exc.template_id}",
        ) from exc
    except TemplateRenderError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    return RenderTemplateResponse(template_id=request.template_id, content=content)
