"""
FacilityFlow API

FastAPI application with:
- Issue reporting and listing (status / priority filters)
- Assignment, start-work and close transitions
- Activity feed (full history or recent summary)
- Profiles and technician lookup

The acting user is taken from the X-Actor-Id header; session handling
lives in front of this service.
"""

from typing import Optional

from fastapi import Depends, FastAPI, Header, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..config import Settings, get_settings
from ..log import configure_logging
from ..models import (
    Actor,
    Department,
    Issue,
    IssueStatus,
    NewIssue,
    Priority,
    Role,
)
from ..services import (
    ActorDirectory,
    FacilityFlowError,
    InvalidTransition,
    IssueService,
    LifecycleEngine,
    NotFound,
    PermissionDenied,
    ValidationError,
    describe_work_timing,
    time_remaining,
)
from ..storage import MemoryIssueStore


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class ProfileRequest(BaseModel):
    name: str
    email: str
    phone: str = ""
    role: Role
    department: Optional[Department] = None


class AssignRequest(BaseModel):
    assigned_tech_id: Optional[str] = None


class IssueView(BaseModel):
    issue: Issue
    work_timing: Optional[str] = None
    time_remaining: str


ERROR_STATUS = {
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    InvalidTransition: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
    ValidationError: 422,
}


async def engine_error_handler(_: Request, exc: FacilityFlowError) -> JSONResponse:
    details = {"fields": exc.fields} if isinstance(exc, ValidationError) else {}
    return JSONResponse(
        status_code=ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST),
        content={
            "error": {
                "code": exc.code,
                "message": str(exc),
                "details": details,
            }
        },
    )


async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": {
                "code": ValidationError.code,
                "message": "Request validation failed.",
                "details": {"issues": jsonable_encoder(exc.errors())},
            }
        },
    )


# =============================================================================
# APP SETUP
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    service: Optional[IssueService] = None
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    if service is None:
        directory = ActorDirectory()
        service = IssueService(
            store=MemoryIssueStore(),
            directory=directory,
            engine=LifecycleEngine(
                name_resolver=directory.display_name,
                sla_hours=settings.sla_hours
            ),
        )

    app = FastAPI(
        title=settings.app_name,
        description="Facility issue lifecycle with role-checked transitions and an activity ledger",
        version=__version__
    )
    app.state.settings = settings
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(FacilityFlowError, engine_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    register_routes(app)
    return app


def get_service(request: Request) -> IssueService:
    return request.app.state.service


def get_actor_id(x_actor_id: str = Header(...)) -> str:
    return x_actor_id


def _parse_filter(enum_type, value: str, name: str):
    if value == "all":
        return None
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(["all"] + [m.value for m in enum_type])
        raise ValidationError(f"Invalid {name} filter '{value}'. Expected one of: {allowed}", fields=[name])


def register_routes(app: FastAPI) -> None:

    # =========================================================================
    # HEALTH CHECK
    # =========================================================================

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "service": "facilityflow-engine",
            "version": __version__
        }

    # =========================================================================
    # PROFILE ENDPOINTS
    # =========================================================================

    @app.put("/profiles/me")
    async def upsert_profile(
        request: ProfileRequest,
        actor_id: str = Depends(get_actor_id),
        service: IssueService = Depends(get_service)
    ) -> Actor:
        """Create or update the caller's own profile."""
        existing = service.directory.find(actor_id)
        fields = request.model_dump()
        if existing is not None:
            fields["created_at"] = existing.created_at
        return service.directory.upsert(Actor(id=actor_id, **fields))

    @app.get("/profiles/me")
    async def get_profile(
        actor_id: str = Depends(get_actor_id),
        service: IssueService = Depends(get_service)
    ) -> Actor:
        return service.directory.get(actor_id)

    @app.get("/technicians")
    async def list_technicians(
        department: Optional[Department] = None,
        service: IssueService = Depends(get_service)
    ):
        """Technicians for the assignment picker, same department first."""
        return service.directory.technicians(department)

    # =========================================================================
    # ISSUE ENDPOINTS
    # =========================================================================

    @app.post("/issues", status_code=status.HTTP_201_CREATED)
    async def report_issue(
        request: NewIssue,
        actor_id: str = Depends(get_actor_id),
        service: IssueService = Depends(get_service)
    ) -> Issue:
        """
        Report a new issue.

        Issues start open even when pre-assigned; work starts explicitly.
        """
        return await service.report(request, actor_id)

    @app.get("/issues")
    async def list_issues(
        status_filter: str = Query("all", alias="status"),
        priority_filter: str = Query("all", alias="priority"),
        service: IssueService = Depends(get_service)
    ):
        """Issues newest first; "all" disables a filter."""
        return await service.list(
            status=_parse_filter(IssueStatus, status_filter, "status"),
            priority=_parse_filter(Priority, priority_filter, "priority")
        )

    @app.get("/issues/stats")
    async def issue_stats(service: IssueService = Depends(get_service)):
        """Dashboard counters: total / open / in progress / closed / overdue."""
        return await service.stats()

    @app.get("/issues/{issue_id}")
    async def get_issue(
        issue_id: int,
        service: IssueService = Depends(get_service)
    ) -> IssueView:
        issue = await service.get(issue_id)
        now = service.clock()
        return IssueView(
            issue=issue,
            work_timing=describe_work_timing(issue, now),
            time_remaining=time_remaining(issue.target_at, now),
        )

    @app.post("/issues/{issue_id}/assign")
    async def assign_issue(
        issue_id: int,
        request: AssignRequest,
        actor_id: str = Depends(get_actor_id),
        service: IssueService = Depends(get_service)
    ) -> Issue:
        return await service.assign(issue_id, actor_id, request.assigned_tech_id)

    @app.post("/issues/{issue_id}/start")
    async def start_work(
        issue_id: int,
        actor_id: str = Depends(get_actor_id),
        service: IssueService = Depends(get_service)
    ) -> Issue:
        return await service.start_work(issue_id, actor_id)

    @app.post("/issues/{issue_id}/close")
    async def close_issue(
        issue_id: int,
        actor_id: str = Depends(get_actor_id),
        service: IssueService = Depends(get_service)
    ) -> Issue:
        return await service.close(issue_id, actor_id)

    @app.get("/issues/{issue_id}/activity")
    async def get_activity(
        issue_id: int,
        request: Request,
        recent: Optional[int] = None,
        summary: bool = False,
        service: IssueService = Depends(get_service)
    ):
        """
        Issue activity, oldest first.

        `summary=true` returns the configured most-recent window
        (activity_summary_limit); `recent=N` overrides its size.
        """
        if recent is None and summary:
            recent = request.app.state.settings.activity_summary_limit
        return {
            "issue_id": issue_id,
            "entries": await service.activity(issue_id, recent=recent),
        }


app = create_app()


# =============================================================================
# RUN
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
