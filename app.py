from fastapi import FastAPI, APIRouter, BackgroundTasks, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import json
from typing import Optional, Dict, Any

import structlog

from config import Settings
from onboarding.client import ProviderClient
from onboarding.errors import OnboardingError, ValidationError
from onboarding.observability import configure_logging
from onboarding.payloads import AuthenticationAttempt, SignContractRequest, decode_event
from onboarding.sessions import SessionOrchestrator
from onboarding.signing import ContractSigner
from onboarding.store import SessionStore
from onboarding.webhooks import WebhookHandler, acknowledgment, failure

log = structlog.get_logger(__name__)

router = APIRouter()


def create_app(settings: Optional[Settings] = None,
               client: Optional[ProviderClient] = None) -> FastAPI:
    """
    Build the service. Settings are read once here and handed to each
    component; handlers only see the components stored on app.state.
    """
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    if not settings.API_KEY:
        log.warning("api_key_missing")

    client = client or ProviderClient(settings)
    store = SessionStore(settings.SESSIONS_DIR)

    app = FastAPI(
        title="Identity Onboarding Service",
        description="Session orchestration, webhook scoring, approval and contract signing",
        version="1.0.0"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.store = store
    app.state.orchestrator = SessionOrchestrator(settings, client, store)
    app.state.webhooks = WebhookHandler(client)
    app.state.signer = ContractSigner(settings, client)

    register_error_handlers(app)
    app.include_router(router)
    return app


# ------------------------
# Error envelopes
# ------------------------
def register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(OnboardingError)
    async def onboarding_error(request: Request, exc: OnboardingError):
        log.warning("request_failed", path=request.url.path, error=exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_invalid(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            field = ".".join(str(p) for p in errors[0]["loc"] if p != "body")
            message = f"Invalid request: {field} {errors[0]['msg']}".strip()
        else:
            message = "Invalid request"
        return JSONResponse(status_code=400, content={"success": False, "error": message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        # Unknown paths and unsupported methods both read as "no such route"
        if exc.status_code in (404, 405):
            target = request.url.path
            if request.url.query:
                target = f"{target}?{request.url.query}"
            return JSONResponse(
                status_code=404,
                content={"success": False, "error": f"Cannot {request.method} {target}"},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail)},
        )


# ------------------------
# Dependencies
# ------------------------
def get_orchestrator(request: Request) -> SessionOrchestrator:
    return request.app.state.orchestrator


def get_webhooks(request: Request) -> WebhookHandler:
    return request.app.state.webhooks


def get_signer(request: Request) -> ContractSigner:
    return request.app.state.signer


def get_store(request: Request) -> SessionStore:
    return request.app.state.store


async def read_event_body(request: Request) -> Any:
    raw = await request.body()
    try:
        return json.loads(raw.decode("utf-8"))
    except ValueError as e:
        raise ValidationError(f"Invalid JSON body: {e}") from e


# ------------------------
# Sessions
# ------------------------
@router.get("/start")
def start(localId: Optional[str] = None,
          orchestrator: SessionOrchestrator = Depends(get_orchestrator)):
    """Resume the session stored under localId, or start a new one"""
    return orchestrator.start_or_resume(localId)


@router.get("/onboarding-url")
def onboarding_url(orchestrator: SessionOrchestrator = Depends(get_orchestrator)):
    session = orchestrator.get_onboarding_url()
    return {"success": True, **session}


@router.get("/onboarding-status")
def onboarding_status(interviewId: Optional[str] = None,
                      orchestrator: SessionOrchestrator = Depends(get_orchestrator)):
    status = orchestrator.get_status(interviewId)
    return {"success": True, "onboardingStatus": status}


@router.get("/fetch-score")
def fetch_score(interviewId: Optional[str] = None,
                x_token: Optional[str] = Header(None, alias="X-Token"),
                orchestrator: SessionOrchestrator = Depends(get_orchestrator)):
    score = orchestrator.fetch_score(interviewId, x_token)
    return {"success": True, "score": score}


# ------------------------
# Webhooks (always 200)
# ------------------------
@router.post("/webhook")
async def webhook(request: Request,
                  background_tasks: BackgroundTasks,
                  handler: WebhookHandler = Depends(get_webhooks)) -> Dict[str, Any]:
    """
    Onboarding status webhook. The sender is acknowledged right away; the
    score is fetched after the response has been sent.
    """
    try:
        payload = await read_event_body(request)
        event = decode_event(payload)
    except ValidationError as e:
        response = failure(e.message)
        log.warning("webhook_rejected", response=response)
        return response

    background_tasks.add_task(handler.process, event)

    response = acknowledgment(payload)
    log.info("webhook_received", response=response)
    return response


@router.post("/approve")
async def approve(request: Request,
                  handler: WebhookHandler = Depends(get_webhooks)) -> Dict[str, Any]:
    """Onboarding status webhook that creates the identity for passing sessions"""
    try:
        payload = await read_event_body(request)
        event = decode_event(payload)
    except ValidationError as e:
        response = failure(e.message)
        log.warning("approve_rejected", response=response)
        return response

    response = await run_in_threadpool(handler.approve, event, payload)
    log.info("approve_handled", response=response)
    return response


# ------------------------
# Authentication & signing
# ------------------------
@router.post("/auth")
def auth(attempt: AuthenticationAttempt,
         orchestrator: SessionOrchestrator = Depends(get_orchestrator)):
    """Verify a face authentication attempt; the provider result is returned as-is"""
    return orchestrator.verify_authentication(
        attempt.transaction_id, attempt.token, attempt.interview_token
    )


@router.post("/sign-contract")
def sign_contract(body: SignContractRequest,
                  signer: ContractSigner = Depends(get_signer),
                  store: SessionStore = Depends(get_store)):
    token = body.token
    if not token:
        if not body.local_id:
            raise ValidationError("Missing required field token")
        token = store.read(body.local_id).provider_token

    signed = signer.sign_contract(token)
    return {"interviewId": body.interview_id, "token": token, **signed}


# ------------------------
# Health Check
# ------------------------
@router.get("/health")
def health_check():
    return {
        "status": "healthy",
        "service": "identity-onboarding"
    }


app = create_app()


# ------------------------
# Local Dev Entry
# ------------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=3000)
