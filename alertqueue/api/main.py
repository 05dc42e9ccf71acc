import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, Request, Depends, HTTPException
from fastapi.responses import StreamingResponse, JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from ..core.config import LOG_FORMAT, Settings, load_settings
from ..core.errors import AlertQueueError
from ..core.models import (
    ActionTrigger,
    AlertConfiguration,
    AlertDetails,
    AlertResponse,
    QueueSnapshot,
    TapEvent,
)
from ..core.state import AppState
from ..services.presenter import DismissReason
from ..services.sse import alert_event_generator
from ..utils.security import get_api_key, limiter, rate_limit, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)

router = APIRouter()


def get_app_state(request: Request) -> AppState:
    return request.app.state.alerts


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handles application startup and shutdown events.
    """
    state: AppState = app.state.alerts
    logger.info(f"Application startup: alert queue ready (passive alerts last {state.settings.passive_alert_duration}s).")
    yield
    pending = len(state.coordinator)
    if pending:
        logger.warning(f"Application shutdown with {pending} alert(s) still queued.")
    logger.info("Application shutdown: Cleaning up resources.")


async def alert_queue_error_handler(request: Request, exc: AlertQueueError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Builds the API around a fresh alert queue.

    Each application owns its own coordinator, so independent instances
    (one per test, for example) never share queue state.
    """
    settings = settings or load_settings()

    # Configure logging for the application
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT, handlers=[logging.StreamHandler()])

    app = FastAPI(
        title="Alert Queue Service",
        description="Queues alert presentation requests, shows one alert at a time and streams presentation events via Server-Sent Events (SSE).",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.alerts = AppState(settings=settings)

    # Add the Rate Limiter middleware
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(AlertQueueError, alert_queue_error_handler)
    app.add_middleware(SlowAPIMiddleware)

    app.include_router(router)
    return app


@router.get("/", summary="Service Status")
async def root():
    """
    Provides a simple status message to confirm the service is running.
    """
    return {"message": "Welcome to the Alert Queue Service"}


@router.post("/api/alerts", summary="Queue an Alert", response_model=AlertResponse)
@limiter.limit(rate_limit)
async def create_alert(request: Request, configuration: AlertConfiguration,
                       api_key: str = Depends(get_api_key), state: AppState = Depends(get_app_state)):
    """
    Queues an alert for presentation.

    The alert is shown immediately when nothing else is on screen; otherwise
    it waits until every alert queued before it has been dismissed.

    **Request Body:**
    - `title` / `message`: text of the alert
    - `actions`: buttons, e.g. `{"title": "OK", "type": "normal"}`; `passive` actions are not buttons
    - `text_fields`: inputs with optional `required`, `min_length`, `max_length`, `pattern`
    - `duration`: seconds a passive alert (no buttons, no text fields) stays up
    - `touch_outside_to_dismiss` / `tap_inside_to_dismiss`: tap behaviour
    - `custom_view` / `custom_buttons`: opaque payloads forwarded to stream subscribers

    **Example:**
    ```json
    {
        "title": "Saved",
        "message": "Your changes were saved",
        "duration": 3
    }
    ```
    """
    alert_id = state.presenter.show(configuration)
    position = state.coordinator.position(alert_id)
    status = "active" if position == 0 else "pending"
    logger.info(f"Alert created: {alert_id} - {configuration.title} (position {position})")

    return AlertResponse(
        success=True,
        message=f"Alert '{configuration.title or alert_id}' queued",
        alert_id=alert_id,
        status=status,
        position=position,
    )


@router.get("/api/alerts/queue", summary="Queue Status", response_model=QueueSnapshot)
async def get_queue(api_key: str = Depends(get_api_key), state: AppState = Depends(get_app_state)):
    return QueueSnapshot(**state.presenter.snapshot())


@router.get("/api/alerts/active", summary="Alert on Screen", response_model=AlertDetails)
async def get_active_alert(api_key: str = Depends(get_api_key), state: AppState = Depends(get_app_state)):
    alert = state.presenter.active_alert()
    if alert is None:
        raise HTTPException(status_code=404, detail="No alert is on screen")
    return state.presenter.details(alert.id)


@router.get("/api/alerts/{alert_id}", summary="Alert Details", response_model=AlertDetails)
async def get_alert(alert_id: str, api_key: str = Depends(get_api_key), state: AppState = Depends(get_app_state)):
    return state.presenter.details(alert_id)


@router.post("/api/alerts/{alert_id}/actions/{index}", summary="Press an Alert Action", response_model=AlertResponse)
async def trigger_action(alert_id: str, index: int, trigger: ActionTrigger,
                         api_key: str = Depends(get_api_key), state: AppState = Depends(get_app_state)):
    """
    Presses action `index` of the alert on screen, passing one input per text field.

    Returns 422 with the validation message when a text field rejects its input;
    the alert stays on screen in that case.
    """
    dismissed = state.presenter.trigger_action(alert_id, index, trigger.inputs)
    return AlertResponse(
        success=True,
        message=f"Action {index} completed" + (" and alert dismissed" if dismissed else ""),
        alert_id=alert_id,
        status="dismissed" if dismissed else "active",
    )


@router.post("/api/alerts/{alert_id}/tap", summary="Tap on or around an Alert", response_model=AlertResponse)
async def tap_alert(alert_id: str, tap: TapEvent,
                    api_key: str = Depends(get_api_key), state: AppState = Depends(get_app_state)):
    dismissed = state.presenter.tap(alert_id, inside=tap.inside)
    return AlertResponse(
        success=dismissed,
        message="Alert dismissed" if dismissed else "Tap ignored",
        alert_id=alert_id,
        status="dismissed" if dismissed else "active",
    )


@router.post("/api/alerts/{alert_id}/dismiss", summary="Dismiss the Alert on Screen", response_model=AlertResponse)
async def dismiss_alert(alert_id: str, api_key: str = Depends(get_api_key), state: AppState = Depends(get_app_state)):
    if not state.presenter.dismiss(alert_id, DismissReason.EXPLICIT):
        raise HTTPException(status_code=409, detail=f"Alert {alert_id} is not on screen")
    return AlertResponse(success=True, message="Alert dismissed", alert_id=alert_id, status="dismissed")


@router.get("/api/alerts-stream", summary="Real-Time Presentation Stream")
@limiter.limit(rate_limit)
async def alerts_stream(request: Request, api_key: str = Depends(get_api_key), state: AppState = Depends(get_app_state)):
    """
    Establishes a Server-Sent Events (SSE) connection with the client.

    Streams `alert_queued`, `alert_presented`, `alert_error`, `action_completed`
    and `alert_dismissed` events as the queue moves.
    """
    generator = alert_event_generator(request, state.broadcaster, keep_alive=state.settings.sse_keep_alive_seconds)
    return StreamingResponse(generator, media_type="text/event-stream")


app = create_app()

# To run this application from the project's root directory:
#   python -m alertqueue
# or
#   uvicorn alertqueue.api.main:app --reload
