#!/usr/bin/env python3
"""
MCP Server for the Alert Queue Service

Exposes the alert queue's HTTP API as Model Context Protocol tools, so an
assistant can queue alerts, inspect the queue and answer the alert on screen.
"""
import logging
import os
from typing import List, Optional

import httpx
from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from .config import LOG_FORMAT, load_environment

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_environment()

ALERT_API_URL = os.getenv("ALERT_API_URL", "http://localhost:8000")
API_KEY = os.getenv("API_KEY", "")
REQUEST_TIMEOUT = 10.0


def _client() -> httpx.AsyncClient:
    headers = {"X-API-Key": API_KEY} if API_KEY else {}
    return httpx.AsyncClient(base_url=ALERT_API_URL, headers=headers, timeout=REQUEST_TIMEOUT)


def _error_text(e: Exception) -> str:
    if isinstance(e, httpx.HTTPStatusError):
        try:
            detail = e.response.json().get("detail", e.response.text)
        except ValueError:
            detail = e.response.text
        return f"❌ Error: {detail} (HTTP {e.response.status_code})"
    return f"❌ Error: could not reach the alert service ({e})"


async def show_alert(title: str, message: Optional[str] = None, buttons: Optional[List[str]] = None,
                     duration: Optional[float] = None) -> str:
    """
    Queue an alert for presentation.

    Args:
        title: Alert title
        message: Optional body text
        buttons: Optional button titles. Without buttons the alert is passive and dismisses itself.
        duration: Seconds a passive alert stays on screen (optional)
    """
    body = {"title": title, "message": message, "duration": duration,
            "actions": [{"title": b, "type": "normal"} for b in buttons or []]}
    logger.info(f"Queueing alert via MCP: {title!r}")
    try:
        async with _client() as client:
            response = await client.post("/api/alerts", json=body)
            response.raise_for_status()
    except (httpx.HTTPStatusError, httpx.RequestError) as e:
        logger.error(f"Failed to queue alert: {e}")
        return _error_text(e)

    data = response.json()
    if data.get("position") == 0:
        return f"✅ Alert {data['alert_id']} is on screen now."
    return f"⏳ Alert {data['alert_id']} queued at position {data.get('position')}."


async def get_queue_status() -> str:
    """Show which alert is on screen and which are waiting."""
    try:
        async with _client() as client:
            response = await client.get("/api/alerts/queue")
            response.raise_for_status()
    except (httpx.HTTPStatusError, httpx.RequestError) as e:
        logger.error(f"Failed to read queue status: {e}")
        return _error_text(e)

    data = response.json()
    if not data.get("active"):
        return "✅ The alert queue is idle."
    text = f"🔔 **On screen:** {data['active']}\n"
    pending = data.get("pending", [])
    text += f"**Waiting ({len(pending)}):** {', '.join(pending) if pending else 'none'}\n"
    return text


async def dismiss_alert(alert_id: str) -> str:
    """Dismiss the alert that is currently on screen."""
    try:
        async with _client() as client:
            response = await client.post(f"/api/alerts/{alert_id}/dismiss")
            response.raise_for_status()
    except (httpx.HTTPStatusError, httpx.RequestError) as e:
        logger.error(f"Failed to dismiss alert {alert_id}: {e}")
        return _error_text(e)
    return f"✅ Alert {alert_id} dismissed."


async def trigger_alert_action(alert_id: str, index: int, inputs: Optional[List[str]] = None) -> str:
    """
    Press a button of the alert on screen.

    Args:
        alert_id: The alert on screen
        index: Position of the button in the alert's action list
        inputs: One value per text field of the alert, in order (optional)
    """
    try:
        async with _client() as client:
            response = await client.post(f"/api/alerts/{alert_id}/actions/{index}", json={"inputs": inputs or []})
            response.raise_for_status()
    except (httpx.HTTPStatusError, httpx.RequestError) as e:
        logger.error(f"Failed to trigger action {index} of alert {alert_id}: {e}")
        return _error_text(e)
    return f"✅ {response.json()['message']}."


# Initialize MCP server
mcp = FastMCP(
    name="Alert Queue",
    instructions="""
    Queue alerts for presentation and respond to the alert on screen.

    Only one alert is shown at a time; later alerts wait in line until the
    current one is dismissed, either by one of its buttons, a tap, or (for
    passive alerts without buttons) its timeout.

    Available tools:
    - show_alert: queue a new alert
    - get_queue_status: see the alert on screen and the ones waiting
    - trigger_alert_action: press a button of the alert on screen
    - dismiss_alert: dismiss the alert on screen
    """
)

for tool in (show_alert, get_queue_status, dismiss_alert, trigger_alert_action):
    mcp.tool()(tool)


@mcp.custom_route("/health", methods=["GET"])
async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "service": "alert-queue-mcp"})


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, handlers=[logging.StreamHandler()])
    port = int(os.getenv("MCP_PORT", "8001"))
    logger.info("🚀 Starting Alert Queue MCP Server (HTTP Transport)")
    logger.info(f"🔗 Alert API: {ALERT_API_URL}")
    logger.info(f"🌐 Listening on port: {port}")

    mcp.run(transport="streamable-http", host="0.0.0.0", port=port)
