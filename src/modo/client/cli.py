"""CLI client for the Modo API."""

from __future__ import annotations

import logging
import time
from typing import (
    Any,
    Dict,
    Tuple,
    cast,
)

import httpx

from modo.common import (
    AnsiColors,
    colored_print,
)
from modo.config import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CLI Client
# ---------------------------------------------------------------------------
def get_user_message() -> Tuple[str, bool]:
    """
    Get a message from the user via standard input.

    Returns:
        Tuple of (user_input, success_flag)
        The success_flag is False if input couldn't be read (e.g., Ctrl+C)
    """
    import signal  # pylint: disable=import-outside-toplevel

    # Let SIGINT interrupt a blocking read()
    signal.siginterrupt(signal.SIGINT, True)

    try:
        user_input = input().strip()
        return user_input, True
    except (EOFError, KeyboardInterrupt):
        return "", False


def call_api(
    endpoint: str,
    data: Dict[str, Any],
    max_retries: int = 5,
    base_url: str | None = None,
) -> Dict[str, Any]:
    """POST *data* to *endpoint*, retrying with exponential backoff while the API is starting."""
    api_url = f"{base_url or f'http://localhost:{settings.API_PORT}'}{endpoint}"
    timeout = settings.EXCHANGE_TIMEOUT + 5.0

    for attempt in range(max_retries):
        try:
            with httpx.Client(timeout=timeout) as client:
                response = client.post(api_url, json=data)
                response.raise_for_status()
                return cast(Dict[str, Any], response.json())
        except httpx.ConnectError as exc:
            if attempt < max_retries - 1:
                retry_delay = 0.5 * (2**attempt)  # 0.5s, 1s, 2s, 4s...
                logger.info(
                    "API not ready yet, retrying in %.1f seconds (attempt %d/%d)...",
                    retry_delay,
                    attempt + 1,
                    max_retries,
                )
                time.sleep(retry_delay)
                continue
            logger.error("API connection error: %s", exc)
            return {"reply": f"Error connecting to API: {exc}", "message_type": "error"}
        except httpx.HTTPStatusError as exc:
            logger.error("API request error: %s", exc)
            detail = str(exc)
            try:
                detail = exc.response.json().get("detail", detail)
            except ValueError:
                pass
            return {"reply": f"API error: {detail}", "message_type": "error"}
        except httpx.HTTPError as exc:
            logger.error("API request error: %s", exc)
            return {"reply": f"Error connecting to API: {exc}", "message_type": "error"}

    return {
        "reply": f"Failed to connect to API after {max_retries} attempts",
        "message_type": "error",
    }


def render_plan(plan: Dict[str, Any]) -> None:
    """Print the exercises and meals of a plan returned by ``/chat``."""
    days = plan.get("days") or [{"workout": plan, "nutrition": plan}]
    for day in days:
        if "day_name" in day:
            colored_print(f"  {day['day_name']} ({day.get('date', '')})", AnsiColors.BLUE)
        for exercise in (day.get("workout") or {}).get("exercises") or []:
            colored_print(
                f"    - {exercise['name']}: {exercise['sets']} x {exercise['reps']}, "
                f"{exercise.get('rest_sec') or 0}s rest",
                AnsiColors.GREEN,
            )
        for meal in (day.get("nutrition") or {}).get("meals") or []:
            foods = ", ".join(food["name"] for food in meal.get("foods", []))
            colored_print(
                f"    - {meal['time']} {meal['name']} ({meal['calories']} kcal): {foods}",
                AnsiColors.GREEN,
            )


def run_cli() -> None:
    """Run the CLI client that communicates with the API."""
    session_response = call_api("/sessions", {})
    session_id = session_response.get("session_id")

    if not session_id:
        colored_print("⚠️ Failed to create a session", AnsiColors.RED)
        return

    colored_print("\n🏋️ Modo coach - type 'exit' or 'quit' (or Ctrl+C) to exit", AnsiColors.GREEN)
    while True:
        colored_print("\n🧑 You: ", AnsiColors.BLUE, end="")
        user_msg, ok = get_user_message()
        if not ok:
            break
        if user_msg.lower() in {"exit", "quit"}:
            break
        if not user_msg:
            continue

        response = call_api("/chat", {"message": user_msg, "session_id": session_id})

        if response.get("message_type") == "error":
            colored_print(response.get("reply", "Unknown error"), AnsiColors.RED)
            if response.get("error"):
                colored_print(response["error"], AnsiColors.RED)
            continue

        colored_print(response.get("reply", "No response from API"), AnsiColors.YELLOW)
        if response.get("plan"):
            render_plan(response["plan"])


if __name__ == "__main__":
    run_cli()
