"""
AI-generated bullet-point insights over the most recent truck events.

The summary service is an opaque text-in/text-out call; any failure is
turned into a fixed fallback message for display.
"""

import json
import logging
import os

import pandas as pd
import requests

from .config import (
    AI_API_KEY_ENV,
    AI_ENDPOINT,
    AI_FALLBACK_MESSAGE,
    AI_MODEL,
    AI_RECORD_LIMIT,
    AI_TIMEOUT_SECONDS,
    TRUCK_EVENT_COLUMNS,
)
from .transforms import with_arrival_instants

logger = logging.getLogger(__name__)

_PROMPT = """
As a world-class logistics data analyst, analyze the following recent truck movement data: {records}.

The user is viewing a dashboard in {language}.
Provide 4-5 bullet points of high-level insights focusing on:
1. Throughput efficiency trends.
2. Notable bottlenecks based on 'duration_minutes'.
3. Shift peak hours distribution (07:00-07:00).
4. Actionable operational improvements.

MANDATORY: Return the answer as a CLEAR BULLETED LIST in {language}.
Do not provide a conversational intro, just the list of points.
"""


def recent_events_payload(events: pd.DataFrame, limit: int = AI_RECORD_LIMIT) -> list[dict]:
    """Up to ``limit`` records, newest arrival first, as plain dicts.

    Records whose arrival does not parse sort last.
    """
    if events.empty:
        return []
    df = with_arrival_instants(events)
    df = df.sort_values("arrival_at", ascending=False, kind="stable", na_position="last")
    return df[TRUCK_EVENT_COLUMNS].head(limit).to_dict(orient="records")


def build_prompt(records: list[dict], language: str) -> str:
    return _PROMPT.format(records=json.dumps(records, ensure_ascii=False), language=language)


def _extract_text(body: dict) -> str:
    parts = body["candidates"][0]["content"]["parts"]
    text = "".join(part.get("text", "") for part in parts).strip()
    if not text:
        raise ValueError("Empty response text")
    return text


def summarise_events(
    events: pd.DataFrame,
    language: str = "English",
    api_key: str | None = None,
    session: requests.Session | None = None,
    model: str = AI_MODEL,
) -> str:
    """Ask the summary service for bullet-point insights.

    Returns the service text, or AI_FALLBACK_MESSAGE on any failure.
    """
    api_key = api_key or os.environ.get(AI_API_KEY_ENV)
    if not api_key:
        logger.warning("No %s set; skipping AI summary", AI_API_KEY_ENV)
        return AI_FALLBACK_MESSAGE

    prompt = build_prompt(recent_events_payload(events), language)
    payload = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {"temperature": 0.7, "topP": 0.9},
    }

    http = session if session is not None else requests.Session()
    try:
        response = http.post(
            AI_ENDPOINT.format(model=model),
            params={"key": api_key},
            json=payload,
            timeout=AI_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        return _extract_text(response.json())
    except (requests.RequestException, KeyError, IndexError, TypeError, ValueError) as e:
        logger.warning("AI analysis failed: %s", e)
        return AI_FALLBACK_MESSAGE
