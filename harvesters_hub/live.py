"""
Passthrough to the YouTube Data API for the channel's live broadcasts.
"""

from __future__ import annotations

import logging
from typing import Optional

import requests

from harvesters_hub.errors import UpstreamError

logger = logging.getLogger(__name__)

YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
REQUEST_TIMEOUT = 10  # seconds


def fetch_live_feed(
    api_key: Optional[str],
    channel_id: Optional[str],
    *,
    timeout: float = REQUEST_TIMEOUT,
) -> dict:
    """
    Search the channel for videos that are live right now.

    Returns the API response body unchanged.

    Raises:
        UpstreamError: the API is not configured or the request fails.
    """
    if not api_key or not channel_id:
        raise UpstreamError("Live feed is not configured")
    params = {
        "part": "snippet",
        "channelId": channel_id,
        "eventType": "live",
        "type": "video",
        "key": api_key,
    }
    try:
        response = requests.get(YOUTUBE_SEARCH_URL, params=params, timeout=timeout)
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Live feed request failed: %s", exc)
        raise UpstreamError("Failed to fetch live data") from exc
