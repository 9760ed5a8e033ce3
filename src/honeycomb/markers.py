"""
Honeycomb markers and notification recipients
"""

from typing import Optional

from src.logging import get_logger

from .client import HoneycombAPI, get_api
from .error_enhancement import handle_tool_error
from .errors import require
from .formatting import text_or_empty, to_json

logger = get_logger('MARKERS')


async def list_markers(environment: str, api: Optional[HoneycombAPI] = None) -> str:
    """List deployment and event markers of an environment."""
    try:
        require(environment, "environment")
        api = api or get_api()

        markers = [
            {
                "id": marker.get("id"),
                "message": marker.get("message"),
                "type": marker.get("type"),
                "url": text_or_empty(marker.get("url")),
                "created_at": marker.get("created_at"),
                "start_time": marker.get("start_time"),
                "end_time": text_or_empty(marker.get("end_time")),
            }
            for marker in await api.get_markers(environment)
        ]
        logger.info(f"markers listed | env:{environment} | count:{len(markers)}")
        return to_json(markers)
    except Exception as e:
        return handle_tool_error(e, "list_markers", environment=environment)


async def list_recipients(environment: str, api: Optional[HoneycombAPI] = None) -> str:
    """List the notification recipients triggers can alert."""
    try:
        require(environment, "environment")
        api = api or get_api()

        recipients = [
            {
                "id": recipient.get("id"),
                "name": recipient.get("name"),
                "type": recipient.get("type"),
                "target": text_or_empty(recipient.get("target")),
                "created_at": recipient.get("created_at"),
                "updated_at": recipient.get("updated_at"),
            }
            for recipient in await api.get_recipients(environment)
        ]
        logger.info(f"recipients listed | env:{environment} | count:{len(recipients)}")
        return to_json(recipients)
    except Exception as e:
        return handle_tool_error(e, "list_recipients", environment=environment)
