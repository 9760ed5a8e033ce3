"""
Honeycomb trigger operations
"""

from typing import Any, Dict, Optional

from src.logging import get_logger

from .client import HoneycombAPI, get_api
from .error_enhancement import handle_tool_error
from .errors import require
from .formatting import text_or_empty, to_json

logger = get_logger('TRIGGERS')


def trigger_status(trigger: Dict[str, Any]) -> str:
    if trigger.get("triggered"):
        return "TRIGGERED"
    if trigger.get("disabled"):
        return "DISABLED"
    return "ACTIVE"


def simplify_trigger(trigger: Dict[str, Any]) -> Dict[str, Any]:
    threshold = trigger.get("threshold") or {}
    return {
        "id": trigger.get("id"),
        "name": trigger.get("name"),
        "description": text_or_empty(trigger.get("description")),
        "threshold": {
            "op": threshold.get("op"),
            "value": threshold.get("value"),
        },
        "triggered": bool(trigger.get("triggered", False)),
        "disabled": bool(trigger.get("disabled", False)),
        "frequency": trigger.get("frequency"),
        "alert_type": trigger.get("alert_type"),
    }


async def list_triggers(environment: str, dataset: str, api: Optional[HoneycombAPI] = None) -> str:
    """List a dataset's triggers with how many are active and how many are firing."""
    try:
        require(environment, "environment")
        require(dataset, "dataset")
        api = api or get_api()

        triggers = [simplify_trigger(t) for t in await api.get_triggers(environment, dataset)]
        active = sum(1 for t in triggers if not t["disabled"])
        firing = sum(1 for t in triggers if t["triggered"])
        logger.info(f"triggers listed | env:{environment} | dataset:{dataset} | count:{len(triggers)} | triggered:{firing}")

        return to_json({
            "triggers": triggers,
            "metadata": {
                "count": len(triggers),
                "activeCount": active,
                "triggeredCount": firing,
                "dataset": dataset,
                "environment": environment,
            },
        })
    except Exception as e:
        return handle_tool_error(e, "list_triggers", environment=environment, dataset=dataset)


async def get_trigger(environment: str, dataset: str, trigger_id: str, api: Optional[HoneycombAPI] = None) -> str:
    """Trigger details with its recipients and current status."""
    try:
        require(environment, "environment")
        require(dataset, "dataset")
        require(trigger_id, "trigger_id")
        api = api or get_api()

        trigger = await api.get_trigger(environment, dataset, trigger_id)
        details = simplify_trigger(trigger)
        details.update({
            "recipients": [
                {"type": r.get("type"), "target": text_or_empty(r.get("target"))}
                for r in trigger.get("recipients") or []
            ],
            "evaluation_schedule_type": trigger.get("evaluation_schedule_type"),
            "created_at": trigger.get("created_at"),
            "updated_at": trigger.get("updated_at"),
            "status": trigger_status(trigger),
        })
        return to_json(details)
    except Exception as e:
        return handle_tool_error(e, "get_trigger", environment=environment, dataset=dataset)
