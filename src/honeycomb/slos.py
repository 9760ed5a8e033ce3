"""
Honeycomb SLO operations
"""

from typing import Optional

from src.logging import get_logger

from .client import HoneycombAPI, get_api
from .error_enhancement import handle_tool_error
from .errors import require
from .formatting import text_or_empty, to_json

logger = get_logger('SLOS')


async def list_slos(environment: str, dataset: str, api: Optional[HoneycombAPI] = None) -> str:
    """List the SLOs defined on a dataset."""
    try:
        require(environment, "environment")
        require(dataset, "dataset")
        api = api or get_api()

        slos = [
            {
                "id": slo.get("id"),
                "name": slo.get("name"),
                "description": text_or_empty(slo.get("description")),
                "time_period_days": slo.get("time_period_days"),
                "target_per_million": slo.get("target_per_million"),
            }
            for slo in await api.get_slos(environment, dataset)
        ]
        logger.info(f"SLOs listed | env:{environment} | dataset:{dataset} | count:{len(slos)}")
        return to_json(slos)
    except Exception as e:
        return handle_tool_error(e, "list_slos", environment=environment, dataset=dataset)


async def get_slo(environment: str, dataset: str, slo_id: str, api: Optional[HoneycombAPI] = None) -> str:
    """SLO details including current compliance and remaining error budget."""
    try:
        require(environment, "environment")
        require(dataset, "dataset")
        require(slo_id, "slo_id")
        api = api or get_api()

        slo = await api.get_slo(environment, dataset, slo_id)
        return to_json({
            "id": slo.get("id"),
            "name": slo.get("name"),
            "description": text_or_empty(slo.get("description")),
            "time_period_days": slo.get("time_period_days"),
            "target_per_million": slo.get("target_per_million"),
            "compliance": slo.get("compliance"),
            "budget_remaining": slo.get("budget_remaining"),
            "sli": (slo.get("sli") or {}).get("alias"),
            "created_at": slo.get("created_at"),
            "updated_at": slo.get("updated_at"),
        })
    except Exception as e:
        return handle_tool_error(e, "get_slo", environment=environment, dataset=dataset)
