"""
Honeycomb dataset operations

Provides functions for listing datasets and their columns, and for building
the dataset resource, in a compact form for the MCP client.
"""

from typing import Any, Dict, List, Optional, Union

from src.logging import get_logger

from .client import HoneycombAPI, get_api
from .collections import apply_collection_options
from .error_enhancement import handle_tool_error
from .errors import require
from .formatting import text_or_empty, to_json

logger = get_logger('DATASETS')


def simplify_dataset(dataset: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": dataset.get("name"),
        "slug": dataset.get("slug"),
        "description": text_or_empty(dataset.get("description")),
        "created_at": dataset.get("created_at"),
        "last_written_at": dataset.get("last_written_at"),
    }


def simplify_column(column: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": column.get("key_name"),
        "type": column.get("type"),
        "description": text_or_empty(column.get("description")),
        "hidden": bool(column.get("hidden", False)),
        "last_written": column.get("last_written"),
        "created_at": column.get("created_at"),
    }


async def list_datasets(
    environment: str,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    search: Optional[str] = None,
    search_fields: Optional[Union[str, List[str]]] = None,
    api: Optional[HoneycombAPI] = None
) -> str:
    """
    List datasets in an environment.

    Returns the plain list when no paging, sorting or search option is given,
    otherwise a {data, metadata} page.
    """
    try:
        require(environment, "environment")
        api = api or get_api()

        logger.debug(f"requesting datasets | env:{environment}")
        datasets = [simplify_dataset(d) for d in await api.list_datasets(environment)]
        logger.info(f"datasets listed | env:{environment} | count:{len(datasets)}")

        return to_json(apply_collection_options(
            datasets, ["name", "slug", "description"],
            page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
            search=search, search_fields=search_fields
        ))
    except Exception as e:
        return handle_tool_error(e, "list_datasets", environment=environment)


async def list_columns(
    environment: str,
    dataset: str,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    search: Optional[str] = None,
    search_fields: Optional[Union[str, List[str]]] = None,
    api: Optional[HoneycombAPI] = None
) -> str:
    """List the visible columns of a dataset."""
    try:
        require(environment, "environment")
        require(dataset, "dataset")
        api = api or get_api()

        columns = [simplify_column(c) for c in await api.get_visible_columns(environment, dataset)]
        logger.info(f"columns listed | env:{environment} | dataset:{dataset} | count:{len(columns)}")

        return to_json(apply_collection_options(
            columns, ["name", "description"],
            page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
            search=search, search_fields=search_fields
        ))
    except Exception as e:
        return handle_tool_error(e, "list_columns", environment=environment, dataset=dataset)


async def get_dataset_resource(environment: str, dataset: str, api: Optional[HoneycombAPI] = None) -> str:
    """
    Dataset details with its visible columns, for the honeycomb://{environment}/{dataset} resource.

    Unlike the tools this raises on failure; the MCP framework reports resource errors itself.
    """
    require(environment, "environment")
    require(dataset, "dataset")
    api = api or get_api()

    details = await api.get_dataset(environment, dataset)
    columns = await api.get_visible_columns(environment, dataset)

    return to_json({
        **simplify_dataset(details),
        "columns": [
            {
                "name": column.get("key_name"),
                "type": column.get("type"),
                "description": text_or_empty(column.get("description")),
            }
            for column in columns
        ],
    })
