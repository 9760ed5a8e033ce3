"""
Honeycomb board operations
"""

from typing import List, Optional, Union

from src.logging import get_logger

from .client import HoneycombAPI, get_api
from .collections import apply_collection_options
from .error_enhancement import handle_tool_error
from .errors import require
from .formatting import text_or_empty, to_json

logger = get_logger('BOARDS')


async def list_boards(
    environment: str,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    search: Optional[str] = None,
    search_fields: Optional[Union[str, List[str]]] = None,
    api: Optional[HoneycombAPI] = None
) -> str:
    """List the boards of an environment."""
    try:
        require(environment, "environment")
        api = api or get_api()

        boards = [
            {
                "id": board.get("id"),
                "name": board.get("name") or "Unnamed Board",
                "description": text_or_empty(board.get("description")),
                "created_at": board.get("created_at"),
                "updated_at": board.get("updated_at"),
            }
            for board in await api.get_boards(environment)
        ]
        logger.info(f"boards listed | env:{environment} | count:{len(boards)}")

        return to_json(apply_collection_options(
            boards, ["name", "description"],
            page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
            search=search, search_fields=search_fields
        ))
    except Exception as e:
        return handle_tool_error(e, "list_boards", environment=environment)


async def get_board(environment: str, board_id: str, api: Optional[HoneycombAPI] = None) -> str:
    """Return one board as Honeycomb describes it."""
    try:
        require(environment, "environment")
        require(board_id, "board_id")
        api = api or get_api()

        board = await api.get_board(environment, board_id)
        if isinstance(board, dict) and board.get("description") is None:
            board["description"] = ""
        return to_json(board)
    except Exception as e:
        return handle_tool_error(e, "get_board", environment=environment)
