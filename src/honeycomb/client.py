"""
Honeycomb API HTTP client

Provides the HTTP client for the Honeycomb API with per-environment API keys,
error translation, logging, metrics, and the create/poll cycle used to run
queries.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from src.logging import http_logger as logger
from src.telemetry.decorators import trace_honeycomb_api_call
from src.telemetry.metrics import MetricsTimer
from src.telemetry.utils import add_honeycomb_context, add_span_attributes, get_current_span

from .config import (
    DEFAULT_QUERY_LIMIT,
    DEFAULT_REQUEST_TIMEOUT,
    QUERY_MAX_ATTEMPTS,
    QUERY_POLL_INTERVAL,
    EnvironmentConfig,
    HoneycombConfig,
    load_cache_config,
    load_config,
)
from .cache import MetadataCache
from .error_enhancement import enhance_api_error, suggestions_for_status
from .errors import HoneycombAPIError, ToolInputError
from .queries import QueryResult, has_heatmap


QUERY_VALIDATION_HINTS = [
    "Ensure you're specifying a time window (time_range or start_time+end_time)",
    "Make sure granularity value isn't too small for your time window",
    "Consider removing granularity and other advanced parameters for a simpler query first",
]


def _endpoint_label(path: str) -> str:
    """Low-cardinality label for metrics: /1/columns/my-dataset -> /1/columns"""
    parts = [part for part in path.split("/") if part]
    return "/" + "/".join(parts[:2])


def _flatten_rows(results: List[Any]) -> List[Any]:
    """Query results arrive as [{"data": {...}}]; unwrap the per-row data."""
    rows = []
    for item in results or []:
        if isinstance(item, dict) and isinstance(item.get("data"), dict):
            rows.append(item["data"])
        else:
            rows.append(item)
    return rows


def _unwrap_list(response: Any, key: str) -> List[Dict[str, Any]]:
    """Some list endpoints return a bare array, others wrap it as {key: [...]}."""
    if isinstance(response, list):
        return response
    if isinstance(response, dict) and isinstance(response.get(key), list):
        return response[key]
    return []


class HoneycombAPI:
    """Async client for the Honeycomb REST API across one or more environments."""

    def __init__(
        self,
        config: HoneycombConfig,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_attempts: int = QUERY_MAX_ATTEMPTS,
        poll_interval: float = QUERY_POLL_INTERVAL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache: Optional[MetadataCache] = None
    ):
        self._environments = config.by_name()
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.poll_interval = poll_interval
        self._transport = transport
        self.cache = cache

    def get_environments(self) -> List[str]:
        return list(self._environments.keys())

    def _get_environment(self, environment: str) -> EnvironmentConfig:
        env = self._environments.get(environment)
        if env is None:
            raise ToolInputError(
                f'Unknown environment: "{environment}". '
                f'Available environments: {", ".join(self.get_environments())}',
                parameter="environment"
            )
        return env

    @trace_honeycomb_api_call(operation="http_request")
    async def request(
        self,
        environment: str,
        path: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Make a request to the Honeycomb API.

        Args:
            environment: Configured environment whose API key is used
            path: API path, e.g. /1/datasets
            method: HTTP method
            params: Query parameters
            json_data: JSON body for POST requests

        Returns:
            Decoded JSON response

        Raises:
            ToolInputError: If the environment is not configured
            HoneycombAPIError: For transport failures and HTTP status >= 400
        """
        env = self._get_environment(environment)
        url = f"{env.base_url}{path}"
        headers = {
            "X-Honeycomb-Team": env.api_key,
            "Content-Type": "application/json",
        }

        logger.debug(f"{method} {path} | env:{environment} | params:{params}")

        span = get_current_span()
        add_honeycomb_context(span, environment=environment)
        add_span_attributes(span, {"http.method": method, "http.url": url})

        with MetricsTimer(_endpoint_label(path), method, environment=environment) as timer:
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    response = await client.request(method, url, params=params, json=json_data, headers=headers)
            except httpx.HTTPError as e:
                logger.error(f"HTTP error | path:{path} | error:{e}")
                timer.set_status(503)
                raise HoneycombAPIError(
                    f"Request to Honeycomb failed: {e}",
                    suggestions=["Check network connectivity to the Honeycomb API endpoint"]
                )

            timer.set_status(response.status_code)
            add_span_attributes(span, {"http.status_code": response.status_code})

            if response.status_code >= 400:
                raise self._api_error(response)

            logger.debug(f"response {response.status_code} | size:{len(response.content)}")
            if not response.content:
                return None
            try:
                return response.json()
            except json.JSONDecodeError as e:
                raise HoneycombAPIError(
                    f"Invalid JSON response: {e}", status_code=response.status_code
                )

    def _api_error(self, response: httpx.Response) -> HoneycombAPIError:
        """Translate an error response, keeping Honeycomb's own message when it sends one."""
        response_data = None
        message = response.reason_phrase or "request failed"
        try:
            response_data = response.json()
        except (json.JSONDecodeError, ValueError):
            pass
        if isinstance(response_data, dict):
            message = response_data.get("error") or response_data.get("message") or message

        logger.warning(f"API error {response.status_code} | message:{str(message)[:200]}")
        return HoneycombAPIError(
            str(message),
            status_code=response.status_code,
            response_data=response_data if isinstance(response_data, dict) else None,
            suggestions=suggestions_for_status(response.status_code) + enhance_api_error(str(message))
        )

    async def _cached(
        self,
        environment: str,
        resource: str,
        resource_id: Any,
        fetch: Callable[[], Awaitable[Any]]
    ) -> Any:
        """Serve a catalog lookup from the metadata cache, fetching and storing it on a miss."""
        if self.cache is not None:
            cached = self.cache.get(environment, resource, resource_id)
            if cached is not None:
                return cached
        value = await fetch()
        if self.cache is not None:
            self.cache.set(environment, resource, value, resource_id)
        return value

    # Auth / team
    async def get_auth(self, environment: str) -> Dict[str, Any]:
        return await self._cached(environment, "auth", None, lambda: self.request(environment, "/1/auth"))

    async def get_team_slug(self, environment: str) -> str:
        auth = await self.get_auth(environment)
        slug = ((auth or {}).get("team") or {}).get("slug")
        if not slug:
            raise HoneycombAPIError("Could not determine team slug from the API key")
        return slug

    # Datasets
    async def list_datasets(self, environment: str) -> List[Dict[str, Any]]:
        return await self._cached(
            environment, "dataset", None, lambda: self.request(environment, "/1/datasets")
        ) or []

    async def get_dataset(self, environment: str, dataset: str) -> Dict[str, Any]:
        return await self._cached(
            environment, "dataset", dataset, lambda: self.request(environment, f"/1/datasets/{dataset}")
        )

    # Columns
    async def get_columns(self, environment: str, dataset: str) -> List[Dict[str, Any]]:
        return await self._cached(
            environment, "column", dataset, lambda: self.request(environment, f"/1/columns/{dataset}")
        ) or []

    async def get_column_by_name(self, environment: str, dataset: str, key_name: str) -> Dict[str, Any]:
        return await self._cached(
            environment, "column", (dataset, key_name),
            lambda: self.request(environment, f"/1/columns/{dataset}", params={"key_name": key_name})
        )

    async def get_visible_columns(self, environment: str, dataset: str) -> List[Dict[str, Any]]:
        columns = await self.get_columns(environment, dataset)
        return [column for column in columns if not column.get("hidden")]

    # Queries
    async def create_query(self, environment: str, dataset: str, query: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request(environment, f"/1/queries/{dataset}", method="POST", json_data=query)

    async def create_query_result(self, environment: str, dataset: str, query_id: str) -> Dict[str, Any]:
        return await self.request(
            environment, f"/1/query_results/{dataset}", method="POST", json_data={"query_id": query_id}
        )

    async def get_query_results(
        self,
        environment: str,
        dataset: str,
        query_result_id: str,
        include_series: bool = False
    ) -> Dict[str, Any]:
        response = await self.request(
            environment,
            f"/1/query_results/{dataset}/{query_result_id}",
            params={"include_series": str(include_series).lower()}
        )
        if not include_series and isinstance(response, dict) and isinstance(response.get("data"), dict):
            response["data"].pop("series", None)
        return response

    async def query_and_wait_for_results(
        self,
        environment: str,
        dataset: str,
        query: Dict[str, Any],
        include_series: bool = False
    ) -> Dict[str, Any]:
        """
        Create a query, start a query result and poll until it completes.

        Raises:
            HoneycombAPIError: 504 if the result is not complete after max_attempts polls
        """
        query = {**query, "limit": query.get("limit") or DEFAULT_QUERY_LIMIT}
        created = await self.create_query(environment, dataset, query)
        query_result = await self.create_query_result(environment, dataset, created["id"])
        query_result_id = query_result["id"]

        for attempt in range(1, self.max_attempts + 1):
            results = await self.get_query_results(environment, dataset, query_result_id, include_series)
            if results.get("complete"):
                logger.info(f"query complete | dataset:{dataset} | attempts:{attempt}")
                return results
            logger.debug(f"query pending | dataset:{dataset} | attempt:{attempt}/{self.max_attempts}")
            if attempt < self.max_attempts:
                await asyncio.sleep(self.poll_interval)

        logger.warning(f"query timed out | dataset:{dataset} | attempts:{self.max_attempts}")
        raise HoneycombAPIError(
            "Query timed out waiting for results",
            status_code=504,
            suggestions=suggestions_for_status(504)
        )

    async def run_analysis_query(self, environment: str, dataset: str, query: Dict[str, Any]) -> QueryResult:
        """
        Run a query to completion and return its rows.

        Raises:
            HoneycombAPIError: On any upstream failure; a 422 carries query validation hints
        """
        try:
            results = await self.query_and_wait_for_results(
                environment, dataset, query, include_series=has_heatmap(query)
            )
        except HoneycombAPIError as e:
            if e.status_code == 422:
                hints = QUERY_VALIDATION_HINTS if query.get("granularity") is not None else []
                raise HoneycombAPIError(
                    f"Query validation failed: {e.message}",
                    status_code=422,
                    response_data=e.response_data,
                    suggestions=hints + e.suggestions
                )
            raise

        data = results.get("data") or {}
        links = results.get("links") or {}
        return QueryResult(
            rows=_flatten_rows(data.get("results")),
            series=data.get("series") or [],
            query_url=links.get("query_url"),
        )

    # SLOs
    async def get_slos(self, environment: str, dataset: str) -> List[Dict[str, Any]]:
        return await self._cached(
            environment, "slo", dataset, lambda: self.request(environment, f"/1/slos/{dataset}")
        ) or []

    async def get_slo(self, environment: str, dataset: str, slo_id: str) -> Dict[str, Any]:
        return await self._cached(
            environment, "slo", (dataset, slo_id),
            lambda: self.request(environment, f"/1/slos/{dataset}/{slo_id}", params={"detailed": "true"})
        )

    # Triggers
    async def get_triggers(self, environment: str, dataset: str) -> List[Dict[str, Any]]:
        return await self._cached(
            environment, "trigger", dataset, lambda: self.request(environment, f"/1/triggers/{dataset}")
        ) or []

    async def get_trigger(self, environment: str, dataset: str, trigger_id: str) -> Dict[str, Any]:
        return await self._cached(
            environment, "trigger", (dataset, trigger_id),
            lambda: self.request(environment, f"/1/triggers/{dataset}/{trigger_id}")
        )

    # Boards
    async def get_boards(self, environment: str) -> List[Dict[str, Any]]:
        boards = await self._cached(environment, "board", None, lambda: self.request(environment, "/1/boards"))
        return _unwrap_list(boards, "boards")

    async def get_board(self, environment: str, board_id: str) -> Dict[str, Any]:
        return await self._cached(
            environment, "board", board_id, lambda: self.request(environment, f"/1/boards/{board_id}")
        )

    # Markers and recipients
    async def get_markers(self, environment: str) -> List[Dict[str, Any]]:
        markers = await self._cached(
            environment, "marker", None, lambda: self.request(environment, "/1/markers/__all__")
        )
        return _unwrap_list(markers, "markers")

    async def get_recipients(self, environment: str) -> List[Dict[str, Any]]:
        recipients = await self._cached(
            environment, "recipient", None, lambda: self.request(environment, "/1/recipients")
        )
        return _unwrap_list(recipients, "recipients")


_api: Optional[HoneycombAPI] = None


def get_api() -> HoneycombAPI:
    """
    Shared client built from the loaded configuration.

    Raises:
        ConfigError: If Honeycomb is not configured
    """
    global _api
    if _api is None:
        config = load_config()
        cache = MetadataCache(load_cache_config())
        _api = HoneycombAPI(config, cache=cache)
        logger.info(
            f"Honeycomb client ready | environments:{','.join(_api.get_environments())} | "
            f"cache:{'on' if cache.enabled else 'off'}"
        )
    return _api


def set_api(api: Optional[HoneycombAPI]) -> None:
    """Replace the shared client (None resets it)."""
    global _api
    _api = api
