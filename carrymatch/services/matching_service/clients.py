import asyncio
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from carrymatch.common.constants import TypeMsg
from carrymatch.common.logger import log_info
from carrymatch.config import settings
from carrymatch.core.matching.exceptions import SourceNotFoundError, SourceUnavailableError
from carrymatch.shared.models.demand_dto import DemandSummary
from carrymatch.shared.models.journey_dto import JourneySummary


class BaseClient:
    """
    JSON-over-HTTP client for an upstream service.

    Request errors and 5xx answers are retried with a linear backoff;
    a 404 is reported at once as SourceNotFoundError.
    """

    kind = "resource"

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        retry_attempts: int = 3,
        retry_delay: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.retry_attempts = max(1, retry_attempts)
        self.retry_delay = retry_delay
        self.client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def close(self):
        await self.client.aclose()

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None, entity_id: Any = None) -> Any:
        last_error: Optional[Exception] = None

        for attempt in range(1, self.retry_attempts + 1):
            try:
                response = await self.client.get(path, params=params)
                if response.status_code == 404:
                    raise SourceNotFoundError(self.kind, entity_id if entity_id is not None else path)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                if e.response.status_code < 500:
                    raise SourceUnavailableError(
                        f"{self.kind} service answered {e.response.status_code} for {path}",
                        status_code=e.response.status_code,
                    ) from e
                last_error = e
            except (httpx.RequestError, ValueError) as e:
                # RequestError covers transport, decoding and redirect failures,
                # ValueError a body that is not JSON
                last_error = e

            if attempt < self.retry_attempts:
                await log_info(
                    f"{self.kind} service call {path} failed (attempt {attempt}/{self.retry_attempts}): {last_error}",
                    type_msg=TypeMsg.WARNING,
                )
                await asyncio.sleep(self.retry_delay * attempt)

        raise SourceUnavailableError(
            f"{self.kind} service unavailable after {self.retry_attempts} attempts: {last_error}",
            path=path,
        ) from last_error

    def _parse(self, model, data: Any):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise SourceUnavailableError(f"Malformed {self.kind} payload: {e.error_count()} errors") from e

    def _parse_list(self, model, data: Any) -> list:
        if not isinstance(data, list):
            raise SourceUnavailableError(f"Expected a list of {self.kind}s, got {type(data).__name__}")
        return [self._parse(model, item) for item in data]


def _client_options() -> Dict[str, Any]:
    return {
        "timeout": settings.sources.SOURCE_TIMEOUT,
        "retry_attempts": settings.sources.SOURCE_RETRY_ATTEMPTS,
        "retry_delay": settings.sources.SOURCE_RETRY_DELAY,
    }


class DemandSourceClient(BaseClient):
    kind = "demand"

    # Query parameter names of the Demand service search endpoint
    SEARCH_PARAMS = {
        "origin_country": "originCountry",
        "origin_city": "originCity",
        "destination_country": "destinationCountry",
        "destination_city": "destinationCity",
        "item_type": "itemType",
        "max_weight": "maxWeight",
    }

    def __init__(self, base_url: Optional[str] = None, **kwargs: Any):
        root = base_url or settings.deployment.DEMAND_SERVICE_URL
        super().__init__(f"{root.rstrip('/')}/api/v1/demands", **{**_client_options(), **kwargs})

    async def get_by_id(self, demand_id: str) -> DemandSummary:
        data = await self._get(f"/{demand_id}", entity_id=demand_id)
        return self._parse(DemandSummary, data)

    async def search(self, *, status: Optional[str] = None, **filters: Any) -> List[DemandSummary]:
        params: Dict[str, Any] = {}
        for name, value in filters.items():
            if value is not None:
                params[self.SEARCH_PARAMS.get(name, name)] = value
        if status is not None:
            params["status"] = str(status)
        data = await self._get("/search", params=params)
        return self._parse_list(DemandSummary, data)


class JourneySourceClient(BaseClient):
    kind = "journey"

    def __init__(self, base_url: Optional[str] = None, **kwargs: Any):
        root = base_url or settings.deployment.JOURNEY_SERVICE_URL
        super().__init__(f"{root.rstrip('/')}/api/v1/journeys", **{**_client_options(), **kwargs})

    async def get_by_id(self, journey_id: int) -> JourneySummary:
        data = await self._get(f"/{journey_id}", entity_id=journey_id)
        return self._parse(JourneySummary, data)

    async def list_by_status(self, status: str) -> List[JourneySummary]:
        data = await self._get(f"/status/{status}")
        return self._parse_list(JourneySummary, data)
