from __future__ import annotations

from typing import Any, ClassVar, Dict, Generic, List, Mapping, Optional, Type, TypeVar, Union

import httpx
from pydantic import TypeAdapter, ValidationError

from sitedash.app_logger import get_logger
from sitedash.errors import (
    NetworkFailure,
    NotFound,
    UnknownFailure,
    ValidationFailure,
)
from sitedash.schemas.base import APIModel, EntityModel
from sitedash.settings import Settings, get_settings

log = get_logger("services.api")

_VALIDATION_STATUSES = {400, 409, 422}

E = TypeVar("E", bound=EntityModel)


def _error_detail(resp: httpx.Response) -> Optional[str]:
    """Pull a human-readable message out of an error body, if it has one."""
    try:
        body = resp.json()
    except ValueError:
        text = resp.text.strip()
        return text[:200] or None
    if isinstance(body, dict):
        for key in ("detail", "message", "error"):
            val = body.get(key)
            if isinstance(val, str) and val:
                return val
            if val:
                return str(val)
    return None


class ApiClient:
    """
    Thin async wrapper around the project management REST API.

    Every call opens a short-lived `httpx.AsyncClient`, performs one request
    and turns whatever goes wrong into a typed `SiteDashError`. Successful
    calls return the decoded JSON body (or None for empty bodies).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        cfg = settings or get_settings()
        self.base_url = (base_url or cfg.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else cfg.request_timeout
        self.max_retries = max_retries if max_retries is not None else cfg.max_retries
        # Injected transports (tests, MockTransport) bypass the retrying default
        self._transport = transport

    def _make_client(self) -> httpx.AsyncClient:
        transport = self._transport or httpx.AsyncHTTPTransport(retries=self.max_retries)
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        url = self.url_for(path)
        context = {"method": method, "url": url}
        log.info("[api] %s %s", method, url)

        try:
            async with self._make_client() as client:
                resp = await client.request(method, url, json=json, params=params)
        except httpx.TimeoutException as e:
            log.error("[api] timeout on %s %s", method, url)
            raise NetworkFailure(
                f"Request timed out: {method} {url}", context=context, cause=e
            ) from e
        except httpx.RequestError as e:
            log.error("[api] network error on %s %s: %s", method, url, e)
            raise NetworkFailure(
                f"Network error contacting {url}: {e}", context=context, cause=e
            ) from e

        log.debug("[api] status=%s bytes=%s", resp.status_code, len(resp.content))

        if resp.status_code == 404:
            detail = _error_detail(resp)
            log.warning("[api] not found: %s %s", method, url)
            raise NotFound(detail, status_code=404, context=context)
        if resp.status_code in _VALIDATION_STATUSES:
            detail = _error_detail(resp) or f"Request rejected with HTTP {resp.status_code}"
            log.warning("[api] rejected payload (HTTP %s): %s", resp.status_code, detail)
            raise ValidationFailure(detail, status_code=resp.status_code, context=context)
        if resp.is_error:
            detail = _error_detail(resp)
            message = f"API returned HTTP {resp.status_code}"
            if detail:
                message = f"{message}: {detail}"
            log.error("[api] %s", message)
            raise UnknownFailure(message, status_code=resp.status_code, context=context)

        if not resp.content or resp.status_code == 204:
            return None
        try:
            return resp.json()
        except ValueError as e:
            log.exception("[api] failed to decode JSON from %s", url)
            raise UnknownFailure(
                f"Error decoding API JSON from {url}: {e}", context=context, cause=e
            ) from e

    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, body: Any) -> Any:
        return await self.request("POST", path, json=body)

    async def put(self, path: str, body: Any) -> Any:
        return await self.request("PUT", path, json=body)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)


class EntityClient(Generic[E]):
    """
    CRUD client for one entity type.

    Subclasses set `path`, `entity_name` and the three schema classes:
      GET    {path}         -> list()
      GET    {path}/{id}    -> get(id)
      POST   {path}         -> create(payload)
      PUT    {path}/{id}    -> update(id, partial)
      DELETE {path}/{id}    -> delete(id)
    """

    path: ClassVar[str]
    entity_name: ClassVar[str]
    model: ClassVar[Type[EntityModel]]
    create_model: ClassVar[Type[APIModel]]
    update_model: ClassVar[Type[APIModel]]

    def __init__(self, api: ApiClient) -> None:
        self.api = api

    # ---- decoding ----------------------------------------------------
    def _decode(self, data: Any) -> E:
        try:
            return self.model.model_validate(data)  # type: ignore[return-value]
        except ValidationError as e:
            log.warning("[api] malformed %s payload: %s", self.entity_name, e)
            raise ValidationFailure(
                f"Malformed {self.entity_name} returned by API",
                context={"entity": self.entity_name},
                cause=e,
            ) from e

    def _decode_many(self, data: Any) -> List[E]:
        # Accept either a plain list or an {items: [...]} envelope
        if isinstance(data, dict) and "items" in data:
            data = data["items"]
        if not isinstance(data, list):
            raise ValidationFailure(
                f"Expected a list of {self.entity_name}s, got {type(data).__name__}",
                context={"entity": self.entity_name},
            )
        try:
            return TypeAdapter(List[self.model]).validate_python(data)
        except ValidationError as e:
            log.warning("[api] malformed %s list: %s", self.entity_name, e)
            raise ValidationFailure(
                f"Malformed {self.entity_name} list returned by API",
                context={"entity": self.entity_name},
                cause=e,
            ) from e

    def _coerce(self, schema: Type[APIModel], payload: Union[APIModel, Dict[str, Any]]) -> APIModel:
        if isinstance(payload, schema):
            return payload
        data = payload.model_dump(exclude_unset=True) if isinstance(payload, APIModel) else payload
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            raise ValidationFailure(
                f"Invalid {self.entity_name} data: {e.errors()[0].get('msg', e)}",
                context={"entity": self.entity_name},
                cause=e,
            ) from e

    def _item_path(self, entity_id: str) -> str:
        return f"{self.path}/{entity_id}"

    def _not_found(self, err: NotFound, entity_id: str) -> NotFound:
        return NotFound(
            f"{self.entity_name.capitalize()} {entity_id} not found",
            entity=self.entity_name,
            entity_id=entity_id,
            status_code=err.status_code,
            cause=err,
        )

    # ---- operations --------------------------------------------------
    async def list(self) -> List[E]:
        return self._decode_many(await self.api.get(self.path))

    async def get(self, entity_id: str) -> E:
        try:
            data = await self.api.get(self._item_path(entity_id))
        except NotFound as e:
            raise self._not_found(e, entity_id) from e
        return self._decode(data)

    async def create(self, payload: Union[APIModel, Dict[str, Any]]) -> E:
        body = self._coerce(self.create_model, payload).to_payload()
        return self._decode(await self.api.post(self.path, body))

    async def update(self, entity_id: str, partial: Union[APIModel, Dict[str, Any]]) -> E:
        if isinstance(partial, dict):
            partial = {**partial, "id": entity_id}
        body = self._coerce(self.update_model, partial).to_payload(partial=True)
        body["id"] = entity_id
        try:
            data = await self.api.put(self._item_path(entity_id), body)
        except NotFound as e:
            raise self._not_found(e, entity_id) from e
        return self._decode(data)

    async def delete(self, entity_id: str) -> None:
        try:
            await self.api.delete(self._item_path(entity_id))
        except NotFound as e:
            raise self._not_found(e, entity_id) from e


__all__ = ["ApiClient", "EntityClient"]
