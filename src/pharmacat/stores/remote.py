"""Record store backed by the products REST API of another server."""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from src.pharmacat.catalog import CatalogReference
from src.pharmacat.core.errors import (
    NotFoundError,
    StorageError,
    TransportError,
    ValidationError,
)
from src.pharmacat.core.wire import from_wire, to_wire
from src.pharmacat.entities.product import Product, ProductDraft
from src.pharmacat.stores.base import DraftInput, RecordStore


def _error_message(response: httpx.Response) -> tuple[str, dict[str, str]]:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase, {}
    if not isinstance(body, dict):
        return str(body), {}
    message = str(body.get("error") or body.get("detail") or response.reason_phrase)
    fields = body.get("fields") or {}
    return message, {str(k): str(v) for k, v in fields.items()}


class RemoteRecordStore(RecordStore):
    """Talks to ``/products``, ``/download-db`` and ``/upload-db`` over HTTP.

    Any ``httpx.Client`` can be injected; otherwise one is created for
    ``base_url``. Network failures raise ``TransportError``; server answers are
    mapped back onto the local error types by status code.
    """

    backend = "remote"
    snapshot_filename = "pharmacy.sqlite"
    snapshot_media_type = "application/vnd.sqlite3"

    def __init__(
        self,
        client: httpx.Client | None = None,
        catalog: CatalogReference | None = None,
        base_url: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(catalog)
        if client is None:
            if base_url is None:
                raise ValueError("Either client or base_url is required")
            client = httpx.Client(base_url=base_url, timeout=timeout)
            self._owns_client = True
        else:
            self._owns_client = False
        self._client = client

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.error("{} {} failed: {}", method, path, e)
            raise TransportError(f"Cannot reach product server: {e}") from e

        if response.is_success:
            return response

        message, fields = _error_message(response)
        logger.warning("{} {} returned {}: {}", method, path, response.status_code, message)
        if response.status_code == 404:
            raise NotFoundError(path.rsplit("/", 1)[-1])
        if response.status_code in (400, 422):
            raise ValidationError(fields or {"__root__": message}, message=message)
        raise StorageError(message)

    @staticmethod
    def _to_product(body: dict[str, Any]) -> Product:
        data = from_wire(body)
        try:
            return Product.model_validate({"brand": "", **data})
        except ValueError as e:
            raise StorageError(f"Malformed product from server: {e}") from e

    @staticmethod
    def _payload(draft: ProductDraft) -> dict[str, Any]:
        return to_wire(draft.model_dump(mode="json"))

    def list(self) -> list[Product]:
        response = self._request("GET", "/products")
        return [self._to_product(item) for item in response.json()]

    def get(self, code: str) -> Product:
        return self._to_product(self._request("GET", f"/products/{code}").json())

    def create(self, draft: DraftInput) -> Product:
        parsed = self.validate_draft(draft)
        response = self._request("POST", "/products", json=self._payload(parsed))
        return self._to_product(response.json())

    def update(self, code: str, draft: DraftInput) -> Product:
        parsed = self.validate_draft(draft)
        response = self._request("PUT", f"/products/{code}", json=self._payload(parsed))
        return self._to_product(response.json())

    def delete(self, code: str) -> None:
        self._request("DELETE", f"/products/{code}")

    def clear(self) -> int:
        """Delete every product one request at a time.

        Stops at the first failure; products deleted before it stay deleted.
        """
        removed = 0
        for product in self.list():
            self.delete(product.code)
            removed += 1
        logger.info("Cleared {} products on remote server", removed)
        return removed

    def export_snapshot(self) -> bytes:
        return self._request("GET", "/download-db").content

    def import_snapshot(self, blob: bytes) -> None:
        self._request(
            "POST",
            "/upload-db",
            files={"database": (self.snapshot_filename, blob, self.snapshot_media_type)},
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
