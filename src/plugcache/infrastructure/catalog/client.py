"""Plugin catalog client: one GET, shape-validated, never cached."""

from __future__ import annotations

import httpx
import structlog
from pydantic import ValidationError

from plugcache.domain.entities.catalog import PluginCatalog
from plugcache.domain.plugins import CatalogFetchError, CatalogValidationError

from .adapters import to_domain_catalog
from .validation_schema import PluginCatalogModel

log = structlog.get_logger(__name__)


class CatalogClient:
    """Fetches the list of available plugins. Implements ``PluginCatalogPort``."""

    def __init__(self, *, url: str, http_client: httpx.AsyncClient) -> None:
        self._url = url
        self._http = http_client

    @property
    def url(self) -> str:
        return self._url

    async def fetch(self) -> PluginCatalog:
        try:
            resp = await self._http.get(self._url)
        except httpx.HTTPError as e:
            log.error("catalog_fetch_failed", url=self._url, error_message=str(e))
            raise CatalogFetchError(
                f"Failed to load list of formatters from: {self._url}", url=self._url
            ) from e

        if not resp.is_success:
            log.error("catalog_fetch_bad_status", url=self._url, status=resp.status_code)
            raise CatalogFetchError(
                f"Failed to load list of formatters from: {self._url}",
                url=self._url,
                status=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise CatalogFetchError(
                f"Catalog at {self._url} is not valid JSON", url=self._url
            ) from e

        try:
            model = PluginCatalogModel.model_validate(data)
        except ValidationError as e:
            log.error(
                "catalog_validation_failed",
                url=self._url,
                error_details=e.errors(),
            )
            raise CatalogValidationError("Invalid plugin information format.") from e

        catalog = to_domain_catalog(model)
        log.info("catalog_loaded", url=self._url, plugins=len(catalog.latest))
        return catalog
