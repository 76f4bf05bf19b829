"""
Fetch package metadata from an OData (v2) package catalog.

Only metadata is fetched here; downloading package content is left to the
caller, who attaches the materialized package to the RemotePackage.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from liget.data.remote_package import RemotePackage
from liget.services.hashing import CryptoHashProvider

logger = logging.getLogger(__name__)

ODATA_JSON = "application/json;odata=verbose"


def _odata_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _extract_entries(payload: Any) -> tuple[List[Dict[str, Any]], Optional[str]]:
    """
    Return (entries, next page URL) from a verbose (``{"d": ...}``) or
    light (``{"value": [...]}``) OData payload.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Unexpected catalog payload type: {type(payload).__name__}")

    if "value" in payload and isinstance(payload["value"], list):
        return payload["value"], payload.get("odata.nextLink") or payload.get("@odata.nextLink")

    body = payload.get("d")
    if isinstance(body, list):
        return body, None
    if isinstance(body, dict):
        if "results" in body:
            return list(body["results"]), body.get("__next")
        return [body], None
    raise ValueError("Catalog payload has no entries")


class CatalogClient:
    """Reads package entries from a remote catalog feed."""

    def __init__(
        self,
        feed_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        hash_provider: Optional[CryptoHashProvider] = None,
    ):
        self.feed_url = feed_url.rstrip("/")
        self.timeout = timeout
        self.hash_provider = hash_provider
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            follow_redirects=True,
            headers={"Accept": ODATA_JSON},
        )

    async def get_package(self, package_id: str, version: str) -> Optional[RemotePackage]:
        """
        Fetch a single package version.

        Returns:
            The package metadata, or None if the catalog does not know it
        """
        url = f"{self.feed_url}/Packages(Id={_odata_literal(package_id)},Version={_odata_literal(version)})"
        logger.debug(f"Querying catalog entry {package_id} {version} from {url}")

        async with self._client() as client:
            response = await client.get(url)
            if response.status_code == 404:
                logger.debug(f"Package not found: {package_id} {version}")
                return None
            payload = self._read_payload(response, package_id)

        entries, _ = _extract_entries(payload)
        if not entries:
            return None
        return self._to_package(entries[0])

    async def find_packages_by_id(self, package_id: str) -> List[RemotePackage]:
        """
        Fetch every version of a package, following the catalog's paging links.
        """
        url: Optional[str] = f"{self.feed_url}/FindPackagesById()"
        params: Optional[Dict[str, str]] = {"id": _odata_literal(package_id)}
        packages: List[RemotePackage] = []

        async with self._client() as client:
            while url:
                logger.debug(f"Querying catalog versions of {package_id} from {url}")
                response = await client.get(url, params=params)
                if response.status_code == 404:
                    logger.debug(f"Package not found: {package_id}")
                    break
                entries, url = _extract_entries(self._read_payload(response, package_id))
                # Next-page links already carry the query string.
                params = None
                packages.extend(self._to_package(entry) for entry in entries)

        logger.debug(f"Found {len(packages)} versions of {package_id}")
        return packages

    def _to_package(self, entry: Dict[str, Any]) -> RemotePackage:
        package = RemotePackage.from_catalog_entry(entry)
        # Entries without PackageHashAlgorithm are hashed with the configured provider.
        if self.hash_provider is not None and not package.package_hash_algorithm:
            package.set_hash_provider(self.hash_provider)
        return package

    def _read_payload(self, response: httpx.Response, package_id: str) -> Any:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Catalog request for {package_id} failed: {e}", exc_info=True)
            raise

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Catalog returned invalid JSON for {package_id}: {e}", exc_info=True)
            raise ValueError(f"Catalog returned invalid JSON for {package_id}: {e}") from e
