"""Async client for the Tandoor Recipes API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union
from urllib.parse import urlparse

import httpx

from viberecipe.config import settings
from viberecipe.models.tandoor import AuthScheme, TandoorRecipePayload
from viberecipe.utils.exceptions import AuthError, CreateError, NativeImportError, UploadError
from viberecipe.utils.logging_config import mask_token
from viberecipe.utils.validators import clean_auth_token

logger = logging.getLogger(__name__)

TOKEN: AuthScheme = "Token"
BEARER: AuthScheme = "Bearer"
REJECTED_STATUSES = (401, 403)

IMPORT_FROM_SOURCE_PATH = "/api/recipe-from-source/"
RECIPE_PATH = "/api/recipe/"
IMPORT_REFERER_PATH = "/data/import/url"

IMPORT_500_MESSAGE = (
    "Tandoor failed to import this URL directly. The Tandoor server returned an "
    "internal error (500), which usually means its internal parser could not handle "
    "this page. Switch off the Tandoor importer and use AI extraction instead."
)


class TandoorClient:
    """
    Client bound to one Tandoor instance and token for its lifetime.

    Tandoor deployments accept either `Token <key>` or `Bearer <key>`. Every
    request is sent with the scheme that last worked (initially Token) and
    retried once with the other scheme on 401/403. The working scheme is kept
    on this instance only.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = clean_auth_token(token)
        self.auth_scheme: AuthScheme = TOKEN
        self.timeout = timeout if timeout is not None else settings.tandoor_timeout
        self._client = http_client
        self._owns_client = http_client is None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client (lazy initialization)."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "TandoorClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ---------------------------------------------------------------------
    # Plumbing
    # ---------------------------------------------------------------------

    def build_url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    @property
    def origin(self) -> str:
        parsed = urlparse(self.base_url)
        return f"{parsed.scheme}://{parsed.netloc}"

    @staticmethod
    def _alternate(scheme: AuthScheme) -> AuthScheme:
        return BEARER if scheme == TOKEN else TOKEN

    async def _send(
        self,
        method: str,
        path: str,
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Send one logical request with the auth-scheme fallback.

        Raises:
            AuthError: if both schemes are rejected.
            httpx.HTTPError: on transport failures.
        """
        url = self.build_url(path)
        response: Optional[httpx.Response] = None

        for scheme in (self.auth_scheme, self._alternate(self.auth_scheme)):
            request_headers = {**(headers or {}), "Authorization": f"{scheme} {self.token}"}
            response = await self.client.request(method, url, headers=request_headers, **kwargs)
            logger.info(
                f"Tandoor {method} {path} with '{scheme}' scheme: {response.status_code}",
                extra={"token": mask_token(self.token)},
            )
            if response.status_code not in REJECTED_STATUSES:
                if scheme != self.auth_scheme:
                    logger.info(f"Switching Tandoor auth scheme to '{scheme}'")
                self.auth_scheme = scheme
                return response

        raise AuthError(
            "Tandoor rejected both Token and Bearer authentication",
            status_code=response.status_code,
            body=response.text,
        )

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------

    async def parse_from_url(self, url: str) -> Dict[str, Any]:
        """
        Ask Tandoor's own importer to parse a recipe page.

        Returns:
            The `recipe_json` candidate from the response.

        Raises:
            NativeImportError: on any failure, with a dedicated message for HTTP 500.
            AuthError: if both auth schemes are rejected.
        """
        # This endpoint refuses requests that do not look same-site
        headers = {
            "Content-Type": "application/json",
            "Origin": self.origin,
            "Referer": self.build_url(IMPORT_REFERER_PATH),
            "Accept": "application/json, text/plain, */*",
        }
        logger.info(f"Importing {url} through {self.build_url(IMPORT_FROM_SOURCE_PATH)}")

        try:
            response = await self._send(
                "POST", IMPORT_FROM_SOURCE_PATH, headers=headers, json={"url": url, "data": ""}
            )
        except httpx.HTTPError as e:
            raise NativeImportError(f"Failed to connect to Tandoor: {e}") from e

        if response.status_code == 500:
            logger.error("Tandoor import returned 500", extra={"body": response.text[:500]})
            raise NativeImportError(IMPORT_500_MESSAGE, status_code=500, body=response.text)
        if not response.is_success:
            logger.error(f"Tandoor import failed: {response.status_code}", extra={"body": response.text[:500]})
            raise NativeImportError(
                f"Tandoor import failed (HTTP {response.status_code})",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise NativeImportError(
                "Tandoor returned a non-JSON import response",
                status_code=response.status_code,
                body=response.text,
            ) from e

        recipe_json = data.get("recipe_json") if isinstance(data, dict) else None
        if not recipe_json:
            raise NativeImportError(
                "No recipe data found in Tandoor response", status_code=422, body=response.text
            )
        if not isinstance(recipe_json, dict):
            raise NativeImportError(
                "Tandoor returned malformed recipe data", status_code=422, body=response.text
            )
        return recipe_json

    async def create_recipe(self, payload: Union[TandoorRecipePayload, Dict[str, Any]]) -> Dict[str, Any]:
        """
        Create a recipe.

        Returns:
            The created record, including its Tandoor `id`.

        Raises:
            CreateError: if Tandoor refuses the recipe or cannot be reached.
            AuthError: if both auth schemes are rejected.
        """
        body = payload.to_request() if isinstance(payload, TandoorRecipePayload) else payload
        headers = {"Content-Type": "application/json", "Accept": "application/json"}

        try:
            response = await self._send("POST", RECIPE_PATH, headers=headers, json=body)
        except httpx.HTTPError as e:
            raise CreateError(f"Failed to connect to Tandoor: {e}") from e

        if not response.is_success:
            logger.error(f"Tandoor create failed: {response.status_code}", extra={"body": response.text[:500]})
            raise CreateError(
                f"Tandoor refused to save the recipe (HTTP {response.status_code})",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            created = response.json()
        except ValueError as e:
            raise CreateError(
                "Tandoor returned a non-JSON create response",
                status_code=response.status_code,
                body=response.text,
            ) from e

        logger.info(f"Tandoor recipe created, id={created.get('id')}")
        return created

    async def upload_image(self, recipe_id: Union[int, str], image_url: str) -> None:
        """
        Download `image_url` and attach it to the recipe.

        Raises:
            UploadError: if the download or upload fails.
            AuthError: if both auth schemes are rejected.
        """
        logger.info(f"Fetching image from {image_url[:200]}")
        try:
            image_response = await self.client.get(
                image_url, headers={"User-Agent": settings.user_agent}, follow_redirects=True
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UploadError(f"Failed to fetch image: {e}") from e
        if not image_response.is_success:
            raise UploadError(
                f"Failed to fetch image (HTTP {image_response.status_code})",
                status_code=image_response.status_code,
            )

        content_type = image_response.headers.get("content-type", "image/jpeg").split(";")[0].strip()
        files = {"image": ("recipe_image.jpg", image_response.content, content_type)}
        path = f"{RECIPE_PATH}{recipe_id}/image/"

        try:
            response = await self._send("PUT", path, files=files)
        except httpx.HTTPError as e:
            raise UploadError(f"Failed to upload image: {e}") from e

        if not response.is_success:
            raise UploadError(
                f"Image upload failed (HTTP {response.status_code})",
                status_code=response.status_code,
                body=response.text,
            )
        logger.info("Image uploaded successfully", extra={"recipe_id": recipe_id})
