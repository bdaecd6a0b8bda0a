"""OCI registry client for devcontainer artifacts.

Pulls a single layer of an artifact (a template/feature tarball or the
index JSON) using anonymous bearer-token authentication.
"""

from __future__ import annotations

import hashlib
import logging
import re
from pathlib import Path
from typing import Any

import httpx

from registry.oci import OciReference, InvalidReferenceError

logger = logging.getLogger(__name__)

INDEX_REFERENCE = "ghcr.io/devcontainers/index:latest"
INDEX_MEDIA_TYPE = "application/vnd.devcontainers.index.layer.v1+json"
ARCHIVE_MEDIA_TYPE = "application/vnd.devcontainers.layer.v1+tar"

MANIFEST_ACCEPT = ", ".join(
    [
        "application/vnd.oci.image.manifest.v1+json",
        "application/vnd.docker.distribution.manifest.v2+json",
    ]
)

_CHALLENGE_PARAM_RE = re.compile(r'(\w+)="([^"]*)"')


class RegistryError(Exception):
    """Raised when a registry operation fails."""

    pass


def parse_bearer_challenge(header: str) -> dict[str, str]:
    """Parse a `WWW-Authenticate: Bearer ...` header into its parameters."""
    scheme, _, params = header.partition(" ")
    if scheme.lower() != "bearer":
        raise RegistryError(f"Unsupported authentication scheme: {scheme}")
    return dict(_CHALLENGE_PARAM_RE.findall(params))


class RegistryClient:
    """Client for pulling devcontainer artifacts from an OCI registry.

    Example:
        >>> client = RegistryClient()
        >>> data = client.pull_archive_bytes("ghcr.io/devcontainers/templates/rust")
        >>> client.pull_index(Path("devcontainer-index.json"))
    """

    def __init__(
        self,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the registry client.

        Args:
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        )

    def _authenticate(self, client: httpx.Client, response: httpx.Response) -> str:
        """Fetch an anonymous token for the challenge in a 401 response."""
        header = response.headers.get("www-authenticate")
        if not header:
            raise RegistryError("Registry requires authentication but sent no challenge")

        challenge = parse_bearer_challenge(header)
        realm = challenge.pop("realm", None)
        if not realm:
            raise RegistryError("Authentication challenge has no realm")

        token_response = client.get(realm, params=challenge)
        token_response.raise_for_status()
        data = token_response.json()
        token = data.get("token") or data.get("access_token")
        if not token:
            raise RegistryError("Token endpoint returned no token")
        return token

    def _get(
        self,
        client: httpx.Client,
        url: str,
        headers: dict[str, str],
        auth: dict[str, str],
    ) -> httpx.Response:
        """GET with a single retry after answering a bearer challenge."""
        response = client.get(url, headers={**headers, **auth})
        if response.status_code == 401 and not auth:
            token = self._authenticate(client, response)
            auth["Authorization"] = f"Bearer {token}"
            response = client.get(url, headers={**headers, **auth})
        response.raise_for_status()
        return response

    def pull_layer(self, reference: OciReference, media_type: str) -> bytes:
        """Download the first layer of an artifact with the given media type.

        Args:
            reference: Artifact to pull.
            media_type: Layer media type to select.

        Returns:
            The verified layer bytes.

        Raises:
            RegistryError: If the artifact, layer or blob cannot be fetched.
        """
        base_url = f"https://{reference.registry}/v2/{reference.repository}"
        auth: dict[str, str] = {}

        try:
            with self._client() as client:
                manifest_response = self._get(
                    client,
                    f"{base_url}/manifests/{reference.manifest_reference}",
                    {"Accept": MANIFEST_ACCEPT},
                    auth,
                )
                manifest: dict[str, Any] = manifest_response.json()
                layer = next(
                    (
                        layer
                        for layer in manifest.get("layers", [])
                        if layer.get("mediaType") == media_type
                    ),
                    None,
                )
                if layer is None:
                    raise RegistryError(f"Missing layer {media_type} in {reference}")

                digest = layer["digest"]
                blob_response = self._get(client, f"{base_url}/blobs/{digest}", {}, auth)
                blob = blob_response.content
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise RegistryError(f"Artifact not found: {reference}") from e
            raise RegistryError(f"Registry error {e.response.status_code} for {reference}") from e
        except httpx.RequestError as e:
            raise RegistryError(f"Connection error: {e}") from e
        except (KeyError, ValueError) as e:
            raise RegistryError(f"Malformed manifest for {reference}: {e}") from e

        algorithm, _, expected = digest.partition(":")
        if algorithm == "sha256" and hashlib.sha256(blob).hexdigest() != expected:
            raise RegistryError(
                f"Digest mismatch for {reference}. The download may be corrupted."
            )

        logger.debug("Pulled %d bytes for %s", len(blob), reference)
        return blob

    def pull_archive_bytes(self, reference: str, tag_name: str | None = None) -> bytes:
        """Pull the tar archive of a feature or template."""
        try:
            oci_ref = OciReference.parse(reference)
        except InvalidReferenceError as e:
            raise RegistryError(str(e)) from e
        if tag_name:
            oci_ref = oci_ref.with_tag(tag_name)
        return self.pull_layer(oci_ref, ARCHIVE_MEDIA_TYPE)

    def pull_index(self, path: Path, reference: str = INDEX_REFERENCE) -> int:
        """Pull the devcontainer index and write it to `path`.

        Returns:
            Number of bytes written.
        """
        try:
            oci_ref = OciReference.parse(reference)
        except InvalidReferenceError as e:
            raise RegistryError(str(e)) from e
        blob = self.pull_layer(oci_ref, INDEX_MEDIA_TYPE)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(blob)
        logger.debug("Wrote %d bytes to %s", len(blob), path)
        return len(blob)
