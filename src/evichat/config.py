"""Configuration for an evichat session.

One ChatConfig is built at startup (usually from environment variables)
and handed to the session controller and the HTTP clients. Nothing in the
package reads the environment on its own.
"""

import logging
import os

import httpx
from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_EVI_HOST = "api.hume.ai"
DEFAULT_RETRIEVAL_BASE_URL = "https://prod-1-data.ke.pinecone.io"
DEFAULT_ASSISTANT_NAME = "tes"
DEFAULT_RETRIEVAL_MODEL = "gpt-4o"


class Credentials(BaseModel):
    """EVI credentials: exactly one of api_key / access_token must be set."""

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(default="", description="Hume API key (development use)")
    access_token: str = Field(default="", description="Short-lived access token")

    @property
    def is_valid(self) -> bool:
        """True when exactly one credential form is non-empty."""
        return bool(self.api_key) != bool(self.access_token)

    def query_param(self) -> tuple[str, str]:
        """Return the (name, value) query parameter used to authenticate.

        Raises:
            ConfigurationError: If both or neither credential is set
        """
        if self.api_key and self.access_token:
            raise ConfigurationError(
                "use either an API key or an access token, not both"
            )
        if self.access_token:
            return "access_token", self.access_token
        if self.api_key:
            return "api_key", self.api_key
        raise ConfigurationError(
            "set HUME_API_KEY or HUME_ACCESS_TOKEN to connect"
        )


class RetrievalSettings(BaseModel):
    """Connection settings for the knowledge-base assistant."""

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(description="Assistant service API key")
    assistant_name: str = Field(default=DEFAULT_ASSISTANT_NAME)
    base_url: str = Field(default=DEFAULT_RETRIEVAL_BASE_URL)
    model: str = Field(default=DEFAULT_RETRIEVAL_MODEL)


class ChatConfig(BaseModel):
    """Everything a session needs to talk to the external services."""

    model_config = ConfigDict(frozen=True)

    credentials: Credentials = Field(default_factory=Credentials)
    config_id: str | None = Field(default=None, description="Optional EVI config identifier")
    evi_host: str = Field(default=DEFAULT_EVI_HOST)
    retrieval: RetrievalSettings | None = Field(
        default=None,
        description="Knowledge-base settings; None disables retrieval queries"
    )
    tts_enabled: bool = Field(default=True, description="Speak retrieval answers aloud")

    @classmethod
    def from_env(cls) -> "ChatConfig":
        """Build a config from environment variables.

        Environment variables:
            HUME_API_KEY: Hume API key
            HUME_ACCESS_TOKEN: Hume access token (mutually exclusive with the key)
            HUME_CONFIG_ID: Optional EVI config id
            EVI_HOST: EVI host (default: api.hume.ai)
            PINECONE_API_KEY: Enables retrieval when non-empty
            PINECONE_ASSISTANT_NAME: Assistant name (default: tes)
            PINECONE_BASE_URL: Assistant base URL
        """
        retrieval = None
        pinecone_key = os.getenv("PINECONE_API_KEY", "")
        if pinecone_key:
            retrieval = RetrievalSettings(
                api_key=pinecone_key,
                assistant_name=os.getenv("PINECONE_ASSISTANT_NAME", DEFAULT_ASSISTANT_NAME),
                base_url=os.getenv("PINECONE_BASE_URL", DEFAULT_RETRIEVAL_BASE_URL),
            )

        return cls(
            credentials=Credentials(
                api_key=os.getenv("HUME_API_KEY", ""),
                access_token=os.getenv("HUME_ACCESS_TOKEN", ""),
            ),
            config_id=os.getenv("HUME_CONFIG_ID") or None,
            evi_host=os.getenv("EVI_HOST", DEFAULT_EVI_HOST),
            retrieval=retrieval,
        )

    @classmethod
    async def from_env_with_token(cls) -> "ChatConfig":
        """Like from_env, but authenticates with a token from MY_SERVER_AUTH_URL."""
        config = cls.from_env()
        token = await fetch_access_token(os.getenv("MY_SERVER_AUTH_URL"))
        return config.model_copy(update={"credentials": Credentials(access_token=token)})


async def fetch_access_token(
    auth_url: str | None,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Fetch an EVI access token from the deployment's own auth endpoint.

    Args:
        auth_url: URL returning ``{"access_token": ...}``
        client: Optional client to reuse (a temporary one is created otherwise)

    Returns:
        The access token

    Raises:
        ConfigurationError: If the URL is missing or no token can be obtained
    """
    if not auth_url:
        raise ConfigurationError("set MY_SERVER_AUTH_URL to use token authentication")

    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=10.0)
    try:
        response = await http.get(auth_url)
    except httpx.HTTPError as e:
        raise ConfigurationError(f"token endpoint unreachable: {e}") from e
    finally:
        if owns_client:
            await http.aclose()

    if response.status_code != 200:
        raise ConfigurationError(
            f"failed to load access token (HTTP {response.status_code})"
        )

    try:
        token = response.json()["access_token"]
    except (ValueError, KeyError, TypeError) as e:
        raise ConfigurationError("token endpoint returned no access_token") from e

    logger.debug("Fetched EVI access token from %s", auth_url)
    return token
