from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from ..config import DEFAULT_EVI_HOST, Credentials

EVI_CHAT_PATH = "/v0/evi/chat"

_SECRET_PARAMS = {"api_key", "access_token"}


def build_chat_url(
    credentials: Credentials,
    config_id: str | None = None,
    host: str = DEFAULT_EVI_HOST,
) -> str:
    """Build the EVI websocket target for a set of credentials.

    Raises:
        ConfigurationError: If both or neither credential is set
    """
    name, value = credentials.query_param()
    params = {name: value}
    if config_id:
        params["config_id"] = config_id
    return f"wss://{host}{EVI_CHAT_PATH}?{urlencode(params)}"


def redact_url(url: str) -> str:
    """Mask credential query parameters so the URL can be logged."""
    parts = urlsplit(url)
    query = [
        (key, "***" if key in _SECRET_PARAMS else value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="*")))
