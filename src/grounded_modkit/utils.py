# src/grounded_modkit/utils.py
import importlib.metadata
import math
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

import requests

from grounded_modkit.constants import (
    APP_NAME,
    GITHUB_API_TIMEOUT,
    RATE_LIMIT_WARNING_THRESHOLD,
)
from grounded_modkit.exceptions import (
    APIError,
    AuthenticationError,
    RateLimitError,
    ResourceNotFoundError,
)
from grounded_modkit.log_utils import logger

# Cache for the User-Agent string to avoid repeated metadata lookups
_USER_AGENT_CACHE = None

_token_warning_shown = False
_token_warning_lock = threading.Lock()

# Last observed rate limit: (remaining, reset time)
_rate_limit_info: Optional[Tuple[int, Optional[datetime]]] = None
_rate_limit_lock = threading.Lock()

_BYTE_UNITS = ["Bytes", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB"]


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `grounded-modkit/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version(APP_NAME)
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"{APP_NAME}/{app_version}"

    return _USER_AGENT_CACHE


def get_effective_github_token(
    github_token: Optional[str], allow_env_token: bool = True
) -> Optional[str]:
    """
    Determine the GitHub token to use, preferring the explicit argument over the environment.

    Parameters:
        github_token (Optional[str]): Explicit token to use; leading and trailing whitespace are ignored.
        allow_env_token (bool): If True, fall back to the `GITHUB_TOKEN` environment variable when no explicit token is provided.

    Returns:
        Optional[str]: The chosen token with surrounding whitespace removed, or `None` if no token is available.
    """
    candidate = (github_token or "").strip()
    if candidate:
        return candidate
    if not allow_env_token:
        return None
    env_token = os.environ.get("GITHUB_TOKEN")
    return env_token.strip() if env_token else None


def _show_token_warning_if_needed(effective_token: Optional[str]) -> None:
    """Log a one-time notice when no GitHub token is available."""
    if not effective_token:
        global _token_warning_shown
        with _token_warning_lock:
            if not _token_warning_shown:
                logger.debug(
                    "No GITHUB_TOKEN found - using unauthenticated API requests (60/hour limit). "
                    "Set GITHUB_TOKEN or run 'grounded-modkit setup --token' for higher limits."
                )
                _token_warning_shown = True


def _get_header(headers: Any, name: str) -> Any:
    """
    Look up a response header case-insensitively.

    Works for requests' CaseInsensitiveDict as well as plain dicts used in tests;
    anything without a mapping interface yields None.
    """
    if not isinstance(headers, Mapping) and not hasattr(headers, "items"):
        return None
    value = headers.get(name) if hasattr(headers, "get") else None
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if isinstance(key, str) and key.lower() == lowered:
            return candidate
    return None


def _parse_rate_limit_header(header_value: Any) -> Optional[int]:
    """
    Parse an HTTP rate-limit header value into an integer.

    Accepts numeric strings, integers, or floats. Non-numeric or otherwise
    unparsable values return `None`.
    """
    try:
        if isinstance(header_value, str) and header_value.strip().isdigit():
            return int(header_value.strip())
        elif isinstance(header_value, (int, float)):
            return int(header_value)
    except (ValueError, TypeError):
        pass
    return None


def _parse_reset_header(header_value: Any) -> Optional[datetime]:
    """Convert an `X-RateLimit-Reset` epoch-seconds value into an aware datetime."""
    seconds = _parse_rate_limit_header(header_value)
    if seconds is None:
        return None
    try:
        return datetime.fromtimestamp(seconds, timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def get_rate_limit_info() -> Optional[Tuple[int, Optional[datetime]]]:
    """
    Return the most recently observed rate-limit state.

    Returns:
        Optional[Tuple[int, Optional[datetime]]]: `(remaining, reset_time)` from the last API response that carried rate-limit headers, or None if none has been seen this session.
    """
    with _rate_limit_lock:
        return _rate_limit_info


def clear_rate_limit_info() -> None:
    """Forget the tracked rate-limit state."""
    global _rate_limit_info
    with _rate_limit_lock:
        _rate_limit_info = None


def _track_rate_limit(headers: Any) -> Tuple[Optional[int], Optional[datetime]]:
    global _rate_limit_info
    remaining = _parse_rate_limit_header(_get_header(headers, "X-RateLimit-Remaining"))
    reset_time = _parse_reset_header(_get_header(headers, "X-RateLimit-Reset"))
    if remaining is not None:
        with _rate_limit_lock:
            _rate_limit_info = (remaining, reset_time)
        logger.debug(f"GitHub API rate-limit remaining: {remaining}")
    return remaining, reset_time


def make_github_api_request(
    url: str,
    github_token: Optional[str] = None,
    allow_env_token: bool = True,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[int] = None,
    _is_retry: bool = False,
) -> requests.Response:
    """
    Perform a GitHub API GET request and translate error responses into modkit exceptions.

    A non-2xx response whose `X-RateLimit-Remaining` header is zero raises
    RateLimitError carrying the parsed reset time, whatever the status code. A
    401 with a token is retried once without authentication.

    Parameters:
        url (str): GitHub API URL to request.
        github_token (Optional[str]): Explicit GitHub token; trimmed before use.
        allow_env_token (bool): Allow falling back to the GITHUB_TOKEN environment variable.
        params (Optional[Dict[str, Any]]): Query parameters to include in the request.
        timeout (Optional[int]): Request timeout in seconds; the module default is used when omitted.

    Returns:
        requests.Response: The successful HTTP response.

    Raises:
        RateLimitError: The response was an error and the rate-limit quota is exhausted.
        AuthenticationError: GitHub rejected the credentials.
        ResourceNotFoundError: GitHub answered 404.
        APIError: Any other non-2xx response.
        requests.RequestException: For lower-level network or request errors.
    """
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": get_user_agent(),
    }

    effective_token = get_effective_github_token(github_token, allow_env_token)
    if effective_token:
        headers["Authorization"] = f"token {effective_token}"
        logger.debug("Using GitHub token for API authentication")
    else:
        logger.debug("No GitHub token available - using unauthenticated API requests")
    _show_token_warning_if_needed(effective_token)

    logger.debug(f"Making GitHub API request: {url}")
    response = requests.get(
        url, timeout=timeout or GITHUB_API_TIMEOUT, headers=headers, params=params
    )

    remaining, reset_time = _track_rate_limit(getattr(response, "headers", None))
    status = response.status_code

    if 200 <= status < 300:
        if remaining is not None and remaining <= RATE_LIMIT_WARNING_THRESHOLD:
            logger.warning(
                f"GitHub API rate limit running low: {remaining} requests remaining"
            )
        return response

    if remaining == 0:
        reset_str = (
            reset_time.strftime("%Y-%m-%d %H:%M:%S UTC") if reset_time else "unknown"
        )
        logger.info(f"GitHub rate limit exceeded, resets at {reset_str}")
        raise RateLimitError(
            reset_time=reset_time, remaining=0, endpoint=url, status_code=status
        )

    if status == 401 and effective_token and not _is_retry:
        logger.warning(
            f"GitHub token authentication failed for {url}. Retrying without authentication."
        )
        return make_github_api_request(
            url,
            github_token=None,
            allow_env_token=False,
            params=params,
            timeout=timeout,
            _is_retry=True,
        )
    if status == 401:
        raise AuthenticationError(
            "GitHub API authentication failed", endpoint=url, status_code=status
        )
    if status == 404:
        raise ResourceNotFoundError(
            "GitHub resource not found", endpoint=url, status_code=status
        )
    raise APIError(
        f"GitHub API request failed with status {status}",
        endpoint=url,
        status_code=status,
        is_retryable=status >= 500,
    )


def format_bytes(num_bytes: Any, decimals: int = 2) -> str:
    """
    Render a byte count with a binary unit suffix, e.g. `1.5 KB`.

    Zero, empty, or non-numeric input renders as `0 Bytes`.
    """
    try:
        value = float(num_bytes)
    except (TypeError, ValueError):
        return "0 Bytes"
    if not value:
        return "0 Bytes"

    precision = max(decimals, 0)
    index = min(int(math.floor(math.log(abs(value), 1024))), len(_BYTE_UNITS) - 1)
    index = max(index, 0)
    scaled = round(value / math.pow(1024, index), precision)
    if scaled == int(scaled):
        scaled = int(scaled)
    return f"{scaled} {_BYTE_UNITS[index]}"
