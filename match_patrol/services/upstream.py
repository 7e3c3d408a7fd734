import asyncio
import functools
from typing import Any, Dict, Optional

import requests

from match_patrol.utils.config import EXTERNAL_API_BASE
from match_patrol.utils.exceptions import UpstreamUnavailable
from match_patrol.utils.logging_config import get_logger

logger = get_logger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


def upstream_url(path: str) -> str:
    return f"{EXTERNAL_API_BASE}/{path.lstrip('/')}"


def send_raw(method: str, path: str, payload: Optional[Dict[str, Any]], timeout: float) -> requests.Response:
    """One upstream call with no status check; transport errors propagate as ``requests`` exceptions."""
    url = upstream_url(path)
    logger.debug(f"Upstream {method} {url} payload={payload}")
    return requests.request(method, url, json=payload, headers=JSON_HEADERS, timeout=timeout)


def _send(method: str, path: str, payload: Optional[Dict[str, Any]], timeout: float) -> Any:
    try:
        resp = send_raw(method, path, payload, timeout)
        resp.raise_for_status()
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        logger.warning(f"Upstream {method} {path} answered {status}")
        raise UpstreamUnavailable(f"Upstream {path} returned {status}", endpoint=path,
                                  status_code=status, cause=e) from e
    except requests.RequestException as e:
        logger.warning(f"Upstream {method} {path} failed: {e}")
        raise UpstreamUnavailable(f"Upstream {path} unreachable", endpoint=path, cause=e) from e

    try:
        return resp.json()
    except ValueError as e:
        logger.warning(f"Upstream {method} {path} returned a non-JSON body")
        raise UpstreamUnavailable(f"Upstream {path} returned a malformed body", endpoint=path,
                                  status_code=resp.status_code, cause=e) from e


def post_json(path: str, payload: Dict[str, Any], timeout: float) -> Any:
    return _send("POST", path, payload, timeout)


def get_json(path: str, timeout: float) -> Any:
    return _send("GET", path, None, timeout)


async def apost_json(path: str, payload: Dict[str, Any], timeout: float) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(post_json, path, payload, timeout))


async def aget_json(path: str, timeout: float) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(get_json, path, timeout))


async def asend_raw(method: str, path: str, payload: Optional[Dict[str, Any]], timeout: float) -> requests.Response:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(send_raw, method, path, payload, timeout))
