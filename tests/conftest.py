import copy
import os
from typing import Any, Dict, Optional
from unittest.mock import MagicMock

os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
import requests

from match_patrol.services.profile_store import ProfileExists, UsernameTaken, flatten_patch
from match_patrol.utils.exceptions import ProfileNotFound


class InMemoryProfileStore:
    """Dict-backed stand-in for MongoProfileStore with the same claim semantics"""

    def __init__(self):
        self.profiles: Dict[str, Dict[str, Any]] = {}
        self.usernames: Dict[str, str] = {}
        self.probes = 0

    async def get_profile(self, uid: str) -> Optional[Dict[str, Any]]:
        profile = self.profiles.get(uid)
        return copy.deepcopy(profile) if profile is not None else None

    async def username_owner(self, display_id: str) -> Optional[str]:
        self.probes += 1
        return self.usernames.get(display_id)

    async def create_profile(self, uid: str, profile: Dict[str, Any]) -> None:
        display_id = profile["displayId"]
        if display_id in self.usernames:
            raise UsernameTaken(display_id)
        if uid in self.profiles:
            raise ProfileExists(uid)
        self.usernames[display_id] = uid
        self.profiles[uid] = copy.deepcopy(profile)

    async def set_display_id(self, uid: str, display_id: str, overwrite: bool = False) -> None:
        if uid not in self.profiles:
            raise ProfileNotFound(uid)
        owner = self.usernames.get(display_id)
        if not overwrite and owner not in (None, uid):
            raise UsernameTaken(display_id)
        self.usernames[display_id] = uid
        self.profiles[uid]["displayId"] = display_id

    async def update_profile(self, uid: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if uid not in self.profiles:
            return None
        for path, value in flatten_patch(patch).items():
            target = self.profiles[uid]
            *parents, leaf = path.split(".")
            for key in parents:
                if not isinstance(target.get(key), dict):
                    target[key] = {}
                target = target[key]
            target[leaf] = copy.deepcopy(value)
        return copy.deepcopy(self.profiles[uid])


def upstream_response(payload: Any, status_code: int = 200) -> MagicMock:
    """A requests.Response look-alike"""
    resp = MagicMock()
    resp.status_code = status_code
    resp.reason = "OK" if status_code < 400 else "Error"
    resp.headers = {"Content-Type": "application/json"}
    resp.text = str(payload)
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error", response=resp)
    return resp


class UpstreamStub:
    """side_effect for requests.request that answers by URL suffix and records calls"""

    def __init__(self, routes: Dict[str, Any]):
        self.routes = routes
        self.calls = []

    def __call__(self, method, url, json=None, headers=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "timeout": timeout})
        for suffix, outcome in self.routes.items():
            if url.endswith(suffix):
                if isinstance(outcome, Exception):
                    raise outcome
                return outcome
        raise requests.ConnectionError(f"no route for {url}")

    def paths(self):
        return [call["url"].split("/", 3)[-1] for call in self.calls]


@pytest.fixture
def store():
    return InMemoryProfileStore()
