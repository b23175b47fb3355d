"""Read-only activity feeds shown above the report grid (Linear issues, GitLab events)."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Dict, List, Optional

import requests

from .errors import ApiError
from .models import ActivityItem

logger = logging.getLogger('chronos')

DEFAULT_LINEAR_URL = "https://api.linear.app/graphql"
DEFAULT_GITLAB_URL = "https://gitlab.com/api/v4/"
LINEAR_LIMIT = 50

GQL_RECENT_ISSUES = """query myRecentIssueActivity($from: DateTimeOrDuration!, $to: DateTimeOrDuration!, $first: Int!) {
  issues(
    first: $first,
    sort: { updatedAt: { order: Descending } },
    filter: {
      and: [
        { updatedAt: { gte: $from, lte: $to } },
        { or: [
          { creator: { isMe: { eq: true } } },
          { assignee: { isMe: { eq: true } } },
          { subscribers: { some: { isMe: { eq: true } } } },
          { comments: { some: { user: { isMe: { eq: true } } } } }
        ] }
      ]
    }
  ) {
    nodes { id title identifier updatedAt }
  }
}"""


def _iso(moment: dt.datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=dt.timezone.utc)
    return moment.astimezone(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _get_json(session: requests.Session, method: str, url: str, timeout: float, **kwargs):
    try:
        resp = session.request(method, url, timeout=timeout, **kwargs)
    except requests.RequestException as exc:
        raise ApiError(f"request to {url} failed: {exc}") from exc
    if resp.status_code != 200:
        raise ApiError(f"API request failed with status code {resp.status_code}: {resp.text}", status=resp.status_code)
    try:
        return resp.json()
    except ValueError as exc:
        raise ApiError(f"failed to parse response from {url}: {exc}") from exc


class LinearClient:
    def __init__(self, api_key: str, base_url: str = DEFAULT_LINEAR_URL, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url or DEFAULT_LINEAR_URL
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["Authorization"] = api_key
        self.session.headers["Content-Type"] = "application/json"

    def last_activity(self, start: dt.datetime, end: dt.datetime) -> List[ActivityItem]:
        variables = {"from": _iso(start), "to": _iso(end), "first": LINEAR_LIMIT}
        data = _get_json(self.session, "POST", self.base_url, self.timeout,
                         json={"query": GQL_RECENT_ISSUES, "variables": variables})
        errs = data.get("errors") or []
        if errs:
            raise ApiError("Linear query failed: " + "; ".join(e.get("message", str(e)) for e in errs))
        nodes = (((data.get("data") or {}).get("issues") or {}).get("nodes")) or []
        return [
            ActivityItem(source="linear", label=n.get("identifier") or "", title=n.get("title") or "",
                         timestamp=n.get("updatedAt") or "")
            for n in nodes if isinstance(n, dict)
        ]


class GitlabClient:
    def __init__(self, api_key: str, user_id: str, base_url: str = DEFAULT_GITLAB_URL, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or DEFAULT_GITLAB_URL).rstrip("/") + "/"
        self.user_id = user_id
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["PRIVATE-TOKEN"] = api_key

    def last_activity(self, start: dt.datetime, end: dt.datetime) -> List[ActivityItem]:
        url = f"{self.base_url}users/{self.user_id}/events"
        params = {"after": start.date().isoformat(), "before": end.date().isoformat()}
        data = _get_json(self.session, "GET", url, self.timeout, params=params) or []
        items: List[ActivityItem] = []
        for ev in data:
            if not isinstance(ev, dict):
                continue
            push = ev.get("push_data") or {}
            name = ev.get("target_title") or push.get("ref") or "N/A"
            items.append(ActivityItem(source="gitlab", label=ev.get("action_name") or "", title=name,
                                      timestamp=ev.get("created_at") or ""))
        return items


# -----------------------------
# Panel formatting
# -----------------------------
def _short_time(raw: str) -> str:
    try:
        moment = dt.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return raw
    return f"{moment.strftime('%b')} {moment.day} {moment.strftime('%H:%M')}"


def format_linear_line(item: ActivityItem) -> str:
    return f"{_short_time(item.timestamp)} | {item.label:<8} | {item.title}"


def format_gitlab_line(item: ActivityItem) -> str:
    return f"{item.label:<12} | {item.title}"


def activity_lines(items: List[ActivityItem], source_name: str) -> List[str]:
    if not items:
        return [f"No recent {source_name} activity found"]
    fmt = format_linear_line if source_name == "Linear" else format_gitlab_line
    return [fmt(item) for item in items]


def fetch_activity(clients: Dict[str, object], start: dt.datetime, end: dt.datetime,
                   errors: Optional[List[str]] = None) -> Dict[str, List[ActivityItem]]:
    """Fetch every configured feed; failures are collected into ``errors`` and yield an empty list."""
    out: Dict[str, List[ActivityItem]] = {}
    for name, client in clients.items():
        if client is None:
            out[name] = []
            continue
        try:
            out[name] = client.last_activity(start, end)
        except ApiError as exc:
            logger.warning("%s activity fetch failed: %s", name, exc)
            if errors is not None:
                errors.append(f"Failed to load {name} activity: {exc}")
            out[name] = []
    return out
