"""Clockify REST client implementing the report grid's tracker operations."""

from __future__ import annotations

import datetime as dt
import json
import logging
from typing import Dict, List, Optional, Tuple

import requests

from .errors import ApiError
from .models import ReportEntry, TimeEntry

logger = logging.getLogger('chronos')

DEFAULT_TIMEOUT = 30.0
PAGE_SIZE = 1000
ROUNDING = dt.timedelta(minutes=30)


def _session(api_key: str) -> requests.Session:
    s = requests.Session()
    s.headers["X-Api-Key"] = api_key
    s.headers["Accept"] = "application/json"
    return s


def _rfc3339(moment: dt.datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=dt.timezone.utc)
    return moment.astimezone(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _parse_time(raw: Optional[str]) -> Optional[dt.datetime]:
    if not raw:
        return None
    moment = dt.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=dt.timezone.utc)
    return moment.astimezone(dt.timezone.utc)


def floor_half_hour(moment: dt.datetime) -> dt.datetime:
    """Round down to the previous :00 or :30."""
    return moment.replace(minute=moment.minute - moment.minute % 30, second=0, microsecond=0)


def entry_bounds(entry: TimeEntry) -> Tuple[dt.datetime, dt.datetime]:
    """Start and end for an entry, kept on the entry's date.

    The end sits on the half-hour boundary at or before the entry time and the
    start is end - duration. When that start would fall on the previous day the
    window is moved to begin at midnight instead.
    """
    try:
        length = dt.timedelta(seconds=entry.duration)
        end = floor_half_hour(entry.time)
        start = end - length
        if start.date() < entry.time.date():
            start = entry.time.replace(hour=0, minute=0, second=0, microsecond=0)
            end = start + length
    except (OverflowError, ValueError) as exc:
        raise ApiError(f"cannot place {entry.duration}s entry at {entry.time}: {exc}") from exc
    return start, end


def entry_window(entry: TimeEntry) -> Dict[str, str]:
    start, end = entry_bounds(entry)
    return {"start": _rfc3339(start), "end": _rfc3339(end)}


class ClockifyClient:
    def __init__(self, api_key: str, base_url: str, user_id: str = "", user_url: str = "",
                 timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.user_url = user_url
        self.timeout = timeout
        self.session = session or _session(api_key)

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("Clockify %s %s failed: %s", method, url, exc)
            raise ApiError(f"request to clockify failed: {exc}") from exc
        if resp.status_code < 200 or resp.status_code >= 300:
            logger.warning("Clockify %s %s HTTP %s: %s", method, url, resp.status_code, resp.text[:200])
            raise ApiError(f"clockify API returned status {resp.status_code}: {resp.text}", status=resp.status_code)
        return resp

    def _json(self, resp: requests.Response):
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError(f"failed to parse response: {exc}") from exc

    @staticmethod
    def _body(entry: TimeEntry) -> Dict[str, object]:
        body: Dict[str, object] = {"billable": True, "description": entry.description}
        body.update(entry_window(entry))
        if entry.project_id:
            body["projectId"] = entry.project_id
        return body

    # --- tracker operations ---
    def fetch_entries(self, start: dt.datetime, end: dt.datetime) -> List[ReportEntry]:
        if not self.user_id:
            raise ApiError("clockify user id is not configured")
        params = {"start": _rfc3339(start), "end": _rfc3339(end), "page-size": PAGE_SIZE}
        resp = self._request("GET", self._url(f"user/{self.user_id}/time-entries"), params=params)
        data = self._json(resp) or []
        out: List[ReportEntry] = []
        for item in data:
            if not isinstance(item, dict):
                continue
            interval = item.get("timeInterval") or {}
            try:
                started = _parse_time(interval.get("start"))
                ended = _parse_time(interval.get("end"))
            except ValueError:
                logger.warning("Skipping entry %s with unreadable interval %r", item.get("id"), interval)
                continue
            if started is None:
                continue
            out.append(ReportEntry(
                id=str(item.get("id") or ""),
                description=item.get("description") or "",
                start=started,
                end=ended,
            ))
        logger.debug("Fetched %d entries between %s and %s", len(out), start, end)
        return out

    def create_entry(self, entry: TimeEntry) -> str:
        resp = self._request("POST", self._url("time-entries"), json=self._body(entry))
        data = self._json(resp) or {}
        entry_id = data.get("id") if isinstance(data, dict) else None
        if not entry_id:
            raise ApiError("clockify did not return an entry id")
        return str(entry_id)

    def update_entry(self, entry_id: str, entry: TimeEntry) -> None:
        self._request("PUT", self._url(f"time-entries/{entry_id}"), json=self._body(entry))

    def delete_entry(self, entry_id: str) -> None:
        self._request("DELETE", self._url(f"time-entries/{entry_id}"))

    # --- account ---
    def workspace_info(self) -> str:
        """Raw account/workspace metadata as indented JSON."""
        if not self.user_url:
            raise ApiError("clockify user URL is not configured")
        resp = self._request("GET", self.user_url)
        return json.dumps(self._json(resp), indent=2)
