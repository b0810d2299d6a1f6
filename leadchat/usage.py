"""
Anonymous usage logging to Firestore.

One document per completed search goes to the `usage_logs` collection through
the Firestore REST API. Writes run on a background worker and never report
back to the caller: failures are logged and dropped. Without Firebase
configuration the sink is a silent no-op.
"""
from __future__ import annotations

import logging
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Optional

import requests

from .config import Settings

logger = logging.getLogger(__name__)

FIRESTORE_BASE = "https://firestore.googleapis.com/v1"
COLLECTION = "usage_logs"
PLATFORM = "web"


def build_commit_body(
    project_id: str,
    query: str,
    mode: str,
    lead_count: int,
    user_agent: str = "",
    doc_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Firestore `documents:commit` body; `timestamp` is filled in by the server."""
    doc_id = doc_id or uuid.uuid4().hex[:20]
    name = f"projects/{project_id}/databases/(default)/documents/{COLLECTION}/{doc_id}"
    return {
        "writes": [
            {
                "update": {
                    "name": name,
                    "fields": {
                        "query": {"stringValue": query},
                        "mode": {"stringValue": mode},
                        "leadCount": {"integerValue": str(int(lead_count))},
                        "platform": {"stringValue": PLATFORM},
                        "userAgent": {"stringValue": user_agent},
                    },
                },
                "updateTransforms": [
                    {"fieldPath": "timestamp", "setToServerValue": "REQUEST_TIME"}
                ],
                "currentDocument": {"exists": False},
            }
        ]
    }


class UsageSink:
    def __init__(self, settings: Optional[Settings] = None, executor: Optional[ThreadPoolExecutor] = None):
        settings = settings or Settings.from_env()
        self._api_key = settings.firebase_api_key
        self._project_id = settings.firebase_project_id
        self._timeout_s = settings.timeout_s
        self.enabled = settings.usage_enabled
        self._executor = executor
        if not self.enabled:
            logger.warning("Firebase config missing. Usage tracking is disabled.")

    @property
    def commit_url(self) -> str:
        return f"{FIRESTORE_BASE}/projects/{self._project_id}/databases/(default)/documents:commit"

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="usage-sink")
        return self._executor

    def track(self, query: str, mode: str, lead_count: int, user_agent: str = "") -> Optional[Future]:
        """Queue one usage event. Returns the worker future, or None when disabled."""
        if not self.enabled:
            return None
        body = build_commit_body(self._project_id or "", query, mode, lead_count, user_agent)
        return self._pool().submit(self._write, body)

    def _write(self, body: Dict[str, Any]) -> bool:
        try:
            r = requests.post(
                self.commit_url,
                params={"key": self._api_key},
                json=body,
                timeout=self._timeout_s,
            )
            r.raise_for_status()
            return True
        except Exception:
            logger.warning("Firebase logging error", exc_info=True)
            return False

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
