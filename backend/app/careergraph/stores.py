from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any, Protocol

from app.careergraph.models import CareerActivity, CareerGraphData, UserProfile

logger = logging.getLogger("app.careergraph.stores")


class ActivityStore(Protocol):
    def append(self, activity: CareerActivity) -> None:
        ...

    def list_for_user(self, user_id: str, since: datetime | None = None) -> list[CareerActivity]:
        ...


class ProfileStore(Protocol):
    def get_profile(self, user_id: str) -> UserProfile | None:
        ...

    def save_profile(self, profile: UserProfile) -> None:
        ...

    def get_declared_skills(self, user_id: str) -> list[dict]:
        ...


class GraphStore(Protocol):
    def save(self, user_id: str, graph: CareerGraphData) -> None:
        ...

    def load(self, user_id: str) -> CareerGraphData | None:
        ...


def _read_json(path: Path | None) -> Any:
    if path is None or not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        logger.warning("unreadable store file ignored path=%s", path)
        return None


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(".tmp")
    temp_path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    temp_path.replace(path)


class InMemoryActivityStore:
    def __init__(self):
        self._lock = Lock()
        self._activities_by_user: dict[str, list[CareerActivity]] = {}

    def append(self, activity: CareerActivity) -> None:
        uid = str(activity.user_id or "").strip()
        if not uid:
            raise ValueError("activity.user_id is required")
        with self._lock:
            bucket = self._activities_by_user.setdefault(uid, [])
            bucket.append(activity)
            try:
                self._after_write()
            except Exception:
                bucket.pop()
                if not bucket:
                    self._activities_by_user.pop(uid, None)
                raise

    def list_for_user(self, user_id: str, since: datetime | None = None) -> list[CareerActivity]:
        """Rows for a user; with ``since``, rows older than it are dropped but undated rows are kept."""
        uid = str(user_id or "").strip()
        with self._lock:
            rows = list(self._activities_by_user.get(uid, []))
        if since is None:
            return rows
        return [a for a in rows if a.timestamp is None or a.timestamp >= since]

    def _after_write(self) -> None:
        return


class JsonActivityStore(InMemoryActivityStore):
    def __init__(self, path: Path):
        super().__init__()
        self._path = Path(path)
        self._load()

    def _load(self) -> None:
        payload = _read_json(self._path)
        if not isinstance(payload, dict):
            return
        for user_id, rows in payload.items():
            if not isinstance(rows, list):
                continue
            bucket = self._activities_by_user.setdefault(str(user_id), [])
            for raw in rows:
                if not isinstance(raw, dict):
                    continue
                try:
                    bucket.append(CareerActivity.from_dict(raw))
                except ValueError:
                    logger.warning("skipping malformed activity user_id=%s id=%s", user_id, raw.get("id"))

    def _after_write(self) -> None:
        _write_json(
            self._path,
            {uid: [a.to_dict() for a in rows] for uid, rows in self._activities_by_user.items()},
        )


class InMemoryProfileStore:
    def __init__(self):
        self._lock = Lock()
        self._profiles: dict[str, UserProfile] = {}

    def get_profile(self, user_id: str) -> UserProfile | None:
        with self._lock:
            return self._profiles.get(str(user_id or "").strip())

    def save_profile(self, profile: UserProfile) -> None:
        uid = str(profile.user_id or "").strip()
        if not uid:
            raise ValueError("profile.user_id is required")
        with self._lock:
            previous = self._profiles.get(uid)
            self._profiles[uid] = profile
            try:
                self._after_write()
            except Exception:
                if previous is None:
                    self._profiles.pop(uid, None)
                else:
                    self._profiles[uid] = previous
                raise

    def get_declared_skills(self, user_id: str) -> list[dict]:
        profile = self.get_profile(user_id)
        if profile is None:
            return []
        return [{"name": name} for name in profile.skill_names]

    def _after_write(self) -> None:
        return


class JsonProfileStore(InMemoryProfileStore):
    def __init__(self, path: Path):
        super().__init__()
        self._path = Path(path)
        payload = _read_json(self._path)
        if isinstance(payload, dict):
            for user_id, raw in payload.items():
                if isinstance(raw, dict):
                    profile = UserProfile.from_dict({**raw, "user_id": str(user_id)})
                    self._profiles[str(user_id)] = profile

    def _after_write(self) -> None:
        _write_json(self._path, {uid: p.to_dict() for uid, p in self._profiles.items()})


class InMemoryGraphStore:
    def __init__(self):
        self._lock = Lock()
        self._graphs: dict[str, dict] = {}

    def save(self, user_id: str, graph: CareerGraphData) -> None:
        uid = str(user_id or "").strip()
        if not uid:
            return
        with self._lock:
            # wholesale overwrite, never merged
            previous = self._graphs.get(uid)
            self._graphs[uid] = graph.to_dict()
            try:
                self._after_write()
            except Exception:
                if previous is None:
                    self._graphs.pop(uid, None)
                else:
                    self._graphs[uid] = previous
                raise

    def load(self, user_id: str) -> CareerGraphData | None:
        uid = str(user_id or "").strip()
        with self._lock:
            raw = self._graphs.get(uid)
        if not isinstance(raw, dict):
            return None
        return CareerGraphData.from_dict(raw)

    def _after_write(self) -> None:
        return


class JsonGraphStore(InMemoryGraphStore):
    def __init__(self, path: Path):
        super().__init__()
        self._path = Path(path)
        payload = _read_json(self._path)
        if isinstance(payload, dict):
            self._graphs = {str(k): v for k, v in payload.items() if isinstance(v, dict)}

    def _after_write(self) -> None:
        _write_json(self._path, self._graphs)


def build_json_stores(data_dir: Path) -> tuple[JsonActivityStore, JsonProfileStore, JsonGraphStore]:
    root = Path(data_dir)
    return (
        JsonActivityStore(root / "career_activities.json"),
        JsonProfileStore(root / "career_profiles.json"),
        JsonGraphStore(root / "career_graphs.json"),
    )
