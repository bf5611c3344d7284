import base64
import json
import os
import sys
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# keep the default JSON stores away from backend/data during test runs
os.environ.setdefault("CAREER_DATA_DIR", tempfile.mkdtemp(prefix="careergraph-tests-"))

from app.careergraph.models import ActivityType, CareerActivity  # noqa: E402
from app.careergraph.service import CareerGraphService  # noqa: E402
from app.careergraph.stores import (  # noqa: E402
    InMemoryActivityStore,
    InMemoryGraphStore,
    InMemoryProfileStore,
)


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ENV", "development")
    monkeypatch.setenv("ALLOW_UNVERIFIED_JWT_DEV", "true")
    monkeypatch.delenv("SUPABASE_JWT_SECRET", raising=False)


@pytest.fixture
def dev_jwt_token() -> str:
    def _enc(obj: dict) -> str:
        raw = json.dumps(obj, separators=(",", ":")).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")

    header = _enc({"alg": "none", "typ": "JWT"})
    payload = _enc({"sub": "pytest-user", "iat": 0})
    return f"{header}.{payload}."


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


@pytest.fixture
def make_activity():
    def _make(
        skill_name: str | None = None,
        timestamp: datetime | None = None,
        impact: float = 1.0,
        user_id: str = "user-1",
        activity_type: ActivityType = ActivityType.LEARNING_SESSION,
    ) -> CareerActivity:
        metadata = {"skillName": skill_name} if skill_name is not None else {}
        return CareerActivity(
            id=str(uuid.uuid4()),
            user_id=user_id,
            type=activity_type,
            timestamp=timestamp,
            metadata=metadata,
            impact=impact,
        )

    return _make


@pytest.fixture
def service(now: datetime) -> CareerGraphService:
    return CareerGraphService(
        activity_store=InMemoryActivityStore(),
        profile_store=InMemoryProfileStore(),
        graph_store=InMemoryGraphStore(),
        clock=lambda: now,
    )
