import json
import logging
from typing import Any

logger = logging.getLogger("app.events")

_SECRET_KEYS = {"token", "authorization", "access_token"}
# free text a user typed about their career
_FREE_TEXT_KEYS = {"career_goals", "current_role", "notes", "description"}


def _sanitize_value(key: str, value: Any) -> Any:
	normalized_key = str(key or "").lower()
	if normalized_key in _SECRET_KEYS or normalized_key in _FREE_TEXT_KEYS:
		text = str(value or "")
		return {
			"redacted": True,
			"length": len(text),
		}
	if isinstance(value, (str, int, float, bool)) or value is None:
		return value
	if isinstance(value, dict):
		return {str(k): _sanitize_value(str(k), v) for k, v in value.items()}
	if isinstance(value, (list, tuple, set)):
		return [_sanitize_value(normalized_key, item) for item in value]
	return str(value)


def log_event(component: str, event: str, user_id: str, **kwargs) -> None:
	payload = {
		"component": str(component or "app"),
		"event": str(event or "unknown"),
		"user_id": str(user_id or ""),
	}
	payload.update({str(k): _sanitize_value(str(k), v) for k, v in kwargs.items()})
	logger.info(json.dumps(payload, ensure_ascii=False, default=str))
