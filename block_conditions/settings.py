from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from block_conditions.constants import APP_NAME, CONFIG_FILENAME
from block_conditions.errors import InvalidSettingsError


def is_known_timezone(name: str) -> bool:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


@dataclass(frozen=True)
class Settings:
    timezone: Optional[str] = None
    preview: bool = False
    user_functions: dict[str, str] = field(default_factory=dict)

    def tzinfo(self) -> Optional[ZoneInfo]:
        if not self.timezone:
            return None
        return ZoneInfo(self.timezone)


class SettingsRepository:
    def __init__(self, root: Path | None = None) -> None:
        self._root = root or (Path.home() / ".config" / APP_NAME)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def config_path(self) -> Path:
        return self._root / CONFIG_FILENAME

    def load(self) -> Settings:
        path = self.config_path
        if not path.exists():
            return Settings()
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise InvalidSettingsError(path, str(exc)) from exc
        if payload is None:
            return Settings()
        return self._parse(path, payload)

    def save(self, settings: Settings) -> None:
        payload: dict[str, Any] = {}
        if settings.timezone:
            payload["timezone"] = settings.timezone
        if settings.preview:
            payload["preview"] = True
        if settings.user_functions:
            payload["user_functions"] = dict(settings.user_functions)
        self._root.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(
            yaml.safe_dump(payload, default_flow_style=False, sort_keys=False),
            encoding="utf-8",
        )

    def _parse(self, path: Path, payload: Any) -> Settings:
        if not isinstance(payload, dict):
            raise InvalidSettingsError(path, "expected a mapping at the top level")

        timezone = payload.get("timezone")
        if timezone is not None:
            if not isinstance(timezone, str):
                raise InvalidSettingsError(path, "timezone must be text")
            if not is_known_timezone(timezone):
                raise InvalidSettingsError(path, f"unknown timezone {timezone!r}")

        preview = payload.get("preview", False)
        if not isinstance(preview, bool):
            raise InvalidSettingsError(path, "preview must be true or false")

        functions = payload.get("user_functions", {}) or {}
        if not isinstance(functions, dict) or not all(
            isinstance(key, str) and isinstance(value, str)
            for key, value in functions.items()
        ):
            raise InvalidSettingsError(
                path, "user_functions must map names to 'module:attribute'"
            )

        return Settings(
            timezone=timezone, preview=preview, user_functions=dict(functions)
        )
