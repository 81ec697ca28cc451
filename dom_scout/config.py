# === FILE: dom_scout/config.py ===
"""
Модуль для загрузки и валидации конфигурации сканера DomScout.
Используется Pydantic для описания схемы и проверки данных.

Файл конфигурации необязателен: без него действуют значения по умолчанию,
а флаги командной строки всегда имеют приоритет.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Literal, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

DEFAULT_PROXY_ENDPOINT = "https://api.allorigins.win/raw"

DEFAULT_USER_AGENTS: Tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:89.0) Gecko/20100101 Firefox/89.0",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 14_6 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/14.1.1 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (Windows NT 6.1; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
)


class ScannerConfig(BaseModel):
    """Конфигурация для одного запуска сканирования."""
    model_config = ConfigDict(extra="forbid", frozen=True, validate_default=True)

    concurrency: int = Field(5, ge=1, description="Число параллельных воркеров.")
    rate_limit_ms: int = Field(1000, ge=0, description="Базовая задержка между запросами (мс).")
    verbose: bool = Field(False, description="Печатать ошибки и страницы без находок.")
    honor_retry_after: bool = Field(False, description="Учитывать заголовок Retry-After при HTTP 429.")
    max_attempts: int = Field(5, ge=1, description="Максимум попыток на один URL.")
    request_timeout: float = Field(30.0, gt=0, description="Таймаут на одну попытку (секунд).")
    proxy_endpoint: HttpUrl = Field(DEFAULT_PROXY_ENDPOINT, description="Адрес прокси-сервиса.")
    user_agents: Tuple[str, ...] = Field(DEFAULT_USER_AGENTS, min_length=1, description="Пул User-Agent.")
    html_parser: Literal["html5lib", "html.parser", "lxml"] = Field("html5lib", description="Бэкенд разбора HTML.")

    @field_validator("user_agents")
    def _no_blank_agents(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if any(not ua.strip() for ua in v):
            raise ValueError("User-Agent не может быть пустым")
        return v

    def with_overrides(self, **values: Any) -> ScannerConfig:
        """Возвращает новую проверенную конфигурацию; значения None игнорируются."""
        updates = {k: v for k, v in values.items() if v is not None}
        return ScannerConfig(**{**self.model_dump(mode="json"), **updates})


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None] = None) -> ScannerConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект ScannerConfig.
    Без пути возвращает конфигурацию по умолчанию.
    """
    if path is None:
        return ScannerConfig()

    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    return ScannerConfig(**data)
