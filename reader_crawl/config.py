# === FILE: reader_crawl/config.py ===
"""
Модуль для загрузки и валидации конфигурации краулера ReaderCrawl.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 10

DownloadFormat = Literal["json", "md", "txt"]


class CrawlerConfig(BaseModel):
    """Конфигурация краулера и его внешних хранилищ."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    reader_base_url: HttpUrl = Field(
        "https://r.jina.ai", description="Базовый адрес сервиса рендеринга страниц."
    )
    concurrency_limit: int = Field(
        1, ge=MIN_CONCURRENCY, le=MAX_CONCURRENCY, description="Число одновременных запросов."
    )
    retry_times: int = Field(5, ge=0, description="Число повторных попыток после неудачи.")
    retry_delay: float = Field(5.0, ge=0, description="Пауза между попытками (секунд).")
    timeout: float = Field(60.0, gt=0, description="Таймаут на один запрос (секунд).")
    user_agent: str = Field("ReaderCrawl/0.1", min_length=1, description="Заголовок User-Agent.")
    download_format: DownloadFormat = Field("json", description="Формат экспорта по умолчанию.")
    db_path: Path = Field(Path("reader_crawl.db"), description="Файл SQLite с результатами.")
    session_path: Path = Field(
        Path(".reader_crawl_session.json"), description="Файл с состоянием текущей сессии."
    )

    @field_validator("reader_base_url", mode="before")
    def _strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @property
    def reader_endpoint(self) -> str:
        """Базовый адрес без завершающего слеша (HttpUrl добавляет его к голому хосту)."""
        return str(self.reader_base_url).rstrip("/")


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> CrawlerConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект CrawlerConfig.
    Без пути использует configs/default.yaml, а если его нет — значения по умолчанию.
    Явно указанный, но отсутствующий файл даёт FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return CrawlerConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return CrawlerConfig(**data)
