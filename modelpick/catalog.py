"""Model catalog providers feeding the selector."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Dict, List, Optional, Protocol, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .configuration import ConfigurationBundle
from .models import RECOMMENDED_MODELS

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_API_KEY_ENV = "OPENAI_API_KEY"
DEFAULT_TIMEOUT = 5.0


class ModelCatalog(Protocol):
    """Anything that can list the models the user may pick from."""

    recommended_models: Sequence[str]

    async def fetch_available_models(self) -> List[str]:
        ...


class StaticModelCatalog:
    """Catalog backed by a fixed list, usually from configuration."""

    def __init__(
        self,
        models: Sequence[str],
        recommended: Sequence[str] = RECOMMENDED_MODELS,
    ) -> None:
        self._models = list(models)
        self.recommended_models = tuple(recommended)

    async def fetch_available_models(self) -> List[str]:
        return list(self._models)


class HttpModelCatalog:
    """Catalog that lists models from an OpenAI-compatible ``/models`` endpoint.

    The first successful or failed lookup is cached for the lifetime of the
    catalog. Failures never raise: they are logged and produce an empty list.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: Optional[str] = None,
        recommended: Sequence[str] = RECOMMENDED_MODELS,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self.recommended_models = tuple(recommended)
        self._cached: Optional[List[str]] = None

    async def fetch_available_models(self) -> List[str]:
        if self._cached is None:
            self._cached = await asyncio.to_thread(self._fetch)
        return list(self._cached)

    def _fetch(self) -> List[str]:
        if not self.api_key:
            logger.warning("No API key configured; model catalog is empty.")
            return []

        endpoint = f"{self.base_url.rstrip('/')}/models"
        req = Request(
            endpoint,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Accept": "application/json",
            },
            method="GET",
        )

        try:
            with urlopen(req, timeout=self.timeout) as resp:
                payload = json.loads(resp.read().decode("utf-8"))
        except HTTPError as exc:
            logger.warning("Model catalog request failed with HTTP %s", exc.code)
            return []
        except (URLError, OSError) as exc:
            logger.warning("Model catalog unreachable: %s", exc)
            return []
        except ValueError as exc:
            logger.warning("Model catalog returned invalid JSON: %s", exc)
            return []

        models = _parse_model_ids(payload)
        logger.info("Model catalog returned %d model(s)", len(models))
        return models


def _parse_model_ids(payload: Any) -> List[str]:
    if not isinstance(payload, dict):
        return []
    entries = payload.get("data")
    if not isinstance(entries, list):
        return []

    models: List[str] = []
    for entry in entries:
        if isinstance(entry, dict) and isinstance(entry.get("id"), str):
            models.append(entry["id"])
    return sorted(models)


def build_catalog(
    config: ConfigurationBundle,
    env: Optional[Dict[str, str]] = None,
) -> ModelCatalog:
    """Create the catalog described by the ``catalog`` config section."""

    merged = config.merged or {}
    catalog_cfg = merged.get("catalog") or {}
    models_cfg = merged.get("models") or {}
    recommended = models_cfg.get("recommended") or list(RECOMMENDED_MODELS)

    source = str(catalog_cfg.get("source") or "static").lower()
    if source == "http":
        env_source = env if env is not None else os.environ
        key_env = catalog_cfg.get("api_key_env") or DEFAULT_API_KEY_ENV
        return HttpModelCatalog(
            base_url=catalog_cfg.get("base_url") or DEFAULT_BASE_URL,
            api_key=env_source.get(key_env),
            recommended=recommended,
            timeout=float(catalog_cfg.get("timeout") or DEFAULT_TIMEOUT),
        )

    if source != "static":
        logger.warning("Unknown catalog source '%s'; using the static list.", source)
    return StaticModelCatalog(catalog_cfg.get("models") or [], recommended)


__all__ = [
    "HttpModelCatalog",
    "ModelCatalog",
    "StaticModelCatalog",
    "build_catalog",
]
