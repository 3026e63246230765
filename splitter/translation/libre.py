"""
LibreTranslate provider.

Self-hostable, so only the instance URL is required; the API key is
optional and sent both as ``api_key`` and as an ``ApiKey`` auth header.

A batch is one ``/translate`` request with ``q`` as an array.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from splitter.db.models import TranslationProviderType
from splitter.translation.base import TranslationProvider
from splitter.translation.errors import ProviderError
from splitter.translation.policies import LIBRE_CALLS_PER_MINUTE

AUTO_DETECT = "auto"


class LibreTranslateProvider(TranslationProvider):
    """LibreTranslate REST API."""

    provider_type = TranslationProviderType.LIBRE_TRANSLATE
    provider_name = "LibreTranslate"
    calls_per_minute = LIBRE_CALLS_PER_MINUTE

    def _url(self, path: str) -> str:
        return f"{self.settings.base_url.rstrip('/')}/{path}"

    def _headers(self) -> Dict[str, str]:
        if self.settings.api_key:
            return {"Authorization": f"ApiKey {self.settings.api_key}"}
        return {}

    @staticmethod
    def _language(code: str) -> str:
        return code if code == AUTO_DETECT else code.lower()

    def _fetch_languages(self) -> List[str]:
        data = self._request("GET", self._url("languages"), headers=self._headers())
        if not isinstance(data, list):
            raise ProviderError(f"{self.provider_name} returned an unexpected languages response")
        return [item["code"].lower() for item in data if isinstance(item, dict) and "code" in item]

    def _translate_many(self, texts: List[str], source_language: str, target_language: str) -> List[str]:
        body: Dict[str, Any] = {
            "q": texts[0] if len(texts) == 1 else list(texts),
            "source": self._language(source_language),
            "target": self._language(target_language),
            "format": "text",
        }
        if self.settings.api_key:
            body["api_key"] = self.settings.api_key

        data = self._request("POST", self._url("translate"), headers=self._headers(), json=body)
        return self._read_translations(data, texts)

    def _read_translations(self, data: Any, texts: List[str]) -> List[str]:
        """
        Accepts ``{"translatedText": str | [str]}`` or a list of
        ``{"translatedText": str}`` objects, in request order.
        """
        if isinstance(data, list):
            translated = [item.get("translatedText") if isinstance(item, dict) else None for item in data]
        elif isinstance(data, dict):
            value = data.get("translatedText")
            translated = value if isinstance(value, list) else [value]
        else:
            raise ProviderError(f"{self.provider_name} returned an unexpected translate response")

        return [
            translated[i] if i < len(translated) and isinstance(translated[i], str) else text
            for i, text in enumerate(texts)
        ]

    def _detect(self, text: str) -> Optional[str]:
        body = {"q": text}
        if self.settings.api_key:
            body["api_key"] = self.settings.api_key

        data = self._request("POST", self._url("detect"), headers=self._headers(), json=body)
        if not isinstance(data, list):
            raise ProviderError(f"{self.provider_name} returned an unexpected detect response")
        if not data or not isinstance(data[0], dict):
            return None
        return data[0].get("language")
