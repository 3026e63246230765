"""
Google Cloud Translation (Basic, v2 REST) provider.

Authenticates with an API key passed as the ``key`` query parameter.
"""

from __future__ import annotations

from typing import List, Optional

from splitter.db.models import TranslationProviderType
from splitter.translation.base import TranslationProvider

AUTO_DETECT = "auto"


class GoogleTranslateProvider(TranslationProvider):
    """Google Cloud Translation v2."""

    provider_type = TranslationProviderType.GOOGLE
    provider_name = "Google Cloud Translation"

    def _params(self, **extra) -> dict:
        return {"key": self.settings.api_key, **extra}

    def _fetch_languages(self) -> List[str]:
        data = self._request("GET", f"{self.settings.base_url}/languages", params=self._params())
        return [item["language"] for item in data.get("data", {}).get("languages", [])]

    def _translate_many(self, texts: List[str], source_language: str, target_language: str) -> List[str]:
        body = {"q": texts, "target": target_language, "format": "text"}
        if source_language and source_language != AUTO_DETECT:
            body["source"] = source_language

        data = self._request("POST", self.settings.base_url, params=self._params(), json=body)
        return [item.get("translatedText", "") for item in data.get("data", {}).get("translations", [])]

    def _detect(self, text: str) -> Optional[str]:
        data = self._request(
            "POST",
            f"{self.settings.base_url}/detect",
            params=self._params(),
            json={"q": text}
        )
        detections = data.get("data", {}).get("detections") or []
        if detections and detections[0]:
            return detections[0][0].get("language")
        return None
