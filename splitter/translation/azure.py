"""
==============================================================================
Azure Translator Provider
==============================================================================

Azure AI Translator v3 REST API.

Headers:
    Ocp-Apim-Subscription-Key     subscription key
    Ocp-Apim-Subscription-Region  region (multi-service resources only)

==============================================================================
"""

from __future__ import annotations

from typing import Dict, List, Optional

from splitter.db.models import TranslationProviderType
from splitter.translation.base import TranslationProvider

API_VERSION = "3.0"
AUTO_DETECT = "auto"


class AzureTranslateProvider(TranslationProvider):
    """Azure Translator v3."""

    provider_type = TranslationProviderType.AZURE
    provider_name = "Azure Translator"

    def _url(self, path: str) -> str:
        return f"{self.settings.base_url.rstrip('/')}/{path}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Ocp-Apim-Subscription-Key": self.settings.api_key}
        if self.settings.region:
            headers["Ocp-Apim-Subscription-Region"] = self.settings.region
        return headers

    def _fetch_languages(self) -> List[str]:
        data = self._request(
            "GET",
            self._url("languages"),
            params={"api-version": API_VERSION, "scope": "translation"}
        )
        return list(data.get("translation", {}).keys())

    def _translate_many(self, texts: List[str], source_language: str, target_language: str) -> List[str]:
        params = {"api-version": API_VERSION, "to": target_language}
        if source_language and source_language != AUTO_DETECT:
            params["from"] = source_language

        data = self._request(
            "POST",
            self._url("translate"),
            params=params,
            headers=self._headers(),
            json=[{"Text": text} for text in texts]
        )

        results = []
        for text, item in zip(texts, data):
            translations = item.get("translations") or []
            results.append(translations[0].get("text", text) if translations else text)
        return results

    def _detect(self, text: str) -> Optional[str]:
        data = self._request(
            "POST",
            self._url("detect"),
            params={"api-version": API_VERSION},
            headers=self._headers(),
            json=[{"Text": text}]
        )
        return data[0].get("language") if data else None
