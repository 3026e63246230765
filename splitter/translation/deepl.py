"""
DeepL provider (v2 REST).

Free-tier keys use api-free.deepl.com; pro keys use api.deepl.com.
DeepL has no detection endpoint, so detection reads the
``detected_source_language`` of a translation into English.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from splitter.db.models import TranslationProviderType
from splitter.translation.base import TranslationProvider

FREE_API_URL = "https://api-free.deepl.com"
PRO_API_URL = "https://api.deepl.com"
AUTO_DETECT = "auto"


class DeepLProvider(TranslationProvider):
    """DeepL translation API."""

    provider_type = TranslationProviderType.DEEPL
    provider_name = "DeepL"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"DeepL-Auth-Key {self.settings.api_key}"}

    def _url(self, path: str) -> str:
        return f"{self.settings.base_url.rstrip('/')}/v2/{path}"

    def _fetch_languages(self) -> List[str]:
        data = self._request(
            "GET",
            self._url("languages"),
            params={"type": "source"},
            headers=self._headers()
        )
        return [item["language"].lower() for item in data]

    def _post_translate(self, texts: List[str], source_language: Optional[str], target_language: str) -> List[dict]:
        body = {"text": texts, "target_lang": target_language.upper()}
        if source_language and source_language != AUTO_DETECT:
            body["source_lang"] = source_language.upper()

        data = self._request("POST", self._url("translate"), headers=self._headers(), json=body)
        return data.get("translations", [])

    def _translate_many(self, texts: List[str], source_language: str, target_language: str) -> List[str]:
        translations = self._post_translate(texts, source_language, target_language)
        return [item.get("text", "") for item in translations]

    def _detect(self, text: str) -> Optional[str]:
        translations = self._post_translate([text], None, "EN-US")
        if not translations:
            return None
        detected = translations[0].get("detected_source_language")
        return detected.lower() if detected else None

    def is_language_supported(self, language_code: str) -> bool:
        return (language_code or "").lower() in self.get_supported_languages()
