"""Languages that generated commit messages and analyses can be written in."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Language:
    code: str
    country_code: str
    name: str
    display_name: str

    def __str__(self) -> str:
        return language_to_string(self)


ENGLISH = Language("en", "US", "English", "English (US)")

LANGUAGES: tuple[Language, ...] = (
    ENGLISH,
    Language("es", "ES", "Spanish", "Español (ES)"),
    Language("fr", "FR", "French", "Français (FR)"),
    Language("de", "DE", "German", "Deutsch (DE)"),
    Language("it", "IT", "Italian", "Italiano (IT)"),
    Language("pt", "BR", "Portuguese", "Português (BR)"),
    Language("ru", "RU", "Russian", "Русский (RU)"),
    Language("zh", "CN", "Chinese", "中文 (CN)"),
    Language("ja", "JP", "Japanese", "日本語 (JP)"),
    Language("ko", "KR", "Korean", "한국어 (KR)"),
    Language("nl", "NL", "Dutch", "Nederlands (NL)"),
    Language("pl", "PL", "Polish", "Polski (PL)"),
    Language("cs", "CZ", "Czech", "Čeština (CZ)"),
    Language("hu", "HU", "Hungarian", "Magyar (HU)"),
    Language("ro", "RO", "Romanian", "Română (RO)"),
    Language("sv", "SE", "Swedish", "Svenska (SE)"),
    Language("no", "NO", "Norwegian", "Norsk (NO)"),
    Language("da", "DK", "Danish", "Dansk (DK)"),
    Language("fi", "FI", "Finnish", "Suomi (FI)"),
    Language("el", "GR", "Greek", "Ελληνικά (GR)"),
    Language("tr", "TR", "Turkish", "Türkçe (TR)"),
    Language("ar", "SA", "Arabic", "العربية (SA)"),
    Language("he", "IL", "Hebrew", "עברית (IL)"),
    Language("hi", "IN", "Hindi", "हिन्दी (IN)"),
    Language("th", "TH", "Thai", "ไทย (TH)"),
    Language("vi", "VN", "Vietnamese", "Tiếng Việt (VN)"),
    Language("id", "ID", "Indonesian", "Bahasa Indonesia (ID)"),
    Language("ms", "MY", "Malay", "Bahasa Melayu (MY)"),
    Language("uk", "UA", "Ukrainian", "Українська (UA)"),
    Language("bg", "BG", "Bulgarian", "Български (BG)"),
    Language("hr", "HR", "Croatian", "Hrvatski (HR)"),
    Language("sr", "RS", "Serbian", "Српски (RS)"),
    Language("sk", "SK", "Slovak", "Slovenčina (SK)"),
    Language("sl", "SI", "Slovenian", "Slovenščina (SI)"),
    Language("lt", "LT", "Lithuanian", "Lietuvių (LT)"),
    Language("lv", "LV", "Latvian", "Latviešu (LV)"),
    Language("et", "EE", "Estonian", "Eesti (EE)"),
)


def language_to_string(language: Language) -> str:
    """Serialise ``language`` as ``"code;country_code"``."""
    return f"{language.code};{language.country_code}"


def parse_language_string(value: Optional[str]) -> Language:
    """Parse ``"code;country_code"``; anything unknown yields English."""
    if not value:
        return ENGLISH
    parts = value.split(";")
    if len(parts) != 2:
        return ENGLISH
    code, country_code = parts
    for language in LANGUAGES:
        if language.code == code and language.country_code == country_code:
            return language
    return ENGLISH


def find_by_display_name(display_name: str) -> Optional[Language]:
    for language in LANGUAGES:
        if language.display_name == display_name:
            return language
    return None


def find_by_code(code: str) -> Optional[Language]:
    for language in LANGUAGES:
        if language.code == code:
            return language
    return None


def find_language(value: str) -> Optional[Language]:
    """Look up ``"code;country_code"``, a bare code or a display name."""
    value = (value or "").strip()
    if ";" in value:
        code, _, country_code = value.partition(";")
        for language in LANGUAGES:
            if language.code == code and language.country_code == country_code:
                return language
        return None
    return find_by_code(value) or find_by_display_name(value)
