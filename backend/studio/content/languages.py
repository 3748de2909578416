"""Supported input/output languages."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Language:
    """Language known to the capture UI and the prompt templates."""

    code: str
    name: str
    native_name: str
    speech_recognition_code: str


SUPPORTED_LANGUAGES: tuple[Language, ...] = (
    Language("gu", "Gujarati", "ગુજરાતી", "gu-IN"),
    Language("en", "English", "English", "en-US"),
    Language("hi", "Hindi", "हिन्दी", "hi-IN"),
    Language("es", "Spanish", "Español", "es-ES"),
    Language("fr", "French", "Français", "fr-FR"),
    Language("de", "German", "Deutsch", "de-DE"),
    Language("it", "Italian", "Italiano", "it-IT"),
    Language("pt", "Portuguese", "Português", "pt-PT"),
    Language("ru", "Russian", "Русский", "ru-RU"),
    Language("ja", "Japanese", "日本語", "ja-JP"),
    Language("ko", "Korean", "한국어", "ko-KR"),
    Language("zh", "Chinese", "中文", "zh-CN"),
)

_BY_CODE = {lang.code: lang for lang in SUPPORTED_LANGUAGES}
_BY_SPEECH_CODE = {lang.speech_recognition_code: lang for lang in SUPPORTED_LANGUAGES}


def get_language_by_code(code: str) -> Language | None:
    return _BY_CODE.get(code)


def get_language_by_speech_code(speech_code: str) -> Language | None:
    return _BY_SPEECH_CODE.get(speech_code)


def language_name(code: str) -> str:
    """English name for a language code; unknown codes pass through unchanged."""
    lang = _BY_CODE.get(code)
    return lang.name if lang else code
