"""Show settings schema: output language and delivery style."""

from dataclasses import dataclass
from typing import Literal, get_args

from pydantic import BaseModel, Field, field_validator

VoiceStyle = Literal["natural", "breathy", "dramatic"]

VOICE_STYLES: tuple[str, ...] = get_args(VoiceStyle)


@dataclass(frozen=True)
class StyleProfile:
    """Pacing parameters for one delivery style."""

    name: str
    reading_rate_wps: float
    base_delay_ms: int


STYLE_PROFILES: dict[str, StyleProfile] = {
    "natural": StyleProfile("natural", reading_rate_wps=3.0, base_delay_ms=500),
    "breathy": StyleProfile("breathy", reading_rate_wps=3.0, base_delay_ms=500),
    # Slow prosody reads fewer words per second and leaves room between lines
    "dramatic": StyleProfile("dramatic", reading_rate_wps=2.5, base_delay_ms=2000),
}

SUPPORTED_LANGUAGES = [
    "Afrikaans",
    "Arabic",
    "Bengali",
    "Bulgarian",
    "Catalan",
    "Chinese (Simplified)",
    "Chinese (Traditional)",
    "Croatian",
    "Czech",
    "Danish",
    "Dutch",
    "Dutch (Flemish)",
    "English (US)",
    "English (UK)",
    "Finnish",
    "French",
    "German",
    "Greek",
    "Hebrew",
    "Hindi",
    "Hungarian",
    "Indonesian",
    "Italian",
    "Japanese",
    "Korean",
    "Lithuanian",
    "Malay",
    "Norwegian",
    "Polish",
    "Portuguese (Brazil)",
    "Portuguese (Portugal)",
    "Romanian",
    "Russian",
    "Serbian",
    "Slovak",
    "Slovenian",
    "Spanish",
    "Swedish",
    "Tagalog",
    "Tagalog (Taglish)",
    "Thai",
    "Turkish",
    "Ukrainian",
    "Vietnamese",
]


def is_supported_language(language: str | None) -> bool:
    return bool(language) and language in SUPPORTED_LANGUAGES


def _check_language(value: str | None) -> str | None:
    if value is not None and not is_supported_language(value):
        raise ValueError(f"Unsupported language: {value}")
    return value


class ShowSettings(BaseModel):
    """Runtime configuration read by the dispatch pipeline."""

    language: str = Field(
        default="Tagalog (Taglish)",
        description="Output language the speech persona reads in.",
    )
    detected_language: str | None = Field(
        default=None,
        description="Last language label detected on the upstream records.",
    )
    language_auto_detected: bool = Field(
        default=False,
        description="True when the current language was switched by an upstream record.",
    )
    voice_style: VoiceStyle = Field(
        default="breathy",
        description="Delivery style. Options: 'natural', 'breathy', or 'dramatic'.",
    )

    @field_validator("language")
    @classmethod
    def _language_supported(cls, value: str) -> str:
        return _check_language(value)  # type: ignore[return-value]

    @property
    def style_profile(self) -> StyleProfile:
        return STYLE_PROFILES[self.voice_style]


class ShowSettingsUpdate(BaseModel):
    """Partial update schema - all fields optional."""

    language: str | None = Field(default=None)
    voice_style: VoiceStyle | None = Field(default=None)

    @field_validator("language")
    @classmethod
    def _language_supported(cls, value: str | None) -> str | None:
        return _check_language(value)
