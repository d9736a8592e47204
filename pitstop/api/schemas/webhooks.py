"""Pydantic v2 schemas for inbound channel webhooks."""
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class _Inbound(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# ── Wazzup (WhatsApp) ─────────────────────────────────────────────

class WazzupMessage(_Inbound):
    text: str = ""
    chat_id: str = Field(default="", validation_alias=AliasChoices("chatId", "chatID", "chat_id"))
    direction: str = ""
    type: str = "text"
    audio_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("audioUrl", "audio_url"))

    @field_validator("text", "chat_id", "direction", "type", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        # media messages arrive with "text": null
        if value is None:
            return ""
        return str(value) if isinstance(value, (int, float)) else value

    @property
    def is_inbound(self) -> bool:
        return self.direction == "inbound"

    @property
    def is_voice(self) -> bool:
        return self.type == "audio" or (not self.text.strip() and bool(self.audio_url))


class WazzupWebhook(_Inbound):
    channel_id: str = Field(default="", validation_alias=AliasChoices("channelId", "channel_id"))
    messages: List[WazzupMessage] = Field(default_factory=list)

    @field_validator("channel_id", mode="before")
    @classmethod
    def _null_channel(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("messages", mode="before")
    @classmethod
    def _null_messages(cls, value: Any) -> Any:
        return [] if value is None else value


# ── Telegram ──────────────────────────────────────────────────────

class TelegramUser(_Inbound):
    id: int


class TelegramChat(_Inbound):
    id: int


class TelegramVoice(_Inbound):
    file_id: str


class TelegramMessage(_Inbound):
    message_id: Optional[int] = None
    chat: TelegramChat
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")
    text: Optional[str] = None
    voice: Optional[TelegramVoice] = None


class TelegramUpdate(_Inbound):
    update_id: Optional[int] = None
    message: Optional[TelegramMessage] = None


class WebhookAck(BaseModel):
    status: str = "ok"
    processed: int = 0
