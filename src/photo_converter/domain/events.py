"""Inbound chat events, one class per kind of update the bot reacts to."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CommandReceived:
    """A text message, usually a slash command."""

    chat_id: int
    text: str
    telegram_user_id: int | None = None


@dataclass(frozen=True)
class ContactShared:
    """The user shared a phone contact."""

    chat_id: int
    name: str
    phone: str
    telegram_user_id: int | None = None


@dataclass(frozen=True)
class PhotoReceived:
    """The user uploaded a photo."""

    chat_id: int
    asset_ref: str
    telegram_user_id: int | None = None


@dataclass(frozen=True)
class CallbackReceived:
    """The user pressed an inline keyboard button."""

    callback_id: str
    chat_id: int
    data: str
    telegram_user_id: int | None = None


InboundEvent = CommandReceived | ContactShared | PhotoReceived | CallbackReceived
