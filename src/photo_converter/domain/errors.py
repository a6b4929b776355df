"""Error types raised across the photo converter."""

from photo_converter.domain.conversions import ChatSession


class ConfigMissing(RuntimeError):
    """Required startup configuration is absent."""


class SessionConflict(Exception):
    """A chat already has a photo waiting for a format choice."""

    def __init__(self, session: ChatSession) -> None:
        super().__init__(f"Chat {session.chat_id} already has a pending photo")
        self.session = session


class DirectoryUnavailable(Exception):
    """The user directory could not be read or written."""


class UserAlreadyExists(Exception):
    """A user with the same phone number is already registered."""


class ConversionError(Exception):
    """Base class for failures of the conversion pipeline."""

    user_message = "Conversion failed"


class AssetResolutionFailed(ConversionError):
    """The uploaded photo could not be resolved to a download URL."""

    user_message = "Failed to fetch file"


class DownloadFailed(ConversionError):
    """The photo could not be downloaded."""

    user_message = "Download failed"


class ConversionProcessFailed(ConversionError):
    """The conversion process could not be launched or exited non-zero."""

    user_message = "Conversion failed"


class OutputReadFailed(ConversionError):
    """The converted file could not be read back."""

    user_message = "Failed to read converted file"


class DeliveryFailed(ConversionError):
    """The converted file could not be sent to the chat."""

    user_message = "Failed to send converted file"
