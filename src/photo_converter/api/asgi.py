"""ASGI entrypoint for the photo converter bot."""

from photo_converter.api.app import create_app
from photo_converter.config import load_settings
from photo_converter.containers import build_container

app = create_app(build_container(load_settings()))
