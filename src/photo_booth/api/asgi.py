"""ASGI entrypoint for the photo booth API."""

from photo_booth.api.app import create_app
from photo_booth.containers import build_container

app = create_app(build_container())
