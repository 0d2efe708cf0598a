"""ASGI entrypoint for the photo tournament API."""

from photo_tournament.api.app import create_app
from photo_tournament.containers import build_container

app = create_app(build_container())
