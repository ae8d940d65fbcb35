"""ASGI entrypoint for the feedback automator API."""

from feedback_automator.api.app import create_app
from feedback_automator.containers import build_container

app = create_app(build_container())
