"""ASGI entrypoint for the meal match API."""

from meal_match.api.app import create_app
from meal_match.containers import build_container

app = create_app(build_container())
