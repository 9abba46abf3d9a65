"""WSGI entry point: `flask --app vidtube.wsgi run`."""

import os

from vidtube.app import create_app

app = create_app(os.getenv("FLASK_ENV", "development"))
