from __future__ import annotations

import os

from whitenoise import WhiteNoise

from hcontrol.app_factory import create_app

# Expose a module-level WSGI application for Gunicorn
flask_app = create_app()

# WhiteNoise serves the logo and other static assets in production
static_root = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, "static"))
app = WhiteNoise(flask_app, root=static_root, prefix="static/")
