from __future__ import annotations

from flask import Flask

from . import admin, auth, movies, person, public, reviews, users


def register_blueprints(app: Flask) -> None:
    for module in (public, auth, movies, person, users, reviews, admin):
        app.register_blueprint(module.bp)
