from flask import Blueprint

bp = Blueprint("sync", __name__)

from pickem.routes.sync import routes  # noqa: F401, E402
