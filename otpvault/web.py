"""
otpvault - HTTP Page

`otp http` serves the current codes as a preformatted text page. There is
no authentication: bind it to localhost unless the network is trusted.
"""

from html import escape

from flask import Flask, Response

from .listing import CODES_HEADER, code_rows, render_table
from .vault import Vault


def create_app(vault: Vault) -> Flask:
    """Flask application serving the code listing of `vault` at /."""
    app = Flask(__name__)

    @app.route("/")
    def index():
        table = render_table(CODES_HEADER, code_rows(vault.codes()))
        body = "<html><body><pre>\n" + escape(table) + "</pre></body></html>\n"
        return Response(body, mimetype="text/html")

    return app
