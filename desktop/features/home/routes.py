"""
Home page routes.

This module contains HTTP routes for the home/landing page.
"""

from flask import render_template
from . import home_bp


@home_bp.route("/")
def index():
    """
    Landing page.

    Returns:
        Home page template
    """
    return render_template("index.html")
