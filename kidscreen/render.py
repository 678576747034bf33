"""
Rendering: RenderData to HTML (jinja2), HTML to PNG (headless Chromium
through Playwright), and a small Flask server for working on the template.
"""
import logging
from pathlib import Path
from typing import Callable

from flask import Flask
from jinja2 import Environment, FileSystemLoader, select_autoescape
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from kidscreen.cards import CardType
from kidscreen.pipeline import RenderData

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
TEMPLATE_FILE = "screen.html"
PNG_TIMEOUT_MS = 30000
SETTLE_MS = 1000


class RenderError(Exception):
    """The screenshot could not be produced."""


def template_environment(template_dir: Path = TEMPLATE_DIR) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html"]),
    )
    env.globals["CardType"] = CardType
    return env


def render_html(data: RenderData, width: int = 1280, height: int = 720) -> str:
    """Renders the screen template with the header and ordered cards."""
    template = template_environment().get_template(TEMPLATE_FILE)
    return template.render(header=data.header, cards=data.cards, width=width, height=height)


def render_png(html: str, width: int = 1280, height: int = 720) -> bytes:
    """Screenshots the HTML in headless Chromium."""
    logger.info("   -> Capturing screenshot in headless Chromium...")
    try:
        with sync_playwright() as p:
            browser = p.chromium.launch(headless=True, args=["--no-sandbox", "--disable-gpu"])
            try:
                page = browser.new_page(viewport={"width": width, "height": height})
                page.set_content(html, wait_until="networkidle", timeout=PNG_TIMEOUT_MS)
                # Let fonts and images settle.
                page.wait_for_timeout(SETTLE_MS)
                return page.screenshot(type="png")
            finally:
                browser.close()
    except PlaywrightError as e:
        raise RenderError(f"failed to capture screenshot: {e}") from e


def create_dev_app(build: Callable[[], RenderData], width: int = 1280, height: int = 720) -> Flask:
    """A Flask app rebuilding and re-rendering the screen on every request."""
    app = Flask(__name__)

    @app.route("/")
    def screen():
        # The template is re-read on each request so edits show up on reload.
        env = template_environment()
        env.auto_reload = True
        data = build()
        return env.get_template(TEMPLATE_FILE).render(
            header=data.header, cards=data.cards, width=width, height=height,
        )

    return app


def serve_dev(build: Callable[[], RenderData], addr: str = ":9999", width: int = 1280, height: int = 720) -> None:
    host, _, port = addr.rpartition(":")
    app = create_dev_app(build, width, height)
    logger.info(f"Server running on http://localhost:{port}/ (Ctrl+C to stop)")
    app.run(host=host or "0.0.0.0", port=int(port or 9999), debug=False)
