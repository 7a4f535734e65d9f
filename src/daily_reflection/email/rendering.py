# ABOUTME: Renders a plain-text newsletter body into HTML and text email parts.
# ABOUTME: Uses Jinja2 templates; line breaks become <br> in the HTML part, the text part stays verbatim.

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from daily_reflection.config import Settings, get_settings

HTML_TEMPLATE = "newsletter.html"
TXT_TEMPLATE = "newsletter.txt"


def text_to_html(body: str) -> Markup:
    """Escape a plain-text body and turn each line break into <br>."""
    return Markup("<br>\n").join(body.splitlines())


class NewsletterRenderer:
    """Builds the HTML and plain-text parts of a newsletter message."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._jinja_env: Environment | None = None

    @property
    def jinja_env(self) -> Environment:
        """Lazy-initialized Jinja2 environment (autoescaping HTML templates only)."""
        if self._jinja_env is None:
            self._jinja_env = Environment(
                loader=FileSystemLoader(str(self.settings.templates_dir)),
                autoescape=select_autoescape(["html"]),
                keep_trailing_newline=True,
            )
        return self._jinja_env

    def render(self, subject: str, body: str) -> tuple[str, str]:
        """Render the newsletter.

        Returns:
            Tuple of (html, text).
        """
        context = {
            "subject": subject,
            "body": body,
            "body_html": text_to_html(body),
            "sender_name": self.settings.sender_name,
        }
        html = self.jinja_env.get_template(HTML_TEMPLATE).render(**context)
        text = self.jinja_env.get_template(TXT_TEMPLATE).render(**context)
        return html, text
