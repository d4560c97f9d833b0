"""Kida environment for the script section templates.

Every section of a compiled bundle is a kida template under
``swbundle/compiler/templates/``. Values are JSON-encoded before they reach
a template, so autoescaping stays off and templates only place
pre-encoded literals.
"""

from pathlib import Path

from kida import Environment, FileSystemLoader

TEMPLATE_DIR = Path(__file__).parent / "templates"

BASE_TEMPLATE = "base.js"
ERROR_RESPONSE_TEMPLATE = "error_response.js"
PRECACHE_TEMPLATE = "precache.js"
ROUTE_TEMPLATE = "route.js"


def create_environment(*, debug: bool = False) -> Environment:
    """Create the kida Environment used by ``BundleAssembler``.

    The app creates one at freeze time and shares it across requests.
    """
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=False,
        auto_reload=debug,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render(env: Environment, name: str, **context: object) -> str:
    """Render template *name*, guaranteeing exactly one trailing newline."""
    template = env.get_template(name)
    return template.render(context).rstrip("\n") + "\n"
