from pathlib import Path
from typing import Dict, Any

from fastapi.templating import Jinja2Templates


TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render_results_html(context: Dict[str, Any]) -> str:
    template = templates.get_template("results_email.html")
    return template.render(context)
