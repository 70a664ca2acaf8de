from pathlib import Path

from fastapi.templating import Jinja2Templates

from scheduler_admin.core.config import settings
from scheduler_admin.services.calendar import EMPTY_CELL

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["app_name"] = settings.APP_NAME
templates.env.globals["empty_cell"] = EMPTY_CELL
