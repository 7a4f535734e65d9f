# ABOUTME: HTML page routes.
# ABOUTME: Serves the admin panel template.

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from daily_reflection.web.dependencies import Templates

router = APIRouter()


@router.get("/admin", response_class=HTMLResponse)
async def admin_panel(request: Request, templates: Templates):
    """Render the admin panel."""
    return templates.TemplateResponse(request=request, name="admin.html", context={})
