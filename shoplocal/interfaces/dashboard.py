from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from shoplocal.application.auth import Actor
from shoplocal.domain.enums import Role
from shoplocal.interfaces.dependencies import get_orders, require_role

router = APIRouter(tags=["dashboard"])
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


@router.get("/admin/orders", response_class=HTMLResponse)
def read_orders(request: Request, actor: Actor = Depends(require_role(Role.ADMIN)), orders=Depends(get_orders)):
    # Latest 20 orders, newest first
    recent = orders.recent_orders(limit=20)
    counts = orders.status_counts()
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {"orders": recent, "counts": counts, "actor": actor},
    )
