from __future__ import annotations

import yaml
from fastapi import APIRouter, Request
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import HTMLResponse, Response

router = APIRouter(tags=["docs"])

DOCS_TITLE = "API Documentation"


@router.get("/openapi.yaml", include_in_schema=False)
def openapi_yaml(request: Request) -> Response:
    document = yaml.safe_dump(request.app.openapi(), sort_keys=False, allow_unicode=True)
    return Response(content=document, media_type="application/yaml")


@router.get("/openapi/docs", include_in_schema=False)
def openapi_docs(request: Request) -> HTMLResponse:
    return get_swagger_ui_html(openapi_url=request.app.openapi_url, title=DOCS_TITLE)
