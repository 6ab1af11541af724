"""
Tools API

POST /tools/{name} with the tool arguments as the JSON body.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_tools
from dulce.auth.api_key import require_api_key
from dulce.errors import HTTP_STATUS_BY_CODE, ErrorCode
from dulce.tools.details import DetailTools


logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/tools",
    tags=["Tools"],
    dependencies=[Depends(require_api_key)],
)


@router.get("")
async def list_tools(tools: DetailTools = Depends(get_tools)) -> Dict[str, Any]:
    return {"tools": tools.names}


@router.post("/{name}")
async def run_tool(
    name: str,
    args: Optional[Dict[str, Any]] = Body(default=None),
    tools: DetailTools = Depends(get_tools),
) -> JSONResponse:
    """Run a detail tool. Errors come back as error payloads with a matching status."""
    result = await tools.run(name, args or {})

    error = result.get("error")
    if isinstance(error, dict) and "code" in error:
        status_code = HTTP_STATUS_BY_CODE.get(ErrorCode(error["code"]), 500)
        return JSONResponse(status_code=status_code, content=result)

    return JSONResponse(content=result)
