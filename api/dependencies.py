"""
Request Dependencies

Application-scoped services are created once in the app factory and
kept on app.state; routes reach them through these dependencies.
"""

from fastapi import Request

from dulce.resources.registry import ResourceRegistry
from dulce.tools.details import DetailTools


def get_registry(request: Request) -> ResourceRegistry:
    return request.app.state.registry


def get_tools(request: Request) -> DetailTools:
    return request.app.state.tools
