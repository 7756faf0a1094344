"""Request-scoped access to the process-wide Services container."""

from fastapi import Request

from goodchoice.services import Services


def get_services(request: Request) -> Services:
    return request.app.state.services
