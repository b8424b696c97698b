"""CORS handling for the public popup endpoints."""

from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import Headers
from starlette.responses import Response

# Recomputed by Response for the empty body
_BODY_HEADERS = ("content-length", "content-type")


class PopupCORSMiddleware(CORSMiddleware):
    """CORSMiddleware whose successful preflight answers with an empty body."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            name: value for name, value in response.headers.items()
            if name.lower() not in _BODY_HEADERS
        }
        return Response(status_code=200, headers=headers)
