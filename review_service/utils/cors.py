from starlette.datastructures import Headers
from starlette.middleware import cors
from starlette.responses import Response


class CORSMiddleware(cors.CORSMiddleware):
    """Starlette CORS with 204 No Content for accepted preflight requests."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=204, headers=headers)
