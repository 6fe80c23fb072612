# commons/middleware.py
import logging
import time
import uuid

from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger("django.request")


class RequestLogMiddleware(MiddlewareMixin):
    """
    Uma linha de log por request (request_id, rota, status, latência).
    Aceita X-Request-ID do cliente; sem header, gera um uuid4.
    """

    def process_request(self, request):
        request.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request._start_time = time.monotonic()

    def process_response(self, request, response):
        latency = int((time.monotonic() - getattr(request, "_start_time", time.monotonic())) * 1000)
        request_id = getattr(request, "request_id", "-")
        logger.info(
            "http_request",
            extra={
                "event": "http_request",
                "request_id": request_id,
                "tenant_id": request.headers.get("X-Tenant-ID"),
                "path": request.path,
                "method": request.method,
                "status": response.status_code,
                "latency_ms": latency,
            },
        )
        response["X-Request-ID"] = request_id
        return response
