"""
CORS configuration and middleware.

Each environment (development, test, staging, production) has its own origin
list, header policy and strictness. CORS_ORIGINS, CORS_METHODS,
CORS_CREDENTIALS and CORS_MAX_AGE override the table. In strict mode requests
from unknown origins are rejected with 403; otherwise they get a wildcard
Access-Control-Allow-Origin.
"""

import logging
import re
from typing import Callable, Dict, List, Optional, Union

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import CORSOriginError

logger = logging.getLogger(__name__)

ALL_METHODS = ["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE", "OPTIONS"]

PUBLIC_HEADERS = [
    "Accept",
    "Accept-Language",
    "Content-Language",
    "Content-Type",
    "Authorization",
    "X-Requested-With",
    "X-CSRF-Token",
    "X-API-Key",
    "X-Client-Version",
]

AllowedOrigins = Union[List[str], bool, Callable[[str], bool]]


class CORSOptions(BaseModel):
    origins: AllowedOrigins = []
    methods: List[str] = ALL_METHODS
    allowed_headers: List[str] = []
    exposed_headers: List[str] = []
    credentials: bool = True
    max_age: Optional[int] = None
    strict_mode: bool = False
    log_requests: bool = False
    options_success_status: int = 204


ENVIRONMENT_CONFIG: Dict[str, CORSOptions] = {
    "development": CORSOptions(
        origins=[
            "http://localhost:3000",
            "http://localhost:3001",
            "http://localhost:3002",
            "http://localhost:3010",
            "http://localhost:3011",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:3001",
            "http://0.0.0.0:3000",
            "http://0.0.0.0:3001",
        ],
        allowed_headers=PUBLIC_HEADERS + ["User-Agent"],
        exposed_headers=[
            "X-Total-Count",
            "X-Page-Count",
            "X-Rate-Limit-Remaining",
            "X-Rate-Limit-Reset",
        ],
        max_age=86400,
        strict_mode=False,
        log_requests=True,
    ),
    "test": CORSOptions(
        origins=[
            "http://localhost:3002",
            "http://localhost:3003",
            "http://localhost:3010",
            "http://localhost:3011",
        ],
        allowed_headers=["Content-Type", "Authorization", "X-Requested-With", "X-CSRF-Token"],
        max_age=300,
        strict_mode=False,
        log_requests=False,
    ),
    "staging": CORSOptions(
        origins=[
            "https://staging.openchat.dev",
            "https://staging-api.openchat.dev",
            "https://preview.openchat.dev",
        ],
        allowed_headers=PUBLIC_HEADERS,
        exposed_headers=[
            "X-Total-Count",
            "X-Page-Count",
            "X-Rate-Limit-Remaining",
            "X-Rate-Limit-Reset",
        ],
        max_age=3600,
        strict_mode=True,
        log_requests=True,
    ),
    "production": CORSOptions(
        origins=[
            "https://openchat.dev",
            "https://www.openchat.dev",
            "https://app.openchat.dev",
        ],
        allowed_headers=PUBLIC_HEADERS,
        exposed_headers=[
            "X-Total-Count",
            "X-Rate-Limit-Remaining",
            "X-Rate-Limit-Reset",
        ],
        max_age=86400,
        strict_mode=True,
        log_requests=False,
    ),
}


def get_cors_options(settings: Optional[Settings] = None) -> CORSOptions:
    """Environment defaults with CORS_* overrides applied"""
    settings = settings or default_settings
    base = ENVIRONMENT_CONFIG.get(settings.ENVIRONMENT, ENVIRONMENT_CONFIG["development"])

    overrides = {}
    if settings.CORS_ORIGINS_LIST is not None:
        overrides["origins"] = settings.CORS_ORIGINS_LIST
    if settings.CORS_METHODS_LIST is not None:
        overrides["methods"] = settings.CORS_METHODS_LIST
    if settings.CORS_CREDENTIALS is not None:
        overrides["credentials"] = settings.CORS_CREDENTIALS == "true"
    if settings.CORS_MAX_AGE is not None:
        overrides["max_age"] = settings.CORS_MAX_AGE

    return base.model_copy(update=overrides)


def secure_config(allowed_origins: List[str]) -> CORSOptions:
    """Locked-down options for a production deployment with custom origins"""
    return CORSOptions(
        origins=allowed_origins,
        methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
        allowed_headers=[
            "Accept",
            "Accept-Language",
            "Content-Language",
            "Content-Type",
            "Authorization",
            "X-CSRF-Token",
        ],
        exposed_headers=["X-Rate-Limit-Remaining", "X-Rate-Limit-Reset"],
        credentials=True,
        max_age=86400,
        strict_mode=True,
        log_requests=False,
    )


class OriginValidator:
    """Exact-match origins plus `*` wildcard patterns"""

    def __init__(self, origins: AllowedOrigins):
        self.allowed_origins = set()
        self.allowed_patterns: List[re.Pattern] = []
        self.allow_function: Optional[Callable[[str], bool]] = None

        if isinstance(origins, bool):
            if origins:
                self.allow_function = lambda origin: True
        elif callable(origins):
            self.allow_function = origins
        else:
            for origin in origins:
                if "*" in origin:
                    self.allowed_patterns.append(self._compile(origin))
                else:
                    self.allowed_origins.add(origin)

    @staticmethod
    def _compile(pattern: str) -> re.Pattern:
        parts = [re.escape(part) for part in pattern.split("*")]
        return re.compile("^" + ".*".join(parts) + "$")

    def is_allowed(self, origin: Optional[str]) -> bool:
        if not origin:
            return False

        if self.allow_function:
            return self.allow_function(origin)

        if origin in self.allowed_origins:
            return True

        return any(pattern.match(origin) for pattern in self.allowed_patterns)


def validate_origin(origin: str, allowed_origins: List[str]) -> bool:
    return OriginValidator(allowed_origins).is_allowed(origin)


def is_preflight(method: Optional[str]) -> bool:
    return bool(method) and method.upper() == "OPTIONS"


class CORSPolicy:
    def __init__(self, options: CORSOptions):
        self.options = options
        self.validator = OriginValidator(options.origins)

    def check_origin(self, origin: Optional[str]) -> None:
        """Raise CORSOriginError for a disallowed origin in strict mode"""
        if origin and self.options.strict_mode and not self.validator.is_allowed(origin):
            if self.options.log_requests:
                logger.warning(f"CORS: Blocked request from unauthorized origin: {origin}")
            raise CORSOriginError(origin)

    def headers(self, origin: Optional[str], method: Optional[str] = None) -> Dict[str, str]:
        headers = {}

        if origin and self.validator.is_allowed(origin):
            headers["Access-Control-Allow-Origin"] = origin
        elif not self.options.strict_mode:
            headers["Access-Control-Allow-Origin"] = "*"

        if self.options.credentials:
            headers["Access-Control-Allow-Credentials"] = "true"

        if self.options.methods:
            headers["Access-Control-Allow-Methods"] = ", ".join(self.options.methods)

        if self.options.allowed_headers:
            headers["Access-Control-Allow-Headers"] = ", ".join(self.options.allowed_headers)

        if self.options.exposed_headers:
            headers["Access-Control-Expose-Headers"] = ", ".join(self.options.exposed_headers)

        if self.options.max_age is not None and is_preflight(method):
            headers["Access-Control-Max-Age"] = str(self.options.max_age)

        headers["Vary"] = "Origin"
        return headers

    def update(self, **changes) -> None:
        self.options = self.options.model_copy(update=changes)
        if "origins" in changes:
            self.validator = OriginValidator(self.options.origins)


class CORSMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, options: Optional[CORSOptions] = None) -> None:
        super().__init__(app)
        self.policy = CORSPolicy(options or get_cors_options())

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")
        method = request.method

        try:
            self.policy.check_origin(origin)
        except CORSOriginError as e:
            return JSONResponse(status_code=e.status_code, content={"detail": e.detail})

        headers = self.policy.headers(origin, method)

        if is_preflight(method):
            if self.policy.options.log_requests:
                logger.info(f"CORS: Preflight request from {origin}")
            return Response(status_code=self.policy.options.options_success_status, headers=headers)

        if self.policy.options.log_requests:
            logger.debug(f"CORS: Request from {origin} - {method}")

        response: Response = await call_next(request)
        for name, value in headers.items():
            response.headers[name] = value
        return response
