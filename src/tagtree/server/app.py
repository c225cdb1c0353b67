# Copyright 2026 Pennyworth Technologies, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


"""Tag tree FastAPI server - read-only tree view over a tag source."""

import logging

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from rich.console import Console
from starlette.middleware.base import BaseHTTPMiddleware

from tagtree import __version__
from tagtree.config import TagtreeConfig
from tagtree.renderers import OutputFormat, render_tree
from tagtree.server.schemas import StatusOutput, TagTreeResponse
from tagtree.sources import TagSource
from tagtree.tree.builder import build_tree

logger = logging.getLogger(__name__)

console = Console()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds the configured security headers to every response."""

    def __init__(self, app, headers: dict[str, str]):
        super().__init__(app)
        self.headers = headers

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response


def create_app(source: TagSource, config: TagtreeConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        source: Supplies the full tag collection on each request
        config: Server, CORS and security settings (defaults if None)

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = TagtreeConfig()

    app = FastAPI(
        title="Tag Tree",
        description="Read-only tree view over hierarchical tags",
        version=__version__,
    )

    if config.cors.enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors.origins,
            allow_credentials=config.cors.allow_credentials,
            allow_methods=["GET", "OPTIONS"],
            allow_headers=config.cors.headers,
        )

    security_headers = {
        "Content-Security-Policy": config.security.csp_header(),
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "SAMEORIGIN",
        "Referrer-Policy": "no-referrer",
    }
    if config.security.powered_by:
        security_headers["X-Powered-By"] = config.security.powered_by

    app.add_middleware(SecurityHeadersMiddleware, headers=security_headers)

    @app.get("/api/status", response_model=StatusOutput)
    async def get_status() -> StatusOutput:
        """Get server status."""
        return StatusOutput(status="ok", version=__version__)

    # Nesting follows the longest tag chain; the body is encoded without recursion
    @app.get(
        "/api/tags/tree",
        response_model=None,
        responses={200: {"model": TagTreeResponse}},
    )
    def get_tag_tree() -> Response:
        """Get all tags as a forest rooted at parentless tags."""
        try:
            forest = build_tree(source.fetch_all())
            body = render_tree(forest, format=OutputFormat.JSON, indent=None)
        except Exception:
            logger.exception("Failed to build tag tree")
            raise HTTPException(status_code=500, detail="Internal Server Error")

        return Response(content=body, media_type="application/json")

    return app


def start_server(source: TagSource, config: TagtreeConfig) -> None:
    """Start the tag tree API with uvicorn."""
    import uvicorn

    app = create_app(source, config)

    url = f"http://{config.server.host}:{config.server.port}"
    console.print(f"[green]Tag tree API:[/green] {url}/api/tags/tree")
    console.print("\n[dim]Press Ctrl+C to stop[/dim]")

    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.defaults.log_level.lower(),
    )
