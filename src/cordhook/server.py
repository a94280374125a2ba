from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from .config import CordhookConfig
from .dispatcher import InboundRequest, InteractionDispatcher
from .registry import HandlerTree
from .rest import DiscordRestClient
from .verify import RequestVerifier


def create_app(
    dispatcher: InteractionDispatcher,
    *,
    interactions_path: str = "/",
    close_rest: Optional[DiscordRestClient] = None,
) -> FastAPI:
    """Bind the dispatcher to a POST route.

    The handler registry is frozen here; handlers must be loaded before the
    app is created.
    """
    dispatcher.registry.freeze()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            if close_rest is not None:
                await close_rest.close()

    app = FastAPI(lifespan=lifespan)

    @app.get("/health", response_class=PlainTextResponse)
    async def health() -> str:
        return "cordhook is running"

    @app.post(interactions_path)
    async def interactions(request: Request, background_tasks: BackgroundTasks) -> Response:
        body = await request.body()
        result = await dispatcher.dispatch(
            InboundRequest(headers=dict(request.headers), body=body),
            schedule=background_tasks.add_task,
        )
        return Response(
            content=result.body,
            status_code=result.status_code,
            media_type=result.media_type,
        )

    return app


def create_app_from_config(config: CordhookConfig, *handlers: HandlerTree) -> FastAPI:
    rest = DiscordRestClient(
        bot_token=config.require_bot_token(),
        timeout_seconds=config.request_timeout_seconds,
        base_url=config.api_base_url,
        debug=config.debug_rest,
    )
    dispatcher = InteractionDispatcher(
        verifier=RequestVerifier(
            config.require_public_key(),
            max_timestamp_age_seconds=config.max_timestamp_age_seconds,
        ),
        rest=rest,
        execution_mode=config.execution_mode,
    )
    dispatcher.load_handlers(*handlers)
    return create_app(
        dispatcher,
        interactions_path=config.interactions_path,
        close_rest=rest,
    )
