"""Response helpers shared by the form-action endpoints."""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Literal, NoReturn, TypeVar
from urllib.parse import quote

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel
from starlette.datastructures import FormData

from little_stories.core.settings import settings
from little_stories.schemas.common import ActionFailure, parse_flag
from little_stories.services.errors import GENERIC_ERROR_MESSAGE, ActionError

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", bound=BaseModel)

# Characters encodeURIComponent leaves alone.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def site_path(path: str) -> str:
    """Return `path` as an absolute URL on the user-facing site."""
    return f"{settings.site_url.rstrip('/')}{path}"


def encoded_redirect(kind: Literal["error", "success"], path: str, message: str) -> RedirectResponse:
    """Redirect (303) to `path` with the message encoded as `?error=` or `?success=`."""
    url = f"{site_path(path)}?{kind}={quote(message, safe=_URI_COMPONENT_SAFE)}"
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


def action_failure(exc: ActionError) -> JSONResponse:
    """Render an action error as a structured failure result."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ActionFailure(error=exc.message).model_dump(),
    )


def unexpected_failure() -> JSONResponse:
    """Structured result for errors no action anticipated."""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ActionFailure(error=GENERIC_ERROR_MESSAGE).model_dump(),
    )


def run_action(action: Callable[[], ResultT]) -> JSONResponse:
    """Run a form action and render its outcome as a structured result."""
    try:
        result = action()
    except ActionError as exc:
        return action_failure(exc)
    except Exception:
        logger.exception("Unexpected error while running action")
        return unexpected_failure()
    return JSONResponse(content=jsonable_encoder(result))


async def run_redirect_action(
    action: Callable[[], Awaitable[RedirectResponse]], error_path: str
) -> RedirectResponse:
    """Run an account action; failures redirect to `error_path` with the message."""
    try:
        return await action()
    except ActionError as exc:
        return encoded_redirect("error", error_path, exc.message)
    except Exception:
        logger.exception("Unexpected error while running account action")
        return encoded_redirect("error", error_path, GENERIC_ERROR_MESSAGE)


def raise_http(exc: ActionError) -> NoReturn:
    """Re-raise an action error as an HTTPException for page data endpoints."""
    raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


def checkbox(form: FormData, name: str) -> bool:
    """Presence means checked, unless the value explicitly spells false."""
    if name not in form:
        return False
    return parse_flag(form.get(name)) is not False


def form_fields(form: FormData, *names: str, lists: tuple[str, ...] = ()) -> dict[str, object]:
    """Collect the submitted text fields among `names`; absent fields are omitted.

    Names listed in `lists` keep every submitted value.
    """
    fields: dict[str, object] = {}
    for name in names:
        if name not in form:
            continue
        if name in lists:
            fields[name] = [str(v) for v in form.getlist(name) if isinstance(v, str)]
        else:
            value = form.get(name)
            if isinstance(value, str):
                fields[name] = value
    return fields


async def read_form(request: Request) -> FormData:
    """Parse a urlencoded or multipart request body."""
    return await request.form()
