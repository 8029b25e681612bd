"""
Bar inventory API

Read endpoints (login, ingredients, dob, bars) and profile update endpoints
used by the mobile/web client.

Response contract kept from the first deployment of this service:
- Read endpoints return the raw result set as a list of value lists.
- Write endpoints return `true`.
- Any database failure is logged and answered with `{}` (or `false` for
  login) and HTTP 200; callers cannot tell "not found" from "unreachable".
"""

import logging
import re
from typing import Any, Dict, Union

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from pydantic import BaseModel, Field, ValidationError

from db.errors import QueryError
from models.query import Query
from routes.forms import UPDATE_CITY_STATE_FORM, UPDATE_DOB_FORM, UPDATE_PASSWORD_FORM
from services.credential_verifier import CredentialVerifier
from services.query_executor import QueryExecutor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Bar Inventory"])

CATCH_ALL_REPLY = "They have curved swords!"
USER_ID_RE = re.compile(r"[0-9]+")


class UpdatePasswordBody(BaseModel):
    username: str = Field(..., description="Account whose password hash is replaced")
    password: str = Field(..., description="New password hash, stored as given")


class UpdateDobBody(BaseModel):
    username: str
    dob: str = Field(..., description="Date of birth; passed to the database unparsed")


class UpdateCityStateBody(BaseModel):
    username: str
    city: str
    state: str


def get_executor(request: Request) -> QueryExecutor:
    return request.app.state.executor


def get_verifier(request: Request) -> CredentialVerifier:
    return request.app.state.verifier


async def _read_body(request: Request, model: type) -> Any:
    """Parse a JSON or form-encoded body into `model`; missing fields -> 422."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Malformed JSON body")
    else:
        data = dict(await request.form())

    if not isinstance(data, dict):
        raise HTTPException(status_code=422, detail="Request body must be an object")
    try:
        return model(**data)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False))


async def _handle_read(executor: QueryExecutor, query: Query, endpoint: str) -> Union[list, Dict[str, Any]]:
    try:
        result = await executor.execute(query)
    except QueryError as e:
        logger.warning("handler.query_failed", extra={"endpoint": endpoint, "kind": e.kind})
        return {}
    return result.as_lists()


async def _handle_write(executor: QueryExecutor, query: Query, endpoint: str) -> Union[bool, Dict[str, Any]]:
    try:
        await executor.execute(query)
    except QueryError as e:
        logger.warning("handler.query_failed", extra={"endpoint": endpoint, "kind": e.kind})
        return {}
    return True


@router.get("/login/{username}/{password}")
async def login_user(
    username: str,
    password: str,
    verifier: CredentialVerifier = Depends(get_verifier),
) -> bool:
    return await verifier.verify(username, password)


@router.get("/ingredients")
async def get_ingredients(executor: QueryExecutor = Depends(get_executor)):
    return await _handle_read(executor, Query("SELECT * FROM inventory_item"), "ingredients")


@router.get("/dob/{user_id}")
async def get_dob(user_id: str, executor: QueryExecutor = Depends(get_executor)):
    query = Query("SELECT dob FROM users WHERE id = :user_id", {"user_id": user_id})
    return await _handle_read(executor, query, "dob")


@router.get("/bars/{user_id}")
async def get_bars_near_user(user_id: str, executor: QueryExecutor = Depends(get_executor)):
    """Bars located in the same city as the user. `user_id` must be numeric."""
    if not USER_ID_RE.fullmatch(user_id):
        raise HTTPException(status_code=400, detail="user_id must be a numeric id")
    query = Query(
        """
        SELECT b.*
        FROM bars b
        JOIN users u ON b.city = u.city
        WHERE u.id = :user_id
        """,
        {"user_id": int(user_id)},
    )
    return await _handle_read(executor, query, "bars")


@router.get("/updateUserPasswordForm", response_class=HTMLResponse)
async def update_user_password_form() -> str:
    return UPDATE_PASSWORD_FORM


@router.get("/updatedob", response_class=HTMLResponse)
async def update_user_dob_form() -> str:
    return UPDATE_DOB_FORM


@router.get("/updateCityState", response_class=HTMLResponse)
async def update_user_city_state_form() -> str:
    return UPDATE_CITY_STATE_FORM


@router.post("/updateUserPassword")
async def update_user_password(request: Request, executor: QueryExecutor = Depends(get_executor)):
    body = await _read_body(request, UpdatePasswordBody)
    query = Query(
        """
        UPDATE users_pass
        SET password_hash = :password
        WHERE users_id = (SELECT id FROM users WHERE username = :username)
        """,
        {"password": body.password, "username": body.username},
        returns_rows=False,
    )
    return await _handle_write(executor, query, "updateUserPassword")


@router.post("/updatedob")
async def update_user_dob(request: Request, executor: QueryExecutor = Depends(get_executor)):
    body = await _read_body(request, UpdateDobBody)
    query = Query(
        "UPDATE users SET dob = :dob WHERE username = :username",
        {"dob": body.dob, "username": body.username},
        returns_rows=False,
    )
    return await _handle_write(executor, query, "updatedob")


@router.post("/updateCityState")
async def update_user_city_state(request: Request, executor: QueryExecutor = Depends(get_executor)):
    body = await _read_body(request, UpdateCityStateBody)
    query = Query(
        "UPDATE users SET city = :city, state = :state WHERE username = :username",
        {"city": body.city, "state": body.state, "username": body.username},
        returns_rows=False,
    )
    return await _handle_write(executor, query, "updateCityState")


# Registered last so the explicit routes above take precedence.
@router.get("/{path:path}", response_class=PlainTextResponse)
async def catch_all(path: str) -> str:
    return CATCH_ALL_REPLY
