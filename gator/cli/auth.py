from __future__ import annotations

import functools
from typing import Callable

from gator.cli.router import Handler, State
from gator.db.models import User
from gator.errors import NotAuthenticated, UserNotFound

AuthedHandler = Callable[[State, list[str], User], None]
UserResolver = Callable[[State], User]


def resolve_current_user(state: State) -> User:
    name = (state.config.current_user_name or "").strip()
    if not name:
        raise NotAuthenticated()
    user = state.store.get_user(name)
    if user is None:
        # config points at a user the database no longer has
        raise UserNotFound(name)
    return user


def logged_in(handler: AuthedHandler, resolve_user: UserResolver = resolve_current_user) -> Handler:
    """
    Adapt a handler that needs the current user into a plain (state, args) handler.
    """

    @functools.wraps(handler)
    def wrapper(state: State, args: list[str]) -> None:
        user = resolve_user(state)
        return handler(state, args, user)

    return wrapper
