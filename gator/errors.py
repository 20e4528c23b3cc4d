from __future__ import annotations


class GatorError(Exception):
    """Base for every error that is reported at the command boundary."""

    exit_code: int = 1


class CommandNotFound(GatorError):
    def __init__(self, name: str) -> None:
        super().__init__(f"There is no such command: {name}")
        self.name = name


class UsageError(GatorError):
    pass


class NotAuthenticated(GatorError):
    def __init__(self) -> None:
        super().__init__("No user is logged in. Run `register` or `login` first.")


class UserNotFound(GatorError):
    def __init__(self, name: str) -> None:
        super().__init__(f"User does not exist: {name}")
        self.name = name


class DuplicateUser(GatorError):
    def __init__(self, name: str) -> None:
        super().__init__(f"User already exists: {name}")
        self.name = name


class FeedNotFound(GatorError):
    def __init__(self, url: str) -> None:
        super().__init__(f"No feed with url: {url}")
        self.url = url


class FetchError(GatorError):
    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(f"Failed to fetch {url}: {cause}")
        self.url = url
        self.cause = cause


class FetchCancelled(GatorError):
    pass


class ParseError(GatorError):
    pass


class DateParseError(GatorError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Could not parse publish date: {value!r}")
        self.value = value


class InvalidDuration(GatorError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid duration: {value!r} (expected e.g. 30s, 1m, 1h30m)")
        self.value = value


class StoreError(GatorError):
    pass


class DuplicatePost(StoreError):
    def __init__(self, url: str) -> None:
        super().__init__(f"Post already stored: {url}")
        self.url = url


class DuplicateFollow(StoreError):
    def __init__(self, username: str, url: str) -> None:
        super().__init__(f"{username} already follows {url}")
        self.username = username
        self.url = url


class LockError(GatorError):
    pass
