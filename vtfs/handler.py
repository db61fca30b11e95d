"""Transport-agnostic request translation.

Turns string request parameters (as they arrive in a query string or form)
into engine calls and engine results into plain JSON-ready dicts:
``{"result": ...}`` on success, ``{"error": "<code>"}`` on failure. Binary
payloads travel as base64 text. Routing, authentication and status codes
belong to whatever serves these dicts.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Callable, Mapping
from dataclasses import asdict
from typing import Any

from .base import ROOT_PATH, DirEntry, Stat
from .engine import FileSystemEngine
from .errors import ErrorCode, FSError, Result

logger = logging.getLogger(__name__)


def _kind_as_type(fields: dict[str, Any]) -> dict[str, Any]:
    fields["type"] = fields.pop("kind").value
    return fields


def _describe_child(child: DirEntry) -> dict[str, Any]:
    return _kind_as_type(asdict(child))


def _describe_stat(stat: Stat) -> dict[str, Any]:
    return _kind_as_type(asdict(stat))


class RequestHandler:
    """Dispatch verb + string parameters to a FileSystemEngine.

    Verbs: ``list``, ``create``, ``delete``, ``read``, ``write``, ``stat``,
    ``link``. Malformed parameters (missing path, non-numeric offset, bad
    octal mode, bad base64) are answered with ``InvalidArgument``.

    Example:
        >>> handler = RequestHandler(FileSystemEngine())
        >>> handler.handle("create", {"path": "/a.txt", "mode": "644"})
        {'result': {'ino': 1001, 'path': '/a.txt'}}
        >>> handler.handle("write", {"path": "/a.txt", "data": "aGk="})
        {'result': {'written': 2}}
        >>> handler.handle("delete", {"path": "/"})
        {'error': 'Busy'}
    """

    def __init__(self, engine: FileSystemEngine):
        self._engine = engine
        self._routes: dict[str, Callable[[Mapping[str, str]], dict[str, Any]]] = {
            "list": self._list,
            "create": self._create,
            "delete": self._delete,
            "read": self._read,
            "write": self._write,
            "stat": self._stat,
            "link": self._link,
        }

    def handle(self, verb: str, params: Mapping[str, str]) -> dict[str, Any]:
        """Run one request and return its response dict."""
        route = self._routes.get(verb)
        if route is None:
            logger.warning("Rejected unknown verb %r", verb)
            return {"error": ErrorCode.INVALID_ARGUMENT.value}
        try:
            return route(params)
        except FSError as e:
            logger.warning("Rejected %s request: %s", verb, e)
            return {"error": e.code.value}

    # -------------------------------------------------------------------------
    # Parameter parsing
    # -------------------------------------------------------------------------

    @staticmethod
    def _required(params: Mapping[str, str], name: str) -> str:
        value = params.get(name)
        if value is None:
            logger.warning("Missing parameter %r", name)
            raise FSError(ErrorCode.INVALID_ARGUMENT)
        return value

    @staticmethod
    def _int(
        params: Mapping[str, str], name: str, default: int | None, path: str | None = None
    ) -> int | None:
        raw = params.get(name)
        if raw is None or raw == "":
            return default
        try:
            return int(raw)
        except ValueError:
            logger.warning("Bad integer %s=%r", name, raw)
            raise FSError(ErrorCode.INVALID_ARGUMENT, path)

    @staticmethod
    def _respond(result: Result, render: Callable[[Any], Any]) -> dict[str, Any]:
        if not result.ok:
            return {"error": result.code.value}
        return {"result": render(result.value)}

    # -------------------------------------------------------------------------
    # Routes
    # -------------------------------------------------------------------------

    def _list(self, params):
        result = self._engine.list_dir(params.get("path") or ROOT_PATH)
        return self._respond(result, lambda children: [_describe_child(c) for c in children])

    def _create(self, params):
        path = self._required(params, "path")
        mode_text = params.get("mode") or "777"
        try:
            mode = int(mode_text, 8)
        except ValueError:
            logger.warning("Bad octal mode %r", mode_text)
            raise FSError(ErrorCode.INVALID_ARGUMENT, path)
        result = self._engine.create(path, params.get("type") or "file", mode)
        return self._respond(result, asdict)

    def _delete(self, params):
        result = self._engine.delete(self._required(params, "path"))
        return self._respond(result, lambda path: {"deleted": path})

    def _read(self, params):
        path = self._required(params, "path")
        offset = self._int(params, "offset", 0, path)
        size = self._int(params, "size", None, path)
        result = self._engine.read(path, offset, size)
        return self._respond(result, lambda data: {"data": base64.b64encode(data).decode("ascii")})

    def _write(self, params):
        path = self._required(params, "path")
        offset = self._int(params, "offset", 0, path)
        try:
            data = base64.b64decode(self._required(params, "data"), validate=True)
        except (binascii.Error, ValueError):
            logger.warning("Bad base64 data for %s", path)
            raise FSError(ErrorCode.INVALID_ARGUMENT, path)
        result = self._engine.write(path, offset, data)
        return self._respond(result, lambda written: {"written": written})

    def _stat(self, params):
        result = self._engine.stat(self._required(params, "path"))
        return self._respond(result, _describe_stat)

    def _link(self, params):
        old_path = self._required(params, "oldpath")
        new_path = self._required(params, "newpath")
        result = self._engine.link(old_path, new_path)
        return self._respond(result, lambda path: {"linked": path})
