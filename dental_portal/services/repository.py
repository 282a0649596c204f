"""Shared plumbing for the collection repositories."""

import logging
from typing import Any, Callable, Iterable, List, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from dental_portal.core.exceptions import RequestError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

Listener = Callable[[], None]


def parse_model(model: Type[M], raw: Any, fallback: str) -> M:
    """Validate a response payload, reporting a malformed one as a RequestError."""
    try:
        return model.model_validate(raw)
    except SchemaError as e:
        logger.error(f"❌ Unexpected {model.__name__} payload: {e}")
        raise RequestError(fallback) from e


def parse_models(model: Type[M], raw: Iterable[Any], fallback: str) -> List[M]:
    return [parse_model(model, item, fallback) for item in raw or []]


class Repository:
    """Holds one collection and notifies listeners when it changes."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
