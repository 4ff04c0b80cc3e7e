"""
Mapper Proxies.

Builds a concrete subclass of a mapper interface whose statement methods
run the mapped statement `<module>.<Interface>.<method>` through a session
or session template.

Arguments are bound by the method signature. A single non-scalar argument
(a mapping, dataclass or object) is the parameter object itself; otherwise
the arguments are passed by name. Selects whose return annotation is a
collection return every row; other selects return one row or None.
"""

from __future__ import annotations

import collections.abc
import functools
import inspect
import logging
import typing
from typing import Any

from sqlweave.mapping.statements import SqlCommandType, namespace_of

logger = logging.getLogger(__name__)

_COLLECTION_ORIGINS = (
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.Iterable,
    collections.abc.Collection,
)
_COLLECTION_NAMES = ("list", "tuple", "set", "frozenset", "sequence", "iterable", "collection")
_SCALARS = (str, bytes, int, float, bool)


def create_mapper_proxy(interface: type, session: Any) -> Any:
    """
    Create a mapper proxy bound to a session or session template.

    Methods without a registered statement raise BindingError when called.
    """
    namespace = namespace_of(interface)
    attributes: dict[str, Any] = {
        "__init__": _init,
        "__repr__": lambda self: f"<{interface.__name__} proxy bound to {self._session!r}>",
        "__module__": interface.__module__,
    }
    for name, member in _statement_methods(interface, session):
        attributes[name] = _statement_method(member, f"{namespace}.{name}")

    proxy_class = type(interface)(f"{interface.__name__}Proxy", (interface,), attributes)
    return proxy_class(session)


def _init(self: Any, session: Any) -> None:
    self._session = session


def _statement_methods(interface: type, session: Any) -> list[tuple[str, Any]]:
    namespace = namespace_of(interface)
    configuration = session.configuration
    methods = []
    for klass in reversed(inspect.getmro(interface)):
        if klass is object:
            continue
        for name, member in vars(klass).items():
            if not inspect.isfunction(member) or name.startswith("__"):
                continue
            abstract = getattr(member, "__isabstractmethod__", False)
            if abstract or configuration.has_statement(f"{namespace}.{name}"):
                methods.append((name, member))
    return methods


def _statement_method(member: Any, statement_id: str) -> Any:
    signature = inspect.signature(member)
    returns_many = _returns_collection(member)

    @functools.wraps(member)
    def method(self: Any, *args: Any, **kwargs: Any) -> Any:
        session = self._session
        statement = session.configuration.get_mapped_statement(statement_id)
        parameter = _parameter(signature, self, args, kwargs)
        command = statement.command_type
        if command is SqlCommandType.SELECT:
            if returns_many:
                return session.select_list(statement_id, parameter)
            return session.select_one(statement_id, parameter)
        if command is SqlCommandType.INSERT:
            return session.insert(statement_id, parameter)
        if command is SqlCommandType.UPDATE:
            return session.update(statement_id, parameter)
        return session.delete(statement_id, parameter)

    method.__isabstractmethod__ = False
    return method


def _parameter(signature: inspect.Signature, instance: Any, args: tuple, kwargs: dict) -> Any:
    bound = signature.bind(instance, *args, **kwargs)
    bound.apply_defaults()
    arguments = dict(bound.arguments)
    arguments.pop(next(iter(signature.parameters)), None)
    if len(arguments) == 1:
        (value,) = arguments.values()
        if value is not None and not isinstance(value, _SCALARS):
            return value
    return arguments


def _returns_collection(member: Any) -> bool:
    try:
        annotation = typing.get_type_hints(member).get("return")
    except (NameError, TypeError):
        annotation = member.__annotations__.get("return")
    if annotation is None:
        return False
    if isinstance(annotation, str):
        return annotation.split("[", 1)[0].rsplit(".", 1)[-1].lower() in _COLLECTION_NAMES
    origin = typing.get_origin(annotation) or annotation
    return origin in _COLLECTION_ORIGINS
