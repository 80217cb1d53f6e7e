"""Declare a group of environment variables from an annotated settings class."""

import inspect
from typing import Any, Dict, Type, get_type_hints

import docstring_parser

from .kinds import resolve_kind
from .registry import Registry, Value

_NO_DEFAULT = object()


def declare_settings(registry: Registry, settings_cls: Type[Any], prefix: str = "") -> Dict[str, Value]:
    """Declare one environment variable per annotated attribute of a settings class.

    An attribute with a class-level default is optional and falls back to that default; an
    attribute without one is required. Help text is taken from the ``Attributes:`` section of
    the class docstring.

    Example::

        class Server:
            '''Server settings.

            Attributes:
                bind_address: Bind address for server, i.e. localhost
                bind_port: Bind port for server, i.e. 9090
            '''

            bind_address: str
            bind_port: int = 9090

        handles = declare_settings(registry, Server, prefix="APP_")  # APP_BIND_ADDRESS, APP_BIND_PORT

    Args:
        registry: Registry to declare the variables in
        settings_cls: Class whose annotations describe the variables
        prefix: Prepended to each upper-cased attribute name to form the variable name

    Returns:
        Dict mapping attribute names to their value handles  # (in annotation order)

    Raises:
        TypeError: If an annotation is not a supported kind or a default does not match it
    """
    hints = get_type_hints(settings_cls)
    help_texts = _get_attribute_docstrings(settings_cls)

    handles = {}  # Dict[str, Value] (attribute name -> handle)
    for attr_name, annotation in hints.items():
        if attr_name.startswith("_"):
            continue
        try:
            kind = resolve_kind(annotation)
        except TypeError:
            raise TypeError(f"{settings_cls.__name__}.{attr_name}: unsupported type {annotation!r}")

        # Defaults may be inherited from a base settings class
        default = getattr(settings_cls, attr_name, _NO_DEFAULT)
        handles[attr_name] = registry.declare(
            kind,
            prefix + attr_name.upper(),
            required=default is _NO_DEFAULT,
            default=kind.zero if default is _NO_DEFAULT else default,
            help=help_texts.get(attr_name, ""),
        )
    return handles


def _get_attribute_docstrings(settings_cls: Type[Any]) -> Dict[str, str]:
    """Get all attribute descriptions from a class docstring in one parse.

    Args:
        settings_cls: Class whose docstring documents its attributes

    Returns:
        Dict mapping attribute names to their descriptions  # (attribute name -> description)
    """
    docstring = inspect.getdoc(settings_cls)
    if not docstring:
        return {}

    # Fix docstring if it starts with a section directly (missing description)
    if docstring.strip().startswith(("Attributes:", "Args:")):
        docstring = f"Description.\n\n{docstring}"

    try:
        parsed = docstring_parser.parse(docstring)
    except docstring_parser.ParseError:
        return {}

    attr_docs = {}  # Dict[str, str] (attribute name -> description)
    for param in parsed.params:
        if param.description:
            # Collapse wrapped lines and remove trailing punctuation
            description = " ".join(param.description.split()).rstrip("。.")
            attr_docs[param.arg_name] = description
    return attr_docs
