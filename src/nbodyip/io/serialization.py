"""Decoder registry and JSON persistence for dictionaries, terms and potentials."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Tuple, Union

from nbodyip.core.errors import ConfigurationError
from nbodyip.polynomials import Dictionary
from nbodyip.potential import NBody, NBodyIP, OneBody

logger = logging.getLogger(__name__)

Decoder = Callable[[Dict[str, Any]], Any]
_DECODERS: Dict[str, Decoder] = {}


def register_decoder(tag: str, decoder: Decoder) -> None:
    key = tag.strip()
    if not key:
        raise ValueError("Decoder tag must be non-empty.")
    _DECODERS[key] = decoder


def get_decoder(tag: str) -> Decoder:
    try:
        return _DECODERS[tag]
    except KeyError as exc:
        available = ", ".join(sorted(_DECODERS)) or "<none>"
        raise ConfigurationError(
            f"Unknown record id '{tag}'. Available ids: {available}"
        ) from exc


def list_decoders() -> Tuple[str, ...]:
    return tuple(sorted(_DECODERS))


def encode(obj: Any) -> Dict[str, Any]:
    """Flat JSON-compatible record of a persistable object."""
    to_dict = getattr(obj, "to_dict", None)
    if to_dict is None:
        raise TypeError(f"Cannot encode object of type {type(obj).__name__}")
    return to_dict()


def decode(record: Dict[str, Any]) -> Any:
    """Rebuild an object from its record, dispatching on the ``id`` tag."""
    if not isinstance(record, dict) or "id" not in record:
        raise ConfigurationError("Record must be a mapping with an 'id' tag")
    return get_decoder(record["id"])(record)


def save_ip(path: Union[str, Path], obj: Any) -> None:
    """Write a potential (or any persistable object) as JSON."""
    path = Path(path)
    with open(path, "w") as f:
        json.dump(encode(obj), f, indent=2)
    logger.info("saved %s to %s", type(obj).__name__, path)


def load_ip(path: Union[str, Path]) -> Any:
    """Read an object written by ``save_ip``."""
    with open(path, "r") as f:
        record = json.load(f)
    return decode(record)


register_decoder("Dictionary", Dictionary.from_dict)
register_decoder("NBody", NBody.from_dict)
register_decoder("OneBody", OneBody.from_dict)
register_decoder("NBodyIP", NBodyIP.from_dict)
