"""
I/O module for nbodyip.

Validated records (pydantic) and JSON persistence of dictionaries,
N-body terms and potentials.
"""

from .schemas import (
    BasisConfig,
    BodyOrderSpec,
    DictionaryRecord,
    NBodyIPRecord,
    NBodyRecord,
    OneBodyRecord,
)
from .serialization import (
    decode,
    encode,
    get_decoder,
    list_decoders,
    load_ip,
    register_decoder,
    save_ip,
)

__all__ = [
    "DictionaryRecord",
    "NBodyRecord",
    "OneBodyRecord",
    "NBodyIPRecord",
    "BodyOrderSpec",
    "BasisConfig",
    "register_decoder",
    "get_decoder",
    "list_decoders",
    "decode",
    "encode",
    "save_ip",
    "load_ip",
]
