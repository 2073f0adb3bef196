"""JSON codec used to serialize session records for the store."""

import json
from dataclasses import dataclass
from typing import Any, Callable


def _json_marshal(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":")).encode("utf-8")


def _json_unmarshal(data: bytes) -> Any:
    return json.loads(data)


@dataclass(frozen=True)
class Codec:
    """
    A marshal/unmarshal pair.

    Pass a custom instance through SessionOptions to change how records
    are encoded, e.g. ``Codec(marshal=orjson.dumps, unmarshal=orjson.loads)``.
    """
    marshal: Callable[[Any], bytes] = _json_marshal
    unmarshal: Callable[[bytes], Any] = _json_unmarshal


JSON_CODEC = Codec()
