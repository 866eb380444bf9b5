from __future__ import annotations
import json
from typing import Any, Dict
from .constants import MAX_MSG_BYTES, MAX_JSON_DEPTH, MAX_JSON_KEYS, TOPICS


def _limit_keys(obj: Dict[str, Any]) -> Dict[str, Any]:
    if len(obj) > MAX_JSON_KEYS:
        raise ValueError("Too many JSON keys")
    return obj


def _check_depth(root: Any) -> None:
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        if depth > MAX_JSON_DEPTH:
            raise ValueError("JSON nesting too deep")
        if isinstance(node, dict):
            stack.extend((v, depth + 1) for v in node.values())
        elif isinstance(node, list):
            stack.extend((v, depth + 1) for v in node)


def fuzz_resistant_json_loads(s: str) -> Any:
    """json.loads with size, key-count and depth limits for relay traffic."""
    if len(s) > MAX_MSG_BYTES:
        raise ValueError("Message too large")
    parsed = json.loads(s, object_hook=_limit_keys)
    _check_depth(parsed)
    return parsed


def json_dumps_sorted(o: Any) -> str:
    return json.dumps(o, ensure_ascii=False, separators=(",", ":"), sort_keys=True)


def json_copy(o: Any) -> Any:
    return json.loads(json_dumps_sorted(o))


def parse_bus_frame(raw: str) -> Dict[str, Any]:
    """Decode one ``{"topic", "detail"}`` frame from an untrusted peer."""
    frame = fuzz_resistant_json_loads(raw)
    if not isinstance(frame, dict):
        raise ValueError("frame must be a json object")
    topic = frame.get("topic")
    if topic not in TOPICS:
        raise ValueError(f"unknown topic: {topic}")
    return frame
