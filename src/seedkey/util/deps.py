from __future__ import annotations
import importlib
from importlib import metadata
from typing import Dict, List, Optional, Tuple

# import name -> distribution name
REQUIRED = {
    "httpx": "httpx",
    "websockets": "websockets",
    "fastapi": "fastapi",
    "uvicorn": "uvicorn[standard]",
    "cryptography": "cryptography",
    "structlog": "structlog",
    "pydantic": "pydantic",
}


def installed_versions() -> Dict[str, Optional[str]]:
    versions: Dict[str, Optional[str]] = {}
    for module, dist in REQUIRED.items():
        try:
            importlib.import_module(module)
        except ImportError:
            versions[module] = None
            continue
        try:
            versions[module] = metadata.version(dist.split("[")[0])
        except metadata.PackageNotFoundError:
            versions[module] = "unknown"
    return versions


def check_dependencies() -> Tuple[bool, List[str]]:
    missing = [REQUIRED[m] for m, v in installed_versions().items() if v is None]
    return not missing, missing
