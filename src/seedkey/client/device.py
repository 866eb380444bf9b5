from __future__ import annotations
import platform
from typing import Optional


def _browser(ua: str) -> str:
    if "Chrome" in ua:
        return "Chrome"
    if "Firefox" in ua:
        return "Firefox"
    if "Safari" in ua:
        return "Safari"
    return "Browser"


def _os(ua: str) -> str:
    if "Windows" in ua:
        return "Windows"
    if "Mac" in ua:
        return "macOS"
    if "Linux" in ua:
        return "Linux"
    return "Unknown"


def default_user_agent() -> str:
    return f"{platform.python_implementation()}/{platform.python_version()} ({platform.system()})"


def device_name(user_agent: Optional[str] = None) -> str:
    """Best-effort "<browser> on <os>" label for registration metadata.

    Without a user agent the interpreter stands in for the browser.
    """
    if user_agent:
        return f"{_browser(user_agent)} on {_os(user_agent)}"
    system = platform.system()
    os_name = {"Darwin": "macOS"}.get(system, system or "Unknown")
    return f"{platform.python_implementation()} on {os_name}"
