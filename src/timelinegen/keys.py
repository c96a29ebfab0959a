import sys
from enum import Enum
from typing import Optional

class Shortcut(Enum):
    UNDO = "undo"
    REDO = "redo"
    CANCEL_SWAP = "cancel-swap"

def is_mac_platform(platform: Optional[str] = None) -> bool:
    name = (platform if platform is not None else sys.platform).upper()
    return "MAC" in name or name.startswith("DARWIN")

def resolve_shortcut(key: str, *, ctrl: bool = False, meta: bool = False, shift: bool = False,
                     platform: Optional[str] = None) -> Optional[Shortcut]:
    """
    Map a key press to an editor shortcut.

    The primary modifier is Cmd (``meta``) on macOS and Ctrl elsewhere. ``platform``
    accepts browser-style names such as ``"MacIntel"`` as well as ``sys.platform``
    values; it defaults to the running interpreter's platform.
    """
    primary = meta if is_mac_platform(platform) else ctrl
    lowered = (key or "").lower()

    if primary and not shift and lowered == "z":
        return Shortcut.UNDO
    if primary and lowered == "y":
        return Shortcut.REDO
    if primary and shift and lowered == "z":
        return Shortcut.REDO
    if key == "Escape":
        return Shortcut.CANCEL_SWAP
    return None
