"""Start-up check deciding whether model calls are permitted."""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

from ..config.settings_manager import get_setting, set_settings
from .prompts import KEY_CHECK_FAILED_MESSAGE

logger = logging.getLogger(__name__)


class KeyState(str, Enum):
    """Credential availability as seen by the coach."""

    CHECKING = "checking"
    NEEDED = "needed"
    READY = "ready"
    ERROR = "error"


class KeyManager(Protocol):
    """Host facility for inspecting and selecting an API key."""

    async def has_selected_key(self) -> bool:
        ...

    async def open_select_key(self) -> bool:
        """Let the user pick a key. Returns False if they cancelled."""
        ...


class SettingsKeyManager:
    """Key manager storing the selected key in the settings file.

    Args:
        prompt: Coroutine factory asking the user for a key; resolves to the
            entered key or None when the dialog was cancelled
    """

    def __init__(self, prompt: Callable[[], Awaitable[Optional[str]]]):
        self.prompt = prompt

    async def has_selected_key(self) -> bool:
        return bool((get_setting("api_key") or "").strip())

    async def open_select_key(self) -> bool:
        api_key = await self.prompt()
        if not api_key or not api_key.strip():
            return False
        set_settings({"api_key": api_key.strip()})
        return True


class KeyGate:
    """Determines once per lifetime whether a usable credential exists.

    Without a key manager the key is assumed to come from the environment and
    the gate opens immediately. Any failure while querying the manager closes
    the gate in the ERROR state.
    """

    def __init__(
        self,
        key_manager: Optional[KeyManager] = None,
        check_delay: float = 0.5,
        on_state_change: Optional[Callable[[KeyState], None]] = None,
    ):
        self.key_manager = key_manager
        self.check_delay = check_delay
        self.on_state_change = on_state_change
        self.error_message: Optional[str] = None
        self._state = KeyState.CHECKING
        self._checked = False

    @property
    def state(self) -> KeyState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is KeyState.READY

    @property
    def can_reselect(self) -> bool:
        """Whether the host lets the user pick another key."""
        return self.key_manager is not None

    def _set_state(self, state: KeyState) -> None:
        if state is self._state:
            return
        logger.info("Key state: %s -> %s", self._state.value, state.value)
        self._state = state
        if self.on_state_change:
            self.on_state_change(state)

    async def check(self) -> KeyState:
        """Run the availability check. Later calls return the current state."""
        if self._checked:
            return self._state
        self._checked = True

        if self.key_manager is None:
            self._set_state(KeyState.READY)
            return self._state

        # Keeps the "checking" status from flashing by
        await asyncio.sleep(self.check_delay)

        try:
            has_key = await self.key_manager.has_selected_key()
        except Exception as e:
            logger.exception("API key check failed")
            self.error_message = KEY_CHECK_FAILED_MESSAGE.format(error=e)
            self._set_state(KeyState.ERROR)
            return self._state

        self._set_state(KeyState.READY if has_key else KeyState.NEEDED)
        return self._state

    async def select_key(self) -> KeyState:
        """Open the host's key picker and update the state accordingly."""
        if self.key_manager is None:
            return self._state

        try:
            selected = await self.key_manager.open_select_key()
        except Exception as e:
            logger.warning("Key selection failed: %s", e, exc_info=True)
            self.error_message = f"Key selection failed: {e}"
            self._set_state(KeyState.NEEDED)
            return self._state

        if selected:
            self.error_message = None
            self._set_state(KeyState.READY)
        else:
            logger.info("Key selection cancelled")
        return self._state

    def require_reselect(self, message: str) -> None:
        """Send the user back to key selection with a diagnostic message."""
        self.error_message = message
        self._set_state(KeyState.NEEDED)
