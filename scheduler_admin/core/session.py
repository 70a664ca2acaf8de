"""
Session store — browser-side persisted state for the console.

The signed session cookie plays the role of local storage:
- accessToken:   bearer token for the scheduling backend
- dashboardStep: current wizard step, survives reloads
- wizard:        small wizard-local values (selected term, calendar year, capacity)

Written by login and wizard transitions only; cleared by logout,
"start over" and any backend call answered with 401.
"""

from typing import Any, Optional

from fastapi import Request

TOKEN_KEY = "accessToken"
STEP_KEY = "dashboardStep"
WIZARD_KEY = "wizard"


class SessionStore:
    def __init__(self, data: dict):
        self._data = data

    # ---- token ----
    @property
    def token(self) -> Optional[str]:
        return self._data.get(TOKEN_KEY) or None

    def set_token(self, token: str) -> None:
        self._data[TOKEN_KEY] = token

    def clear_token(self) -> None:
        self._data.pop(TOKEN_KEY, None)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    # ---- wizard ----
    @property
    def step(self) -> Optional[str]:
        return self._data.get(STEP_KEY)

    def set_step(self, step: str) -> None:
        self._data[STEP_KEY] = step

    @property
    def wizard(self) -> dict[str, Any]:
        return dict(self._data.get(WIZARD_KEY) or {})

    def set_wizard(self, values: dict[str, Any]) -> None:
        self._data[WIZARD_KEY] = values

    def clear_wizard(self) -> None:
        self._data.pop(STEP_KEY, None)
        self._data.pop(WIZARD_KEY, None)


def get_session_store(request: Request) -> SessionStore:
    return SessionStore(request.session)
