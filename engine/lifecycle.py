"""Configuration lifecycle.

A configuration is a draft while it only exists in memory and becomes
persisted once written. Persisted configurations never change again;
corrections are new configurations.
"""

from enum import Enum

from core.exceptions import InvalidStateTransition


class ConfigurationState(str, Enum):
    DRAFT = "draft"
    PERSISTED = "persisted"


# Allowed transitions: {current_state: [allowed_next_states]}
_TRANSITIONS: dict[ConfigurationState, list[ConfigurationState]] = {
    ConfigurationState.DRAFT: [ConfigurationState.PERSISTED],
    ConfigurationState.PERSISTED: [],  # terminal
}


def can_transition(current: ConfigurationState, to_state: ConfigurationState) -> bool:
    """Check if a transition is allowed from the current state."""
    return to_state in _TRANSITIONS.get(current, [])


def ensure_transition(
    current: ConfigurationState, to_state: ConfigurationState
) -> ConfigurationState:
    """Return ``to_state`` if reachable from ``current``.

    Raises InvalidStateTransition otherwise.
    """
    if not can_transition(current, to_state):
        allowed = [s.value for s in _TRANSITIONS.get(current, [])]
        raise InvalidStateTransition(current.value, to_state.value, allowed)
    return to_state


def is_terminal(state: ConfigurationState) -> bool:
    return len(_TRANSITIONS.get(state, [])) == 0
