"""Workflow state machine transitions enforced by the orchestrator."""

START = "START"
USER_CREATED = "USER_CREATED"
USER_VERIFIED = "USER_VERIFIED"
KEY_RETRIEVED = "KEY_RETRIEVED"
TOKEN_ISSUED = "TOKEN_ISSUED"
PAYMENT_SUBMITTED = "PAYMENT_SUBMITTED"
DONE = "DONE"
FAILED = "FAILED"

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    START: {USER_CREATED, FAILED},
    USER_CREATED: {USER_VERIFIED, KEY_RETRIEVED, FAILED},
    USER_VERIFIED: {KEY_RETRIEVED, FAILED},
    KEY_RETRIEVED: {TOKEN_ISSUED, FAILED},
    TOKEN_ISSUED: {PAYMENT_SUBMITTED, FAILED},
    PAYMENT_SUBMITTED: {DONE, FAILED},
    DONE: set(),
    FAILED: set(),
}

TERMINAL_STATES = frozenset({DONE, FAILED})


def validate_transition(current: str, new: str) -> None:
    """Raise when a transition is not allowed by the state machine."""

    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValueError(f"Invalid transition: {current} -> {new}")
