import re

PIN_LENGTH = 6
PIN_PATTERN = re.compile(r"[0-9]{6}")

SALT_BYTES = 32

PIN_HASH_KEY = "user_pin_hash"
PIN_SALT_KEY = "user_pin_salt"
PIN_SETUP_KEY = "pin_setup_complete"
FAILED_ATTEMPTS_KEY = "pin_failed_attempts"
LOCKOUT_TIME_KEY = "pin_lockout_time"

CREDENTIAL_KEYS = (PIN_HASH_KEY, PIN_SALT_KEY, PIN_SETUP_KEY)
ATTEMPT_KEYS = (FAILED_ATTEMPTS_KEY, LOCKOUT_TIME_KEY)

WEAK_PINS = frozenset(
    {
        "000000",
        "111111",
        "222222",
        "333333",
        "444444",
        "555555",
        "666666",
        "777777",
        "888888",
        "999999",
        "123456",
        "654321",
        "123321",
        "112233",
        "121212",
    }
)

RESET_CODE_LENGTH = 6
COUNTDOWN_TICK_SECONDS = 1.0


def format_remaining(ms: int) -> str:
    """Render a lockout remaining time as whole minutes, rounded up."""
    minutes = max(0, -(-ms // 60000))
    return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
