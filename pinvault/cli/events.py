from rich.console import Console

from pinvault.constants import format_remaining
from pinvault.models.flow import FlowEvent, FlowEventType

console = Console()

_STYLES = {
    FlowEventType.SUCCESS: "green bold",
    FlowEventType.FAILURE: "red",
    FlowEventType.LOCKED: "red bold",
    FlowEventType.UNLOCKED: "green",
    FlowEventType.BIOMETRIC_FAILED: "red",
    FlowEventType.CODE_SENT: "green",
    FlowEventType.RESET_COMPLETE: "green bold",
    FlowEventType.ERROR: "red",
}

_DEFAULT_MESSAGES = {
    FlowEventType.SUCCESS: "Unlocked.",
    FlowEventType.UNLOCKED: "Lockout over, you can enter your PIN again.",
}


def print_event(event: FlowEvent) -> None:
    if event.type == FlowEventType.LOCKOUT_TICK:
        return
    message = event.message or _DEFAULT_MESSAGES.get(event.type, event.type.value)
    if event.type == FlowEventType.LOCKED and not event.message:
        message = f"PIN locked. Try again in {format_remaining(event.remaining_time_ms)}."
    style = _STYLES.get(event.type, "white")
    console.print(f"[{style}]{message}[/{style}]")
