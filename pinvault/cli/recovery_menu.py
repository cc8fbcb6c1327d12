from __future__ import annotations

import questionary
from rich.console import Console

from pinvault.cli.events import print_event
from pinvault.errors import ValidationError
from pinvault.flows.recovery import PinRecoveryFlow
from pinvault.models.recovery import RecoveryStep, ResetMethod, UserContact
from pinvault.services.pin_service import PinAuthenticator
from pinvault.services.reset_client import PinResetClient

console = Console()

_METHOD_CHOICES = {"Via SMS": ResetMethod.PHONE, "Via Email": ResetMethod.EMAIL}


def forgot_pin_menu(authenticator: PinAuthenticator, user: UserContact) -> None:
    console.print()
    console.print("[bold]Reset PIN[/bold]", style="cyan")

    choice = questionary.select(
        "How would you like to reset your PIN?",
        choices=[*_METHOD_CHOICES, "Back"],
    ).ask()
    if choice is None or choice == "Back":
        return
    method = _METHOD_CHOICES[choice]

    label = "Phone number:" if method == ResetMethod.PHONE else "Email:"
    contact = questionary.text(label).ask()
    if not contact:
        console.print("[yellow]Operation cancelled.[/yellow]")
        return
    user = user.model_copy(update={method.value: contact})

    with PinResetClient() as client:
        flow = PinRecoveryFlow(authenticator, client, user, print_event)
        flow.begin()
        try:
            flow.select_method(method)
        except ValidationError as e:
            console.print(f"[red]{e}[/red]")
            return
        _run_recovery(flow, contact)


def _run_recovery(flow: PinRecoveryFlow, contact: str) -> None:
    while flow.step == RecoveryStep.CONFIRM_SEND:
        if not questionary.confirm(f"Send reset code to {contact}?", default=True).ask():
            flow.cancel()
            console.print("[yellow]Operation cancelled.[/yellow]")
            return
        flow.send_code()

    while flow.step == RecoveryStep.AWAIT_CODE:
        code = questionary.text("Verification code:").ask()
        if code is None:
            flow.cancel()
            console.print("[yellow]Operation cancelled.[/yellow]")
            return
        flow.submit_code(code)

    while flow.step == RecoveryStep.SET_NEW_PIN:
        new_pin = questionary.password("New PIN:").ask()
        if new_pin is None:
            flow.cancel()
            console.print("[yellow]Operation cancelled.[/yellow]")
            return
        confirm_pin = questionary.password("Confirm new PIN:").ask()
        if confirm_pin is None:
            flow.cancel()
            console.print("[yellow]Operation cancelled.[/yellow]")
            return
        flow.complete(new_pin, confirm_pin)
