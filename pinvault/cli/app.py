from __future__ import annotations

import questionary
from rich.console import Console
from rich.table import Table

from pinvault.cli.events import print_event
from pinvault.cli.recovery_menu import forgot_pin_menu
from pinvault.constants import PIN_LENGTH, format_remaining
from pinvault.errors import PinVaultError
from pinvault.flows.pin_entry import PinEntryFlow
from pinvault.models.recovery import UserContact
from pinvault.services.pin_service import PinAuthenticator
from pinvault.settings import settings
from pinvault.storage.factory import get_credential_store

console = Console()


def _build_authenticator() -> PinAuthenticator:
    return PinAuthenticator(get_credential_store())


def main_menu() -> None:
    authenticator = _build_authenticator()

    console.print()
    console.print("[bold]PIN Vault[/bold]", style="cyan")
    console.print()

    user_id = questionary.text("User ID:").ask()
    if not user_id:
        console.print("[yellow]Operation cancelled.[/yellow]")
        return
    user = UserContact(id=user_id)

    while True:
        choices = [
            "Unlock",
            "Set Up PIN",
            "Change PIN",
            "Remove PIN",
            "Security Status",
            "Forgot PIN",
        ]
        if settings.allow_emergency_reset:
            choices.append("Emergency Reset")
        choices.append("Exit")

        choice = questionary.select("Main Menu", choices=choices).ask()

        if choice is None or choice == "Exit":
            console.print("[bold]Goodbye![/bold]")
            break
        elif choice == "Unlock":
            _unlock(authenticator, user)
        elif choice == "Set Up PIN":
            _setup_pin(authenticator, user)
        elif choice == "Change PIN":
            _change_pin(authenticator, user)
        elif choice == "Remove PIN":
            _remove_pin(authenticator, user)
        elif choice == "Security Status":
            _show_status(authenticator, user)
        elif choice == "Forgot PIN":
            forgot_pin_menu(authenticator, user)
        elif choice == "Emergency Reset":
            _emergency_reset(authenticator, user)


def _unlock(authenticator: PinAuthenticator, user: UserContact) -> None:
    if not authenticator.is_pin_setup(user.id):
        console.print("[yellow]No PIN is set up for this user.[/yellow]")
        return

    flow = PinEntryFlow(authenticator, user, notify=print_event)
    try:
        flow.start()
        if flow.is_locked_out:
            return
        pin = questionary.password("PIN:").ask()
        if pin is None:
            console.print("[yellow]Operation cancelled.[/yellow]")
            return
        if not pin.isdigit() or not pin.isascii() or len(pin) > PIN_LENGTH:
            console.print(f"[red]PIN must be {PIN_LENGTH} digits.[/red]")
            return
        for digit in pin:
            flow.press_digit(digit)
        if flow.digits_entered:
            flow.submit()
        if flow.attempts and not flow.is_locked_out:
            console.print(f"[yellow]{flow.attempts}/{authenticator.max_attempts} failed attempts[/yellow]")
    finally:
        flow.close()


def _setup_pin(authenticator: PinAuthenticator, user: UserContact) -> None:
    console.print()
    console.print("[bold]Set Up PIN[/bold]", style="cyan")

    if authenticator.is_pin_setup(user.id):
        console.print("[yellow]A PIN already exists. Use 'Change PIN' instead.[/yellow]")
        return

    pin = questionary.password("New PIN (6 digits):").ask()
    if not pin:
        console.print("[yellow]Operation cancelled.[/yellow]")
        return

    confirm = questionary.password("Confirm PIN:").ask()
    if pin != confirm:
        console.print("[red]PINs do not match.[/red]")
        return

    try:
        authenticator.setup_pin(user.id, pin)
        console.print("[green bold]PIN set up successfully![/green bold]")
    except PinVaultError as e:
        console.print(f"[red]Could not set up PIN: {e}[/red]")


def _change_pin(authenticator: PinAuthenticator, user: UserContact) -> None:
    console.print()
    console.print("[bold]Change PIN[/bold]", style="cyan")

    old_pin = questionary.password("Current PIN:").ask()
    if not old_pin:
        console.print("[yellow]Operation cancelled.[/yellow]")
        return

    new_pin = questionary.password("New PIN (6 digits):").ask()
    if not new_pin:
        console.print("[yellow]Operation cancelled.[/yellow]")
        return

    confirm = questionary.password("Confirm new PIN:").ask()
    if new_pin != confirm:
        console.print("[red]PINs do not match.[/red]")
        return

    try:
        authenticator.change_pin(user.id, old_pin, new_pin)
        console.print("[green bold]PIN changed successfully![/green bold]")
    except PinVaultError as e:
        console.print(f"[red]Could not change PIN: {e}[/red]")


def _remove_pin(authenticator: PinAuthenticator, user: UserContact) -> None:
    console.print()
    console.print("[bold]Remove PIN[/bold]", style="cyan")

    pin = questionary.password("Current PIN:").ask()
    if not pin:
        console.print("[yellow]Operation cancelled.[/yellow]")
        return

    try:
        authenticator.remove_pin(user.id, pin)
        console.print("[green bold]PIN removed.[/green bold]")
    except PinVaultError as e:
        console.print(f"[red]Could not remove PIN: {e}[/red]")


def _show_status(authenticator: PinAuthenticator, user: UserContact) -> None:
    status = authenticator.get_security_status(user.id)

    table = Table(title=f"Security Status: {user.id}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("PIN set up", "yes" if status.pin_setup else "no")
    table.add_row("Failed attempts", f"{status.failed_attempts}/{authenticator.max_attempts}")
    table.add_row("Locked out", "yes" if status.is_locked_out else "no")
    if status.is_locked_out:
        table.add_row("Lockout remaining", format_remaining(status.lockout_remaining_time_ms))

    console.print()
    console.print(table)
    console.print()


def _emergency_reset(authenticator: PinAuthenticator, user: UserContact) -> None:
    console.print()
    console.print("[bold red]Emergency Reset[/bold red]")
    console.print("[yellow]This deletes the PIN and attempt history without any PIN check.[/yellow]")

    confirmed = questionary.confirm(f"Delete all PIN data for '{user.id}'?", default=False).ask()
    if not confirmed:
        console.print("[yellow]Operation cancelled.[/yellow]")
        return

    try:
        authenticator.emergency_reset(user.id)
        console.print("[green bold]PIN data deleted.[/green bold]")
    except PinVaultError as e:
        console.print(f"[red]Emergency reset failed: {e}[/red]")
