"""Account commands. One-shot, nothing to wait for."""

from __future__ import annotations

from loguru import logger

from tdx_command.constants import Command
from tdx_command.dispatcher import CommandDispatcher
from tdx_command.models import CommandAck


class AccountAPI:
    def __init__(self, dispatcher: CommandDispatcher) -> None:
        self._dispatcher = dispatcher
        self._log = logger.bind(component="accounts")

    async def create_email_account(
        self, email_address: str, verified: bool, approved: bool
    ) -> CommandAck:
        """Create a local, email-based user account."""
        self._log.info("Creating email account")
        payload = {
            "username": email_address,
            "accountType": "user",  # user account, not a share key
            "authService": "local",  # email login, not oauth
            "verified": verified,
            "approved": approved,
        }
        return await self._dispatcher.dispatch(Command.ACCOUNT_CREATE, payload)
