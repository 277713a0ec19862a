"""
Discord Channel Driver for Kintai.

Listens for ``!start``, ``!suspend``, ``!resume`` and ``!end`` in channels
named ``<org>-kintai``. ``!start`` opens a thread named after today's date;
the other commands are issued inside that thread.
"""

from typing import Any, Awaitable, Callable, Dict, Optional

import discord

from kintai.logger import get_logger
from kintai.session.rows import today_key
from kintai.work import WorkService

logger = get_logger(__name__)

COMMAND_PREFIX = "!"
CHANNEL_NAME_SUFFIX = "-kintai"
# One week, in minutes
THREAD_AUTO_ARCHIVE_MINUTES = 1440 * 7


def validate_message(message: Any) -> bool:
    """Only prefixed messages from humans are commands."""
    return message.content.startswith(COMMAND_PREFIX) and not message.author.bot


def parse_command(content: str) -> str:
    """Return the first word after the prefix, e.g. ``"!end now"`` -> ``"end"``."""
    words = content[len(COMMAND_PREFIX) :].split()
    return words[0] if words else ""


def org_from_channel_name(name: str) -> str:
    return name.split(CHANNEL_NAME_SUFFIX)[0]


class KintaiDiscordClient(discord.Client):
    def __init__(self, kintai_channel: "DiscordChannel", *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.kintai_channel = kintai_channel

    async def on_ready(self):
        self.kintai_channel._connected = True
        logger.info(f"Discord logged in as {self.user}")

    async def on_message(self, message):
        # Ignore own messages
        if message.author == self.user:
            return
        await self.kintai_channel.handle_message(message)


class DiscordChannel:
    """
    Discord Driver using discord.py.
    """

    def __init__(self, config: Dict[str, Any], service: WorkService):
        self.name = "discord"
        self.token = config.get("token")
        self.service = service

        intents = discord.Intents.default()
        intents.guilds = True
        intents.guild_messages = True
        intents.message_content = True  # Required for reading message content

        self.client = KintaiDiscordClient(self, intents=intents)
        self._connected = False

        self.commands: Dict[str, Callable[[Any], Awaitable[None]]] = {
            "start": self.start_work,
            "suspend": self.suspend_work,
            "resume": self.resume_work,
            "end": self.end_work,
        }

    async def connect(self):
        """Start the Discord client."""
        if not self.token:
            logger.warning("No Discord token provided. Channel disabled.")
            return

        logger.info("Connecting to Discord...")
        await self.client.start(self.token)

    async def disconnect(self):
        """Stop the Discord client."""
        if self.client and self._connected:
            await self.client.close()
            self._connected = False
            logger.info("Discord disconnected.")

    async def handle_message(self, message: Any):
        """Dispatch a command message; failures are logged, never raised."""
        if not validate_message(message):
            return

        command = parse_command(message.content)
        handler = self.commands.get(command)
        if handler is None:
            logger.debug(f"Ignoring unknown command {command!r}")
            return

        logger.info(f"command `!{command}` triggered")
        try:
            await handler(message)
        except Exception as e:
            logger.exception(f"Error handling `!{command}`: {e}")

    async def start_work(self, message: Any):
        channel = message.channel
        if not isinstance(channel, discord.TextChannel):
            logger.debug("`!start` outside a text channel, ignored")
            return

        org = org_from_channel_name(channel.name)
        if org not in self.service.directory:
            logger.warning(f"No spreadsheet configured for organization {org!r}")
            return

        today = today_key(message.created_at)
        thread = await channel.create_thread(
            name=today,
            auto_archive_duration=THREAD_AUTO_ARCHIVE_MINUTES,
            type=discord.ChannelType.public_thread,
        )
        await thread.send(f"{message.author.mention} has started work!")

        await self.service.start(org, today, str(thread.id))

    async def suspend_work(self, message: Any):
        await self._thread_command(message, "suspended", self.service.suspend)

    async def resume_work(self, message: Any):
        await self._thread_command(message, "resumed", self.service.resume)

    async def end_work(self, message: Any):
        await self._thread_command(message, "ended", self.service.end)

    async def _thread_command(
        self,
        message: Any,
        verb: str,
        action: Callable[[str, str], Awaitable[Any]],
    ):
        """Announce and apply a command issued inside a day's thread."""
        thread = message.channel
        if not isinstance(thread, discord.Thread):
            logger.debug("Command outside a thread, ignored")
            return

        today = thread.name
        await thread.send(f"{message.author.mention} has {verb} work!")

        channel = self._parent_channel(thread)
        if channel is None:
            logger.warning(f"Thread {thread.id} has no text channel parent")
            return

        org = org_from_channel_name(channel.name)
        await action(org, today)

    @staticmethod
    def _parent_channel(thread: Any) -> Optional[Any]:
        parent = thread.parent
        if parent is None or not isinstance(parent, discord.TextChannel):
            return None
        return parent
