"""Discord client entrypoint for the chat relay."""

from __future__ import annotations

import logging

import discord
from dotenv import load_dotenv

from chatrelay.config import RelayConfig
from chatrelay.dispatch import BackgroundSender
from chatrelay.game import GameClient, load_game_client_factory
from chatrelay.models import PlatformMessage, RelayNotice, RelayOutcome
from chatrelay.relay.coordinator import RelayCoordinator
from chatrelay.relay.formatting import display_name, format_for_game
from chatrelay.scheduler import TickLoop

logger = logging.getLogger("chatrelay.bot")

OUTCOME_REACTIONS: dict[RelayOutcome, str] = {
    RelayOutcome.ACKNOWLEDGED: "\N{THUMBS UP SIGN}",
    RelayOutcome.NOT_IN_SESSION: "\N{THUMBS DOWN SIGN}",
    RelayOutcome.ILLEGAL_MESSAGE: "\N{NO ENTRY SIGN}",
}


def to_platform_message(message: discord.Message) -> PlatformMessage:
    """Reduce a discord.py message to the fields the relay uses."""
    return PlatformMessage(
        author_id=message.author.id,
        author_name=message.author.name,
        channel_id=message.channel.id,
        message_id=message.id,
        content=message.content,
        is_bot=message.author.bot,
        discriminator=str(getattr(message.author, "discriminator", "0") or "0"),
    )


class RelayBot(discord.Client):
    """Discord side of the relay: feeds channel messages into the game and posts game chat back."""

    def __init__(self, config: RelayConfig, sender: BackgroundSender | None = None) -> None:
        self.config = config
        self.sender = sender or BackgroundSender()
        self.coordinator = RelayCoordinator(
            self.send_message,
            self.sender,
            flush_every_ticks=config.flush_every_ticks,
        )
        self.coordinator.bind_channel(config.discord_channel_id, config.game_identity)
        self.tick_loop = TickLoop(self.coordinator, config.tick_interval)
        self.game_client: GameClient | None = None

        intents = discord.Intents.default()
        intents.guilds = True
        intents.guild_messages = True
        intents.message_content = True
        intents.presences = False
        intents.members = False

        super().__init__(
            intents=intents,
            allowed_mentions=discord.AllowedMentions.none(),
        )

    async def setup_hook(self) -> None:
        """Build the game client and start ticking."""
        if self.config.game_client_factory:
            factory = load_game_client_factory(self.config.game_client_factory)
            self.game_client = factory(self.config, self.coordinator)
        else:
            logger.warning(
                "RELAY_GAME_CLIENT not set; relay requests will be answered as not in session"
            )
        self.tick_loop.start()

    async def close(self) -> None:
        """Stop ticking, cancel in-flight sends, and disconnect."""
        await self.tick_loop.stop()
        await self.sender.cancel_all()
        await super().close()

    async def on_ready(self) -> None:
        assert self.user is not None
        logger.info(
            "Logged in as %s (id=%s) | relaying channel %s <-> %s",
            self.user.name,
            self.user.id,
            self.config.discord_channel_id,
            self.config.game_identity,
        )

    async def on_message(self, message: discord.Message) -> None:
        """Relay messages from bound channels into the game session."""
        if message.author == self.user:
            return
        try:
            incoming = to_platform_message(message)
        except Exception:
            logger.warning("Skipping malformed Discord message", exc_info=True)
            return
        self.handle_platform_message(incoming)

    def handle_platform_message(self, incoming: PlatformMessage) -> RelayNotice | None:
        """Route one platform message to its bound game identity and react with the outcome."""
        if incoming.is_bot:
            return None
        if self.user is not None and incoming.author_id == self.user.id:
            return None
        identity = self.coordinator.identity_for_channel(incoming.channel_id)
        if identity is None:
            return None

        text = format_for_game(
            display_name(incoming.author_name, incoming.discriminator), incoming.content
        )
        notice = self.coordinator.send_to_game(identity, text, incoming.request_context)
        logger.debug("Relay request from %s: %s", incoming.author_name, notice.outcome.value)
        self.react_to(notice)
        return notice

    def react_to(self, notice: RelayNotice) -> None:
        """Acknowledge a relay request on its originating message, in the background."""
        ctx = notice.request_context
        if ctx is None:
            return
        emoji = OUTCOME_REACTIONS[notice.outcome]
        self.sender.submit(
            self.send_reaction(ctx.channel_id, ctx.message_id, emoji),
            f"reaction {emoji} on message {ctx.message_id}",
        )

    async def send_message(self, channel_id: int, content: str) -> None:
        channel = self.get_partial_messageable(channel_id)
        await channel.send(content, allowed_mentions=discord.AllowedMentions.none())

    async def send_reaction(self, channel_id: int, message_id: int, emoji: str) -> None:
        channel = self.get_partial_messageable(channel_id)
        await channel.get_partial_message(message_id).add_reaction(emoji)


def main() -> None:
    """Entry point: load env, build config, run the relay."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO)
    config = RelayConfig.from_env()
    bot = RelayBot(config)
    bot.run(config.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
