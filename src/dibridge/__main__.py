"""Bridge entrypoint. Loads config, starts the Discord adapter and the identity mapper."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from dibridge import __version__
from dibridge.adapters.discord import DiscordAdapter
from dibridge.config import Config, cfg, load_config_with_env
from dibridge.core.errors import BridgeConfigurationError
from dibridge.events import NormalizedMessage, UserFact
from dibridge.identity import IdentityMapper, LocalIdentityMapper

# Third-party libraries to intercept and route through loguru
_INTERCEPTED_LIBRARIES = ["discord", "discord.client", "discord.gateway", "discord.http"]


class InterceptHandler(logging.Handler):
    """Route stdlib logging records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        msg = record.getMessage().replace("{", "{{").replace("}", "}}")
        logger.patch(
            lambda r: r.update(
                name=record.name,
                function=record.funcName,
                line=record.lineno,
            ),
        ).opt(exception=record.exc_info).log(level, msg)


def _intercept_logging(level: str) -> None:
    """Route discord.py's stdlib logging to loguru."""
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for lib in _INTERCEPTED_LIBRARIES:
        lib_logger = logging.getLogger(lib)
        lib_logger.handlers = [InterceptHandler()]
        lib_logger.propagate = False
        lib_logger.setLevel(level)


def _safe_message_filter(record: Any) -> bool:
    """Escape braces/angles in log messages; Discord markup is full of <...>."""
    if isinstance(record.get("message"), str):
        msg = record["message"]
        msg = msg.replace("{", "{{").replace("}", "}}").replace("<", "\\<")
        record["message"] = msg
    return True


def setup_logging(verbose: bool = False) -> str:
    """Configure loguru and return the chosen level.

    Level: verbose=True or LOG_LEVEL=DEBUG enables DEBUG; otherwise INFO.
    """
    level = "INFO"
    if verbose:
        level = "DEBUG"
    else:
        env_level = (os.environ.get("LOG_LEVEL") or "").upper()
        if env_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
            level = env_level

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}",
        filter=_safe_message_filter,
    )
    _intercept_logging(level)
    return level


def reload_config(config_path: Path) -> Config:
    """Load config from path and update global cfg."""
    data = load_config_with_env(config_path)
    cfg.reload(data)
    return cfg


def format_for_irc(msg: NormalizedMessage, identity: IdentityMapper) -> str:
    """How the IRC side would render a message: ``<nick> text`` or ``* nick text``."""
    nick = identity.nick_for(msg.author.id) or identity.generate_nick(
        UserFact(id=msg.author.id, username=msg.author.username, discriminator=msg.author.discriminator)
    )
    line = f"* {nick} {msg.content}" if msg.is_action else f"<{nick}> {msg.content}"
    if msg.pm_target:
        line = f"[PM to {msg.pm_target}] {line}"
    return line


async def _log_messages(messages: asyncio.Queue[NormalizedMessage], identity: IdentityMapper) -> None:
    """Stand-in IRC consumer: logs every message as IRC would show it."""
    while True:
        try:
            msg = await messages.get()
            logger.info("-> IRC {}", format_for_irc(msg, identity))
        except asyncio.CancelledError:
            break
        except Exception as exc:
            logger.exception("Message sink failed: {}", exc)


async def _run(config: Config) -> None:
    """Start the adapter, identity mapper and message sink; run until cancelled."""
    messages: asyncio.Queue[NormalizedMessage] = asyncio.Queue()
    facts: asyncio.Queue[UserFact] = asyncio.Queue()
    removals: asyncio.Queue[str] = asyncio.Queue()

    mapper = LocalIdentityMapper(nick_suffix=config.nick_suffix, max_length=config.nick_max_length)
    adapter = DiscordAdapter(config, mapper, messages, facts, removals)

    logger.info("Starting {} adapter", adapter.name)
    await adapter.start()
    tasks = [
        asyncio.create_task(mapper.run(facts, removals)),
        asyncio.create_task(_log_messages(messages, mapper)),
    ]
    try:
        await asyncio.gather(*tasks)
    except asyncio.CancelledError:
        logger.info("Bridge shutting down")
    finally:
        for task in tasks:
            task.cancel()
        logger.info("Stopping {} adapter", adapter.name)
        await adapter.stop()


def main() -> None:
    """Main entrypoint."""
    parser = argparse.ArgumentParser(description="dibridge: Discord side of a Discord-IRC bridge")
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    args = parser.parse_args()

    setup_logging(args.verbose)

    if not args.config.exists():
        logger.error("Config file not found: {}", args.config)
        sys.exit(1)

    try:
        config = reload_config(args.config)
    except BridgeConfigurationError as exc:
        logger.error("Invalid config {}: {} ({})", args.config, exc, exc.code)
        sys.exit(1)
    logger.info("Config loaded from {}", args.config)

    try:
        asyncio.run(_run(config))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
