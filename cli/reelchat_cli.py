"""Main CLI loop for interactive chat."""

import logging
import sys
from typing import TextIO

import httpx

from .client import APIError, ChatAPIClient
from .config import CLIConfig
from .formatter import ResponseFormatter

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("exit", "quit", "q")
NEW_CHAT_COMMAND = "/new"


class ReelchatCLI:
    """Interactive CLI for the reelchat API."""

    def __init__(
        self,
        config: CLIConfig,
        input_stream: TextIO = sys.stdin,
        output_stream: TextIO = sys.stdout,
        show_overview: bool = False,
        client: ChatAPIClient | None = None,
    ):
        self.config = config
        self.input_stream = input_stream
        self.output_stream = output_stream
        self.client = client or ChatAPIClient(config)
        self.formatter = ResponseFormatter(output_stream, show_overview)
        self.chat_id: str | None = None

    async def run(self) -> None:
        """Run the interactive CLI loop."""
        try:
            self._print_welcome()
            while True:
                try:
                    query = self._get_user_input()
                except EOFError:
                    self._print("\nGoodbye!\n")
                    break
                if not query.strip():
                    continue
                command = query.strip().lower()
                if command in EXIT_COMMANDS:
                    self._print("Goodbye!\n")
                    break
                if command == NEW_CHAT_COMMAND:
                    self.chat_id = None
                    self._print("Started over.\n\n")
                    continue
                await self._process_query(query)
        finally:
            await self.client.close()

    async def _process_query(self, query: str) -> None:
        try:
            if self.chat_id is None:
                self.chat_id = await self.client.start()
                logger.debug("Chat id: %s", self.chat_id)
            response = await self.client.ask(self.chat_id, query)
        except (APIError, httpx.HTTPError) as exc:
            logger.debug("Request failed", exc_info=True)
            self.formatter.error(str(exc))
            return
        self.formatter.render(response)
        self.output_stream.flush()

    def _get_user_input(self) -> str:
        self._print("> ")
        line = self.input_stream.readline()
        if not line:
            raise EOFError
        return line.rstrip("\n\r")

    def _print_welcome(self) -> None:
        self._print("reelchat - ask me about movies\n")
        self._print(f"Connected to: {self.config.base_url}\n")
        self._print(
            f"Type a message and press Enter. '{NEW_CHAT_COMMAND}' starts a new "
            "chat, 'exit' quits.\n\n"
        )

    def _print(self, text: str) -> None:
        self.output_stream.write(text)
        self.output_stream.flush()


async def main(
    host: str = "localhost",
    port: int = 8080,
    debug: bool = False,
    show_overview: bool = False,
) -> None:
    """Main entry point for the CLI."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    config = CLIConfig(host=host, port=port)
    cli = ReelchatCLI(config, show_overview=show_overview)
    await cli.run()
