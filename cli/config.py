"""Configuration for the CLI tool."""

from pydantic import BaseModel, Field


class CLIConfig(BaseModel):
    """CLI configuration settings."""

    host: str = Field(default="localhost", description="Server host")
    port: int = Field(default=8080, description="Server port")
    timeout: float = Field(
        default=300.0, description="Request timeout in seconds (turns can be slow)"
    )

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def start_url(self) -> str:
        return f"{self.base_url}/chat/start"

    def ask_url(self, chat_id: str) -> str:
        return f"{self.base_url}/chat/{chat_id}/ask"
