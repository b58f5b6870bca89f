from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    wit_token: str = ""
    wit_api_url: str = "https://api.wit.ai"
    wit_api_version: str = "20160330"

    fb_page_id: str = ""
    fb_page_token: str = ""
    fb_verify_token: Optional[str] = None
    fb_graph_url: str = "https://graph.facebook.com/v2.6/me/messages"

    port: int = 8445
    log_level: str = "INFO"
    log_format: str = "json"
    http_timeout_seconds: float = 30.0

    dispatch_turn_timeout_seconds: Optional[float] = 30.0
    dispatch_max_turns: Optional[int] = 5

    class Config:
        env_file = ".env"
        extra = "ignore"

    def missing_required(self) -> list[str]:
        """Names of required variables that are empty."""
        required = {
            "WIT_TOKEN": self.wit_token,
            "FB_PAGE_ID": self.fb_page_id,
            "FB_PAGE_TOKEN": self.fb_page_token,
        }
        return [name for name, value in required.items() if not value]


settings = Settings()
