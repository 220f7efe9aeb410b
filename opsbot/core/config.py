"""
Configuration management for opsbot.

Supports environment variables and .env files for choosing local vs remote
adapters and for the LUIS / Azure credentials the remote adapters need.
"""

import os
import logging
from typing import Literal, Optional
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger("config")

# Load .env file if available
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)
    logger.debug("Loaded .env file from %s", env_path)
else:
    # Also try loading from current directory
    load_dotenv()


class Config:
    """
    Centralized configuration for opsbot.

    Reads from environment variables with sensible defaults. Remote adapters
    refuse to build without their credentials (ConfigurationError).
    """

    # NLU Configuration
    NLU_MODE: Literal["local", "remote"] = os.getenv("NLU_MODE", "local")
    LUIS_ENDPOINT: str = os.getenv("LUIS_ENDPOINT", "https://westus.api.cognitive.microsoft.com")
    LUIS_APP_ID: Optional[str] = os.getenv("LUIS_APP_ID", None)
    LUIS_API_KEY: Optional[str] = os.getenv("LUIS_API_KEY", None)
    NLU_TIMEOUT: float = float(os.getenv("NLU_TIMEOUT", "10.0"))
    INTENT_THRESHOLD: float = float(os.getenv("INTENT_THRESHOLD", "0.0"))

    # Conversations
    CONVERSATION_IDLE_TIMEOUT: float = float(os.getenv("CONVERSATION_IDLE_TIMEOUT", "3600"))  # seconds, 0 keeps them forever

    # Cloud Configuration
    CLOUD_MODE: Literal["local", "remote"] = os.getenv("CLOUD_MODE", "local")
    AZURE_MANAGEMENT_URL: str = os.getenv("AZURE_MANAGEMENT_URL", "https://management.azure.com")
    AZURE_ACCESS_TOKEN: Optional[str] = os.getenv("AZURE_ACCESS_TOKEN", None)
    CLOUD_TIMEOUT: float = float(os.getenv("CLOUD_TIMEOUT", "30.0"))

    # HTTP transport
    SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
    SERVER_PORT: int = int(os.getenv("SERVER_PORT", "8000"))

    @classmethod
    def get_nlu_adapter(cls):
        """
        Get the appropriate NLU adapter based on configuration.

        Returns:
            NLU adapter instance (RulesNLU or LuisAdapter)

        Raises:
            ConfigurationError: NLU_MODE=remote without LUIS_APP_ID/LUIS_API_KEY
        """
        if cls.NLU_MODE == "remote":
            from opsbot.core.nlu.luis_adapter import LuisAdapter
            logger.info("Using LUIS adapter: %s (app: %s, timeout: %.1fs)", cls.LUIS_ENDPOINT, cls.LUIS_APP_ID, cls.NLU_TIMEOUT)
            return LuisAdapter(
                endpoint=cls.LUIS_ENDPOINT,
                app_id=cls.LUIS_APP_ID,
                api_key=cls.LUIS_API_KEY,
                timeout=cls.NLU_TIMEOUT,
            )
        else:
            from opsbot.core.nlu.rules import RulesNLU
            logger.info("Using local rules NLU adapter")
            return RulesNLU()

    @classmethod
    def get_cloud_adapter(cls):
        """
        Get the appropriate cloud adapter based on configuration.

        Returns:
            Cloud adapter instance (InMemoryCloudAdapter or AzureAdapter)

        Raises:
            ConfigurationError: CLOUD_MODE=remote without AZURE_ACCESS_TOKEN
        """
        if cls.CLOUD_MODE == "remote":
            from opsbot.core.cloud.azure_adapter import AzureAdapter
            logger.info("Using Azure adapter: %s (timeout: %.1fs)", cls.AZURE_MANAGEMENT_URL, cls.CLOUD_TIMEOUT)
            return AzureAdapter(
                management_url=cls.AZURE_MANAGEMENT_URL,
                access_token=cls.AZURE_ACCESS_TOKEN,
                timeout=cls.CLOUD_TIMEOUT,
            )
        else:
            from opsbot.core.cloud.memory_adapter import InMemoryCloudAdapter
            logger.info("Using in-memory cloud adapter with demo data")
            return InMemoryCloudAdapter.demo()

    @classmethod
    def print_config(cls):
        """Print current configuration (useful for debugging)."""
        print("\nopsbot configuration:")
        print(f"  NLU Mode: {cls.NLU_MODE}")
        if cls.NLU_MODE == "remote":
            print(f"    Endpoint: {cls.LUIS_ENDPOINT}")
            print(f"    App: {cls.LUIS_APP_ID or '(not set)'}")
            print(f"    Key: {'set' if cls.LUIS_API_KEY else '(not set)'}")
            print(f"    Timeout: {cls.NLU_TIMEOUT}s")
        print(f"  Intent threshold: {cls.INTENT_THRESHOLD}")
        print(f"  Conversation idle timeout: {cls.CONVERSATION_IDLE_TIMEOUT}s")

        print(f"  Cloud Mode: {cls.CLOUD_MODE}")
        if cls.CLOUD_MODE == "remote":
            print(f"    Management URL: {cls.AZURE_MANAGEMENT_URL}")
            print(f"    Token: {'set' if cls.AZURE_ACCESS_TOKEN else '(not set)'}")
            print(f"    Timeout: {cls.CLOUD_TIMEOUT}s")
        print(f"  Server: {cls.SERVER_HOST}:{cls.SERVER_PORT}")
        print()
