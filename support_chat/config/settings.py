from typing import List, Optional

from pydantic_settings import BaseSettings


class BaseAppSettings(BaseSettings):
    """Base settings class with common configuration."""

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


class APISettings(BaseAppSettings):
    """API-related settings."""

    API_VERSION: str = "1.0.0"
    API_TITLE: str = "Customer Support Chat API"
    API_DESCRIPTION: str = """
    Customer-support chat backend: FAQ management, CRM lookups, popular searches
    and a WebSocket chat channel answered by an Azure OpenAI deployment.
    """

    # CORS settings
    CORS_ALLOW_ORIGINS: List[str] = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: List[str] = ["*"]
    CORS_ALLOW_HEADERS: List[str] = ["*"]


class AzureOpenAISettings(BaseAppSettings):
    """Azure OpenAI deployment settings."""

    AZURE_OPENAI_API_KEY: Optional[str] = None
    AZURE_OPENAI_ENDPOINT: Optional[str] = None
    AZURE_OPENAI_DEPLOYMENT: Optional[str] = None
    AZURE_OPENAI_API_VERSION: str = "2024-02-15-preview"
    AZURE_OPENAI_CONNECT_TIMEOUT_SECONDS: float = 10.0
    # Upper bound on a single completion call, enforced around the worker thread
    AZURE_OPENAI_TIMEOUT_SECONDS: float = 60.0


class CompletionSettings(BaseAppSettings):
    """Model parameters for the completion tasks."""

    COMPLETION_TEMPERATURE: float = 0.7
    COMPLETION_TOP_P: float = 0.95
    COMPLETION_FREQUENCY_PENALTY: float = 0.0
    COMPLETION_PRESENCE_PENALTY: float = 0.0
    COMPLETION_MAX_TOKENS: int = 800

    FAQ_TEMPERATURE: float = 0.1
    FAQ_MAX_TOKENS: int = 300
    FAQ_CONFIDENCE_THRESHOLD: float = 0.8

    SUMMARY_TEMPERATURE: float = 0.3
    SUMMARY_MAX_TOKENS: int = 200

    SUGGESTIONS_TEMPERATURE: float = 0.8
    SUGGESTIONS_COUNT: int = 3


class ConversationSettings(BaseAppSettings):
    """Conversation management settings."""

    DEFAULT_LANGUAGE: str = "en"
    WELCOME_MESSAGE: str = (
        "Hello! I'm your AI assistant, ready to help you with any questions or "
        "concerns you may have. How can I assist you today?"
    )
    REPLY_SYSTEM_PROMPT: str = """You are a helpful customer support agent.
Language: {language}
Context: {context}

Be concise, professional, and friendly. If you cannot help, suggest human review.
Generate 2-3 relevant follow-up suggestions for the user."""


class StoreSettings(BaseAppSettings):
    """In-memory store settings."""

    POPULAR_SEARCH_WINDOW_HOURS: int = 24
    POPULAR_SEARCH_DEFAULT_LIMIT: int = 5
    STORE_SEED_DEMO_DATA: bool = True


class LoggingSettings(BaseAppSettings):
    """Logging settings."""

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseAppSettings):
    """Main settings class that combines all specialized settings."""

    api: APISettings = APISettings()
    azure: AzureOpenAISettings = AzureOpenAISettings()
    completion: CompletionSettings = CompletionSettings()
    conversation: ConversationSettings = ConversationSettings()
    store: StoreSettings = StoreSettings()
    logging: LoggingSettings = LoggingSettings()


# Create global settings instance
settings = Settings()
