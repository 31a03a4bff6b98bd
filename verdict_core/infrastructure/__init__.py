from .openai_client import OpenAIClientSingleton, get_openai_client
from .postgres import get_db_connection

__all__ = ["OpenAIClientSingleton", "get_db_connection", "get_openai_client"]
