from fastapi.requests import HTTPConnection

from support_chat.core.interfaces.storage import IStorage
from support_chat.services.completion import CompletionService


def get_storage(connection: HTTPConnection) -> IStorage:
    return connection.app.state.storage


def get_completion_service(connection: HTTPConnection) -> CompletionService:
    return connection.app.state.completion_service
