from support_chat.repositories.memory import MemoryStorage
from support_chat.repositories.seed import seed_demo_data

__all__ = [
    'MemoryStorage',
    'seed_demo_data'
]
