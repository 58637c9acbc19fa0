# Persistence store clients
from clients.valkey_client import ValkeyClient
from clients.memory_store import MemoryStore
