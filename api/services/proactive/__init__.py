"""
Proactive Notification Decision Engine

Decides which proactive notifications a user should see on each poll, in
what order, under daily suppression, escalation and quota rules.

Components (leaf-first):
- context: ContextSnapshotBuilder: immutable per-evaluation read model
- patterns: recurring pattern miner (explicit habits, implicit candidates)
- generators: ordered generator bank producing candidates
- filters: dismissed / expired / already-shown filter
- escalation: dismiss-streak based soften/suppress
- quota: priority sort + daily quota
- lifecycle: per-user KV lifecycle store
- engine: ProactiveEngine.evaluate() + feedback
"""

from .config import EngineConfig
from .engine import Evaluation, ProactiveEngine
from .lifecycle import InMemoryKVStore, KeyValueStore, NotificationLifecycle, SupabaseKVStore
from .models import Notification, NotificationKind

__all__ = [
    "EngineConfig",
    "Evaluation",
    "ProactiveEngine",
    "InMemoryKVStore",
    "KeyValueStore",
    "NotificationLifecycle",
    "SupabaseKVStore",
    "Notification",
    "NotificationKind",
]
