from .models import Document, LinkKind, MatchRule, PageContext, RawTermEntry
from .registry import TermRegistryBuilder
from .scanner import ContentScanner
from .engine import SubstitutionEngine, effective_rules
from .cache import FileCacheStore, InMemoryCacheStore, RegistryCache, RuntimeMemo
from .store import DocumentDirectory, YamlTermStore
from .processor import GlossaryProcessor
