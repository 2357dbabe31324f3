"""
htmlgloss Central Configuration
Contains markup, cache and processing parameters
"""

from dataclasses import dataclass, field
from typing import List, Optional
import os

DEFAULT_BLOCKED_TAGS = [
    'a', 'script', 'style', 'code', 'pre', 'textarea', 'acronym',
    'abbr', 'option', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
]

# Tree builders that parse a fragment without adding document wrappers
FRAGMENT_PARSERS = ('html.parser',)


@dataclass
class MarkupConfig:
    """Configuration for generated markup and protected elements"""

    # CSS class set on generated <a> and <abbr> elements
    css_class: str = "glossary"

    # Elements whose content is never rewritten
    blocked_tags: List[str] = field(default_factory=lambda: list(DEFAULT_BLOCKED_TAGS))

    def __post_init__(self):
        """Normalize tag names"""
        self.blocked_tags = [tag.strip().lower() for tag in self.blocked_tags if tag.strip()]


@dataclass
class CacheConfig:
    """Configuration for the shared registry cache"""

    # "memory" or "file"
    backend: str = "memory"
    cache_dir: str = "./cache"

    # Seconds, None keeps entries until cleared
    ttl: Optional[int] = None
    tags: List[str] = field(default_factory=lambda: ["glossary"])

    def __post_init__(self):
        if self.backend not in ("memory", "file"):
            raise ValueError(f"Unknown cache backend: {self.backend}")


@dataclass
class ProcessingConfig:
    """Configuration for content processing"""

    # Replacements per term and document, negative means unlimited
    default_limit: int = -1

    # BeautifulSoup tree builder, must leave fragments unwrapped
    parser: str = "html.parser"

    def __post_init__(self):
        if self.parser not in FRAGMENT_PARSERS:
            raise ValueError(
                f"Unsupported parser: {self.parser} (lxml and html5lib wrap fragments in <html><body>)"
            )


@dataclass
class HtmlGlossConfig:
    """Main configuration class combining all settings"""

    markup: MarkupConfig
    cache: CacheConfig
    processing: ProcessingConfig

    # Logging
    log_level: str = "INFO"

    def __init__(self,
                 markup: Optional[MarkupConfig] = None,
                 cache: Optional[CacheConfig] = None,
                 processing: Optional[ProcessingConfig] = None):
        """Initialize with optional custom configurations"""
        self.markup = markup or MarkupConfig()
        self.cache = cache or CacheConfig()
        self.processing = processing or ProcessingConfig()
        self.log_level = "INFO"

        # Override with environment variables if present
        self._load_env_overrides()

    def _load_env_overrides(self):
        """Load configuration overrides from environment variables"""
        if os.getenv("HTMLGLOSS_CSS_CLASS"):
            self.markup.css_class = os.getenv("HTMLGLOSS_CSS_CLASS")

        if os.getenv("HTMLGLOSS_LIMIT"):
            try:
                self.processing.default_limit = int(os.getenv("HTMLGLOSS_LIMIT"))
            except ValueError:
                raise ValueError(f"HTMLGLOSS_LIMIT must be an integer, got {os.getenv('HTMLGLOSS_LIMIT')!r}")

        # Cache overrides
        if os.getenv("HTMLGLOSS_CACHE_BACKEND"):
            self.cache.backend = os.getenv("HTMLGLOSS_CACHE_BACKEND")
            if self.cache.backend not in ("memory", "file"):
                raise ValueError(f"Unknown cache backend: {self.cache.backend}")

        if os.getenv("HTMLGLOSS_CACHE_DIR"):
            self.cache.cache_dir = os.getenv("HTMLGLOSS_CACHE_DIR")

        if os.getenv("HTMLGLOSS_CACHE_TTL"):
            try:
                self.cache.ttl = int(os.getenv("HTMLGLOSS_CACHE_TTL"))
            except ValueError:
                raise ValueError(f"HTMLGLOSS_CACHE_TTL must be an integer, got {os.getenv('HTMLGLOSS_CACHE_TTL')!r}")

        # Debug override
        if os.getenv("HTMLGLOSS_DEBUG", "").lower() in ("true", "1", "yes"):
            self.log_level = "DEBUG"

    @classmethod
    def load_from_file(cls, config_path: str) -> 'HtmlGlossConfig':
        """Load configuration from YAML file"""
        try:
            import yaml
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}

            markup = MarkupConfig(**config_data.get('markup', {}))
            cache = CacheConfig(**config_data.get('cache', {}))
            processing = ProcessingConfig(**config_data.get('processing', {}))

            config = cls(markup=markup, cache=cache, processing=processing)

            # Override other settings
            for key, value in config_data.items():
                if key not in ['markup', 'cache', 'processing'] and hasattr(config, key):
                    setattr(config, key, value)

            return config

        except ImportError:
            raise ImportError("PyYAML is required to load config from file. Install with: pip install pyyaml")
        except Exception as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")

    def save_to_file(self, config_path: str):
        """Save configuration to YAML file"""
        try:
            import yaml

            config_data = {
                'markup': {
                    'css_class': self.markup.css_class,
                    'blocked_tags': list(self.markup.blocked_tags),
                },
                'cache': {
                    'backend': self.cache.backend,
                    'cache_dir': self.cache.cache_dir,
                    'ttl': self.cache.ttl,
                    'tags': list(self.cache.tags),
                },
                'processing': {
                    'default_limit': self.processing.default_limit,
                    'parser': self.processing.parser,
                },
                'log_level': self.log_level,
            }

            with open(config_path, 'w') as f:
                yaml.dump(config_data, f, default_flow_style=False, indent=2)

        except ImportError:
            raise ImportError("PyYAML is required to save config to file. Install with: pip install pyyaml")


# Default global configuration instance
default_config = HtmlGlossConfig()
