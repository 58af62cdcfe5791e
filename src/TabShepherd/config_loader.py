"""
Configuration loader for TabShepherd.
Loads engine settings and optional seed groups from a YAML file.

Expected YAML structure:
tabshepherd:
  settings:
    match_policy: priority_order          # priority_order or title_priority, default: priority_order
    create_window_on_unbound_match: true  # default: true
    internal_url_prefixes:                # default: chrome://, chrome-extension://
      - "chrome://"
      - "chrome-extension://"
    storage_dir: "~/.local/share/tabshepherd"   # omit for in-memory storage
    log_level: INFO
  groups:
    - name: "Development"
      patterns: ["localhost", "127.0.0.1"]
      mode: simple                        # optional: simple, regex
  catch_all_window_id: 1234               # optional
"""
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

import yaml

from .config_store import parse_groups
from .errors import ConfigValidationError
from .group_resolver import MatchPolicy
from .models import Config

DEFAULT_INTERNAL_URL_PREFIXES = ('chrome://', 'chrome-extension://')

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


@dataclass
class EngineSettings:
    """
    Settings for the routing engine.

    Attributes:
        match_policy: Group resolution strategy used for per-tab routing
        create_window_on_unbound_match: Open a new window when a matched group has none
        internal_url_prefixes: URL prefixes never routed
        storage_dir: Directory for persisted state, None for in-memory
        log_level: Root logging level name
    """
    match_policy: MatchPolicy = MatchPolicy.PRIORITY_ORDER
    create_window_on_unbound_match: bool = True
    internal_url_prefixes: List[str] = field(default_factory=lambda: list(DEFAULT_INTERNAL_URL_PREFIXES))
    storage_dir: Optional[str] = None
    log_level: str = 'INFO'

    def is_internal_url(self, url: Optional[str]) -> bool:
        """True for empty URLs and browser-internal pages."""
        if not url:
            return True
        return any(url.startswith(prefix) for prefix in self.internal_url_prefixes)


class ConfigLoader:
    """Load and validate TabShepherd configuration from a YAML file."""

    def __init__(self, config_path):
        """
        Initialize the configuration loader.

        :param config_path: Path to the YAML configuration file
        """
        self.config_path = config_path
        self.config = None
        self.settings = EngineSettings()
        self.seed_config: Optional[Config] = None
        self.catch_all_window_id: Optional[int] = None
        self.logger = logging.getLogger(__name__)

    def load(self):
        """
        Load and parse the YAML configuration file.

        :raises ConfigValidationError: If configuration is invalid
        :raises FileNotFoundError: If config file doesn't exist
        """
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            try:
                self.config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigValidationError(f"Configuration file is not valid YAML: {e}")

        if not self.config:
            raise ConfigValidationError("Configuration file is empty")

        if not isinstance(self.config, dict) or 'tabshepherd' not in self.config:
            raise ConfigValidationError("Configuration must contain 'tabshepherd' root element")

        self.config = self.config['tabshepherd'] or {}
        if not isinstance(self.config, dict):
            raise ConfigValidationError("'tabshepherd' must be a dictionary")

        self._validate_config()
        return self.settings

    def _validate_config(self):
        """
        Validate the configuration structure and content.

        :raises ConfigValidationError: If validation fails
        """
        if 'settings' in self.config:
            self._validate_settings()

        self._validate_catch_all()

        if 'groups' in self.config:
            self._validate_groups()
        elif self.catch_all_window_id is not None:
            self.seed_config = Config(enabled=True, groups=[], catch_all_window_id=self.catch_all_window_id)

    def _validate_settings(self):
        """Validate settings section."""
        settings = self.config['settings']

        if not isinstance(settings, dict):
            raise ConfigValidationError("'settings' must be a dictionary")

        if 'match_policy' in settings:
            policy = settings['match_policy']
            try:
                self.settings.match_policy = MatchPolicy(policy)
            except ValueError:
                valid = ', '.join(p.value for p in MatchPolicy)
                raise ConfigValidationError(f"invalid match_policy '{policy}'. Valid values: {valid}")

        if 'create_window_on_unbound_match' in settings:
            create = settings['create_window_on_unbound_match']
            if not isinstance(create, bool):
                raise ConfigValidationError("create_window_on_unbound_match must be true or false")
            self.settings.create_window_on_unbound_match = create

        if 'internal_url_prefixes' in settings:
            prefixes = settings['internal_url_prefixes']
            if not isinstance(prefixes, list) or not all(isinstance(p, str) and p for p in prefixes):
                raise ConfigValidationError("internal_url_prefixes must be a list of non-empty strings")
            self.settings.internal_url_prefixes = list(prefixes)

        if 'storage_dir' in settings:
            storage_dir = settings['storage_dir']
            if storage_dir is not None:
                if not isinstance(storage_dir, str) or not storage_dir.strip():
                    raise ConfigValidationError("storage_dir must be a non-empty string")
                storage_dir = os.path.expanduser(os.path.expandvars(storage_dir.strip()))
                # Relative paths are relative to the config file directory
                if not os.path.isabs(storage_dir):
                    config_dir = os.path.dirname(os.path.abspath(self.config_path))
                    storage_dir = os.path.abspath(os.path.join(config_dir, storage_dir))
            self.settings.storage_dir = storage_dir

        if 'log_level' in settings:
            level = settings['log_level']
            if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
                raise ConfigValidationError(
                    f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}"
                )
            self.settings.log_level = level.upper()

    def _validate_catch_all(self):
        catch_all = self.config.get('catch_all_window_id')
        if catch_all is not None and (isinstance(catch_all, bool) or not isinstance(catch_all, int)):
            raise ConfigValidationError("catch_all_window_id must be an integer window id")
        self.catch_all_window_id = catch_all

    def _validate_groups(self):
        """Validate seed groups section."""
        groups = parse_groups(self.config['groups'])
        self.seed_config = Config(enabled=True, groups=groups, catch_all_window_id=self.catch_all_window_id)
        self.logger.info(f"Loaded {len(groups)} seed groups")
