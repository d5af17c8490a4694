"""File watching: patterns, watchfiles watchers, the registry and settings."""

from .watch_pattern import WatchPattern, glob_match, expand_braces
from .file_watcher import WatchfilesWatcher, WatchfilesEventSource
from .registry import WatcherRegistry, WatcherSubscription
from .config_loader import YamlSettings, load_settings, write_example_settings

__all__ = [
    "WatchPattern",
    "glob_match",
    "expand_braces",
    "WatchfilesWatcher",
    "WatchfilesEventSource",
    "WatcherRegistry",
    "WatcherSubscription",
    # Settings
    "YamlSettings",
    "load_settings",
    "write_example_settings",
]
