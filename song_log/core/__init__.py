"""
Core modules (text cleanup, metadata parsing, resolver, identity, log store).

Avoid importing the HTTP stack at package import time; import submodules directly:
- `song_log.core.resolver`
- `song_log.core.identity`
- `song_log.core.store`
"""

__all__ = []
