"""
websession - Session management for server-rendered web applications

Keeps one key/value session per client, named after a fingerprint of the
client's IP address, user agent and an optional caller-supplied id.

Modules:
- session: Session scope and manager
- storage: File and Redis session stores
- config: Server configuration
- api: HTTP request/response models
"""

__version__ = "1.0.0"
