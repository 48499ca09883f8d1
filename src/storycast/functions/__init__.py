"""Per-route ASGI apps for function runtimes; each module exposes ``app``."""
