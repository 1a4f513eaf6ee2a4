"""Top-level package for the workforce demand analytics backend."""

# Lazy import so the CLI and tests can use the services without building the app

__all__ = ["create_app"]


def __getattr__(name):
    """Lazy import to keep package import cheap."""
    if name == "create_app":
        from workforce_demand.app.main import create_app as _create_app

        return _create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
