"""Resource group access service package."""


def __getattr__(name):
    """Lazy import so `app.core` utilities do not pull in FastAPI."""
    if name == "create_app":
        from .main import create_app
        return create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
