from . import event, registration, user  # noqa: F401
