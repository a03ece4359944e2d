import uvicorn

from .core.settings import get_settings

settings = get_settings()


def main() -> None:
    uvicorn.run(
        "eventdesk.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
