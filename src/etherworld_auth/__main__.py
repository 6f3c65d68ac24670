import uvicorn

from etherworld_auth.app.config import get_settings


def main():
    settings = get_settings()
    uvicorn.run(
        "etherworld_auth.app.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=False,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
