from __future__ import annotations

import uvicorn

from lesson_booking.config import Settings


def main() -> None:
    settings = Settings()
    uvicorn.run(
        "lesson_booking.asgi:create_asgi_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=False,
    )


if __name__ == "__main__":
    main()
