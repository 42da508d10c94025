"""
Run the API with uvicorn: ``python -m linkstore``.

The app is built by ``create_app`` at server start, so importing
``linkstore.app`` has no side effects. Equivalent to
``uvicorn --factory linkstore.app:create_app``.
"""

from __future__ import annotations

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "linkstore.app:create_app",
        factory=True,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "3000")),
    )


if __name__ == "__main__":
    main()
