from __future__ import annotations

import argparse
import os

import uvicorn

from dlmm_sponsor.core.config.settings import get_settings

_LOG_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Run the DLMM position sponsorship service.")
    parser.add_argument("--host", default=os.getenv("HOST", settings.host))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", str(settings.port))))
    parser.add_argument("--ssl-certfile", default=os.getenv("SSL_CERTFILE"))
    parser.add_argument("--ssl-keyfile", default=os.getenv("SSL_KEYFILE"))
    parser.add_argument("--log-level", type=str.lower, choices=_LOG_LEVELS, default=settings.log_level)
    return parser.parse_args(argv)


def main() -> None:
    args = _parse_args()
    if args.ssl_keyfile and not args.ssl_certfile:
        raise SystemExit("--ssl-keyfile requires --ssl-certfile.")

    uvicorn.run(
        "dlmm_sponsor.main:app",
        host=args.host,
        port=args.port,
        ssl_certfile=args.ssl_certfile,
        ssl_keyfile=args.ssl_keyfile,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
