"""Stub backend entrypoint. Starts uvicorn with the port from settings (TRADEJOURNAL_STUB_BACKEND_PORT)."""
import uvicorn

from tradejournal.config.settings import get_settings
from tradejournal.stub_backend import create_app


def main() -> None:
    port = get_settings().stub_backend_port
    uvicorn.run(create_app(), host="127.0.0.1", port=port)


if __name__ == "__main__":
    main()
