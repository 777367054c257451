"""Entry point for the relay service: ``python -m ogdrive.relay``."""

import os

import uvicorn
from dotenv import load_dotenv

from ogdrive.relay.app import RelayConfig, create_relay_app
from ogdrive.utils.logging import configure_logging


def main() -> None:
    load_dotenv()
    configure_logging()

    extra_hosts = tuple(
        host.strip().lower()
        for host in os.environ.get("OGDRIVE_RELAY_EXTRA_HOSTS", "").split(",")
        if host.strip()
    )
    config = RelayConfig()
    if extra_hosts:
        config = config.model_copy(update={"allowed_hosts": config.allowed_hosts + extra_hosts})

    uvicorn.run(
        create_relay_app(config),
        host=os.environ.get("OGDRIVE_RELAY_HOST", "127.0.0.1"),
        port=int(os.environ.get("OGDRIVE_RELAY_PORT", "8000")),
    )


if __name__ == "__main__":
    main()
