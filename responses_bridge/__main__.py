"""Run the bridge with uvicorn: ``python -m responses_bridge``."""

import uvicorn

from .config_loader import load_config, resolve_server_bind
from .main import create_app


def main() -> None:
    config = load_config()
    host, port = resolve_server_bind(config)
    uvicorn.run(create_app(config), host=host, port=port)


if __name__ == "__main__":
    main()
