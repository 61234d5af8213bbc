# run_client.py
import argparse
import getpass

from fileshare_client.client import Client
from fileshare_client.console import login, menu_loop
from fileshare_common.config import ClientConfig
from fileshare_common.logging_config import setup_logging


def main(argv=None):
    config = ClientConfig.from_env()
    p = argparse.ArgumentParser(prog="fileshare-client", description="Interactive file sharing client.")
    p.add_argument("--host", help=f"server address (default {config.host})")
    p.add_argument("--port", type=int, help=f"server port (default {config.port})")
    p.add_argument("--downloads-dir", default=config.downloads_dir)
    p.add_argument("--timeout", type=float, default=config.timeout)
    args = p.parse_args(argv)

    setup_logging("client", "WARNING")

    host = args.host or input(f"Server IP [{config.host}]: ").strip() or config.host
    if args.port:
        port = args.port
    else:
        port_in = input(f"Port [{config.port}]: ").strip()
        port = int(port_in) if port_in else config.port

    client = Client(host, port, downloads_dir=args.downloads_dir, timeout=args.timeout)
    connected, msg = client.connect()
    print(msg)
    if not connected:
        return 1
    if not login(client, password_fn=getpass.getpass):
        return 1

    menu_loop(client)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
