# run_server.py
import argparse
import signal

from fileshare_common.config import ServerConfig
from fileshare_common.logging_config import setup_logging
from fileshare_server.server import Server


def main(argv=None):
    config = ServerConfig.from_env()
    p = argparse.ArgumentParser(prog="fileshare-server", description="File sharing server.")
    p.add_argument("--host", default=config.host)
    p.add_argument("--port", type=int, default=config.port)
    p.add_argument("--shared-root", default=config.shared_root)
    p.add_argument("--users-file", default=config.users_file)
    p.add_argument("--max-upload-size", type=int, default=config.max_upload_size)
    p.add_argument("--atomic-uploads", action="store_true", default=config.atomic_uploads,
                   help="write uploads to a .part file and rename on success")
    p.add_argument("--log-level", default=None)
    args = p.parse_args(argv)

    config.host = args.host
    config.port = args.port
    config.shared_root = args.shared_root
    config.users_file = args.users_file
    config.max_upload_size = args.max_upload_size
    config.atomic_uploads = args.atomic_uploads

    logger = setup_logging("server", args.log_level)
    server = Server(config)

    def handle_signal(signum, frame):
        logger.info("Received signal %s, shutting down.", signum)
        server.shutdown()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        server.start()
    except OSError as e:
        logger.error("Could not start server: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
