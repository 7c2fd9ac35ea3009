"""
MediaVault REST API
"""

import argparse
import asyncio
import inspect
import logging
from pathlib import Path

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from mediavault.config import ENV_PREFIX, get_settings
from mediavault.connections import mediavault_connections, s3_enabled
from mediavault.listing import parse_storage_items
from mediavault.objectstorage.s3bucket import S3ObjectStore, get_bucket
from mediavault.paths import build_base_path


async def _check_s3_connection():
    async with mediavault_connections():
        if s3_enabled():
            logging.info(f"Connected to object storage at {get_settings().s3_host}, using bucket {await get_bucket()}")


def run(args):
    logging.info(f"Starting server at port {args.port}, debug={not args.nodebug}")
    if not s3_enabled():
        logging.warning("Warning: no object storage is configured, every request for media will fail")
    logging.info(
        "To change server config, create an .env file and/or set environment parameters,\n"
        f"{' ' * 26}see mediavault/config.py for more information.\n"
        f"{' ' * 26}You can run `python -m mediavault config` to show the current settings\n"
    )

    asyncio.run(_check_s3_connection())
    log_config = "logging.yml" if Path("logging.yml").exists() else LOGGING_CONFIG
    uvicorn.run("mediavault.api:app", host="0.0.0.0", reload=not args.nodebug, port=int(args.port), log_config=log_config)


def show_config(args):
    settings = get_settings()
    print(f"# Reading settings from environment and {settings.env_file}")
    for fieldname, fieldinfo in type(settings).model_fields.items():
        value = getattr(settings, fieldname)
        if doc := fieldinfo.description:
            print(f"# {doc}")
        if value is None:
            print(f"#{ENV_PREFIX}{fieldname}=\n")
        elif "secret" in fieldname and not args.show_secrets:
            print(f"{ENV_PREFIX}{fieldname}=********\n")
        else:
            print(f"{ENV_PREFIX}{fieldname}={value}\n")


async def list_folder(args):
    async with mediavault_connections():
        base_path = build_base_path(args.scope, args.path, media_prefix=get_settings().media_prefix)
        result = await S3ObjectStore().list(base_path, recursive=False)
        for item in parse_storage_items(result["items"], base_path, result["excluded_subpaths"]):
            size = "" if item.size is None else item.size
            print(f"{item.type:6} {size:>10} {item.name}")


def main():
    parser = argparse.ArgumentParser(description=__doc__, prog="python -m mediavault")

    subparsers = parser.add_subparsers(dest="action", title="action", help="Action to perform:", required=True)
    p = subparsers.add_parser("run", help="Run the backend API in development mode")
    p.add_argument(
        "--no-debug",
        action="store_true",
        dest="nodebug",
        help="Disable debug mode (useful for testing downstream clients)",
    )
    p.add_argument("-p", "--port", help="Port", default=5000)
    p.set_defaults(func=run)

    p = subparsers.add_parser("config", help="Show the current settings in .env format")
    p.add_argument("--show-secrets", action="store_true", help="Also print the values of secret settings")
    p.set_defaults(func=show_config)

    p = subparsers.add_parser("ls", help="List a folder of a scope in the configured bucket")
    p.add_argument("scope", help="The scope (user namespace) to list")
    p.add_argument("path", nargs="?", default="", help="Folder path relative to the scope root")
    p.set_defaults(func=list_folder)

    args = parser.parse_args()

    logging.basicConfig(format="[%(levelname)-7s:%(name)-15s] %(message)s", level=get_settings().log_level.upper())
    for name in ("botocore", "aiobotocore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    if inspect.iscoroutinefunction(args.func):
        asyncio.run(args.func(args))
    else:
        args.func(args)


if __name__ == "__main__":
    main()
