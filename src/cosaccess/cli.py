"""Command line access to buckets and objects, routed to each bucket's regional endpoint."""

from __future__ import annotations

import argparse
import json
import mimetypes
import sys
from pathlib import Path
from typing import Sequence

from cosaccess.config.access_config import get_access_config
from cosaccess.errors import CosAccessError, ServiceNotReadyError
from cosaccess.logging_config import configure_logging, get_logger
from cosaccess.service import CosAccess

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NOT_READY = 2


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cos-access",
        description="Work with buckets and objects on their regional endpoints.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL, then INFO.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    buckets = commands.add_parser("buckets", help="List buckets with their location constraints.")
    buckets.add_argument("--prefix", default=None, help="Bucket name prefix. Defaults to BUCKETNAME.")

    endpoint = commands.add_parser("endpoint", help="Print the endpoint a bucket resolves to.")
    endpoint.add_argument("bucket", nargs="?", default=None, help="Defaults to BUCKETNAME.")

    listing = commands.add_parser("list", help="List object keys in a bucket.")
    listing.add_argument("bucket", nargs="?", default=None, help="Defaults to BUCKETNAME.")
    listing.add_argument("--prefix", default="")

    get = commands.add_parser("get", help="Download an object.")
    get.add_argument("bucket", nargs="?", default=None, help="Defaults to BUCKETNAME.")
    get.add_argument("key")
    get.add_argument("--output", type=Path, default=None, help="Write to this file instead of stdout.")

    head = commands.add_parser("head", help="Show an object's headers and metadata.")
    head.add_argument("bucket", nargs="?", default=None, help="Defaults to BUCKETNAME.")
    head.add_argument("key")
    head.add_argument("--exists", action="store_true", help="Only report whether the object exists; exit status 1 when it does not.")

    put = commands.add_parser("put", help="Upload a file as an object.")
    put.add_argument("bucket", nargs="?", default=None, help="Defaults to BUCKETNAME.")
    put.add_argument("key")
    put.add_argument("file", type=Path)
    put.add_argument("--content-type", default=None)
    put.add_argument("--metadata", action="append", default=[], metavar="NAME=VALUE")

    delete = commands.add_parser("delete", help="Delete an object.")
    delete.add_argument("bucket", nargs="?", default=None, help="Defaults to BUCKETNAME.")
    delete.add_argument("key")
    return parser.parse_args(argv)


def _parse_metadata(pairs: list[str]) -> dict[str, str]:
    metadata: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise ValueError(f"Metadata must be NAME=VALUE, got: {pair!r}")
        metadata[name] = value
    return metadata


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _bucket_name(args: argparse.Namespace, default_bucket: str | None) -> str:
    bucket = args.bucket or default_bucket
    if not bucket:
        raise ValueError(f"No bucket given for {args.command!r} and BUCKETNAME is not set")
    return bucket


def run(access: CosAccess, args: argparse.Namespace, default_bucket: str | None = None) -> int:
    if args.command == "buckets":
        prefix = args.prefix if args.prefix is not None else default_bucket
        buckets = access.list_buckets(prefix=prefix)
        _print_json([bucket.model_dump(by_alias=True, exclude_none=True) for bucket in buckets])
        return EXIT_OK

    bucket = _bucket_name(args, default_bucket)
    if args.command == "endpoint":
        print(access.bucket_handle(bucket).endpoint_url)
        return EXIT_OK

    store = access.object_store(bucket)
    if args.command == "list":
        for key in store.list_objects(prefix=args.prefix):
            print(key)
    elif args.command == "get":
        data = store.get_object(args.key)
        if args.output:
            args.output.write_bytes(data)
        else:
            sys.stdout.buffer.write(data)
    elif args.command == "head" and args.exists:
        exists = store.object_exists(args.key)
        print("true" if exists else "false")
        return EXIT_OK if exists else EXIT_FAILED
    elif args.command == "head":
        response = store.head_object(args.key)
        response.pop("ResponseMetadata", None)
        _print_json(response)
    elif args.command == "put":
        content_type = args.content_type or mimetypes.guess_type(args.file.name)[0] or "application/octet-stream"
        store.put_object(args.key, args.file.read_bytes(), content_type=content_type, metadata=_parse_metadata(args.metadata))
        print(f"Uploaded {args.file} to {bucket}/{args.key}")
    elif args.command == "delete":
        store.delete_object(args.key)
        print(f"Deleted {bucket}/{args.key}")
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(level=args.log_level, service="cosaccess.cli")
    try:
        config = get_access_config()
        access = CosAccess(config)
        if not access.start() and args.command != "buckets":
            logger.error("Storage access not ready, cannot run command: command=%s", args.command)
            return EXIT_NOT_READY
        return run(access, args, default_bucket=config.bucket_name)
    except ServiceNotReadyError:
        logger.exception("Storage access not ready")
        return EXIT_NOT_READY
    except (CosAccessError, ValueError, OSError):
        logger.exception("Command failed: command=%s", args.command)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
