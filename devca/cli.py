# devca/cli.py

import argparse
import sys

from devca import lifecycle
from devca.common.config import load_settings
from devca.common.errors import DevCAError
from devca.common.logger import get_logger
from devca.common.utils import split_csv
from devca.storage.identity import IdentityStore
from devca.storage.keystore import KeyMaterialStore
from devca.truststore import select_trust_store


def build_parser():
    parser = argparse.ArgumentParser(prog="devca", description="Local development certificate authority")
    parser.add_argument("-v", "--verbose", action="store_true", help="log progress to stderr")
    sub = parser.add_subparsers(dest="cmd")
    sub.add_parser("install-ca", aliases=["install"],
                   help="Install the certificate authority to the system trust store")
    sub.add_parser("uninstall-ca", aliases=["uninstall"],
                   help="Remove the certificate authority from the system trust store")
    p_new = sub.add_parser("new", help="Create a new certificate, signed by the certificate authority")
    p_new.add_argument("--cert", default="server.crt", help="certificate file name (example: localhost.crt)")
    p_new.add_argument("--key", default="server.key", help="private key file name (example: localhost.key)")
    p_new.add_argument("--sans", type=split_csv, default=[],
                       help="subject alternative names (example: localhost,127.0.0.1,postgres)")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.cmd is None:
        parser.print_help()
        return 2

    try:
        settings = load_settings()
        get_logger("devca", "INFO" if args.verbose else settings.log_level)
        identity_store = IdentityStore(settings.identity_path, settings.identity_defaults)
        keystore = KeyMaterialStore(settings.app_dir)

        if args.cmd in ("install-ca", "install"):
            identity = lifecycle.install(identity_store, keystore, select_trust_store(), settings)
            print(f"Created certificates in {settings.app_dir}")
            print(f"Added CA {identity.thumbprint} to the system trust store")
        elif args.cmd in ("uninstall-ca", "uninstall"):
            lifecycle.uninstall(identity_store, keystore, select_trust_store())
            print("Removed certificates from the system trust store")
        elif args.cmd == "new":
            cert_path, _ = lifecycle.new_certificate(
                identity_store, keystore, settings, args.cert, args.key, args.sans
            )
            print(f"Created new certificate in {cert_path}")
    except DevCAError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
