"""Argument parsing functionality for portplan."""

import argparse

from constants import Constants


def _add_common(parser):
    parser.add_argument("packages",
                        metavar="PACKAGE",
                        help="Package request, i.e: zlib, curl[ssl,http2], protobuf:host, fmt@10.1.0",
                        nargs="+")
    parser.add_argument("--ports",
                        dest="PORTS_DIR",
                        help="Directory holding one sub-directory per port with a vcpkg.json manifest",
                        action="store", type=str,
                        required=True)
    parser.add_argument("--baseline",
                        dest="BASELINE",
                        help="Baseline JSON file pinning package versions",
                        action="store", type=str)
    parser.add_argument("--overrides",
                        dest="OVERRIDES",
                        help="JSON file with version overrides (a list, or an object with 'overrides')",
                        action="store", type=str)
    parser.add_argument("--installed",
                        dest="INSTALLED",
                        help="JSON file mapping 'name:triplet' to the installed ABI hash",
                        action="store", type=str)
    parser.add_argument("--triplet",
                        dest="TRIPLET",
                        help=f"Target triplet (default: {Constants.DEFAULT_TARGET_TRIPLET})",
                        action="store", type=str)
    parser.add_argument("--host-triplet",
                        dest="HOST_TRIPLET",
                        help=f"Host triplet for build-time tools (default: {Constants.DEFAULT_HOST_TRIPLET})",
                        action="store", type=str)
    parser.add_argument("--triplet-facts",
                        dest="TRIPLET_FACTS",
                        help="YAML/JSON file mapping triplet names to fact sets",
                        action="store", type=str)
    parser.add_argument("--allow-unsupported",
                        dest="ALLOW_UNSUPPORTED",
                        help="Warn instead of failing on packages that do not support the triplet",
                        action="store_true")
    parser.add_argument("--override-precedence",
                        dest="OVERRIDE_PRECEDENCE",
                        help="Whether overrides beat explicit root versions ('override') "
                             "or are checked against them ('constraint')",
                        action="store", type=str,
                        choices=["override", "constraint"])
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to output file (JSON or CSV); prints JSON to stdout when omitted",
                        action="store",
                        type=str)
    parser.add_argument("-f", "--format",
                        dest="OUTPUT_FORMAT",
                        help="Output format (json or csv). If not specified, inferred from --output extension; defaults to json.",
                        action="store",
                        type=str.lower,
                        choices=Constants.SUPPORTED_FORMATS)


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="portplan",
        description="portplan - dependency resolution and install planning for native library ports",
        add_help=True,
    )
    parser.add_argument("--config",
                        dest="CONFIG",
                        help="Path to a YAML or JSON configuration file",
                        action="store", type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=Constants.LOG_LEVELS)

    subparsers = parser.add_subparsers(dest="COMMAND", required=True)

    resolve_parser = subparsers.add_parser("resolve", help="Compute the ordered install plan")
    _add_common(resolve_parser)

    ci_parser = subparsers.add_parser("ci", help="Compute the plan and apply a CI baseline")
    _add_common(ci_parser)
    ci_parser.add_argument("--ci-baseline",
                           dest="CI_BASELINE",
                           help="CI baseline file with 'port:triplet = fail|skip|pass' lines",
                           action="store", type=str,
                           required=True)
    ci_parser.add_argument("--skip-failures",
                           dest="SKIP_FAILURES",
                           help="Skip ports expected to fail instead of building them",
                           action="store_true")
    ci_parser.add_argument("--results",
                           dest="RESULTS",
                           help="JSON file mapping 'name:triplet' to a build result, checked for regressions",
                           action="store", type=str)
    ci_parser.add_argument("--allow-unexpected-passing",
                           dest="ALLOW_UNEXPECTED_PASSING",
                           help="Do not report ports that pass while expected to fail",
                           action="store_true")

    return parser.parse_args(argv)
