"""portplan - dependency resolution and install planning for native library ports.

    Returns:
        int: Exit code
"""
import csv
import json
import logging
import os
import sys

import yaml

from args import parse_args
from ci import BuildResult, apply_baseline, collect_regressions, exclusions_from_text
from ci.baseline import CiBaselineParseError
from cli_config import ConfigError, build_settings, load_config
from common.errors import InvalidVersion, QualifierSyntaxError, ResolutionError
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes, OutputFormats
from ports.loader import ManifestError, load_baseline_file, load_overrides_file, load_ports_dir
from qualifiers.facts import StaticFactsProvider
from resolver import DictInstalledState, NothingInstalled, Resolver
from resolver.export import export_csv, export_json, plan_rows
from versioning.parser import parse_package_token

logger = logging.getLogger(__name__)


def _parse_spec(spec, origin):
    """Split ``name:triplet`` into a key."""
    name, sep, triplet = spec.partition(":")
    if not sep or not name or not triplet:
        raise ManifestError(origin, f"expected 'name:triplet', got {spec!r}")
    return name, triplet


def load_installed_file(path):
    """Read ``{"zlib:x64-linux": "<abi>"}`` into an installed-state oracle."""
    with open(path, "r", encoding="utf-8") as fh:
        try:
            doc = json.load(fh)
        except json.JSONDecodeError as e:
            raise ManifestError(path, f"invalid JSON: {e}") from e
    if not isinstance(doc, dict):
        raise ManifestError(path, "installed state must be an object")
    return DictInstalledState({_parse_spec(spec, path): str(abi) for spec, abi in doc.items()})


def load_results_file(path):
    """Read ``{"zlib:x64-linux": "build-failed"}`` into build results."""
    with open(path, "r", encoding="utf-8") as fh:
        try:
            doc = json.load(fh)
        except json.JSONDecodeError as e:
            raise ManifestError(path, f"invalid JSON: {e}") from e
    if not isinstance(doc, dict):
        raise ManifestError(path, "results must be an object")
    results = {}
    for spec, value in doc.items():
        try:
            results[_parse_spec(spec, path)] = BuildResult(value)
        except ValueError as e:
            raise ManifestError(path, f"unknown build result {value!r} for {spec}") from e
    return results


def load_triplet_facts(path):
    """Read a ``triplet -> {fact: value}`` mapping (YAML or JSON) into a facts provider."""
    with open(path, "r", encoding="utf-8") as fh:
        try:
            doc = yaml.safe_load(fh) or {}
        except yaml.YAMLError as e:
            raise ManifestError(path, f"invalid YAML: {e}") from e
    if not isinstance(doc, dict) or not all(isinstance(v, dict) for v in doc.values()):
        raise ManifestError(path, "triplet facts must map triplet names to objects")
    return StaticFactsProvider({
        triplet: {str(k): str(v) for k, v in facts.items()} for triplet, facts in doc.items()
    })


def build_requests(tokens):
    """Parse the positional package tokens."""
    requests = []
    for token in tokens:
        try:
            requests.append(parse_package_token(token))
        except ValueError as e:
            raise ManifestError("<command line>", str(e)) from e
    return requests


def compute_cli_plan(args, settings):
    """Load the inputs named on the command line and resolve them."""
    lookup = load_ports_dir(args.PORTS_DIR)
    baseline = load_baseline_file(args.BASELINE) if args.BASELINE else {}
    overrides = load_overrides_file(args.OVERRIDES) if args.OVERRIDES else {}
    oracle = load_installed_file(args.INSTALLED) if args.INSTALLED else NothingInstalled()
    facts = load_triplet_facts(args.TRIPLET_FACTS) if args.TRIPLET_FACTS else StaticFactsProvider()
    roots = build_requests(args.packages)

    resolver = Resolver(lookup, facts=facts, oracle=oracle, options=settings.resolve_options())
    return resolver.resolve(roots, baseline, overrides, settings.target_triplet, settings.host_triplet)


def _output_format(args, settings):
    if getattr(args, "OUTPUT_FORMAT", None):
        return args.OUTPUT_FORMAT
    output = getattr(args, "OUTPUT", None)
    if output:
        extension = os.path.splitext(output)[1].lower().lstrip(".")
        if extension in Constants.SUPPORTED_FORMATS:
            return extension
    return (settings.output_format or OutputFormats.JSON.value).lower()


def write_plan(plan, args, settings):
    """Write the plan to ``--output`` or stdout in the selected format."""
    fmt = _output_format(args, settings)
    if args.OUTPUT:
        if fmt == OutputFormats.CSV.value:
            export_csv(plan, args.OUTPUT)
        else:
            export_json(plan, args.OUTPUT)
        return
    if fmt == OutputFormats.CSV.value:
        csv.writer(sys.stdout).writerows(plan_rows(plan))
    else:
        sys.stdout.write(json.dumps(plan.to_dict(), indent=2, sort_keys=True) + "\n")


def run_resolve(args, settings):
    """``resolve`` subcommand: print or export the ordered plan."""
    plan = compute_cli_plan(args, settings)
    write_plan(plan, args, settings)
    return ExitCodes.SUCCESS


def run_ci(args, settings):
    """``ci`` subcommand: apply the CI baseline and check build results."""
    plan = compute_cli_plan(args, settings)
    with open(args.CI_BASELINE, "r", encoding="utf-8") as fh:
        text = fh.read()
    exclusions, cidata = exclusions_from_text(
        text, (settings.target_triplet,), args.CI_BASELINE, settings.skip_failures
    )
    annotated = apply_baseline(plan, exclusions.for_triplet(settings.target_triplet), settings.target_triplet)
    logger.info("CI baseline excluded %d action(s)", len(annotated.excluded))
    write_plan(annotated, args, settings)

    if not args.RESULTS:
        return ExitCodes.SUCCESS
    regressions = collect_regressions(
        load_results_file(args.RESULTS), cidata, args.CI_BASELINE, args.ALLOW_UNEXPECTED_PASSING
    )
    for message in regressions:
        logger.error(message)
    return ExitCodes.CI_REGRESSION if regressions else ExitCodes.SUCCESS


COMMANDS = {
    "resolve": run_resolve,
    "ci": run_ci,
}


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL)

    try:
        config = load_config(args.CONFIG)
        settings = build_settings(args, config)
    except (ConfigError, OSError) as e:
        logger.error("Configuration error: %s", e)
        return ExitCodes.FILE_ERROR.value
    if settings.log_level and not args.LOG_LEVEL:
        configure_logging(settings.log_level)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.COMMAND,
                                target=settings.target_triplet),
        )

    handler = COMMANDS[args.COMMAND]
    try:
        code = handler(args, settings)
    except ResolutionError as e:
        logger.error("Resolution failed (%s): %s", e.kind, e)
        return ExitCodes.RESOLUTION_ERROR.value
    except (ManifestError, CiBaselineParseError, InvalidVersion, QualifierSyntaxError) as e:
        logger.error("Invalid input: %s", e)
        return ExitCodes.FILE_ERROR.value
    except OSError as e:
        logger.error("File error: %s, aborting", e)
        return ExitCodes.FILE_ERROR.value

    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(event="function_exit", component="cli", action=args.COMMAND,
                                outcome=code.name.lower()),
        )
    return code.value


if __name__ == "__main__":
    sys.exit(main())
