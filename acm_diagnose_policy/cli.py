import argparse
import logging
import sys

from acm_diagnose_policy.access import SnapshotResourceAccess
from acm_diagnose_policy.classifier import ViolationClassifier
from acm_diagnose_policy.engine import diagnose_policy, inspect_policy
from acm_diagnose_policy.errors import DiagnosisError, format_error_for_user
from acm_diagnose_policy.output import output_result

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="acm-diagnose-policy",
        description="Explain why an ACM policy is NonCompliant",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("diagnose", "Classify violations and suggest the next tool call"),
        ("inspect", "Quick compliance status and raw violation messages"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--policy", required=True, help="Root or propagated policy name")
        p.add_argument(
            "--namespace", default="", help="Policy namespace (searched if omitted)"
        )
        p.add_argument("--cluster", default="", help="Focus on one managed cluster")
        p.add_argument(
            "--snapshot",
            action="append",
            required=True,
            help="Policy JSON/YAML file or directory (repeatable)",
        )
        p.add_argument("--rules", default=None, help="Folder with extra YAML rules")
        p.add_argument(
            "--workers", type=int, default=1, help="Parallel cluster fetches"
        )
        p.add_argument(
            "--format",
            choices=["json", "text"],
            default="json",
            help="Output format (json, text)",
        )
        p.add_argument("--verbose", action="store_true")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        access = SnapshotResourceAccess.from_paths(args.snapshot)
        classifier = ViolationClassifier(extra_rules_folder=args.rules)
    except DiagnosisError as exc:
        output_result(
            {"error": format_error_for_user(exc), "canceled": False}, args.format
        )
        return EXIT_ERROR

    run = diagnose_policy if args.command == "diagnose" else inspect_policy
    try:
        result = run(
            access,
            args.policy,
            namespace=args.namespace,
            cluster=args.cluster,
            classifier=classifier,
            max_workers=args.workers,
        )
    except KeyboardInterrupt:
        output_result(
            {"error": "Operation was canceled before completion.", "canceled": True},
            args.format,
        )
        return EXIT_CANCELED

    output_result(result.to_dict(), args.format)

    if result.canceled:
        return EXIT_CANCELED
    return EXIT_OK if result.ok else EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
