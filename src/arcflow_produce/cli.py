import argparse
import sys

from . import config
from .analysis.validation import validate_parsed_data
from .compare.comparator import compare_data, detect_compare_type
from .export.report import export_comparison, export_csv_bundle, export_excel
from .ingest.loader import load_inputs, load_reference_file
from .transform.pipeline import transform


def _add_inputs(p: argparse.ArgumentParser) -> None:
    p.add_argument("--inputs", nargs="+", required=True, help="Arc Flow CSV exports")
    p.add_argument("--mix", nargs="*", default=[], help="4M Variant Mixes workbook(s)")


def _print_validation(report) -> None:
    print(f"Validation: score={report.quality_score} can_transform={report.can_transform}")
    for issue in report.issues:
        line = f"  [{issue.severity}] {issue.category}: {issue.message}"
        if issue.details:
            line += f" ({issue.details})"
        print(line)


def cmd_run(args) -> int:
    data = load_inputs(args.inputs, args.mix)
    _print_validation(validate_parsed_data(data))
    result = transform(data)
    if result.errors:
        for e in result.errors:
            print("ERROR:", e)
        return 1
    print("Generated:", result.counts())
    if result.warnings:
        print(f"Warnings: {len(result.warnings)}")
    files = export_csv_bundle(result, args.out, args.prefix)
    print("Exported:", ", ".join(str(f) for f in files))
    if args.excel:
        print("Workbook:", export_excel(result, args.excel))
    return 0


def cmd_validate(args) -> int:
    report = validate_parsed_data(load_inputs(args.inputs, args.mix))
    _print_validation(report)
    return 0 if report.is_valid else 1


def cmd_compare(args) -> int:
    result = transform(load_inputs(args.inputs, args.mix))
    if result.errors:
        for e in result.errors:
            print("ERROR:", e)
        return 1
    reference = load_reference_file(args.reference)
    data_type = args.type or detect_compare_type(reference.headers)
    if data_type is None:
        print("Could not detect output type from reference headers; pass --type.")
        return 1
    cmp = compare_data(getattr(result, data_type), reference, data_type)
    print("Comparison:", cmp.summary())
    if args.report:
        print("Report:", export_comparison(cmp, args.report))
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Arc Flow -> PRODUCE transform CLI")
    sub = parser.add_subparsers(dest="cmd", required=True)

    run_p = sub.add_parser("run", help="Ingest -> Validate -> Transform -> Export")
    _add_inputs(run_p)
    run_p.add_argument("--out", default=config.OUT_DIR)
    run_p.add_argument("--prefix", default=config.EXPORT_PREFIX)
    run_p.add_argument("--excel", default=None, help="also write a single .xlsx workbook")
    run_p.set_defaults(func=cmd_run)

    val_p = sub.add_parser("validate", help="Data-quality report on the inputs")
    _add_inputs(val_p)
    val_p.set_defaults(func=cmd_validate)

    cmp_p = sub.add_parser("compare", help="Transform, then diff one output against a reference file")
    _add_inputs(cmp_p)
    cmp_p.add_argument("--reference", required=True)
    cmp_p.add_argument("--type", choices=["recipes", "catalogs", "events", "specs", "mixes"], default=None)
    cmp_p.add_argument("--report", default=None, help="write the comparison to this .xlsx")
    cmp_p.set_defaults(func=cmd_compare)

    args = parser.parse_args(argv)
    config.configure_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
